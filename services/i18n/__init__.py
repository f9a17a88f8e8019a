"""Localized messages package."""

from services.i18n.messages import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    message_for,
    normalize_language,
    translate,
)

__all__ = [
    "DEFAULT_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "message_for",
    "normalize_language",
    "translate",
]
