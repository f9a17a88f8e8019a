"""Localized messages for calculation errors and result labels."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.logging import get_logger
from services.cfdi.errors import ErrorCode

if TYPE_CHECKING:
    from services.cfdi.errors import CalculationError

logger = get_logger(__name__)

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "es")

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        # Errors
        "invalid_net_amount": "Please enter a valid net amount greater than 0",
        "invalid_subtotal": "Please enter a valid subtotal greater than 0",
        "invalid_percentage": "Percentage must be between 0 and 1",
        "invalid_number": "Please enter a valid number",
        "calculation_error": "Calculation error. Please verify the entered data.",
        "goal_seek_timeout": "Could not find an exact solution. Try with different values.",
        "denominator_too_small": "Denominator too close to zero. Please verify the rates.",
        # Result labels
        "subtotal_result": "Subtotal",
        "vat_charged_result": "VAT charged",
        "income_tax_withheld_result": "Income Tax withheld",
        "vat_retention_result": "VAT Retention",
        "calculated_net_result": "Calculated net",
        # Steps
        "calculation_from_subtotal": "Calculation from subtotal (direct).",
        "algebraic_formula": "Algebraic formula (without intermediate rounding)",
        "starting_goal_seek": "Starting Goal Seek (binary search) respecting line rounding...",
        "approximate_subtotal": "Approximate subtotal:",
        "goal_seek_result": "Goal Seek result:",
        "export_written": "Export written to",
    },
    "es": {
        "invalid_net_amount": "Introduce un neto válido mayor a 0",
        "invalid_subtotal": "Introduce un subtotal válido mayor a 0",
        "invalid_percentage": "Porcentaje debe estar entre 0 y 1",
        "invalid_number": "Introduce un número válido",
        "calculation_error": "Error en el cálculo. Verifica los datos ingresados.",
        "goal_seek_timeout": "No se pudo encontrar una solución exacta. Intenta con otros valores.",
        "denominator_too_small": "Denominador muy cercano a cero. Verifica las tasas.",
        "subtotal_result": "Subtotal",
        "vat_charged_result": "IVA trasladado",
        "income_tax_withheld_result": "Retención ISR",
        "vat_retention_result": "Retención IVA",
        "calculated_net_result": "Neto calculado",
        "calculation_from_subtotal": "Cálculo desde subtotal (directo).",
        "algebraic_formula": "Fórmula algebraica (sin redondeos intermedios)",
        "starting_goal_seek": (
            "Iniciando Goal Seek (búsqueda binaria) respetando redondeos por línea..."
        ),
        "approximate_subtotal": "Subtotal aproximado:",
        "goal_seek_result": "Resultado Goal Seek:",
        "export_written": "Exportación guardada en",
    },
}

_INVALID_INPUT_KEYS: dict[str, str] = {
    "subtotal": "invalid_subtotal",
    "target_net": "invalid_net_amount",
    "vat_rate": "invalid_percentage",
    "income_tax_rate": "invalid_percentage",
    "vat_retention_fraction": "invalid_percentage",
    "rate": "invalid_percentage",
}


def normalize_language(language: str | None) -> str:
    """
    Map a language or locale string to a supported language code.

    ``es-MX`` and ``es_MX`` become ``es``; anything unsupported falls back to
    the default language.
    """
    if not language:
        return DEFAULT_LANGUAGE
    code = language.strip().replace("_", "-").split("-")[0].lower()
    if code not in SUPPORTED_LANGUAGES:
        logger.debug("Unsupported language, using default", language=language)
        return DEFAULT_LANGUAGE
    return code


def translate(key: str, language: str | None = None) -> str:
    """
    Look up a message.

    Falls back to the default language, then to the key itself.
    """
    lang = normalize_language(language)
    return TRANSLATIONS[lang].get(key) or TRANSLATIONS[DEFAULT_LANGUAGE].get(key) or key


def message_key_for(error: CalculationError) -> str:
    """Return the translation key describing ``error``."""
    match error.code:
        case ErrorCode.INVALID_INPUT:
            return _INVALID_INPUT_KEYS.get(error.field or "", "calculation_error")
        case ErrorCode.INVALID_NUMBER:
            return "invalid_number"
        case ErrorCode.DEGENERATE_RATES:
            return "denominator_too_small"
        case ErrorCode.GOAL_SEEK_UNREACHABLE:
            return "goal_seek_timeout"
    return "calculation_error"


def message_for(error: CalculationError, language: str | None = None) -> str:
    """Return the localized, user-facing message for ``error``."""
    return translate(message_key_for(error), language)
