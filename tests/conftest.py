"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog

from core.config import get_settings
from core.logging import clear_context
from services.cfdi import CalculationOptions, CfdiCalculator, GoalSeekConfig, RateSet

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Drop cached settings so each test sees its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Restore structlog defaults after tests that configure logging."""
    yield
    clear_context()
    structlog.reset_defaults()


@pytest.fixture()
def default_rates() -> RateSet:
    """Return the Mexican CFDI default rates (16% VAT, 10% ISR, 2/3 retention)."""
    return RateSet(vat_rate=0.16, income_tax_rate=0.10, vat_retention_fraction=0.6666666667)


@pytest.fixture()
def zero_rates() -> RateSet:
    """Return rates under which the net amount equals the rounded subtotal."""
    return RateSet(vat_rate=0.0, income_tax_rate=0.0, vat_retention_fraction=0.0)


@pytest.fixture()
def degenerate_rates() -> RateSet:
    """Return rates whose net factor 1 + v - i - v*f is zero."""
    return RateSet(vat_rate=1.0, income_tax_rate=1.0, vat_retention_fraction=1.0)


@pytest.fixture()
def per_line() -> CalculationOptions:
    """Return options with per-line rounding."""
    return CalculationOptions(round_per_line=True)


@pytest.fixture()
def continuous() -> CalculationOptions:
    """Return options without per-line rounding."""
    return CalculationOptions(round_per_line=False)


@pytest.fixture()
def calculator(default_rates: RateSet) -> CfdiCalculator:
    """Return a calculator with explicit default rates and goal seek bounds."""
    return CfdiCalculator(rates=default_rates, goal_seek_config=GoalSeekConfig())
