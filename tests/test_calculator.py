"""Tests for the CfdiCalculator session object."""

from __future__ import annotations

import pytest

from core.result import Failure, Success
from services.cfdi import (
    CalculationMethod,
    CalculationOptions,
    CfdiCalculator,
    ErrorCode,
    GoalSeekConfig,
    RateSet,
    RateUpdate,
)


class TestCfdiCalculatorInit:
    """Tests for calculator construction."""

    def test_uses_given_rates(self, default_rates: RateSet) -> None:
        """Explicit rates should become the live rates."""
        calculator = CfdiCalculator(rates=default_rates, goal_seek_config=GoalSeekConfig())

        assert calculator.get_rates() == default_rates

    def test_defaults_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Omitted rates and bounds should come from the settings."""
        monkeypatch.setenv("TAX_VAT_RATE", "0.08")
        monkeypatch.setenv("GOAL_SEEK_MAX_ITERATIONS", "100")

        calculator = CfdiCalculator()

        assert calculator.get_rates().vat_rate == 0.08
        assert calculator.get_rates().income_tax_rate == 0.10
        assert calculator.goal_seek_config.max_iterations == 100


class TestCfdiCalculatorRates:
    """Tests for rate management."""

    def test_update_keeps_unspecified_fields(self, calculator: CfdiCalculator) -> None:
        """update_rates should merge field by field."""
        calculator.update_rates(RateUpdate(vat_rate=0.08))

        rates = calculator.get_rates()
        assert rates.vat_rate == 0.08
        assert rates.income_tax_rate == 0.10
        assert rates.vat_retention_fraction == 0.6666666667

    def test_update_with_keywords(self, calculator: CfdiCalculator) -> None:
        """update_rates should accept keyword fields."""
        calculator.update_rates(income_tax_rate=0.0125)

        assert calculator.get_rates().income_tax_rate == 0.0125

    def test_update_rejects_unknown_field(self, calculator: CfdiCalculator) -> None:
        """Unknown rate names should raise TypeError."""
        with pytest.raises(TypeError):
            calculator.update_rates(sales_tax=0.07)

    def test_get_rates_is_snapshot(self, calculator: CfdiCalculator) -> None:
        """A snapshot taken before an update should not change."""
        before = calculator.get_rates()

        calculator.update_rates(vat_rate=0.0)

        assert before.vat_rate == 0.16
        assert calculator.get_rates().vat_rate == 0.0

    def test_reset_restores_initial_rates(
        self, calculator: CfdiCalculator, default_rates: RateSet
    ) -> None:
        """reset_rates should undo all updates."""
        calculator.update_rates(vat_rate=0.08, income_tax_rate=0.0)

        calculator.reset_rates()

        assert calculator.get_rates() == default_rates


class TestCfdiCalculatorOperations:
    """Tests for calculator operations."""

    def test_calculate_from_subtotal(self, calculator: CfdiCalculator) -> None:
        """calculate_from_subtotal should use the live rates."""
        result = calculator.calculate_from_subtotal(10000)

        assert isinstance(result, Success)
        assert result.value.net_amount == 9533.33

    def test_operations_see_updated_rates(self, calculator: CfdiCalculator) -> None:
        """Operations after an update should use the new rates."""
        calculator.update_rates(vat_rate=0.0, income_tax_rate=0.0)

        breakdown = calculator.calculate_from_subtotal(500).unwrap()

        assert breakdown.net_amount == 500.0

    def test_algebraic_subtotal(self, calculator: CfdiCalculator) -> None:
        """The algebraic subtotal should invert the net factor."""
        subtotal = calculator.calculate_subtotal_from_net_algebraic(9533.33).unwrap()

        assert subtotal == pytest.approx(9999.9965, abs=1e-3)

    def test_breakdown_from_algebraic_subtotal(self, calculator: CfdiCalculator) -> None:
        """The algebraic flow should return the breakdown of the inverted subtotal."""
        result = calculator.calculate_from_net_algebraic(
            9533.33, CalculationOptions(round_per_line=False)
        )

        assert isinstance(result, Success)
        assert result.value.net_amount == 9533.33
        assert result.value.calculation_method == CalculationMethod.FROM_SUBTOTAL

    def test_algebraic_flow_propagates_failure(self, calculator: CfdiCalculator) -> None:
        """Degenerate rates should stop the algebraic flow."""
        calculator.update_rates(vat_rate=1.0, income_tax_rate=1.0, vat_retention_fraction=1.0)

        result = calculator.calculate_from_net_algebraic(100.0)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.DEGENERATE_RATES

    def test_goal_seek_subtotal(self, calculator: CfdiCalculator) -> None:
        """goal_seek_subtotal should hit the target net amount."""
        result = calculator.goal_seek_subtotal(9280.00)

        assert isinstance(result, Success)
        assert abs(result.value.net_amount - 9280.00) < 0.0005
        assert result.value.calculation_method == CalculationMethod.GOAL_SEEK

    def test_goal_seek_uses_instance_config(self, zero_rates: RateSet) -> None:
        """The calculator's bounds should drive goal seek."""
        calculator = CfdiCalculator(
            rates=zero_rates,
            goal_seek_config=GoalSeekConfig(search_range=1e-9, max_attempts=1),
        )

        result = calculator.goal_seek_subtotal(100.004)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.GOAL_SEEK_UNREACHABLE
