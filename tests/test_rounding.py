"""Tests for rounding and validation primitives."""

from __future__ import annotations

import math

import pytest

from services.cfdi.errors import CalculationException, ErrorCode
from services.cfdi.rounding import percentage_of, round2, validate_positive, validate_rates
from services.cfdi.types import RateSet


class TestRound2:
    """Tests for round2."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3.14159, 3.14),
            (3.145, 3.15),
            (0.125, 0.13),
            (1600.0, 1600.0),
            (1066.66666672, 1066.67),
            (10, 10.0),
            (-1.234, -1.23),
        ],
    )
    def test_rounds_half_up(self, value: float, expected: float) -> None:
        """round2 should round to cents with ties going up."""
        assert round2(value) == expected

    def test_differs_from_bankers_rounding(self) -> None:
        """0.125 is an exact tie; built-in round goes to even, round2 goes up."""
        assert round(0.125, 2) == 0.12
        assert round2(0.125) == 0.13

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, "3.14", None, True])
    def test_rejects_non_finite(self, value: object) -> None:
        """round2 should raise INVALID_NUMBER for anything but a finite number."""
        with pytest.raises(CalculationException) as exc_info:
            round2(value)  # type: ignore[arg-type]

        assert exc_info.value.error.code == ErrorCode.INVALID_NUMBER

    @pytest.mark.parametrize("value", [45035996273704.97, 1e20])
    def test_keeps_large_amounts(self, value: float) -> None:
        """Amounts whose cents exceed 2**52 should come back unchanged."""
        assert round2(value) == value

    @pytest.mark.parametrize("value", [1e307, -1e307, 1.7e308])
    def test_rejects_overflowing_cents(self, value: float) -> None:
        """Finite values too large to scale to cents should be INVALID_NUMBER."""
        with pytest.raises(CalculationException) as exc_info:
            round2(value)

        assert exc_info.value.error.code == ErrorCode.INVALID_NUMBER
        assert exc_info.value.error.message == "Value is too large to round"


class TestValidatePositive:
    """Tests for validate_positive."""

    def test_accepts_positive(self) -> None:
        """Positive finite numbers should pass."""
        validate_positive(0.01, "subtotal")
        validate_positive(9280, "target_net")

    @pytest.mark.parametrize("value", [0, -5.0, math.nan, math.inf])
    def test_rejects_invalid(self, value: float) -> None:
        """Zero, negatives and non-finite values should fail with INVALID_INPUT."""
        with pytest.raises(CalculationException) as exc_info:
            validate_positive(value, "subtotal")

        assert exc_info.value.error.code == ErrorCode.INVALID_INPUT
        assert exc_info.value.error.field == "subtotal"


class TestPercentageOf:
    """Tests for percentage_of."""

    def test_multiplies(self) -> None:
        """percentage_of should return base * rate."""
        assert percentage_of(10000, 0.16) == pytest.approx(1600.0)

    def test_zero_rate(self) -> None:
        """A zero rate is allowed."""
        assert percentage_of(100, 0) == 0

    def test_rejects_non_positive_base(self) -> None:
        """A base of zero should fail."""
        with pytest.raises(CalculationException) as exc_info:
            percentage_of(0, 0.16)

        assert exc_info.value.error.field == "base"

    @pytest.mark.parametrize("rate", [-0.01, 1.01, math.nan])
    def test_rejects_rate_out_of_range(self, rate: float) -> None:
        """Rates outside [0, 1] should fail."""
        with pytest.raises(CalculationException) as exc_info:
            percentage_of(100, rate)

        assert exc_info.value.error.code == ErrorCode.INVALID_INPUT
        assert exc_info.value.error.field == "rate"


class TestValidateRates:
    """Tests for validate_rates."""

    def test_accepts_defaults(self, default_rates: RateSet) -> None:
        """The CFDI defaults should be valid."""
        validate_rates(default_rates)

    def test_names_offending_field(self) -> None:
        """The error should name the rate that is out of range."""
        with pytest.raises(CalculationException) as exc_info:
            validate_rates(RateSet(income_tax_rate=10))

        assert exc_info.value.error.field == "income_tax_rate"
