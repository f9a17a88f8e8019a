"""Types for the CFDI calculation engine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class CalculationMethod(str, Enum):
    """How a breakdown was obtained."""

    FROM_SUBTOTAL = "fromSubtotal"
    GOAL_SEEK = "goalSeek"


@dataclass(frozen=True, slots=True)
class RateSet:
    """
    Tax rates applied to an invoice.

    Attributes:
        vat_rate: VAT (IVA) rate applied to the subtotal (0-1).
        income_tax_rate: Income tax withheld (ISR) rate applied to the subtotal (0-1).
        vat_retention_fraction: Fraction of the VAT amount that is withheld (0-1).
    """

    vat_rate: float = 0.16
    income_tax_rate: float = 0.10
    vat_retention_fraction: float = 0.6666666667

    @property
    def net_factor(self) -> float:
        """Net amount per unit of subtotal, ignoring rounding."""
        return (
            1
            + self.vat_rate
            - self.income_tax_rate
            - self.vat_rate * self.vat_retention_fraction
        )

    def merge(self, update: RateUpdate) -> RateSet:
        """Return a new RateSet with the fields present in ``update`` replaced."""
        changes = {
            name: value
            for name, value in (
                ("vat_rate", update.vat_rate),
                ("income_tax_rate", update.income_tax_rate),
                ("vat_retention_fraction", update.vat_retention_fraction),
            )
            if value is not None
        }
        return replace(self, **changes)

    def to_dict(self) -> dict[str, float]:
        """Serialize with the camelCase keys used by exports."""
        return {
            "vatRate": self.vat_rate,
            "incomeTaxRate": self.income_tax_rate,
            "vatRetentionFraction": self.vat_retention_fraction,
        }


@dataclass(frozen=True, slots=True)
class RateUpdate:
    """Partial rates; ``None`` fields keep their current value."""

    vat_rate: float | None = None
    income_tax_rate: float | None = None
    vat_retention_fraction: float | None = None


@dataclass(frozen=True, slots=True)
class CalculationOptions:
    """
    Options for a breakdown calculation.

    Attributes:
        round_per_line: Round each tax line to cents before combining them,
            as invoicing software does.
    """

    round_per_line: bool = True


@dataclass(frozen=True, slots=True)
class BreakdownResult:
    """
    Full breakdown of a CFDI invoice.

    Raw lines are kept next to the effective (possibly rounded) lines so the
    impact of per-line rounding can be inspected.

    Attributes:
        subtotal: Pre-tax amount.
        vat_raw: Unrounded VAT.
        income_tax_withheld_raw: Unrounded income tax withheld.
        vat_retention_raw: Unrounded VAT retention.
        vat: Effective VAT.
        income_tax_withheld: Effective income tax withheld.
        vat_retention: Effective VAT retention.
        net_amount: Amount received, always rounded to cents.
        calculation_method: How the subtotal was obtained.
        options: Options used for the calculation.
    """

    subtotal: float
    vat_raw: float
    income_tax_withheld_raw: float
    vat_retention_raw: float
    vat: float
    income_tax_withheld: float
    vat_retention: float
    net_amount: float
    calculation_method: CalculationMethod = CalculationMethod.FROM_SUBTOTAL
    options: CalculationOptions = field(default_factory=CalculationOptions)

    def deviation_from(self, target_net: float) -> float:
        """Absolute distance between this net amount and a target."""
        return abs(self.net_amount - target_net)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used by exports."""
        return {
            "subtotal": self.subtotal,
            "vatRaw": self.vat_raw,
            "incomeTaxWithheldRaw": self.income_tax_withheld_raw,
            "vatRetentionRaw": self.vat_retention_raw,
            "vat": self.vat,
            "incomeTaxWithheld": self.income_tax_withheld,
            "vatRetention": self.vat_retention,
            "netAmount": self.net_amount,
            "calculationMethod": self.calculation_method.value,
            "options": {"roundPerLine": self.options.round_per_line},
        }
