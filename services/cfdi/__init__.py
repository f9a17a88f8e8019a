"""CFDI invoice calculation engine package."""

from services.cfdi.calculator import (
    CfdiCalculator,
    GoalSeekConfig,
    compute_breakdown,
    goal_seek,
    subtotal_from_net_algebraic,
)
from services.cfdi.errors import CalculationError, ErrorCode
from services.cfdi.rounding import percentage_of, round2, validate_positive
from services.cfdi.types import (
    BreakdownResult,
    CalculationMethod,
    CalculationOptions,
    RateSet,
    RateUpdate,
)

__all__ = [
    "BreakdownResult",
    "CalculationError",
    "CalculationMethod",
    "CalculationOptions",
    "CfdiCalculator",
    "ErrorCode",
    "GoalSeekConfig",
    "RateSet",
    "RateUpdate",
    "compute_breakdown",
    "goal_seek",
    "percentage_of",
    "round2",
    "subtotal_from_net_algebraic",
    "validate_positive",
]
