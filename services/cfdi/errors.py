"""Error types for the CFDI calculation engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for calculation failures."""

    INVALID_NUMBER = "invalid_number"
    INVALID_INPUT = "invalid_input"
    DEGENERATE_RATES = "degenerate_rates"
    GOAL_SEEK_UNREACHABLE = "goal_seek_unreachable"


@dataclass(frozen=True, slots=True)
class CalculationError:
    """
    Error returned by engine operations.

    Attributes:
        code: Error code identifying the kind of failure.
        message: Human-readable (English) description.
        field: Name of the offending input, when one is to blame.
        details: Extra diagnostic text (optional).
    """

    code: ErrorCode
    message: str
    field: str | None = None
    details: str | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.field:
            return f"{self.code.value}: {self.field}: {self.message}"
        return f"{self.code.value}: {self.message}"


class CalculationException(Exception):
    """
    Raised by the numeric primitives.

    The public engine functions catch it and return ``Failure(exc.error)``.
    """

    def __init__(self, error: CalculationError) -> None:
        """Initialize with the error being signalled."""
        self.error = error
        super().__init__(str(error))


def InvalidNumber(
    message: str = "Value must be a finite number",
    details: str | None = None,
) -> CalculationError:
    """Create an invalid number error."""
    return CalculationError(
        code=ErrorCode.INVALID_NUMBER,
        message=message,
        details=details,
    )


def InvalidInput(
    field: str,
    message: str = "Must be greater than 0",
    details: str | None = None,
) -> CalculationError:
    """Create an invalid input error."""
    return CalculationError(
        code=ErrorCode.INVALID_INPUT,
        message=message,
        field=field,
        details=details,
    )


def DegenerateRates(denominator: float) -> CalculationError:
    """Create a degenerate rates error."""
    return CalculationError(
        code=ErrorCode.DEGENERATE_RATES,
        message="Denominator too close to zero, verify the rates",
        details=f"denominator={denominator!r}",
    )


def GoalSeekUnreachable(target_net: float, attempts: int) -> CalculationError:
    """Create a goal seek unreachable error."""
    return CalculationError(
        code=ErrorCode.GOAL_SEEK_UNREACHABLE,
        message="Could not find an exact solution, try different values",
        field="target_net",
        details=f"target_net={target_net!r} attempts={attempts}",
    )
