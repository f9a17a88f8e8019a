"""CFDI breakdown calculator and goal seek engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Result, failure, success
from services.cfdi.errors import (
    CalculationError,
    CalculationException,
    DegenerateRates,
    GoalSeekUnreachable,
)
from services.cfdi.rounding import percentage_of, round2, validate_positive, validate_rates
from services.cfdi.types import (
    BreakdownResult,
    CalculationMethod,
    CalculationOptions,
    RateSet,
    RateUpdate,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from core.config import GoalSeekSettings

logger = get_logger(__name__)

# Below this the rates cannot be inverted to a finite subtotal.
MIN_DENOMINATOR = 1e-6


@dataclass(frozen=True, slots=True)
class GoalSeekConfig:
    """
    Bounds for the goal seek search.

    Attributes:
        max_iterations: Maximum bisection steps.
        tolerance: Net deviation accepted as an exact match.
        search_range: Half-width of the initial bracket around the algebraic guess.
        max_attempts: Maximum bracket widenings before giving up.
    """

    max_iterations: int = 80
    tolerance: float = 0.0005
    search_range: float = 2000.0
    max_attempts: int = 40

    def __post_init__(self) -> None:
        """Reject bounds that would make the search meaningless."""
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if self.max_attempts < 0:
            raise ValueError("max_attempts cannot be negative")
        if self.tolerance <= 0 or self.search_range <= 0:
            raise ValueError("tolerance and search_range must be positive")

    @classmethod
    def from_settings(cls, settings: GoalSeekSettings) -> GoalSeekConfig:
        """Build from the ``goal_seek`` settings section."""
        return cls(
            max_iterations=settings.max_iterations,
            tolerance=settings.tolerance,
            search_range=settings.search_range,
            max_attempts=settings.max_attempts,
        )


def _breakdown(
    subtotal: float,
    rates: RateSet,
    options: CalculationOptions,
) -> BreakdownResult:
    validate_positive(subtotal, "subtotal")
    validate_rates(rates)

    vat_raw = percentage_of(subtotal, rates.vat_rate)
    income_tax_withheld_raw = percentage_of(subtotal, rates.income_tax_rate)
    # Retention is a fraction of the VAT, not of the subtotal.
    vat_retention_raw = (
        percentage_of(vat_raw, rates.vat_retention_fraction) if vat_raw > 0 else 0.0
    )

    if options.round_per_line:
        vat = round2(vat_raw)
        income_tax_withheld = round2(income_tax_withheld_raw)
        vat_retention = round2(vat_retention_raw)
    else:
        vat = vat_raw
        income_tax_withheld = income_tax_withheld_raw
        vat_retention = vat_retention_raw

    return BreakdownResult(
        subtotal=subtotal,
        vat_raw=vat_raw,
        income_tax_withheld_raw=income_tax_withheld_raw,
        vat_retention_raw=vat_retention_raw,
        vat=vat,
        income_tax_withheld=income_tax_withheld,
        vat_retention=vat_retention,
        net_amount=round2(subtotal + vat - income_tax_withheld - vat_retention),
        calculation_method=CalculationMethod.FROM_SUBTOTAL,
        options=options,
    )


def _algebraic_subtotal(target_net: float, rates: RateSet) -> float:
    validate_positive(target_net, "target_net")
    validate_rates(rates)

    denominator = rates.net_factor
    if abs(denominator) < MIN_DENOMINATOR:
        raise CalculationException(DegenerateRates(denominator))
    return target_net / denominator


def _net_at(
    subtotal: float,
    rates: RateSet,
    options: CalculationOptions,
) -> float:
    # A bracket clamped at zero describes an empty invoice.
    if subtotal <= 0:
        return 0.0
    return _breakdown(subtotal, rates, options).net_amount


def _bracket(
    target_net: float,
    initial_guess: float,
    rates: RateSet,
    options: CalculationOptions,
    config: GoalSeekConfig,
) -> tuple[float, float]:
    """
    Find ``(low, high)`` whose net amounts straddle the target.

    Assumes the net amount grows with the subtotal. With per-line rounding it
    is a step function, so a plateau can fool this check in rare rate
    configurations.
    """
    step = config.search_range
    low = max(0.0, initial_guess - step)
    high = initial_guess + step
    net_low = _net_at(low, rates, options)
    net_high = _net_at(high, rates, options)

    attempts = 0
    while (net_low > target_net and net_high > target_net) or (
        net_low < target_net and net_high < target_net
    ):
        attempts += 1
        if attempts > config.max_attempts:
            raise CalculationException(GoalSeekUnreachable(target_net, config.max_attempts))

        low = max(0.0, low - step * attempts)
        high = high + step * attempts
        net_low = _net_at(low, rates, options)
        net_high = _net_at(high, rates, options)
        logger.debug("Widened goal seek bracket", attempt=attempts, low=low, high=high)

    return low, high


def _bisect(
    target_net: float,
    low: float,
    high: float,
    rates: RateSet,
    options: CalculationOptions,
    config: GoalSeekConfig,
) -> Iterator[BreakdownResult]:
    """Yield the breakdown at each bisection midpoint until within tolerance."""
    lo, hi = low, high
    for _ in range(config.max_iterations):
        mid = (lo + hi) / 2
        candidate = _breakdown(mid, rates, options)
        yield candidate

        if candidate.deviation_from(target_net) < config.tolerance:
            return
        if candidate.net_amount > target_net:
            hi = mid
        else:
            lo = mid


def _goal_seek(
    target_net: float,
    rates: RateSet,
    options: CalculationOptions,
    config: GoalSeekConfig,
) -> BreakdownResult:
    initial_guess = _algebraic_subtotal(target_net, rates)
    low, high = _bracket(target_net, initial_guess, rates, options, config)

    # min keeps the earliest candidate on ties.
    best = min(
        _bisect(target_net, low, high, rates, options, config),
        key=lambda candidate: candidate.deviation_from(target_net),
    )

    final = _breakdown(round2(best.subtotal), rates, options)
    return replace(final, calculation_method=CalculationMethod.GOAL_SEEK)


def compute_breakdown(
    subtotal: float,
    rates: RateSet,
    options: CalculationOptions | None = None,
) -> Result[BreakdownResult, CalculationError]:
    """
    Compute the full breakdown of an invoice from its subtotal.

    Args:
        subtotal: Pre-tax amount, must be greater than zero.
        rates: Tax rates to apply.
        options: Calculation options (per-line rounding on by default).

    Returns:
        Result containing the BreakdownResult or an INVALID_INPUT error.
    """
    options = options or CalculationOptions()
    try:
        breakdown = _breakdown(subtotal, rates, options)
    except CalculationException as exc:
        return failure(exc.error)

    logger.debug(
        "Computed breakdown",
        subtotal=breakdown.subtotal,
        net_amount=breakdown.net_amount,
        round_per_line=options.round_per_line,
    )
    return success(breakdown)


def subtotal_from_net_algebraic(
    target_net: float,
    rates: RateSet,
) -> Result[float, CalculationError]:
    """
    Invert the net amount formula, ignoring per-line rounding.

    ``net = subtotal * (1 + vat - isr - vat * retention)``, so the subtotal is
    the target divided by that factor. With per-line rounding the result is
    only a first approximation; ``goal_seek`` refines it.

    Args:
        target_net: Desired net amount, must be greater than zero.
        rates: Tax rates to apply.

    Returns:
        Result containing the approximate subtotal, or an INVALID_INPUT or
        DEGENERATE_RATES error.
    """
    try:
        subtotal = _algebraic_subtotal(target_net, rates)
    except CalculationException as exc:
        return failure(exc.error)

    logger.debug("Inverted net amount", target_net=target_net, subtotal=subtotal)
    return success(subtotal)


def goal_seek(
    target_net: float,
    rates: RateSet,
    options: CalculationOptions | None = None,
    config: GoalSeekConfig | None = None,
) -> Result[BreakdownResult, CalculationError]:
    """
    Find the subtotal whose rounded breakdown yields ``target_net``.

    Seeds a bracket with the algebraic inverse, widens it until the net
    amounts at both ends straddle the target, then bisects while keeping the
    candidate closest to the target. The winning subtotal is rounded to cents
    and its breakdown recomputed; that recomputation is the returned result.

    Args:
        target_net: Desired net amount, must be greater than zero.
        rates: Tax rates to apply.
        options: Calculation options (per-line rounding on by default).
        config: Search bounds (defaults match ``GoalSeekSettings``).

    Returns:
        Result containing the BreakdownResult tagged GOAL_SEEK, or an
        INVALID_INPUT, DEGENERATE_RATES or GOAL_SEEK_UNREACHABLE error.
    """
    options = options or CalculationOptions()
    config = config or GoalSeekConfig()
    try:
        breakdown = _goal_seek(target_net, rates, options, config)
    except CalculationException as exc:
        logger.warning("Goal seek failed", target_net=target_net, error=str(exc.error))
        return failure(exc.error)

    logger.info(
        "Goal seek converged",
        target_net=target_net,
        subtotal=breakdown.subtotal,
        net_amount=breakdown.net_amount,
    )
    return success(breakdown)


class CfdiCalculator:
    """
    Calculator holding the live tax rates for a session.

    Every operation takes a snapshot of the rates at call time and delegates
    to the pure module-level functions.

    Example:
        >>> calculator = CfdiCalculator(RateSet())
        >>> calculator.calculate_from_subtotal(10000).unwrap().net_amount
        9533.33
    """

    def __init__(
        self,
        rates: RateSet | None = None,
        goal_seek_config: GoalSeekConfig | None = None,
    ) -> None:
        """
        Initialize the calculator.

        Args:
            rates: Initial rates (default: the configured tax rates).
            goal_seek_config: Goal seek bounds (default: the configured bounds).
        """
        if rates is None or goal_seek_config is None:
            from core.config import get_settings

            settings = get_settings()
            if rates is None:
                rates = RateSet(
                    vat_rate=settings.rates.vat_rate,
                    income_tax_rate=settings.rates.income_tax_rate,
                    vat_retention_fraction=settings.rates.vat_retention_fraction,
                )
            if goal_seek_config is None:
                goal_seek_config = GoalSeekConfig.from_settings(settings.goal_seek)

        self._initial_rates = rates
        self._rates = rates
        self._goal_seek_config = goal_seek_config

    @property
    def goal_seek_config(self) -> GoalSeekConfig:
        """Bounds used by ``goal_seek_subtotal``."""
        return self._goal_seek_config

    def update_rates(self, update: RateUpdate | None = None, **fields: float) -> None:
        """
        Merge new rates into the live rates; omitted fields are kept.

        Args:
            update: Partial rates.
            **fields: Partial rates given as keywords, applied after ``update``.
        """
        rates = self._rates
        if update is not None:
            rates = rates.merge(update)
        if fields:
            rates = rates.merge(RateUpdate(**fields))
        self._rates = rates
        logger.debug("Updated rates", **rates.to_dict())

    def get_rates(self) -> RateSet:
        """Return the current rates (an immutable snapshot)."""
        return self._rates

    def reset_rates(self) -> None:
        """Restore the rates the calculator was created with."""
        self._rates = self._initial_rates

    def calculate_from_subtotal(
        self,
        subtotal: float,
        options: CalculationOptions | None = None,
    ) -> Result[BreakdownResult, CalculationError]:
        """Compute the breakdown for a known subtotal."""
        return compute_breakdown(subtotal, self._rates, options)

    def calculate_subtotal_from_net_algebraic(
        self,
        target_net: float,
    ) -> Result[float, CalculationError]:
        """Approximate the subtotal for a net amount with the closed formula."""
        return subtotal_from_net_algebraic(target_net, self._rates)

    def calculate_from_net_algebraic(
        self,
        target_net: float,
        options: CalculationOptions | None = None,
    ) -> Result[BreakdownResult, CalculationError]:
        """Compute the breakdown for the algebraic subtotal of a net amount."""
        rates = self._rates
        return subtotal_from_net_algebraic(target_net, rates).and_then(
            lambda subtotal: compute_breakdown(subtotal, rates, options)
        )

    def goal_seek_subtotal(
        self,
        target_net: float,
        options: CalculationOptions | None = None,
    ) -> Result[BreakdownResult, CalculationError]:
        """Find the subtotal whose rounded breakdown yields ``target_net``."""
        return goal_seek(target_net, self._rates, options, self._goal_seek_config)
