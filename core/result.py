"""
Result pattern for explicit error handling.

Engine operations return either a Success carrying the computed value or a
Failure carrying a typed error, so callers must branch on the outcome
instead of catching exceptions or matching message text.

Example:
    >>> def invert(net: float, denominator: float) -> Result[float, str]:
    ...     if abs(denominator) < 1e-6:
    ...         return Failure("denominator too small")
    ...     return Success(net / denominator)
    ...
    >>> result = invert(9280.0, 0.95)
    >>> if result.is_success():
    ...     print(f"Subtotal: {result.unwrap():.2f}")
    ... else:
    ...     print(f"Error: {result.error}")
    Subtotal: 9768.42
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Never

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class Success[T]:
    """
    A successful outcome.

    Attributes:
        value: The computed value.
    """

    value: T

    def is_success(self) -> bool:
        """Return True."""
        return True

    def is_failure(self) -> bool:
        """Return False."""
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, _default: T) -> T:
        """Return the contained value, ignoring the default."""
        return self.value

    def map[U](self, func: Callable[[T], U]) -> Success[U]:
        """
        Transform the contained value.

        Args:
            func: Function applied to the value.

        Returns:
            New Success holding the transformed value.
        """
        return Success(func(self.value))

    def and_then[U, E](self, func: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """
        Chain another fallible step onto this value.

        Args:
            func: Step receiving the value and returning a Result.

        Returns:
            Whatever the step returns.
        """
        return func(self.value)

    def map_error[E, U](self, _func: Callable[[E], U]) -> Success[T]:
        """Return self; there is no error to map."""
        return self


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """
    A failed outcome.

    Attributes:
        error: The error describing why the operation failed.
    """

    error: E

    def is_success(self) -> bool:
        """Return False."""
        return False

    def is_failure(self) -> bool:
        """Return True."""
        return True

    def unwrap(self) -> Never:
        """
        Refuse to produce a value.

        Raises:
            ValueError: Always, a Failure has no value.
        """
        raise ValueError(f"Cannot unwrap Failure: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        """Return the provided default."""
        return default

    def map[T, U](self, _func: Callable[[T], U]) -> Failure[E]:
        """Return self; there is no value to map."""
        return self

    def and_then[T, U](self, _func: Callable[[T], Result[U, E]]) -> Failure[E]:
        """Return self; later steps are skipped after a failure."""
        return self

    def map_error[U](self, func: Callable[[E], U]) -> Failure[U]:
        """
        Transform the contained error.

        Args:
            func: Function applied to the error.

        Returns:
            New Failure holding the transformed error.
        """
        return Failure(func(self.error))


type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Wrap a value in a Success."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Wrap an error in a Failure."""
    return Failure(error)
