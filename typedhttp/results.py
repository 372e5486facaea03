"""Non-throwing success/failure result value."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a success carrying a value or a failure carrying an error.

    Use ``Result.ok`` and ``Result.fail`` rather than the constructor.
    """

    _value: T | None = None
    _error: BaseException | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Result[T]":
        """Create a success result."""
        return cls(_value=value)

    @classmethod
    def fail(cls, error: BaseException) -> "Result[T]":
        """Create a failure result.

        Raises:
            ValueError: If no error is given.
        """
        if error is None:
            msg = "A failure result requires an error"
            raise ValueError(msg)
        return cls(_error=error)

    @property
    def is_success(self) -> bool:
        """Whether the result is a success."""
        return self._error is None

    @property
    def is_failure(self) -> bool:
        """Whether the result is a failure."""
        return self._error is not None

    @property
    def error(self) -> BaseException | None:
        """The failure error, or None on success."""
        return self._error

    @property
    def value(self) -> T | None:
        """The success value.

        Raises:
            BaseException: The failure error when the result is a failure.
        """
        if self._error is not None:
            raise self._error
        return self._value

    def unwrap(self) -> T | None:
        """Get the value, raising the error on failure."""
        return self.value

    def map(self, fn: Callable[[T | None], U]) -> "Result[U]":
        """Transform a success value; failures pass through unchanged."""
        if self._error is not None:
            return Result(_error=self._error)
        return Result(_value=fn(self._value))

    def __repr__(self) -> str:
        if self._error is not None:
            return f"Result.fail({self._error!r})"
        return f"Result.ok({self._value!r})"
