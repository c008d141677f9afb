"""
Result Type

Explicit success-or-failure outcome returned by every service call.
A failure carries exactly one descriptive message; a success carries a value.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Iterable, Any

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a use case."""
    is_success: bool
    _value: Optional[T] = None
    _error: Optional[str] = None

    def __post_init__(self):
        if self.is_success and self._error:
            raise ValueError("A successful result cannot contain an error")
        if not self.is_success and not self._error:
            raise ValueError("A failing result needs to contain an error message")

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def value(self) -> T:
        if not self.is_success:
            raise ValueError("Cannot retrieve value from a failed result")
        return self._value

    @property
    def error(self) -> str:
        if self.is_success:
            raise ValueError("Cannot retrieve error from a successful result")
        return self._error

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(True, value, None)

    @classmethod
    def fail(cls, error: str) -> "Result[T]":
        return cls(False, None, error)

    @staticmethod
    def combine(results: Iterable["Result[Any]"]) -> "Result[Any]":
        """Return the first failure, or an empty success if none failed."""
        for result in results:
            if result.is_failure:
                return result
        return Result.ok()
