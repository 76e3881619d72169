"""Value-returning outcome type shared by the connector and layout model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import FileMakerError

T = TypeVar("T")

ERROR_MODE_RETURN = "default"


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Either a value or a `FileMakerError`, never both."""

    value: T | None = None
    error: FileMakerError | None = None

    @classmethod
    def ok(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def fail(cls, error: FileMakerError) -> Result[T]:
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def deliver(result: Result[T], mode: str) -> T | FileMakerError:
    """Unwrap a result according to the error-handling mode.

    With mode ``"default"`` a failure is handed back as the error object;
    any other mode raises it.
    """

    if result.error is None:
        return result.value  # type: ignore[return-value]
    if mode == ERROR_MODE_RETURN:
        return result.error
    raise result.error


def is_error(value: object) -> bool:
    """Tell whether a delivered value is an error object."""

    return isinstance(value, FileMakerError)


__all__ = ["ERROR_MODE_RETURN", "Result", "deliver", "is_error"]
