"""Success/failure values for callers that prefer not to handle exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Re-raise the captured error."""
        raise self.error

    def unwrap_or(self, default: Any) -> Any:
        return default


Result = Union[Ok[T], Err]


def capture(func: Callable[..., T], *args: Any, **kwargs: Any) -> Result[T]:
    """Call ``func`` and wrap its return value or raised exception."""
    try:
        return Ok(func(*args, **kwargs))
    except Exception as e:
        return Err(e)


__all__ = ["Err", "Ok", "Result", "capture"]
