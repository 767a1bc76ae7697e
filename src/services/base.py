from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, Literal, Optional, TypeVar

T = TypeVar("T")

Severity = Literal["information", "warning", "error"]

# same shape as textual's App.notify(message, severity=...)
Notifier = Callable[..., None]


def _discard(message: str, *, severity: Severity = "information") -> None:
    pass


def error_message(error: Exception, fallback: str) -> str:
    """The server's message for ApiError, the fallback for anything else."""
    return getattr(error, "message", None) or fallback


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    What every service operation resolves to; failures never raise past a service.
    """

    success: bool
    error: Optional[str] = None
    value: Optional[T] = None

    @classmethod
    def ok(cls, value: Any = None) -> OperationResult:
        return cls(True, None, value)

    @classmethod
    def fail(cls, error: str) -> OperationResult:
        return cls(False, error, None)

    def __bool__(self) -> bool:
        return self.success


class Service:
    """
    Common plumbing: a user facing notifier and a busy flag that stays set
    while any operation of the service is in flight.
    """

    def __init__(self, notify: Optional[Notifier] = None) -> None:
        self._notify: Notifier = notify or _discard
        self._pending = 0

    @property
    def busy(self) -> bool:
        return self._pending > 0

    @contextmanager
    def _track(self) -> Iterator[None]:
        self._pending += 1
        try:
            yield
        finally:
            self._pending -= 1

    def _info(self, message: str) -> None:
        self._notify(message, severity="information")

    def _error(self, message: str) -> None:
        self._notify(message, severity="error")
