"""Cancellation and deadline context threaded through blocking steps."""

from __future__ import annotations

import threading
import time


class OperationCancelled(RuntimeError):
    """Raised when a blocking step observes cancellation or deadline expiry."""


class RunContext:
    """Deadline plus cancellation flag for one invocation.

    Blocking steps (lock wait, callback wait, device-code polling) sleep with
    :meth:`sleep` instead of ``time.sleep`` so they wake up on cancellation.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.deadline = None if timeout is None else time.monotonic() + timeout
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> RunContext:
        """Context with no deadline."""
        return cls()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        """Raise OperationCancelled if cancelled or past the deadline."""
        if self.cancelled:
            raise OperationCancelled("operation cancelled")
        if self.expired():
            raise OperationCancelled("deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """Sleep up to ``seconds``, returning early and raising on cancellation."""
        self.check()
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._cancelled.wait(seconds)
        self.check()
