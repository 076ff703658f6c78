from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from ..core.exceptions import OperationCancelled


class Deadline:
    """Caller-supplied time budget and cancellation flag.

    Checked between repository pages; never in the middle of a write.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._monotonic = monotonic
        self._expires_at = monotonic() + timeout_seconds if timeout_seconds is not None else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def expired(self) -> bool:
        return self._expires_at is not None and self._monotonic() >= self._expires_at

    def check(self, operation: str = "operation") -> None:
        if self.cancelled:
            raise OperationCancelled(f"{operation} was cancelled")
        if self.expired():
            raise OperationCancelled(f"{operation} exceeded its deadline")


def check_deadline(deadline: Optional[Deadline], operation: str) -> None:
    if deadline is not None:
        deadline.check(operation)
