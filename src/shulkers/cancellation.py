"""Cooperative cancellation for in-flight client calls.

A :class:`CancellationToken` is handed to a request by the caller. The
executor checks it before every attempt and waits on it instead of sleeping
between retries, so cancelling from another thread interrupts a backoff
wait immediately and surfaces as :class:`~shulkers.exceptions.RequestCancelled`.
"""

from __future__ import annotations

import threading
from typing import Any, Optional

from .exceptions import RequestCancelled


class CancellationToken:
    """Thread-safe cancellation token.

    Examples:
        >>> token = CancellationToken()
        >>> # from another thread
        >>> token.cancel("shutting down")
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Any = None

    def cancel(self, reason: Any = None) -> None:
        """Signal cancellation; the first reason given is kept."""
        with self._lock:
            if not self._event.is_set():
                self._reason = reason
            self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Any:
        return self._reason

    def wait(self, timeout: Optional[float]) -> bool:
        """Block up to ``timeout`` seconds; return True if cancelled meanwhile."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled(self._reason)
