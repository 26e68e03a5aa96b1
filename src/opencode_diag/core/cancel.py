"""Cooperative cancellation for in-flight diagnostic passes."""

import logging
import threading
from typing import Callable, List

from .errors import ProbeCancelled

logger = logging.getLogger(__name__)


class CancelToken:
    """Cancellation flag shared by every probe invocation of one pass.

    Probes call raise_if_cancelled() at their I/O suspension points. The
    orchestrator registers on_cancel() callbacks to wake its waiters.
    """

    def __init__(self):
        self._event = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for cb in callbacks:
            try:
                cb()
            except Exception as e:
                logger.error(f"Cancel callback error: {e}")

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register a callback; runs immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ProbeCancelled("pass cancelled")

    def wait(self, timeout: float) -> bool:
        """Sleep up to timeout; return True if cancelled meanwhile."""
        return self._event.wait(timeout)
