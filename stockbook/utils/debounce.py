"""Keyed debouncing of repeated calls (e.g. search-box keystrokes)."""

import threading
from typing import Any, Callable, Dict


class Debouncer:
    """
    Delay calls until input has been quiet for ``delay`` seconds.

    Calls are grouped by key. A new call for a key cancels the pending one,
    so at most one delayed call per key survives.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def call(self, key: str, func: Callable[..., Any], *args, **kwargs) -> None:
        """Schedule ``func`` for ``key``, superseding any pending call."""
        with self._lock:
            pending = self._timers.pop(key, None)
            if pending is not None:
                pending.cancel()

            timer = threading.Timer(self.delay, self._fire, args=(key, func, args, kwargs))
            timer.daemon = True
            self._timers[key] = timer
            timer.start()

    def _fire(self, key: str, func: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        with self._lock:
            current = self._timers.get(key)
            if current is None or current is not threading.current_thread():
                return
            del self._timers[key]
        func(*args, **kwargs)

    def pending(self, key: str) -> bool:
        with self._lock:
            return key in self._timers

    def cancel(self, key: str) -> bool:
        """Cancel the pending call for ``key``. Returns True if one was pending."""
        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
