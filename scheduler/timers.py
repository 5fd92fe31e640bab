# scheduler/timers.py
"""
Timers owned by a view.

A `ScopedTimers` hands out one-shot and repeating timers and cancels all of
them on `close()`. After close every callback becomes a no-op, including
ones whose timer thread already fired but has not yet run the callback.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, owner: "ScopedTimers", interval: float, fn: Callable[[], Any], repeat: bool = False):
        self._owner = owner
        self._interval = interval
        self._fn = fn
        self._repeat = repeat
        self._cancelled = False
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> "TimerHandle":
        with self._lock:
            if self._cancelled:
                return self
            self._timer = threading.Timer(self._interval, self._fire)
            self._timer.daemon = True
            self._timer.start()
        return self

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        if self._cancelled or self._owner.closed:
            return
        try:
            self._fn()
        except Exception:
            logger.exception("timer callback failed")
        if self._repeat:
            self.start()
        else:
            self._owner._forget(self)


class ScopedTimers:
    def __init__(self):
        self._handles: List[TimerHandle] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._handles)

    def call_later(self, delay: float, fn: Callable[[], Any]) -> Optional[TimerHandle]:
        return self._add(TimerHandle(self, delay, fn))

    def call_every(self, interval: float, fn: Callable[[], Any]) -> Optional[TimerHandle]:
        return self._add(TimerHandle(self, interval, fn, repeat=True))

    def _add(self, handle: TimerHandle) -> Optional[TimerHandle]:
        with self._lock:
            if self._closed:
                return None
            self._handles.append(handle)
        return handle.start()

    def _forget(self, handle: TimerHandle) -> None:
        with self._lock:
            if handle in self._handles:
                self._handles.remove(handle)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            handles, self._handles = self._handles, []
        for h in handles:
            h.cancel()
