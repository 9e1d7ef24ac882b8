# healthbridge/bridge/_internal/delivery_loop.py
from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple


class DelayedHandle:
    """Cancellable handle returned by DeliveryLoop.post_delayed()."""

    def __init__(self, deadline: float, fn: Callable[[], None]):
        self.deadline = deadline
        self.fn = fn
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class DeliveryLoop(threading.Thread):
    """
    Single delivery context: one thread running posted callables in FIFO order.

    Delayed posts become due in deadline order and run on the same thread,
    interleaved with immediate posts. A callable raising an exception is logged
    and the loop keeps running.
    """

    def __init__(self, *, name: str = "healthbridge-delivery", logger: Optional[logging.Logger] = None):
        super().__init__(name=name, daemon=True)
        self._log = logger or logging.getLogger(__name__)

        self._cond = threading.Condition()
        self._ready: Deque[Callable[[], None]] = deque()
        self._delayed: List[Tuple[float, int, DelayedHandle]] = []
        self._counter = itertools.count()
        self._stopping = False

    # ---------------- Posting ----------------
    def post(self, fn: Callable[[], None]) -> bool:
        """Queue fn for execution; returns False once the loop is stopping."""
        with self._cond:
            if self._stopping:
                self._log.debug("DELIVERY_POST_AFTER_STOP fn=%r", fn)
                return False
            self._ready.append(fn)
            self._cond.notify()
        return True

    def post_delayed(self, delay_s: float, fn: Callable[[], None]) -> DelayedHandle:
        handle = DelayedHandle(time.monotonic() + max(0.0, float(delay_s)), fn)
        with self._cond:
            if self._stopping:
                handle.cancel()
                return handle
            heapq.heappush(self._delayed, (handle.deadline, next(self._counter), handle))
            self._cond.notify()
        return handle

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until everything posted before this call has run."""
        if self.in_loop():
            raise RuntimeError("flush() called from the delivery thread")
        done = threading.Event()
        if not self.post(done.set):
            return False
        return done.wait(timeout)

    def in_loop(self) -> bool:
        return threading.current_thread() is self

    # ---------------- Lifecycle ----------------
    def stop(self, timeout: Optional[float] = None) -> None:
        """Run what is already queued, drop pending delayed work, join."""
        with self._cond:
            self._stopping = True
            for _, _, handle in self._delayed:
                handle.cancel()
            self._delayed.clear()
            self._cond.notify()
        if self.is_alive() and not self.in_loop():
            self.join(timeout)

    def run(self) -> None:
        while True:
            fn = self._next()
            if fn is None:
                return
            try:
                fn()
            except Exception:
                self._log.exception("DELIVERY_CALLBACK_ERROR fn=%r", fn)

    def _next(self) -> Optional[Callable[[], None]]:
        with self._cond:
            while True:
                now = time.monotonic()
                while self._delayed and self._delayed[0][0] <= now:
                    _, _, handle = heapq.heappop(self._delayed)
                    if not handle.cancelled:
                        self._ready.append(handle.fn)

                if self._ready:
                    return self._ready.popleft()
                if self._stopping:
                    return None

                wait_s = (self._delayed[0][0] - now) if self._delayed else None
                self._cond.wait(wait_s)
