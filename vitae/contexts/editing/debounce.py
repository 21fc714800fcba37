"""
Deferred calls for the editor: debounced autosave, notification expiry, reload.

Anything that "happens later" goes through a Scheduler so that the timing source
can be swapped (a worker thread in a live session, a manual clock in tests).
"""

import heapq
import itertools
import threading
import time
from typing import Callable, ContextManager, List, Optional, Protocol, Tuple

from vitae.contexts.editing.logger import _log_debug, _log_error


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...


class _TimerHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ThreadingScheduler:
    """
    Scheduler that runs every callback on one daemon worker thread.

    Callbacks never overlap each other. When a lock is given, each callback runs
    while holding it, so callers that take the same lock never see a callback
    halfway through a document mutation. A callback that raises is logged and the
    worker keeps going.

    Example:
        >>> lock = threading.RLock()
        >>> scheduler = ThreadingScheduler(lock=lock)
        >>> scheduler.call_later(1.0, persistence.save)
    """

    def __init__(self, lock: Optional[ContextManager] = None):
        self.lock = lock
        self._queue: List[Tuple[float, int, _TimerHandle, Callable[[], None]]] = []
        self._counter = itertools.count()
        self._condition = threading.Condition()
        self._thread: Optional[threading.Thread] = None

    def call_later(self, delay: float, callback: Callable[[], None]) -> _TimerHandle:
        handle = _TimerHandle()
        with self._condition:
            heapq.heappush(
                self._queue, (time.monotonic() + delay, next(self._counter), handle, callback)
            )
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._run, name="vitae-scheduler", daemon=True
                )
                self._thread.start()
            self._condition.notify()
        return handle

    def _next_due(self) -> Callable[[], None]:
        with self._condition:
            while True:
                if not self._queue:
                    self._condition.wait()
                    continue
                due, _, handle, callback = self._queue[0]
                if handle.cancelled:
                    heapq.heappop(self._queue)
                    continue
                remaining = due - time.monotonic()
                if remaining > 0:
                    self._condition.wait(remaining)
                    continue
                heapq.heappop(self._queue)
                return callback

    def _run(self) -> None:
        while True:
            callback = self._next_due()
            try:
                if self.lock is not None:
                    with self.lock:
                        callback()
                else:
                    callback()
            except Exception as e:
                _log_error(f"Scheduled call failed: {type(e).__name__}: {e}")


class Debouncer:
    """
    Run a callback once after a quiet period with no further triggers.

    Every trigger() restarts the quiet period, so a burst of triggers within the
    window collapses into a single call.

    Example:
        >>> debouncer = Debouncer(1.0, persistence.save, ThreadingScheduler())
        >>> debouncer.trigger()  # persistence.save runs ~1s later unless retriggered
    """

    def __init__(self, delay: float, callback: Callable[[], None], scheduler: Scheduler):
        self.delay = delay
        self.callback = callback
        self.scheduler = scheduler
        self._pending: Optional[ScheduledCall] = None
        # Bumped on every trigger/cancel/flush; a timer only fires for its own generation
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def trigger(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._generation += 1
            generation = self._generation
            self._pending = self.scheduler.call_later(
                self.delay, lambda: self._fire(generation)
            )

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def flush(self) -> None:
        """Run a pending call now instead of waiting for the quiet period."""
        with self._lock:
            self._generation += 1
            pending, self._pending = self._pending, None
        if pending is not None:
            pending.cancel()
            self.callback()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                _log_debug("Skipping superseded debounced call")
                return
            self._pending = None
        self.callback()
