from __future__ import annotations

import heapq
import itertools
import time
from typing import Any, Callable, List, Optional, Tuple


class ManualClock:
    """Clock that only moves when told to. Used by tests and replays."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        self._now += float(seconds)
        return self._now


class Timer:
    """Handle for a pending callback. Cancelling is idempotent."""

    __slots__ = ("due", "callback", "args", "cancelled", "fired")

    def __init__(self, due: float, callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
        self.due = due
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Single-threaded timer queue.

    Nothing fires on its own: the owner calls `run_due()` (from an input handler, a
    request or a polling loop) and every timer whose due time has passed runs in due order.
    While a callback runs, `now()` reports that timer's due time, so timers re-armed from a
    callback keep a steady cadence even when the clock jumped several periods at once.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._queue: List[Tuple[float, int, Timer]] = []
        self._seq = itertools.count()
        self._dispatch_time: Optional[float] = None

    def now(self) -> float:
        if self._dispatch_time is not None:
            return self._dispatch_time
        return self._clock()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Timer:
        timer = Timer(self.now() + max(0.0, float(delay)), callback, args)
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))
        return timer

    def next_due(self) -> Optional[float]:
        while self._queue and not self._queue[0][2].pending:
            heapq.heappop(self._queue)
        return self._queue[0][0] if self._queue else None

    def run_due(self) -> int:
        """Fires every timer due at the current clock time. Returns how many fired."""
        limit = self._clock()
        fired = 0
        while self._queue and self._queue[0][0] <= limit:
            due, _, timer = heapq.heappop(self._queue)
            if not timer.pending:
                continue
            timer.fired = True
            self._dispatch_time = due
            try:
                timer.callback(*timer.args)
            finally:
                self._dispatch_time = None
            fired += 1
        return fired

    def cancel_all(self) -> None:
        for _, _, timer in self._queue:
            timer.cancel()
        self._queue.clear()
