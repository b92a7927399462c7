import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Optional


@dataclass(order=True)
class TimerHandle:
    due_ms: int
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    fired: bool = field(default=False, compare=False)

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired


class Scheduler:
    """
    Cooperative timer queue driven by the frame loop.

    Nothing here sleeps: the owner calls run_due(now_ms) every frame (the
    pygame app passes pygame.time.get_ticks(), tests pass synthetic times)
    and every timer whose due time has passed fires in due order.

    While a callback runs, now_ms is that timer's due time, so timers the
    callback chains are anchored to the scheduled instant and durations do
    not drift. frame_ms is the tick passed to the current run_due(): the
    frame on which whatever the callback shows actually reaches the screen.
    """

    def __init__(self, now_ms: int = 0) -> None:
        self.now_ms: int = now_ms
        self.frame_ms: int = now_ms
        self._queue: List[TimerHandle] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        handle = TimerHandle(
            due_ms=int(round(self.now_ms + delay_ms)),
            seq=next(self._seq),
            callback=callback,
        )
        heapq.heappush(self._queue, handle)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancelled = True

    def run_due(self, now_ms: int) -> int:
        """Fire every timer due at or before now_ms; returns how many fired."""
        fired = 0
        self.frame_ms = max(self.frame_ms, now_ms)
        while self._queue and self._queue[0].due_ms <= now_ms:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now_ms = max(self.now_ms, handle.due_ms)
            handle.fired = True
            handle.callback()
            fired += 1
        self.now_ms = max(self.now_ms, now_ms)
        return fired

    def advance(self, delta_ms: int) -> int:
        return self.run_due(self.now_ms + delta_ms)

    def pending_count(self) -> int:
        return sum(1 for h in self._queue if h.pending)

    def clear(self) -> None:
        for handle in self._queue:
            handle.cancelled = True
        self._queue = []
