import time
from typing import Any, Optional


class Timer:
    def __init__(self) -> None:
        self.start_time: Optional[float] = None
        self.elapsed_time: float = 0.0
        self.running: bool = False
        self._clock = time.perf_counter  # High-resolution monotonic clock

    def start(self) -> None:
        if not self.running:
            self.start_time = self._clock()
            self.running = True

    def stop(self) -> None:
        if self.running:
            assert self.start_time is not None
            self.elapsed_time += self._clock() - self.start_time
            self.start_time = None
            self.running = False

    def get_elapsed_time(self) -> float:
        if self.running:
            assert self.start_time is not None
            return self.elapsed_time + (self._clock() - self.start_time)
        return self.elapsed_time

    def reset(self) -> None:
        self.start_time = None
        self.elapsed_time = 0.0
        self.running = False

    def is_running(self) -> bool:
        return self.running

    def __call__(self) -> float:
        """Shortcut for get_elapsed_time()."""
        return self.get_elapsed_time()

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


class Cadence:
    """
    Converts wall-clock time into a whole number of due events at a fixed rate.

    The host loop asks `due()` once per frame and runs that many instructions
    (or timer ticks); fractional remainders carry over to the next frame.
    `max_burst` caps catch-up after a stall (window drag, breakpoint, ...).
    """

    def __init__(self, rate_hz: float, max_burst: Optional[int] = None) -> None:
        if rate_hz <= 0:
            raise ValueError("rate_hz must be positive")
        self.rate_hz: float = float(rate_hz)
        self.max_burst: Optional[int] = max_burst
        self._timer: Timer = Timer()
        self._consumed: float = 0.0

    def start(self) -> None:
        self._timer.reset()
        self._consumed = 0.0
        self._timer.start()

    def due(self) -> int:
        owed = self._timer.get_elapsed_time() * self.rate_hz - self._consumed
        count = int(owed)
        if self.max_burst is not None and count > self.max_burst:
            # drop the backlog instead of fast-forwarding through it
            self._consumed += owed - self.max_burst
            count = self.max_burst
        self._consumed += count
        return count
