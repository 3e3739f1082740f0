"""
Game Clock
==========
Monotonic millisecond clock with delayed and repeating callbacks.

Everything long-running in an encounter (spawn timers, wave bursts,
announcements, boss death sequences, van arming) is a callback scheduled
here instead of a blocking wait. Handles are cancellable, and a
`TimerGroup` lets an owner cancel everything it scheduled in one call
when it is torn down.
"""

from typing import Callable, List

from loguru import logger


class TimerHandle:
    """
    One scheduled callback.

    `repeat` follows the usual game-engine convention: the callback fires
    `repeat + 1` times, or forever when `repeat` is -1. Changing `delay`
    on a live handle reschedules the current period from its start.
    """

    def __init__(self, clock: 'GameClock', delay: float,
                 callback: Callable[[], None], repeat: int, seq: int):
        self._clock = clock
        self._delay = float(delay)
        self.callback = callback
        self.repeats_left = repeat
        self.seq = seq
        self.period_start = clock.now
        self.next_due = clock.now + self._delay
        self.fire_count = 0
        self.cancelled = False
        self.finished = False

    @property
    def delay(self) -> float:
        return self._delay

    @delay.setter
    def delay(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"timer delay must be positive, got {value}")
        self._delay = float(value)
        self.next_due = self.period_start + self._delay

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.finished

    @property
    def remaining(self) -> float:
        return max(0.0, self.next_due - self._clock.now)

    def cancel(self) -> None:
        self.cancelled = True


class GameClock:
    """Simulation time in ms, advanced explicitly once per tick."""

    def __init__(self, start: float = 0.0):
        self.now: float = float(start)
        self._timers: List[TimerHandle] = []
        self._seq = 0

    def delayed_call(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.add_event(delay, callback)

    def add_event(self, delay: float, callback: Callable[[], None],
                  loop: bool = False, repeat: int = 0) -> TimerHandle:
        if delay <= 0:
            raise ValueError(f"timer delay must be positive, got {delay}")
        self._seq += 1
        handle = TimerHandle(self, delay, callback, -1 if loop else repeat, self._seq)
        self._timers.append(handle)
        return handle

    def advance(self, delta: float) -> int:
        """
        Move time forward by `delta` ms, firing every timer that comes due
        in due-time order. Returns the number of callbacks fired.
        """
        target = self.now + max(0.0, delta)
        fired = 0

        while True:
            due = [t for t in self._timers if t.active and t.next_due <= target]
            if not due:
                break
            handle = min(due, key=lambda t: (t.next_due, t.seq))
            self.now = max(self.now, handle.next_due)

            handle.fire_count += 1
            if handle.repeats_left == 0:
                handle.finished = True
            else:
                if handle.repeats_left > 0:
                    handle.repeats_left -= 1
                handle.period_start = handle.next_due
                handle.next_due = handle.period_start + handle.delay

            handle.callback()
            fired += 1

        self.now = target
        self._timers = [t for t in self._timers if t.active]
        return fired

    def pending(self) -> int:
        return sum(1 for t in self._timers if t.active)

    def cancel_all(self) -> int:
        """Cancel every pending timer. Returns how many were live."""
        live = [t for t in self._timers if t.active]
        for handle in live:
            handle.cancel()
        self._timers.clear()
        return len(live)


class TimerGroup:
    """
    Owner-scoped set of timer handles.

    A manager or actor schedules through its group and calls `cancel_all`
    on teardown; nothing it scheduled can fire afterwards. Scheduling on a
    closed group hands back an already-cancelled handle.
    """

    def __init__(self, clock: GameClock, owner: str = ''):
        self.clock = clock
        self.owner = owner
        self.closed = False
        self._handles: List[TimerHandle] = []

    def delayed_call(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.add_event(delay, callback)

    def add_event(self, delay: float, callback: Callable[[], None],
                  loop: bool = False, repeat: int = 0) -> TimerHandle:
        handle = self.clock.add_event(delay, callback, loop=loop, repeat=repeat)
        if self.closed:
            logger.trace("timer scheduled on closed group {}", self.owner)
            handle.cancel()
            return handle
        self._handles = [h for h in self._handles if h.active]
        self._handles.append(handle)
        return handle

    def cancel_all(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        self.closed = True

    def __len__(self) -> int:
        return sum(1 for h in self._handles if h.active)
