from datetime import datetime, timedelta
from typing import Optional, Protocol, runtime_checkable

from tripgate.common.utils import Seconds, now, to_timedelta


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock, timezone-aware UTC."""

    def now(self) -> datetime:
        return now()

    def __repr__(self) -> str:
        return "SystemClock()"


class ManualClock:
    """
    Clock that only moves when told to.

    Usage:
      clock = ManualClock(datetime(2021, 2, 4, 23, 26, tzinfo=timezone.utc))
      breaker.use_clock(clock)
      clock.fast_forward(1)   # seconds or timedelta
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start if start is not None else now()

    def now(self) -> datetime:
        return self._now

    def set(self, ts: datetime) -> None:
        self._now = ts

    def fast_forward(self, delta: Seconds) -> datetime:
        step = to_timedelta(delta)
        if step < timedelta(0):
            raise ValueError("a manual clock cannot move backwards")
        self._now = self._now + step
        return self._now

    def __repr__(self) -> str:
        return f"ManualClock({self._now.isoformat()})"
