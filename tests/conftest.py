from datetime import datetime, timezone
import pytest
from tripgate.common.circuit_breaker import CircuitBreaker
from tripgate.common.clock import ManualClock

T0 = datetime(2021, 2, 4, 23, 26, 0, tzinfo=timezone.utc)


class Recorder:
    """Action that records every ctx it was called with; fails while `error` is set."""

    def __init__(self, error: Exception = None):
        self.error = error
        self.calls = []

    def do(self, ctx):
        self.calls.append(ctx)
        if self.error is not None:
            raise self.error

    @property
    def called(self) -> int:
        return len(self.calls)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def clock():
    return ManualClock(T0)


@pytest.fixture
def breaker(clock):
    cb = CircuitBreaker(3, 3, name="test")
    cb.use_clock(clock)
    return cb


@pytest.fixture
def failing():
    return Recorder(RuntimeError("fail"))


@pytest.fixture
def passing():
    return Recorder()
