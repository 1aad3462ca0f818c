import inspect
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union

from tripgate.common.clock import Clock, SystemClock
from tripgate.common.constants import DEFAULT_BREAKER_NAME, MIN_THRESHOLD
from tripgate.common.custom_exceptions import BreakerConfigError
from tripgate.common.logging_setup import get_logger
from tripgate.common.utils import Seconds, error_details, isoformat_or_none, to_timedelta
from tripgate.config.settings import Settings, config_settings

logger = get_logger("tripgate.circuit")


class State(str, Enum):
    CLOSED = "CLOSED"
    HALF_OPEN = "HALF_OPEN"
    OPEN = "OPEN"


class Action(Protocol):
    def do(self, ctx: Any) -> Any: ...


class ActionFunc:
    """Adapts a plain `fn(ctx)` callable to the Action protocol."""

    def __init__(self, fn: Callable[[Any], Any]):
        if not callable(fn):
            raise TypeError(f"ActionFunc needs a callable, got {type(fn).__name__}")
        self._fn = fn

    def do(self, ctx: Any) -> Any:
        return self._fn(ctx)

    __call__ = do

    def __repr__(self) -> str:
        return f"ActionFunc({getattr(self._fn, '__qualname__', self._fn)!r})"


ActionLike = Union[Action, Callable[[Any], Any]]


def reject_awaitable(result: Any, hint: str) -> None:
    """Close an un-awaited coroutine and raise; sync call paths cannot run it."""
    close = getattr(result, "close", None)
    if callable(close):
        close()
    raise TypeError(f"action returned an awaitable; {hint}")


def _resolve(action: ActionLike) -> Callable[[Any], Any]:
    do = getattr(action, "do", None)
    if callable(do):
        return do
    if callable(action):
        return action
    raise TypeError(f"action must be callable or expose do(ctx), got {type(action).__name__}")


class CircuitBreaker:
    """
    In-memory circuit breaker for a single dependency.

    Usage:
      cb = CircuitBreaker(3, timedelta(seconds=30), name="payments")
      cb.execute(ctx, ActionFunc(lambda ctx: client.charge(ctx)))
      if cb.is_open(): ...

    Behavior:
      - CLOSED: actions run; failures increment error_count.
      - OPEN: execute() returns without running the action until open_duration has
        passed since the trip.
      - HALF_OPEN: entered on the first call after the gate elapses; that call runs as a
        probe. A failing probe counts towards threshold again; a successful probe closes
        the circuit unless close_on_probe_success=False.

    An action fails by raising an Exception. execute() records it and never re-raises.
    No locking: share an instance across threads only behind your own lock.
    """

    def __init__(
        self,
        threshold: int,
        open_duration: Seconds,
        *,
        name: str = DEFAULT_BREAKER_NAME,
        clock: Optional[Clock] = None,
        close_on_probe_success: bool = True,
    ):
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise BreakerConfigError(f"threshold must be an int, got {threshold!r}")
        if threshold < MIN_THRESHOLD:
            logger.warning(
                "circuit %s: threshold %d clamped to %d; it opens on the first failure",
                name, threshold, MIN_THRESHOLD,
            )
            threshold = MIN_THRESHOLD
        try:
            duration = to_timedelta(open_duration)
        except TypeError as exc:
            raise BreakerConfigError(str(exc)) from exc
        if duration < timedelta(0):
            raise BreakerConfigError(f"open_duration must not be negative, got {duration}")

        self.name = name
        self._threshold = threshold
        self._open_duration = duration
        self._close_on_probe_success = bool(close_on_probe_success)
        self._clock: Clock = clock or SystemClock()

        # state
        self._state = State.CLOSED
        self._error_count = 0
        self._last_state_changed: Optional[datetime] = None
        self._last_error: Optional[BaseException] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        name: str = DEFAULT_BREAKER_NAME,
        clock: Optional[Clock] = None,
    ) -> "CircuitBreaker":
        settings = settings or config_settings
        return cls(
            settings.BREAKER_THRESHOLD,
            settings.BREAKER_OPEN_DURATION_SECONDS,
            name=name,
            clock=clock,
            close_on_probe_success=settings.BREAKER_CLOSE_ON_PROBE_SUCCESS,
        )

    @property
    def state(self) -> State:
        return self._state

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def open_duration(self) -> timedelta:
        return self._open_duration

    @property
    def close_on_probe_success(self) -> bool:
        return self._close_on_probe_success

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def last_state_changed(self) -> Optional[datetime]:
        return self._last_state_changed

    @property
    def last_error(self) -> Optional[BaseException]:
        return self._last_error

    @property
    def retry_at(self) -> Optional[datetime]:
        """Earliest time a probe is admitted, None while closed."""
        if self._state == State.CLOSED or self._last_state_changed is None:
            return None
        return self._last_state_changed + self._open_duration

    def is_open(self) -> bool:
        return self._state != State.CLOSED

    def use_clock(self, clock: Clock) -> None:
        # meant for test setup, before the breaker sees traffic
        self._clock = clock

    def now(self) -> datetime:
        return self._clock.now()

    def before_call(self, now: datetime) -> bool:
        """Gate check. Moves OPEN -> HALF_OPEN once the gate has elapsed."""
        if self._state == State.CLOSED:
            return True

        retry_at = self.retry_at
        if retry_at is not None and now < retry_at:
            logger.debug(
                "circuit %s refused call; retry at %s", self.name, retry_at.isoformat(),
                extra={"breaker": self.name, "state": self._state.value},
            )
            return False

        if self._state == State.OPEN:
            logger.info(
                "circuit %s half-open; admitting probe", self.name,
                extra={"breaker": self.name, "state": State.HALF_OPEN.value},
            )
        self._state = State.HALF_OPEN
        return True

    def record_success(self) -> None:
        if self._state == State.HALF_OPEN and self._close_on_probe_success:
            self._state = State.CLOSED
            self._error_count = 0
            logger.info(
                "circuit %s closed after successful probe", self.name,
                extra={"breaker": self.name, "state": State.CLOSED.value},
            )

    def record_failure(self, exc: BaseException, now: datetime) -> None:
        self._error_count += 1

        if self._error_count >= self._threshold:
            self._state = State.OPEN
            self._last_state_changed = now
            self._last_error = exc
            self._error_count = 0
            logger.warning(
                "circuit %s opened: %s", self.name, exc,
                extra={
                    "breaker": self.name,
                    "state": State.OPEN.value,
                    "last_error": repr(exc),
                    "retry_at": isoformat_or_none(self.retry_at),
                },
            )
            return

        logger.debug(
            "circuit %s failure %d/%d: %s", self.name, self._error_count, self._threshold, exc,
            extra={"breaker": self.name, "state": self._state.value},
        )

    def execute(self, ctx: Any, action: ActionLike) -> None:
        fn = _resolve(action)
        now = self._clock.now()

        if not self.before_call(now):
            return

        try:
            result = fn(ctx)
        except Exception as exc:
            self.record_failure(exc, now)
            return

        if inspect.isawaitable(result):
            reject_awaitable(result, "use aexecute() for async actions")

        self.record_success()

    async def aexecute(self, ctx: Any, action: Union[ActionLike, Callable[[Any], Awaitable[Any]]]) -> None:
        fn = _resolve(action)
        now = self._clock.now()

        if not self.before_call(now):
            return

        try:
            result = fn(ctx)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            self.record_failure(exc, now)
            return

        self.record_success()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self._state.value,
            "error_count": self._error_count,
            "threshold": self._threshold,
            "open_duration_seconds": self._open_duration.total_seconds(),
            "last_state_changed": isoformat_or_none(self._last_state_changed),
            "retry_at": isoformat_or_none(self.retry_at),
            "last_error": error_details(self._last_error),
        }

    def __repr__(self) -> str:
        return (
            f"CircuitBreaker(name={self.name!r}, state={self._state.value}, "
            f"error_count={self._error_count}, threshold={self._threshold})"
        )
