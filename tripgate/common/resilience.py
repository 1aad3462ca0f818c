import functools
import inspect
from typing import Any, Callable, TypeVar

from tripgate.common.circuit_breaker import CircuitBreaker, reject_awaitable
from tripgate.common.custom_exceptions import CircuitOpenError

F = TypeVar("F", bound=Callable[..., Any])


def _refuse(breaker: CircuitBreaker) -> CircuitOpenError:
    return CircuitOpenError(
        breaker.name,
        last_error=breaker.last_error,
        retry_at=breaker.retry_at,
        details=breaker.snapshot(),
    )


def guard_with_circuit(breaker: CircuitBreaker) -> Callable[[F], F]:
    """
    Run every call of the decorated function through `breaker`.

    Unlike execute(), a refused call raises CircuitOpenError and the function's own
    exceptions are re-raised after being counted. Works on sync and async functions.

      payments_circuit = CircuitBreaker(5, 30, name="payments")

      @guard_with_circuit(payments_circuit)
      async def charge(order_id): ...
    """

    def deco(fn: F) -> F:
        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def async_wrapper(*args, **kwargs):
                now = breaker.now()
                if not breaker.before_call(now):
                    raise _refuse(breaker)
                try:
                    result = await fn(*args, **kwargs)
                except Exception as exc:
                    breaker.record_failure(exc, now)
                    raise
                breaker.record_success()
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            now = breaker.now()
            if not breaker.before_call(now):
                raise _refuse(breaker)
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                breaker.record_failure(exc, now)
                raise
            if inspect.isawaitable(result):
                reject_awaitable(result, "decorate an async def function to guard async calls")
            breaker.record_success()
            return result

        return wrapper  # type: ignore[return-value]

    return deco
