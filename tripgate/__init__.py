import logging

logger = logging.getLogger("tripgate")

from tripgate.common.circuit_breaker import Action, ActionFunc, CircuitBreaker, State  # noqa: E402
from tripgate.common.clock import Clock, ManualClock, SystemClock  # noqa: E402
from tripgate.common.custom_exceptions import BreakerConfigError, CircuitOpenError  # noqa: E402
from tripgate.common.resilience import guard_with_circuit  # noqa: E402

__all__ = [
    "Action",
    "ActionFunc",
    "BreakerConfigError",
    "CircuitBreaker",
    "CircuitOpenError",
    "Clock",
    "ManualClock",
    "State",
    "SystemClock",
    "guard_with_circuit",
    "logger",
]
