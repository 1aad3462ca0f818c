from datetime import datetime
from typing import Any, Dict, Optional


class BreakerConfigError(ValueError):
    pass


class CircuitOpenError(RuntimeError):
    """
    Raised by guarded calls when the breaker refuses to run them.

    `execute()` never raises this; it refuses silently and callers check `is_open()`.
    """

    def __init__(
        self,
        name: str,
        last_error: Optional[BaseException] = None,
        retry_at: Optional[datetime] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.name = name
        self.last_error = last_error
        self.retry_at = retry_at
        self.details = details or {}
        msg = f"circuit {name} is open"
        if retry_at is not None:
            msg += f" until {retry_at.isoformat()}"
        super().__init__(msg)
