import contextvars
from typing import Optional

DEFAULT_BREAKER_NAME = "default"
MIN_THRESHOLD = 1

# Context variable for the caller's correlation id (request id, job id ...)
correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)
