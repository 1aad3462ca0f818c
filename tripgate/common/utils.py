from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

Seconds = Union[int, float, timedelta]


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_timedelta(value: Seconds) -> timedelta:
    """Accept a timedelta or a plain number of seconds."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected seconds or timedelta, got {type(value).__name__}")
    return timedelta(seconds=value)


def error_details(exc: Optional[BaseException]) -> Optional[Dict[str, Any]]:
    if exc is None:
        return None
    return {"type": type(exc).__name__, "message": str(exc)}


def isoformat_or_none(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None
