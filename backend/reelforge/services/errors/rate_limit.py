"""
Rate-limit recognition shared by the execution engine and the error aggregator.
"""

import re
from typing import Any, Optional

from ...core.exceptions import RateLimitedError

_RATE_LIMIT_RE = re.compile(r"rate limit|too many requests|429|quota exceeded", re.IGNORECASE)


def _status_of(error: Any) -> Optional[int]:
    for attr in ("status", "status_code", "statusCode"):
        value = getattr(error, attr, None)
        if value is None and isinstance(error, dict):
            value = error.get(attr)
        if value is not None:
            try:
                return int(value)
            except (TypeError, ValueError):
                continue
    response = getattr(error, "response", None)
    if response is not None:
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
    return None


def is_rate_limit_error(error: Any) -> bool:
    """True for upstream 429-class failures (by type, status field or message)."""
    if error is None:
        return False
    if isinstance(error, RateLimitedError):
        return True
    if _status_of(error) == 429:
        return True
    return bool(_RATE_LIMIT_RE.search(str(error)))


def _retry_after_field(error: Any) -> Any:
    details = getattr(error, "details", None)
    if isinstance(details, dict):
        for key in ("retry_after", "retryAfter"):
            if details.get(key) is not None:
                return details[key]

    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None) if response is not None else None
    if headers is not None:
        try:
            value = headers.get("retry-after") or headers.get("Retry-After")
        except AttributeError:
            value = None
        if value is not None:
            return value

    for attr in ("retry_after", "retryAfter"):
        value = getattr(error, attr, None)
        if value is not None:
            return value
    return None


def rate_limit_reset_delay(error: Any, default: float) -> float:
    """
    Seconds to wait before requeueing a rate-limited task.

    Upstream values below 1000 are seconds; anything else is milliseconds.
    Falls back to `default` when the error carries no usable hint.
    """
    raw = _retry_after_field(error)
    if isinstance(raw, str):
        try:
            raw = int(raw.strip())
        except ValueError:
            raw = None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw > 0:
        return float(raw) if raw < 1000 else raw / 1000.0
    return default
