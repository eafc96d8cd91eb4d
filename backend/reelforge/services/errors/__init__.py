"""
Error aggregation, critical-failure recovery and rate-limit recognition.
"""

from .aggregator import ErrorAggregator
from .rate_limit import is_rate_limit_error, rate_limit_reset_delay
from .recovery import (
    CRITICAL_PHASES,
    RECOVERY_OPTIONS,
    CriticalFailureHandler,
    OnCriticalFailure,
    is_critical_phase,
)

__all__ = [
    "ErrorAggregator",
    "is_rate_limit_error",
    "rate_limit_reset_delay",
    "CRITICAL_PHASES",
    "RECOVERY_OPTIONS",
    "CriticalFailureHandler",
    "OnCriticalFailure",
    "is_critical_phase",
]
