"""
Format registry and router.
"""

from .registry import (
    FormatRegistry,
    FormatComplianceResult,
    FormatViolation,
    validate_format_compliance,
    get_format_registry,
)
from .router import FormatPipeline, FormatRouter, RouterValidation

__all__ = [
    "FormatRegistry",
    "FormatComplianceResult",
    "FormatViolation",
    "validate_format_compliance",
    "get_format_registry",
    "FormatPipeline",
    "FormatRouter",
    "RouterValidation",
]
