"""
Parsing Module

Provides utilities for parsing structured output from text models.

Usage:
    from reelforge.services.infrastructure.parsing import coerce_structured
"""

from .json_parser import (
    coerce_structured,
    extract_largest_balanced_json,
    fix_json_escapes,
    parse_json_array_response,
    parse_json_response,
    strip_markdown_fences,
)

__all__ = [
    "coerce_structured",
    "extract_largest_balanced_json",
    "fix_json_escapes",
    "parse_json_array_response",
    "parse_json_response",
    "strip_markdown_fences",
]
