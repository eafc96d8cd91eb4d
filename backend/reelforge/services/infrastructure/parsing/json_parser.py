"""
JSON parsing utilities for structured text-model output.

Text-model adapters are expected to return parsed objects, but many real
providers hand back raw text: fenced in markdown, carrying invalid escape
sequences or wrapped in prose. `coerce_structured` accepts either shape and
always yields a dict (or list) the pipelines can read.
"""

import json
import re
from typing import Any, Dict, List, Optional, Union

# A valid escape (group 1) or a lone backslash
_ESCAPE_RE = re.compile(r'\\(["\\/bfnrt]|u[0-9a-fA-F]{4})|\\')


def strip_markdown_fences(text: str) -> str:
    """Drop ``` fence lines while keeping their content."""
    text = text.strip()
    if text.startswith("```"):
        lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()
    return text


def extract_largest_balanced_json(text: str, expect_array: bool = False) -> Optional[str]:
    """Extract the largest balanced JSON object/array from text.

    Scans for balanced braces/brackets while respecting string literals and escapes.

    Args:
        text: Source text potentially containing JSON.
        expect_array: If True, only return a JSON array (starts with '[').

    Returns:
        The largest balanced JSON substring, or None if not found.
    """
    if not text:
        return None

    in_string = False
    escape = False
    stack: List[str] = []
    start_idx: Optional[int] = None
    best: Optional[str] = None

    for i, ch in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == "\"":
                in_string = False
            continue

        if ch == "\"":
            in_string = True
            continue

        if ch in "{[":
            if not stack:
                start_idx = i
            stack.append(ch)
            continue

        if ch in "}]" and stack:
            open_ch = stack[-1]
            if (open_ch == "{" and ch == "}") or (open_ch == "[" and ch == "]"):
                stack.pop()
                if not stack and start_idx is not None:
                    candidate = text[start_idx:i + 1]
                    start_idx = None
                    if expect_array and not candidate.startswith("["):
                        continue
                    if best is None or len(candidate) > len(best):
                        best = candidate
            else:
                # Mismatched closing; reset state.
                stack.clear()
                start_idx = None

    return best


def fix_json_escapes(text: str) -> str:
    """Escape lone backslashes while preserving valid JSON escapes."""
    return _ESCAPE_RE.sub(lambda m: m.group(0) if m.group(1) else "\\\\", text)


def _loads(candidate: str) -> Optional[Any]:
    for attempt in (candidate, fix_json_escapes(candidate)):
        try:
            return json.loads(attempt)
        except json.JSONDecodeError:
            continue
    return None


def parse_json_response(text: str, default: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Parse a JSON object from model text with error recovery.

    Handles markdown fences, invalid escape sequences and JSON embedded in
    surrounding prose.

    Args:
        text: Text potentially containing JSON
        default: Value returned when nothing parses

    Returns:
        Parsed JSON dict or default if parsing fails
    """
    if default is None:
        default = {}
    if not text:
        return default

    text = strip_markdown_fences(text)
    result = _loads(text)
    if isinstance(result, dict):
        return result

    candidate = extract_largest_balanced_json(text)
    if candidate:
        result = _loads(candidate)
        if isinstance(result, dict):
            return result
    return default


def parse_json_array_response(text: str, default: Optional[List[Any]] = None) -> List[Any]:
    """Parse a JSON array from model text; same recovery as parse_json_response."""
    if default is None:
        default = []
    if not text:
        return default

    text = strip_markdown_fences(text)
    result = _loads(text)
    if isinstance(result, list):
        return result

    candidate = extract_largest_balanced_json(text, expect_array=True)
    if candidate:
        result = _loads(candidate)
        if isinstance(result, list):
            return result
    return default


def coerce_structured(output: Any) -> Union[Dict[str, Any], List[Any]]:
    """Normalize a text-model response into a dict or list.

    Parsed objects pass through; pydantic models and objects exposing
    `to_dict` are converted; strings are parsed leniently. Anything else
    becomes an empty dict.
    """
    if isinstance(output, (dict, list)):
        return output
    if hasattr(output, "model_dump"):
        return output.model_dump()
    if hasattr(output, "to_dict"):
        return output.to_dict()
    if isinstance(output, (bytes, bytearray)):
        output = output.decode("utf-8", errors="replace")
    if isinstance(output, str):
        stripped = strip_markdown_fences(output)
        if stripped.startswith("["):
            return parse_json_array_response(stripped)
        return parse_json_response(stripped)
    return {}
