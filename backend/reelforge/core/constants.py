"""
Shared language constants.
"""

import re
from typing import Dict, Optional

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "ar": "Arabic",
}

AUTO_LANGUAGE = "auto"

_ARABIC_RE = re.compile(r"[\u0600-\u06FF]")


def get_language_name(code: str) -> str:
    """Get language name from code, returns code if not found."""
    return LANGUAGE_NAMES.get(code, code.upper())


def detect_language(text: str) -> str:
    """Arabic when the text contains any Arabic code point, English otherwise."""
    return "ar" if _ARABIC_RE.search(text or "") else "en"


def resolve_language(language: Optional[str], text: str) -> str:
    if not language or language == AUTO_LANGUAGE:
        return detect_language(text)
    return language
