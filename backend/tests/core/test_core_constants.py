"""
Tests for core/constants module
"""

import pytest

from reelforge.core.constants import (
    AUTO_LANGUAGE,
    LANGUAGE_NAMES,
    detect_language,
    get_language_name,
    resolve_language,
)


class TestLanguageNames:

    def test_supported_languages(self):
        assert LANGUAGE_NAMES == {"en": "English", "ar": "Arabic"}

    def test_unknown_code_is_uppercased(self):
        assert get_language_name("ar") == "Arabic"
        assert get_language_name("fr") == "FR"


class TestDetection:

    @pytest.mark.parametrize("text,expected", [
        ("How volcanoes work", "en"),
        ("كيف تعمل البراكين", "ar"),
        ("Volcano بركان mix", "ar"),
        ("", "en"),
        (None, "en"),
    ])
    def test_detect_language(self, text, expected):
        assert detect_language(text) == expected

    def test_explicit_language_wins(self):
        assert resolve_language("en", "كيف تعمل البراكين") == "en"

    @pytest.mark.parametrize("language", [None, "", AUTO_LANGUAGE])
    def test_auto_detects(self, language):
        assert resolve_language(language, "كيف") == "ar"
