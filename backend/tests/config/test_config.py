"""
Tests for config module

Paths, API settings, research vocabularies and tunables.
"""

import pytest
from pathlib import Path

from reelforge.config import (
    API_TITLE,
    API_VERSION,
    BACKEND_DIR,
    CHECKPOINT_TIMEOUT_SECONDS,
    CORS_ORIGINS,
    DATA_DIR,
    DEFAULT_BPM,
    DEPTH_QUERY_COUNTS,
    ENGINE_CONCURRENCY,
    ENGINE_RETRY_ATTEMPTS,
    GENRE_BPM,
    PACKAGE_DIR,
    QUERY_ASPECTS,
    SESSION_TTL_DAYS,
    SUPPORTED_DOCUMENT_EXTENSIONS,
    WORDS_PER_SECOND,
)


class TestPaths:

    def test_package_layout(self):
        assert PACKAGE_DIR.name == "reelforge"
        assert BACKEND_DIR == PACKAGE_DIR.parent

    def test_data_dir_is_a_path(self):
        assert isinstance(DATA_DIR, Path)


class TestApiSettings:

    def test_metadata(self):
        assert API_TITLE == "ReelForge API"
        assert API_VERSION.count(".") == 2

    def test_cors_origins(self):
        assert all(origin.startswith("http") for origin in CORS_ORIGINS)


class TestResearchVocabulary:

    def test_depth_counts(self):
        assert DEPTH_QUERY_COUNTS == {"shallow": 3, "medium": 5, "deep": 8}

    @pytest.mark.parametrize("language", ["en", "ar"])
    def test_aspects_cover_deepest_research(self, language):
        assert len(QUERY_ASPECTS[language]) == DEPTH_QUERY_COUNTS["deep"]

    def test_document_extensions(self):
        assert set(SUPPORTED_DOCUMENT_EXTENSIONS) == {".pdf", ".txt", ".md", ".docx"}


class TestTunables:

    def test_narration_pace(self):
        assert WORDS_PER_SECOND * 60 == pytest.approx(140)

    def test_genre_tempo(self):
        assert GENRE_BPM["Jazz"] == 80
        assert DEFAULT_BPM == 120

    def test_defaults_are_positive(self):
        assert ENGINE_CONCURRENCY >= 1
        assert ENGINE_RETRY_ATTEMPTS >= 1
        assert SESSION_TTL_DAYS >= 1
        assert CHECKPOINT_TIMEOUT_SECONDS >= 0
