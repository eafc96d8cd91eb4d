"""
Tests for reelforge.services.formats.registry
"""

from dataclasses import FrozenInstanceError

import pytest

from reelforge.models.formats import DurationRange, FormatMetadata
from reelforge.services.formats.registry import (
    FormatRegistry,
    get_format_registry,
    validate_format_compliance,
)

BUILT_IN = {
    "youtube-narrator", "advertisement", "movie-animation", "educational",
    "shorts", "documentary", "music-video", "news-politics",
}


class TestFormatRegistry:

    def test_built_in_formats(self):
        registry = FormatRegistry()

        assert set(registry.format_ids()) == BUILT_IN
        assert get_format_registry() is get_format_registry()

    @pytest.mark.parametrize("format_id,aspect,checkpoints,concurrency", [
        ("youtube-narrator", "16:9", 3, 5),
        ("advertisement", "16:9", 2, 3),
        ("shorts", "9:16", 2, 3),
        ("documentary", "16:9", 4, 5),
        ("music-video", "16:9", 3, 4),
    ])
    def test_format_constraints(self, format_id, aspect, checkpoints, concurrency):
        metadata = FormatRegistry().get_format(format_id)

        assert metadata.aspect_ratio == aspect
        assert metadata.checkpoint_count == checkpoints
        assert metadata.concurrency_limit == concurrency

    def test_formats_by_genre_is_case_insensitive(self):
        ids = {f.id for f in FormatRegistry().get_formats_by_genre("comedy")}

        assert ids == {"movie-animation", "shorts"}

    def test_deprecated_filter(self):
        registry = FormatRegistry()
        registry.register_format(FormatMetadata(
            id="legacy",
            name="Legacy",
            description="old",
            aspect_ratio="1:1",
            duration_range=DurationRange(10, 20),
            checkpoint_count=1,
            concurrency_limit=1,
            requires_research=False,
            deprecated=True,
        ))

        assert "legacy" in {f.id for f in registry.get_all_formats()}
        assert "legacy" not in {f.id for f in registry.get_all_formats(include_deprecated=False)}

    def test_metadata_is_immutable(self):
        metadata = FormatRegistry().get_format("shorts")

        with pytest.raises(FrozenInstanceError):
            metadata.aspect_ratio = "16:9"
        with pytest.raises(TypeError):
            metadata.extra["x"] = 1

    @pytest.mark.parametrize("kwargs", [
        {"aspect_ratio": "4:3"},
        {"checkpoint_count": -1},
        {"concurrency_limit": 0},
        {"duration_range": DurationRange(20, 10)},
    ])
    def test_invalid_metadata(self, kwargs):
        base = dict(
            id="bad", name="Bad", description="", aspect_ratio="16:9",
            duration_range=DurationRange(10, 20), checkpoint_count=1,
            concurrency_limit=1, requires_research=False,
        )
        base.update(kwargs)
        with pytest.raises(ValueError):
            FormatMetadata(**base)


class TestFormatCompliance:

    def test_compliant(self):
        result = validate_format_compliance(FormatRegistry(), "shorts", duration_seconds=30, aspect_ratio="9:16")

        assert result.valid is True

    def test_violations(self):
        result = validate_format_compliance(
            FormatRegistry(),
            "advertisement",
            duration_seconds=90,
            aspect_ratio="9:16",
            checkpoint_count=5,
            concurrent_tasks=10,
        )

        assert result.valid is False
        assert [v.field for v in result.violations] == [
            "duration", "aspect_ratio", "checkpoint_count", "concurrency_limit",
        ]

    def test_unknown_format(self):
        result = validate_format_compliance(FormatRegistry(), "hologram")

        assert result.valid is False
        assert result.violations[0].field == "format_id"
