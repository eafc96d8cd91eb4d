"""
Tests for reelforge.services.assembly.rules
"""

import pytest

from reelforge.models.assembly import BeatMetadata, ChapterMarker, CTAMarker
from reelforge.models.production import ScreenplayScene
from reelforge.services.assembly.rules import (
    build_assembly_rules,
    build_chapter_markers,
    build_cta_marker,
    get_default_transition,
    validate_chapter_sequence,
    validate_cta_position,
)


class TestCTAMarker:

    def test_last_five_seconds(self):
        marker = build_cta_marker("Buy now", 30.0)

        assert marker.start_time == 25.0
        assert marker.duration == 5.0
        assert marker.end_time == 30.0
        assert validate_cta_position(marker, 30.0)

    def test_clamped_for_short_videos(self):
        marker = build_cta_marker("Buy now", 3.0)

        assert marker.start_time == 0.0
        assert marker.duration == 3.0
        assert validate_cta_position(marker, 3.0)

    def test_subscribe_and_go(self):
        subscribe = build_cta_marker("Subscribe", 30)
        go = build_cta_marker("Go", 3)

        assert (subscribe.text, subscribe.start_time, subscribe.duration) == ("Subscribe", 25, 5)
        assert (go.text, go.start_time, go.duration) == ("Go", 0, 3)
        assert validate_cta_position(subscribe, 30)
        assert validate_cta_position(go, 3)

    def test_early_cta_is_invalid(self):
        assert not validate_cta_position(CTAMarker(text="x", start_time=10.0, duration=5.0), 30.0)
        assert not validate_cta_position(CTAMarker(text="x", start_time=27.0, duration=5.0), 30.0)


class TestChapterMarkers:

    def test_chapters_are_contiguous(self):
        scenes = ["Origins", "The Eruption", "Aftermath"]

        chapters = build_chapter_markers(scenes, [10.0, 20.0, 15.0])

        assert [(c.start_time, c.end_time) for c in chapters] == [(0.0, 10.0), (10.0, 30.0), (30.0, 45.0)]
        assert [c.title for c in chapters] == scenes
        assert validate_chapter_sequence(chapters)

    def test_zero_duration_scenes_are_skipped(self):
        chapters = build_chapter_markers(["a", "b", "c"], [5.0, 0.0])

        assert [c.id for c in chapters] == ["chapter_0"]

    def test_zero_duration_scene_between_chapters(self):
        chapters = build_chapter_markers(["S1", "S2", "S3"], [10.0, 0.0, 20.0])

        assert [(c.title, c.start_time, c.end_time) for c in chapters] == [("S1", 0.0, 10.0), ("S3", 10.0, 30.0)]
        assert validate_chapter_sequence(chapters)

    def test_title_falls_back_to_heading_then_number(self):
        scene = ScreenplayScene(id="scene_1", scene_number=1, heading="EXT. CRATER - DAY", action="...")

        chapters = build_chapter_markers([scene, ""], [4.0, 4.0])

        assert chapters[0].title == "EXT. CRATER - DAY"
        assert chapters[1].title == "Chapter 2"

    def test_overlapping_sequence_is_invalid(self):
        chapters = [
            ChapterMarker(id="a", title="a", start_time=0.0, end_time=10.0),
            ChapterMarker(id="b", title="b", start_time=8.0, end_time=12.0),
        ]
        assert not validate_chapter_sequence(chapters)
        assert not validate_chapter_sequence([ChapterMarker(id="c", title="c", start_time=5.0, end_time=5.0)])


class TestBuildAssemblyRules:

    @pytest.mark.parametrize("format_id,transition", [
        ("advertisement", ("none", 0.3)),
        ("documentary", ("dissolve", 1.5)),
        ("music-video", ("fade", 0.5)),
        ("news-politics", ("slide", 1.0)),
        ("something-new", ("dissolve", 1.0)),
    ])
    def test_default_transitions(self, format_id, transition):
        assert get_default_transition(format_id) == transition

    def test_advertisement_gets_cta(self):
        rules = build_assembly_rules("advertisement", total_duration=30.0, cta_text="Shop today")

        assert rules.cta_marker.text == "Shop today"
        assert rules.cta_marker.start_time == 25.0
        assert rules.chapters is None

    def test_advertisement_without_duration_has_no_cta(self):
        assert build_assembly_rules("advertisement").cta_marker is None

    def test_documentary_gets_chapters(self):
        rules = build_assembly_rules("documentary", scenes=["One", "Two"], scene_durations=[30.0, 40.0])

        assert rules.use_chapter_structure is True
        assert len(rules.chapters) == 2
        assert rules.aspect_ratio == "16:9"

    def test_music_video_gets_beat_sync(self):
        beats = BeatMetadata(bpm=120, duration_seconds=10.0)

        rules = build_assembly_rules("music-video", beat_metadata=beats)

        assert rules.use_beat_sync is True
        assert rules.beat_metadata is beats

    def test_shorts_are_vertical(self):
        assert build_assembly_rules("shorts").aspect_ratio == "9:16"
