"""
Tests for models/production module

Scene helpers and the JSON shape of persisted session state.
"""

import json

import pytest

from reelforge.models.production import (
    CharacterProfile,
    DialogueLine,
    NarrationSegment,
    PartialSuccessReport,
    ProductionSessionState,
    ScreenplayScene,
    SessionMetadata,
    StoryModeState,
    VisualAsset,
)
from reelforge.models.status import ProductionStep


@pytest.fixture
def scene():
    return ScreenplayScene(
        id="scene_0",
        scene_number=1,
        heading="INT. LAB - NIGHT",
        action="  Maya leans over the microscope. ",
        dialogue=[DialogueLine("Maya", "Look at this."), DialogueLine("Narrator", "  ")],
    )


class TestScreenplayScene:

    def test_narration_text_skips_blank_lines(self, scene):
        assert scene.narration_text() == "Maya leans over the microscope. Look at this."

    def test_from_dict_defaults(self):
        restored = ScreenplayScene.from_dict({"id": "scene_3"})

        assert restored.scene_number == 0
        assert restored.dialogue == []


class TestNarrationSegment:

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            NarrationSegment(scene_id="scene_0", audio_duration=0, transcript="")

    def test_binary_is_opt_in(self):
        segment = NarrationSegment(scene_id="scene_0", audio_duration=2.5, transcript="hi", audio_data=b"RIFF")

        assert "audio_data" not in segment.to_dict()
        assert segment.to_dict(include_binary=True)["audio_data"] == b"RIFF"


class TestVisualAsset:

    def test_url_prefers_video(self):
        assert VisualAsset(scene_id="s", image_url="i.png", video_url="v.mp4").url == "v.mp4"
        assert VisualAsset(scene_id="s").url == ""

    def test_placeholder(self):
        asset = VisualAsset.placeholder("scene_1")

        assert asset.is_placeholder is True
        assert asset.image_url == ""


class TestProductionSessionState:

    def test_persisted_form_is_json_and_drops_binary(self, scene):
        state = ProductionSessionState(
            id="yt_1",
            topic="Microscopes",
            format_id="youtube-narrator",
            screenplay=[scene],
            characters=[CharacterProfile(id="char_0", name="Maya", role="host", visual_description="red scarf")],
            narration_segments=[NarrationSegment("scene_0", 3.0, "hi", audio_handle="yt_1-audio-0", audio_data=b"x")],
            visuals=[VisualAsset(scene_id="scene_0", image_url="u.png", cached_blob=b"png")],
            current_step=ProductionStep.SHOTLIST,
            partial_success_report=PartialSuccessReport("visuals", 3, 2, 1, "2 of 3"),
        )

        data = json.loads(json.dumps(state.to_dict()))
        restored = ProductionSessionState.from_dict(data)

        assert restored.screenplay[0].dialogue[0].speaker == "Maya"
        assert restored.narration_segments[0].audio_data is None
        assert restored.narration_segments[0].audio_handle == "yt_1-audio-0"
        assert restored.visuals[0].cached_blob is None
        assert restored.current_step == ProductionStep.SHOTLIST
        assert restored.partial_success_report.failed == 1
        assert restored.is_complete is False

    def test_unknown_step_falls_back_to_breakdown(self):
        restored = ProductionSessionState.from_dict({"id": "yt_1", "current_step": "mastering"})

        assert restored.current_step == ProductionStep.BREAKDOWN

    def test_complete_at_production_step(self):
        assert ProductionSessionState(id="yt_1", topic="", current_step=ProductionStep.PRODUCTION).is_complete


class TestStoryModeState:

    @pytest.mark.parametrize("step,complete", [
        (ProductionStep.CHARACTERS, False),
        (ProductionStep.SHOTLIST, True),
        (ProductionStep.PRODUCTION, True),
    ])
    def test_is_complete(self, step, complete):
        assert StoryModeState(id="story_1", topic="", current_step=step).is_complete is complete


def test_session_metadata_round_trip():
    metadata = SessionMetadata("yt_1", 1.0, 2.0, "Tides", 3, False, "youtube-narrator")

    assert SessionMetadata.from_dict(metadata.to_dict()) == metadata
