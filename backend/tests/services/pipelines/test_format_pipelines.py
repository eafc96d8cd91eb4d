"""
Tests for the research-to-assembly format pipelines.

Adapters are the in-memory fakes from conftest; checkpoints are resolved
synchronously from the on_checkpoint_created callback.
"""

import asyncio

import pytest

from reelforge.core.exceptions import CriticalPhaseFailureError, FormatRouterError, FormatRouterErrorCode
from reelforge.models.errors import RecoveryAction, RecoveryDecision
from reelforge.models.pipeline import PipelineCallbacks, PipelineRequest
from reelforge.models.status import ProductionStep
from reelforge.services.pipelines import (
    AdvertisementPipeline,
    DocumentaryPipeline,
    MusicVideoPipeline,
    NewsPoliticsPipeline,
    ShortsPipeline,
    YouTubeNarratorPipeline,
    build_default_router,
)
from reelforge.services.pipelines.advertisement import extract_cta_text
from reelforge.services.pipelines.base import new_session_id
from reelforge.services.research.service import ResearchService


class Review:
    """Records checkpoint phases and approves everything except `reject`."""

    def __init__(self, reject=None, change_request=None, on_created=None):
        self.reject = reject
        self.change_request = change_request
        self.on_created = on_created
        self.system = None
        self.phases = []
        self.events = []

    def callbacks(self, **kwargs):
        return PipelineCallbacks(
            on_checkpoint_system_created=self._attach,
            on_checkpoint_created=self._created,
            on_phase=self.events.append,
            **kwargs,
        )

    def _attach(self, system):
        self.system = system

    def _created(self, checkpoint):
        self.phases.append(checkpoint.phase)
        if self.on_created is not None:
            self.on_created(checkpoint)
        elif checkpoint.phase == self.reject:
            self.system.reject_checkpoint(checkpoint.checkpoint_id, self.change_request)
        else:
            self.system.approve_checkpoint(checkpoint.checkpoint_id)

    def started(self):
        return [e.phase for e in self.events if e.status == "started"]


@pytest.fixture
def build(adapters, session_store, engine):
    def factory(pipeline_class, knowledge=None):
        research = ResearchService(knowledge or adapters.knowledge, engine=engine)
        return pipeline_class(adapters, session_store, engine=engine, research_service=research)
    return factory


class TestSessionIds:

    def test_format(self):
        session_id = new_session_id("yt")
        prefix, stamp, suffix = session_id.split("_")

        assert prefix == "yt"
        assert stamp.isdigit()
        assert len(suffix) == 6


class TestYouTubeNarrator:

    @pytest.mark.asyncio
    async def test_full_run(self, build, session_store):
        review = Review()
        pipeline = build(YouTubeNarratorPipeline)

        result = await pipeline.execute(PipelineRequest(format_id="youtube-narrator", idea="How volcanoes work"), review.callbacks())

        assert result.success is True
        assert review.phases == ["script-review", "visual-preview", "final-assembly"]
        assert review.started() == ["research", "script", "visuals", "audio", "assembly"]

        partial = result.partial_results
        assert partial.session_id.startswith("yt_")
        assert partial.research.sources
        assert len(partial.screenplay) == 3
        assert len(partial.visuals) == 3
        assert [s.camera_angle for s in partial.shotlist] == ["Wide"] * 3
        assert all(s.image_url for s in partial.shotlist)
        assert partial.total_duration == 15.0
        assert partial.assembly_rules.format_id == "youtube-narrator"
        assert any(w.startswith("Script too short") for w in result.warnings)

        state = session_store.get(partial.session_id)
        assert state.current_step == ProductionStep.PRODUCTION
        assert all(seg.audio_handle for seg in state.narration_segments)
        assert [cp["phase"] for cp in state.checkpoints] == review.phases

    @pytest.mark.asyncio
    async def test_failed_visual_is_dropped_and_reported(self, build, fake_image):
        fake_image.fail_scenes = {1}
        pipeline = build(YouTubeNarratorPipeline)

        result = await pipeline.execute(PipelineRequest(format_id="youtube-narrator", idea="Tides"), Review().callbacks())

        partial = result.partial_results
        assert result.success is True
        assert [v.scene_id for v in partial.visuals] == ["scene_0", "scene_2"]
        assert partial.shotlist[1].image_url is None
        assert partial.partial_success_report.failed == 1
        assert "2 of 3 visuals tasks succeeded; 1 failed" in result.warnings
        assert "1 of 3 scenes have no visual" in result.warnings
        codes = {e["code"] for e in partial.errors}
        assert {"TASK_FAILED", "PARTIAL_FAILURE"} <= codes

    @pytest.mark.asyncio
    async def test_cached_script_is_reused_on_resume(self, build, fake_text):
        pipeline = build(YouTubeNarratorPipeline)
        request = PipelineRequest(format_id="youtube-narrator", idea="Tides", session_id="yt_resume_1")

        first = await pipeline.execute(request, Review().callbacks())
        prompts_after_first = len(fake_text.prompts)
        second = await pipeline.execute(request, Review().callbacks())

        assert first.success and second.success
        assert prompts_after_first == 2
        assert len(fake_text.prompts) == 2
        assert second.partial_results.session_id == "yt_resume_1"

    @pytest.mark.asyncio
    async def test_failed_research_is_redone_on_resume(self, build, failing_knowledge, fake_knowledge, session_store):
        request = PipelineRequest(format_id="youtube-narrator", idea="Tides", session_id="yt_resume_2")

        first = await build(YouTubeNarratorPipeline, knowledge=failing_knowledge).execute(request, Review().callbacks())

        assert first.partial_results.research.sources == []
        assert session_store.get_cached_phase_result("yt_resume_2", "research") is None

        second = await build(YouTubeNarratorPipeline, knowledge=fake_knowledge).execute(request, Review().callbacks())

        assert second.success is True
        assert len(fake_knowledge.queries) == 5
        assert second.partial_results.research.sources
        assert session_store.get_cached_phase_result("yt_resume_2", "research") is not None

    @pytest.mark.asyncio
    async def test_complete_research_is_reused_on_resume(self, build, fake_knowledge):
        pipeline = build(YouTubeNarratorPipeline)
        request = PipelineRequest(format_id="youtube-narrator", idea="Tides", session_id="yt_resume_3")

        await pipeline.execute(request, Review().callbacks())
        queries_after_first = len(fake_knowledge.queries)
        second = await pipeline.execute(request, Review().callbacks())

        assert queries_after_first == 5
        assert len(fake_knowledge.queries) == 5
        assert second.partial_results.research.sources


class TestCheckpointOutcomes:

    @pytest.mark.asyncio
    async def test_rejection_stops_the_run(self, build, fake_image):
        review = Review(reject="hook-preview", change_request="punchier opening")

        result = await build(ShortsPipeline).execute(PipelineRequest(format_id="shorts", idea="Desk hacks"), review.callbacks())

        assert result.success is False
        assert result.error == "Hook rejected by user"
        assert result.partial_results.screenplay
        assert result.partial_results.visuals is None
        assert fake_image.calls == []

    @pytest.mark.asyncio
    async def test_cancel_while_waiting_for_review(self, build):
        cancel = {}

        def cancel_on_first_checkpoint(checkpoint):
            asyncio.ensure_future(cancel["fn"]())

        review = Review(on_created=cancel_on_first_checkpoint)
        callbacks = review.callbacks(on_cancel_requested=lambda fn: cancel.update(fn=fn))

        result = await build(ShortsPipeline).execute(PipelineRequest(format_id="shorts", idea="Desk hacks"), callbacks)

        assert result.success is False
        assert result.error == "Pipeline cancelled by user"
        assert review.phases == ["hook-preview"]
        assert review.system.disposed is True


class TestCriticalFailures:

    @pytest.mark.asyncio
    async def test_script_failure_without_callback_raises(self, build, fake_text, session_store):
        fake_text.fail_times = 10
        request = PipelineRequest(format_id="shorts", idea="Desk hacks", session_id="sht_broken")

        with pytest.raises(CriticalPhaseFailureError) as exc_info:
            await build(ShortsPipeline).execute(request, Review().callbacks())

        assert exc_info.value.phase == "script"
        errors = session_store.get("sht_broken").errors
        assert errors[0]["code"] == "SCRIPT_FAILED"

    @pytest.mark.asyncio
    async def test_retry_recovers(self, build, fake_text):
        fake_text.fail_times = 1
        seen = []

        async def on_failure(record, options):
            seen.append((record.phase, [o.action for o in options]))
            return RecoveryAction.RETRY

        review = Review()
        result = await build(ShortsPipeline).execute(
            PipelineRequest(format_id="shorts", idea="Desk hacks"),
            review.callbacks(on_critical_failure=on_failure),
        )

        assert result.success is True
        assert seen == [("script", [RecoveryAction.RETRY, RecoveryAction.EDIT, RecoveryAction.CANCEL])]

    @pytest.mark.asyncio
    async def test_edit_retries_with_new_idea(self, build, fake_text):
        fake_text.fail_times = 1

        async def on_failure(record, options):
            return RecoveryDecision(action=RecoveryAction.EDIT, edited_input="Standing desk hacks")

        result = await build(ShortsPipeline).execute(
            PipelineRequest(format_id="shorts", idea="Desk hacks"),
            Review().callbacks(on_critical_failure=on_failure),
        )

        assert result.success is True
        assert '"Standing desk hacks"' in fake_text.prompts[1]

    @pytest.mark.asyncio
    async def test_cancel_decision_ends_the_run(self, build, fake_text):
        fake_text.fail_times = 1

        async def on_failure(record, options):
            return RecoveryAction.CANCEL

        result = await build(ShortsPipeline).execute(
            PipelineRequest(format_id="shorts", idea="Desk hacks"),
            Review().callbacks(on_critical_failure=on_failure),
        )

        assert result.success is False
        assert result.error == "Pipeline cancelled after script failure: model overloaded"


class TestFormatSpecifics:

    @pytest.mark.asyncio
    async def test_advertisement_cta(self, build):
        review = Review()

        result = await build(AdvertisementPipeline).execute(
            PipelineRequest(format_id="advertisement", idea="A smart bottle"), review.callbacks()
        )

        rules = result.partial_results.assembly_rules
        assert result.success is True
        assert review.phases == ["script-with-cta", "final-preview"]
        assert result.partial_results.cta_text == "Try it today"
        assert rules.cta_marker.text == "Try it today"
        assert rules.cta_marker.start_time == 5.0
        assert rules.cta_marker.duration == 5.0

    def test_cta_defaults_when_last_scene_is_silent(self):
        assert extract_cta_text([]) == "Learn More"

    @pytest.mark.asyncio
    async def test_documentary_chapters_follow_acts(self, build):
        review = Review()

        result = await build(DocumentaryPipeline).execute(
            PipelineRequest(format_id="documentary", idea="Deep sea life"), review.callbacks()
        )

        chapters = result.partial_results.chapters
        assert result.success is True
        assert review.phases == ["research-summary", "chapter-structure", "visual-preview", "final-assembly"]
        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 2", "Chapter 3", "Chapter 4"]
        assert [c.start_time for c in chapters] == [0.0, 5.0, 10.0, 15.0]
        assert result.partial_results.assembly_rules.use_chapter_structure is True

    @pytest.mark.asyncio
    async def test_documentary_survives_failed_research(self, build, failing_knowledge):
        pipeline = build(DocumentaryPipeline, knowledge=failing_knowledge)

        result = await pipeline.execute(PipelineRequest(format_id="documentary", idea="Deep sea life"), Review().callbacks())

        research = result.partial_results.research
        assert result.success is True
        assert research.sources == []
        assert research.failed_queries == 8
        assert research.confidence == 0.0

    @pytest.mark.asyncio
    async def test_music_video_beat_sync(self, build):
        review = Review()

        result = await build(MusicVideoPipeline).execute(
            PipelineRequest(format_id="music-video", idea="Night drive", genre="Jazz"), review.callbacks()
        )

        partial = result.partial_results
        assert result.success is True
        assert review.phases == ["lyrics-and-music", "visual-preview", "final-assembly"]
        assert partial.assembly_rules.use_beat_sync is True
        assert len(partial.transition_times) == len(partial.screenplay) - 1

    @pytest.mark.asyncio
    async def test_news_checkpoints(self, build):
        review = Review()

        result = await build(NewsPoliticsPipeline).execute(
            PipelineRequest(format_id="news-politics", idea="Budget vote"), review.callbacks()
        )

        assert result.success is True
        assert review.phases == ["research-summary", "script-review", "final-assembly"]

    @pytest.mark.asyncio
    async def test_shorts_is_vertical(self, build, fake_image):
        result = await build(ShortsPipeline).execute(PipelineRequest(format_id="shorts", idea="Desk hacks"), Review().callbacks())

        assert result.success is True
        assert {call[1] for call in fake_image.calls} == {"9:16"}


class TestDefaultRouter:

    def test_registers_every_pipeline_but_educational(self, adapters, session_store, story_store):
        router = build_default_router(adapters, session_store, story_store)

        assert sorted(router.get_registered_pipelines()) == [
            "advertisement", "documentary", "movie-animation", "music-video",
            "news-politics", "shorts", "youtube-narrator",
        ]
        with pytest.raises(FormatRouterError) as exc_info:
            router.get_pipeline("educational")
        assert exc_info.value.code == FormatRouterErrorCode.PIPELINE_NOT_FOUND
