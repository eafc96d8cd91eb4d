"""
Tests for the story pipeline and the movie/animation format adapter.
"""

import asyncio

import pytest

from reelforge.core.exceptions import CriticalPhaseFailureError
from reelforge.models.errors import ErrorCode, RecoveryAction, RecoveryDecision
from reelforge.models.pipeline import PipelineCallbacks, PipelineRequest
from reelforge.models.production import ScreenplayScene, VisualAsset
from reelforge.models.status import ProductionStep
from reelforge.services.pipelines import MovieAnimationPipeline, StoryPipeline, StoryPipelineOptions
from reelforge.services.pipelines.story import build_story_shotlist, estimate_pipeline_tokens


def _fail_screenplay_once(fake_text):
    generate = fake_text.generate_structured
    remaining = [1]

    async def flaky(prompt, schema):
        if "scenes" in schema["properties"] and remaining[0]:
            remaining[0] -= 1
            raise RuntimeError("screenplay timed out")
        return await generate(prompt, schema)

    fake_text.generate_structured = flaky


@pytest.fixture
def story(adapters, story_store):
    return StoryPipeline(adapters, story_store)


class TestStoryPipeline:

    @pytest.mark.asyncio
    async def test_topic_to_storyboard(self, story, story_store, fake_image):
        progress = []

        result = await story.run(StoryPipelineOptions(
            topic="A lighthouse keeper befriends a storm",
            session_id="story_1",
            on_progress=progress.append,
        ))

        assert result.success is True
        assert (result.act_count, result.scene_count, result.character_count, result.visual_count) == (3, 3, 1, 3)

        state = story_store.get("story_1")
        assert state.current_step == ProductionStep.SHOTLIST
        assert len(state.shotlist) == 3
        assert state.characters[0].reference_image_url == "https://cdn.test/story_1/ref.png"
        assert state.screenplay[0].characters_present == ["Maya"]

        # Scene visuals come before the reference sheets
        assert sorted(call[2] for call in fake_image.calls[:3]) == [0, 1, 2]
        assert fake_image.calls[-1][2] is None
        assert fake_image.calls[-1][1] == "1:1"

        stages = [p.stage for p in progress]
        assert stages[0] == "breakdown"
        assert stages.index("visuals") < stages.index("references")
        assert progress[-1].stage == "complete"
        assert progress[-1].progress == 100

    @pytest.mark.asyncio
    async def test_failed_scene_visual_is_skipped(self, story, story_store, fake_image):
        fake_image.fail_scenes = {0}

        result = await story.run(StoryPipelineOptions(topic="x", session_id="story_2"))

        assert result.success is True
        assert result.visual_count == 2
        assert [s.scene_id for s in story_store.get("story_2").shotlist] == ["scene_1", "scene_2"]

    @pytest.mark.asyncio
    async def test_scene_visuals_respect_concurrency_limit(self, story, fake_image):
        generate = fake_image.generate
        in_flight = [0, 0]

        async def slow_generate(*args, **kwargs):
            in_flight[0] += 1
            in_flight[1] = max(in_flight[1], in_flight[0])
            await asyncio.sleep(0.01)
            in_flight[0] -= 1
            return await generate(*args, **kwargs)

        fake_image.generate = slow_generate

        result = await story.run(StoryPipelineOptions(topic="x", concurrency_limit=2, generate_character_refs=False))

        assert result.visual_count == 3
        assert in_flight[1] == 2

    @pytest.mark.asyncio
    async def test_optional_steps_can_be_turned_off(self, story, fake_image):
        result = await story.run(StoryPipelineOptions(
            topic="x",
            generate_visuals=False,
            generate_character_refs=False,
        ))

        assert result.success is True
        assert result.session_id.startswith("story_")
        assert fake_image.calls == []

    @pytest.mark.asyncio
    async def test_breakdown_failure_without_recovery_raises(self, story, fake_text):
        fake_text.fail_times = 1
        progress = []

        with pytest.raises(CriticalPhaseFailureError) as exc_info:
            await story.run(StoryPipelineOptions(topic="x", session_id="story_3", on_progress=progress.append))

        assert exc_info.value.phase == "script"
        assert "model overloaded" in str(exc_info.value)
        assert progress[-1].stage == "error"

    @pytest.mark.asyncio
    async def test_cancellation_between_steps(self, story, fake_text):
        result = await story.run(StoryPipelineOptions(
            topic="x",
            session_id="story_4",
            is_cancelled=lambda: len(fake_text.prompts) >= 1,
        ))

        assert result.success is False
        assert result.error == "Pipeline cancelled by user"
        assert len(fake_text.prompts) == 1

    @pytest.mark.asyncio
    async def test_progress_callback_errors_do_not_stop_the_run(self, story):
        def broken(progress):
            raise RuntimeError("ui went away")

        result = await story.run(StoryPipelineOptions(topic="x", on_progress=broken))

        assert result.success is True


class TestHelpers:

    def test_estimate_pipeline_tokens(self):
        estimate = estimate_pipeline_tokens(400)

        assert estimate["breakdown"] == {"input": 300, "output": 500}
        assert estimate["total"] == {"input": 2600, "output": 3300}

    def test_story_shotlist_follows_visuals(self):
        scenes = [ScreenplayScene(id=f"scene_{i}", scene_number=i + 1, heading="H", action=f"a{i}") for i in range(3)]
        visuals = [VisualAsset(scene_id="scene_2", image_url="u2")]

        shotlist = build_story_shotlist(scenes, visuals)

        assert len(shotlist) == 1
        assert shotlist[0].description == "a2"
        assert shotlist[0].image_url == "u2"


class TestMovieAnimationPipeline:

    @pytest.mark.asyncio
    async def test_execute_maps_story_state(self, adapters, story_store):
        events = []
        pipeline = MovieAnimationPipeline(adapters, story_store)

        result = await pipeline.execute(
            PipelineRequest(format_id="movie-animation", idea="A robot learns to paint", genre="Drama"),
            PipelineCallbacks(on_phase=events.append),
        )

        partial = result.partial_results
        assert result.success is True
        assert partial.session_id.startswith("story_")
        assert len(partial.screenplay) == 3
        assert partial.characters[0].name == "Maya"
        assert len(partial.shotlist) == 3
        assert [e.phase for e in events][:3] == ["breakdown", "screenplay", "characters"]
        assert story_store.get(partial.session_id).format_id == "movie-animation"

    @pytest.mark.asyncio
    async def test_cancel_stops_story(self, adapters, story_store):
        holder = {}

        pipeline = MovieAnimationPipeline(adapters, story_store)
        callbacks = PipelineCallbacks(on_cancel_requested=lambda fn: holder.update(cancel=fn))

        def on_phase(event):
            if event.phase == "screenplay":
                holder["pending"] = asyncio.ensure_future(holder["cancel"]())

        callbacks.on_phase = on_phase

        result = await pipeline.execute(PipelineRequest(format_id="movie-animation", idea="x"), callbacks)
        await holder["pending"]

        assert result.success is False
        assert result.error == "Pipeline cancelled by user"

    @pytest.mark.asyncio
    async def test_critical_failure_without_callback_leaves_execute(self, adapters, story_store, fake_text):
        fake_text.fail_times = 10

        with pytest.raises(CriticalPhaseFailureError) as exc_info:
            await MovieAnimationPipeline(adapters, story_store).execute(
                PipelineRequest(format_id="movie-animation", idea="x")
            )

        assert exc_info.value.phase == "script"
        assert len(fake_text.prompts) == 1

    @pytest.mark.asyncio
    async def test_screenplay_failure_is_retried_through_callback(self, adapters, story_store, fake_text):
        _fail_screenplay_once(fake_text)
        seen = []

        async def on_critical_failure(record, options):
            seen.append((record.phase, record.code, [o.action for o in options]))
            return RecoveryAction.RETRY

        result = await MovieAnimationPipeline(adapters, story_store).execute(
            PipelineRequest(format_id="movie-animation", idea="x"),
            PipelineCallbacks(on_critical_failure=on_critical_failure),
        )

        assert result.success is True
        assert len(result.partial_results.screenplay) == 3
        assert seen == [(
            "screenplay",
            ErrorCode.SCRIPT_FAILED,
            [RecoveryAction.RETRY, RecoveryAction.EDIT, RecoveryAction.CANCEL],
        )]
        assert [e["phase"] for e in result.partial_results.errors] == ["screenplay"]

    @pytest.mark.asyncio
    async def test_cancel_chosen_after_critical_failure(self, adapters, story_store, fake_text):
        _fail_screenplay_once(fake_text)

        async def on_critical_failure(record, options):
            return RecoveryDecision(action=RecoveryAction.CANCEL)

        result = await MovieAnimationPipeline(adapters, story_store).execute(
            PipelineRequest(format_id="movie-animation", idea="x"),
            PipelineCallbacks(on_critical_failure=on_critical_failure),
        )

        assert result.success is False
        assert result.error.startswith("Pipeline cancelled after screenplay failure")
