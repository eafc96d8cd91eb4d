"""
Story Pipeline

Discrete model calls that take a topic to a storyboard, each step with
minimal context:

1. Topic -> breakdown (acts)
2. Breakdown -> screenplay (scenes)
3. Screenplay -> characters
4. Scenes -> visuals (one engine task per scene)
5. Characters -> reference sheets

Visuals are generated before the reference sheets. Breakdown and screenplay
are critical: their failures go to the recovery callback, and without one
they raise CriticalPhaseFailureError. State lives in the story-sessions
collection.
"""

import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ...core.exceptions import AdapterFailureError, CriticalPhaseFailureError, PipelineCancelledError
from ...core.logging import LoggerAdapter, get_logger
from ...models.errors import ErrorCode
from ...models.production import CharacterProfile, ScreenplayScene, ShotlistEntry, VisualAsset
from ...models.status import ProductionStep
from ...adapters.base import ProductionAdapters
from ..errors import CriticalFailureHandler
from ..infrastructure.orchestration.execution_engine import ExecutionOptions, ParallelExecutionEngine, Task
from ..infrastructure.storage.session_store import StorySessionStore
from .prompts import ScriptPromptOptions
from .script import ScriptGenerator, act_index_for_scene, assign_characters_present
from .style_guide import build_character_sheet_guide, build_scene_guide

STORY_FORMAT_ID = "movie-animation"
REFERENCE_ASPECT_RATIO = "1:1"


def story_visuals_execution_id(session_id: str) -> str:
    return f"{session_id}-story-visuals"


@dataclass
class StoryProgress:
    stage: str  # breakdown | screenplay | characters | visuals | references | complete | error
    message: str
    progress: Optional[float] = None  # 0-100
    current_step: Optional[int] = None
    total_steps: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "message": self.message,
            "progress": self.progress,
            "current_step": self.current_step,
            "total_steps": self.total_steps,
        }


@dataclass
class StoryPipelineOptions:
    topic: str
    session_id: Optional[str] = None
    generate_character_refs: bool = True
    generate_visuals: bool = True
    visual_style: str = "Cinematic"
    language: str = "en"
    genre: Optional[str] = None
    aspect_ratio: str = "16:9"
    act_range: tuple = (3, 5)
    scene_range: tuple = (3, 8)
    on_progress: Optional[Callable[[StoryProgress], None]] = None
    is_cancelled: Optional[Callable[[], bool]] = None
    concurrency_limit: int = 4
    failures: Optional[CriticalFailureHandler] = None


@dataclass
class StoryPipelineResult:
    success: bool
    session_id: str
    act_count: int = 0
    scene_count: int = 0
    character_count: int = 0
    visual_count: int = 0
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "session_id": self.session_id,
            "act_count": self.act_count,
            "scene_count": self.scene_count,
            "character_count": self.character_count,
            "visual_count": self.visual_count,
            "error": self.error,
            "warnings": list(self.warnings),
        }


def estimate_pipeline_tokens(topic_length: int) -> Dict[str, Dict[str, int]]:
    """Rough input/output token usage per model call, for cost estimation."""
    breakdown = {"input": math.ceil(topic_length / 4) + 200, "output": 500}
    screenplay = {"input": 800, "output": 2000}
    characters = {"input": 1500, "output": 800}
    return {
        "breakdown": breakdown,
        "screenplay": screenplay,
        "characters": characters,
        "total": {
            "input": breakdown["input"] + screenplay["input"] + characters["input"],
            "output": breakdown["output"] + screenplay["output"] + characters["output"],
        },
    }


class StoryPipeline:
    """Topic-to-storyboard pipeline used by the movie/animation format."""

    def __init__(
        self,
        adapters: ProductionAdapters,
        story_store: StorySessionStore,
        engine: Optional[ParallelExecutionEngine] = None,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.adapters = adapters
        self.story_store = story_store
        self.engine = engine or ParallelExecutionEngine()
        self._logger = logger or get_logger(__name__, component="story_pipeline")
        self.script_generator = ScriptGenerator(adapters.text, logger=self._logger)

    async def run(self, options: StoryPipelineOptions) -> StoryPipelineResult:
        session_id = options.session_id or f"story_{int(time.time() * 1000)}"
        logger = self._logger.bind(session_id=session_id)
        logger.info("Story pipeline started", extra={"topic": options.topic[:50]})

        def report(stage: str, message: str, progress: Optional[float] = None,
                   current: Optional[int] = None, total: Optional[int] = None) -> None:
            if options.on_progress is None:
                return
            try:
                options.on_progress(StoryProgress(stage, message, progress, current, total))
            except Exception as e:
                logger.error("on_progress callback failed", extra={"stage": stage, "error": str(e)})

        def check_cancelled() -> None:
            if options.is_cancelled and options.is_cancelled():
                raise PipelineCancelledError()

        prompt_options = ScriptPromptOptions(
            format_id=STORY_FORMAT_ID,
            genre=options.genre,
            language=options.language,
            act_range=options.act_range,
            scene_range=options.scene_range,
        )
        warnings: List[str] = []
        failures = options.failures or CriticalFailureHandler(logger=logger)

        try:
            report("breakdown", "Creating story outline...", 10)
            acts = await failures.run_phase(
                "script",
                lambda topic: self.script_generator.generate_breakdown(topic, prompt_options, warnings),
                options.topic,
                ErrorCode.SCRIPT_FAILED,
                check_cancelled,
            )
            self.story_store.initialize(
                session_id,
                topic=options.topic,
                breakdown="\n".join(f"{a.title}: {a.narrative_beat}" for a in acts),
                format_id=STORY_FORMAT_ID,
                language=options.language,
            )
            check_cancelled()

            report("screenplay", "Writing screenplay...", 30)
            screenplay = await failures.run_phase(
                "screenplay",
                lambda _: self.script_generator.generate_screenplay(acts, prompt_options, warnings),
                options.topic,
                ErrorCode.SCRIPT_FAILED,
                check_cancelled,
            )
            self.story_store.update(session_id, screenplay=screenplay, current_step=ProductionStep.SCREENPLAY)
            check_cancelled()

            report("characters", "Extracting characters...", 45)
            characters = await self.script_generator.extract_characters(screenplay)
            assign_characters_present(screenplay, characters)
            self.story_store.update(
                session_id,
                screenplay=screenplay,
                characters=characters,
                current_step=ProductionStep.CHARACTERS,
            )
            check_cancelled()

            visuals: List[VisualAsset] = []
            if options.generate_visuals:
                moods = [a.emotional_hook for a in acts]
                visuals = await self.generate_scene_visuals(
                    screenplay, characters, session_id, options, moods, report, check_cancelled, logger,
                )
                self.story_store.update(session_id, shotlist=build_story_shotlist(screenplay, visuals))

            if options.generate_character_refs and characters:
                await self.generate_character_references(
                    characters, session_id, options.visual_style, report, check_cancelled, logger,
                )
                self.story_store.update(session_id, characters=characters)

            self.story_store.update(session_id, current_step=ProductionStep.SHOTLIST)
            self.story_store.flush(session_id)
            report("complete", "Story pipeline complete!", 100)

            logger.info(
                "Story pipeline completed",
                extra={
                    "acts": len(acts),
                    "scenes": len(screenplay),
                    "characters": len(characters),
                    "visuals": len(visuals),
                },
            )
            return StoryPipelineResult(
                success=True,
                session_id=session_id,
                act_count=len(acts),
                scene_count=len(screenplay),
                character_count=len(characters),
                visual_count=len(visuals),
                warnings=warnings,
            )
        except CriticalPhaseFailureError as e:
            logger.error("Story pipeline stopped on a critical failure", extra={"phase": e.phase})
            report("error", str(e))
            if self.story_store.has(session_id):
                self.story_store.flush(session_id)
            raise
        except Exception as e:
            logger.error("Story pipeline failed", extra={"error": str(e)})
            report("error", str(e))
            if self.story_store.has(session_id):
                self.story_store.flush(session_id)
            return StoryPipelineResult(success=False, session_id=session_id, error=str(e), warnings=warnings)

    async def generate_scene_visuals(
        self,
        scenes: Sequence[ScreenplayScene],
        characters: Sequence[CharacterProfile],
        session_id: str,
        options: StoryPipelineOptions,
        moods: Sequence[str],
        report: Callable[..., None],
        check_cancelled: Callable[[], None],
        logger: LoggerAdapter,
    ) -> List[VisualAsset]:
        """One visual task per scene, `concurrency_limit` at a time; a failed scene is skipped."""
        total = len(scenes)
        report("visuals", "Generating scene visuals...", 55, 0, total)
        check_cancelled()
        done = [0]

        def make_runner(index: int, scene: ScreenplayScene):
            async def generate() -> VisualAsset:
                mood = moods[act_index_for_scene(index, total, len(moods))] if moods else None
                guide = build_scene_guide(scene, options.visual_style, mood, characters)
                url = await self.adapters.image.generate(scene.action, guide, options.aspect_ratio, session_id, index)
                if not url:
                    raise AdapterFailureError(f"No visual returned for {scene.id}", adapter="image")
                return VisualAsset(scene_id=scene.id, image_url=url)
            return generate

        def settled(task_id: str, _outcome: Any) -> None:
            done[0] += 1
            report("visuals", f"Generating visual {done[0]}/{total}...", 55 + done[0] / total * 20, done[0], total)

        def failed(task_id: str, error: BaseException) -> None:
            logger.warning("Scene visual failed", extra={"task_id": task_id, "error": str(error)})
            settled(task_id, error)

        tasks = [
            Task(id=f"story_visual_{i}", type="visual", execute=make_runner(i, scene), retryable=False)
            for i, scene in enumerate(scenes)
        ]
        results = await self.engine.execute(tasks, ExecutionOptions(
            concurrency_limit=options.concurrency_limit,
            retry_attempts=1,
            on_task_complete=settled,
            on_task_fail=failed,
            execution_id=story_visuals_execution_id(session_id),
        ))
        check_cancelled()

        by_id = {r.task_id: r for r in results}
        return [
            by_id[task.id].data
            for task in tasks
            if task.id in by_id and by_id[task.id].success and by_id[task.id].data is not None
        ]

    async def generate_character_references(
        self,
        characters: Sequence[CharacterProfile],
        session_id: str,
        style: str,
        report: Callable[..., None],
        check_cancelled: Callable[[], None],
        logger: LoggerAdapter,
    ) -> None:
        """Fill `reference_image_url` on each character; failures leave it unset."""
        total = len(characters)
        report("references", "Generating character reference sheets...", 80, 0, total)
        for i, character in enumerate(characters):
            check_cancelled()
            guide = build_character_sheet_guide(character, style)
            try:
                url = await self.adapters.image.generate(guide.scene, guide, REFERENCE_ASPECT_RATIO, session_id)
            except Exception as e:
                logger.warning("Character reference failed", extra={"character": character.name, "error": str(e)})
                url = None
            if url:
                character.reference_image_url = url
            done = i + 1
            report("references", f"Generating reference {done}/{total}...", 80 + done / total * 15, done, total)


def build_story_shotlist(scenes: Sequence[ScreenplayScene], visuals: Sequence[VisualAsset]) -> List[ShotlistEntry]:
    by_id = {s.id: s for s in scenes}
    shotlist = []
    for i, visual in enumerate(visuals):
        scene = by_id.get(visual.scene_id)
        shotlist.append(ShotlistEntry(
            id=f"shot_{i}",
            scene_id=visual.scene_id,
            shot_number=i + 1,
            description=scene.action if scene else "",
            dialogue=scene.dialogue[0].text if scene and scene.dialogue else "",
            image_url=visual.url,
        ))
    return shotlist
