"""
Base Format Pipeline

Shared phase machinery for the format pipelines:

    Research -> Script -> Visuals -> Audio -> Assembly

Each concrete pipeline only declares its checkpoint plan and its
format-specific assembly inputs; the phases themselves, session
bookkeeping, cancellation and critical-failure recovery live here.

Exit paths:
- checkpoint rejected / user cancel -> PipelineResult(success=False)
- critical failure without a recovery callback -> CriticalPhaseFailureError
- anything else unexpected -> PipelineResult(success=False), logged
"""

import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

from ...core.constants import resolve_language
from ...core.exceptions import (
    AdapterFailureError,
    CheckpointRejectedError,
    CriticalPhaseFailureError,
    ExecutionNotFoundError,
    PipelineCancelledError,
)
from ...core.logging import LogTimer, LoggerAdapter, get_logger, set_production_id
from ...core.voice_catalog import get_format_voice_for_language
from ...models.assembly import AssemblyClip, AssemblyRules, GracefulAssemblyResult
from ...models.errors import ErrorCode
from ...models.formats import FormatMetadata
from ...models.pipeline import (
    PartialResults,
    PhaseEvent,
    PipelineCallbacks,
    PipelineRequest,
    PipelineResult,
)
from ...models.production import (
    CharacterProfile,
    NarrationSegment,
    ScreenplayScene,
    ShotlistEntry,
    VisualAsset,
)
from ...models.research import ResearchQuery, ResearchResult
from ...models.status import ProductionStep, SourceType
from ...adapters.base import ProductionAdapters
from ..assembly.degradation import assemble_with_graceful_degradation
from ..errors import CriticalFailureHandler, ErrorAggregator
from ..formats.registry import FormatRegistry, get_format_registry
from ..formats.router import FormatPipeline
from ..infrastructure.orchestration.checkpoints import CheckpointSystem
from ..infrastructure.orchestration.execution_engine import (
    ExecutionOptions,
    ParallelExecutionEngine,
    Task,
)
from ..infrastructure.storage.session_store import SessionStore
from ..research.service import ResearchService
from .prompts import ScriptPromptOptions
from .script import (
    DurationCheck,
    ScriptDraft,
    ScriptGenerator,
    act_index_for_scene,
    count_script_words,
    validate_duration_constraint,
)
from .style_guide import build_scene_guide

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov")
REFERENCE_CONTENT_LIMIT = 4000
SESSION_SUFFIX_CHARS = string.digits + string.ascii_lowercase


def new_session_id(prefix: str) -> str:
    """`<prefix>_<epoch-ms>_<6 random base36 chars>`"""
    suffix = "".join(random.choice(SESSION_SUFFIX_CHARS) for _ in range(6))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


@dataclass
class PipelineRun:
    """Mutable context of one pipeline execution."""

    request: PipelineRequest
    metadata: FormatMetadata
    session_id: str
    language: str
    checkpoints: CheckpointSystem
    callbacks: PipelineCallbacks
    aggregator: ErrorAggregator
    failures: CriticalFailureHandler
    logger: LoggerAdapter
    partial: PartialResults = field(default_factory=PartialResults)
    warnings: List[str] = field(default_factory=list)
    cancelled: bool = False
    active_executions: Set[str] = field(default_factory=set)
    duration_check: Optional[DurationCheck] = None

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise PipelineCancelledError()


class BaseFormatPipeline(FormatPipeline):
    """
    Template for the research-to-assembly format pipelines.

    Subclasses set FORMAT_ID and the shotlist defaults and implement `run`,
    calling the phase helpers in canonical order.
    """

    FORMAT_ID: str = ""
    SHOT_CAMERA = "Medium"
    SHOT_MOVEMENT = "Static"
    SHOT_LIGHTING = "Cinematic"

    def __init__(
        self,
        adapters: ProductionAdapters,
        session_store: SessionStore,
        engine: Optional[ParallelExecutionEngine] = None,
        research_service: Optional[ResearchService] = None,
        registry: Optional[FormatRegistry] = None,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.adapters = adapters
        self.session_store = session_store
        self.engine = engine or ParallelExecutionEngine()
        self.research_service = research_service or ResearchService(
            adapters.knowledge,
            engine=self.engine,
            document_reader=adapters.document_reader,
        )
        self.registry = registry or get_format_registry()
        self._logger = logger or get_logger(__name__, component="pipeline", format_id=self.FORMAT_ID)
        self.script_generator = ScriptGenerator(adapters.text, logger=self._logger)

    def get_metadata(self) -> FormatMetadata:
        metadata = self.registry.get_format(self.FORMAT_ID)
        if metadata is None:
            raise ValueError(f"Format {self.FORMAT_ID} is not registered")
        return metadata

    async def run(self, run: PipelineRun) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        request: PipelineRequest,
        callbacks: Optional[PipelineCallbacks] = None,
        checkpoints: Optional[CheckpointSystem] = None,
    ) -> PipelineResult:
        callbacks = callbacks or PipelineCallbacks()
        metadata = self.get_metadata()
        if checkpoints is None:
            checkpoints = CheckpointSystem(
                max_checkpoints=metadata.checkpoint_count,
                on_checkpoint_created=callbacks.on_checkpoint_created,
            )
            if callbacks.on_checkpoint_system_created:
                callbacks.on_checkpoint_system_created(checkpoints)

        language = resolve_language(request.language, request.idea)
        session_id = request.session_id or new_session_id(metadata.defaults.session_prefix)
        set_production_id(session_id)
        logger = self._logger.bind(session_id=session_id)
        aggregator = ErrorAggregator(logger=logger)

        run = PipelineRun(
            request=request,
            metadata=metadata,
            session_id=session_id,
            language=language,
            checkpoints=checkpoints,
            callbacks=callbacks,
            aggregator=aggregator,
            failures=CriticalFailureHandler(callbacks.on_critical_failure, aggregator, logger),
            logger=logger,
        )
        run.partial.session_id = session_id

        if callbacks.on_cancel_requested:
            async def cancel() -> None:
                await self._cancel_run(run)

            callbacks.on_cancel_requested(cancel)

        logger.info("Pipeline started", extra={"language": language})
        try:
            await self._open_session(run)
            await self.run(run)
            self.session_store.update(session_id, current_step=ProductionStep.PRODUCTION)
            logger.info("Pipeline completed", extra={"warnings": len(run.warnings)})
            return PipelineResult(success=True, partial_results=run.partial, warnings=run.warnings)
        except (CheckpointRejectedError, PipelineCancelledError) as e:
            logger.info("Pipeline stopped", extra={"reason": str(e)})
            return PipelineResult(success=False, partial_results=run.partial, error=str(e), warnings=run.warnings)
        except CriticalPhaseFailureError:
            raise
        except Exception as e:
            logger.error("Pipeline failed", extra={"error": str(e)}, exc_info=True)
            return PipelineResult(success=False, partial_results=run.partial, error=str(e), warnings=run.warnings)
        finally:
            run.partial.errors = aggregator.to_list()
            if self.session_store.has(session_id):
                self.session_store.update(
                    session_id,
                    errors=run.partial.errors,
                    checkpoints=[cp.to_dict() for cp in checkpoints.get_all_checkpoints()],
                    partial_success_report=run.partial.partial_success_report,
                )
                self.session_store.flush(session_id)
            checkpoints.dispose()
            set_production_id(None)

    async def _open_session(self, run: PipelineRun) -> None:
        """Reuse the requested session when it exists for this format, else start a fresh one."""
        if run.request.session_id:
            existing = self.session_store.get(run.session_id)
            if existing is None:
                existing = await self.session_store.restore(run.session_id, expected_format=self.FORMAT_ID)
            if existing is not None and existing.format_id in (None, self.FORMAT_ID):
                run.logger.info("Resuming session")
                return
        self.session_store.initialize(
            run.session_id,
            topic=run.request.idea,
            language=run.language,
            format_id=self.FORMAT_ID,
        )

    async def _cancel_run(self, run: PipelineRun) -> None:
        if run.cancelled:
            return
        run.cancelled = True
        run.logger.info("Cancellation requested", extra={"executions": len(run.active_executions)})
        for execution_id in list(run.active_executions):
            try:
                await self.engine.cancel(execution_id)
            except ExecutionNotFoundError:
                pass
        run.checkpoints.dispose()

    # ------------------------------------------------------------------
    # Phase events and checkpoints
    # ------------------------------------------------------------------

    def _emit_phase(self, run: PipelineRun, phase: str, status: str, message: str = "") -> None:
        if not run.callbacks.on_phase:
            return
        try:
            run.callbacks.on_phase(PhaseEvent(phase=phase, status=status, message=message))
        except Exception as e:
            run.logger.error("on_phase callback failed", extra={"phase": phase, "error": str(e)})

    def phase_started(self, run: PipelineRun, phase: str) -> None:
        run.raise_if_cancelled()
        run.logger.info("Phase started", extra={"phase": phase})
        self._emit_phase(run, phase, "started")

    def phase_completed(self, run: PipelineRun, phase: str, message: str = "") -> None:
        run.logger.info("Phase completed", extra={"phase": phase})
        self._emit_phase(run, phase, "completed", message)

    async def checkpoint(self, run: PipelineRun, phase: str, label: str, payload: Dict[str, Any]) -> None:
        """Wait for approval; a rejection ends the run as "<label> rejected by user"."""
        run.raise_if_cancelled()
        approval = await run.checkpoints.create_checkpoint(phase, payload)
        run.raise_if_cancelled()
        if not approval.approved:
            raise CheckpointRejectedError(label, approval.change_request)

    async def run_critical(
        self,
        run: PipelineRun,
        phase: str,
        operation: Callable[[str], Awaitable[Any]],
        value: str,
        code: ErrorCode,
    ) -> Any:
        """
        Run a critical phase, asking the recovery callback what to do on failure.

        Args:
            run: Current pipeline run
            phase: Critical phase name reported in the error record
            operation: Coroutine function taking the (possibly edited) input
            value: Initial input
            code: Error code recorded on failure

        Returns:
            The operation's result once it succeeds
        """
        return await run.failures.run_phase(phase, operation, value, code, check_cancelled=run.raise_if_cancelled)

    # ------------------------------------------------------------------
    # Research
    # ------------------------------------------------------------------

    async def run_research(self, run: PipelineRun, depth: str, max_results: int = 10) -> Optional[ResearchResult]:
        self.phase_started(run, "research")
        cached = self.session_store.get_cached_phase_result(run.session_id, "research")
        if cached:
            result = ResearchResult.from_dict(cached)
            run.logger.info("Using cached research", extra={"sources": len(result.sources)})
        else:
            sources = ["web", "knowledge-base"]
            references = []
            if run.request.reference_documents:
                references = self.research_service.prioritize_references(run.request.reference_documents)
                if references:
                    sources.append("references")
            query = ResearchQuery(
                topic=run.request.idea,
                language=run.language,
                depth=depth,
                sources=sources,
                max_results=max_results,
                reference_documents=references,
            )
            execution_id = f"{run.session_id}-research"
            run.active_executions.add(execution_id)
            try:
                result = await self.research_service.research(query, execution_id=execution_id)
            except Exception as e:
                run.aggregator.add(ErrorCode.RESEARCH_FAILED, str(e), "research", recoverable=True)
                self.phase_completed(run, "research", "Research unavailable")
                return None
            finally:
                run.active_executions.discard(execution_id)
            run.raise_if_cancelled()
            # Only complete research is reused on resume
            if result.partial or not result.sources:
                run.logger.warning(
                    "Research incomplete, not cached",
                    extra={"sources": len(result.sources), "failed_queries": result.failed_queries},
                )
            else:
                self.session_store.cache_phase_result(run.session_id, "research", result.to_dict())

        run.raise_if_cancelled()
        run.partial.research = result
        self.phase_completed(run, "research", f"{len(result.sources)} sources")
        return result

    # ------------------------------------------------------------------
    # Script
    # ------------------------------------------------------------------

    def script_options(self, run: PipelineRun, research: Optional[ResearchResult]) -> ScriptPromptOptions:
        defaults = run.metadata.defaults
        options = ScriptPromptOptions(
            format_id=self.FORMAT_ID,
            genre=run.request.genre,
            language=run.language,
            act_range=defaults.act_range,
            scene_range=defaults.scene_range,
        )
        if research is not None:
            options.research_summary = research.summary
            options.research_citations = "; ".join(c.text for c in research.citations)
            reference_text = "\n\n".join(
                s.content for s in research.sources if s.type == SourceType.REFERENCE
            )
            if reference_text:
                options.reference_content = reference_text[:REFERENCE_CONTENT_LIMIT]
        return options

    async def run_script(self, run: PipelineRun, research: Optional[ResearchResult] = None) -> ScriptDraft:
        self.phase_started(run, "script")
        cached = self.session_store.get_cached_phase_result(run.session_id, "script")
        if cached:
            draft = ScriptDraft.from_dict(cached)
            run.logger.info("Using cached script", extra={"scenes": len(draft.screenplay)})
        else:
            options = self.script_options(run, research)

            async def generate(idea: str) -> ScriptDraft:
                return await self.script_generator.generate(idea, options)

            draft = await self.run_critical(run, "script", generate, run.request.idea, ErrorCode.SCRIPT_FAILED)
            self.session_store.cache_phase_result(run.session_id, "script", draft.to_dict())

        run.warnings.extend(draft.warnings)
        run.duration_check = validate_duration_constraint(count_script_words(draft.screenplay), run.metadata)
        if not run.duration_check.valid:
            run.logger.warning(run.duration_check.message, extra={"phase": "script"})
            run.warnings.append(run.duration_check.message)

        run.partial.breakdown = draft.acts
        run.partial.screenplay = draft.screenplay
        self.session_store.update(
            run.session_id,
            breakdown=draft.breakdown_text(),
            screenplay=draft.screenplay,
            current_step=ProductionStep.SCREENPLAY,
        )
        self.phase_completed(run, "script", f"{len(draft.acts)} acts, {len(draft.screenplay)} scenes")
        return draft

    # ------------------------------------------------------------------
    # Visuals
    # ------------------------------------------------------------------

    def scene_mood(self, draft: ScriptDraft, index: int, default_mood: str) -> str:
        if not draft.acts:
            return default_mood
        act = draft.acts[act_index_for_scene(index, len(draft.screenplay), len(draft.acts))]
        return act.emotional_hook or default_mood

    async def run_visuals(
        self,
        run: PipelineRun,
        draft: ScriptDraft,
        art_style: str,
        default_mood: str,
        characters: Sequence[CharacterProfile] = (),
    ) -> List[VisualAsset]:
        """One visual task per scene; failed scenes are left without a visual."""
        self.phase_started(run, "visuals")
        defaults = run.metadata.defaults
        scenes = draft.screenplay

        def make_runner(index: int, scene: ScreenplayScene):
            async def generate() -> VisualAsset:
                guide = build_scene_guide(scene, art_style, self.scene_mood(draft, index, default_mood), characters)
                url = await self.adapters.image.generate(
                    scene.action,
                    guide,
                    run.metadata.aspect_ratio,
                    run.session_id,
                    index,
                )
                if not url:
                    raise AdapterFailureError(f"No visual returned for {scene.id}", adapter="image")
                if url.lower().endswith(VIDEO_EXTENSIONS):
                    return VisualAsset(scene_id=scene.id, video_url=url, type="video", is_animated=True)
                return VisualAsset(scene_id=scene.id, image_url=url)
            return generate

        tasks = [
            Task(
                id=f"visual_{i}",
                type="visual",
                execute=make_runner(i, scene),
                priority=1,
                retryable=True,
                timeout=defaults.visual_timeout,
            )
            for i, scene in enumerate(scenes)
        ]
        execution_id = f"{run.session_id}-visuals"
        run.active_executions.add(execution_id)
        try:
            results = await self.engine.execute(tasks, ExecutionOptions(
                concurrency_limit=run.metadata.concurrency_limit,
                retry_attempts=defaults.visual_retry_attempts,
                retry_delay=defaults.visual_retry_delay,
                exponential_backoff=True,
                execution_id=execution_id,
            ))
        finally:
            run.active_executions.discard(execution_id)
        run.raise_if_cancelled()

        by_id = {r.task_id: r for r in results}
        visuals = [
            by_id[task.id].data
            for task in tasks
            if task.id in by_id and by_id[task.id].success and by_id[task.id].data is not None
        ]
        run.aggregator.add_task_failures(results, "visuals")
        report = run.aggregator.build_partial_success_report(len(tasks), len(visuals), "visuals")
        if report:
            run.partial.partial_success_report = report
            run.warnings.append(report.message)

        shotlist = self.build_shotlist(scenes, visuals)
        run.partial.visuals = visuals
        run.partial.shotlist = shotlist
        self.session_store.update(
            run.session_id,
            visuals=visuals,
            shotlist=shotlist,
            current_step=ProductionStep.SHOTLIST,
        )
        self.phase_completed(run, "visuals", f"{len(visuals)}/{len(tasks)} visuals")
        return visuals

    def build_shotlist(self, scenes: Sequence[ScreenplayScene], visuals: Sequence[VisualAsset]) -> List[ShotlistEntry]:
        urls = {v.scene_id: v.url for v in visuals}
        return [
            ShotlistEntry(
                id=f"shot_{i}",
                scene_id=scene.id,
                shot_number=i + 1,
                description=scene.action,
                camera_angle=self.SHOT_CAMERA,
                movement=self.SHOT_MOVEMENT,
                lighting=self.SHOT_LIGHTING,
                dialogue=scene.dialogue[0].text if scene.dialogue else "",
                image_url=urls.get(scene.id) or None,
            )
            for i, scene in enumerate(scenes)
        ]

    # ------------------------------------------------------------------
    # Audio
    # ------------------------------------------------------------------

    async def run_audio(self, run: PipelineRun, scenes: Sequence[ScreenplayScene]) -> List[NarrationSegment]:
        self.phase_started(run, "audio")
        voice = get_format_voice_for_language(self.FORMAT_ID, run.language)
        segments: List[NarrationSegment] = []
        for scene in scenes:
            run.raise_if_cancelled()
            try:
                segment = await self.adapters.tts.synthesize(scene, voice)
            except Exception as e:
                run.aggregator.add(ErrorCode.TASK_FAILED, str(e), "audio", task_id=scene.id, recoverable=True)
                continue
            if segment.audio_data:
                handle = self.session_store.save_blob(run.session_id, f"narration-{scene.id}", segment.audio_data)
                if handle:
                    segment.audio_handle = handle
            segments.append(segment)

        run.partial.narration_segments = segments
        self.session_store.update(run.session_id, narration_segments=segments)
        self.phase_completed(run, "audio", f"{len(segments)}/{len(scenes)} segments")
        return segments

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    async def run_assembly(
        self,
        run: PipelineRun,
        build: Callable[[float], AssemblyRules],
        segments: Sequence[NarrationSegment],
    ) -> AssemblyRules:
        """Total duration from narration, then format rules built by `build(total_duration)`."""
        self.phase_started(run, "assembly")
        total_duration = sum(s.audio_duration for s in segments)
        if total_duration <= 0 and run.duration_check is not None:
            total_duration = float(run.duration_check.estimated_seconds)

        async def assemble(_: str) -> AssemblyRules:
            with LogTimer(run.logger, "assembly rules", phase="assembly"):
                return build(total_duration)

        rules = await self.run_critical(run, "assembly", assemble, run.request.idea, ErrorCode.ASSEMBLY_FAILED)
        run.partial.assembly_rules = rules
        run.partial.total_duration = total_duration
        self.check_clip_assets(run, segments)
        self.phase_completed(run, "assembly")
        return rules

    def check_clip_assets(self, run: PipelineRun, segments: Sequence[NarrationSegment]) -> GracefulAssemblyResult:
        """Lay one visual clip per scene along the narration timeline; scenes without a visual are reported."""
        scenes = run.partial.screenplay or []
        visuals = {v.scene_id: v for v in run.partial.visuals or [] if not v.is_placeholder}
        clips = []
        current = 0.0
        for scene, duration in zip(scenes, scene_durations(segments, scenes)):
            visual = visuals.get(scene.id)
            clips.append(AssemblyClip(
                id=scene.id,
                type="visual",
                start_time=current,
                end_time=current + duration,
                asset_url=visual.url if visual else f"scene://{scene.id}",
            ))
            current += duration

        result = assemble_with_graceful_degradation(clips, visuals)
        for message in result.errors:
            run.aggregator.add(ErrorCode.PARTIAL_FAILURE, message, "assembly", recoverable=True)
        if result.missing_assets:
            run.warnings.append(f"{len(result.missing_assets)} of {len(clips)} scenes have no visual")
        return result

    # ------------------------------------------------------------------
    # Checkpoint payloads
    # ------------------------------------------------------------------

    @staticmethod
    def research_payload(research: Optional[ResearchResult]) -> Dict[str, Any]:
        if research is None:
            return {"source_count": 0, "confidence": 0.0, "key_topics": "", "citation_count": 0}
        return {
            "source_count": len(research.sources),
            "confidence": research.confidence,
            "key_topics": research.summary[:200],
            "citation_count": len(research.citations),
        }

    @staticmethod
    def script_payload(draft: ScriptDraft) -> Dict[str, Any]:
        return {
            "scene_count": len(draft.screenplay),
            "scenes": [{"heading": s.heading, "action": s.action[:120]} for s in draft.screenplay],
        }

    @staticmethod
    def visual_payload(visuals: Sequence[VisualAsset], total_scenes: int) -> Dict[str, Any]:
        return {
            "visual_count": len(visuals),
            "total_scenes": total_scenes,
            "visuals": [v.to_dict() for v in visuals],
        }

    @staticmethod
    def assembly_payload(run: PipelineRun) -> Dict[str, Any]:
        partial = run.partial
        return {
            "scene_count": len(partial.screenplay or []),
            "visual_count": len(partial.visuals or []),
            "narration_count": len(partial.narration_segments or []),
            "total_duration": partial.total_duration,
        }


def scene_durations(segments: Sequence[NarrationSegment], scenes: Sequence[ScreenplayScene]) -> List[float]:
    """Narration duration per scene in screenplay order; 0 for scenes without audio."""
    by_scene = {s.scene_id: s.audio_duration for s in segments}
    return [by_scene.get(scene.id, 0.0) for scene in scenes]
