"""
Movie/Animation pipeline - adapts the story pipeline to the format router.
"""

from typing import Optional

from ...core.constants import resolve_language
from ...core.exceptions import ExecutionNotFoundError
from ...core.logging import LoggerAdapter, get_logger, set_production_id
from ...models.formats import FormatMetadata
from ...models.pipeline import PartialResults, PhaseEvent, PipelineCallbacks, PipelineRequest, PipelineResult
from ...adapters.base import ProductionAdapters
from ..errors import CriticalFailureHandler, ErrorAggregator
from ..formats.registry import FormatRegistry, get_format_registry
from ..formats.router import FormatPipeline
from ..infrastructure.orchestration.checkpoints import CheckpointSystem
from ..infrastructure.orchestration.execution_engine import ParallelExecutionEngine
from ..infrastructure.storage.session_store import StorySessionStore
from .base import new_session_id
from .story import STORY_FORMAT_ID, StoryPipeline, StoryPipelineOptions, StoryProgress, story_visuals_execution_id


class MovieAnimationPipeline(FormatPipeline):
    FORMAT_ID = STORY_FORMAT_ID

    def __init__(
        self,
        adapters: ProductionAdapters,
        story_store: StorySessionStore,
        engine: Optional[ParallelExecutionEngine] = None,
        story_pipeline: Optional[StoryPipeline] = None,
        registry: Optional[FormatRegistry] = None,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.story_store = story_store
        self.registry = registry or get_format_registry()
        self._logger = logger or get_logger(__name__, component="pipeline", format_id=self.FORMAT_ID)
        self.story_pipeline = story_pipeline or StoryPipeline(adapters, story_store, engine=engine, logger=self._logger)

    def get_metadata(self) -> FormatMetadata:
        return self.registry.get_format(self.FORMAT_ID)

    async def execute(
        self,
        request: PipelineRequest,
        callbacks: Optional[PipelineCallbacks] = None,
        checkpoints: Optional[CheckpointSystem] = None,
    ) -> PipelineResult:
        callbacks = callbacks or PipelineCallbacks()
        metadata = self.get_metadata()
        owns_checkpoints = checkpoints is None
        if checkpoints is None:
            checkpoints = CheckpointSystem(max_checkpoints=metadata.checkpoint_count)

        language = resolve_language(request.language, request.idea)
        session_id = request.session_id or new_session_id(metadata.defaults.session_prefix)
        set_production_id(session_id)
        logger = self._logger.bind(session_id=session_id)
        aggregator = ErrorAggregator(logger=logger)
        cancelled = []

        if callbacks.on_cancel_requested:
            async def cancel() -> None:
                cancelled.append(True)
                try:
                    await self.story_pipeline.engine.cancel(story_visuals_execution_id(session_id))
                except ExecutionNotFoundError:
                    pass
                checkpoints.dispose()

            callbacks.on_cancel_requested(cancel)

        def on_progress(progress: StoryProgress) -> None:
            logger.info(
                f"[{progress.stage}] {progress.message}",
                extra={"stage": progress.stage, "progress": progress.progress},
            )
            if callbacks.on_phase and progress.current_step in (None, 0):
                callbacks.on_phase(PhaseEvent(phase=progress.stage, status="started", message=progress.message))

        options = StoryPipelineOptions(
            topic=request.idea,
            session_id=session_id,
            visual_style=metadata.defaults.art_style,
            language=language,
            genre=request.genre,
            aspect_ratio=metadata.aspect_ratio,
            act_range=metadata.defaults.act_range,
            scene_range=metadata.defaults.scene_range,
            concurrency_limit=metadata.concurrency_limit,
            on_progress=on_progress,
            is_cancelled=lambda: bool(cancelled),
            failures=CriticalFailureHandler(callbacks.on_critical_failure, aggregator, logger),
        )

        try:
            result = await self.story_pipeline.run(options)
        finally:
            if owns_checkpoints:
                checkpoints.dispose()
            set_production_id(None)

        partial = PartialResults(session_id=result.session_id)
        partial.errors = aggregator.to_list()
        state = self.story_store.get(result.session_id)
        if state is not None:
            partial.screenplay = state.screenplay
            partial.characters = state.characters
            partial.shotlist = state.shotlist

        if not result.success:
            return PipelineResult(success=False, partial_results=partial, error=result.error, warnings=result.warnings)

        logger.info(
            "Movie/Animation pipeline completed",
            extra={
                "acts": result.act_count,
                "scenes": result.scene_count,
                "characters": result.character_count,
                "visuals": result.visual_count,
            },
        )
        return PipelineResult(success=True, partial_results=partial, warnings=result.warnings)
