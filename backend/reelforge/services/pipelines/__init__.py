"""
Format pipelines and the default router wiring.
"""

from typing import Optional

from ...adapters.base import ProductionAdapters
from ..formats.registry import FormatRegistry
from ..formats.router import FormatRouter
from ..infrastructure.orchestration.execution_engine import ParallelExecutionEngine
from ..infrastructure.storage.session_store import SessionStore, StorySessionStore
from ..research.service import ResearchService
from .advertisement import AdvertisementPipeline
from .base import BaseFormatPipeline, PipelineRun, new_session_id
from .documentary import DocumentaryPipeline
from .movie_animation import MovieAnimationPipeline
from .music_video import MusicVideoPipeline
from .news_politics import NewsPoliticsPipeline
from .shorts import ShortsPipeline
from .story import StoryPipeline, StoryPipelineOptions, StoryPipelineResult, StoryProgress, estimate_pipeline_tokens
from .youtube_narrator import YouTubeNarratorPipeline

PIPELINE_CLASSES = (
    YouTubeNarratorPipeline,
    DocumentaryPipeline,
    AdvertisementPipeline,
    ShortsPipeline,
    MusicVideoPipeline,
    NewsPoliticsPipeline,
)


def build_default_router(
    adapters: ProductionAdapters,
    session_store: SessionStore,
    story_store: StorySessionStore,
    engine: Optional[ParallelExecutionEngine] = None,
    registry: Optional[FormatRegistry] = None,
) -> FormatRouter:
    """Router with every built-in pipeline registered. `educational` has metadata but no pipeline."""
    router = FormatRouter(registry=registry)
    engine = engine or ParallelExecutionEngine()
    research = ResearchService(adapters.knowledge, engine=engine, document_reader=adapters.document_reader)
    for pipeline_class in PIPELINE_CLASSES:
        router.register(
            pipeline_class.FORMAT_ID,
            pipeline_class(
                adapters,
                session_store,
                engine=engine,
                research_service=research,
                registry=router.registry,
            ),
        )
    router.register(
        MovieAnimationPipeline.FORMAT_ID,
        MovieAnimationPipeline(adapters, story_store, engine=engine, registry=router.registry),
    )
    return router


__all__ = [
    "build_default_router",
    "BaseFormatPipeline",
    "PipelineRun",
    "new_session_id",
    "AdvertisementPipeline",
    "DocumentaryPipeline",
    "MovieAnimationPipeline",
    "MusicVideoPipeline",
    "NewsPoliticsPipeline",
    "ShortsPipeline",
    "YouTubeNarratorPipeline",
    "StoryPipeline",
    "StoryPipelineOptions",
    "StoryPipelineResult",
    "StoryProgress",
    "estimate_pipeline_tokens",
]
