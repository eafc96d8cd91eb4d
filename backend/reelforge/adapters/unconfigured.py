"""
Adapters used when no model backend has been wired in.

Every call fails with AdapterFailureError so misconfiguration surfaces as a
clear error instead of an attribute lookup on None.
"""

from typing import Any, Dict, List, Optional

from ..core.exceptions import AdapterFailureError
from ..core.voice_catalog import FormatVoiceProfile
from ..models.production import NarrationSegment, ScreenplayScene
from ..models.style import StyleGuide
from .base import (
    GroundedKnowledgeAdapter,
    ImageAdapter,
    ProductionAdapters,
    TTSAdapter,
    TextModelAdapter,
)


def _not_configured(name: str) -> AdapterFailureError:
    return AdapterFailureError(f"{name} adapter not configured", adapter=name)


class UnconfiguredImageAdapter(ImageAdapter):
    async def generate(
        self,
        scene_action: str,
        style_guide: StyleGuide,
        aspect_ratio: str,
        session_id: str,
        scene_index: Optional[int] = None,
    ) -> str:
        raise _not_configured("image")


class UnconfiguredTextModelAdapter(TextModelAdapter):
    async def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> Any:
        raise _not_configured("text")


class UnconfiguredKnowledgeAdapter(GroundedKnowledgeAdapter):
    async def search(self, sub_query: str, language: str, source_type: str) -> List[Any]:
        raise _not_configured("knowledge")


class UnconfiguredTTSAdapter(TTSAdapter):
    async def synthesize(self, scene: ScreenplayScene, voice: FormatVoiceProfile) -> NarrationSegment:
        raise _not_configured("tts")


def unconfigured_adapters() -> ProductionAdapters:
    from ..services.research.documents import DocumentReader

    return ProductionAdapters(
        image=UnconfiguredImageAdapter(),
        text=UnconfiguredTextModelAdapter(),
        knowledge=UnconfiguredKnowledgeAdapter(),
        tts=UnconfiguredTTSAdapter(),
        document_reader=DocumentReader(),
    )
