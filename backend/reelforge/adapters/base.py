"""
Base classes for generation adapters

Defines the interfaces the production core consumes. Concrete model
backends (LLM, TTS, image/video, grounded search) live outside this
package and are injected at construction time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.voice_catalog import FormatVoiceProfile
from ..models.production import NarrationSegment, ScreenplayScene
from ..models.research import Source
from ..models.style import StyleGuide


class ImageAdapter(ABC):
    """Produces one still image or short clip per scene."""

    @abstractmethod
    async def generate(
        self,
        scene_action: str,
        style_guide: StyleGuide,
        aspect_ratio: str,
        session_id: str,
        scene_index: Optional[int] = None,
    ) -> str:
        """Generate a visual for a scene

        Args:
            scene_action: The scene's action line
            style_guide: Typed style configuration for the visual
            aspect_ratio: One of "16:9", "9:16", "1:1"
            session_id: Owning session, used for asset naming upstream
            scene_index: Position of the scene, if known

        Returns:
            URL of the generated image or video
        """
        pass


class TextModelAdapter(ABC):
    """Structured text generation."""

    @abstractmethod
    async def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> Any:
        """Generate output matching a JSON schema

        Args:
            prompt: The full prompt text
            schema: JSON schema describing the expected output

        Returns:
            Parsed object (dict or list), or raw JSON text
        """
        pass


class GroundedKnowledgeAdapter(ABC):
    """Answers a research sub-query with grounded sources."""

    @abstractmethod
    async def search(self, sub_query: str, language: str, source_type: str) -> List[Union[Source, Dict[str, Any]]]:
        """Run one grounded sub-query

        Args:
            sub_query: Topic plus one research aspect
            language: Query language code
            source_type: "web" or "knowledge-base"

        Returns:
            Sources as records or plain dicts
        """
        pass


class TTSAdapter(ABC):
    """Synthesizes narration for one scene."""

    @abstractmethod
    async def synthesize(self, scene: ScreenplayScene, voice: FormatVoiceProfile) -> NarrationSegment:
        pass


class ReferenceDocumentReader(ABC):
    """Extracts plain text from an uploaded document."""

    @abstractmethod
    def read(self, path: Union[str, Path]) -> str:
        """Return the document text. Raises UnsupportedDocumentFormatError for unknown types."""
        pass


@dataclass
class ProductionAdapters:
    """Bundle of adapters injected into pipelines and the research service."""

    image: ImageAdapter
    text: TextModelAdapter
    knowledge: GroundedKnowledgeAdapter
    tts: TTSAdapter
    document_reader: Optional[ReferenceDocumentReader] = None
    extra: Dict[str, Any] = field(default_factory=dict)
