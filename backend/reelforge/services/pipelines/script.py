"""
Script generation - two structured text-model calls (breakdown, then
screenplay) plus the repairs and checks applied before a script is stored.

Dialogue repair: a speaker longer than 4 words or 30 characters is not a
name, so the line is re-attributed to the Narrator and its content kept.
Empty dialogue lines are dropped.
"""

import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...adapters.base import TextModelAdapter
from ...config import WORDS_PER_SECOND
from ...core.exceptions import AdapterFailureError
from ...core.logging import LoggerAdapter, get_logger
from ...models.formats import FormatMetadata
from ...models.production import (
    MAX_SPEAKER_CHARS,
    MAX_SPEAKER_WORDS,
    NARRATOR,
    BreakdownAct,
    CharacterProfile,
    DialogueLine,
    ScreenplayScene,
)
from ..infrastructure.parsing import coerce_structured
from .prompts import (
    ScriptPromptOptions,
    build_breakdown_prompt,
    build_character_prompt,
    build_screenplay_prompt,
)

MIN_RESCUED_TEXT = 5


# =============================================================================
# SCHEMAS
# =============================================================================

def breakdown_schema(act_range: Tuple[int, int], with_chapters: bool = False) -> Dict[str, Any]:
    act_properties = {
        "title": {"type": "string"},
        "emotional_hook": {"type": "string"},
        "narrative_beat": {"type": "string"},
    }
    required = ["title", "emotional_hook", "narrative_beat"]
    if with_chapters:
        act_properties["chapter_title"] = {"type": "string"}
        required.append("chapter_title")
    return {
        "type": "object",
        "properties": {
            "acts": {
                "type": "array",
                "minItems": act_range[0],
                "maxItems": act_range[1],
                "items": {"type": "object", "properties": act_properties, "required": required},
            },
        },
        "required": ["acts"],
    }


def screenplay_schema(scene_range: Tuple[int, int]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "scenes": {
                "type": "array",
                "minItems": scene_range[0],
                "maxItems": scene_range[1],
                "items": {
                    "type": "object",
                    "properties": {
                        "heading": {"type": "string"},
                        "action": {"type": "string"},
                        "dialogue": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "speaker": {"type": "string", "maxLength": MAX_SPEAKER_CHARS},
                                    "text": {"type": "string", "minLength": 1},
                                },
                                "required": ["speaker", "text"],
                            },
                        },
                    },
                    "required": ["heading", "action", "dialogue"],
                },
            },
        },
        "required": ["scenes"],
    }


CHARACTER_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "characters": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "role": {"type": "string"},
                    "visual_description": {"type": "string"},
                    "facial_tags": {"type": "string"},
                },
                "required": ["name", "role", "visual_description"],
            },
        },
    },
    "required": ["characters"],
}


# =============================================================================
# REPAIR AND CHECKS
# =============================================================================

def is_valid_speaker(speaker: str) -> bool:
    speaker = speaker.strip()
    return len(speaker) <= MAX_SPEAKER_CHARS and len(speaker.split()) <= MAX_SPEAKER_WORDS


def repair_dialogue_line(raw: Dict[str, Any]) -> Optional[DialogueLine]:
    """Return the stored form of a dialogue line, or None when it has nothing to say."""
    speaker = str(raw.get("speaker") or "").strip()
    text = str(raw.get("text") or "").strip()

    if not is_valid_speaker(speaker):
        rescued = text if len(text) > MIN_RESCUED_TEXT else speaker
        return DialogueLine(speaker=NARRATOR, text=rescued)
    if not text:
        return None
    return DialogueLine(speaker=speaker or NARRATOR, text=text)


def build_scenes(raw_scenes: Sequence[Dict[str, Any]]) -> List[ScreenplayScene]:
    scenes = []
    for i, raw in enumerate(raw_scenes):
        dialogue = []
        for line in raw.get("dialogue") or []:
            if not isinstance(line, dict):
                continue
            repaired = repair_dialogue_line(line)
            if repaired is not None:
                dialogue.append(repaired)
        scenes.append(ScreenplayScene(
            id=f"scene_{i}",
            scene_number=i + 1,
            heading=str(raw.get("heading") or ""),
            action=str(raw.get("action") or ""),
            dialogue=dialogue,
        ))
    return scenes


def count_script_words(scenes: Sequence[ScreenplayScene]) -> int:
    """Words across all scenes, action plus dialogue."""
    total = 0
    for scene in scenes:
        total += len(scene.action.split())
        total += sum(len(line.text.split()) for line in scene.dialogue)
    return total


def estimate_duration_seconds(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_SECOND)


def _minutes(seconds: float) -> int:
    return int(math.floor(seconds / 60 + 0.5))


@dataclass
class DurationCheck:
    valid: bool
    estimated_seconds: int
    message: Optional[str] = None


def validate_duration_constraint(word_count: int, metadata: FormatMetadata) -> DurationCheck:
    estimated = estimate_duration_seconds(word_count)
    low = metadata.duration_range.min_seconds
    high = metadata.duration_range.max_seconds

    if estimated < low:
        return DurationCheck(
            valid=False,
            estimated_seconds=estimated,
            message=(
                f"Script too short: ~{_minutes(estimated)} min estimated, "
                f'minimum is {_minutes(low)} min for "{metadata.name}"'
            ),
        )
    if estimated > high:
        return DurationCheck(
            valid=False,
            estimated_seconds=estimated,
            message=(
                f"Script too long: ~{_minutes(estimated)} min estimated, "
                f'maximum is {_minutes(high)} min for "{metadata.name}"'
            ),
        )
    return DurationCheck(valid=True, estimated_seconds=estimated)


def act_index_for_scene(scene_index: int, scene_count: int, act_count: int) -> int:
    """Proportional scene-to-act mapping."""
    if act_count <= 0 or scene_count <= 0:
        return 0
    return min(act_count - 1, scene_index * act_count // scene_count)


# =============================================================================
# GENERATOR
# =============================================================================

@dataclass
class ScriptDraft:
    acts: List[BreakdownAct]
    screenplay: List[ScreenplayScene]
    warnings: List[str] = field(default_factory=list)

    def breakdown_text(self) -> str:
        return "\n".join(
            f"{act.chapter_title or act.title}: {act.narrative_beat}" for act in self.acts
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "acts": [a.to_dict() for a in self.acts],
            "screenplay": [s.to_dict() for s in self.screenplay],
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScriptDraft":
        return cls(
            acts=[BreakdownAct.from_dict(a) for a in data.get("acts", [])],
            screenplay=[ScreenplayScene.from_dict(s) for s in data.get("screenplay", [])],
            warnings=list(data.get("warnings", [])),
        )


def _items(output: Any, key: str) -> List[Dict[str, Any]]:
    data = coerce_structured(output)
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


class ScriptGenerator:
    """Breakdown, screenplay and character extraction over a text-model adapter."""

    def __init__(self, text: TextModelAdapter, logger: Optional[LoggerAdapter] = None):
        self.text = text
        self._logger = logger or get_logger(__name__, component="script_generation")

    def _enforce_range(self, items: list, bounds: Tuple[int, int], label: str, warnings: List[str]) -> list:
        low, high = bounds
        if len(items) > high:
            message = f"Model returned {len(items)} {label}, truncated to {high}"
            self._logger.warning(message, extra={"count": len(items), "maximum": high})
            warnings.append(message)
            return items[:high]
        if len(items) < low:
            message = f"Model returned {len(items)} {label}, expected at least {low}"
            self._logger.warning(message, extra={"count": len(items), "minimum": low})
            warnings.append(message)
        return items

    async def generate_breakdown(
        self,
        idea: str,
        options: ScriptPromptOptions,
        warnings: Optional[List[str]] = None,
    ) -> List[BreakdownAct]:
        warnings = warnings if warnings is not None else []
        with_chapters = options.format_id == "documentary"
        output = await self.text.generate_structured(
            build_breakdown_prompt(idea, options),
            breakdown_schema(options.act_range, with_chapters=with_chapters),
        )
        acts = [BreakdownAct.from_dict(raw) for raw in _items(output, "acts")]
        if not acts:
            raise AdapterFailureError("Breakdown returned no acts", adapter="text")
        return self._enforce_range(acts, options.act_range, "acts", warnings)

    async def generate_screenplay(
        self,
        acts: Sequence[BreakdownAct],
        options: ScriptPromptOptions,
        warnings: Optional[List[str]] = None,
    ) -> List[ScreenplayScene]:
        warnings = warnings if warnings is not None else []
        output = await self.text.generate_structured(
            build_screenplay_prompt(acts, options),
            screenplay_schema(options.scene_range),
        )
        raw_scenes = self._enforce_range(_items(output, "scenes"), options.scene_range, "scenes", warnings)
        if not raw_scenes:
            raise AdapterFailureError("Screenplay returned no scenes", adapter="text")
        return build_scenes(raw_scenes)

    async def generate(self, idea: str, options: ScriptPromptOptions) -> ScriptDraft:
        warnings: List[str] = []
        acts = await self.generate_breakdown(idea, options, warnings)
        screenplay = await self.generate_screenplay(acts, options, warnings)
        self._logger.info(
            "Script generated",
            extra={"format_id": options.format_id, "acts": len(acts), "scenes": len(screenplay)},
        )
        return ScriptDraft(acts=acts, screenplay=screenplay, warnings=warnings)

    async def extract_characters(self, scenes: Sequence[ScreenplayScene]) -> List[CharacterProfile]:
        output = await self.text.generate_structured(build_character_prompt(scenes), CHARACTER_SCHEMA)
        stamp = int(time.time() * 1000)
        characters = []
        for i, raw in enumerate(_items(output, "characters")):
            name = str(raw.get("name") or "").strip()
            if not name:
                continue
            characters.append(CharacterProfile(
                id=f"char_{stamp}_{i}",
                name=name,
                role=str(raw.get("role") or "supporting"),
                visual_description=str(raw.get("visual_description") or ""),
                facial_tags=raw.get("facial_tags") or None,
            ))
        self._logger.info("Characters extracted", extra={"count": len(characters)})
        return characters


def assign_characters_present(scenes: Sequence[ScreenplayScene], characters: Sequence[CharacterProfile]) -> None:
    """A character is present when they speak in the scene or are named in its action."""
    names = [c.name for c in characters]
    for scene in scenes:
        present = []
        speakers = {line.speaker.lower() for line in scene.dialogue}
        action = scene.action.lower()
        for name in names:
            lowered = name.lower()
            if lowered in speakers or lowered in action:
                present.append(name)
        scene.characters_present = present
