"""
Production domain records: screenplay, characters, assets and session state.

Session state is persisted as JSON; binary payloads (audio bytes, cached
image bytes) are never written with the record and always come back absent.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .status import ProductionStep

NARRATOR = "Narrator"
MAX_SPEAKER_CHARS = 30
MAX_SPEAKER_WORDS = 4


@dataclass
class DialogueLine:
    speaker: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"speaker": self.speaker, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DialogueLine":
        return cls(speaker=str(data.get("speaker", "")), text=str(data.get("text", "")))


@dataclass
class BreakdownAct:
    title: str
    emotional_hook: str
    narrative_beat: str
    chapter_title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "title": self.title,
            "emotional_hook": self.emotional_hook,
            "narrative_beat": self.narrative_beat,
        }
        if self.chapter_title:
            data["chapter_title"] = self.chapter_title
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BreakdownAct":
        return cls(
            title=data.get("title", ""),
            emotional_hook=data.get("emotional_hook", ""),
            narrative_beat=data.get("narrative_beat", ""),
            chapter_title=data.get("chapter_title"),
        )


@dataclass
class ScreenplayScene:
    id: str
    scene_number: int
    heading: str
    action: str
    dialogue: List[DialogueLine] = field(default_factory=list)
    characters_present: List[str] = field(default_factory=list)

    def narration_text(self) -> str:
        """Action followed by the spoken lines, as fed to the narrator."""
        parts = [self.action.strip()]
        parts.extend(line.text.strip() for line in self.dialogue if line.text.strip())
        return " ".join(p for p in parts if p)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scene_number": self.scene_number,
            "heading": self.heading,
            "action": self.action,
            "dialogue": [line.to_dict() for line in self.dialogue],
            "characters_present": list(self.characters_present),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScreenplayScene":
        return cls(
            id=data["id"],
            scene_number=int(data.get("scene_number", 0)),
            heading=data.get("heading", ""),
            action=data.get("action", ""),
            dialogue=[DialogueLine.from_dict(d) for d in data.get("dialogue", [])],
            characters_present=list(data.get("characters_present", [])),
        )


@dataclass
class CharacterProfile:
    id: str
    name: str
    role: str
    visual_description: str
    facial_tags: Optional[str] = None
    reference_image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "visual_description": self.visual_description,
            "facial_tags": self.facial_tags,
            "reference_image_url": self.reference_image_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CharacterProfile":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            role=data.get("role", ""),
            visual_description=data.get("visual_description", ""),
            facial_tags=data.get("facial_tags"),
            reference_image_url=data.get("reference_image_url"),
        )


@dataclass
class NarrationSegment:
    scene_id: str
    audio_duration: float
    transcript: str
    audio_handle: Optional[str] = None
    audio_data: Optional[bytes] = None

    def __post_init__(self) -> None:
        if self.audio_duration <= 0:
            raise ValueError(f"Narration for {self.scene_id} must have a positive duration")

    def to_dict(self, include_binary: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "scene_id": self.scene_id,
            "audio_duration": self.audio_duration,
            "transcript": self.transcript,
            "audio_handle": self.audio_handle,
        }
        if include_binary:
            data["audio_data"] = self.audio_data
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NarrationSegment":
        return cls(
            scene_id=data["scene_id"],
            audio_duration=float(data["audio_duration"]),
            transcript=data.get("transcript", ""),
            audio_handle=data.get("audio_handle"),
        )


@dataclass
class VisualAsset:
    scene_id: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    type: str = "image"
    is_animated: bool = False
    is_placeholder: bool = False
    cached_blob: Optional[bytes] = None

    @property
    def url(self) -> str:
        return self.video_url or self.image_url or ""

    @classmethod
    def placeholder(cls, scene_id: str) -> "VisualAsset":
        return cls(scene_id=scene_id, image_url="", is_placeholder=True)

    def to_dict(self, include_binary: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "scene_id": self.scene_id,
            "image_url": self.image_url,
            "video_url": self.video_url,
            "type": self.type,
            "is_animated": self.is_animated,
            "is_placeholder": self.is_placeholder,
        }
        if include_binary:
            data["cached_blob"] = self.cached_blob
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisualAsset":
        return cls(
            scene_id=data["scene_id"],
            image_url=data.get("image_url"),
            video_url=data.get("video_url"),
            type=data.get("type", "image"),
            is_animated=bool(data.get("is_animated", False)),
            is_placeholder=bool(data.get("is_placeholder", False)),
        )


@dataclass
class ShotlistEntry:
    id: str
    scene_id: str
    shot_number: int
    description: str
    camera_angle: str = "Medium"
    movement: str = "Static"
    lighting: str = "Cinematic"
    dialogue: str = ""
    image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scene_id": self.scene_id,
            "shot_number": self.shot_number,
            "description": self.description,
            "camera_angle": self.camera_angle,
            "movement": self.movement,
            "lighting": self.lighting,
            "dialogue": self.dialogue,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShotlistEntry":
        return cls(
            id=data["id"],
            scene_id=data.get("scene_id", ""),
            shot_number=int(data.get("shot_number", 0)),
            description=data.get("description", ""),
            camera_angle=data.get("camera_angle", "Medium"),
            movement=data.get("movement", "Static"),
            lighting=data.get("lighting", "Cinematic"),
            dialogue=data.get("dialogue", ""),
            image_url=data.get("image_url"),
        )


@dataclass
class PartialSuccessReport:
    phase: str
    total: int
    succeeded: int
    failed: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PartialSuccessReport":
        return cls(
            phase=data.get("phase", ""),
            total=int(data.get("total", 0)),
            succeeded=int(data.get("succeeded", 0)),
            failed=int(data.get("failed", 0)),
            message=data.get("message", ""),
        )


def _step(value: Any) -> ProductionStep:
    try:
        return ProductionStep(value)
    except ValueError:
        return ProductionStep.BREAKDOWN


@dataclass
class ProductionSessionState:
    id: str
    topic: str
    language: Optional[str] = None
    format_id: Optional[str] = None
    breakdown: Optional[str] = None
    screenplay: List[ScreenplayScene] = field(default_factory=list)
    characters: List[CharacterProfile] = field(default_factory=list)
    shotlist: List[ShotlistEntry] = field(default_factory=list)
    narration_segments: List[NarrationSegment] = field(default_factory=list)
    visuals: List[VisualAsset] = field(default_factory=list)
    current_step: ProductionStep = ProductionStep.BREAKDOWN
    updated_at: float = field(default_factory=time.time)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    partial_success_report: Optional[PartialSuccessReport] = None
    checkpoints: List[Dict[str, Any]] = field(default_factory=list)
    phase_results: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return self.current_step == ProductionStep.PRODUCTION

    def to_dict(self, include_binary: bool = False) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "language": self.language,
            "format_id": self.format_id,
            "breakdown": self.breakdown,
            "screenplay": [s.to_dict() for s in self.screenplay],
            "characters": [c.to_dict() for c in self.characters],
            "shotlist": [s.to_dict() for s in self.shotlist],
            "narration_segments": [n.to_dict(include_binary) for n in self.narration_segments],
            "visuals": [v.to_dict(include_binary) for v in self.visuals],
            "current_step": self.current_step.value,
            "updated_at": self.updated_at,
            "errors": list(self.errors),
            "partial_success_report": (
                self.partial_success_report.to_dict() if self.partial_success_report else None
            ),
            "checkpoints": list(self.checkpoints),
            "phase_results": dict(self.phase_results),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductionSessionState":
        report = data.get("partial_success_report")
        return cls(
            id=data["id"],
            topic=data.get("topic", ""),
            language=data.get("language"),
            format_id=data.get("format_id"),
            breakdown=data.get("breakdown"),
            screenplay=[ScreenplayScene.from_dict(s) for s in data.get("screenplay", [])],
            characters=[CharacterProfile.from_dict(c) for c in data.get("characters", [])],
            shotlist=[ShotlistEntry.from_dict(s) for s in data.get("shotlist", [])],
            narration_segments=[NarrationSegment.from_dict(n) for n in data.get("narration_segments", [])],
            visuals=[VisualAsset.from_dict(v) for v in data.get("visuals", [])],
            current_step=_step(data.get("current_step")),
            updated_at=float(data.get("updated_at", time.time())),
            errors=list(data.get("errors", [])),
            partial_success_report=PartialSuccessReport.from_dict(report) if report else None,
            checkpoints=list(data.get("checkpoints", [])),
            phase_results=dict(data.get("phase_results", {})),
        )


@dataclass
class StoryModeState:
    id: str
    topic: str
    breakdown: str = ""
    screenplay: List[ScreenplayScene] = field(default_factory=list)
    characters: List[CharacterProfile] = field(default_factory=list)
    shotlist: List[ShotlistEntry] = field(default_factory=list)
    current_step: ProductionStep = ProductionStep.BREAKDOWN
    updated_at: float = field(default_factory=time.time)
    format_id: Optional[str] = None
    language: Optional[str] = None
    phase_results: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return self.current_step in (ProductionStep.SHOTLIST, ProductionStep.PRODUCTION)

    def to_dict(self, include_binary: bool = False) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "breakdown": self.breakdown,
            "screenplay": [s.to_dict() for s in self.screenplay],
            "characters": [c.to_dict() for c in self.characters],
            "shotlist": [s.to_dict() for s in self.shotlist],
            "current_step": self.current_step.value,
            "updated_at": self.updated_at,
            "format_id": self.format_id,
            "language": self.language,
            "phase_results": dict(self.phase_results),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryModeState":
        return cls(
            id=data["id"],
            topic=data.get("topic", ""),
            breakdown=data.get("breakdown", ""),
            screenplay=[ScreenplayScene.from_dict(s) for s in data.get("screenplay", [])],
            characters=[CharacterProfile.from_dict(c) for c in data.get("characters", [])],
            shotlist=[ShotlistEntry.from_dict(s) for s in data.get("shotlist", [])],
            current_step=_step(data.get("current_step")),
            updated_at=float(data.get("updated_at", time.time())),
            format_id=data.get("format_id"),
            language=data.get("language"),
            phase_results=dict(data.get("phase_results", {})),
        )


@dataclass
class SessionMetadata:
    session_id: str
    created_at: float
    updated_at: float
    topic: str
    scene_count: int
    is_complete: bool
    format_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "topic": self.topic,
            "scene_count": self.scene_count,
            "is_complete": self.is_complete,
            "format_id": self.format_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionMetadata":
        return cls(
            session_id=data["session_id"],
            created_at=float(data.get("created_at", 0.0)),
            updated_at=float(data.get("updated_at", 0.0)),
            topic=data.get("topic", ""),
            scene_count=int(data.get("scene_count", 0)),
            is_complete=bool(data.get("is_complete", False)),
            format_id=data.get("format_id"),
        )
