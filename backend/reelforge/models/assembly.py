"""
Assembly descriptors handed to the downstream encoder. No media bytes here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CTAMarker:
    text: str
    start_time: float
    duration: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "start_time": self.start_time, "duration": self.duration}


@dataclass
class ChapterMarker:
    id: str
    title: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass
class Beat:
    timestamp: float
    intensity: float

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "intensity": self.intensity}


@dataclass
class BeatMetadata:
    bpm: float
    duration_seconds: float
    beats: List[Beat] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bpm": self.bpm,
            "duration_seconds": self.duration_seconds,
            "beats": [b.to_dict() for b in self.beats],
        }


@dataclass
class AssemblyRules:
    format_id: str
    aspect_ratio: str
    default_transition: str
    transition_duration: float
    cta_marker: Optional[CTAMarker] = None
    chapters: Optional[List[ChapterMarker]] = None
    use_chapter_structure: bool = False
    beat_metadata: Optional[BeatMetadata] = None
    use_beat_sync: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format_id": self.format_id,
            "aspect_ratio": self.aspect_ratio,
            "default_transition": self.default_transition,
            "transition_duration": self.transition_duration,
            "cta_marker": self.cta_marker.to_dict() if self.cta_marker else None,
            "chapters": [c.to_dict() for c in self.chapters] if self.chapters is not None else None,
            "use_chapter_structure": self.use_chapter_structure,
            "beat_metadata": self.beat_metadata.to_dict() if self.beat_metadata else None,
            "use_beat_sync": self.use_beat_sync,
        }


@dataclass
class AssemblyClip:
    id: str
    type: str
    start_time: float
    end_time: float
    asset_url: Optional[str] = None


@dataclass
class GracefulAssemblyResult:
    success: bool
    partial: bool
    assembled_clips: List[AssemblyClip]
    missing_assets: List[str]
    errors: List[str]
