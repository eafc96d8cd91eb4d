"""
Format metadata records.

A registry entry is immutable once built; every downstream component
(checkpoint cap, engine concurrency, aspect ratio, research depth) reads
its behavior from here.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

ASPECT_RATIOS = ("16:9", "9:16", "1:1")


@dataclass(frozen=True)
class DurationRange:
    min_seconds: int
    max_seconds: int

    def contains(self, seconds: float) -> bool:
        return self.min_seconds <= seconds <= self.max_seconds


@dataclass(frozen=True)
class FormatDefaults:
    """Per-format generation defaults consumed by the pipelines."""

    art_style: str = "Cinematic"
    research_depth: Optional[str] = None
    act_range: Tuple[int, int] = (3, 5)
    scene_range: Tuple[int, int] = (3, 8)
    visual_retry_attempts: int = 2
    visual_retry_delay: float = 1.0
    visual_timeout: float = 60.0
    session_prefix: str = "prod"


@dataclass(frozen=True)
class FormatMetadata:
    id: str
    name: str
    description: str
    aspect_ratio: str
    duration_range: DurationRange
    checkpoint_count: int
    concurrency_limit: int
    requires_research: bool
    applicable_genres: Tuple[str, ...] = ()
    supported_languages: Tuple[str, ...] = ("ar", "en")
    deprecated: bool = False
    defaults: FormatDefaults = field(default_factory=FormatDefaults)
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio '{self.aspect_ratio}' for format {self.id}")
        if self.checkpoint_count < 0:
            raise ValueError(f"checkpoint_count must be >= 0 for format {self.id}")
        if self.concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1 for format {self.id}")
        if self.duration_range.min_seconds > self.duration_range.max_seconds:
            raise ValueError(f"Invalid duration range for format {self.id}")
        object.__setattr__(self, "applicable_genres", tuple(self.applicable_genres))
        object.__setattr__(self, "supported_languages", tuple(self.supported_languages))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def supports_genre(self, genre: str) -> bool:
        wanted = genre.strip().lower()
        return any(g.lower() == wanted for g in self.applicable_genres)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "aspect_ratio": self.aspect_ratio,
            "duration_range": {
                "min_seconds": self.duration_range.min_seconds,
                "max_seconds": self.duration_range.max_seconds,
            },
            "checkpoint_count": self.checkpoint_count,
            "concurrency_limit": self.concurrency_limit,
            "requires_research": self.requires_research,
            "applicable_genres": list(self.applicable_genres),
            "supported_languages": list(self.supported_languages),
            "deprecated": self.deprecated,
            "defaults": {
                "art_style": self.defaults.art_style,
                "research_depth": self.defaults.research_depth,
                "act_range": list(self.defaults.act_range),
                "scene_range": list(self.defaults.scene_range),
            },
        }
