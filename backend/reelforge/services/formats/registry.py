"""
Format registry - immutable metadata for every supported video format.

Each entry fixes the aspect ratio, duration range, checkpoint cap and engine
concurrency of a format, plus the generation defaults its pipeline uses.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional

from ...core.logging import get_logger
from ...models.formats import DurationRange, FormatDefaults, FormatMetadata

logger = get_logger(__name__, component="format_registry")


_DEFAULT_FORMATS: List[FormatMetadata] = [
    FormatMetadata(
        id="youtube-narrator",
        name="YouTube Narrator",
        description="Conversational long-form content with B-roll visuals and research-backed narration",
        aspect_ratio="16:9",
        duration_range=DurationRange(480, 1500),
        checkpoint_count=3,
        concurrency_limit=5,
        requires_research=True,
        applicable_genres=(
            "Educational", "Documentary", "Commentary", "Review", "Tutorial",
            "Explainer", "History", "Science", "Technology",
        ),
        defaults=FormatDefaults(
            art_style="B-roll Documentary",
            research_depth="medium",
            act_range=(3, 5),
            scene_range=(3, 8),
            session_prefix="yt",
        ),
    ),
    FormatMetadata(
        id="advertisement",
        name="Advertisement",
        description="Short, high-impact promotional videos with clear call-to-action",
        aspect_ratio="16:9",
        duration_range=DurationRange(15, 60),
        checkpoint_count=2,
        concurrency_limit=3,
        requires_research=False,
        applicable_genres=(
            "Product Launch", "Brand Story", "Service Promotion", "App Demo",
            "Event Announcement", "Sale/Offer", "Testimonial",
        ),
        defaults=FormatDefaults(
            art_style="High-Impact Commercial",
            act_range=(2, 4),
            scene_range=(2, 5),
            session_prefix="ad",
        ),
    ),
    FormatMetadata(
        id="movie-animation",
        name="Movie/Animation",
        description="Cinematic storytelling with character-driven narratives and visual consistency",
        aspect_ratio="16:9",
        duration_range=DurationRange(300, 1800),
        checkpoint_count=4,
        concurrency_limit=4,
        requires_research=False,
        applicable_genres=(
            "Drama", "Comedy", "Thriller", "Horror", "Sci-Fi",
            "Fantasy", "Romance", "Action", "Mystery", "Adventure",
        ),
        defaults=FormatDefaults(
            art_style="Cinematic",
            act_range=(3, 5),
            scene_range=(3, 8),
            session_prefix="story",
        ),
    ),
    FormatMetadata(
        id="educational",
        name="Educational Tutorial",
        description="Structured learning content with visual aids, diagrams, and clear explanations",
        aspect_ratio="16:9",
        duration_range=DurationRange(300, 1200),
        checkpoint_count=3,
        concurrency_limit=4,
        requires_research=True,
        applicable_genres=(
            "Math", "Science", "Language", "Programming", "Business",
            "Art", "Music", "History", "Health", "Skills Training",
        ),
        defaults=FormatDefaults(
            art_style="Educational Illustration",
            research_depth="medium",
            act_range=(3, 6),
            scene_range=(3, 10),
            session_prefix="edu",
        ),
    ),
    FormatMetadata(
        id="shorts",
        name="Shorts/Reels",
        description="Vertical short-form content optimized for mobile with hook-first engagement",
        aspect_ratio="9:16",
        duration_range=DurationRange(15, 60),
        checkpoint_count=2,
        concurrency_limit=3,
        requires_research=False,
        applicable_genres=(
            "Comedy", "Life Hack", "Quick Tip", "Trending", "Challenge",
            "Behind the Scenes", "Teaser", "Reaction",
        ),
        defaults=FormatDefaults(
            art_style="Fast-Paced Vertical",
            act_range=(2, 3),
            scene_range=(2, 4),
            session_prefix="sht",
        ),
    ),
    FormatMetadata(
        id="documentary",
        name="Documentary",
        description="Deeply researched long-form content with chapter structure and citations",
        aspect_ratio="16:9",
        duration_range=DurationRange(900, 3600),
        checkpoint_count=4,
        concurrency_limit=5,
        requires_research=True,
        applicable_genres=(
            "Investigative", "Historical", "Nature", "Biography",
            "Social Issues", "True Crime", "Cultural", "Scientific",
        ),
        defaults=FormatDefaults(
            art_style="Archival Documentary",
            research_depth="deep",
            act_range=(4, 8),
            scene_range=(4, 10),
            visual_retry_delay=1.5,
            session_prefix="doc",
        ),
    ),
    FormatMetadata(
        id="music-video",
        name="Music Video",
        description="AI-generated music with beat-synchronized visuals and lyrics",
        aspect_ratio="16:9",
        duration_range=DurationRange(120, 480),
        checkpoint_count=3,
        concurrency_limit=4,
        requires_research=False,
        applicable_genres=(
            "Pop", "Rock", "Hip Hop", "Electronic", "Jazz",
            "Classical", "R&B", "Country", "Indie", "Ambient",
        ),
        defaults=FormatDefaults(
            art_style="Music Video",
            act_range=(2, 5),
            scene_range=(2, 5),
            session_prefix="mv",
        ),
    ),
    FormatMetadata(
        id="news-politics",
        name="News/Politics",
        description="Factual reporting with balanced perspectives and source citations",
        aspect_ratio="16:9",
        duration_range=DurationRange(180, 900),
        checkpoint_count=3,
        concurrency_limit=5,
        requires_research=True,
        applicable_genres=(
            "Breaking News", "Political Analysis", "Election Coverage", "Policy Explainer",
            "International Affairs", "Local News", "Investigative Journalism",
        ),
        defaults=FormatDefaults(
            art_style="Broadcast News",
            research_depth="medium",
            act_range=(3, 5),
            scene_range=(3, 8),
            session_prefix="news",
        ),
    ),
]


class FormatRegistry:
    """Catalog of format metadata keyed by format id."""

    def __init__(self, formats: Optional[List[FormatMetadata]] = None):
        self._formats: Dict[str, FormatMetadata] = {}
        for metadata in (_DEFAULT_FORMATS if formats is None else formats):
            self.register_format(metadata)

    def register_format(self, metadata: FormatMetadata) -> None:
        """Add or replace a format entry."""
        if metadata.id in self._formats:
            logger.info("Replacing format metadata", extra={"format_id": metadata.id})
        self._formats[metadata.id] = metadata

    def get_format(self, format_id: str) -> Optional[FormatMetadata]:
        return self._formats.get(format_id)

    def get_all_formats(self, include_deprecated: bool = True) -> List[FormatMetadata]:
        return [
            f for f in self._formats.values()
            if include_deprecated or not f.deprecated
        ]

    def get_formats_by_genre(self, genre: str) -> List[FormatMetadata]:
        return [f for f in self._formats.values() if f.supports_genre(genre)]

    def is_registered(self, format_id: str) -> bool:
        return format_id in self._formats

    def format_ids(self) -> List[str]:
        return list(self._formats.keys())


@dataclass
class FormatViolation:
    field: str
    expected: str
    actual: str
    message: str


@dataclass
class FormatComplianceResult:
    valid: bool
    violations: List[FormatViolation] = field(default_factory=list)


def validate_format_compliance(
    registry: FormatRegistry,
    format_id: str,
    duration_seconds: Optional[float] = None,
    aspect_ratio: Optional[str] = None,
    checkpoint_count: Optional[int] = None,
    concurrent_tasks: Optional[int] = None,
) -> FormatComplianceResult:
    """Check produced assets against a format's constraints."""
    meta = registry.get_format(format_id)
    if meta is None:
        return FormatComplianceResult(
            valid=False,
            violations=[FormatViolation(
                field="format_id",
                expected="registered format",
                actual=format_id,
                message=f"Format '{format_id}' not found in registry",
            )],
        )

    violations: List[FormatViolation] = []
    if duration_seconds is not None:
        if duration_seconds < meta.duration_range.min_seconds:
            violations.append(FormatViolation(
                field="duration",
                expected=f">= {meta.duration_range.min_seconds}s",
                actual=f"{duration_seconds}s",
                message=(
                    f"Duration {duration_seconds}s is below minimum "
                    f"{meta.duration_range.min_seconds}s for {meta.name}"
                ),
            ))
        if duration_seconds > meta.duration_range.max_seconds:
            violations.append(FormatViolation(
                field="duration",
                expected=f"<= {meta.duration_range.max_seconds}s",
                actual=f"{duration_seconds}s",
                message=(
                    f"Duration {duration_seconds}s exceeds maximum "
                    f"{meta.duration_range.max_seconds}s for {meta.name}"
                ),
            ))
    if aspect_ratio is not None and aspect_ratio != meta.aspect_ratio:
        violations.append(FormatViolation(
            field="aspect_ratio",
            expected=meta.aspect_ratio,
            actual=aspect_ratio,
            message=f"Aspect ratio '{aspect_ratio}' does not match expected '{meta.aspect_ratio}' for {meta.name}",
        ))
    if checkpoint_count is not None and checkpoint_count > meta.checkpoint_count:
        violations.append(FormatViolation(
            field="checkpoint_count",
            expected=f"<= {meta.checkpoint_count}",
            actual=str(checkpoint_count),
            message=f"Checkpoint count {checkpoint_count} exceeds maximum {meta.checkpoint_count} for {meta.name}",
        ))
    if concurrent_tasks is not None and concurrent_tasks > meta.concurrency_limit:
        violations.append(FormatViolation(
            field="concurrency_limit",
            expected=f"<= {meta.concurrency_limit}",
            actual=str(concurrent_tasks),
            message=f"Concurrent tasks {concurrent_tasks} exceeds limit {meta.concurrency_limit} for {meta.name}",
        ))

    return FormatComplianceResult(valid=not violations, violations=violations)


@lru_cache(maxsize=1)
def get_format_registry() -> FormatRegistry:
    """Shared registry with the built-in formats."""
    return FormatRegistry()
