"""
Assembly rule builder

Pure functions that turn format metadata and phase outputs into the
AssemblyRules descriptor consumed by the downstream encoder.
"""

from typing import Any, List, Optional, Sequence, Tuple

from ...models.assembly import AssemblyRules, BeatMetadata, CTAMarker, ChapterMarker
from ..formats.registry import FormatRegistry, get_format_registry

CTA_WINDOW_SECONDS = 5.0
DEFAULT_CTA_TEXT = "Learn More"
TIME_TOLERANCE = 1e-3

# (transition, duration in seconds)
_TRANSITIONS = {
    "advertisement": ("none", 0.3),
    "shorts": ("none", 0.3),
    "documentary": ("dissolve", 1.5),
    "youtube-narrator": ("dissolve", 1.0),
    "music-video": ("fade", 0.5),
    "news-politics": ("slide", 1.0),
}
_DEFAULT_TRANSITION = ("dissolve", 1.0)


def get_default_transition(format_id: str) -> Tuple[str, float]:
    """Transition type and duration used between clips of this format."""
    return _TRANSITIONS.get(format_id, _DEFAULT_TRANSITION)


def build_cta_marker(cta_text: str, total_duration: float, cta_duration: float = CTA_WINDOW_SECONDS) -> CTAMarker:
    """Place the call-to-action over the last `cta_duration` seconds, clamped to the video."""
    total_duration = max(0.0, total_duration)
    effective = min(cta_duration, total_duration)
    return CTAMarker(
        text=cta_text,
        start_time=max(0.0, total_duration - effective),
        duration=effective,
    )


def validate_cta_position(marker: CTAMarker, total_duration: float) -> bool:
    """True when the CTA starts inside the final five seconds and ends by the video's end."""
    final_window_start = max(0.0, total_duration - CTA_WINDOW_SECONDS)
    return (
        marker.start_time >= final_window_start
        and marker.end_time <= total_duration + TIME_TOLERANCE
    )


def _chapter_title(scene: Any, index: int) -> str:
    if isinstance(scene, str):
        title = scene
    else:
        title = getattr(scene, "chapter_title", None) or getattr(scene, "heading", None) or getattr(scene, "title", None)
    return title or f"Chapter {index + 1}"


def build_chapter_markers(scenes: Sequence[Any], scene_durations: Sequence[float]) -> List[ChapterMarker]:
    """
    One chapter per scene, laid end to end.

    Scenes with a non-positive duration get no chapter. A missing duration
    counts as zero.
    """
    chapters: List[ChapterMarker] = []
    current = 0.0
    for i, scene in enumerate(scenes):
        duration = scene_durations[i] if i < len(scene_durations) else 0.0
        if scene is not None and duration > 0:
            chapters.append(ChapterMarker(
                id=f"chapter_{i}",
                title=_chapter_title(scene, i),
                start_time=current,
                end_time=current + duration,
            ))
        if duration > 0:
            current += duration
    return chapters


def validate_chapter_sequence(chapters: Sequence[ChapterMarker]) -> bool:
    for i, chapter in enumerate(chapters):
        if chapter.end_time <= chapter.start_time:
            return False
        if i > 0 and chapter.start_time < chapters[i - 1].end_time - TIME_TOLERANCE:
            return False
    return True


def build_assembly_rules(
    format_id: str,
    total_duration: Optional[float] = None,
    cta_text: str = DEFAULT_CTA_TEXT,
    scenes: Optional[Sequence[Any]] = None,
    scene_durations: Optional[Sequence[float]] = None,
    beat_metadata: Optional[BeatMetadata] = None,
    registry: Optional[FormatRegistry] = None,
) -> AssemblyRules:
    """
    Build format-specific assembly rules.

    Advertisements get a CTA marker when a duration is known, documentaries
    get chapters when scenes and durations are given, and music videos get
    beat sync when beat metadata is given.
    """
    metadata = (registry or get_format_registry()).get_format(format_id)
    transition, transition_duration = get_default_transition(format_id)

    rules = AssemblyRules(
        format_id=format_id,
        aspect_ratio=metadata.aspect_ratio if metadata else "16:9",
        default_transition=transition,
        transition_duration=transition_duration,
    )

    if format_id == "advertisement" and total_duration:
        rules.cta_marker = build_cta_marker(cta_text or DEFAULT_CTA_TEXT, total_duration)

    if format_id == "documentary" and scenes is not None and scene_durations is not None:
        rules.chapters = build_chapter_markers(scenes, scene_durations)
        rules.use_chapter_structure = True

    if format_id == "music-video" and beat_metadata is not None:
        rules.beat_metadata = beat_metadata
        rules.use_beat_sync = True

    return rules
