"""
Assembly rules, beat sync and graceful degradation.
"""

from .beats import (
    DEFAULT_TOLERANCE_MS,
    align_transitions_to_beat,
    bpm_for_genre,
    find_nearest_beat,
    generate_beat_metadata,
    raw_transition_times,
    snap_to_beat,
)
from .degradation import assemble_with_graceful_degradation
from .rules import (
    DEFAULT_CTA_TEXT,
    build_assembly_rules,
    build_chapter_markers,
    build_cta_marker,
    get_default_transition,
    validate_chapter_sequence,
    validate_cta_position,
)

__all__ = [
    "DEFAULT_TOLERANCE_MS",
    "align_transitions_to_beat",
    "bpm_for_genre",
    "find_nearest_beat",
    "generate_beat_metadata",
    "raw_transition_times",
    "snap_to_beat",
    "assemble_with_graceful_degradation",
    "DEFAULT_CTA_TEXT",
    "build_assembly_rules",
    "build_chapter_markers",
    "build_cta_marker",
    "get_default_transition",
    "validate_chapter_sequence",
    "validate_cta_position",
]
