"""
Beat metadata and beat snapping for music videos.

Timestamps are seconds rounded to millisecond precision; snapping compares
offsets in milliseconds.
"""

from typing import List, Optional, Sequence, Tuple

from ...config import DEFAULT_BPM, GENRE_BPM
from ...models.assembly import Beat, BeatMetadata

DEFAULT_TOLERANCE_MS = 100.0


def bpm_for_genre(genre: Optional[str]) -> int:
    """Tempo for a genre name (case-insensitive); unknown genres get the default."""
    if genre:
        for name, bpm in GENRE_BPM.items():
            if name.lower() == genre.strip().lower():
                return bpm
    return DEFAULT_BPM


def _intensity(index: int) -> float:
    if index % 4 == 0:
        return 1.0
    if index % 2 == 0:
        return 0.6
    return 0.3


def generate_beat_metadata(bpm: float, duration_seconds: float) -> BeatMetadata:
    """Evenly spaced beats every 60/bpm seconds, strictly before `duration_seconds`."""
    if bpm <= 0:
        raise ValueError("bpm must be positive")
    if duration_seconds <= 0:
        raise ValueError("duration_seconds must be positive")

    interval = 60.0 / bpm
    beats: List[Beat] = []
    index = 0
    while index * interval < duration_seconds:
        beats.append(Beat(timestamp=round(index * interval, 3), intensity=_intensity(index)))
        index += 1
    return BeatMetadata(bpm=bpm, duration_seconds=duration_seconds, beats=beats)


def find_nearest_beat(beats: Sequence[Beat], timestamp: float) -> Optional[Tuple[Beat, float]]:
    """Closest beat and its offset in ms; the earliest beat wins ties. None without beats."""
    if not beats:
        return None
    closest = beats[0]
    min_offset = abs(timestamp - closest.timestamp) * 1000
    for beat in beats[1:]:
        offset = abs(timestamp - beat.timestamp) * 1000
        if offset < min_offset:
            closest, min_offset = beat, offset
    return closest, min_offset


def snap_to_beat(beats: Sequence[Beat], timestamp: float, tolerance_ms: float = DEFAULT_TOLERANCE_MS) -> float:
    nearest = find_nearest_beat(beats, timestamp)
    if nearest is None:
        return timestamp
    beat, offset_ms = nearest
    return beat.timestamp if offset_ms <= tolerance_ms else timestamp


def align_transitions_to_beat(
    transition_times: Sequence[float],
    beats: Sequence[Beat],
    tolerance_ms: float = DEFAULT_TOLERANCE_MS,
) -> List[float]:
    return [snap_to_beat(beats, t, tolerance_ms) for t in transition_times]


def raw_transition_times(count: int, duration: float) -> List[float]:
    """(i / count) * duration for each scene boundary i in [1, count)."""
    if count <= 1:
        return []
    return [i / count * duration for i in range(1, count)]
