"""
Music Video pipeline (no research).

Script -> [lyrics-and-music] -> Visuals -> [visual-preview] -> Audio
-> Assembly -> [final-assembly]

Scene transitions are spread evenly over the track and snapped to the
beat grid of the genre's tempo.
"""

from typing import List, Optional

from ...models.assembly import BeatMetadata
from ..assembly.beats import (
    align_transitions_to_beat,
    bpm_for_genre,
    generate_beat_metadata,
    raw_transition_times,
)
from ..assembly.rules import build_assembly_rules
from .base import BaseFormatPipeline, PipelineRun
from .script import ScriptDraft

DEFAULT_GENRE = "Pop"
DEFAULT_MOOD = "energetic"


def art_style_for_genre(genre: Optional[str]) -> str:
    return f"{genre or DEFAULT_GENRE} Music Video"


def lyrics(draft: ScriptDraft) -> List[str]:
    return [line.text for scene in draft.screenplay for line in scene.dialogue]


class MusicVideoPipeline(BaseFormatPipeline):
    FORMAT_ID = "music-video"
    SHOT_CAMERA = "Dynamic"
    SHOT_MOVEMENT = "Cut"
    SHOT_LIGHTING = "Atmospheric"

    async def run(self, run: PipelineRun) -> None:
        genre = run.request.genre or DEFAULT_GENRE
        bpm = bpm_for_genre(genre)

        draft = await self.run_script(run)
        estimated = max(1, run.duration_check.estimated_seconds if run.duration_check else 1)
        preview_beats = generate_beat_metadata(bpm, estimated)
        await self.checkpoint(run, "lyrics-and-music", "Lyrics", {
            "lyrics": lyrics(draft),
            "genre": genre,
            "bpm": bpm,
            "beat_count": len(preview_beats.beats),
        })

        visuals = await self.run_visuals(run, draft, art_style_for_genre(genre), DEFAULT_MOOD)
        await self.checkpoint(
            run, "visual-preview", "Visuals", self.visual_payload(visuals, len(draft.screenplay))
        )

        segments = await self.run_audio(run, draft.screenplay)
        scene_count = len(draft.screenplay)

        def build(total: float):
            beats: BeatMetadata = generate_beat_metadata(bpm, total if total > 0 else estimated)
            run.partial.transition_times = align_transitions_to_beat(
                raw_transition_times(scene_count, beats.duration_seconds),
                beats.beats,
            )
            return build_assembly_rules(
                self.FORMAT_ID, total, beat_metadata=beats, registry=self.registry
            )

        await self.run_assembly(run, build, segments)
        await self.checkpoint(run, "final-assembly", "Assembly", self.assembly_payload(run))
