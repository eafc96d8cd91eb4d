"""
Documentary pipeline.

Research (deep) -> [research-summary] -> Script -> [chapter-structure]
-> Visuals -> [visual-preview] -> Audio -> Assembly -> [final-assembly]

Every act of the breakdown is one chapter; a chapter spans the narration
of the scenes that belong to its act.
"""

from typing import List, Sequence, Tuple

from ...models.production import BreakdownAct, NarrationSegment, ScreenplayScene
from ..assembly.rules import build_assembly_rules
from .base import BaseFormatPipeline, PipelineRun, scene_durations
from .script import act_index_for_scene

ART_STYLE = "Archival Documentary"
DEFAULT_MOOD = "solemn"


def chapter_titles(acts: Sequence[BreakdownAct]) -> List[str]:
    return [act.chapter_title or act.title or f"Chapter {i + 1}" for i, act in enumerate(acts)]


def chapter_durations(
    acts: Sequence[BreakdownAct],
    scenes: Sequence[ScreenplayScene],
    segments: Sequence[NarrationSegment],
) -> Tuple[List[str], List[float]]:
    """Per-act chapter titles and the summed narration of each act's scenes."""
    durations = [0.0] * len(acts)
    for i, duration in enumerate(scene_durations(segments, scenes)):
        durations[act_index_for_scene(i, len(scenes), len(acts))] += duration
    return chapter_titles(acts), durations


class DocumentaryPipeline(BaseFormatPipeline):
    FORMAT_ID = "documentary"
    SHOT_CAMERA = "Wide"
    SHOT_MOVEMENT = "Slow Pan"
    SHOT_LIGHTING = "Natural"

    async def run(self, run: PipelineRun) -> None:
        research = await self.run_research(run, depth="deep", max_results=20)
        await self.checkpoint(run, "research-summary", "Research", self.research_payload(research))

        draft = await self.run_script(run, research)
        await self.checkpoint(run, "chapter-structure", "Chapter structure", {
            "chapter_count": len(draft.acts),
            "chapters": [
                {"title": title, "narrative_beat": act.narrative_beat}
                for title, act in zip(chapter_titles(draft.acts), draft.acts)
            ],
            "scene_count": len(draft.screenplay),
        })

        visuals = await self.run_visuals(run, draft, ART_STYLE, DEFAULT_MOOD)
        await self.checkpoint(
            run, "visual-preview", "Visuals", self.visual_payload(visuals, len(draft.screenplay))
        )

        segments = await self.run_audio(run, draft.screenplay)
        titles, durations = chapter_durations(draft.acts, draft.screenplay, segments)
        rules = await self.run_assembly(
            run,
            lambda total: build_assembly_rules(
                self.FORMAT_ID,
                total,
                scenes=titles,
                scene_durations=durations,
                registry=self.registry,
            ),
            segments,
        )
        run.partial.chapters = rules.chapters
        await self.checkpoint(run, "final-assembly", "Assembly", self.assembly_payload(run))
