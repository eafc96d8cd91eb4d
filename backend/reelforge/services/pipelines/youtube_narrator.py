"""
YouTube Narrator pipeline.

Research (medium) -> Script -> [script-review] -> Visuals -> [visual-preview]
-> Audio -> Assembly -> [final-assembly]
"""

from ..assembly.rules import build_assembly_rules
from .base import BaseFormatPipeline, PipelineRun

ART_STYLE = "B-roll Documentary"
DEFAULT_MOOD = "informative"


class YouTubeNarratorPipeline(BaseFormatPipeline):
    FORMAT_ID = "youtube-narrator"
    SHOT_CAMERA = "Wide"
    SHOT_MOVEMENT = "Static"
    SHOT_LIGHTING = "Natural"

    async def run(self, run: PipelineRun) -> None:
        research = await self.run_research(run, depth="medium", max_results=10)

        draft = await self.run_script(run, research)
        await self.checkpoint(run, "script-review", "Script", self.script_payload(draft))

        visuals = await self.run_visuals(run, draft, ART_STYLE, DEFAULT_MOOD)
        await self.checkpoint(
            run, "visual-preview", "Visuals", self.visual_payload(visuals, len(draft.screenplay))
        )

        segments = await self.run_audio(run, draft.screenplay)
        await self.run_assembly(
            run,
            lambda total: build_assembly_rules(self.FORMAT_ID, total, registry=self.registry),
            segments,
        )
        await self.checkpoint(run, "final-assembly", "Assembly", self.assembly_payload(run))
