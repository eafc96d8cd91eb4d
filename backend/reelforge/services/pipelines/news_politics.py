"""
News & Politics pipeline.

Research (medium) -> [research-summary] -> Script -> [script-review]
-> Visuals -> Audio -> Assembly -> [final-assembly]
"""

from ..assembly.rules import build_assembly_rules
from .base import BaseFormatPipeline, PipelineRun

ART_STYLE = "Broadcast News"
DEFAULT_MOOD = "objective"


class NewsPoliticsPipeline(BaseFormatPipeline):
    FORMAT_ID = "news-politics"
    SHOT_CAMERA = "Medium"
    SHOT_MOVEMENT = "Static"
    SHOT_LIGHTING = "Studio"

    async def run(self, run: PipelineRun) -> None:
        research = await self.run_research(run, depth="medium", max_results=12)
        await self.checkpoint(run, "research-summary", "Research", self.research_payload(research))

        draft = await self.run_script(run, research)
        await self.checkpoint(run, "script-review", "Script", self.script_payload(draft))

        await self.run_visuals(run, draft, ART_STYLE, DEFAULT_MOOD)

        segments = await self.run_audio(run, draft.screenplay)
        await self.run_assembly(
            run,
            lambda total: build_assembly_rules(self.FORMAT_ID, total, registry=self.registry),
            segments,
        )
        await self.checkpoint(run, "final-assembly", "Assembly", self.assembly_payload(run))
