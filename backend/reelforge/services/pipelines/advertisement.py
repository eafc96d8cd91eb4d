"""
Advertisement pipeline (no research).

Script -> [script-with-cta] -> Visuals -> Audio -> Assembly -> [final-preview]

The call-to-action is the last line spoken in the final scene and is
placed over the last five seconds of the assembled video.
"""

from typing import Sequence

from ...models.production import ScreenplayScene
from ..assembly.rules import DEFAULT_CTA_TEXT, build_assembly_rules
from .base import BaseFormatPipeline, PipelineRun

ART_STYLE = "High-Impact Commercial"
DEFAULT_MOOD = "energetic"


def extract_cta_text(scenes: Sequence[ScreenplayScene]) -> str:
    if scenes and scenes[-1].dialogue:
        text = scenes[-1].dialogue[-1].text.strip()
        if text:
            return text
    return DEFAULT_CTA_TEXT


class AdvertisementPipeline(BaseFormatPipeline):
    FORMAT_ID = "advertisement"
    SHOT_CAMERA = "Dynamic"
    SHOT_MOVEMENT = "Fast"
    SHOT_LIGHTING = "High-Key"

    async def run(self, run: PipelineRun) -> None:
        draft = await self.run_script(run)
        cta_text = extract_cta_text(draft.screenplay)
        run.partial.cta_text = cta_text

        payload = self.script_payload(draft)
        payload["cta_text"] = cta_text
        await self.checkpoint(run, "script-with-cta", "Script", payload)

        await self.run_visuals(run, draft, ART_STYLE, DEFAULT_MOOD)

        segments = await self.run_audio(run, draft.screenplay)
        await self.run_assembly(
            run,
            lambda total: build_assembly_rules(
                self.FORMAT_ID, total, cta_text=cta_text, registry=self.registry
            ),
            segments,
        )
        await self.checkpoint(run, "final-preview", "Final preview", self.assembly_payload(run))
