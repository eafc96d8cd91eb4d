"""
Shorts pipeline (vertical, no research).

Script -> [hook-preview] -> Visuals -> Audio -> Assembly -> [final-assembly]
"""

from ..assembly.rules import build_assembly_rules
from .base import BaseFormatPipeline, PipelineRun
from .script import ScriptDraft

ART_STYLE = "Fast-Paced Vertical"
DEFAULT_MOOD = "exciting"
HOOK_PREVIEW_CHARS = 200


def hook_payload(draft: ScriptDraft) -> dict:
    """The opening scene, which has to land within the first seconds."""
    first = draft.screenplay[0]
    return {
        "hook": first.action[:HOOK_PREVIEW_CHARS] + "...",
        "heading": first.heading,
        "scene_count": len(draft.screenplay),
    }


class ShortsPipeline(BaseFormatPipeline):
    FORMAT_ID = "shorts"
    SHOT_CAMERA = "Close-Up"
    SHOT_MOVEMENT = "Fast"
    SHOT_LIGHTING = "Vibrant"

    async def run(self, run: PipelineRun) -> None:
        draft = await self.run_script(run)
        await self.checkpoint(run, "hook-preview", "Hook", hook_payload(draft))

        await self.run_visuals(run, draft, ART_STYLE, DEFAULT_MOOD)

        segments = await self.run_audio(run, draft.screenplay)
        await self.run_assembly(
            run,
            lambda total: build_assembly_rules(self.FORMAT_ID, total, registry=self.registry),
            segments,
        )
        await self.checkpoint(run, "final-assembly", "Assembly", self.assembly_payload(run))
