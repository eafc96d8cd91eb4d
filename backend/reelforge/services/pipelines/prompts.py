"""
Script Generation Prompts

Centralizes the prompts for the two structured script calls and for
character extraction:
- Breakdown: idea -> acts
- Screenplay: acts -> scenes
- Characters: screenplay -> character profiles

Format-specific tone lives in FORMAT_GUIDANCE; everything else is shared.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ...models.production import BreakdownAct, ScreenplayScene
from ..formats.registry import get_format_registry


@dataclass
class PromptTemplate:
    """
    A prompt template with {placeholders}.

    Usage:
        template = PromptTemplate(template="Hello {name}!", description="A greeting")
        result = template.format(name="World")
    """
    template: str
    description: str = ""

    def format(self, **kwargs) -> str:
        try:
            return self.template.format(**kwargs)
        except (KeyError, ValueError, IndexError):
            # Templates that contain literal braces fall back to plain replacement
            result = self.template
            for k, v in kwargs.items():
                result = result.replace("{" + k + "}", str(v))
            return result

    def __str__(self) -> str:
        return f"PromptTemplate({self.description})"


@dataclass
class ScriptPromptOptions:
    """Inputs shared by every script prompt of one run."""
    format_id: str = "movie-animation"
    genre: Optional[str] = None
    language: str = "en"
    research_summary: Optional[str] = None
    research_citations: Optional[str] = None
    reference_content: Optional[str] = None
    act_range: tuple = (3, 5)
    scene_range: tuple = (3, 8)
    extra_instructions: List[str] = field(default_factory=list)


FORMAT_GUIDANCE: Dict[str, str] = {
    "youtube-narrator": (
        "Write for a popular YouTube host: conversational, curious, with a strong opening hook "
        "and B-roll friendly scene descriptions."
    ),
    "documentary": (
        "Write a deeply researched documentary. Every act is a chapter with a short chapter title. "
        "Stay factual and cite the research where it helps."
    ),
    "advertisement": (
        "Write a high-impact advertisement. Open with the problem, show the product as the answer "
        "and end the final scene with a one-line call to action spoken by the narrator."
    ),
    "shorts": (
        "Write a vertical short. The first scene must hook the viewer within three seconds. "
        "Keep every line punchy."
    ),
    "music-video": (
        "Write a music video. Scene headings are song sections (Verse, Chorus, Bridge) and "
        "dialogue lines are the lyrics."
    ),
    "news-politics": (
        "Write a balanced news report. Attribute claims, present more than one perspective "
        "and keep a neutral tone."
    ),
    "movie-animation": (
        "Write a character-driven story with a clear protagonist, a central conflict and an "
        "emotional arc."
    ),
}


BREAKDOWN_PROMPT = PromptTemplate(
    template="""You are a story development expert.

{guidance}

Create a narrative breakdown for a {genre} video about:
"{idea}"

Target length: {min_minutes} to {max_minutes} minutes.
Produce between {min_acts} and {max_acts} acts. For each act give a title, an emotional hook and a narrative beat.{chapter_instruction}
{research}{references}{extra}
{language_instruction}""",
    description="Idea to acts",
)

SCREENPLAY_PROMPT = PromptTemplate(
    template="""You are a screenwriter.

{guidance}

Turn this {act_count}-act breakdown into a {genre} screenplay of {min_scenes} to {max_scenes} scenes:

{breakdown}

Each scene has a heading, an action description and dialogue lines.
A dialogue speaker is a character name ONLY (1-4 words, e.g. "Maya", "Narrator"). Never put scene descriptions in the speaker field.
Dialogue text must never be empty.
{research}{references}{extra}
{language_instruction}""",
    description="Acts to scenes",
)

CHARACTER_PROMPT = PromptTemplate(
    template="""Extract the main characters from this screenplay:

{scenes}

Character dialogue samples:
{dialogue}

For each character provide a name, a role (protagonist, antagonist, supporting), a visual description
for image generation (age range, build, skin tone, hair, one or two distinctive outfit items) and
facial tags: exactly 5 comma-separated visual keywords that identify the character.""",
    description="Screenplay to characters",
)


def _context_blocks(options: ScriptPromptOptions) -> Dict[str, str]:
    research = ""
    if options.research_summary:
        research = f"\nRESEARCH CONTEXT:\n{options.research_summary}"
        if options.research_citations:
            research += f"\nCitations: {options.research_citations}"
        research += "\n"
    references = ""
    if options.reference_content:
        references = f"\nREFERENCE MATERIAL (treat as primary source):\n{options.reference_content}\n"
    extra = "\n".join(options.extra_instructions)
    return {"research": research, "references": references, "extra": f"\n{extra}" if extra else ""}


def _language_instruction(language: str, what: str) -> str:
    if language == "ar":
        return f"Write the {what} entirely in Arabic."
    return f"Write the {what} in English."


def build_breakdown_prompt(idea: str, options: ScriptPromptOptions) -> str:
    metadata = get_format_registry().get_format(options.format_id)
    min_minutes = round(metadata.duration_range.min_seconds / 60) if metadata else 3
    max_minutes = round(metadata.duration_range.max_seconds / 60) if metadata else 10
    chapter_instruction = (
        "\nAlso give every act a chapter title." if options.format_id == "documentary" else ""
    )
    return BREAKDOWN_PROMPT.format(
        guidance=FORMAT_GUIDANCE.get(options.format_id, FORMAT_GUIDANCE["movie-animation"]),
        genre=options.genre or "General",
        idea=idea,
        min_minutes=min_minutes,
        max_minutes=max_minutes,
        min_acts=options.act_range[0],
        max_acts=options.act_range[1],
        chapter_instruction=chapter_instruction,
        language_instruction=_language_instruction(options.language, "breakdown"),
        **_context_blocks(options),
    )


def format_breakdown(acts: Sequence[BreakdownAct]) -> str:
    return "\n\n".join(
        f"Act {i + 1}: {act.title}\n- Hook: {act.emotional_hook}\n- Beat: {act.narrative_beat}"
        for i, act in enumerate(acts)
    )


def build_screenplay_prompt(acts: Sequence[BreakdownAct], options: ScriptPromptOptions) -> str:
    return SCREENPLAY_PROMPT.format(
        guidance=FORMAT_GUIDANCE.get(options.format_id, FORMAT_GUIDANCE["movie-animation"]),
        genre=options.genre or "General",
        act_count=len(acts),
        min_scenes=options.scene_range[0],
        max_scenes=options.scene_range[1],
        breakdown=format_breakdown(acts),
        language_instruction=_language_instruction(options.language, "screenplay"),
        **_context_blocks(options),
    )


def build_character_prompt(scenes: Sequence[ScreenplayScene]) -> str:
    summary = "\n".join(
        f"{s.heading}: {s.action[:300]}{'...' if len(s.action) > 300 else ''}"
        for s in scenes
    )
    samples: Dict[str, List[str]] = {}
    for scene in scenes:
        for line in scene.dialogue:
            lines = samples.setdefault(line.speaker, [])
            if len(lines) < 2:
                lines.append(line.text[:80])
    dialogue = "\n".join(
        f'  {speaker}: "' + '" / "'.join(lines) + '"'
        for speaker, lines in samples.items()
    )
    return CHARACTER_PROMPT.format(scenes=summary, dialogue=dialogue or "  (none)")
