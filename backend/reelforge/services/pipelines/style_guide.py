"""
Style guide construction for scene visuals and character sheets.

Each art style has a plain default table; a scene guide starts from the
table for its style and overrides scene, mood, background and subjects.
"""

from typing import Dict, List, Optional, Sequence

from ...models.production import CharacterProfile, ScreenplayScene
from ...models.style import StyleGuide

DEFAULT_AVOID = ["blurry", "low quality", "text", "watermark", "distorted faces"]
ANCHOR_DESCRIPTION_WORDS = 20

STYLE_DEFAULTS: Dict[str, Dict[str, object]] = {
    "cinematic": {
        "lighting": "golden hour, soft diffused, backlit",
        "camera": "35mm lens, shallow depth of field",
        "composition": "medium shot, eye-level, rule of thirds",
        "palette": ["warm amber", "deep shadow", "desaturated teal"],
        "textures": "35mm film grain",
        "effects": "anamorphic lens flare, bokeh",
        "mood": "dramatic cinematic",
    },
    "b-roll documentary": {
        "lighting": "natural daylight, soft",
        "camera": "24mm lens, deep depth of field",
        "composition": "wide establishing shot, eye-level",
        "palette": ["natural tones", "muted greens", "sky blue"],
        "textures": "clean digital",
        "effects": "gentle motion blur",
        "mood": "informative",
    },
    "archival documentary": {
        "lighting": "available light, low contrast",
        "camera": "50mm lens, deep depth of field",
        "composition": "wide shot, eye-level, centered",
        "palette": ["sepia", "faded earth tones", "soft black"],
        "textures": "archival film scratches, paper grain",
        "effects": "subtle vignette",
        "mood": "solemn",
    },
    "high-impact commercial": {
        "lighting": "studio softbox, high-key, front-lit",
        "camera": "85mm lens, shallow depth of field, focus on product",
        "composition": "hero shot, eye-level, center framing",
        "palette": ["clean whites", "brand accent colors"],
        "textures": "smooth pristine surfaces",
        "effects": "subtle rim light",
        "mood": "energetic",
    },
    "fast-paced vertical": {
        "lighting": "bright vibrant, ring light",
        "camera": "wide angle lens, close focus",
        "composition": "close-up, vertical 9:16 framing, subject centered",
        "palette": ["saturated primaries", "neon accents"],
        "textures": "crisp digital",
        "effects": "dynamic zoom, speed lines",
        "mood": "exciting",
    },
    "music video": {
        "lighting": "colored stage lights, atmospheric haze",
        "camera": "35mm lens, selective focus",
        "composition": "dynamic angle, asymmetric framing",
        "palette": ["magenta", "electric blue", "deep black"],
        "textures": "light leaks, film grain",
        "effects": "lens flare, motion trails",
        "mood": "energetic",
    },
    "broadcast news": {
        "lighting": "even studio lighting, neutral",
        "camera": "50mm lens, deep depth of field",
        "composition": "medium shot, eye-level, balanced",
        "palette": ["professional blue", "clean white", "light gray"],
        "textures": "clean digital",
        "effects": "lower-third safe area",
        "mood": "objective",
    },
    "educational illustration": {
        "lighting": "flat ambient, uniform",
        "camera": "deep depth of field",
        "composition": "wide shot, center framing",
        "palette": ["limited palette", "clean whites", "accent color"],
        "textures": "flat vector, clean geometric",
        "effects": "",
        "mood": "clear educational",
    },
}

_FALLBACK_STYLE = "cinematic"


def get_style_defaults(style: str) -> Dict[str, object]:
    """Default table for an art style; genre music video styles share the music video table."""
    key = (style or "").strip().lower()
    if key in STYLE_DEFAULTS:
        return STYLE_DEFAULTS[key]
    if key.endswith("music video"):
        return STYLE_DEFAULTS["music video"]
    return STYLE_DEFAULTS[_FALLBACK_STYLE]


def build_style_guide(
    scene: str,
    style: str,
    mood: Optional[str] = None,
    background: str = "",
    subjects: Optional[Sequence[str]] = None,
    avoid: Optional[List[str]] = None,
) -> StyleGuide:
    defaults = get_style_defaults(style)
    return StyleGuide(
        scene=scene,
        style=style,
        mood=mood or str(defaults["mood"]),
        subjects=list(subjects or []),
        background=background,
        lighting=str(defaults["lighting"]),
        camera=str(defaults["camera"]),
        composition=str(defaults["composition"]),
        palette=list(defaults["palette"]),
        textures=str(defaults["textures"]),
        effects=str(defaults["effects"]),
        avoid=list(avoid if avoid is not None else DEFAULT_AVOID),
    )


def build_visual_anchor(character: CharacterProfile) -> str:
    """Compact appearance anchor: facial tags when present, else the start of the description."""
    if character.facial_tags:
        return f"[{character.name}: {character.facial_tags}]"
    words = character.visual_description.split()
    return f"[{character.name}: {' '.join(words[:ANCHOR_DESCRIPTION_WORDS])}]"


def build_scene_guide(
    scene: ScreenplayScene,
    style: str,
    mood: Optional[str],
    characters: Sequence[CharacterProfile] = (),
) -> StyleGuide:
    """Guide for one scene visual; characters present in the scene become subjects."""
    anchors = {c.name.lower(): build_visual_anchor(c) for c in characters}
    subjects = [
        anchors[name.lower()]
        for name in scene.characters_present
        if name.lower() in anchors
    ]
    return build_style_guide(
        scene=scene.action,
        style=style,
        mood=mood,
        background=scene.heading,
        subjects=subjects,
    )


def build_character_sheet_guide(character: CharacterProfile, style: str) -> StyleGuide:
    """Front and three-quarter character sheet on a neutral background."""
    guide = build_style_guide(
        scene=f'Character Design Sheet for "{character.name}"',
        style=style,
        background="neutral white background",
        subjects=[f"{character.visual_description}; front view and three-quarter view, full body"],
        avoid=["blur", "darkness", "noise", "low quality", "text", "watermark"],
    )
    guide.lighting = "studio softbox, soft diffused, rim light accent"
    guide.composition = "medium shot, eye-level, center framing"
    return guide
