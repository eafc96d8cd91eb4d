"""
Typed style guide handed to the image adapter.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class StyleGuide:
    scene: str
    style: str
    mood: str
    subjects: List[str] = field(default_factory=list)
    background: str = ""
    lighting: str = ""
    camera: str = ""
    composition: str = ""
    palette: List[str] = field(default_factory=list)
    textures: str = ""
    effects: str = ""
    avoid: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene": self.scene,
            "style": self.style,
            "mood": self.mood,
            "subjects": list(self.subjects),
            "background": self.background,
            "lighting": self.lighting,
            "camera": self.camera,
            "composition": self.composition,
            "palette": list(self.palette),
            "textures": self.textures,
            "effects": self.effects,
            "avoid": list(self.avoid),
        }

    def to_prompt(self) -> str:
        """Flatten into a single prompt line for adapters that take plain text."""
        parts = [
            f"Scene: {self.scene}",
            f"Style: {self.style}",
            f"Mood: {self.mood}",
        ]
        if self.subjects:
            parts.append("Subjects: " + "; ".join(self.subjects))
        for label, value in (
            ("Background", self.background),
            ("Lighting", self.lighting),
            ("Camera", self.camera),
            ("Composition", self.composition),
            ("Textures", self.textures),
            ("Effects", self.effects),
        ):
            if value:
                parts.append(f"{label}: {value}")
        if self.palette:
            parts.append("Palette: " + ", ".join(self.palette))
        if self.avoid:
            parts.append("Avoid: " + ", ".join(self.avoid))
        return ". ".join(parts)
