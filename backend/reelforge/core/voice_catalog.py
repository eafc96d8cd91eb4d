"""
Narration voice catalog.

Single source of truth for:
- Format -> narration voice profile (persona, pacing, speaking rate)
- Content language -> voice override for non-English narration
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict

FALLBACK_FORMAT = "movie-animation"


@dataclass(frozen=True)
class FormatVoiceProfile:
    label: str
    voice_name: str
    pitch: int
    speaking_rate: float
    persona: str
    emotion: str
    pacing: str
    video_purpose: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


FORMAT_VOICE_PROFILES: Dict[str, FormatVoiceProfile] = {
    "youtube-narrator": FormatVoiceProfile(
        label="Conversational",
        voice_name="Kore",
        pitch=1,
        speaking_rate=1.1,
        persona="A popular YouTube host sharing fascinating insights",
        emotion="warm, engaging, and conversational",
        pacing="natural and flowing with well-placed pauses for emphasis",
        video_purpose="documentary",
    ),
    "advertisement": FormatVoiceProfile(
        label="Energetic",
        voice_name="Puck",
        pitch=2,
        speaking_rate=1.25,
        persona="A high-energy commercial voice-over artist",
        emotion="confident, persuasive, and attention-grabbing",
        pacing="punchy and dynamic with crisp delivery",
        video_purpose="commercial",
    ),
    "movie-animation": FormatVoiceProfile(
        label="Dramatic",
        voice_name="Fenrir",
        pitch=-2,
        speaking_rate=0.95,
        persona="A legendary storyteller narrating an epic tale",
        emotion="dramatic, immersive, and emotionally charged",
        pacing="deliberate with dramatic pauses at key revelations",
        video_purpose="storytelling",
    ),
    "educational": FormatVoiceProfile(
        label="Professional",
        voice_name="Leda",
        pitch=0,
        speaking_rate=1.0,
        persona="A friendly and knowledgeable teacher",
        emotion="clear, encouraging, patient, and authoritative",
        pacing="steady and easy to follow with pauses between concepts",
        video_purpose="educational",
    ),
    "shorts": FormatVoiceProfile(
        label="Energetic",
        voice_name="Puck",
        pitch=3,
        speaking_rate=1.3,
        persona="A trendy social media content creator",
        emotion="energetic, punchy, and scroll-stopping",
        pacing="fast and dynamic with rapid-fire delivery",
        video_purpose="social_short",
    ),
    "documentary": FormatVoiceProfile(
        label="Professional",
        voice_name="Charon",
        pitch=-1,
        speaking_rate=0.95,
        persona="A distinguished documentary narrator",
        emotion="informative, measured, and authoritative",
        pacing="thoughtful and deliberate with gravitas",
        video_purpose="documentary",
    ),
    "music-video": FormatVoiceProfile(
        label="Dramatic",
        voice_name="Aoede",
        pitch=-1,
        speaking_rate=0.9,
        persona="A cinematic music video narrator",
        emotion="evocative, artistic, and emotionally rich",
        pacing="rhythmic and flowing, matching musical energy",
        video_purpose="music_video",
    ),
    "news-politics": FormatVoiceProfile(
        label="Neutral",
        voice_name="Orus",
        pitch=0,
        speaking_rate=1.1,
        persona="A professional news anchor delivering a report",
        emotion="objective, clear, balanced, and authoritative",
        pacing="crisp and well-articulated with neutral delivery",
        video_purpose="news_report",
    ),
}

# Voices used when the narration language is not English
LANGUAGE_VOICE_OVERRIDES: Dict[str, str] = {
    "ar": "Aoede",
}


def get_voice_profile_for_format(format_id: str) -> FormatVoiceProfile:
    """Format voice profile, falling back to the movie-animation profile."""
    return FORMAT_VOICE_PROFILES.get(format_id, FORMAT_VOICE_PROFILES[FALLBACK_FORMAT])


def get_format_voice_for_language(format_id: str, language: str) -> FormatVoiceProfile:
    """Apply the format profile, then swap in a language-specific voice for non-English content."""
    profile = get_voice_profile_for_format(format_id)
    if language in ("en", "auto"):
        return profile
    override = LANGUAGE_VOICE_OVERRIDES.get(language)
    return replace(profile, voice_name=override) if override else profile
