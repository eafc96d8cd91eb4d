from reelforge.core.voice_catalog import (
    FORMAT_VOICE_PROFILES,
    get_format_voice_for_language,
    get_voice_profile_for_format,
)


def test_every_format_has_a_profile():
    assert set(FORMAT_VOICE_PROFILES) == {
        "youtube-narrator", "advertisement", "movie-animation", "educational",
        "shorts", "documentary", "music-video", "news-politics",
    }


def test_unknown_format_falls_back_to_movie_animation():
    assert get_voice_profile_for_format("hologram") is FORMAT_VOICE_PROFILES["movie-animation"]


def test_english_keeps_format_voice():
    assert get_format_voice_for_language("news-politics", "en").voice_name == "Orus"
    assert get_format_voice_for_language("news-politics", "auto").voice_name == "Orus"


def test_arabic_swaps_voice_only():
    profile = get_format_voice_for_language("news-politics", "ar")

    assert profile.voice_name == "Aoede"
    assert profile.persona == FORMAT_VOICE_PROFILES["news-politics"].persona
    assert FORMAT_VOICE_PROFILES["news-politics"].voice_name == "Orus"


def test_language_without_override():
    assert get_format_voice_for_language("shorts", "fr") is FORMAT_VOICE_PROFILES["shorts"]


def test_to_dict():
    data = FORMAT_VOICE_PROFILES["shorts"].to_dict()

    assert data["speaking_rate"] == 1.3
    assert data["video_purpose"] == "social_short"
