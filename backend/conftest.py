import asyncio

import pytest

from reelforge.adapters.base import (
    GroundedKnowledgeAdapter,
    ImageAdapter,
    ProductionAdapters,
    TTSAdapter,
    TextModelAdapter,
)
from reelforge.core.logging import clear_context
from reelforge.models.production import NarrationSegment
from reelforge.services.infrastructure.orchestration.execution_engine import ParallelExecutionEngine
from reelforge.services.infrastructure.storage.session_repository import FileBasedSessionRepository
from reelforge.services.infrastructure.storage.session_store import SessionStore, StorySessionStore


class FakeTextModel(TextModelAdapter):
    """Answers breakdown, screenplay and character schemas with the smallest valid output."""

    def __init__(self, fail_times=0):
        self.fail_times = fail_times
        self.prompts = []

    async def generate_structured(self, prompt, schema):
        self.prompts.append(prompt)
        await asyncio.sleep(0)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("model overloaded")

        properties = schema["properties"]
        if "acts" in properties:
            acts = properties["acts"]
            count = acts["minItems"]
            with_chapters = "chapter_title" in acts["items"]["required"]
            return {"acts": [
                dict(
                    title=f"Act {i + 1}",
                    emotional_hook=f"hook {i + 1}",
                    narrative_beat=f"beat {i + 1}",
                    **({"chapter_title": f"Chapter {i + 1}"} if with_chapters else {}),
                )
                for i in range(count)
            ]}
        if "scenes" in properties:
            count = properties["scenes"]["minItems"]
            return {"scenes": [
                {
                    "heading": f"INT. STUDIO {i + 1}",
                    "action": f"Maya explains part {i + 1}.",
                    "dialogue": [{"speaker": "Maya", "text": f"Line {i + 1}."}],
                }
                for i in range(count - 1)
            ] + [{
                "heading": "EXT. CITY",
                "action": "Maya smiles at the camera.",
                "dialogue": [{"speaker": "Narrator", "text": "Try it today"}],
            }]}
        if "characters" in properties:
            return {"characters": [
                {"name": "Maya", "role": "protagonist", "visual_description": "young host, red scarf"},
            ]}
        return {}


class FakeImage(ImageAdapter):
    def __init__(self, fail_scenes=()):
        self.fail_scenes = set(fail_scenes)
        self.calls = []

    async def generate(self, scene_action, style_guide, aspect_ratio, session_id, scene_index=None):
        self.calls.append((scene_action, aspect_ratio, scene_index))
        if scene_index in self.fail_scenes:
            raise RuntimeError(f"image backend refused scene {scene_index}")
        suffix = scene_index if scene_index is not None else "ref"
        return f"https://cdn.test/{session_id}/{suffix}.png"


class FakeKnowledge(GroundedKnowledgeAdapter):
    def __init__(self, fail=False):
        self.fail = fail
        self.queries = []

    async def search(self, sub_query, language, source_type):
        self.queries.append(sub_query)
        if self.fail:
            raise RuntimeError("search unavailable")
        return [{"title": sub_query, "content": f"Grounded findings on {sub_query}", "relevance": 0.8}]


class FakeTTS(TTSAdapter):
    def __init__(self, seconds_per_scene=5.0):
        self.seconds_per_scene = seconds_per_scene

    async def synthesize(self, scene, voice):
        return NarrationSegment(
            scene_id=scene.id,
            audio_duration=self.seconds_per_scene,
            transcript=scene.narration_text(),
            audio_data=b"RIFF",
        )


async def _no_sleep(_delay):
    await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def reset_log_context():
    """Logging context is task-local; keep one test's production id out of the next."""
    yield
    clear_context()


@pytest.fixture
def fake_text():
    return FakeTextModel()


@pytest.fixture
def fake_image():
    return FakeImage()


@pytest.fixture
def fake_knowledge():
    return FakeKnowledge()


@pytest.fixture
def failing_knowledge():
    return FakeKnowledge(fail=True)


@pytest.fixture
def adapters(fake_text, fake_image, fake_knowledge):
    return ProductionAdapters(image=fake_image, text=fake_text, knowledge=fake_knowledge, tts=FakeTTS())


@pytest.fixture
def engine():
    return ParallelExecutionEngine(sleep=_no_sleep, jitter=lambda: 0.0)


@pytest.fixture
def session_repository(tmp_path):
    return FileBasedSessionRepository(tmp_path / "sessions")


@pytest.fixture
def session_store(session_repository):
    return SessionStore(session_repository)


@pytest.fixture
def story_store(session_repository):
    return StorySessionStore(session_repository)
