"""
Tests for reelforge.services.infrastructure.storage.session_store
"""

import asyncio
import time

import pytest

from reelforge.models.production import NarrationSegment, ScreenplayScene, VisualAsset
from reelforge.models.status import ProductionStep
from reelforge.services.infrastructure.storage.session_repository import SESSIONS, FileBasedSessionRepository
from reelforge.services.infrastructure.storage.session_store import SessionStore, StorySessionStore


@pytest.fixture
def repository(tmp_path):
    return FileBasedSessionRepository(tmp_path / "data")


@pytest.fixture
def store(repository):
    return SessionStore(repository, debounce_seconds=0.05)


def _scene(i):
    return ScreenplayScene(id=f"scene_{i}", scene_number=i, heading=f"INT. ROOM {i}", action="Something happens")


class TestInMemoryAccess:

    def test_initialize_writes_immediately(self, store, repository):
        state = store.initialize("s1", topic="volcanoes", format_id="documentary")

        assert store.get("s1") is state
        assert repository.load(SESSIONS, "s1")["state"]["topic"] == "volcanoes"

    def test_initialize_rejects_unknown_fields(self, store):
        with pytest.raises(ValueError):
            store.initialize("s1", nonsense=True)

    def test_update_is_visible_immediately(self, store):
        store.initialize("s1", topic="t")

        store.update("s1", screenplay=[_scene(1)], current_step=ProductionStep.SCREENPLAY)

        assert len(store.get("s1").screenplay) == 1
        assert store.get("s1").current_step == ProductionStep.SCREENPLAY

    def test_update_rejects_id_and_unknown_fields(self, store):
        store.initialize("s1", topic="t")

        with pytest.raises(ValueError):
            store.update("s1", id="other")
        with pytest.raises(ValueError):
            store.update("s1", bogus=1)
        assert store.update("missing", topic="x") is None

    def test_updated_at_never_decreases(self, store):
        state = store.initialize("s1", topic="t")
        state.updated_at = time.time() + 1000
        before = state.updated_at

        store.update("s1", topic="u")

        assert store.get("s1").updated_at >= before

    def test_set_requires_matching_id(self, store):
        state = store.initialize("s1", topic="t")
        with pytest.raises(ValueError):
            store.set("s2", state)

    def test_phase_result_cache(self, store):
        store.initialize("s1", topic="t")

        assert store.cache_phase_result("s1", "research", {"summary": "x"}) is True
        assert store.get_cached_phase_result("s1", "research") == {"summary": "x"}
        assert store.get_cached_phase_result("s1", "script") is None
        assert store.cache_phase_result("missing", "research", {}) is False


class TestPersistence:

    @pytest.mark.asyncio
    async def test_writes_are_debounced(self, store, repository):
        store.initialize("s1", topic="first")
        store.update("s1", topic="second")
        store.update("s1", topic="third")

        assert repository.load(SESSIONS, "s1")["state"]["topic"] == "first"
        await asyncio.sleep(0.1)
        assert repository.load(SESSIONS, "s1")["state"]["topic"] == "third"

    @pytest.mark.asyncio
    async def test_flush_writes_now(self, store, repository):
        store.initialize("s1", topic="first")
        store.update("s1", topic="flushed")

        assert store.flush("s1") is True
        assert repository.load(SESSIONS, "s1")["state"]["topic"] == "flushed"

    @pytest.mark.asyncio
    async def test_restore_from_disk_strips_binary(self, repository):
        writer = SessionStore(repository, debounce_seconds=0.01)
        writer.initialize("s1", topic="t", format_id="youtube-narrator")
        writer.update(
            "s1",
            narration_segments=[NarrationSegment("scene_1", 2.0, "hello", audio_data=b"raw")],
            visuals=[VisualAsset(scene_id="scene_1", image_url="http://img", cached_blob=b"png")],
        )
        writer.flush("s1")

        reader = SessionStore(repository)
        restored = await reader.restore("s1")

        assert restored.topic == "t"
        assert restored.narration_segments[0].audio_data is None
        assert restored.visuals[0].cached_blob is None
        assert reader.get("s1") is restored

    @pytest.mark.asyncio
    async def test_restore_rejects_other_format(self, repository):
        writer = StorySessionStore(repository)
        writer.initialize("story_1", topic="t", format_id="movie-animation")

        reader = StorySessionStore(repository)

        assert await reader.restore("story_1", expected_format="documentary") is None
        assert await reader.restore("story_1", expected_format="movie-animation") is not None

    @pytest.mark.asyncio
    async def test_restore_unknown_or_invalid_id(self, store):
        assert await store.restore("missing") is None
        assert await store.restore("../escape") is None

    def test_list_recoverable_and_recent_incomplete(self, store):
        store.initialize("done", topic="a")
        store.update("done", current_step=ProductionStep.PRODUCTION)
        store.initialize("open", topic="b")

        recoverable = store.list_recoverable()
        incomplete = store.get_recent_incomplete()

        assert {m.session_id for m in recoverable} == {"done", "open"}
        assert [m.session_id for m in incomplete] == ["open"]

    def test_cleanup_older_than(self, store, repository):
        old = store.initialize("old", topic="a")
        store.initialize("fresh", topic="b")
        old.updated_at = time.time() - 10 * 24 * 60 * 60
        repository._index[SESSIONS]["old"].updated_at = old.updated_at

        removed = store.cleanup_older_than(7)

        assert removed == 1
        assert store.get("old") is None
        assert store.get("fresh") is not None

    def test_delete_removes_record_and_blobs(self, store, repository):
        store.initialize("s1", topic="t")
        store.save_blob("s1", "narration-scene_1", b"wav")

        assert store.delete("s1") is True
        assert repository.load(SESSIONS, "s1") is None
        assert store.load_blob("s1", "narration-scene_1") is None
        assert store.delete("s1") is False

    def test_write_failures_are_swallowed(self, store, repository, monkeypatch):
        def fail(*_args, **_kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(repository, "save", fail)

        state = store.initialize("s1", topic="t")

        assert state.topic == "t"
        assert store.flush("s1") is False

    def test_clear_all(self, store):
        store.initialize("a", topic="t")
        store.initialize("b", topic="t")

        assert store.clear_all() == 2
        assert store.get("a") is None
