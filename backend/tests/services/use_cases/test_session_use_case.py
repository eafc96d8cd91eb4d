"""
Tests for reelforge.services.use_cases.session_use_case
"""

import time

import pytest
from fastapi import HTTPException

from reelforge.models.status import ProductionStep
from reelforge.services.use_cases import SessionUseCase


@pytest.fixture
def use_case(session_store, story_store):
    return SessionUseCase(session_store, story_store)


class TestSessionUseCase:

    def test_lists_both_stores_newest_first(self, use_case, session_store, story_store):
        now = time.time()
        session_store.initialize("yt_1", topic="volcanoes", format_id="youtube-narrator", updated_at=now + 100)
        story_store.initialize("story_1", topic="a robot", format_id="movie-animation", updated_at=now + 200)
        session_store.initialize("yt_done", topic="tides", format_id="youtube-narrator")
        session_store.update("yt_done", current_step=ProductionStep.PRODUCTION)
        session_store.flush("yt_done")

        recoverable = use_case.list_recoverable()

        assert [m.session_id for m in recoverable] == ["story_1", "yt_1", "yt_done"]
        assert [m.session_id for m in use_case.recent_incomplete(limit=1)] == ["story_1"]

    def test_stats_cover_both_collections(self, use_case, session_store, story_store):
        session_store.initialize("yt_1", topic="volcanoes")
        story_store.initialize("story_1", topic="a robot")

        collections = use_case.stats().collections

        assert sum(c["count"] for c in collections.values()) == 2

    @pytest.mark.asyncio
    async def test_get_searches_both_stores(self, use_case, story_store):
        story_store.initialize("story_1", topic="a robot")

        state = await use_case.get("story_1")

        assert state["topic"] == "a robot"
        with pytest.raises(HTTPException) as exc_info:
            await use_case.get("missing")
        assert exc_info.value.status_code == 404

    def test_delete(self, use_case, session_store):
        session_store.initialize("yt_1", topic="volcanoes")

        assert use_case.delete("yt_1") == {"session_id": "yt_1", "deleted": True}
        with pytest.raises(HTTPException):
            use_case.delete("yt_1")

    def test_cleanup_sums_both_stores(self, use_case):
        assert use_case.cleanup(7) == 0
