"""
SessionUseCase - recovery listings and housekeeping over both session stores.
"""

from typing import Any, Dict, List

from fastapi import HTTPException

from ...models import SessionMetadataResponse, StorageStatsResponse
from ...models.production import SessionMetadata
from ..infrastructure.storage.session_store import SessionStore, StorySessionStore


def _to_response(metadata: List[SessionMetadata]) -> List[SessionMetadataResponse]:
    return [SessionMetadataResponse(**m.to_dict()) for m in metadata]


class SessionUseCase:
    """Production sessions first, story sessions second; both are searched by id."""

    def __init__(self, session_store: SessionStore, story_store: StorySessionStore):
        self.session_store = session_store
        self.story_store = story_store

    def list_recoverable(self) -> List[SessionMetadataResponse]:
        merged = self.session_store.list_recoverable() + self.story_store.list_recoverable()
        merged.sort(key=lambda m: m.updated_at, reverse=True)
        return _to_response(merged)

    def recent_incomplete(self, limit: int = 5) -> List[SessionMetadataResponse]:
        merged = (
            self.session_store.get_recent_incomplete(limit)
            + self.story_store.get_recent_incomplete(limit)
        )
        merged.sort(key=lambda m: m.updated_at, reverse=True)
        return _to_response(merged[:limit])

    def stats(self) -> StorageStatsResponse:
        # Both stores share one repository
        return StorageStatsResponse(collections=self.session_store.repository.stats())

    async def get(self, session_id: str) -> Dict[str, Any]:
        for store in (self.session_store, self.story_store):
            state = await store.restore(session_id)
            if state is not None:
                return state.to_dict()
        raise HTTPException(status_code=404, detail="Session not found")

    def delete(self, session_id: str) -> Dict[str, Any]:
        deleted = self.session_store.delete(session_id)
        deleted = self.story_store.delete(session_id) or deleted
        if not deleted:
            raise HTTPException(status_code=404, detail="Session not found")
        return {"session_id": session_id, "deleted": True}

    def cleanup(self, age_days: float) -> int:
        return self.session_store.cleanup_older_than(age_days) + self.story_store.cleanup_older_than(age_days)
