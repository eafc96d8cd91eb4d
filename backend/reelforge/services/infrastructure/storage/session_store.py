"""
Session Store - authoritative in-memory session state with debounced
durable writes and recovery.

Reads and writes are O(1) against the in-memory map. Every mutation re-arms
a per-session debounce timer; when it fires, the latest snapshot goes to
the repository. Write failures are logged and swallowed so persistence can
never break a pipeline. Binary payloads are stripped before writing and
come back absent on restore.

The store is also the single owner of phase-result caching: pipelines keep
their research and script outputs in `phase_results` so a resumed session
skips work it already did.
"""

import asyncio
import time
from dataclasses import fields
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from ....config import SESSION_DEBOUNCE_SECONDS
from ....core.logging import LoggerAdapter, get_logger
from ....models.production import ProductionSessionState, SessionMetadata, StoryModeState
from .session_repository import SESSIONS, STORY_SESSIONS, SessionRepository

S = TypeVar("S", ProductionSessionState, StoryModeState)

SECONDS_PER_DAY = 24 * 60 * 60


class BaseSessionStore(Generic[S]):
    """Debounced write-behind cache over one repository collection."""

    collection: str = SESSIONS
    state_type: Type = ProductionSessionState

    def __init__(
        self,
        repository: SessionRepository,
        debounce_seconds: float = SESSION_DEBOUNCE_SECONDS,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.repository = repository
        self.debounce_seconds = debounce_seconds
        self._sessions: Dict[str, S] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._field_names = {f.name for f in fields(self.state_type)}
        self._logger = logger or get_logger(__name__, component="session_store", collection=self.collection)

    # ------------------------------------------------------------------
    # In-memory access
    # ------------------------------------------------------------------

    def get(self, session_id: str) -> Optional[S]:
        return self._sessions.get(session_id)

    def has(self, session_id: str) -> bool:
        return session_id in self._sessions

    def set(self, session_id: str, state: S) -> S:
        if state.id != session_id:
            raise ValueError(f"State id {state.id} does not match session id {session_id}")
        previous = self._sessions.get(session_id)
        self._touch(state, previous.updated_at if previous else None)
        self._sessions[session_id] = state
        self._schedule_write(session_id)
        return state

    def update(self, session_id: str, **patch: Any) -> Optional[S]:
        """Apply field updates; visible to `get` immediately, persisted after the debounce window."""
        state = self._sessions.get(session_id)
        if state is None:
            self._logger.warning("Update for unknown session", extra={"session_id": session_id})
            return None
        invalid = (set(patch) - self._field_names) | ({"id"} & set(patch))
        if invalid:
            raise ValueError(f"Cannot update fields: {sorted(invalid)}")
        previous_updated = state.updated_at
        for key, value in patch.items():
            setattr(state, key, value)
        self._touch(state, previous_updated)
        self._schedule_write(session_id)
        return state

    def initialize(self, session_id: str, **partial: Any) -> S:
        """Create (or reset) a session and write it immediately."""
        unknown = set(partial) - self._field_names
        if unknown:
            raise ValueError(f"Unknown session fields: {sorted(unknown)}")
        partial.setdefault("topic", "")
        state = self.state_type(id=session_id, **partial)
        previous = self._sessions.get(session_id)
        self._touch(state, previous.updated_at if previous else None)
        self._sessions[session_id] = state
        self._write(session_id)
        self._schedule_write(session_id)
        self._logger.info("Session initialized", extra={"session_id": session_id})
        return state

    def delete(self, session_id: str) -> bool:
        self._cancel_timer(session_id)
        existed = self._sessions.pop(session_id, None) is not None
        try:
            existed = self.repository.delete(self.collection, session_id) or existed
            self.repository.delete_blobs_with_prefix(session_id)
        except (OSError, ValueError) as e:
            self._logger.error("Failed to delete session", extra={"session_id": session_id, "error": str(e)})
        return existed

    @staticmethod
    def _touch(state: S, previous_updated: Optional[float]) -> None:
        state.updated_at = max(time.time(), state.updated_at or 0.0, previous_updated or 0.0)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _schedule_write(self, session_id: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (sync caller): write through.
            self._write(session_id)
            return
        self._cancel_timer(session_id)
        self._timers[session_id] = loop.call_later(self.debounce_seconds, self._on_debounce, session_id)

    def _on_debounce(self, session_id: str) -> None:
        self._timers.pop(session_id, None)
        self._write(session_id)

    def _cancel_timer(self, session_id: str) -> None:
        timer = self._timers.pop(session_id, None)
        if timer:
            timer.cancel()

    def _metadata(self, state: S) -> SessionMetadata:
        return SessionMetadata(
            session_id=state.id,
            created_at=state.updated_at,
            updated_at=state.updated_at,
            topic=state.topic,
            scene_count=len(state.screenplay),
            is_complete=state.is_complete,
            format_id=state.format_id,
        )

    def _write(self, session_id: str) -> bool:
        state = self._sessions.get(session_id)
        if state is None:
            return False
        try:
            self.repository.save(
                self.collection,
                session_id,
                state.to_dict(include_binary=False),
                self._metadata(state),
            )
            return True
        except (OSError, TypeError, ValueError) as e:
            self._logger.error(
                "Failed to persist session",
                extra={"session_id": session_id, "error": str(e)},
                exc_info=True,
            )
            return False

    def flush(self, session_id: str) -> bool:
        """Write a session now, cancelling any pending debounce."""
        self._cancel_timer(session_id)
        return self._write(session_id)

    def flush_all(self) -> int:
        return sum(1 for session_id in list(self._sessions) if self.flush(session_id))

    async def restore(self, session_id: str, expected_format: Optional[str] = None) -> Optional[S]:
        """
        Return a session, loading it from durable storage when not in memory.

        Binary fields come back absent. A session recorded for a different
        format than `expected_format` is not returned.
        """
        state = self._sessions.get(session_id)
        loaded = False
        if state is None:
            try:
                record = self.repository.load(self.collection, session_id)
            except ValueError as e:
                self._logger.warning("Invalid session id", extra={"session_id": session_id, "error": str(e)})
                return None
            if not record or "state" not in record:
                return None
            try:
                state = self.state_type.from_dict(record["state"])
            except (KeyError, TypeError, ValueError) as e:
                self._logger.error(
                    "Stored session is unreadable",
                    extra={"session_id": session_id, "error": str(e)},
                )
                return None
            loaded = True

        if expected_format and state.format_id and state.format_id != expected_format:
            self._logger.warning(
                f"Session format mismatch: expected format {expected_format}, got {state.format_id}",
                extra={"session_id": session_id},
            )
            return None

        if loaded:
            self._sessions[session_id] = state
            self._logger.info("Session restored", extra={"session_id": session_id})
        return state

    def list_recoverable(self) -> List[SessionMetadata]:
        """Durable sessions, newest updated_at first."""
        return self.repository.list_metadata(self.collection)

    def get_recent_incomplete(self, limit: int = 5) -> List[SessionMetadata]:
        return [m for m in self.list_recoverable() if not m.is_complete][:limit]

    def cleanup_older_than(self, age_days: float) -> int:
        """Delete sessions whose last update is older than `age_days`."""
        cutoff = time.time() - age_days * SECONDS_PER_DAY
        stale = set(self.repository.ids_older_than(self.collection, cutoff))
        stale.update(sid for sid, state in self._sessions.items() if state.updated_at < cutoff)
        for session_id in stale:
            self.delete(session_id)
        if stale:
            self._logger.info(
                "Cleaned up old sessions",
                extra={"deleted": len(stale), "age_days": age_days},
            )
        return len(stale)

    def clear_all(self) -> int:
        for session_id in list(self._timers):
            self._cancel_timer(session_id)
        for session_id in list(self._sessions):
            self.repository.delete_blobs_with_prefix(session_id)
        self._sessions.clear()
        return self.repository.clear(self.collection)

    def get_storage_stats(self) -> Dict[str, Any]:
        return {
            "in_memory": len(self._sessions),
            "pending_writes": len(self._timers),
            "collections": self.repository.stats(),
        }

    # ------------------------------------------------------------------
    # Phase-result cache
    # ------------------------------------------------------------------

    def cache_phase_result(self, session_id: str, phase_id: str, value: Any) -> bool:
        state = self._sessions.get(session_id)
        if state is None:
            return False
        results = dict(state.phase_results)
        results[phase_id] = value
        self.update(session_id, phase_results=results)
        return True

    def get_cached_phase_result(self, session_id: str, phase_id: str) -> Optional[Any]:
        state = self._sessions.get(session_id)
        if state is None:
            return None
        return state.phase_results.get(phase_id)

    # ------------------------------------------------------------------
    # Blobs
    # ------------------------------------------------------------------

    @staticmethod
    def blob_key(session_id: str, kind: str) -> str:
        return f"{session_id}-{kind}"

    def save_blob(self, session_id: str, kind: str, data: bytes) -> Optional[str]:
        """Store a binary payload and return its handle, or None if the write failed."""
        key = self.blob_key(session_id, kind)
        try:
            self.repository.save_blob(key, data)
        except (OSError, ValueError) as e:
            self._logger.error("Failed to store blob", extra={"blob_key": key, "error": str(e)})
            return None
        return key

    def load_blob(self, session_id: str, kind: str) -> Optional[bytes]:
        return self.repository.load_blob(self.blob_key(session_id, kind))

    def delete_blob(self, session_id: str, kind: str) -> bool:
        return self.repository.delete_blob(self.blob_key(session_id, kind))


class SessionStore(BaseSessionStore[ProductionSessionState]):
    """Production sessions."""

    collection = SESSIONS
    state_type = ProductionSessionState


class StorySessionStore(BaseSessionStore[StoryModeState]):
    """Story-mode sessions; carry a format_id used to reject cross-format loads."""

    collection = STORY_SESSIONS
    state_type = StoryModeState
