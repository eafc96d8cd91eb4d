"""
Storage Module

Durable session records and the in-memory session stores layered on top.
"""

from .session_repository import (
    BLOBS,
    SESSIONS,
    STORY_SESSIONS,
    FileBasedSessionRepository,
    SessionRepository,
    validate_key,
)
from .session_store import BaseSessionStore, SessionStore, StorySessionStore

__all__ = [
    "BLOBS",
    "SESSIONS",
    "STORY_SESSIONS",
    "FileBasedSessionRepository",
    "SessionRepository",
    "validate_key",
    "BaseSessionStore",
    "SessionStore",
    "StorySessionStore",
]
