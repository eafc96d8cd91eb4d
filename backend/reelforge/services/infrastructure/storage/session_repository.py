"""
Session repository - durable backing for the session stores.

Implements the Repository pattern so the in-memory stores never touch the
filesystem directly. Three logical collections are kept:

    sessions/        production session records (one JSON document each)
    story-sessions/  story-mode session records
    blobs/           binary payloads keyed by "<session_id>-<kind>"

Each record is stored as {"session_id", "state", "metadata"}. An in-memory
secondary index of metadata per collection (built by scanning the
directories at startup) serves updated_at ordering and age-based cleanup
without reading every document.

Classes:
    SessionRepository: Abstract interface for session persistence
    FileBasedSessionRepository: JSON-file implementation
"""

import json
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from ....config import DATA_DIR
from ....core.logging import get_logger
from ....models.production import SessionMetadata

logger = get_logger(__name__, component="session_repository")

SESSIONS = "sessions"
STORY_SESSIONS = "story-sessions"
BLOBS = "blobs"
RECORD_COLLECTIONS = (SESSIONS, STORY_SESSIONS)

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]{0,200}$")


def validate_key(key: str) -> str:
    """Reject ids that could escape the storage directory."""
    if not key or not _SAFE_KEY_RE.match(key) or ".." in key:
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class SessionRepository(ABC):
    """
    Abstract repository for session records and blobs.

    Implementations must keep `created_at` immutable after the first save
    and `updated_at` non-decreasing per record.
    """

    @abstractmethod
    def save(self, collection: str, session_id: str, state: Dict[str, Any], metadata: SessionMetadata) -> SessionMetadata:
        """
        Write a record.

        Returns:
            The metadata actually stored (with the preserved created_at)
        """
        pass

    @abstractmethod
    def load(self, collection: str, session_id: str) -> Optional[Dict[str, Any]]:
        """Return {"session_id", "state", "metadata"} or None."""
        pass

    @abstractmethod
    def delete(self, collection: str, session_id: str) -> bool:
        pass

    @abstractmethod
    def list_metadata(self, collection: str) -> List[SessionMetadata]:
        """Metadata of every record, newest updated_at first."""
        pass

    @abstractmethod
    def ids_older_than(self, collection: str, cutoff: float) -> List[str]:
        pass

    @abstractmethod
    def clear(self, collection: str) -> int:
        pass

    @abstractmethod
    def save_blob(self, key: str, data: bytes) -> None:
        pass

    @abstractmethod
    def load_blob(self, key: str) -> Optional[bytes]:
        pass

    @abstractmethod
    def delete_blob(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete_blobs_with_prefix(self, prefix: str) -> int:
        pass

    @abstractmethod
    def stats(self) -> Dict[str, Dict[str, int]]:
        """Record count and byte size per collection."""
        pass


class FileBasedSessionRepository(SessionRepository):
    """JSON documents on disk plus an in-memory updated_at index."""

    def __init__(self, data_dir: Optional[Path] = None):
        self._root = Path(data_dir) if data_dir else DATA_DIR
        self._dirs: Dict[str, Path] = {
            name: self._root / name for name in (*RECORD_COLLECTIONS, BLOBS)
        }
        for path in self._dirs.values():
            path.mkdir(parents=True, exist_ok=True)

        self._index: Dict[str, Dict[str, SessionMetadata]] = {name: {} for name in RECORD_COLLECTIONS}
        self._lock = RLock()
        self._build_index()

    @property
    def root(self) -> Path:
        return self._root

    def _build_index(self) -> None:
        """Scan record directories and index their metadata."""
        with self._lock:
            for collection in RECORD_COLLECTIONS:
                index = self._index[collection]
                index.clear()
                for record_file in self._dirs[collection].glob("*.json"):
                    record = self._read_json(record_file)
                    if not record or "metadata" not in record:
                        continue
                    try:
                        index[record_file.stem] = SessionMetadata.from_dict(record["metadata"])
                    except (KeyError, TypeError, ValueError) as e:
                        logger.warning(
                            "Skipping unreadable session metadata",
                            extra={"path": str(record_file), "error": str(e)},
                        )
            logger.info(
                "Session index built",
                extra={name: len(entries) for name, entries in self._index.items()},
            )

    def _collection_dir(self, collection: str) -> Path:
        if collection not in RECORD_COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return self._dirs[collection]

    def _record_file(self, collection: str, session_id: str) -> Path:
        return self._collection_dir(collection) / f"{validate_key(session_id)}.json"

    def _blob_file(self, key: str) -> Path:
        return self._dirs[BLOBS] / f"{validate_key(key)}.bin"

    @staticmethod
    def _read_json(path: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else None
        except (OSError, ValueError) as e:
            logger.error("Error loading session record", extra={"path": str(path), "error": str(e)})
            return None

    @staticmethod
    def _write_atomic(path: Path, payload: bytes) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "wb") as f:
            f.write(payload)
        os.replace(tmp, path)

    def save(self, collection: str, session_id: str, state: Dict[str, Any], metadata: SessionMetadata) -> SessionMetadata:
        path = self._record_file(collection, session_id)
        with self._lock:
            previous = self._index[collection].get(session_id)
            if previous is not None:
                metadata.created_at = previous.created_at
                metadata.updated_at = max(metadata.updated_at, previous.updated_at)
            record = {
                "session_id": session_id,
                "state": state,
                "metadata": metadata.to_dict(),
            }
            payload = json.dumps(record, ensure_ascii=False, indent=2).encode("utf-8")
            self._write_atomic(path, payload)
            self._index[collection][session_id] = metadata
        return metadata

    def load(self, collection: str, session_id: str) -> Optional[Dict[str, Any]]:
        path = self._record_file(collection, session_id)
        if not path.exists():
            return None
        return self._read_json(path)

    def delete(self, collection: str, session_id: str) -> bool:
        path = self._record_file(collection, session_id)
        with self._lock:
            existed = self._index[collection].pop(session_id, None) is not None
            if path.exists():
                path.unlink()
                existed = True
        return existed

    def list_metadata(self, collection: str) -> List[SessionMetadata]:
        self._collection_dir(collection)
        with self._lock:
            entries = list(self._index[collection].values())
        return sorted(entries, key=lambda m: m.updated_at, reverse=True)

    def ids_older_than(self, collection: str, cutoff: float) -> List[str]:
        self._collection_dir(collection)
        with self._lock:
            return [sid for sid, meta in self._index[collection].items() if meta.updated_at < cutoff]

    def clear(self, collection: str) -> int:
        directory = self._collection_dir(collection)
        with self._lock:
            removed = 0
            for record_file in directory.glob("*.json"):
                record_file.unlink()
                removed += 1
            self._index[collection].clear()
        return removed

    def save_blob(self, key: str, data: bytes) -> None:
        self._write_atomic(self._blob_file(key), data)

    def load_blob(self, key: str) -> Optional[bytes]:
        path = self._blob_file(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def delete_blob(self, key: str) -> bool:
        path = self._blob_file(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def delete_blobs_with_prefix(self, prefix: str) -> int:
        validate_key(prefix)
        removed = 0
        for blob in self._dirs[BLOBS].glob(f"{prefix}-*.bin"):
            blob.unlink()
            removed += 1
        return removed

    def stats(self) -> Dict[str, Dict[str, int]]:
        result: Dict[str, Dict[str, int]] = {}
        for name, directory in self._dirs.items():
            pattern = "*.bin" if name == BLOBS else "*.json"
            files = list(directory.glob(pattern))
            result[name] = {
                "count": len(files),
                "bytes": sum(f.stat().st_size for f in files),
            }
        return result


