"""
Ephemeral TTL store for in-flight sessions, dedup guards and status notices.

Best effort by contract: reads of a missing, expired or unreachable key return
None, failed writes return False, and nothing here raises into the tracker.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol, Tuple
from urllib.parse import quote

from arango.exceptions import ArangoError
from pydantic import ValidationError

from backend.app.db.arango import ArangoDB, LIVE_COLLECTION
from backend.app.models.session import EditingSession

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def session_key(user_id: str, document_id: str) -> str:
    return f"ett_session_{user_id}_{document_id}"


def guard_key(user_id: str, document_id: str) -> str:
    return f"ett_last_session_{user_id}_{document_id}"


def status_key(user_id: str) -> str:
    return f"ett_tracking_status_{user_id}"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...
    def set(self, key: str, value: Any, ttl_seconds: int) -> bool: ...
    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store for development and tests."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or utcnow
        self._items: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        now = self._clock().timestamp()
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at <= now:
                del self._items[key]
                logger.debug("Key %r expired and deleted", key)
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        expires_at = self._clock().timestamp() + ttl_seconds
        with self._lock:
            self._items[key] = (value, expires_at)
        return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def keys(self):
        return list(self._items)


class ArangoKeyValueStore:
    """LiveSessions collection with a TTL index on `expires_at` (epoch seconds)."""

    def __init__(self, arango: ArangoDB, clock: Optional[Clock] = None, collection: str = LIVE_COLLECTION) -> None:
        self._arango = arango
        self._clock = clock or utcnow
        self._collection_name = collection

    @staticmethod
    def _doc_key(key: str) -> str:
        # _key only allows a restricted alphabet; percent-encoding stays inside it
        return quote(key, safe="_-")

    def _collection(self):
        database = self._arango.get_db()
        if database is None:
            return None
        return database.collection(self._collection_name)

    def get(self, key: str) -> Optional[Any]:
        try:
            col = self._collection()
            if col is None:
                logger.warning("Store unavailable, cannot read %r", key)
                return None
            doc = col.get(self._doc_key(key))
            if not doc:
                return None
            if doc.get("expires_at", 0) <= self._clock().timestamp():
                # The TTL index sweeps periodically; do not serve what it has not removed yet
                col.delete(doc["_key"], ignore_missing=True)
                logger.debug("Key %r expired and deleted", key)
                return None
            return doc.get("value")
        except (ArangoError, OSError) as e:
            logger.warning("Failed to read key %r: %s", key, e)
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        now = self._clock()
        doc = {
            "_key": self._doc_key(key),
            "key": key,
            "value": value,
            "updated_at": now.isoformat(),
            "expires_at": now.timestamp() + ttl_seconds,
        }
        try:
            col = self._collection()
            if col is None:
                logger.warning("Store unavailable, cannot write %r", key)
                return False
            col.insert(doc, overwrite=True, silent=True)
            return True
        except (ArangoError, OSError) as e:
            logger.warning("Failed to write key %r: %s", key, e)
            return False

    def delete(self, key: str) -> None:
        try:
            col = self._collection()
            if col is None:
                logger.warning("Store unavailable, cannot delete %r", key)
                return
            col.delete(self._doc_key(key), ignore_missing=True)
        except (ArangoError, OSError) as e:
            logger.warning("Failed to delete key %r: %s", key, e)


class SessionStore:
    """Typed view over a KeyValueStore: sessions keyed by (user, document) plus dedup guards."""

    def __init__(self, kv: KeyValueStore, session_ttl_seconds: int, guard_ttl_seconds: int) -> None:
        self.kv = kv
        self.session_ttl_seconds = session_ttl_seconds
        self.guard_ttl_seconds = guard_ttl_seconds

    def load(self, user_id: str, document_id: str) -> Optional[EditingSession]:
        raw = self.kv.get(session_key(user_id, document_id))
        if raw is None:
            return None
        try:
            return EditingSession.model_validate(raw)
        except ValidationError as e:
            # A record written by an incompatible version is as good as expired
            logger.warning("Discarding unreadable session for %s/%s: %s", user_id, document_id, e)
            self.delete(user_id, document_id)
            return None

    def save(self, session: EditingSession) -> bool:
        return self.kv.set(
            session_key(session.user_id, session.document_id),
            session.model_dump(mode="json"),
            self.session_ttl_seconds,
        )

    def delete(self, user_id: str, document_id: str) -> None:
        self.kv.delete(session_key(user_id, document_id))

    def get_guard(self, user_id: str, document_id: str) -> Optional[datetime]:
        raw = self.kv.get(guard_key(user_id, document_id))
        if raw is None:
            return None
        try:
            return datetime.fromisoformat(raw)
        except (TypeError, ValueError):
            return None

    def set_guard(self, user_id: str, document_id: str, recorded_at: datetime) -> bool:
        return self.kv.set(guard_key(user_id, document_id), recorded_at.isoformat(), self.guard_ttl_seconds)
