"""
Tracking status notices for the editor UI.
One pending notice per user, short TTL, newest wins. Delivery is advisory.
"""
import logging
from typing import Optional, Protocol

from pydantic import ValidationError

from backend.app.models.outcome import TrackingStatus
from backend.app.services.session_store import KeyValueStore, status_key

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    def publish(self, user_id: str, status: TrackingStatus) -> None: ...


class StoreNotificationChannel:
    def __init__(self, kv: KeyValueStore, ttl_seconds: int = 30):
        self.kv = kv
        self.ttl_seconds = ttl_seconds

    def publish(self, user_id: str, status: TrackingStatus) -> None:
        if not self.kv.set(status_key(user_id), status.model_dump(mode="json"), self.ttl_seconds):
            logger.debug("Tracking status for user %s dropped", user_id)

    def consume(self, user_id: str) -> Optional[TrackingStatus]:
        key = status_key(user_id)
        raw = self.kv.get(key)
        if raw is None:
            return None
        self.kv.delete(key)
        try:
            return TrackingStatus.model_validate(raw)
        except ValidationError:
            return None
