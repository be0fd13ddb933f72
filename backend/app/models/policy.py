"""
Tracking Policy
Thresholds that decide whether an editing interval is worth recording.
"""
from pydantic import BaseModel
from typing import List

class TrackingPolicy(BaseModel):
    inactivity_timeout_seconds: int = 60
    min_duration_threshold_seconds: int = 10
    min_char_change_threshold: int = 3
    session_reuse_window_minutes: int = 5
    dedup_guard_window_seconds: int = 60
    session_ttl_hours: int = 12
    notification_ttl_seconds: int = 30
    tracked_document_types: List[str] = ["post", "page"]
    max_template_depth: int = 5
    min_ping_save_seconds: int = 3

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_hours * 3600

    @property
    def reuse_window_seconds(self) -> int:
        return self.session_reuse_window_minutes * 60

    @classmethod
    def from_settings(cls, settings) -> "TrackingPolicy":
        return cls(
            inactivity_timeout_seconds=settings.INACTIVITY_TIMEOUT_SECONDS,
            min_duration_threshold_seconds=settings.MIN_DURATION_THRESHOLD_SECONDS,
            min_char_change_threshold=settings.MIN_CHAR_CHANGE_THRESHOLD,
            session_reuse_window_minutes=settings.SESSION_REUSE_WINDOW_MINUTES,
            dedup_guard_window_seconds=settings.DEDUP_GUARD_WINDOW_SECONDS,
            session_ttl_hours=settings.SESSION_TTL_HOURS,
            notification_ttl_seconds=settings.NOTIFICATION_TTL_SECONDS,
            tracked_document_types=list(settings.TRACKED_DOCUMENT_TYPES),
            max_template_depth=settings.MAX_TEMPLATE_DEPTH,
            min_ping_save_seconds=settings.MIN_PING_SAVE_SECONDS,
        )
