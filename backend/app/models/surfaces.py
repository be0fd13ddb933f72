"""
Surface Models
Native payloads of the two editing surfaces before they become intents.
"""
import json
import logging
from pydantic import BaseModel, field_validator
from typing import List, Optional, Dict, Any
from backend.app.models.outcome import CloseResult, IntentResult

logger = logging.getLogger(__name__)

class ActivityData(BaseModel):
    """Client-side counters reported by the page builder script."""
    changes: int = 0
    elements_modified: List[str] = []
    duration: int = 0  # client timer, seconds

    @field_validator("elements_modified", mode="before")
    @classmethod
    def _ids_as_strings(cls, value):
        if not value:
            return []
        return [str(v) for v in value if v not in (None, "")]

class BuilderPing(BaseModel):
    """Periodic session report from the page builder (also sent on save)."""
    document_id: Optional[str] = None
    session_id: Optional[str] = None
    has_changes: bool = True
    last_activity: Optional[int] = None  # epoch milliseconds
    is_save: bool = False
    activity_data: ActivityData = ActivityData()

    @field_validator("document_id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value) if value is not None else None

    @field_validator("activity_data", mode="before")
    @classmethod
    def _decode_activity(cls, value):
        # The builder script posts this field as a JSON string
        if isinstance(value, str):
            try:
                return json.loads(value) or {}
            except ValueError as e:
                logger.warning("Undecodable activity data: %s", e)
                return {}
        return value or {}

class BuilderHeartbeat(BaseModel):
    screen_id: str = ""
    post_id: Optional[str] = None
    data: Dict[str, Any] = {}

    @property
    def is_builder_screen(self) -> bool:
        return "elementor" in self.screen_id or "builder" in self.screen_id

    @property
    def is_last(self) -> bool:
        return "wp_autosave" in self.data or self.data.get("elementor_heartbeat") == "last"

class SurfaceResult(BaseModel):
    """What a native trigger turned into. `ignored` names the reason when nothing was forwarded."""
    document_id: Optional[str] = None
    start: Optional[IntentResult] = None
    update: Optional[IntentResult] = None
    close: Optional[CloseResult] = None
    ignored: Optional[str] = None
