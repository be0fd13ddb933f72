from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

class SessionSource(str, Enum):
    STANDARD = "standard"   # classic editor screen
    BUILDER = "builder"     # page builder editor load
    AJAX = "ajax"           # client-requested reset after a save
    RECOVERY = "recovery"   # update/close arrived with nothing open

class SessionUpdate(BaseModel):
    """
    Partial patch reported by an editing surface.
    Every field is optional; absent fields leave the session untouched.
    """
    builder_hash: Optional[str] = None
    builder_length: Optional[int] = None
    activity_delta: int = 0
    modified_element_ids: List[str] = []
    client_timer_seconds: Optional[int] = None
    last_activity_at: Optional[datetime] = None

    @field_validator("modified_element_ids", mode="before")
    @classmethod
    def _ids_as_strings(cls, value):
        if value is None:
            return []
        return [str(v) for v in value if v is not None and v != ""]

    def is_empty(self) -> bool:
        return (
            self.builder_hash is None
            and self.builder_length is None
            and not self.activity_delta
            and not self.modified_element_ids
            and not self.client_timer_seconds
            and self.last_activity_at is None
        )

class EditingSession(BaseModel):
    """
    In-flight session for one (user, document) pair.
    Lives in the ephemeral store until a close consumes it or the TTL drops it.
    """
    user_id: str
    document_id: str
    started_at: datetime
    source: SessionSource = SessionSource.STANDARD

    # Snapshot at creation, not re-read at close
    document_type: str = ""
    document_title: str = ""

    initial_length: int = 0
    initial_stripped_length: int = 0
    initial_word_count: int = 0

    # Only for page builder documents
    initial_builder_hash: Optional[str] = None
    initial_builder_length: int = 0
    final_builder_hash: Optional[str] = None
    final_builder_length: Optional[int] = None
    has_builder_changes: bool = False

    activity_count: int = 0
    modified_element_ids: List[str] = Field(default_factory=list)
    client_timer_seconds: Optional[int] = None
    last_activity_at: Optional[datetime] = None

    @property
    def key(self) -> str:
        return f"{self.user_id}_{self.document_id}"

    def age_seconds(self, now: datetime) -> float:
        return (now - self.started_at).total_seconds()

    def apply(self, delta: SessionUpdate, now: datetime) -> "EditingSession":
        """Returns a copy with the patch merged in; creation fields are never touched."""
        changes = {"last_activity_at": delta.last_activity_at or now}

        if delta.builder_hash is not None:
            changes["final_builder_hash"] = delta.builder_hash
            changes["has_builder_changes"] = delta.builder_hash != self.initial_builder_hash
        if delta.builder_length is not None:
            changes["final_builder_length"] = delta.builder_length

        if delta.activity_delta > 0:
            changes["activity_count"] = self.activity_count + delta.activity_delta

        if delta.modified_element_ids:
            merged = list(self.modified_element_ids)
            for element_id in delta.modified_element_ids:
                if element_id not in merged:
                    merged.append(element_id)
            changes["modified_element_ids"] = merged

        if delta.client_timer_seconds and delta.client_timer_seconds > 0:
            changes["client_timer_seconds"] = delta.client_timer_seconds

        return self.model_copy(update=changes)
