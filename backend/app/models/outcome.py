"""
Outcome Models
What a closed editing session turns into, and how every intent reports back.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum

class Disposition(str, Enum):
    SKIP = "skipped_no_changes_short_duration"
    DURATION_ONLY = "tracked_duration_only"
    CHANGES_ONLY = "tracked_changes_only"
    FULL = "tracked_full"
    ERROR = "error_db"

    @property
    def persisted(self) -> bool:
        return self in (Disposition.DURATION_ONLY, Disposition.CHANGES_ONLY, Disposition.FULL)

class ErrorKind(str, Enum):
    MISSING_IDENTITY = "missing_identity"
    NO_SESSION = "no_session"
    NO_DOCUMENT = "no_document"
    UNTRACKED_DOCUMENT = "untracked_document"
    PERSISTENCE_FAILURE = "persistence_failure"
    DUPLICATE_CLOSE = "duplicate_close"
    STORE_UNAVAILABLE = "store_unavailable"

class DurationSource(str, Enum):
    CLIENT_TIMER = "client_timer"
    WALL_CLOCK = "wall_clock"

class Outcome(BaseModel):
    """Finalized, classified editing session. Never mutated once built."""
    id: Optional[str] = None
    user_id: str
    document_id: str
    document_type: str = ""
    document_title: str = ""
    start_time: datetime
    end_time: datetime
    duration: int
    duration_source: DurationSource = DurationSource.WALL_CLOCK
    char_delta: int = 0
    word_delta: int = 0
    builder_length_delta: int = 0
    activity_count: int = 0
    modified_element_count: int = 0
    activity_summary: str = ""
    disposition: Disposition

    class Config:
        frozen = True

class CloseResult(BaseModel):
    """
    Result of a close intent.
    `error` is set for every path that did not persist a record,
    except a plain skip, which is a normal classification.
    """
    disposition: Optional[Disposition] = None
    outcome: Optional[Outcome] = None
    record_id: Optional[str] = None
    error: Optional[ErrorKind] = None

    @property
    def persisted(self) -> bool:
        return self.record_id is not None

class IntentResult(BaseModel):
    """Result of a start or update intent."""
    accepted: bool
    error: Optional[ErrorKind] = None
    started_at: Optional[datetime] = None
    activity_count: int = 0
    has_builder_changes: bool = False

class TrackingStatus(BaseModel):
    """Advisory status shown to the editor after a close (consumed once by the UI)."""
    status: str
    document_id: str
    document_title: str = ""
    duration: Optional[int] = None
    duration_label: Optional[str] = None
    has_builder_changes: bool = False
