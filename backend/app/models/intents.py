"""
Intent Models
The three canonical intents every editing surface is translated into.
"""
from pydantic import BaseModel, field_validator
from typing import Any, List, Optional
from backend.app.models.session import SessionUpdate, SessionSource

class _Intent(BaseModel):
    user_id: Optional[str] = None
    document_id: Optional[str] = None

    @field_validator("user_id", "document_id", mode="before")
    @classmethod
    def _normalize_id(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        if value in ("", "0"):
            return None
        return value

    @property
    def has_identity(self) -> bool:
        return bool(self.user_id and self.document_id)

class StartSession(_Intent):
    force_new: bool = False
    source: SessionSource = SessionSource.STANDARD

class UpdateSession(_Intent):
    delta: SessionUpdate = SessionUpdate()

class CloseSession(_Intent):
    # Final state reported alongside the close, merged before duration/classification
    delta: Optional[SessionUpdate] = None
    # Builder tree being saved; final content is measured from it instead of the stored copy
    builder_data: Optional[List[Any]] = None
