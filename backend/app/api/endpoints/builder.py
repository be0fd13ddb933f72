import json
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, field_validator
from typing import Any, Dict, List, Optional
from backend.app.api.deps import get_tracker
from backend.app.models.surfaces import BuilderHeartbeat, BuilderPing
from backend.app.services.tracker import Tracker

router = APIRouter()

class EditorLoadedRequest(BaseModel):
    user_id: str
    params: Dict[str, Any] = {}
    referer: Optional[str] = None

class PingRequest(BuilderPing):
    user_id: str

class HeartbeatRequest(BuilderHeartbeat):
    user_id: str
    referer: Optional[str] = None

class DocumentRequest(BaseModel):
    user_id: str
    document_id: str

class SaveBuilderRequest(DocumentRequest):
    data: List[Any]

    @field_validator("data", mode="before")
    @classmethod
    def _decode_data(cls, value):
        # The builder posts its tree as a JSON string
        if isinstance(value, str):
            return json.loads(value)
        return value

@router.post("/loaded")
async def editor_loaded(body: EditorLoadedRequest, request: Request, tracker: Tracker = Depends(get_tracker)):
    try:
        params = {**dict(request.query_params), **body.params}
        referer = body.referer or request.headers.get("referer")
        return tracker.builder.editor_loaded(body.user_id, params, referer).model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/ping")
async def session_ping(body: PingRequest, request: Request, tracker: Tracker = Depends(get_tracker)):
    """
    Periodic activity report from the builder script.
    A ping flagged as a save with a meaningful timer also closes the session.
    """
    try:
        referer = request.headers.get("referer")
        return tracker.builder.session_ping(body.user_id, body, referer).model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/heartbeat")
async def heartbeat(body: HeartbeatRequest, request: Request, tracker: Tracker = Depends(get_tracker)):
    try:
        referer = body.referer or request.headers.get("referer")
        return tracker.builder.heartbeat(body.user_id, body, referer).model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/save")
async def save_builder(body: SaveBuilderRequest, tracker: Tracker = Depends(get_tracker)):
    try:
        return tracker.builder.save_builder(body.user_id, body.document_id, body.data).model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/after-save")
async def after_save(body: DocumentRequest, tracker: Tracker = Depends(get_tracker)):
    try:
        return tracker.builder.after_save(body.user_id, body.document_id).model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/new-session")
async def start_new_session(body: DocumentRequest, tracker: Tracker = Depends(get_tracker)):
    """
    Called by the builder script right after a save so the next episode starts fresh.
    """
    try:
        return tracker.builder.start_new_session(body.user_id, body.document_id).model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
