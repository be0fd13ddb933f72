from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from typing import Any, Dict, Optional
from backend.app.api.deps import get_tracker
from backend.app.services.tracker import Tracker

router = APIRouter()

class EditScreenRequest(BaseModel):
    user_id: str
    params: Dict[str, Any] = {}
    referer: Optional[str] = None

class SaveRequest(BaseModel):
    user_id: str
    document_id: str
    is_revision: bool = False
    is_autosave: bool = False

@router.post("/open")
async def edit_screen_opened(body: EditScreenRequest, request: Request, tracker: Tracker = Depends(get_tracker)):
    """
    The classic edit screen was loaded. The document id may be in the body params,
    the query string or the referer.
    """
    try:
        params = {**dict(request.query_params), **body.params}
        referer = body.referer or request.headers.get("referer")
        result = tracker.classic.edit_screen_opened(body.user_id, params, referer)
        return result.model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/save")
async def document_saved(body: SaveRequest, tracker: Tracker = Depends(get_tracker)):
    """
    The classic editor saved the document. Revisions and autosaves are ignored.
    """
    try:
        result = tracker.classic.document_saved(
            body.user_id,
            body.document_id,
            is_revision=body.is_revision,
            is_autosave=body.is_autosave,
        )
        return result.model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
