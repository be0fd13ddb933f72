from fastapi import APIRouter, Depends, HTTPException
from backend.app.api.deps import get_tracker
from backend.app.models.intents import CloseSession, StartSession, UpdateSession
from backend.app.models.outcome import CloseResult
from backend.app.services.tracker import Tracker

router = APIRouter()

def close_body(result: CloseResult) -> dict:
    """Terminal status first, then the details the editor UI may show."""
    if result.error is not None:
        status = result.error.value
    else:
        status = result.disposition.value
    return {"status": status, "persisted": result.persisted, **result.model_dump(mode="json")}

@router.post("/start")
async def start_session(intent: StartSession, tracker: Tracker = Depends(get_tracker)):
    """
    Opens a tracking session, or keeps the one already open if it is recent.
    """
    try:
        result = tracker.reconciler.start(intent)
        return {"status": "active" if result.accepted else result.error.value, **result.model_dump(mode="json")}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/update")
async def update_session(intent: UpdateSession, tracker: Tracker = Depends(get_tracker)):
    """
    Merges client activity into the open session (opens one if needed).
    """
    try:
        result = tracker.reconciler.update(intent)
        return {"status": "updated" if result.accepted else result.error.value, **result.model_dump(mode="json")}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/close")
async def close_session(intent: CloseSession, tracker: Tracker = Depends(get_tracker)):
    """
    Closes the session: duration, change magnitude, classification, one record at most.
    """
    try:
        return close_body(tracker.reconciler.close(intent))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
