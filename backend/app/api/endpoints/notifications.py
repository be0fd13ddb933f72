from fastapi import APIRouter, Depends
from backend.app.api.deps import get_tracker
from backend.app.services.tracker import Tracker

router = APIRouter()

@router.get("/{user_id}")
async def pop_tracking_status(user_id: str, tracker: Tracker = Depends(get_tracker)):
    """
    Returns the pending tracking status for the user once, then forgets it.
    """
    status = tracker.notifications.consume(user_id)
    if status is None:
        return {"status": None}
    return status.model_dump(mode="json")
