from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Literal, Optional
from backend.app.api.deps import get_tracker
from backend.app.services.persistence import PersistenceError, SessionQuery
from backend.app.services.tracker import Tracker

router = APIRouter()

def session_query(
    user_id: Optional[str] = None,
    document_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    orderby: Literal["start_time", "end_time", "duration", "user_id", "document_id"] = "start_time",
    order: Literal["ASC", "DESC"] = "DESC",
    limit: int = Query(100, ge=0, le=1000),
    offset: int = Query(0, ge=0),
) -> SessionQuery:
    return SessionQuery(
        user_id=user_id,
        document_id=document_id,
        start_date=start_date,
        end_date=end_date,
        orderby=orderby,
        order=order,
        limit=limit,
        offset=offset,
    )

@router.get("")
async def list_sessions(filters: SessionQuery = Depends(session_query), tracker: Tracker = Depends(get_tracker)):
    """
    Recorded editing sessions, newest first by default.
    """
    try:
        sessions = tracker.sink.query(filters)
        return {
            "sessions": [s.model_dump(mode="json") for s in sessions],
            "count": len(sessions),
            "limit": filters.limit,
            "offset": filters.offset,
        }
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/total-duration")
async def total_duration(filters: SessionQuery = Depends(session_query), tracker: Tracker = Depends(get_tracker)):
    try:
        return {"total_duration": tracker.sink.sum_duration(filters)}
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
