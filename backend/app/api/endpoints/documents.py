from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Any, List, Optional
from backend.app.api.deps import get_tracker
from backend.app.models.document import DocumentSnapshot
from backend.app.services.tracker import Tracker

router = APIRouter()

class DocumentBody(BaseModel):
    document_type: str = "post"
    title: str = ""
    raw_content: str = ""
    builder_data: Optional[List[Any]] = None

@router.put("/{document_id}")
async def put_document(document_id: str, body: DocumentBody, tracker: Tracker = Depends(get_tracker)):
    """
    Publishes the host's current copy of a document (or builder template).
    """
    try:
        document = DocumentSnapshot(document_id=document_id, **body.model_dump())
        tracker.documents.put(document)
        return {"status": "success", "document_id": document_id}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/{document_id}")
async def get_document(document_id: str, tracker: Tracker = Depends(get_tracker)):
    document = tracker.documents.get_document(document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document.model_dump(mode="json")
