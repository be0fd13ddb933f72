from fastapi import APIRouter
from backend.app.api.endpoints import tracking, classic, builder, sessions, notifications, documents

api_router = APIRouter()
api_router.include_router(tracking.router, prefix="/tracking", tags=["tracking"])
api_router.include_router(classic.router, prefix="/classic", tags=["classic editor"])
api_router.include_router(builder.router, prefix="/builder", tags=["page builder"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
