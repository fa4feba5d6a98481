"""Session API routes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..core.config import settings
from ..core.session import BuyerSession, SessionManager
from ..dependencies import current_session, get_session_manager
from ..models.notification import Notification

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["Session"])


class StartSessionRequest(BaseModel):
    """Buyer id comes from the auth layer; omit for guests"""
    buyer_id: Optional[str] = None


class SessionResponse(BaseModel):
    session_id: str
    buyer_id: Optional[str] = None


@router.post("", response_model=SessionResponse)
async def start_session(
    request: StartSessionRequest,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Start a buyer session"""
    expired = sessions.cleanup_old_sessions(settings.session_max_age_hours)
    if expired:
        logger.info(f"Cleaned up {expired} idle session(s)")

    session = sessions.create_session(buyer_id=request.buyer_id)
    logger.info(f"Session {session.session_id} started for {session.buyer_key}")
    return SessionResponse(session_id=session.session_id, buyer_id=session.buyer_id)


@router.delete("")
async def end_session(
    session: BuyerSession = Depends(current_session),
    sessions: SessionManager = Depends(get_session_manager),
):
    """End the session (logout)"""
    if not sessions.end_session(session.session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    logger.info(f"Session {session.session_id} ended")
    return {"session_id": session.session_id, "ended": True}


@router.get("/notifications", response_model=list[Notification])
async def drain_notifications(session: BuyerSession = Depends(current_session)):
    """Fetch and clear pending notifications"""
    return session.drain_notifications()
