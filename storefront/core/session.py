"""Buyer session context"""

import asyncio
import uuid
from datetime import datetime
from typing import Optional
from dataclasses import dataclass, field

from ..models.notification import Notification
from ..services.cart_store import CartStore


@dataclass
class BuyerSession:
    """
    Everything scoped to one buyer's visit.

    Created at session start and torn down at logout; components receive
    the session explicitly instead of reading global state.
    """
    session_id: str
    created_at: datetime
    updated_at: datetime
    buyer_id: Optional[str] = None
    cart: CartStore = field(default_factory=CartStore)
    checkout_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    pending_order_id: Optional[str] = None
    pending_since: Optional[datetime] = None
    notifications: list[Notification] = field(default_factory=list)

    @property
    def buyer_key(self) -> str:
        """Identifier orders are filed under"""
        return self.buyer_id or f"guest:{self.session_id}"

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()

    def notify(self, notification: Notification) -> None:
        """Queue a notification for the UI"""
        self.notifications.append(notification)
        self.touch()

    def drain_notifications(self) -> list[Notification]:
        """Return and clear queued notifications"""
        drained, self.notifications = self.notifications, []
        return drained

    def mark_pending(self, order_id: str) -> None:
        self.pending_order_id = order_id
        self.pending_since = datetime.utcnow()
        self.touch()

    def release_pending(self, order_id: str) -> None:
        """Clear the pending attempt if it is still this order"""
        if self.pending_order_id == order_id:
            self.pending_order_id = None
            self.pending_since = None
            self.touch()


class SessionManager:
    """Manages buyer sessions"""

    def __init__(self):
        self.sessions: dict[str, BuyerSession] = {}

    def create_session(self, buyer_id: Optional[str] = None) -> BuyerSession:
        """Create a new session"""
        now = datetime.utcnow()
        session = BuyerSession(
            session_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            buyer_id=buyer_id,
        )
        self.sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[BuyerSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Tear down a session, dropping its cart and inbox"""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.cart.clear()
        session.notifications.clear()
        return True

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove sessions idle longer than max_age_hours"""
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            self.end_session(sid)
        return len(old_sessions)
