"""Buyer-facing notifications"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Notification(BaseModel):
    """Toast/alert message for the storefront UI"""
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    order_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
