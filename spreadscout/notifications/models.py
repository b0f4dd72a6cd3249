"""
Notification data models.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from enum import Enum


class NotificationType(str, Enum):
    """Types of notifications"""
    ARBITRAGE_OPPORTUNITY = "arbitrage_opportunity"
    SYSTEM_ALERT = "system_alert"


class Notification(BaseModel):
    """Notification message sent to one subscriber"""
    id: str
    subscriber_id: str
    type: NotificationType = NotificationType.ARBITRAGE_OPPORTUNITY
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    # Delivery tracking
    delivered: bool = False
    delivery_error: Optional[str] = None
