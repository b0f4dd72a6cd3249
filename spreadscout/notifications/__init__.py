"""
Notification delivery for SpreadScout.

Opportunities are rendered to a short HTML message and delivered to the
subscriber through a sink (Telegram bot by default).
"""

from .models import Notification, NotificationType
from .formatter import format_opportunity
from .service import (
    NotificationSink,
    NotificationError,
    TelegramNotifier,
    MemorySink,
    NotificationService,
)

__all__ = [
    "Notification",
    "NotificationType",
    "format_opportunity",
    "NotificationSink",
    "NotificationError",
    "TelegramNotifier",
    "MemorySink",
    "NotificationService",
]
