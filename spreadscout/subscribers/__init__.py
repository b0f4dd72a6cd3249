"""
Subscriber management for SpreadScout.

Provides:
- Subscriber profiles (filter preferences)
- Profile storage (in-memory with optional JSON persistence)
- Settings operations with input validation
- Short-lived conversation sessions for free-text replies
- HTTP settings API (routes.py)
"""

from .models import SubscriberProfile
from .store import SubscriberStore, InMemorySubscriberStore, SubscriberNotFound
from .service import SubscriberService, InvalidSettingError
from .sessions import SessionStore, SettingsConversation, PendingAction

__all__ = [
    "SubscriberProfile",
    "SubscriberStore",
    "InMemorySubscriberStore",
    "SubscriberNotFound",
    "SubscriberService",
    "InvalidSettingError",
    "SessionStore",
    "SettingsConversation",
    "PendingAction",
]
