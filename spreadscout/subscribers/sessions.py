"""
Conversation sessions for multi-step settings changes.

A front-end asks a subscriber for a value ("send the coin id to add"),
records what it is waiting for with `SessionStore.begin`, and routes the
next free-text reply through `SettingsConversation.handle_reply`.
Sessions expire so a stale prompt never captures an unrelated message.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from config import SESSION_TTL_SECONDS

from .service import InvalidSettingError, SubscriberService
from .store import SubscriberNotFound

logger = logging.getLogger(__name__)


class PendingAction(str, Enum):
    """Input a subscriber is in the middle of entering"""
    ADD_WHITELIST = "adding_to_whitelist"
    REMOVE_WHITELIST = "removing_from_whitelist"
    ADD_BLACKLIST = "adding_to_blacklist"
    REMOVE_BLACKLIST = "removing_from_blacklist"
    ADD_VENUE = "adding_to_market_whitelist"
    REMOVE_VENUE = "removing_from_market_whitelist"
    SET_MIN_PROFIT = "setting_min_profit"
    SET_MIN_VOLUME = "setting_min_volume"
    SET_TARGET = "setting_target"


PROMPTS = {
    PendingAction.ADD_WHITELIST: "Please send the coin ID you want to add.",
    PendingAction.REMOVE_WHITELIST: "Please send the coin ID you want to remove.",
    PendingAction.ADD_BLACKLIST: "Please enter the Coin ID you want to blacklist:",
    PendingAction.REMOVE_BLACKLIST: "Please enter the Coin ID you want to remove from the blacklist:",
    PendingAction.ADD_VENUE: "Please send the market name you want to add.",
    PendingAction.REMOVE_VENUE: "Please send the market name you want to remove.",
    PendingAction.SET_MIN_PROFIT: "Please send the minimum potential profit percentage (e.g., 2 for 2%).",
    PendingAction.SET_MIN_VOLUME: "Please send the minimum 24h volume (e.g., 1000).",
    PendingAction.SET_TARGET: "Please enter the target (e.g., USDT, BTC, ETH):",
}


@dataclass
class Session:
    """One pending prompt for one subscriber"""
    subscriber_id: str
    action: PendingAction
    expires_at: float


class SessionStore:
    """Pending prompts keyed by subscriber id, with expiry"""

    def __init__(
        self,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def begin(self, subscriber_id, action: PendingAction) -> str:
        """Start waiting for `action`; returns the prompt to show"""
        session = Session(
            subscriber_id=str(subscriber_id),
            action=action,
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock:
            self._sessions[session.subscriber_id] = session
        return PROMPTS[action]

    def peek(self, subscriber_id) -> Optional[PendingAction]:
        with self._lock:
            session = self._live_session(str(subscriber_id))
            return session.action if session else None

    def pop(self, subscriber_id) -> Optional[PendingAction]:
        """Consume the pending action (None if absent or expired)"""
        with self._lock:
            session = self._live_session(str(subscriber_id))
            self._sessions.pop(str(subscriber_id), None)
            return session.action if session else None

    def reset(self, subscriber_id) -> None:
        with self._lock:
            self._sessions.pop(str(subscriber_id), None)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, s in self._sessions.items() if s.expires_at <= now]
            for key in expired:
                del self._sessions[key]
        return len(expired)

    def _live_session(self, subscriber_id: str) -> Optional[Session]:
        session = self._sessions.get(subscriber_id)
        if session and session.expires_at <= self._clock():
            del self._sessions[subscriber_id]
            return None
        return session


class SettingsConversation:
    """Applies free-text replies to the pending settings action"""

    def __init__(self, service: SubscriberService, sessions: SessionStore):
        self.service = service
        self.sessions = sessions

    def prompt(self, subscriber_id, action: PendingAction) -> str:
        return self.sessions.begin(subscriber_id, action)

    def handle_reply(self, subscriber_id, text: str) -> Optional[str]:
        """
        Apply `text` to whatever the subscriber was asked for.

        Returns a confirmation (or validation message) for the subscriber,
        or None when no prompt was pending.
        """
        action = self.sessions.pop(subscriber_id)
        if action is None:
            return None

        text = (text or "").strip()
        try:
            return self._apply(subscriber_id, action, text)
        except InvalidSettingError as e:
            return str(e)
        except SubscriberNotFound:
            logger.error(f"User not found for chat ID: {subscriber_id}")
            return "There was an error. Please try again."

    def _apply(self, subscriber_id, action: PendingAction, text: str) -> str:
        service = self.service

        if action == PendingAction.ADD_WHITELIST:
            if service.add_to_whitelist(subscriber_id, text):
                return f"Coin ID {text} has been added to your whitelist."
            return f"Coin ID {text} is already in your whitelist."

        if action == PendingAction.REMOVE_WHITELIST:
            if service.remove_from_whitelist(subscriber_id, text):
                return f"Coin ID {text} has been removed from your whitelist."
            return f"Coin ID {text} is not in your whitelist."

        if action == PendingAction.ADD_BLACKLIST:
            asset = text.lower()
            if service.add_to_blacklist(subscriber_id, asset):
                return f"{asset} has been added to your blacklist."
            return f"{asset} is already in your blacklist."

        if action == PendingAction.REMOVE_BLACKLIST:
            asset = text.lower()
            if service.remove_from_blacklist(subscriber_id, asset):
                return f"{asset} has been removed from your blacklist."
            return f"{asset} is not in your blacklist."

        if action == PendingAction.ADD_VENUE:
            if service.add_venue(subscriber_id, text):
                return f"Market name {text} has been added to your whitelist."
            return f"Market name {text} is already in your whitelist."

        if action == PendingAction.REMOVE_VENUE:
            if service.remove_venue(subscriber_id, text):
                return f"Market name {text} has been removed from your whitelist."
            return f"Market name {text} is not in your whitelist."

        if action == PendingAction.SET_MIN_PROFIT:
            fraction = service.set_min_profit(subscriber_id, text)
            return f"Minimum profit percentage set to {fraction * 100:g}%."

        if action == PendingAction.SET_MIN_VOLUME:
            volume = service.set_min_volume(subscriber_id, text)
            return f"Minimum 24h volume set to {volume}."

        if action == PendingAction.SET_TARGET:
            target = service.set_target(subscriber_id, text)
            return f"Target set to {target} successfully."

        raise ValueError(f"Unhandled action: {action}")
