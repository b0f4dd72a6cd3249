"""
Notification sinks and delivery bookkeeping.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from config import TELEGRAM_BOT_TOKEN, FETCH_TIMEOUT_SECONDS

from .models import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised by a sink when a message could not be delivered"""


class NotificationSink(ABC):
    """Delivers a rendered message to one subscriber"""

    @abstractmethod
    async def send(self, subscriber_id: str, message: str) -> None:
        """Deliver `message`; raises NotificationError on failure"""

    async def close(self):
        """Release network resources"""


class TelegramNotifier(NotificationSink):
    """Telegram Bot API sink (subscriber id = chat id)"""

    API_URL = "https://api.telegram.org"

    def __init__(
        self,
        token: str = TELEGRAM_BOT_TOKEN,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
    ):
        self.token = token
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def send(self, subscriber_id: str, message: str) -> None:
        if not subscriber_id:
            raise NotificationError("chat_id is empty")
        if not self.token:
            raise NotificationError("Telegram bot token is not configured")

        url = f"{self.API_URL}/bot{self.token}/sendMessage"
        payload = {
            "chat_id": subscriber_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

        try:
            async with self._get_session().post(url, json=payload) as resp:
                if resp.status != 200:
                    raise NotificationError(f"Telegram API error: {await resp.text()}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NotificationError(f"Telegram request failed: {e!r}") from e

        logger.debug(f"Sent Telegram notification to {subscriber_id}")

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None


class MemorySink(NotificationSink):
    """Collects messages in memory (simulation mode and tests)"""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    async def send(self, subscriber_id: str, message: str) -> None:
        self.messages.append((subscriber_id, message))
        logger.info(f"[memory] Notification for {subscriber_id}:\n{message}")


class NotificationService:
    """
    Sends notifications through a sink and keeps delivery statistics.

    Delivery failures are logged and counted, never raised, so one
    unreachable subscriber cannot interrupt a scan cycle.
    """

    def __init__(self, sink: NotificationSink, history_size: int = 100):
        self.sink = sink
        self._history: deque = deque(maxlen=history_size)

        # Statistics
        self.notifications_sent = 0
        self.notifications_failed = 0

    async def notify(
        self,
        subscriber_id: str,
        message: str,
        notification_type: NotificationType = NotificationType.ARBITRAGE_OPPORTUNITY,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            id=str(uuid.uuid4()),
            subscriber_id=str(subscriber_id),
            type=notification_type,
            message=message,
            data=data,
        )

        try:
            await self.sink.send(notification.subscriber_id, message)
            notification.delivered = True
            self.notifications_sent += 1
        except Exception as e:
            logger.error(f"Error sending message to {subscriber_id}: {e!r}")
            notification.delivery_error = str(e)
            self.notifications_failed += 1

        self._history.append(notification)
        return notification

    def get_notification_history(self, limit: int = 50) -> List[Notification]:
        """Get recent notification history"""
        return list(self._history)[-limit:]

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "notifications_sent": self.notifications_sent,
            "notifications_failed": self.notifications_failed,
            "history_count": len(self._history),
            "sink": type(self.sink).__name__,
        }

    async def close(self):
        await self.sink.close()
