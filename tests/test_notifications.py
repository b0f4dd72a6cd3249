"""
Tests for notification delivery and formatting.
"""

import asyncio

import aiohttp
import pytest

from engine import ArbitrageOpportunity
from spreadscout.notifications import (
    MemorySink,
    NotificationError,
    NotificationService,
    NotificationType,
    TelegramNotifier,
    format_opportunity,
)


@pytest.fixture
def opportunity():
    return ArbitrageOpportunity(
        pair="BTC/USDT",
        buy_price=97000.5,
        buy_venue="Binance",
        buy_url="https://binance.example/trade?a=1&b=2",
        sell_price=98000,
        sell_venue="Kraken",
        volume="$1,200.00",
        profit_percent=1.03,
        trust_indicator="🟢",
    )


class FakeResponse:
    def __init__(self, status: int, body: str = "{}"):
        self.status = status
        self.body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def text(self):
        return self.body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(200)
        self.error = error
        self.posts = []
        self.closed = False

    def post(self, url, json=None):
        self.posts.append((url, json))
        if self.error:
            raise self.error
        return self.response


class TestFormatter:
    """Tests for format_opportunity"""

    def test_contains_trade_details(self, opportunity):
        message = format_opportunity(opportunity, "Bitcoin")

        assert "<b>Bitcoin</b>" in message
        assert "BTC/USDT" in message
        assert "$97000.5" in message
        assert "$98000" in message
        assert "$1,200.00" in message
        assert "1.03%" in message
        assert "🟢" in message

    def test_venue_links_escaped(self, opportunity):
        message = format_opportunity(opportunity, "Bitcoin")

        assert '<a href="https://binance.example/trade?a=1&amp;b=2">Binance</a>' in message
        # No URL, plain venue name
        assert "on Kraken" in message

    def test_asset_name_escaped(self, opportunity):
        message = format_opportunity(opportunity, "<Evil & Co>")
        assert "&lt;Evil &amp; Co&gt;" in message


class TestTelegramNotifier:
    """Tests for TelegramNotifier"""

    async def test_posts_html_message(self):
        session = FakeSession()
        notifier = TelegramNotifier(token="123:abc", session=session)

        await notifier.send("42", "<b>hi</b>")

        url, payload = session.posts[0]
        assert url == "https://api.telegram.org/bot123:abc/sendMessage"
        assert payload["chat_id"] == "42"
        assert payload["parse_mode"] == "HTML"

    async def test_non_200_raises(self):
        notifier = TelegramNotifier(token="t", session=FakeSession(FakeResponse(403, "blocked")))
        with pytest.raises(NotificationError, match="blocked"):
            await notifier.send("42", "hi")

    async def test_client_error_wrapped(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("refused"))
        notifier = TelegramNotifier(token="t", session=session)
        with pytest.raises(NotificationError):
            await notifier.send("42", "hi")

    async def test_timeout_wrapped(self):
        session = FakeSession(error=asyncio.TimeoutError())
        notifier = TelegramNotifier(token="t", session=session)
        with pytest.raises(NotificationError):
            await notifier.send("42", "hi")

    async def test_missing_token(self):
        with pytest.raises(NotificationError):
            await TelegramNotifier(token="", session=FakeSession()).send("42", "hi")

    async def test_empty_chat_id(self):
        with pytest.raises(NotificationError):
            await TelegramNotifier(token="t", session=FakeSession()).send("", "hi")


class FlakySink(MemorySink):
    def __init__(self, fail_for):
        super().__init__()
        self.fail_for = fail_for

    async def send(self, subscriber_id, message):
        if subscriber_id in self.fail_for:
            raise NotificationError("chat not found")
        await super().send(subscriber_id, message)


class TestNotificationService:
    """Tests for NotificationService"""

    async def test_notify_delivers(self, notification_service, memory_sink):
        notification = await notification_service.notify(1001, "hello", data={"pair": "X/USDT"})

        assert notification.delivered
        assert notification.subscriber_id == "1001"
        assert notification.type == NotificationType.ARBITRAGE_OPPORTUNITY
        assert memory_sink.messages == [("1001", "hello")]

    async def test_failure_recorded_not_raised(self):
        service = NotificationService(FlakySink(fail_for={"2"}))

        ok = await service.notify("1", "a")
        failed = await service.notify("2", "b")

        assert ok.delivered
        assert not failed.delivered
        assert failed.delivery_error == "chat not found"
        stats = service.get_statistics()
        assert stats["notifications_sent"] == 1
        assert stats["notifications_failed"] == 1
        assert stats["sink"] == "FlakySink"

    async def test_history_bounded(self, memory_sink):
        service = NotificationService(memory_sink, history_size=3)
        for i in range(5):
            await service.notify("1", f"msg {i}")

        history = service.get_notification_history()
        assert [n.message for n in history] == ["msg 2", "msg 3", "msg 4"]
        assert len(service.get_notification_history(limit=1)) == 1

    async def test_sink_timeout_recorded_not_raised(self):
        class HangingSink(MemorySink):
            async def send(self, subscriber_id, message):
                raise asyncio.TimeoutError()

        service = NotificationService(HangingSink())

        notification = await service.notify("42", "hello")

        assert not notification.delivered
        assert notification.delivery_error is not None
        assert service.notifications_failed == 1
        assert len(service.get_notification_history()) == 1
