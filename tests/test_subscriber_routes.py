"""
Tests for the subscriber settings API.
"""

import pytest
from fastapi.testclient import TestClient

from dashboard import app
from spreadscout.subscribers import SessionStore, SettingsConversation


@pytest.fixture
def client(fresh_subscriber_service):
    """Test client with the settings services attached"""
    app.state.subscriber_service = fresh_subscriber_service
    app.state.settings_conversation = SettingsConversation(
        fresh_subscriber_service, SessionStore(ttl_seconds=60)
    )
    yield TestClient(app)
    app.state.subscriber_service = None
    app.state.settings_conversation = None


@pytest.fixture
def registered(client):
    client.post("/api/subscribers/1")
    return client


class TestProfileEndpoints:
    """Tests for registration and lookup"""

    def test_register(self, client):
        response = client.post("/api/subscribers/42")

        assert response.status_code == 200
        data = response.json()
        assert data["created"] is True
        assert data["profile"]["subscriber_id"] == "42"
        assert data["profile"]["target"] == "USDT"

    def test_register_twice(self, registered):
        assert registered.post("/api/subscribers/1").json()["created"] is False

    def test_get_unknown(self, client):
        response = client.get("/api/subscribers/ghost")

        assert response.status_code == 404
        assert response.json()["detail"] == "Subscriber ghost not found"

    def test_unavailable_before_start(self):
        client = TestClient(app)
        assert client.get("/api/subscribers/1").status_code == 503


class TestListEndpoints:
    """Tests for whitelist, blacklist and venue entries"""

    def test_add_to_whitelist(self, registered):
        response = registered.post("/api/subscribers/1/lists/whitelist", json={"value": "bitcoin"})

        assert response.status_code == 200
        assert response.json()["changed"] is True
        assert response.json()["profile"]["asset_whitelist"] == ["bitcoin"]

    def test_duplicate_entry_unchanged(self, registered):
        registered.post("/api/subscribers/1/lists/venues", json={"value": "Kraken"})
        response = registered.post("/api/subscribers/1/lists/venues", json={"value": "Kraken"})
        assert response.json()["changed"] is False

    def test_blacklist_lowercased(self, registered):
        response = registered.post("/api/subscribers/1/lists/blacklist", json={"value": "SCAM"})
        assert response.json()["profile"]["asset_blacklist"] == ["scam"]

    def test_remove_entry(self, registered):
        registered.post("/api/subscribers/1/lists/whitelist", json={"value": "bitcoin"})
        response = registered.delete("/api/subscribers/1/lists/whitelist/bitcoin")

        assert response.json()["changed"] is True
        assert response.json()["profile"]["asset_whitelist"] == []

    def test_unknown_list(self, registered):
        response = registered.post("/api/subscribers/1/lists/favourites", json={"value": "x"})
        assert response.status_code == 404

    def test_unknown_subscriber(self, client):
        response = client.post("/api/subscribers/ghost/lists/whitelist", json={"value": "bitcoin"})
        assert response.status_code == 404

    def test_blank_entry_rejected(self, registered):
        response = registered.post("/api/subscribers/1/lists/whitelist", json={"value": "   "})
        assert response.status_code == 400


class TestSettingsEndpoints:
    """Tests for toggles and thresholds"""

    def test_toggle_scanning(self, registered):
        response = registered.post("/api/subscribers/1/toggles/scanning")

        assert response.status_code == 200
        assert response.json()["scan_paused"] is True

    def test_toggle_top_assets(self, registered):
        assert registered.post("/api/subscribers/1/toggles/top_assets").json()["use_top_assets"] is True

    def test_unknown_toggle(self, registered):
        assert registered.post("/api/subscribers/1/toggles/turbo").status_code == 404

    def test_update_thresholds(self, registered):
        response = registered.put(
            "/api/subscribers/1/thresholds",
            json={"min_profit_percent": 2, "min_volume": 5000, "target": "btc"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["min_profit"] == 0.02
        assert data["min_volume"] == 5000
        assert data["target"] == "BTC"

    def test_partial_update(self, registered):
        before = registered.get("/api/subscribers/1").json()
        registered.put("/api/subscribers/1/thresholds", json={"target": "eth"})
        data = registered.get("/api/subscribers/1").json()

        assert data["target"] == "ETH"
        assert data["min_volume"] == before["min_volume"]
        assert data["min_profit"] == before["min_profit"]

    def test_invalid_threshold(self, registered):
        response = registered.put("/api/subscribers/1/thresholds", json={"min_profit_percent": -1})

        assert response.status_code == 400
        assert "greater than 0" in response.json()["detail"]

    def test_thresholds_unknown_subscriber(self, client):
        response = client.put("/api/subscribers/ghost/thresholds", json={"target": "BTC"})
        assert response.status_code == 404


class TestConversationEndpoints:
    """Tests for prompt and reply handling"""

    def test_prompt_then_reply(self, registered):
        prompt = registered.post("/api/subscribers/1/prompts/setting_min_profit")
        assert prompt.status_code == 200
        assert prompt.json()["message"]

        reply = registered.post("/api/subscribers/1/replies", json={"text": "2.5"})

        assert reply.json()["message"] == "Minimum profit percentage set to 2.5%."
        assert registered.get("/api/subscribers/1").json()["min_profit"] == 0.025

    def test_reply_without_prompt(self, registered):
        reply = registered.post("/api/subscribers/1/replies", json={"text": "bitcoin"})
        assert reply.json()["message"] is None

    def test_unknown_action(self, registered):
        assert registered.post("/api/subscribers/1/prompts/launch_rockets").status_code == 422
