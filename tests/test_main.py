"""
Tests for the bot lifecycle: timers, wiring and shutdown.
"""

import asyncio

import pytest

from dashboard import app, manager
from main import SpreadScoutBot


@pytest.fixture
async def bot():
    """Simulation bot with fast timers and one whitelisted subscriber"""
    bot = SpreadScoutBot(mode="simulation", scan_interval=0.01, refresh_interval=0.01)
    bot.settings.register("1")
    bot.settings.add_to_whitelist("1", "bitcoin")
    yield bot
    if bot.running:
        await bot.stop()


class TestSpreadScoutBot:
    """Tests for SpreadScoutBot start/stop"""

    async def test_start_runs_both_timers(self, bot):
        await bot.start()
        await asyncio.sleep(0.1)

        assert len(bot.tasks) == 2
        assert bot.orchestrator.cycles_completed >= 1
        # ensure_populated plus at least one timer tick
        assert bot.asset_service.refreshes >= 2
        assert not bot.asset_cache.is_empty()

        last = bot.orchestrator.last_result
        assert last.subscribers == 1
        assert last.pairs == 1

    async def test_start_wires_web_surface(self, bot):
        await bot.start()

        assert manager.ready
        assert manager.orchestrator is bot.orchestrator
        assert app.state.subscriber_service is bot.settings
        assert app.state.settings_conversation is bot.conversation

    async def test_stop_ends_timers(self, bot):
        await bot.start()
        await asyncio.sleep(0.05)
        tasks = list(bot.tasks)

        await bot.stop()

        assert tasks and all(task.done() for task in tasks)
        assert bot.tasks == []
        assert bot.orchestrator.stop_requested
        assert not bot.running

        cycles = bot.orchestrator.cycles_completed
        await asyncio.sleep(0.05)
        assert bot.orchestrator.cycles_completed == cycles

    async def test_stop_detaches_web_surface(self, bot):
        await bot.start()
        await bot.stop()

        assert not manager.ready
        assert app.state.subscriber_service is None
        assert app.state.settings_conversation is None
