"""
Tests for bot wiring, lifecycle and process exit codes
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from twitch_ai.app import main as app_main
from twitch_ai.app.main import BotRunner
from twitch_ai.bot.core import TwitchBot
from twitch_ai.bot.generator import Reply
from twitch_ai.bot.runtime import BotRuntime
from twitch_ai.shared.config import Config
from twitch_ai.shared.exceptions import (
    AuthenticationError,
    ConfigurationError,
    SubscriptionError,
    WebSocketConnectionError,
)


def _generator():
    generator = MagicMock()
    generator.generate = AsyncMock(return_value=Reply("hello!"))
    return generator


@pytest.mark.asyncio
class TestTwitchBot:
    async def test_wires_pipeline_into_eventsub(self, settings):
        bot = TwitchBot(Config.from_dict(settings), generator=_generator())
        assert bot.openai is None
        assert bot.pipeline.room_id == "twitch-chan-9"
        assert bot.pipeline.bot_user_id == "bot-1"
        assert bot.pipeline.sender is bot.helix
        assert bot.pipeline.ledger is bot.ledger
        assert bot.ledger.capacity == 100
        assert bot.eventsub.notification_handlers == [
            (bot.pipeline.process, bot.pipeline.admit)
        ]
        assert bot.auth.access_token == "abc123"
        await bot.stop()

    async def test_start_validates_then_runs_eventsub(self, settings):
        bot = TwitchBot(Config.from_dict(settings), generator=_generator())
        bot.auth.validate = AsyncMock(return_value={"login": "kissbot"})
        bot.auth.refresh = AsyncMock(return_value=True)
        bot.eventsub.run = AsyncMock()
        task = await bot.start()
        await task
        bot.auth.validate.assert_awaited_once()
        bot.auth.refresh.assert_not_awaited()
        bot.eventsub.run.assert_awaited_once()
        await bot.stop()

    async def test_start_refreshes_when_possible(self, settings):
        settings["twitch"]["client_secret"] = "shh"
        settings["twitch"]["refresh_token"] = "rt"
        bot = TwitchBot(Config.from_dict(settings), generator=_generator())
        bot.auth.validate = AsyncMock(return_value={})
        bot.auth.refresh = AsyncMock(return_value=True)
        bot.eventsub.run = AsyncMock()
        await (await bot.start())
        bot.auth.refresh.assert_awaited_once()
        await bot.stop()

    async def test_invalid_token_stops_startup(self, settings):
        bot = TwitchBot(Config.from_dict(settings), generator=_generator())
        bot.auth.validate = AsyncMock(side_effect=AuthenticationError())
        bot.eventsub.run = AsyncMock()
        with pytest.raises(AuthenticationError):
            await bot.start()
        bot.eventsub.run.assert_not_called()
        await bot.stop()


@pytest.mark.asyncio
class TestBotRunnerWait:
    async def test_subscription_failure_propagates(self):
        async def fail():
            raise SubscriptionError("403: missing scope")

        runner = BotRunner()
        runner.shutdown_event = asyncio.Event()
        task = asyncio.create_task(fail())
        with pytest.raises(SubscriptionError):
            await runner._wait(task)

    async def test_connection_end_returns(self):
        async def done():
            return None

        runner = BotRunner()
        runner.shutdown_event = asyncio.Event()
        await runner._wait(asyncio.create_task(done()))

    async def test_shutdown_event_returns(self):
        runner = BotRunner()
        runner.shutdown_event = asyncio.Event()
        task = asyncio.create_task(asyncio.sleep(10))
        runner.shutdown_event.set()
        await runner._wait(task)
        assert not task.done()
        task.cancel()


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (None, 0),
        (ConfigurationError(), 2),
        (AuthenticationError(), 3),
        (WebSocketConnectionError(), 4),
        (SubscriptionError(), 5),
        (RuntimeError("boom"), 1),
    ],
)
def test_main_exit_codes(monkeypatch, error, code):
    async def run(self):
        if error is not None:
            raise error

    monkeypatch.setattr(app_main.BotRunner, "run", run)
    assert app_main.main() == code


@pytest.mark.asyncio
class TestBotRuntime:
    async def test_add_task_replaces_running_task(self):
        runtime = BotRuntime()
        first = runtime.add_task("eventsub", asyncio.sleep(10))
        second = runtime.add_task("eventsub", asyncio.sleep(10))
        await asyncio.gather(first, return_exceptions=True)
        assert first.cancelled()
        assert runtime.tasks == {"eventsub": second}
        await runtime.cleanup_tasks()
        assert second.cancelled()
        assert runtime.tasks == {}

    async def test_cleanup_keeps_finished_results(self):
        runtime = BotRuntime()
        task = runtime.add_task("done", asyncio.sleep(0, result="ok"))
        await task
        await runtime.cleanup_tasks()
        assert task.result() == "ok"
        assert runtime.tasks == {}
