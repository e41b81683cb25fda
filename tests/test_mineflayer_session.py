"""
Tests for the mineflayer-backed session, with the JavaScript bot replaced by a mock
"""
import asyncio
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from companion_bot.bridge.mineflayer_session import MineflayerSession
from companion_bot.bridge.session import AutoEatOptions
from companion_bot.errors import ActionFailure
from companion_bot.goals import GoalBlock, GoalFollow, GoalInvert
from companion_bot.world.geometry import Position


@pytest.fixture
def mineflayer(config):
    session = MineflayerSession(config)
    session.bot = MagicMock()
    session._goals = MagicMock()
    return session


@pytest.mark.asyncio
async def test_queries_translate_js_values(mineflayer):
    mineflayer.bot.entity.position = SimpleNamespace(x=1.5, y=64, z=-2)
    mineflayer.bot.version = "1.21.1"

    assert await mineflayer.entity_position() == Position(1.5, 64.0, -2.0)
    assert await mineflayer.game_version() == "1.21.1"


@pytest.mark.asyncio
async def test_bridge_errors_become_action_failures(mineflayer):
    mineflayer.bot.chat.side_effect = RuntimeError("JS timeout")

    with pytest.raises(ActionFailure, match="JS timeout"):
        await mineflayer.chat("hello")


@pytest.mark.asyncio
async def test_set_goal_translates_nested_goals(mineflayer):
    await mineflayer.set_goal(GoalInvert(GoalFollow(7, 5)), dynamic=True)

    mineflayer._goals.GoalFollow.assert_called_once_with(mineflayer.bot.entities[7], 5)
    mineflayer._goals.GoalInvert.assert_called_once_with(mineflayer._goals.GoalFollow.return_value)
    mineflayer.bot.pathfinder.setGoal.assert_called_once_with(mineflayer._goals.GoalInvert.return_value, True)


@pytest.mark.asyncio
async def test_clearing_goal(mineflayer):
    await mineflayer.set_goal(None)

    mineflayer.bot.pathfinder.setGoal.assert_called_once_with(None)


@pytest.mark.asyncio
async def test_goto_uses_pathfinder_timeout(mineflayer):
    await mineflayer.goto(GoalBlock(1, 2, 3))

    mineflayer._goals.GoalBlock.assert_called_once_with(1, 2, 3)
    _, kwargs = mineflayer.bot.pathfinder.goto.call_args
    assert kwargs["timeout"] == mineflayer.bridge_config.pathfinder_timeout


@pytest.mark.asyncio
async def test_quit_without_bot_is_noop(config):
    session = MineflayerSession(config)

    await session.quit("No players online.")
    assert session.bot is None


@pytest.mark.asyncio
async def test_forwarded_events_reach_handlers_on_loop(mineflayer):
    received = []
    mineflayer._loop = asyncio.get_running_loop()
    mineflayer.on("chat", lambda username, message: received.append((username, message)))

    mineflayer._forward("chat", "Owner", "!help")
    await asyncio.sleep(0)

    assert received == [("Owner", "!help")]


def fake_javascript(registrations):
    def On(emitter, event_type):
        def decorator(handler):
            registrations.append(event_type)
            return handler

        return decorator

    return SimpleNamespace(On=On, globalThis=MagicMock(), require=MagicMock())


@pytest.mark.asyncio
async def test_auto_eat_listeners_are_wired_once(config):
    registrations = []
    session = MineflayerSession(config)

    with patch.dict(sys.modules, {"javascript": fake_javascript(registrations)}):
        session._create_bot()
        await session.enable_auto_eat(AutoEatOptions())
        await session.enable_auto_eat(AutoEatOptions(health_threshold=10))

    eat_events = [name for name in registrations if name.startswith("eat")]
    assert sorted(eat_events) == ["eatFail", "eatFinish", "eatStart"]
    assert session.bot.autoEat.enableAuto.call_count == 2
    assert session.bot.autoEat.setOpts.call_args.args[0]["minHealth"] == 10
