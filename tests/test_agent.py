"""
Tests for agent wiring: session setup, chat routing and the auth handshake
"""
import pytest
from pydantic import SecretStr

from companion_bot.agent import CompanionAgent
from companion_bot.commands import PERMISSION_DENIED
from companion_bot.goals import GoalXZ
from companion_bot.supervisor import SessionState
from companion_bot.world.catalog import MinecraftCatalog

from mocks import FakeMinecraftData, FakeSession, FakeStatusClient, FakeTextGenerator


def make_agent(config, scheduler, script=(1,)):
    sessions = []

    def factory():
        session = FakeSession()
        session.spawn_on_open = True
        session.give("bread", 2)
        sessions.append(session)
        return session

    agent = CompanionAgent(
        config,
        scheduler=scheduler,
        session_factory=factory,
        status_client=FakeStatusClient(script),
        text_generator=FakeTextGenerator(),
        catalog_loader=lambda version: MinecraftCatalog(version, mc_data=FakeMinecraftData()),
    )
    return agent, sessions


@pytest.mark.asyncio
async def test_player_online_brings_bot_up_with_session_timers(config, scheduler):
    agent, sessions = make_agent(config, scheduler)

    agent.start()
    await scheduler.advance(0)

    assert agent.state == "running"
    assert agent.dispatcher is not None
    assert sessions[0].auto_eat is not None
    assert {
        "maintenance-gear",
        "maintenance-jump",
        "maintenance-heartbeat",
        "presence-membership",
        "presence-ping",
        "activity-watch",
    } <= set(scheduler.pending())


@pytest.mark.asyncio
async def test_stop_tears_down_session_scope(config, scheduler):
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)

    await agent.supervisor.stop("No players online.")

    assert agent.dispatcher is None
    assert agent.coordinator.session is None
    assert "maintenance-gear" not in scheduler.pending()
    assert "presence-ping" in scheduler.pending()


@pytest.mark.asyncio
async def test_chat_is_routed_to_dispatcher(config, scheduler):
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)

    sessions[0].emit("chat", "Steve", "!help")
    await scheduler.advance(0)

    assert sessions[0].chats[0].startswith("📜 Commands 1/2")


@pytest.mark.asyncio
async def test_rejected_privileged_directive_changes_nothing(config, scheduler):
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)
    await agent.coordinator.set_goal(GoalXZ(1, 1))

    await agent.on_chat("Stranger", "!adminhelp")

    assert sessions[0].chats == [PERMISSION_DENIED]
    assert agent.supervisor.state is SessionState.RUNNING
    assert agent.coordinator.current_goal == GoalXZ(1, 1)


@pytest.mark.asyncio
async def test_auth_prompts_are_answered(config, scheduler):
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)

    assert await agent.on_server_message("Please /register <password> <password>") == "/register hunter22 hunter22"
    assert await agent.on_server_message("Use /login <password>") == "/login hunter22"
    assert await agent.on_server_message("Welcome!") is None
    assert sessions[0].chats == ["/register hunter22 hunter22", "/login hunter22"]


@pytest.mark.asyncio
async def test_auth_prompt_ignored_without_password(config, scheduler):
    config.auth_password = None
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)

    assert await agent.on_server_message("Please /register") is None


@pytest.mark.asyncio
async def test_player_activity_feeds_idle_watch(config, scheduler):
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)
    await scheduler.advance(200)

    sessions[0].emit("playerJoined", "Steve")

    assert agent.activity.idle_for() == 0


@pytest.mark.asyncio
async def test_shutdown_stops_everything(config, scheduler):
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)

    await agent.shutdown()

    assert sessions[0].quit_reasons == ["Shutting down"]
    assert scheduler.pending() == []


@pytest.mark.asyncio
async def test_auth_prompt_ignored_with_blank_password(config, scheduler):
    config.auth_password = SecretStr("")
    agent, sessions = make_agent(config, scheduler)
    agent.start()
    await scheduler.advance(0)

    assert await agent.on_server_message("Please /login <password>") is None
    assert await agent.on_server_message("Please /register <password> <password>") is None
    assert sessions[0].chats == []
