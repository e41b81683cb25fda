"""
Tests for the presence monitor and its shared retry counter
"""
import pytest

from companion_bot.errors import ServerOffline, TransportError
from companion_bot.presence import PresenceMonitor, PresenceReading, PresenceSource, RetryCounter
from companion_bot.supervisor import ConnectionSupervisor, SessionState

from mocks import FakeSession, FakeStatusClient


def build(config, scheduler, script=(0,)):
    sessions = []

    def factory():
        session = FakeSession()
        session.spawn_on_open = True
        sessions.append(session)
        return session

    status = FakeStatusClient(script)
    monitor = PresenceMonitor(status, scheduler, config)
    supervisor = ConnectionSupervisor(factory, scheduler, config, monitor.retry_counter)
    monitor.attach(supervisor)
    return monitor, supervisor, sessions


def empty(source=PresenceSource.PING):
    return PresenceReading(online_real_player_count=0, source=source)


def test_retry_counter_saturates():
    counter = RetryCounter(3)
    assert [counter.increment() for _ in range(5)] == [1, 2, 3, 3, 3]
    assert counter.exhausted
    counter.reset()
    assert counter.value == 0
    assert not counter.exhausted


@pytest.mark.asyncio
async def test_empty_readings_increase_counter_then_stop_once(config, scheduler):
    """Zero-player readings climb to the limit, then the session stops exactly once"""
    monitor, supervisor, sessions = build(config, scheduler, script=[2, 0, 0, 0, 0, 0])
    monitor.start()

    await scheduler.advance(0)
    assert supervisor.state is SessionState.RUNNING
    assert len(sessions) == 1

    seen = []
    for _ in range(5):
        await scheduler.advance(30)
        seen.append(monitor.retry_counter.value)

    assert seen == [1, 2, 3, 3, 3]
    assert sessions[0].quit_reasons == ["No players online."]
    assert len(sessions) == 1
    assert supervisor.state is SessionState.COOLING_DOWN
    assert monitor.cooldown_armed


@pytest.mark.asyncio
async def test_positive_reading_resets_counter_from_any_value(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)

    for preset in (0, 1, 2, 3):
        monitor.retry_counter.value = preset
        await monitor.record(PresenceReading(online_real_player_count=4, source=PresenceSource.MEMBERSHIP_POLL))
        assert monitor.retry_counter.value == 0


@pytest.mark.asyncio
async def test_positive_ping_starts_stopped_supervisor(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)

    await monitor.record(PresenceReading(online_real_player_count=1, source=PresenceSource.PING))
    await scheduler.advance(0)

    assert len(sessions) == 1
    assert supervisor.state is SessionState.RUNNING


@pytest.mark.asyncio
async def test_positive_membership_reading_does_not_start_a_session(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)

    await monitor.record(PresenceReading(online_real_player_count=1, source=PresenceSource.MEMBERSHIP_POLL))

    assert sessions == []
    assert supervisor.state is SessionState.STOPPED


@pytest.mark.asyncio
async def test_no_restart_until_cooldown_resets_counter(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)
    for _ in range(3):
        await monitor.record(empty())
    assert supervisor.state is SessionState.COOLING_DOWN

    # Exhausted counter blocks starts even when asked directly
    assert await supervisor.start() is False
    assert sessions == []

    await scheduler.advance(config.retry_cooldown)
    assert monitor.retry_counter.value == 0
    assert not monitor.cooldown_armed
    assert supervisor.state is SessionState.STOPPED

    assert await supervisor.start() is True
    assert len(sessions) == 1


@pytest.mark.asyncio
async def test_positive_ping_during_cooldown_restarts(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)
    for _ in range(3):
        await monitor.record(empty())

    await monitor.record(PresenceReading(online_real_player_count=1, source=PresenceSource.PING))
    await scheduler.advance(0)

    assert len(sessions) == 1
    assert supervisor.state is SessionState.RUNNING


@pytest.mark.asyncio
async def test_cooldown_arming_is_idempotent(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)

    monitor.arm_cooldown()
    await scheduler.advance(60)
    monitor.arm_cooldown()
    monitor.retry_counter.value = 3

    # Still the first timer: fires 120 s after the first arm
    await scheduler.advance(60)
    assert monitor.retry_counter.value == 0
    assert scheduler.pending() == []


@pytest.mark.asyncio
async def test_membership_poll_shares_counter_and_disconnects(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)
    await supervisor.start()
    await scheduler.advance(0)
    session = sessions[0]
    supervisor.add_session_timer(monitor.start_membership_checks())

    # Only the bot itself is online
    monitor.retry_counter.value = 1
    await scheduler.advance(10)
    assert monitor.retry_counter.value == 2

    await scheduler.advance(10)
    assert monitor.retry_counter.value == 3
    assert session.quit_reasons == ["No players online."]
    assert supervisor.state is SessionState.COOLING_DOWN
    # Solicited stop: no reconnect was scheduled
    assert supervisor.reconnect_attempts == 0
    assert "presence-membership" not in scheduler.pending()

    await scheduler.advance(10)
    assert len(sessions) == 1


@pytest.mark.asyncio
async def test_membership_check_ignores_the_bot_itself(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler)
    await supervisor.start()
    await scheduler.advance(0)
    sessions[0].add_player("Steve")

    reading = await monitor.check_membership()

    assert reading.online_real_player_count == 1
    assert reading.source is PresenceSource.MEMBERSHIP_POLL


@pytest.mark.asyncio
async def test_offline_server_is_ignored(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler, script=[ServerOffline("refused")])

    assert await monitor.poll_and_decide() is None
    assert monitor.retry_counter.value == 0


@pytest.mark.asyncio
async def test_other_transport_errors_are_not_fatal(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler, script=[TransportError("timed out"), 1])
    monitor.start()

    await scheduler.advance(0)
    assert monitor.retry_counter.value == 0
    assert sessions == []

    await scheduler.advance(30)
    assert len(sessions) == 1
    assert scheduler.errors == []


@pytest.mark.asyncio
async def test_ping_keeps_running_while_session_stopped(config, scheduler):
    monitor, supervisor, sessions = build(config, scheduler, script=[0])
    monitor.start()

    await scheduler.advance(0)
    await scheduler.advance(300)

    assert monitor.status_client.queries == 11
