"""
Tests for session upkeep: gear, jumping, hunger and idle notices
"""
import pytest

from companion_bot.behaviors.maintenance import ActivityWatch, HungerAnnouncer, Maintenance
from companion_bot.bridge.session import Vitals


@pytest.mark.asyncio
async def test_equips_best_armor_and_sword(session, scheduler, config):
    for name in ("leather_helmet", "iron_helmet", "diamond_chestplate", "wooden_sword", "iron_sword", "stick"):
        session.give(name)
    maintenance = Maintenance(session, scheduler, config)

    assert await maintenance.equip_best_gear() == 3
    assert sorted(session.equipped) == [
        ("diamond_chestplate", "torso"),
        ("iron_helmet", "head"),
        ("iron_sword", "hand"),
    ]


@pytest.mark.asyncio
async def test_auto_jump_releases_after_half_a_second(session, scheduler, config):
    maintenance = Maintenance(session, scheduler, config)

    assert await maintenance.auto_jump() is True
    assert session.world_calls("set_control_state") == [("set_control_state", "jump", True)]

    await scheduler.advance(0.5)
    assert session.world_calls("set_control_state")[-1] == ("set_control_state", "jump", False)


@pytest.mark.asyncio
async def test_auto_jump_skipped_in_the_air(session, scheduler, config):
    session.grounded = False
    maintenance = Maintenance(session, scheduler, config)

    assert await maintenance.auto_jump() is False
    assert session.world_calls("set_control_state") == []


@pytest.mark.asyncio
async def test_armed_timers_run_on_their_intervals(session, scheduler, config):
    maintenance = Maintenance(session, scheduler, config)
    timers = maintenance.arm()

    await scheduler.advance(config.jump_interval + 1)
    assert ("set_control_state", "jump", True) in session.calls

    for timer in timers:
        timer.cancel()
    assert scheduler.pending() == []


@pytest.mark.asyncio
async def test_enable_auto_eat_uses_configured_thresholds(session, scheduler, config):
    maintenance = Maintenance(session, scheduler, config)

    await maintenance.enable_auto_eat()

    assert session.auto_eat.start_at == 16
    assert session.auto_eat.health_threshold == 14
    assert session.auto_eat.priority == "auto"


def hunger(session, scheduler, config, catalog):
    return HungerAnnouncer(session, scheduler, config, catalog, Maintenance(session, scheduler, config))


@pytest.mark.asyncio
async def test_hungry_with_food_eats(session, scheduler, config, catalog):
    session.vitals_value = Vitals(health=20, food=10)
    session.give("bread", 3)

    assert await hunger(session, scheduler, config, catalog).on_health() == HungerAnnouncer.EATING
    assert session.chats == [HungerAnnouncer.EATING]
    assert session.auto_eat is not None


@pytest.mark.asyncio
async def test_hungry_without_food_asks(session, scheduler, config, catalog):
    session.vitals_value = Vitals(health=20, food=10)

    assert await hunger(session, scheduler, config, catalog).on_health() == HungerAnnouncer.ASKING
    assert session.auto_eat is None


@pytest.mark.asyncio
async def test_hunger_cooldown_covers_both_messages(session, scheduler, config, catalog):
    session.vitals_value = Vitals(health=20, food=5)
    announcer = hunger(session, scheduler, config, catalog)

    await announcer.on_health()
    session.give("bread")
    await scheduler.advance(29)
    assert await announcer.on_health() is None

    await scheduler.advance(1)
    assert await announcer.on_health() == HungerAnnouncer.EATING
    assert session.chats == [HungerAnnouncer.ASKING, HungerAnnouncer.EATING]


@pytest.mark.asyncio
async def test_fed_bot_stays_quiet(session, scheduler, config, catalog):
    session.vitals_value = Vitals(health=20, food=14)

    assert await hunger(session, scheduler, config, catalog).on_health() is None
    assert session.chats == []


@pytest.mark.asyncio
async def test_activity_watch_reports_idle(scheduler):
    watch = ActivityWatch(scheduler, idle_after=300)
    watch.start()

    await scheduler.advance(240)
    assert not watch.check()

    await scheduler.advance(120)
    assert watch.check()

    watch.touch("Steve")
    assert not watch.check()
    watch.stop()
    assert scheduler.pending() == []
