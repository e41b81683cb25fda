"""
Tests for the ore mining loop
"""
import asyncio

import pytest

from companion_bot.behaviors.drops import DropCollector
from companion_bot.behaviors.mining import MiningLoop
from companion_bot.bridge.session import EntityInfo
from companion_bot.goals import GoalNear
from companion_bot.world.geometry import Position

from mocks import settle


def make_loop(session, coordinator, scheduler, catalog, rng):
    return MiningLoop(session, coordinator, scheduler, catalog, DropCollector(session, coordinator, scheduler), rng=rng)


@pytest.mark.asyncio
async def test_mines_ore_with_best_tool(session, coordinator, scheduler, catalog, rng):
    ore = session.add_block("iron_ore", Position(3, 40, 3)).position
    session.add_block("stone", Position(3, 41, 3))
    session.harvest_tool = session.give("stone_pickaxe")
    loop = make_loop(session, coordinator, scheduler, catalog, rng)

    await loop.start()
    await scheduler.advance(0)

    assert session.equipped == [("stone_pickaxe", "hand")]
    assert session.dug == [ore]
    assert loop.blocks_mined == 1


@pytest.mark.asyncio
async def test_keeps_running_until_stopped(session, coordinator, scheduler, catalog, rng):
    session.add_block("coal_ore", Position(1, 50, 1))
    loop = make_loop(session, coordinator, scheduler, catalog, rng)

    await loop.start()
    await scheduler.advance(10)
    assert loop.running

    assert coordinator.cancel_loop("mining")
    calls = len(session.world_calls())
    await scheduler.advance(10)

    assert not loop.running
    assert len(session.world_calls()) == calls


@pytest.mark.asyncio
async def test_undiggable_ore_is_remembered(session, coordinator, scheduler, catalog, rng):
    bedrock_locked = session.add_block("deepslate_diamond_ore", Position(0, -60, 0), diggable=False).position
    loop = make_loop(session, coordinator, scheduler, catalog, rng)

    await loop.start()
    await scheduler.advance(0)

    assert bedrock_locked in loop.mined
    assert session.dug == []


@pytest.mark.asyncio
async def test_stop_during_pickup_leaves_ore_alone(session, coordinator, scheduler, catalog, rng):
    session.add_block("iron_ore", Position(3, 60, 3))
    session.ground_items.append(EntityInfo(id=3, name="item", position=Position(1, 64, 0)))
    session.hold_goto = True
    loop = make_loop(session, coordinator, scheduler, catalog, rng)
    await loop.start()

    tick = asyncio.ensure_future(scheduler.advance(0))
    await settle()
    assert session.goto_goals == [GoalNear(1, 64, 0, 1)]
    await coordinator.stop_all()
    calls = session.world_calls()
    await tick

    assert session.world_calls() == calls
    assert session.dug == []
    assert not loop.running
