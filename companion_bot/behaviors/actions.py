"""
One-shot actions triggered by chat directives

Each action returns a result dictionary with a ``status`` of "success" or
"error" and, when the player should hear about it, a chat ``message``.
"""
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..errors import ActionFailure, Cancelled
from ..goals import GoalLookAtBlock, GoalNear, GoalPlaceBlock
from ..logging_config import get_logger
from ..world.catalog import is_log
from ..world.geometry import Position, direction_to_vector, sight_direction

if TYPE_CHECKING:
    from ..bridge.session import EntityInfo, GameSession
    from ..tasks import TaskCoordinator
    from ..world.catalog import MinecraftCatalog

logger = get_logger(__name__)

REACH = 4
TRAPPED_CHEST_RADIUS = 16
CHEST_RADIUS = 10


def _success(message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    return {"status": "success", "message": message, **extra}


def _error(message: Optional[str], error: Optional[str] = None) -> Dict[str, Any]:
    return {"status": "error", "message": message, "error": error or message}


async def break_looked_at_block(
    session: "GameSession", coordinator: "TaskCoordinator", player: "EntityInfo"
) -> Dict[str, Any]:
    """Dig the block the player is looking at"""
    hit = await session.raycast_from(player)
    if hit is None:
        return _error("Block is out of reach")

    try:
        await coordinator.goto(GoalLookAtBlock(hit.block.position, range=REACH))
        tool = await session.best_harvest_tool(hit.block)
        if tool is not None:
            await session.equip(tool, "hand")
        await session.dig(hit.block)
    except (ActionFailure, Cancelled) as e:
        logger.warning("Break failed", block=hit.block.name, error=str(e))
        return _error(None, str(e))

    logger.info("Broke block", block=hit.block.name, position=str(hit.block.position))
    return _success(block=hit.block.name)


async def place_item(
    session: "GameSession",
    coordinator: "TaskCoordinator",
    catalog: "MinecraftCatalog",
    player: "EntityInfo",
    item_name: str,
) -> Dict[str, Any]:
    """Place an inventory item against the face of the block the player is looking at"""
    matches = catalog.match_items(await session.inventory_items(), item_name)
    if not matches:
        return _error(f"I don't have {item_name}")

    hit = await session.raycast_from(player)
    if hit is None:
        return _error("Block is out of reach")

    face = direction_to_vector(hit.face)
    if face is None:
        return _error("Block is out of reach", f"unknown face {hit.face}")

    reference = hit.block.position
    try:
        await coordinator.goto(GoalPlaceBlock(reference.plus(face), range=REACH))
        await session.equip(matches[0], "hand")
        await session.look_at(reference.offset(face.x * 0.5 + 0.5, face.y * 0.5 + 0.5, face.z * 0.5 + 0.5))
        await session.place_block(hit.block, face)
    except (ActionFailure, Cancelled) as e:
        logger.warning("Place failed", item=matches[0].name, error=str(e))
        return _error(None, str(e))

    logger.info("Placed block", item=matches[0].name, against=str(reference))
    return _success(item=matches[0].name)


async def deliver_to_trapped_chest(session: "GameSession", coordinator: "TaskCoordinator") -> Dict[str, Any]:
    """Move every inventory stack into the nearest trapped chest"""
    try:
        found = await session.find_blocks(["trapped_chest"], TRAPPED_CHEST_RADIUS, 1)
        if not found:
            return _error("No trapped chest nearby.")
        chest = await session.block_at(found[0])
        if chest is None:
            return _error("No trapped chest nearby.")

        await coordinator.goto(GoalNear.around(chest.position, 1))
        await session.look_at(chest.position.offset(0.5, 0.5, 0.5))

        items = await session.inventory_items()
        if not items:
            return _error("Nothing to deliver!")

        stored = await session.store_items(chest, items)
    except (ActionFailure, Cancelled) as e:
        logger.error("Delivery failed", error=str(e))
        return _error("Failed to deliver items.", str(e))

    logger.info("Delivered items", stacks=stored, total=len(items))
    return _success("All deliverable items placed in trapped chest.", stored=stored)


async def deposit_logs(session: "GameSession", coordinator: "TaskCoordinator") -> Dict[str, Any]:
    """Put every log in the inventory into the nearest chest"""
    found = await session.find_blocks(["chest"], CHEST_RADIUS, 1)
    chest = await session.block_at(found[0]) if found else None
    if chest is None:
        return _error("❌ No chest nearby.")

    try:
        await coordinator.goto(GoalNear.around(chest.position, 1))
        logs = [item for item in await session.inventory_items() if is_log(item.name)]
        stored = await session.store_items(chest, logs)
    except (ActionFailure, Cancelled) as e:
        logger.error("Deposit error", error=str(e))
        return _error(None, str(e))

    logger.info("Deposited logs", stacks=stored)
    return _success("📦 Logs deposited.", stored=stored)


async def position_near_player(
    session: "GameSession", coordinator: "TaskCoordinator", username: str, player: Optional["EntityInfo"]
) -> Dict[str, Any]:
    """Stand next to the player and look where they are looking"""
    if player is None:
        return _error(f"❗ Player {username} not found.")

    try:
        await coordinator.goto(GoalNear.around(player.position, 0.5))
        look = player.position.plus(sight_direction(player.yaw, player.pitch).scaled(5))
        await session.look_at(look)
    except (ActionFailure, Cancelled) as e:
        logger.warning("Could not reach player", username=username, error=str(e))
        return _error(None, str(e))

    return _success(f"📍 Positioned at {username}'s location, facing their direction.")


async def report_location(session: "GameSession", target_name: Optional[str]) -> Dict[str, Any]:
    """Describe where a player is, if they are within render distance"""
    if not target_name:
        return _error("❌ Please specify a player name. Example: !getlocation <player>")

    players = await session.players()
    player = players.get(target_name)
    if player is None:
        return _error(f"❌ I can't find any data for player \"{target_name}\". They might be offline.")

    if player.entity is None:
        return _success(
            f"👀 {target_name} is online but not currently in view. I can't track their exact location."
        )

    position: Position = player.entity.position.floored()
    dimension = await session.dimension()
    return _success(
        f"📍 {target_name} is at X: {position.x}, Y: {position.y}, Z: {position.z} in world: {dimension}",
        position=position,
    )
