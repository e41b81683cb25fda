"""
Mineflayer session - drives the JavaScript bot through JSPyBridge

JSPyBridge calls block the calling thread until the JS side answers, so every
call runs in a worker thread. JS events arrive on the bridge's own thread and
are re-posted onto the asyncio loop before any handler runs.
"""
import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

from ..errors import ActionFailure, TransportError
from ..goals import (
    Goal,
    GoalBlock,
    GoalFollow,
    GoalInvert,
    GoalLookAtBlock,
    GoalNear,
    GoalPlaceBlock,
    GoalXZ,
    GoalY,
)
from ..logging_config import get_logger
from ..world.geometry import Position, sight_direction
from .session import AutoEatOptions, Block, EntityInfo, GameSession, InventoryItem, PlayerInfo, RaycastHit, Vitals

if TYPE_CHECKING:
    from ..config import BotConfig

logger = get_logger(__name__)


@dataclass
class BridgeConfig:
    """Configuration for JSPyBridge calls"""

    command_timeout: int = 15000  # milliseconds
    pathfinder_timeout: int = 600000  # long walks are bounded by the pathfinder itself


def _js_list(array: Any) -> List[Any]:
    if array is None:
        return []
    return [array[i] for i in range(int(array.length))]


def _position(vec: Any) -> Position:
    return Position(float(vec.x), float(vec.y), float(vec.z))


class MineflayerSession(GameSession):
    """GameSession implementation backed by mineflayer and mineflayer-pathfinder"""

    def __init__(self, config: "BotConfig", bridge_config: Optional[BridgeConfig] = None):
        super().__init__(config.bot_username)
        self.config = config
        self.bridge_config = bridge_config or BridgeConfig()
        self.bot = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._goals = None
        self._Vec3 = None
        self._Object = None

    # Bridge plumbing

    async def _call(self, func: Callable[[], Any]) -> Any:
        try:
            return await asyncio.to_thread(func)
        except (ActionFailure, TransportError):
            raise
        except Exception as e:
            raise ActionFailure(str(e)) from e

    def _forward(self, event_type: str, *args: Any) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.emit, event_type, *args)

    def _vec3(self, position: Position) -> Any:
        return self._Vec3(position.x, position.y, position.z)

    # Lifecycle

    async def open(self) -> None:
        """Create the mineflayer bot and wire its events onto the asyncio loop"""
        self._loop = asyncio.get_running_loop()
        try:
            await asyncio.to_thread(self._create_bot)
        except Exception as e:
            logger.error("Failed to create bot", error=str(e))
            raise TransportError(str(e)) from e

    def _create_bot(self) -> None:
        from javascript import On, globalThis, require

        mineflayer = require("mineflayer")
        pathfinder_plugin = require("mineflayer-pathfinder")
        auto_eat = require("mineflayer-auto-eat")
        self._Vec3 = require("vec3").Vec3
        self._goals = pathfinder_plugin.goals
        self._Object = globalThis.Object

        logger.info(
            "Creating bot",
            host=self.config.server_host,
            port=self.config.server_port,
            username=self.config.bot_username,
        )
        options = {
            "host": self.config.server_host,
            "port": self.config.server_port,
            "username": self.config.bot_username,
        }
        if self.config.minecraft_version:
            options["version"] = self.config.minecraft_version
        self.bot = mineflayer.createBot(options)
        self.bot.loadPlugin(pathfinder_plugin.pathfinder)
        self.bot.loadPlugin(auto_eat.loader)
        bot = self.bot

        @On(bot, "spawn")
        def on_spawn(this, *args):
            movements = pathfinder_plugin.Movements(bot)
            movements.allow1by1towers = True
            movements.canDig = True
            bot.pathfinder.setMovements(movements)
            self._forward("spawn")

        @On(bot, "end")
        def on_end(this, reason=None, *args):
            self._forward("end", str(reason) if reason is not None else None)

        @On(bot, "kicked")
        def on_kicked(this, reason=None, *args):
            self._forward("kicked", str(reason))

        @On(bot, "error")
        def on_error(this, err=None, *args):
            self._forward("error", str(getattr(err, "message", err)))

        @On(bot, "chat")
        def on_chat(this, username, message, *args):
            self._forward("chat", str(username), str(message))

        @On(bot, "message")
        def on_message(this, json_msg, *args):
            self._forward("message", str(json_msg.toString()))

        @On(bot, "playerJoined")
        def on_player_joined(this, player, *args):
            self._forward("playerJoined", str(player.username))

        @On(bot, "playerLeft")
        def on_player_left(this, player, *args):
            self._forward("playerLeft", str(player.username))

        @On(bot, "entityMoved")
        def on_entity_moved(this, entity, *args):
            if entity.type == "player" and entity.username and entity.username != bot.username:
                self._forward("entityMoved", str(entity.username))

        @On(bot, "health")
        def on_health(this, *args):
            self._forward("health")

        @On(bot, "path_update")
        def on_path_update(this, result, *args):
            self._forward("path_update", int(result.path.length), float(result.time), int(result.visitedNodes))

        @On(bot, "goal_reached")
        def on_goal_reached(this, *args):
            self._forward("goal_reached")

        @On(bot, "path_reset")
        def on_path_reset(this, reason=None, *args):
            self._forward("path_reset", str(reason))

        # Auto-eat events are wired once per bot, not per enable_auto_eat call
        eater = bot.autoEat

        @On(eater, "eatStart")
        def on_eat_start(this, opts=None, *args):
            item = getattr(opts, "food", None)
            self._forward("eatStart", str(getattr(item, "name", "something")))

        @On(eater, "eatFinish")
        def on_eat_finish(this, opts=None, *args):
            item = getattr(opts, "food", None)
            self._forward("eatFinish", str(getattr(item, "name", "something")))

        @On(eater, "eatFail")
        def on_eat_fail(this, error=None, *args):
            self._forward("eatFail", str(error))

    async def quit(self, reason: Optional[str] = None) -> None:
        if self.bot is None:
            return
        logger.info("Quitting session", reason=reason)
        await self._call(lambda: self.bot.quit(reason) if reason else self.bot.quit())

    # Queries

    async def entity_position(self) -> Position:
        return await self._call(lambda: _position(self.bot.entity.position))

    async def on_ground(self) -> bool:
        return await self._call(lambda: bool(self.bot.entity and self.bot.entity.onGround))

    async def vitals(self) -> Vitals:
        return await self._call(lambda: Vitals(health=float(self.bot.health), food=float(self.bot.food)))

    async def dimension(self) -> str:
        return await self._call(lambda: str(self.bot.game.dimension))

    async def game_version(self) -> str:
        return await self._call(lambda: str(self.bot.version))

    def _entity_info(self, entity: Any) -> EntityInfo:
        return EntityInfo(
            id=int(entity.id),
            name=str(entity.name),
            position=_position(entity.position),
            username=str(entity.username) if entity.username else None,
            height=float(entity.height or 0),
            yaw=float(entity.yaw or 0),
            pitch=float(entity.pitch or 0),
        )

    async def players(self) -> Dict[str, PlayerInfo]:
        def read():
            players = {}
            for username in _js_list(self._Object.keys(self.bot.players)):
                player = self.bot.players[username]
                entity = self._entity_info(player.entity) if player.entity else None
                players[str(username)] = PlayerInfo(username=str(username), entity=entity)
            return players

        return await self._call(read)

    async def inventory_items(self) -> List[InventoryItem]:
        def read():
            return [
                InventoryItem(name=str(item.name), count=int(item.count), slot=int(item.slot), type=int(item.type))
                for item in _js_list(self.bot.inventory.items())
            ]

        return await self._call(read)

    async def nearby_items(self, radius: float) -> List[EntityInfo]:
        def read():
            origin = self.bot.entity.position
            found = []
            for entity_id in _js_list(self._Object.keys(self.bot.entities)):
                entity = self.bot.entities[entity_id]
                if entity.name == "item" and float(entity.position.distanceTo(origin)) < radius:
                    found.append(self._entity_info(entity))
            return found

        return await self._call(read)

    async def find_blocks(self, names: Iterable[str], max_distance: float, count: int) -> List[Position]:
        names = list(names)

        def read():
            registry = self.bot.registry.blocksByName
            ids = [int(registry[name].id) for name in names if registry[name]]
            if not ids:
                return []
            found = self.bot.findBlocks({"matching": ids, "maxDistance": max_distance, "count": count})
            return [_position(vec) for vec in _js_list(found)]

        return await self._call(read)

    async def block_at(self, position: Position) -> Optional[Block]:
        def read():
            block = self.bot.blockAt(self._vec3(position))
            if not block:
                return None
            return Block(name=str(block.name), position=_position(block.position))

        return await self._call(read)

    async def can_dig(self, block: Block) -> bool:
        def read():
            js_block = self.bot.blockAt(self._vec3(block.position))
            return bool(js_block and self.bot.canDigBlock(js_block))

        return await self._call(read)

    async def best_harvest_tool(self, block: Block) -> Optional[InventoryItem]:
        def read():
            tool = self.bot.pathfinder.bestHarvestTool(self.bot.blockAt(self._vec3(block.position)))
            if not tool:
                return None
            return InventoryItem(name=str(tool.name), count=int(tool.count), slot=int(tool.slot), type=int(tool.type))

        return await self._call(read)

    async def raycast_from(self, entity: EntityInfo, max_distance: float = 120) -> Optional[RaycastHit]:
        direction = sight_direction(entity.yaw, entity.pitch)
        eye = entity.position.offset(0, entity.height, 0)

        def read():
            hit = self.bot.world.raycast(self._vec3(eye), self._vec3(direction), max_distance)
            if not hit:
                return None
            return RaycastHit(block=Block(name=str(hit.name), position=_position(hit.position)), face=int(hit.face))

        return await self._call(read)

    # Actions

    def _to_js_goal(self, goal: Goal) -> Any:
        goals = self._goals
        if isinstance(goal, GoalNear):
            return goals.GoalNear(goal.x, goal.y, goal.z, goal.range)
        if isinstance(goal, GoalBlock):
            return goals.GoalBlock(goal.x, goal.y, goal.z)
        if isinstance(goal, GoalXZ):
            return goals.GoalXZ(goal.x, goal.z)
        if isinstance(goal, GoalY):
            return goals.GoalY(goal.y)
        if isinstance(goal, GoalFollow):
            return goals.GoalFollow(self.bot.entities[goal.entity_id], goal.range)
        if isinstance(goal, GoalInvert):
            return goals.GoalInvert(self._to_js_goal(goal.goal))
        if isinstance(goal, GoalLookAtBlock):
            return goals.GoalLookAtBlock(self._vec3(goal.position), self.bot.world, {"range": goal.range})
        if isinstance(goal, GoalPlaceBlock):
            return goals.GoalPlaceBlock(self._vec3(goal.position), self.bot.world, {"range": goal.range})
        raise ValueError(f"Unsupported goal: {goal!r}")

    async def set_goal(self, goal: Optional[Goal], dynamic: bool = False) -> None:
        def apply():
            if goal is None:
                self.bot.pathfinder.setGoal(None)
            else:
                self.bot.pathfinder.setGoal(self._to_js_goal(goal), dynamic)

        await self._call(apply)

    async def goto(self, goal: Goal) -> None:
        timeout = self.bridge_config.pathfinder_timeout
        await self._call(lambda: self.bot.pathfinder.goto(self._to_js_goal(goal), timeout=timeout))

    async def dig(self, block: Block) -> None:
        timeout = self.bridge_config.command_timeout
        await self._call(lambda: self.bot.dig(self.bot.blockAt(self._vec3(block.position)), timeout=timeout))

    async def equip(self, item: InventoryItem, destination: str = "hand") -> None:
        await self._call(lambda: self.bot.equip(item.type, destination))

    async def look_at(self, position: Position) -> None:
        await self._call(lambda: self.bot.lookAt(self._vec3(position)))

    async def place_block(self, reference: Block, face: Position) -> None:
        await self._call(
            lambda: self.bot.placeBlock(self.bot.blockAt(self._vec3(reference.position)), self._vec3(face))
        )

    async def store_items(self, container: Block, items: Iterable[InventoryItem]) -> int:
        items = list(items)
        timeout = self.bridge_config.command_timeout

        def transfer():
            window = self.bot.openContainer(self.bot.blockAt(self._vec3(container.position)), timeout=timeout)
            stored = 0
            try:
                for item in items:
                    try:
                        window.deposit(item.type, None, item.count, timeout=timeout)
                        stored += 1
                    except Exception as e:
                        logger.debug("Could not store item", item=item.name, error=str(e))
            finally:
                window.close()
            return stored

        return await self._call(transfer)

    async def chat(self, message: str) -> None:
        await self._call(lambda: self.bot.chat(message))

    async def set_control_state(self, control: str, state: bool) -> None:
        await self._call(lambda: self.bot.setControlState(control, state))

    async def enable_auto_eat(self, options: AutoEatOptions) -> None:
        def apply():
            self.bot.autoEat.setOpts(
                {
                    "priority": options.priority,
                    "minHunger": options.start_at,
                    "minHealth": options.health_threshold,
                    "bannedFood": options.banned_food,
                }
            )
            self.bot.autoEat.enableAuto()

        await self._call(apply)
