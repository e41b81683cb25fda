"""
Game session contract - everything the bot needs from the world collaborator
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..goals import Goal
from ..logging_config import get_logger
from ..scheduler import run_detached
from ..world.geometry import Position

logger = get_logger(__name__)


@dataclass
class InventoryItem:
    name: str
    count: int
    slot: Optional[int] = None
    type: Optional[int] = None


@dataclass
class EntityInfo:
    id: int
    name: str
    position: Position
    username: Optional[str] = None
    height: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0


@dataclass
class PlayerInfo:
    username: str
    entity: Optional[EntityInfo] = None  # None when the player is out of render distance


@dataclass
class Block:
    name: str
    position: Position


@dataclass
class RaycastHit:
    block: Block
    face: int


@dataclass
class Vitals:
    health: float = 20.0
    food: float = 20.0


@dataclass
class AutoEatOptions:
    priority: str = "auto"
    start_at: int = 16
    health_threshold: int = 14
    banned_food: List[str] = field(default_factory=list)


class GameSession(ABC):
    """One connection to the game server

    Event handlers are always invoked on the asyncio loop thread. Coroutine
    handlers are scheduled as background tasks.

    Events: spawn, end(reason), kicked(reason), error(message), chat(username, message),
    message(text), playerJoined(username), playerLeft(username), entityMoved(username),
    health, path_update(moves, time_ms, visited), goal_reached, path_reset(reason),
    eatStart(item), eatFinish(item), eatFail(error)
    """

    def __init__(self, username: str):
        self.username = username
        self.event_handlers: Dict[str, List[Callable]] = {}

    def on(self, event_type: str, handler: Callable) -> None:
        """Register a handler for a session event"""
        self.event_handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Registered handler for event: {event_type}")

    def once(self, event_type: str, handler: Callable) -> None:
        def wrapper(*args):
            self.off(event_type, wrapper)
            return handler(*args)

        self.on(event_type, wrapper)

    def off(self, event_type: str, handler: Callable) -> None:
        handlers = self.event_handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_type: str, *args: Any) -> None:
        """Dispatch an event to registered handlers; one failing handler never blocks the others"""
        for handler in list(self.event_handlers.get(event_type, [])):
            try:
                run_detached(handler(*args), name=f"{event_type} handler")
            except Exception as e:
                logger.error("Error in event handler", event_type=event_type, error=str(e))

    # Lifecycle

    @abstractmethod
    async def open(self) -> None:
        """Start connecting; spawn or end is emitted later"""

    @abstractmethod
    async def quit(self, reason: Optional[str] = None) -> None:
        """Request graceful termination"""

    # Queries

    @abstractmethod
    async def entity_position(self) -> Position:
        ...

    @abstractmethod
    async def on_ground(self) -> bool:
        ...

    @abstractmethod
    async def vitals(self) -> Vitals:
        ...

    @abstractmethod
    async def dimension(self) -> str:
        ...

    @abstractmethod
    async def game_version(self) -> str:
        """Protocol version negotiated with the server, e.g. 1.21.1"""

    @abstractmethod
    async def players(self) -> Dict[str, PlayerInfo]:
        """All connected players by username, including the bot itself"""

    @abstractmethod
    async def inventory_items(self) -> List[InventoryItem]:
        ...

    @abstractmethod
    async def nearby_items(self, radius: float) -> List[EntityInfo]:
        """Dropped item entities within radius of the bot"""

    @abstractmethod
    async def find_blocks(self, names: Iterable[str], max_distance: float, count: int) -> List[Position]:
        """Positions of matching blocks, nearest first"""

    @abstractmethod
    async def block_at(self, position: Position) -> Optional[Block]:
        ...

    @abstractmethod
    async def can_dig(self, block: Block) -> bool:
        ...

    @abstractmethod
    async def best_harvest_tool(self, block: Block) -> Optional[InventoryItem]:
        ...

    @abstractmethod
    async def raycast_from(self, entity: EntityInfo, max_distance: float = 120) -> Optional[RaycastHit]:
        """Block the entity is looking at"""

    # Actions

    @abstractmethod
    async def set_goal(self, goal: Optional[Goal], dynamic: bool = False) -> None:
        """Replace the pathfinder target; None clears it"""

    @abstractmethod
    async def goto(self, goal: Goal) -> None:
        """Navigate until the goal is reached; raises when the path fails or the goal changes"""

    @abstractmethod
    async def dig(self, block: Block) -> None:
        ...

    @abstractmethod
    async def equip(self, item: InventoryItem, destination: str = "hand") -> None:
        ...

    @abstractmethod
    async def look_at(self, position: Position) -> None:
        ...

    @abstractmethod
    async def place_block(self, reference: Block, face: Position) -> None:
        ...

    @abstractmethod
    async def store_items(self, container: Block, items: Iterable[InventoryItem]) -> int:
        """Move items into a container; returns how many stacks were stored"""

    @abstractmethod
    async def chat(self, message: str) -> None:
        ...

    @abstractmethod
    async def set_control_state(self, control: str, state: bool) -> None:
        ...

    @abstractmethod
    async def enable_auto_eat(self, options: AutoEatOptions) -> None:
        ...
