"""
Mining loop - digs the nearest ore blocks until told to stop
"""
import random
from typing import TYPE_CHECKING, Optional, Set

from ..errors import ActionFailure, Cancelled
from ..goals import GoalNear
from ..logging_config import get_logger
from ..scheduler import Scheduler
from ..world.geometry import Position
from .base import BehaviorLoop
from .drops import DropCollector

if TYPE_CHECKING:
    from ..bridge.session import GameSession
    from ..tasks import TaskCoordinator
    from ..world.catalog import MinecraftCatalog

logger = get_logger(__name__)


class MiningLoop(BehaviorLoop):
    name = "mining"
    interval = 0.5
    idle_interval = 2.0
    search_radius = 16
    search_count = 16

    def __init__(
        self,
        session: "GameSession",
        coordinator: "TaskCoordinator",
        scheduler: Scheduler,
        catalog: "MinecraftCatalog",
        drops: DropCollector,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(session, coordinator, scheduler, rng=rng)
        self.catalog = catalog
        self.drops = drops
        self.mined: Set[Position] = set()
        self.blocks_mined = 0

    async def setup(self) -> None:
        self.mined = set()
        self.blocks_mined = 0

    async def tick(self) -> Optional[float]:
        await self.drops.collect()
        if self.cancelled:
            return None

        targets = await self.session.find_blocks(
            self.catalog.ore_block_names(), self.search_radius, self.search_count
        )
        candidates = [position for position in targets if position not in self.mined]
        if not candidates:
            await self._roam(10)
            return self.idle_interval

        for position in candidates:
            block = await self.session.block_at(position)
            if block is None or not await self.session.can_dig(block):
                self.mined.add(position)
                continue

            if self.cancelled:
                return None

            self.mined.add(position)
            try:
                tool = await self.session.best_harvest_tool(block)
                if tool is not None:
                    await self.session.equip(tool, "hand")
                await self.coordinator.goto(GoalNear.around(position, 1))
                await self.session.dig(block)
                self.blocks_mined += 1
                logger.info("Mined ore", block=block.name, position=str(position), total=self.blocks_mined)
            except (ActionFailure, Cancelled) as e:
                logger.info("Could not mine ore", block=block.name, error=str(e))
            break

        return self.interval
