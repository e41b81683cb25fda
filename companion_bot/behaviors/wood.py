"""
Wood collection loop
"""
import random
from typing import TYPE_CHECKING, Optional, Set

from ..errors import ActionFailure, Cancelled
from ..goals import GoalNear
from ..logging_config import get_logger
from ..scheduler import Scheduler
from ..world.catalog import count_logs, find_axe, is_foliage
from ..world.geometry import Position
from .base import BehaviorLoop
from .drops import DropCollector

if TYPE_CHECKING:
    from ..bridge.session import GameSession
    from ..tasks import TaskCoordinator
    from ..world.catalog import MinecraftCatalog

logger = get_logger(__name__)


class WoodCollectionLoop(BehaviorLoop):
    """Chop logs until the inventory holds ``target`` of them

    One tick: pick up drops, check the quota, look for logs, mine at most one.
    Positions are marked as mined before the attempt so a failed block is not
    picked again during the same run.
    """

    name = "wood"
    interval = 0.5
    idle_interval = 1.0
    search_radius = 32
    search_count = 32
    MAX_SKIP = 10

    def __init__(
        self,
        session: "GameSession",
        coordinator: "TaskCoordinator",
        scheduler: Scheduler,
        catalog: "MinecraftCatalog",
        drops: DropCollector,
        target: int = 64,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(session, coordinator, scheduler, rng=rng)
        self.catalog = catalog
        self.drops = drops
        self.target = target
        self.mined: Set[Position] = set()

    async def setup(self) -> None:
        self.mined = set()
        axe = find_axe(await self.session.inventory_items())
        if axe is None:
            return
        try:
            await self.session.equip(axe, "hand")
            logger.info("Equipped axe", axe=axe.name)
        except ActionFailure as e:
            logger.warning("Failed to equip axe", axe=axe.name, error=str(e))

    async def tick(self) -> Optional[float]:
        await self.drops.collect()
        if self.cancelled:
            return None

        logs = count_logs(await self.session.inventory_items())
        if logs >= self.target:
            if self.cancelled:
                return None
            await self.session.chat(f"✅ Collected {logs} logs.")
            return None

        targets = await self.session.find_blocks(
            self.catalog.log_block_names(), self.search_radius, self.search_count
        )
        if not targets:
            logger.info("No logs in range, roaming")
            await self._roam(15)
            return self.idle_interval

        skipped = 0
        for position in targets:
            if position in self.mined:
                continue

            block = await self.session.block_at(position)
            if block is None or is_foliage(block.name) or not await self.session.can_dig(block):
                skipped += 1
                if skipped >= self.MAX_SKIP:
                    logger.info("Too many unreachable logs, roaming", skipped=skipped)
                    await self._roam(10)
                    break
                continue

            if self.cancelled:
                return None

            self.mined.add(position)
            try:
                await self.coordinator.goto(GoalNear.around(position, 1))
                await self._mine(position)
            except (ActionFailure, Cancelled) as e:
                logger.info("Could not reach log", position=str(position), error=str(e))
            break

        return self.interval
