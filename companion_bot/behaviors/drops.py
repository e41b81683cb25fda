"""
Drop pickup - walk over item entities lying near the bot
"""
from typing import TYPE_CHECKING

from ..errors import ActionFailure, Cancelled
from ..goals import GoalNear
from ..logging_config import get_logger
from ..scheduler import Scheduler

if TYPE_CHECKING:
    from ..bridge.session import GameSession
    from ..tasks import TaskCoordinator

logger = get_logger(__name__)


class DropCollector:
    """Best-effort pickup shared by every loop that breaks blocks

    Scans are rate limited by a global cooldown so back-to-back ticks do not
    re-query the entity list.
    """

    radius = 5.0
    cooldown = 0.5

    def __init__(self, session: "GameSession", coordinator: "TaskCoordinator", scheduler: Scheduler):
        self.session = session
        self.coordinator = coordinator
        self.scheduler = scheduler
        self._last_scan = None

    def ready(self) -> bool:
        if self._last_scan is None:
            return True
        return self.scheduler.time() - self._last_scan >= self.cooldown

    async def collect(self) -> int:
        """Walk to each nearby drop in discovery order

        Returns:
            Number of drops reached
        """
        if not self.ready():
            return 0

        try:
            items = await self.session.nearby_items(self.radius)
        except ActionFailure as e:
            logger.info("Could not scan for drops", error=str(e))
            return 0
        finally:
            self._last_scan = self.scheduler.time()

        collected = 0
        for item in items:
            try:
                await self.coordinator.goto(GoalNear.around(item.position, 1))
                collected += 1
            except Cancelled:
                logger.info("Pickup interrupted", collected=collected)
                break
            except ActionFailure as e:
                logger.debug("Pickup failed", item_id=item.id, error=str(e))

        if collected:
            logger.info("Picked up drops", count=collected)
        return collected
