"""
Behavior loop base - a self-rescheduling routine driven by the Scheduler

Each tick returns the delay until the next tick, or None when the loop is
finished. Cancellation is cooperative: the flag is checked before every tick
and at the checkpoints subclasses choose.
"""
import random
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from ..errors import ActionFailure, Cancelled
from ..goals import GoalBlock, GoalNear
from ..logging_config import get_logger
from ..scheduler import Scheduler, Timer
from ..world.geometry import Position

if TYPE_CHECKING:
    from ..bridge.session import GameSession
    from ..tasks import TaskCoordinator

logger = get_logger(__name__)


class BehaviorLoop(ABC):
    name = "behavior"
    interval = 0.5

    def __init__(
        self,
        session: "GameSession",
        coordinator: "TaskCoordinator",
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.coordinator = coordinator
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.cancelled = False
        self.running = False
        self.ticks = 0
        self._timer: Optional[Timer] = None

    async def start(self) -> None:
        self.cancelled = False
        self.running = True
        self.coordinator.register_loop(self)
        logger.info("Loop started", loop=self.name)
        await self.setup()
        self._schedule(0)

    async def setup(self) -> None:
        """Runs once before the first tick"""

    def cancel(self) -> None:
        if self.running:
            logger.info("Loop cancelled", loop=self.name)
        self.cancelled = True
        self.running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @abstractmethod
    async def tick(self) -> Optional[float]:
        """Do one step; return the delay before the next one or None to finish"""

    def _schedule(self, delay: float) -> None:
        self._timer = self.scheduler.call_later(delay, self._run_tick, name=f"{self.name}-tick")

    async def _run_tick(self) -> None:
        self._timer = None
        if self.cancelled:
            self.running = False
            return

        self.ticks += 1
        try:
            delay = await self.tick()
        except Exception as e:
            logger.error("Loop tick failed", loop=self.name, error=str(e), exc_info=True)
            delay = self.interval

        if self.cancelled:
            self.running = False
            return
        if delay is None:
            self.running = False
            logger.info("Loop finished", loop=self.name, ticks=self.ticks)
            return
        self._schedule(delay)

    # Shared maneuvers

    async def _roam(self, radius: int = 10) -> None:
        """Walk to a random spot within radius; failures are only logged"""
        if self.cancelled:
            return
        dx = self.rng.randint(-radius, radius)
        dz = self.rng.randint(-radius, radius)
        try:
            target = (await self.session.entity_position()).offset(dx, 0, dz)
            await self.coordinator.goto(GoalNear.around(target, 1))
        except (ActionFailure, Cancelled) as e:
            logger.info("Roaming failed", loop=self.name, error=str(e))

    async def _mine(self, position: Position) -> bool:
        """Stand on top of the block and dig it

        Returns:
            True if the block was dug
        """
        block = await self.session.block_at(position)
        if block is None or not await self.session.can_dig(block):
            return False
        try:
            await self.coordinator.goto(GoalBlock(int(position.x), int(position.y) + 1, int(position.z)))
            await self.session.dig(block)
        except (ActionFailure, Cancelled) as e:
            logger.info("Mining failed", loop=self.name, position=str(position), error=str(e))
            return False
        return True
