"""
Session upkeep: gear, auto-jump, position heartbeat, hunger and idle notices
"""
from typing import TYPE_CHECKING, List, Optional

from ..bridge.session import AutoEatOptions
from ..errors import ActionFailure
from ..logging_config import get_logger
from ..scheduler import Scheduler, Timer
from ..world.catalog import best_gear

if TYPE_CHECKING:
    from ..bridge.session import GameSession
    from ..config import BotConfig
    from ..world.catalog import MinecraftCatalog

logger = get_logger(__name__)

JUMP_HOLD = 0.5
HEARTBEAT_INTERVAL = 10


class Maintenance:
    """Periodic chores that live exactly as long as one session"""

    def __init__(self, session: "GameSession", scheduler: Scheduler, config: "BotConfig"):
        self.session = session
        self.scheduler = scheduler
        self.config = config
        self.auto_eat_options = AutoEatOptions(
            start_at=16,
            health_threshold=config.hunger_threshold,
        )

    def arm(self) -> List[Timer]:
        """Start the session timers; the caller cancels them when the session ends"""
        return [
            self.scheduler.call_every(self.config.gear_interval, self.equip_best_gear, name="maintenance-gear"),
            self.scheduler.call_every(self.config.jump_interval, self.auto_jump, name="maintenance-jump"),
            self.scheduler.call_every(HEARTBEAT_INTERVAL, self.heartbeat, name="maintenance-heartbeat"),
        ]

    async def equip_best_gear(self) -> int:
        """Wear the best armor per slot and hold the best sword

        Returns:
            Number of pieces equipped
        """
        equipped = 0
        choice = best_gear(await self.session.inventory_items())
        for destination, item in choice.items():
            try:
                await self.session.equip(item, destination)
                equipped += 1
            except ActionFailure as e:
                logger.warning("Could not equip gear", item=item.name, destination=destination, error=str(e))
        if equipped:
            logger.info("Equipped best gear", pieces=equipped)
        return equipped

    async def auto_jump(self) -> bool:
        if not await self.session.on_ground():
            return False
        await self.session.set_control_state("jump", True)
        self.scheduler.call_later(JUMP_HOLD, self._release_jump, name="maintenance-jump-release")
        logger.info("Auto-jumped")
        return True

    async def _release_jump(self) -> None:
        await self.session.set_control_state("jump", False)

    async def heartbeat(self) -> None:
        position = await self.session.entity_position()
        logger.info("Position", position=str(position))

    async def enable_auto_eat(self) -> None:
        await self.session.enable_auto_eat(self.auto_eat_options)
        logger.info(
            "Auto-eat enabled",
            start_at=self.auto_eat_options.start_at,
            health_threshold=self.auto_eat_options.health_threshold,
        )


class HungerAnnouncer:
    """Ask for food when hungry, at most once per cooldown window

    The cooldown covers both the "eating now" and the "please give me food"
    messages.
    """

    EATING = "🍗 I'm hungry! Eating now."
    ASKING = "🍗 I'm hungry! Please give me some food."

    def __init__(
        self,
        session: "GameSession",
        scheduler: Scheduler,
        config: "BotConfig",
        catalog: "MinecraftCatalog",
        maintenance: Maintenance,
    ):
        self.session = session
        self.scheduler = scheduler
        self.threshold = config.hunger_threshold
        self.cooldown = config.hunger_cooldown
        self.catalog = catalog
        self.maintenance = maintenance
        self._last_announcement: Optional[float] = None

    def cooling_down(self) -> bool:
        if self._last_announcement is None:
            return False
        return self.scheduler.time() - self._last_announcement < self.cooldown

    async def on_health(self) -> Optional[str]:
        vitals = await self.session.vitals()
        if vitals.food >= self.threshold or self.cooling_down():
            return None

        self._last_announcement = self.scheduler.time()
        if self.catalog.has_food(await self.session.inventory_items()):
            await self.session.chat(self.EATING)
            await self.maintenance.enable_auto_eat()
            return self.EATING

        await self.session.chat(self.ASKING)
        return self.ASKING


class ActivityWatch:
    """Process-wide idle watchdog fed by player chat, joins and movement"""

    check_interval = 60

    def __init__(self, scheduler: Scheduler, idle_after: float):
        self.scheduler = scheduler
        self.idle_after = idle_after
        self.last_activity = scheduler.time()
        self._timer: Optional[Timer] = None

    def touch(self, *args) -> None:
        self.last_activity = self.scheduler.time()

    def idle_for(self) -> float:
        return self.scheduler.time() - self.last_activity

    def start(self) -> Timer:
        if self._timer is None:
            self._timer = self.scheduler.call_every(self.check_interval, self.check, name="activity-watch")
        return self._timer

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def check(self) -> bool:
        idle = self.idle_for()
        if idle > self.idle_after:
            logger.info("No player activity detected", idle_seconds=int(idle))
            return True
        return False
