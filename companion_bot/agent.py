"""
Companion agent - wires presence, supervision, commands and upkeep together
"""
from typing import TYPE_CHECKING, Callable, Optional

from .behaviors.drops import DropCollector
from .behaviors.maintenance import ActivityWatch, HungerAnnouncer, Maintenance
from .bridge.mineflayer_session import MineflayerSession
from .bridge.session import GameSession
from .commands import CommandDispatcher
from .llm import GeminiTextGenerator
from .logging_config import get_logger
from .presence import PresenceMonitor, StatusClient
from .scheduler import AsyncioScheduler, Scheduler
from .supervisor import ConnectionSupervisor, SessionFactory
from .tasks import TaskCoordinator
from .world.catalog import MinecraftCatalog, load_catalog

if TYPE_CHECKING:
    from .config import BotConfig

logger = get_logger(__name__)


class CompanionAgent:
    """One bot identity on one server"""

    def __init__(
        self,
        config: "BotConfig",
        scheduler: Optional[Scheduler] = None,
        session_factory: Optional[SessionFactory] = None,
        status_client: Optional[StatusClient] = None,
        text_generator: Optional[GeminiTextGenerator] = None,
        catalog_loader: Callable[[str], MinecraftCatalog] = load_catalog,
    ):
        self.config = config
        self.scheduler = scheduler or AsyncioScheduler()
        self.catalog_loader = catalog_loader

        self.presence = PresenceMonitor(
            status_client or StatusClient(config.server_host, config.server_port),
            self.scheduler,
            config,
        )
        self.supervisor = ConnectionSupervisor(
            session_factory or (lambda: MineflayerSession(config)),
            self.scheduler,
            config,
            self.presence.retry_counter,
        )
        self.presence.attach(self.supervisor)

        self.coordinator = TaskCoordinator()
        self.text_generator = text_generator or GeminiTextGenerator.from_config(config)
        self.activity = ActivityWatch(self.scheduler, config.idle_warning_after)

        self.dispatcher: Optional[CommandDispatcher] = None
        self.maintenance: Optional[Maintenance] = None
        self.hunger: Optional[HungerAnnouncer] = None

        self.supervisor.add_ready_hook(self.on_session_ready)
        self.supervisor.add_closed_hook(self.on_session_closed)

    @property
    def session(self) -> Optional[GameSession]:
        return self.supervisor.session

    @property
    def state(self) -> str:
        return self.supervisor.state.value

    def start(self) -> None:
        """Begin watching the server; a session opens once a player shows up"""
        logger.info("Starting companion agent", host=self.config.server_host, port=self.config.server_port)
        self.activity.start()
        self.presence.start()

    async def shutdown(self, reason: str = "Shutting down") -> None:
        self.presence.stop()
        self.activity.stop()
        await self.supervisor.stop(reason)

    # Session scope

    async def on_session_ready(self, session: GameSession) -> None:
        """One-time setup for a freshly spawned session"""
        version = await session.game_version()
        catalog = self.catalog_loader(version)
        self.coordinator.bind(session)

        self.dispatcher = CommandDispatcher(
            session,
            self.coordinator,
            self.scheduler,
            self.config,
            catalog,
            self.text_generator,
            drops=DropCollector(session, self.coordinator, self.scheduler),
        )
        self.maintenance = Maintenance(session, self.scheduler, self.config)
        self.hunger = HungerAnnouncer(session, self.scheduler, self.config, catalog, self.maintenance)

        for timer in self.maintenance.arm():
            self.supervisor.add_session_timer(timer)
        self.supervisor.add_session_timer(self.presence.start_membership_checks())

        session.on("chat", self.on_chat)
        session.on("message", self.on_server_message)
        session.on("playerJoined", self.on_player_joined)
        session.on("playerLeft", lambda username: logger.info("Player left", username=username))
        session.on("entityMoved", self.activity.touch)
        session.on("health", self.hunger.on_health)
        session.on("path_update", self.on_path_update)
        session.on("goal_reached", lambda: logger.info("Goal reached"))
        session.on("path_reset", lambda reason: logger.info("Path reset", reason=reason))
        session.on("eatStart", lambda item: logger.info("Eating", item=item))
        session.on("eatFinish", lambda item: logger.info("Ate", item=item))
        session.on("eatFail", lambda error: logger.error("Eat fail", error=error))

        await self.maintenance.equip_best_gear()
        await self.maintenance.enable_auto_eat()
        logger.info("Bot spawned and ready", version=version)

    def on_session_closed(self) -> None:
        self.coordinator.reset()
        self.dispatcher = None
        self.maintenance = None
        self.hunger = None

    # Event handlers

    async def on_chat(self, username: str, message: str) -> None:
        session = self.session
        if session is None or username == session.username:
            return

        self.activity.touch()
        logger.info("Chat", username=username, message=message)
        if self.dispatcher is not None:
            await self.dispatcher.dispatch(username, message)

    async def on_server_message(self, text: str) -> Optional[str]:
        """Answer /register and /login prompts from auth plugins"""
        session = self.session
        secret = self.config.auth_password
        password = secret.get_secret_value() if secret is not None else ""
        if session is None or not password:
            return None

        lowered = text.lower()
        if "/register" in lowered:
            reply = f"/register {password} {password}"
        elif "/login" in lowered:
            reply = f"/login {password}"
        else:
            return None
        await session.chat(reply)
        logger.info("Answered auth prompt", command=reply.split(" ", 1)[0])
        return reply

    def on_player_joined(self, username: str) -> None:
        session = self.session
        if session is not None and username == session.username:
            return
        logger.info("Player joined", username=username)
        self.activity.touch()

    def on_path_update(self, moves: int, time_ms: float, visited: int) -> None:
        nodes_per_tick = visited * 50 / time_ms if time_ms else 0.0
        logger.info("Path update", moves=moves, took_ms=round(time_ms, 2), nodes_per_tick=round(nodes_per_tick, 2))
