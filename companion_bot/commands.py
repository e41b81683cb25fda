"""
Command Dispatcher - turns chat lines into directives and runs them

Directives are case-insensitive and start with "!". Anything that does not
parse into a known directive with valid arguments is ignored.
"""
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from .behaviors import actions
from .behaviors.drops import DropCollector
from .behaviors.mining import MiningLoop
from .behaviors.wood import WoodCollectionLoop
from .errors import ActionFailure, PermissionDenied, TextGenerationError
from .goals import GoalFollow, GoalInvert, GoalMode, GoalNear, goal_from_coordinates
from .logging_config import get_logger
from .world.catalog import has_axe

if TYPE_CHECKING:
    from .bridge.session import EntityInfo, GameSession
    from .config import BotConfig
    from .llm import GeminiTextGenerator
    from .scheduler import Scheduler
    from .tasks import TaskCoordinator
    from .world.catalog import MinecraftCatalog

logger = get_logger(__name__)

PREFIX = "!"

PHRASES = ("collect some wood", "put in chest")
SIMPLE = (
    "help",
    "adminhelp",
    "stop",
    "come",
    "follow",
    "avoid",
    "break",
    "deliver",
    "copypos",
    "startmine",
    "stopmine",
)
PRIVILEGED = frozenset({"adminhelp"})

HELP_LINES = (
    "📜 Commands 1/2: !come | !follow | !avoid | !stop | !collect some wood | !put in chest | !getlocation <username>",
    "📜 Commands 2/2: !goto x y z | !break | !place <item> | !deliver | !copypos | !startmine | !stopmine | !chat <msg>",
)
ADMIN_HELP_LINES = (
    "👑 Admin Commands 1/2: !adminhelp | console: say <text> | pos | quit",
    "👑 Admin Commands 2/2: any other console line is sent to chat as the bot",
)
PERMISSION_DENIED = "🚫 You don't have permission to use this command."
NOT_SEEN = "I don't see you!"
NO_AXE = "🪓 I need at least a stone axe to start chopping."
STOPPED = "Stopped current task."
CHAT_FAILED = "❌ I couldn't think of a reply right now."
HELP_DELAY = 1.0


@dataclass(frozen=True)
class Directive:
    name: str
    args: Tuple[str, ...] = ()
    text: str = ""

    @property
    def privileged(self) -> bool:
        return self.name in PRIVILEGED


def parse(message: str) -> Optional[Directive]:
    """Parse one chat line; None means it is not a directive we act on"""
    line = message.strip()
    if not line.startswith(PREFIX):
        return None

    body = line[len(PREFIX):].strip()
    tokens = body.split()
    if not tokens:
        return None

    command = tokens[0].lower()
    args = tuple(tokens[1:])
    phrase = " ".join(token.lower() for token in tokens)

    if phrase in PHRASES:
        return Directive(phrase)

    if command in SIMPLE:
        return Directive(command, args)

    if command == "goto":
        if goal_from_coordinates(list(args)) is None:
            return None
        return Directive(command, args)

    if command == "place":
        if not args:
            return None
        return Directive(command, args[:1])

    if command == "getlocation":
        return Directive(command, args[:1])

    if command == "chat":
        text = body[len(tokens[0]):].strip()
        if not text:
            return None
        return Directive(command, text=text)

    return None


class CommandDispatcher:
    """Runs directives against the session, the coordinator and the behavior loops"""

    def __init__(
        self,
        session: "GameSession",
        coordinator: "TaskCoordinator",
        scheduler: "Scheduler",
        config: "BotConfig",
        catalog: "MinecraftCatalog",
        text_generator: "GeminiTextGenerator",
        drops: Optional[DropCollector] = None,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.coordinator = coordinator
        self.scheduler = scheduler
        self.config = config
        self.catalog = catalog
        self.text_generator = text_generator
        self.drops = drops or DropCollector(session, coordinator, scheduler)
        self.rng = rng
        self._handlers = {
            "help": self._help,
            "adminhelp": self._admin_help,
            "stop": self._stop,
            "come": self._come,
            "follow": self._follow,
            "avoid": self._avoid,
            "goto": self._goto,
            "break": self._break,
            "place": self._place,
            "deliver": self._deliver,
            "put in chest": self._put_in_chest,
            "getlocation": self._get_location,
            "copypos": self._copy_position,
            "collect some wood": self._collect_wood,
            "startmine": self._start_mining,
            "stopmine": self._stop_mining,
            "chat": self._chat,
        }

    async def dispatch(self, username: str, message: str) -> Optional[Directive]:
        """Handle one chat line from a player

        Returns:
            The directive that was recognised, if any
        """
        if username == self.session.username:
            return None

        directive = parse(message)
        if directive is None:
            return None

        try:
            self._authorize(username, directive)
        except PermissionDenied as e:
            logger.warning("Permission denied", username=e.username, directive=e.directive)
            await self.session.chat(PERMISSION_DENIED)
            return directive

        logger.info("Running directive", username=username, directive=directive.name, args=list(directive.args))
        try:
            await self._handlers[directive.name](username, directive)
        except ActionFailure as e:
            logger.warning("Directive failed", directive=directive.name, error=str(e))
        return directive

    def _authorize(self, username: str, directive: Directive) -> None:
        if directive.privileged and username not in self.config.admin_users:
            raise PermissionDenied(username, directive.name)

    async def _say(self, result: Dict) -> None:
        message = result.get("message")
        if message:
            await self.session.chat(message)

    async def _player_entity(self, username: str) -> Optional["EntityInfo"]:
        player = (await self.session.players()).get(username)
        return player.entity if player else None

    async def _say_lines(self, lines: Tuple[str, str]) -> None:
        await self.session.chat(lines[0])
        self.scheduler.call_later(HELP_DELAY, lambda: self.session.chat(lines[1]), name="help-second-line")

    # Handlers

    async def _help(self, username: str, directive: Directive) -> None:
        await self._say_lines(HELP_LINES)

    async def _admin_help(self, username: str, directive: Directive) -> None:
        await self._say_lines(ADMIN_HELP_LINES)

    async def _stop(self, username: str, directive: Directive) -> None:
        await self.coordinator.stop_all()
        await self.session.chat(STOPPED)

    async def _come(self, username: str, directive: Directive) -> None:
        target = await self._player_entity(username)
        if target is None:
            await self.session.chat(NOT_SEEN)
            return
        await self.coordinator.set_goal(GoalNear.around(target.position, 1), GoalMode.EXCLUSIVE)

    async def _follow(self, username: str, directive: Directive) -> None:
        target = await self._player_entity(username)
        if target is None:
            await self.session.chat(NOT_SEEN)
            return
        await self.coordinator.set_goal(GoalFollow(target.id, 3), GoalMode.PERSISTENT)

    async def _avoid(self, username: str, directive: Directive) -> None:
        target = await self._player_entity(username)
        if target is None:
            await self.session.chat(NOT_SEEN)
            return
        await self.coordinator.set_goal(GoalInvert(GoalFollow(target.id, 5)), GoalMode.PERSISTENT)

    async def _goto(self, username: str, directive: Directive) -> None:
        await self.coordinator.set_goal(goal_from_coordinates(list(directive.args)), GoalMode.EXCLUSIVE)

    async def _break(self, username: str, directive: Directive) -> None:
        target = await self._player_entity(username)
        if target is None:
            await self.session.chat("I can't see you!")
            return
        await self._say(await actions.break_looked_at_block(self.session, self.coordinator, target))

    async def _place(self, username: str, directive: Directive) -> None:
        target = await self._player_entity(username)
        if target is None:
            await self.session.chat("I can't see you")
            return
        result = await actions.place_item(self.session, self.coordinator, self.catalog, target, directive.args[0])
        await self._say(result)

    async def _deliver(self, username: str, directive: Directive) -> None:
        await self._say(await actions.deliver_to_trapped_chest(self.session, self.coordinator))

    async def _put_in_chest(self, username: str, directive: Directive) -> None:
        await self._say(await actions.deposit_logs(self.session, self.coordinator))

    async def _get_location(self, username: str, directive: Directive) -> None:
        target_name = directive.args[0] if directive.args else None
        await self._say(await actions.report_location(self.session, target_name))

    async def _copy_position(self, username: str, directive: Directive) -> None:
        target = await self._player_entity(username)
        await self._say(await actions.position_near_player(self.session, self.coordinator, username, target))

    async def _collect_wood(self, username: str, directive: Directive) -> None:
        if not has_axe(await self.session.inventory_items()):
            await self.session.chat(NO_AXE)
            return
        await self.session.chat("🪓 Starting wood collection...")
        loop = WoodCollectionLoop(
            self.session, self.coordinator, self.scheduler, self.catalog, self.drops, target=64, rng=self.rng
        )
        await loop.start()

    async def _start_mining(self, username: str, directive: Directive) -> None:
        await self.session.chat("⛏️ Starting to mine.")
        loop = MiningLoop(self.session, self.coordinator, self.scheduler, self.catalog, self.drops, rng=self.rng)
        await loop.start()

    async def _stop_mining(self, username: str, directive: Directive) -> None:
        if self.coordinator.cancel_loop(MiningLoop.name):
            await self.session.chat("⛏️ Stopped mining.")

    async def _chat(self, username: str, directive: Directive) -> None:
        try:
            reply = await self.text_generator.reply(directive.text)
        except TextGenerationError as e:
            logger.warning("Chat reply failed", error=str(e))
            await self.session.chat(CHAT_FAILED)
            return
        if reply:
            await self.session.chat(reply)
