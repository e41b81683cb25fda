"""
Task Coordinator - owns the single active navigation goal and the running behavior loops
"""
import asyncio
from typing import TYPE_CHECKING, Dict, List, Optional

from .bridge.session import GameSession
from .errors import ActionFailure, Cancelled
from .goals import Goal, GoalMode, describe
from .logging_config import get_logger

if TYPE_CHECKING:
    from .behaviors.base import BehaviorLoop

logger = get_logger(__name__)


class TaskCoordinator:
    """Setting a goal always supersedes the previous one

    Every goal gets a ticket future. Superseding or cancelling a goal resolves
    its ticket, which makes an in-flight ``goto`` for that goal fail fast with
    ``Cancelled``.
    """

    def __init__(self, session: Optional[GameSession] = None):
        self.session = session
        self._goal: Optional[Goal] = None
        self._ticket: Optional[asyncio.Future] = None
        self._loops: Dict[str, "BehaviorLoop"] = {}

    def bind(self, session: GameSession) -> None:
        self.reset()
        self.session = session

    def reset(self) -> None:
        """Forget the session and everything that ran on it"""
        for loop in list(self._loops.values()):
            loop.cancel()
        self._loops.clear()
        self._supersede()
        self._goal = None
        self.session = None

    @property
    def current_goal(self) -> Optional[Goal]:
        return self._goal

    @property
    def loops(self) -> List["BehaviorLoop"]:
        return list(self._loops.values())

    def _require_session(self) -> GameSession:
        if self.session is None:
            raise ActionFailure("No active session")
        return self.session

    def _supersede(self) -> None:
        if self._ticket is not None and not self._ticket.done():
            self._ticket.set_result(None)
        self._ticket = None

    # Goals

    async def set_goal(self, goal: Goal, mode: GoalMode = GoalMode.EXCLUSIVE) -> None:
        session = self._require_session()
        self._supersede()
        self._goal = goal
        logger.info("Goal set", goal=describe(goal), mode=mode.value)
        await session.set_goal(goal, dynamic=mode is GoalMode.PERSISTENT)

    async def cancel_goal(self) -> None:
        self._supersede()
        if self._goal is not None:
            logger.info("Goal cancelled", goal=describe(self._goal))
        self._goal = None
        if self.session is not None:
            await self.session.set_goal(None)

    async def goto(self, goal: Goal) -> None:
        """Navigate to an exclusive goal and wait until it is reached

        Raises:
            Cancelled: another goal replaced this one, or it was cancelled
            ActionFailure: the path could not be completed
        """
        session = self._require_session()
        self._supersede()
        ticket = asyncio.get_running_loop().create_future()
        self._ticket = ticket
        self._goal = goal

        navigation = asyncio.ensure_future(session.goto(goal))
        try:
            await asyncio.wait({navigation, ticket}, return_when=asyncio.FIRST_COMPLETED)
            if ticket.done():
                raise Cancelled(f"Goal superseded: {describe(goal)}")
            try:
                navigation.result()
            except ActionFailure:
                raise
            except Exception as e:
                raise ActionFailure(str(e)) from e
        finally:
            if not navigation.done():
                navigation.cancel()
            if self._ticket is ticket:
                self._ticket = None
                self._goal = None

    # Loops

    def register_loop(self, loop: "BehaviorLoop") -> None:
        """Track a loop; a running loop with the same name is cancelled first"""
        previous = self._loops.get(loop.name)
        if previous is not None and previous is not loop and previous.running:
            logger.info("Replacing running loop", loop=loop.name)
            previous.cancel()
        self._loops[loop.name] = loop

    def cancel_loop(self, name: str) -> bool:
        loop = self._loops.pop(name, None)
        if loop is None or not loop.running:
            return False
        loop.cancel()
        return True

    async def stop_all(self) -> None:
        """Cancel every loop and the active goal"""
        for loop in list(self._loops.values()):
            loop.cancel()
        await self.cancel_goal()
        logger.info("All tasks stopped")
