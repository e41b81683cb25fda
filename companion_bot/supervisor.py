"""
Connection Supervisor - owns the session lifecycle state machine

STOPPED -> STARTING -> RUNNING -> (end) -> STOPPED, with RETRYING while a
reconnect backoff is pending and COOLING_DOWN while the presence cooldown is
armed and no session exists.
"""
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

from .bridge.session import GameSession
from .errors import CompanionError
from .logging_config import get_logger
from .scheduler import Scheduler, Timer

if TYPE_CHECKING:
    from .config import BotConfig
    from .presence import RetryCounter

logger = get_logger(__name__)

SessionFactory = Callable[[], GameSession]
ReadyHook = Callable[[GameSession], Awaitable[None]]
ClosedHook = Callable[[], None]


class SessionState(Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    RETRYING = "retrying"
    COOLING_DOWN = "cooling_down"


class ConnectionSupervisor:
    """Starts, stops and reconnects the single game session"""

    def __init__(
        self,
        session_factory: SessionFactory,
        scheduler: Scheduler,
        config: "BotConfig",
        retry_counter: "RetryCounter",
    ):
        self.session_factory = session_factory
        self.scheduler = scheduler
        self.config = config
        self.retry_counter = retry_counter

        self.state = SessionState.STOPPED
        self.session: Optional[GameSession] = None
        self.reconnect_attempts = 0
        self.sessions_opened = 0

        self._session_timers: List[Timer] = []
        self._retry_timer: Optional[Timer] = None
        self._ready_hooks: List[ReadyHook] = []
        self._closed_hooks: List[ClosedHook] = []

    # Registration

    def add_ready_hook(self, hook: ReadyHook) -> None:
        """Run once per session right after it spawns"""
        self._ready_hooks.append(hook)

    def add_closed_hook(self, hook: ClosedHook) -> None:
        """Run whenever the current session goes away, solicited or not"""
        self._closed_hooks.append(hook)

    def add_session_timer(self, timer: Timer) -> None:
        """Timer cancelled automatically when the session stops or ends"""
        self._session_timers.append(timer)

    # State

    @property
    def is_live(self) -> bool:
        return self.state in (SessionState.STARTING, SessionState.RUNNING)

    @property
    def has_session(self) -> bool:
        return self.state in (SessionState.STARTING, SessionState.RUNNING, SessionState.RETRYING)

    def _set_state(self, state: SessionState) -> None:
        if state is not self.state:
            logger.info("Session state changed", old=self.state.value, new=state.value)
            self.state = state

    def enter_cooldown(self) -> None:
        if self.state is SessionState.STOPPED:
            self._set_state(SessionState.COOLING_DOWN)

    def leave_cooldown(self) -> None:
        if self.state is SessionState.COOLING_DOWN:
            self._set_state(SessionState.STOPPED)

    # Lifecycle

    async def start(self) -> bool:
        """Open a new session unless one is already live or presence retries are exhausted

        Returns:
            True if a new session was opened
        """
        if self.retry_counter.exhausted:
            logger.info("Not starting bot because max player retry attempts reached")
            return False

        if self.is_live:
            logger.info("Bot already running, skipping start", state=self.state.value)
            return False

        self._cancel_retry()
        self._set_state(SessionState.STARTING)

        session = self.session_factory()
        self.session = session
        self.sessions_opened += 1
        session.once("spawn", lambda *args: self._handle_ready(session))
        session.on("end", lambda reason=None, *args: self._handle_end(session, reason))
        session.on("kicked", lambda reason=None, *args: logger.warning("Kicked", reason=reason))
        session.on("error", lambda message=None, *args: logger.warning("Bot error", error=message))

        logger.info("Starting bot", attempt=self.sessions_opened)
        try:
            await session.open()
        except CompanionError as e:
            logger.error("Failed to open session", error=str(e))
            self._handle_end(session, str(e))
            return False
        return True

    async def stop(self, reason: str = "No players online.") -> None:
        """Terminate the session on purpose; no reconnect follows"""
        self._cancel_retry()
        session = self.session
        self.session = None
        self._close_session_scope()
        self._set_state(SessionState.STOPPED)

        if session is None:
            return

        logger.info("Stopping bot", reason=reason)
        try:
            await session.quit(reason)
        except CompanionError as e:
            logger.warning("Session did not quit cleanly", error=str(e))

    async def _handle_ready(self, session: GameSession) -> None:
        if session is not self.session or self.state is not SessionState.STARTING:
            logger.info("Spawn from a session that is no longer wanted, quitting it")
            await session.quit("Superseded")
            return

        self._set_state(SessionState.RUNNING)
        logger.info("Bot spawned")
        for hook in self._ready_hooks:
            try:
                await hook(session)
            except Exception as e:
                logger.error("Error during spawn setup", error=str(e), exc_info=True)

    def _handle_end(self, session: GameSession, reason: Optional[str] = None) -> None:
        if session is not self.session:
            logger.debug("Ignoring end of a stale session", reason=reason)
            return

        logger.info("Bot disconnected", reason=reason)
        self.session = None
        self._close_session_scope()
        self._set_state(SessionState.STOPPED)

        if self.reconnect_attempts >= self.config.max_retries:
            logger.warning("Max reconnect attempts reached, bot will not restart")
            return

        self.reconnect_attempts += 1
        logger.info(
            "Attempting to reconnect",
            delay=self.config.reconnect_backoff,
            attempt=self.reconnect_attempts,
            max_retries=self.config.max_retries,
        )
        self._set_state(SessionState.RETRYING)
        self._retry_timer = self.scheduler.call_later(
            self.config.reconnect_backoff, self._retry, name="supervisor-reconnect"
        )

    async def _retry(self) -> None:
        self._retry_timer = None
        if self.state is not SessionState.RETRYING:
            return
        self._set_state(SessionState.STOPPED)
        await self.start()

    def _cancel_retry(self) -> None:
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None

    def _close_session_scope(self) -> None:
        for timer in self._session_timers:
            timer.cancel()
        self._session_timers.clear()
        for hook in self._closed_hooks:
            try:
                hook()
            except Exception as e:
                logger.error("Error in session closed hook", error=str(e))
