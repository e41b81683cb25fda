"""
Presence Monitor - decides from server pings and in-session player lists whether anyone real is online

Both triggers (the scheduled status ping and the in-session membership poll)
feed one decision function and one RetryCounter.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from mcstatus import JavaServer

from .errors import ExhaustedRetries, ServerOffline, TransportError
from .logging_config import get_logger
from .scheduler import Scheduler, Timer

if TYPE_CHECKING:
    from .config import BotConfig
    from .supervisor import ConnectionSupervisor

logger = get_logger(__name__)


class PresenceSource(Enum):
    PING = "ping"
    MEMBERSHIP_POLL = "membership-poll"


@dataclass(frozen=True)
class PresenceReading:
    online_real_player_count: int
    source: PresenceSource
    timestamp: float = field(default_factory=time.time)


class RetryCounter:
    """Consecutive empty readings, saturating at the limit"""

    def __init__(self, limit: int):
        self.limit = limit
        self.value = 0

    def increment(self) -> int:
        self.value = min(self.value + 1, self.limit)
        return self.value

    def reset(self) -> None:
        self.value = 0

    @property
    def exhausted(self) -> bool:
        return self.value >= self.limit

    def __repr__(self) -> str:
        return f"RetryCounter({self.value}/{self.limit})"


def _is_connection_refused(error: BaseException) -> bool:
    if isinstance(error, ConnectionRefusedError):
        return True
    # Multi-address connects report every failed attempt
    nested = getattr(error, "exceptions", None) or getattr(error, "errors", None) or ()
    return any(isinstance(e, ConnectionRefusedError) for e in nested)


class StatusClient:
    """Server-status collaborator backed by mcstatus"""

    def __init__(self, host: str, port: int, timeout: float = 3.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    async def query_status(self) -> int:
        """Return the number of players the server reports online

        Raises:
            ServerOffline: the server refused the connection
            TransportError: any other failure to complete the query
        """
        server = JavaServer(self.host, self.port, timeout=self.timeout)
        try:
            status = await server.async_status()
        except Exception as e:
            if _is_connection_refused(e):
                raise ServerOffline(f"{self.host}:{self.port} refused the connection") from e
            raise TransportError(f"Status query to {self.host}:{self.port} failed: {e}") from e
        return int(status.players.online)


class PresenceMonitor:
    """Owns the RetryCounter and the retry cooldown"""

    def __init__(self, status_client: StatusClient, scheduler: Scheduler, config: "BotConfig"):
        self.status_client = status_client
        self.scheduler = scheduler
        self.config = config
        self.retry_counter = RetryCounter(config.max_retries)
        self.supervisor: Optional["ConnectionSupervisor"] = None
        self._ping_timer: Optional[Timer] = None
        self._cooldown_timer: Optional[Timer] = None

    def attach(self, supervisor: "ConnectionSupervisor") -> None:
        self.supervisor = supervisor

    @property
    def cooldown_armed(self) -> bool:
        return self._cooldown_timer is not None

    def start(self) -> None:
        """Ping right away, then on a fixed interval regardless of session state"""
        if self._ping_timer is not None:
            return
        self.scheduler.call_later(0, self.poll_and_decide, name="presence-ping-initial")
        self._ping_timer = self.scheduler.call_every(
            self.config.ping_interval, self.poll_and_decide, name="presence-ping"
        )
        logger.info("Presence monitor started", interval=self.config.ping_interval)

    def stop(self) -> None:
        if self._ping_timer is not None:
            self._ping_timer.cancel()
            self._ping_timer = None
        if self._cooldown_timer is not None:
            self._cooldown_timer.cancel()
            self._cooldown_timer = None

    def start_membership_checks(self) -> Timer:
        """In-session player list poll; the caller owns the returned timer"""
        return self.scheduler.call_every(
            self.config.membership_interval, self.check_membership, name="presence-membership"
        )

    async def poll(self) -> PresenceReading:
        online = await self.status_client.query_status()
        return PresenceReading(online_real_player_count=online, source=PresenceSource.PING)

    async def poll_and_decide(self) -> Optional[PresenceReading]:
        try:
            reading = await self.poll()
        except ServerOffline:
            logger.info("Server offline (connection refused), ignoring")
            return None
        except TransportError as e:
            logger.error("Unexpected error pinging server", error=str(e))
            return None

        logger.debug("Server online", players=reading.online_real_player_count)
        await self.record(reading)
        return reading

    async def check_membership(self) -> Optional[PresenceReading]:
        session = self.supervisor.session if self.supervisor else None
        if session is None:
            return None

        players = await session.players()
        real_players = sorted(name for name in players if name != session.username)
        logger.info("Membership check", count=len(real_players), players=real_players)

        reading = PresenceReading(online_real_player_count=len(real_players), source=PresenceSource.MEMBERSHIP_POLL)
        await self.record(reading)
        return reading

    async def record(self, reading: PresenceReading) -> None:
        """Single decision function for every presence trigger"""
        if reading.online_real_player_count > 0:
            self.retry_counter.reset()
            logger.info(
                "Real players online",
                count=reading.online_real_player_count,
                source=reading.source.value,
            )
            if reading.source is PresenceSource.PING and self.supervisor and not self.supervisor.is_live:
                await self.supervisor.start()
            return

        try:
            self._count_empty(reading)
        except ExhaustedRetries as e:
            logger.warning("Max retries reached, stopping bot if running", reason=str(e), source=reading.source.value)
            if self.supervisor and self.supervisor.has_session:
                await self.supervisor.stop("No players online.")
            self.arm_cooldown()

    def _count_empty(self, reading: PresenceReading) -> None:
        attempt = self.retry_counter.increment()
        logger.info(
            "No real players online",
            attempt=attempt,
            max_retries=self.retry_counter.limit,
            source=reading.source.value,
        )
        if self.retry_counter.exhausted:
            raise ExhaustedRetries(f"No real players after {attempt} readings")

    def arm_cooldown(self) -> None:
        """Reset the retry counter after the cooldown; re-arming while armed is a no-op"""
        if self._cooldown_timer is not None:
            return
        logger.info("Cooldown started", seconds=self.config.retry_cooldown)
        self._cooldown_timer = self.scheduler.call_later(
            self.config.retry_cooldown, self._end_cooldown, name="presence-cooldown"
        )
        if self.supervisor:
            self.supervisor.enter_cooldown()

    def _end_cooldown(self) -> None:
        self._cooldown_timer = None
        self.retry_counter.reset()
        logger.info("Retry cooldown ended, bot is allowed to reconnect")
        if self.supervisor:
            self.supervisor.leave_cooldown()
