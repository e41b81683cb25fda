"""
Console surface: say <text>, pos, quit, anything else goes to chat
"""
import asyncio
import threading
from typing import Awaitable, Callable, Optional

from .bridge.session import GameSession
from .logging_config import get_logger

logger = get_logger(__name__)


class Console:
    """Reads stdin on a daemon thread and runs each line on the event loop"""

    def __init__(
        self,
        session_provider: Callable[[], Optional[GameSession]],
        on_quit: Callable[[], Awaitable[None]],
        prompt: str = "> ",
    ):
        self.session_provider = session_provider
        self.on_quit = on_quit
        self.prompt = prompt
        self._thread: Optional[threading.Thread] = None

    async def handle_line(self, line: str) -> Optional[str]:
        """Run one console line

        Returns:
            The console command that was handled, None for a blank line
        """
        line = line.strip()
        if not line:
            return None

        session = self.session_provider()
        if session is None:
            print("⛔ Bot not ready.")
            return "not-ready"

        command, _, rest = line.partition(" ")
        command = command.lower()

        if command == "say":
            await session.chat(rest.strip())
        elif command == "pos":
            print(f"📍 Position: {await session.entity_position()}")
        elif command == "quit":
            print("👋 Quitting bot...")
            await self.on_quit()
        else:
            command = "chat"
            await session.chat(line)
        return command

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> threading.Thread:
        loop = loop or asyncio.get_running_loop()

        def read_input():
            """Read input in a separate thread"""
            while True:
                try:
                    line = input(self.prompt)
                except EOFError:
                    break
                future = asyncio.run_coroutine_threadsafe(self.handle_line(line), loop)
                future.add_done_callback(self._report)

        self._thread = threading.Thread(target=read_input, name="console-input", daemon=True)
        self._thread.start()
        logger.info("Console ready")
        return self._thread

    @staticmethod
    def _report(future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Console command failed", error=str(error))
