"""
Timer abstraction - every poll, loop tick, maintenance interval and cooldown goes through here

Callbacks may be plain functions or coroutine functions. A failing callback is
logged and never stops a repeating timer.
"""
import asyncio
import inspect
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Set

from .logging_config import get_logger

logger = get_logger(__name__)


class Timer:
    """Handle to a scheduled callback"""

    def __init__(self, name: Optional[str] = None, interval: Optional[float] = None):
        self.name = name
        self.interval = interval
        self.cancelled = False
        self._handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def __repr__(self) -> str:
        return f"Timer(name={self.name!r}, interval={self.interval}, cancelled={self.cancelled})"


def callback_name(callback: Callable) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


_background_tasks: Set[asyncio.Task] = set()


def run_detached(result: Any, name: Optional[str] = None) -> Optional[asyncio.Task]:
    """Turn an awaitable into a tracked task whose failure is logged, pass anything else through"""
    if not inspect.isawaitable(result):
        return None

    task = asyncio.ensure_future(result)
    _background_tasks.add(task)

    def done(t: asyncio.Task) -> None:
        _background_tasks.discard(t)
        if t.cancelled():
            return
        error = t.exception()
        if error is not None:
            logger.error("Background task failed", task=name, error=str(error), exc_info=error)

    task.add_done_callback(done)
    return task


class Scheduler(ABC):
    """Fire-and-continue scheduled callbacks"""

    @abstractmethod
    def time(self) -> float:
        """Monotonic clock in seconds"""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any], name: Optional[str] = None) -> Timer:
        """Run callback once after delay seconds"""

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], Any], name: Optional[str] = None) -> Timer:
        """Run callback every interval seconds until the timer is cancelled"""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], Any], name: Optional[str] = None) -> Timer:
        timer = Timer(name or callback_name(callback))

        def fire():
            timer._handle = None
            if not timer.cancelled:
                self._invoke(timer, callback)

        timer._handle = self.loop.call_later(max(delay, 0.0), fire)
        return timer

    def call_every(self, interval: float, callback: Callable[[], Any], name: Optional[str] = None) -> Timer:
        timer = Timer(name or callback_name(callback), interval=interval)

        def fire():
            if timer.cancelled:
                return
            # Re-arm first so a slow callback does not delay the next firing
            timer._handle = self.loop.call_later(interval, fire)
            self._invoke(timer, callback)

        timer._handle = self.loop.call_later(interval, fire)
        return timer

    def _invoke(self, timer: Timer, callback: Callable[[], Any]) -> None:
        try:
            result = callback()
        except Exception as e:
            logger.error("Timer callback failed", timer=timer.name, error=str(e), exc_info=True)
            return

        run_detached(result, timer.name)

    async def shutdown(self) -> None:
        """Cancel in-flight callback tasks"""
        tasks = list(_background_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
