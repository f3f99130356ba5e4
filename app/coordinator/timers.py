"""
Per-player phase countdowns
"""

import asyncio
import logging
from typing import Callable, Awaitable, Optional

logger = logging.getLogger(__name__)


class Countdown:
    """
    One-second countdown that fires on_expire once when it reaches zero.

    The warning flag turns on once remaining <= warning_seconds.
    """

    def __init__(
        self,
        seconds: int,
        warning_seconds: int,
        on_expire: Callable[[], Awaitable[None]],
        tick: float = 1.0,
    ):
        self.remaining = seconds
        self.warning_seconds = warning_seconds
        self.on_expire = on_expire
        self.tick = tick
        self.expired = False
        self._task: Optional[asyncio.Task] = None

    @property
    def warning(self) -> bool:
        return 0 < self.remaining <= self.warning_seconds

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    def cancel(self) -> None:
        # Once expired the handler runs to completion, even if it tears the countdown down itself
        if self._task and not self._task.done() and not self.expired:
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.tick)
            self.remaining -= 1
        self.expired = True
        try:
            await self.on_expire()
        except Exception as e:
            logger.error(f"Countdown expiry handler failed: {e}")
