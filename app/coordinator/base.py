"""
Phase coordinator base
"""

import asyncio
import logging
from typing import Optional

from app.schemas.game import GamePhase, RoomView

logger = logging.getLogger(__name__)


class PhaseCoordinator:
    """
    Logic a session runs while the room sits in one phase.

    reconcile() is the single "recompute and maybe advance" routine; the
    poll loop and realtime notifications both call it, so it must be safe to
    run any number of times, concurrently with itself.
    """

    phase: Optional[GamePhase] = None

    def __init__(self, session):
        self.session = session
        self.store = session.store
        self._transitioning = False
        self._release_handle: Optional[asyncio.TimerHandle] = None

    @property
    def room_id(self) -> str:
        return self.session.room_id

    @property
    def room(self) -> RoomView:
        return self.session.room

    @property
    def current_player(self):
        return self.session.current_player

    @property
    def notifier(self):
        return self.session.notifier

    @property
    def transitioning(self) -> bool:
        return self._transitioning

    async def enter(self) -> None:
        pass

    async def reconcile(self) -> None:
        pass

    async def exit(self) -> None:
        if self._release_handle:
            self._release_handle.cancel()
            self._release_handle = None

    def _try_lock(self, name: str) -> bool:
        if self._transitioning:
            logger.debug(f"{name} skipped, transition already in progress")
            return False
        self._transitioning = True
        return True

    def _release_lock_later(self) -> None:
        """Hold the lock a moment longer so trailing notifications do not re-trigger"""
        delay = self.session.lock_release_seconds
        if delay <= 0:
            self._transitioning = False
            return
        self._release_handle = asyncio.get_running_loop().call_later(delay, self._unlock)

    def _unlock(self) -> None:
        self._transitioning = False
        self._release_handle = None
