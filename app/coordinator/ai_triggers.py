"""
AI turn triggers
Fire each AI seat's server-side turn once per phase entry
"""

import asyncio
import logging
from typing import Optional, Set

from app.schemas.game import GamePhase
from app.services.errors import StoreError

logger = logging.getLogger(__name__)


class AiTurnTrigger:
    """
    Fire-and-forget AI turns, de-duplicated by a handled key per phase entry.

    The server side is idempotent too, so two sessions firing the same turn
    is harmless.
    """

    def __init__(self, session):
        self.session = session
        self.topic_handled: Optional[str] = None
        self.guess_handled: Optional[str] = None
        self._tasks: Set[asyncio.Task] = set()

    async def trigger(self) -> None:
        room = self.session.room
        if room is None:
            return
        ai_players = [p for p in self.session.players if p.is_ai]

        if room.game_phase == GamePhase.TOPIC_SELECTION:
            key = f"topic_selection-{room.current_round}"
            if self.topic_handled == key:
                return
            self.topic_handled = key
            for player in ai_players:
                self._fire(
                    self.session.store.invoke_ai_topic_selection(player.id, room.id, room.current_round),
                    f"topic selection for {player.name}",
                )

        elif room.game_phase == GamePhase.GUESSING and room.current_vip_id:
            key = f"guessing-{room.current_vip_id}-{room.current_round}"
            if self.guess_handled == key:
                return
            self.guess_handled = key
            for player in ai_players:
                if player.id == room.current_vip_id:
                    continue
                self._fire(
                    self.session.store.invoke_ai_guess(player.id, room.id, room.current_round, room.current_vip_id),
                    f"guess for {player.name}",
                )

    async def wait(self) -> None:
        """Wait for AI turns already in flight"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _fire(self, coro, label: str) -> None:
        task = asyncio.create_task(self._run(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, coro, label: str) -> None:
        try:
            result = await coro
            logger.info(f"[AI] {label}: {result.message or 'done'}")
        except StoreError as e:
            logger.error(f"[AI] Error handling AI {label}: {e}")
