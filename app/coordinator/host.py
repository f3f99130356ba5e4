"""
Host authority, host migration and early termination
"""

import logging
from typing import Optional

from app.schemas.game import GamePhase, RoomStatus, RoomUpdate, PlayerView
from app.services.errors import StoreError

logger = logging.getLogger(__name__)


class HostAuthority:
    """Gates phase-advancing writes on the local player's is_host flag"""

    def __init__(self, session):
        self.session = session
        self.store = session.store

    async def is_host(self) -> bool:
        """Fresh read; the cached player list may be a poll tick behind"""
        player = self.session.current_player
        if not player:
            return False
        fresh = await self.store.get_player(player.id)
        return bool(fresh and fresh.is_host)

    async def end_game_if_abandoned(self, player_count: int, source: str, require_playing: bool = False) -> bool:
        """Finish the game when at most one player is left and this session is host"""
        if player_count > 1:
            return False
        room = self.session.room
        if room is None or room.game_phase == GamePhase.FINISHED:
            return False
        if require_playing and room.status != RoomStatus.PLAYING:
            return False
        if not await self.is_host():
            return False

        logger.info(f"[EARLY_END] Room {self.session.room_id} down to {player_count} player(s), ending ({source})")
        await self.store.end_game_early(self.session.room_id)
        self.session.notifier.error("Game Ended", "Not enough players to continue.")
        return True

    async def handle_host_departure(self, departed: PlayerView) -> None:
        """Raise the migration flag; the earliest-joined survivor asks the store to elect a host"""
        self.session.host_migrating = True
        survivors = await self.store.list_players(self.session.room_id)
        if any(p.is_host for p in survivors):
            self.session.host_migrating = False
            return

        humans = [p for p in survivors if not p.is_ai]
        elector: Optional[PlayerView] = (humans or survivors or [None])[0]
        me = self.session.current_player
        if elector is None or me is None or elector.id != me.id:
            logger.info(f"[HOST] Waiting for host migration in room {self.session.room_id}")
            return

        logger.info(f"[HOST] {me.name} requesting host reassignment after {departed.name} left")
        try:
            assignment = await self.store.reassign_host(self.session.room_id, departed.id)
        except StoreError as e:
            logger.error(f"[HOST] Host reassignment failed: {e}")
            return
        if assignment:
            logger.info(f"[HOST] New host is {assignment.new_host_name}")

    async def restart_round_without_vip(self) -> bool:
        """The VIP left mid-guessing: the host discards the round and starts the next one"""
        room = self.session.room
        if room is None or room.game_phase != GamePhase.GUESSING:
            return False
        if not await self.is_host():
            return False

        applied = await self.store.advance_phase(
            self.session.room_id,
            GamePhase.GUESSING,
            RoomUpdate(
                game_phase=GamePhase.TOPIC_SELECTION,
                current_round=room.current_round + 1,
                current_vip_id=None,
                vips_completed=0,
            ),
        )
        if applied:
            logger.info(f"[HOST] VIP left, starting round {room.current_round + 1}")
        return applied
