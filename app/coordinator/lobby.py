"""
Lobby operations
Creating, joining and leaving rooms, seating AI players and starting the game
"""

import random
import string
import logging
from typing import Optional, Tuple

from app.core.config import settings
from app.schemas.game import (
    GamePhase, RoomStatus, RoomView, PlayerView, PlayerCreate, PlayerUpdate, RoomUpdate,
)
from app.schemas.room import RoomCreate
from app.services.ai_player import next_ai_name
from app.services.errors import StoreError, DuplicateRowError, RowNotFoundError
from app.coordinator.notifier import Notifier

logger = logging.getLogger(__name__)

# No 0/O or 1/I
JOIN_CODE_ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1I")
MIN_PLAYERS_TO_START = 2


def generate_join_code(rng: Optional[random.Random] = None, length: Optional[int] = None) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(JOIN_CODE_ALPHABET) for _ in range(length or settings.JOIN_CODE_LENGTH))


class Lobby:
    """Room membership operations; failures become notices and a falsy result"""

    def __init__(self, store, notifier: Optional[Notifier] = None, rng: Optional[random.Random] = None):
        self.store = store
        self.notifier = notifier or Notifier()
        self.rng = rng or random.Random()

    async def create_room(
        self,
        host_name: str,
        user_id: Optional[str],
        organization_id: Optional[str] = None,
        total_rounds: Optional[int] = None,
    ) -> Optional[Tuple[RoomView, PlayerView]]:
        """Create a room with a fresh join code and seat the creator as host"""
        host_name = host_name.strip()
        if not host_name:
            self.notifier.error("Error creating room", "Enter your name first.")
            return None

        try:
            room = None
            for _ in range(5):
                try:
                    room = await self.store.insert_room(RoomCreate(
                        join_code=generate_join_code(self.rng),
                        host_name=host_name,
                        total_rounds=total_rounds or settings.DEFAULT_TOTAL_ROUNDS,
                        organization_id=organization_id,
                    ))
                    break
                except DuplicateRowError:
                    continue
            if room is None:
                raise StoreError("Could not allocate a join code")

            host = await self.store.insert_player(PlayerCreate(
                room_id=room.id, name=host_name, is_host=True, user_id=user_id,
            ))
        except StoreError as e:
            self.notifier.error("Error creating room", e.message)
            return None

        logger.info(f"[LOBBY] {host_name} created room {room.join_code}")
        return room, host

    async def join_room(self, join_code: str, player_name: str, user_id: Optional[str]) -> Optional[RoomView]:
        """Join a waiting room with space; joining a room already joined is a no-op"""
        player_name = player_name.strip()
        join_code = join_code.strip().upper()
        try:
            validation = await self.store.validate_join_code(join_code, user_id)
            if not validation.room_exists:
                self.notifier.error("Error joining room", "Room not found.")
                return None

            room = await self.store.read_room(validation.room_id)
            if validation.user_already_joined:
                return room
            if validation.room_status != RoomStatus.WAITING:
                self.notifier.error("Error joining room", "This game has already started.")
                return None
            if validation.player_count >= settings.MAX_PLAYERS_PER_ROOM:
                self.notifier.error("Error joining room", "This room is full.")
                return None

            try:
                await self.store.insert_player(PlayerCreate(
                    room_id=validation.room_id, name=player_name, user_id=user_id,
                ))
            except DuplicateRowError:
                return room
        except (StoreError, ValueError) as e:
            self.notifier.error("Error joining room", str(e))
            return None

        logger.info(f"[LOBBY] {player_name} joined room {join_code}")
        return room

    async def add_ai_player(self, room_id: str) -> Optional[PlayerView]:
        try:
            players = await self.store.list_players(room_id)
            if len(players) >= settings.MAX_PLAYERS_PER_ROOM:
                raise StoreError(f"Room is full (maximum {settings.MAX_PLAYERS_PER_ROOM} players)")
            if sum(1 for p in players if p.is_ai) >= settings.MAX_AI_PLAYERS:
                raise StoreError(f"Maximum {settings.MAX_AI_PLAYERS} AI players allowed")

            name = next_ai_name([p.name for p in players])
            if name is None:
                raise StoreError("All AI player slots are taken")

            player = await self.store.insert_player(PlayerCreate(room_id=room_id, name=name, is_ai=True))
        except StoreError as e:
            self.notifier.error("Error adding AI player", e.message)
            return None

        self.notifier.info("AI player added", f"{player.name} joined the game")
        return player

    async def remove_ai_player(self, player_id: str) -> bool:
        try:
            player = await self.store.get_player(player_id)
            if not player or not player.is_ai:
                raise RowNotFoundError("AI player not found")
            await self.store.delete_player(player_id)
        except StoreError as e:
            self.notifier.error("Error removing AI player", e.message)
            return False

        self.notifier.info("AI player removed", f"{player.name} left the game")
        return True

    async def start_game(self, room_id: str, player_id: str) -> bool:
        """Host only: zero every score and open round one"""
        try:
            player = await self.store.get_player(player_id)
            if not player or not player.is_host:
                self.notifier.error("Error starting game", "Only the host can start the game.")
                return False

            players = await self.store.list_players(room_id)
            if len(players) < MIN_PLAYERS_TO_START:
                self.notifier.error("Error starting game", "At least two players are needed.")
                return False

            for p in players:
                if p.score != 0:
                    await self.store.update_player(p.id, PlayerUpdate(score=0))

            started = await self.store.advance_phase(room_id, GamePhase.WAITING, RoomUpdate(
                status=RoomStatus.PLAYING,
                game_phase=GamePhase.TOPIC_SELECTION,
                current_round=1,
            ))
        except StoreError as e:
            self.notifier.error("Error starting game", e.message)
            return False

        if started:
            logger.info(f"[LOBBY] Game started in room {room_id}")
            self.notifier.info("Game started", "Pick a topic and rank your favorites.")
        return started

    async def leave_room(self, player: PlayerView) -> None:
        """Hand off host first, then remove the player's guesses, selections and row"""
        if player.is_host:
            try:
                await self.store.reassign_host(player.room_id, player.id)
            except StoreError as e:
                logger.error(f"[LOBBY] Error reassigning host: {e}")

        for label, step in (
            ("guesses", self.store.delete_guesses_for_player),
            ("selections", self.store.delete_selections_for_player),
            ("player record", self.store.delete_player),
        ):
            try:
                await step(player.id)
            except StoreError as e:
                logger.error(f"[LOBBY] Error deleting {label} for {player.id}: {e}")

        self.notifier.info("Left room", "You have left the game.")
