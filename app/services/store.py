"""
GameStore interface
Every read, write and notification a player session needs from the platform
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any, Set

from app.schemas.game import (
    GamePhase, RoomView, PlayerView, PlayerCreate, PlayerUpdate, RoomUpdate,
    SelectionCreate, SelectionView, GuessCreate, GuessView, JoinCodeValidation,
    HostAssignment, AiTurnResult, GameHistoryCreate,
)
from app.schemas.room import RoomCreate
from app.schemas.catalog import TopicView, TopicItemView, OrganizationView
from app.schemas.realtime import ChangeType
from app.services.realtime import Subscription, ChangeHandler, BroadcastHandler


class GameStore(ABC):
    """
    Collaborator surface of the shared store.

    Single-row operations only; nothing here wraps several tables in one
    transaction except the server-side operations (reassign_host,
    kick_inactive_player) that exist precisely because a client cannot do
    them safely.
    """

    # Rooms

    @abstractmethod
    async def read_room(self, room_id: str) -> Optional[RoomView]:
        ...

    @abstractmethod
    async def find_room_by_code(self, join_code: str) -> Optional[RoomView]:
        ...

    @abstractmethod
    async def insert_room(self, room: RoomCreate) -> RoomView:
        ...

    @abstractmethod
    async def update_room(self, room_id: str, changes: RoomUpdate) -> RoomView:
        """Unconditional partial update, last write wins"""

    @abstractmethod
    async def advance_phase(self, room_id: str, expected_phase: GamePhase, changes: RoomUpdate) -> bool:
        """Apply changes only while the room is still in expected_phase; True if applied"""

    # Players

    @abstractmethod
    async def list_players(self, room_id: str) -> List[PlayerView]:
        """Players of a room ordered by joined_at"""

    @abstractmethod
    async def get_player(self, player_id: str) -> Optional[PlayerView]:
        ...

    @abstractmethod
    async def insert_player(self, player: PlayerCreate) -> PlayerView:
        ...

    @abstractmethod
    async def delete_player(self, player_id: str) -> None:
        ...

    @abstractmethod
    async def update_player(self, player_id: str, changes: PlayerUpdate) -> PlayerView:
        ...

    # Selections

    @abstractmethod
    async def insert_selection(self, selection: SelectionCreate) -> SelectionView:
        ...

    @abstractmethod
    async def list_selections(self, room_id: str, round: int) -> List[SelectionView]:
        ...

    @abstractmethod
    async def get_selection(self, room_id: str, round: int, player_id: str) -> Optional[SelectionView]:
        ...

    @abstractmethod
    async def delete_selections_for_player(self, player_id: str) -> None:
        ...

    # Guesses

    @abstractmethod
    async def insert_guess(self, guess: GuessCreate) -> GuessView:
        ...

    @abstractmethod
    async def count_guesses(self, room_id: str, round: int, vip_player_id: str) -> int:
        ...

    @abstractmethod
    async def list_guesses(self, room_id: str, round: int, vip_player_id: Optional[str] = None) -> List[GuessView]:
        ...

    @abstractmethod
    async def delete_guesses_for_player(self, player_id: str) -> None:
        """Remove guesses made by the player and guesses about the player"""

    # Realtime

    @abstractmethod
    def subscribe(
        self,
        table: str,
        filter: Optional[Dict[str, Any]],
        handler: ChangeHandler,
        events: Optional[Set[ChangeType]] = None,
    ) -> Optional[Subscription]:
        """Best-effort change notifications; may return None when push is unavailable"""

    @abstractmethod
    def subscribe_channel(self, channel: str, handler: BroadcastHandler) -> Optional[Subscription]:
        ...

    @abstractmethod
    def unsubscribe(self, subscription: Optional[Subscription]) -> None:
        ...

    @abstractmethod
    async def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        ...

    # Server-side operations

    @abstractmethod
    async def reassign_host(self, room_id: str, leaving_player_id: Optional[str]) -> Optional[HostAssignment]:
        ...

    @abstractmethod
    async def end_game_early(self, room_id: str) -> None:
        ...

    @abstractmethod
    async def kick_inactive_player(self, room_id: str, player_id: str) -> int:
        """Remove a player and their rows; returns the number of humans left"""

    @abstractmethod
    async def validate_join_code(self, join_code: str, user_id: Optional[str] = None) -> JoinCodeValidation:
        ...

    @abstractmethod
    async def invoke_ai_topic_selection(self, player_id: str, room_id: str, round: int) -> AiTurnResult:
        ...

    @abstractmethod
    async def invoke_ai_guess(self, player_id: str, room_id: str, round: int, vip_player_id: str) -> AiTurnResult:
        ...

    # Catalog

    @abstractmethod
    async def get_organization(self, organization_id: str) -> Optional[OrganizationView]:
        ...

    @abstractmethod
    async def list_topics(self, organization_id: Optional[str] = None) -> List[TopicView]:
        ...

    @abstractmethod
    async def list_topic_items(self, topic_id: str, is_custom: bool = False) -> List[TopicItemView]:
        ...

    @abstractmethod
    async def record_game_history(self, history: GameHistoryCreate) -> None:
        ...

    async def close(self) -> None:
        """Release transport resources"""
