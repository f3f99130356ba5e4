"""
Game Pydantic schemas
Phase enums, row views and submission payloads for the coordination protocol
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum

from app.schemas.item import SelectionItem


class RoomStatus(str, Enum):
    """Room status enumeration"""
    WAITING = "waiting"
    PLAYING = "playing"


class GamePhase(str, Enum):
    """Game phase enumeration"""
    WAITING = "waiting"
    TOPIC_SELECTION = "topic_selection"
    GUESSING = "guessing"
    SCORING = "scoring"
    FINISHED = "finished"


class RoomView(BaseModel):
    """A game room row"""
    id: str
    join_code: str
    host_name: str = ""
    status: RoomStatus = RoomStatus.WAITING
    game_phase: GamePhase = GamePhase.WAITING
    current_round: int = 1
    current_vip_id: Optional[str] = None
    total_rounds: int = 3
    vips_completed: int = 0
    organization_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlayerView(BaseModel):
    """A player row"""
    id: str
    room_id: str
    name: str
    score: int = 0
    is_host: bool = False
    is_ai: bool = False
    user_id: Optional[str] = None
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlayerCreate(BaseModel):
    """Player insert payload"""
    room_id: str
    name: str = Field(..., min_length=1, max_length=50)
    is_host: bool = False
    is_ai: bool = False
    user_id: Optional[str] = None
    score: int = 0

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Player name cannot be empty")
        return v


class PlayerUpdate(BaseModel):
    """Partial player update"""
    name: Optional[str] = None
    score: Optional[int] = None
    is_host: Optional[bool] = None
    left_at: Optional[datetime] = None


class RoomUpdate(BaseModel):
    """Partial room update (last write wins)"""
    status: Optional[RoomStatus] = None
    game_phase: Optional[GamePhase] = None
    current_round: Optional[int] = None
    current_vip_id: Optional[str] = None
    total_rounds: Optional[int] = None
    vips_completed: Optional[int] = None


class PhaseAdvance(BaseModel):
    """Conditional room update applied only while the room is still in expected_phase"""
    expected_phase: GamePhase
    changes: RoomUpdate


class SelectionCreate(BaseModel):
    """A player's ranked list for one round"""
    player_id: str
    room_id: str
    round: int = Field(..., ge=1)
    topic_id: str
    ordered_items: List[SelectionItem]


class SelectionView(BaseModel):
    """A stored selection row"""
    id: str
    player_id: str
    room_id: str
    round: int
    topic_id: str
    ordered_items: List[SelectionItem]
    created_at: Optional[datetime] = None

    @property
    def item_ids(self) -> List[str]:
        return [item.id for item in self.ordered_items]

    class Config:
        from_attributes = True


class GuessCreate(BaseModel):
    """A guessed ordering of the VIP's items"""
    player_id: str
    room_id: str
    round: int = Field(..., ge=1)
    vip_player_id: str
    guessed_order: List[str]
    score: int


class GuessView(BaseModel):
    """A stored guess row"""
    id: str
    player_id: str
    room_id: str
    round: int
    vip_player_id: str
    guessed_order: List[str]
    score: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JoinCodeValidation(BaseModel):
    """Result of validate_join_code"""
    room_exists: bool
    room_id: Optional[str] = None
    player_count: int = 0
    room_status: Optional[RoomStatus] = None
    user_already_joined: bool = False


class HostAssignment(BaseModel):
    """Result of reassign_host"""
    new_host_id: str
    new_host_name: str


class AiTopicSelectionRequest(BaseModel):
    """Trigger an AI player's topic selection"""
    playerId: str
    roomId: str
    round: int


class AiGuessRequest(BaseModel):
    """Trigger an AI player's guess"""
    playerId: str
    roomId: str
    round: int
    vipPlayerId: str


class AiTurnResult(BaseModel):
    """Outcome of an AI-player turn"""
    success: bool = True
    score: int = 0
    message: str = ""


class RoundResult(BaseModel):
    """One line of the scoring table"""
    player_id: str
    player_name: str
    score: int
    guessed_order: List[str] = Field(default_factory=list)
    is_vip: bool = False


class GameHistoryCreate(BaseModel):
    """A finished game summary"""
    join_code: str
    host_name: str
    winner_name: str
    total_rounds: int
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
