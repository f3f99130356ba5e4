"""
Game room model
The single shared row whose game_phase drives every player session
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, Enum, ForeignKey
from app.core.database import Base
from app.schemas.game import RoomStatus, GamePhase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class GameRoom(Base):
    """Room model for game sessions"""

    __tablename__ = "game_rooms"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    join_code = Column(String(12), unique=True, nullable=False, index=True)
    host_name = Column(String(50), nullable=False, default="")

    status = Column(Enum(RoomStatus, values_callable=lambda obj: [e.value for e in obj]),
                    default=RoomStatus.WAITING, nullable=False)
    game_phase = Column(Enum(GamePhase, values_callable=lambda obj: [e.value for e in obj]),
                        default=GamePhase.WAITING, nullable=False)

    # Round bookkeeping
    current_round = Column(Integer, default=1, nullable=False)
    current_vip_id = Column(String(36), nullable=True)
    total_rounds = Column(Integer, default=3, nullable=False)
    vips_completed = Column(Integer, default=0, nullable=False)

    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<GameRoom(id={self.id}, join_code={self.join_code}, phase={self.game_phase})>"
