"""
Player model
One row per seat in a room, human or AI
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from app.core.database import Base
from app.models.room import _new_id, _utcnow


class Player(Base):
    """A seat in a game room"""

    __tablename__ = "players"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_players_room_user"),
    )

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    room_id = Column(String(36), ForeignKey("game_rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)

    # Running total, may go negative
    score = Column(Integer, default=0, nullable=False)
    is_host = Column(Boolean, default=False, nullable=False)
    is_ai = Column(Boolean, default=False, nullable=False)
    user_id = Column(String(36), nullable=True)

    joined_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    left_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Player(id={self.id}, name={self.name}, is_host={self.is_host}, is_ai={self.is_ai})>"
