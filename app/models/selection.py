"""
Player selection model
A player's ranked five items for one round
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, ForeignKey, UniqueConstraint
from app.core.database import Base
from app.models.room import _new_id, _utcnow


class PlayerSelection(Base):
    """Inserted once per player per round, never updated"""

    __tablename__ = "player_selections"
    __table_args__ = (
        UniqueConstraint("player_id", "room_id", "round", name="uq_selection_player_round"),
    )

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    player_id = Column(String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    room_id = Column(String(36), ForeignKey("game_rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    round = Column(Integer, nullable=False)
    topic_id = Column(String(36), nullable=False)

    # Tagged items, rank 1 first
    ordered_items = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f"<PlayerSelection(player_id={self.player_id}, round={self.round})>"
