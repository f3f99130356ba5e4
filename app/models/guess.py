"""
Player guess model
A non-VIP player's guess at the VIP's order
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, ForeignKey, UniqueConstraint
from app.core.database import Base
from app.models.room import _new_id, _utcnow


class PlayerGuess(Base):
    """The unique constraint is what keeps a score from being added twice"""

    __tablename__ = "player_guesses"
    __table_args__ = (
        UniqueConstraint("player_id", "room_id", "round", "vip_player_id", name="uq_guess_player_round_vip"),
    )

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    player_id = Column(String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    room_id = Column(String(36), ForeignKey("game_rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    round = Column(Integer, nullable=False)
    vip_player_id = Column(String(36), nullable=False, index=True)

    guessed_order = Column(JSON, nullable=False, default=list)
    score = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return f"<PlayerGuess(player_id={self.player_id}, vip={self.vip_player_id}, score={self.score})>"
