"""
Game history model
"""

from sqlalchemy import Column, String, Integer, DateTime
from app.core.database import Base
from app.models.room import _new_id, _utcnow


class GameHistory(Base):
    """Summary row written when a game finishes normally"""

    __tablename__ = "game_history"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    join_code = Column(String(12), nullable=False, index=True)
    host_name = Column(String(50), nullable=False)
    winner_name = Column(String(50), nullable=False)
    total_rounds = Column(Integer, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), default=_utcnow)
