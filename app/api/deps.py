"""
API dependencies
"""

from contextlib import contextmanager

from fastapi import HTTPException, status

from app.core.database import db_manager
from app.services.database_store import DatabaseGameStore
from app.services.errors import StoreError
from app.services.realtime import realtime_hub, RealtimeHub
from app.services.store import GameStore


def get_hub() -> RealtimeHub:
    return realtime_hub


async def get_store() -> GameStore:
    """Store bound to the application database and hub"""
    return DatabaseGameStore(db_manager, realtime_hub)


@contextmanager
def store_errors(action: str):
    """Translate store errors into HTTP errors"""
    try:
        yield
    except StoreError as e:
        raise HTTPException(
            status_code=e.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message if e.status_code else f"{action} failed: {e.message}",
        )
