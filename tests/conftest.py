"""
Pytest configuration and fixtures
"""

import asyncio
import random
from typing import List

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine

from app.api.deps import get_store
from app.coordinator.session import GameSession
from app.core.database import DatabaseManager
from app.main import app
from app.models.catalog import Topic, TopicItem
from app.schemas.game import PlayerView, RoomView
from app.services.database_store import DatabaseGameStore
from app.services.realtime import RealtimeHub


@pytest.fixture
async def db(tmp_path):
    """
    A fresh file-backed SQLite database per test.

    A file rather than :memory: so that racing sessions each get their own
    connection and real transactions.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'knowsy.db'}",
        connect_args={"check_same_thread": False},
        echo=False,
    )
    manager = DatabaseManager()
    await manager.initialize(engine=engine)
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
async def hub():
    hub = RealtimeHub(redis_fanout=False)
    yield hub
    await hub.close()


@pytest.fixture
async def store(db, hub):
    return DatabaseGameStore(db, hub)


@pytest.fixture
async def topic(db):
    """A catalog topic with six items; returns its id"""
    async with db.get_session() as session:
        row = Topic(name="Pizza Toppings", description="What goes on top")
        session.add(row)
        await session.flush()
        for index, name in enumerate(["Cheese", "Basil", "Olives", "Ham", "Onion", "Pineapple"]):
            session.add(TopicItem(topic_id=row.id, name=name, sort_order=index))
        topic_id = row.id
    return topic_id


@pytest.fixture
async def client(store):
    """API client whose endpoints run against the test store"""
    app.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def open_session(store):
    """
    Factory for started GameSessions

    Polling is slowed right down so tests drive progress through realtime
    notifications; the transition lock releases immediately.
    """
    sessions: List[GameSession] = []

    async def _open(room: RoomView, player: PlayerView, **kwargs) -> GameSession:
        kwargs.setdefault("poll_interval", 3600)
        kwargs.setdefault("lock_release_seconds", 0)
        kwargs.setdefault("rng", random.Random(7))
        session = GameSession(
            kwargs.pop("store", store), room.id, user_id=player.user_id, player_name=player.name, **kwargs
        )
        await session.start()
        sessions.append(session)
        return session

    yield _open

    for session in sessions:
        await session.ai.wait()
        await session.stop()


@pytest.fixture
def settle(hub):
    """Run realtime handlers and AI turns until nothing is left in flight"""

    async def _settle(*sessions: GameSession) -> None:
        for _ in range(20):
            await hub.drain()
            for session in sessions:
                await session.ai.wait()
            await asyncio.sleep(0)
            if not hub._pending and not any(s.ai._tasks for s in sessions):
                return

    return _settle
