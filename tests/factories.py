"""
Row factories and small async helpers shared by the tests
"""

import asyncio
from typing import List, Optional

from app.coordinator.session import GameSession
from app.schemas.game import (
    GamePhase, RoomStatus, RoomUpdate, PlayerCreate, PlayerView, RoomView, SelectionCreate,
)
from app.schemas.item import CatalogItem
from app.schemas.room import RoomCreate


def make_items(prefix: str = "item", count: int = 5) -> List[CatalogItem]:
    return [CatalogItem(id=f"{prefix}-{i}", name=f"{prefix.title()} {i}") for i in range(1, count + 1)]


async def make_room(
    store,
    phase: GamePhase = GamePhase.WAITING,
    current_round: int = 1,
    total_rounds: int = 3,
    current_vip_id: Optional[str] = None,
    join_code: str = "KNOWSY",
) -> RoomView:
    room = await store.insert_room(RoomCreate(join_code=join_code, host_name="Hana", total_rounds=total_rounds))
    if phase != GamePhase.WAITING:
        room = await store.update_room(room.id, RoomUpdate(
            status=RoomStatus.PLAYING, game_phase=phase, current_round=current_round,
        ))
    return room


async def set_phase(store, room: RoomView, phase: GamePhase, **changes) -> RoomView:
    return await store.update_room(room.id, RoomUpdate(game_phase=phase, **changes))


async def seat(
    store,
    room: RoomView,
    name: str,
    is_host: bool = False,
    is_ai: bool = False,
    user_id: Optional[str] = None,
) -> PlayerView:
    if user_id is None and not is_ai:
        user_id = f"user-{name.lower()}"
    return await store.insert_player(PlayerCreate(
        room_id=room.id, name=name, is_host=is_host, is_ai=is_ai, user_id=user_id,
    ))


async def submit_selection(store, room: RoomView, player: PlayerView, round: int = 1):
    return await store.insert_selection(SelectionCreate(
        player_id=player.id,
        room_id=room.id,
        round=round,
        topic_id="topic-1",
        ordered_items=make_items(player.name.lower()),
    ))


async def wait_for(predicate, timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Poll a plain or async predicate until it holds"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        result = predicate()
        if asyncio.iscoroutine(result):
            result = await result
        if result:
            return True
        if loop.time() > deadline:
            return False
        await asyncio.sleep(interval)


async def loaded_session(store, room: RoomView, player: PlayerView, **kwargs) -> GameSession:
    """A session with rows loaded but no subscriptions, poll loop or coordinator"""
    kwargs.setdefault("lock_release_seconds", 0)
    session = GameSession(store, room.id, user_id=player.user_id, player_name=player.name, **kwargs)
    session.active = True
    await session.load()
    return session
