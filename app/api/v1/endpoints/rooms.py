"""
Room API endpoints
Room rows, the conditional phase advance and the room-scoped server operations
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_store, store_errors
from app.schemas.common import AdvanceResponse, CountResponse, KickResponse
from app.schemas.game import (
    RoomView, RoomUpdate, PhaseAdvance, PlayerView, SelectionView, GuessView,
    JoinCodeValidation, HostAssignment,
)
from app.schemas.room import RoomCreate, ReassignHostRequest
from app.services.store import GameStore

router = APIRouter()


@router.post("", response_model=RoomView, status_code=status.HTTP_201_CREATED)
async def create_room(room_data: RoomCreate, store: GameStore = Depends(get_store)):
    """
    Create a room

    - **join_code**: unique code players type to join
    - **host_name**: display name of the creator
    - **total_rounds**: rounds before the game finishes
    """
    with store_errors("Create room"):
        return await store.insert_room(room_data)


@router.get("/by-code/{join_code}", response_model=RoomView)
async def get_room_by_code(join_code: str, store: GameStore = Depends(get_store)):
    with store_errors("Room lookup"):
        room = await store.find_room_by_code(join_code)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.get("/validate/{join_code}", response_model=JoinCodeValidation)
async def validate_join_code(join_code: str, user_id: Optional[str] = None, store: GameStore = Depends(get_store)):
    """Whether a join code names a room, how full it is and whether the user is already seated"""
    with store_errors("Join code validation"):
        return await store.validate_join_code(join_code, user_id)


@router.get("/{room_id}", response_model=RoomView)
async def get_room(room_id: str, store: GameStore = Depends(get_store)):
    with store_errors("Room lookup"):
        room = await store.read_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.patch("/{room_id}", response_model=RoomView)
async def update_room(room_id: str, changes: RoomUpdate, store: GameStore = Depends(get_store)):
    with store_errors("Update room"):
        return await store.update_room(room_id, changes)


@router.post("/{room_id}/advance", response_model=AdvanceResponse)
async def advance_phase(room_id: str, request: PhaseAdvance, store: GameStore = Depends(get_store)):
    """
    Apply changes only while the room is still in expected_phase

    Exactly one of several racing callers sees applied=true.
    """
    with store_errors("Phase advance"):
        applied = await store.advance_phase(room_id, request.expected_phase, request.changes)
    return AdvanceResponse(applied=applied)


@router.get("/{room_id}/players", response_model=List[PlayerView])
async def list_players(room_id: str, store: GameStore = Depends(get_store)):
    with store_errors("List players"):
        return await store.list_players(room_id)


@router.get("/{room_id}/selections", response_model=List[SelectionView])
async def list_selections(room_id: str, round: int, store: GameStore = Depends(get_store)):
    with store_errors("List selections"):
        return await store.list_selections(room_id, round)


@router.get("/{room_id}/selections/{player_id}", response_model=SelectionView)
async def get_selection(room_id: str, player_id: str, round: int, store: GameStore = Depends(get_store)):
    with store_errors("Selection lookup"):
        selection = await store.get_selection(room_id, round, player_id)
    if not selection:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Selection not found")
    return selection


@router.get("/{room_id}/guesses/count", response_model=CountResponse)
async def count_guesses(room_id: str, round: int, vip_player_id: str, store: GameStore = Depends(get_store)):
    with store_errors("Count guesses"):
        count = await store.count_guesses(room_id, round, vip_player_id)
    return CountResponse(count=count)


@router.get("/{room_id}/guesses", response_model=List[GuessView])
async def list_guesses(
    room_id: str,
    round: int,
    vip_player_id: Optional[str] = None,
    store: GameStore = Depends(get_store),
):
    with store_errors("List guesses"):
        return await store.list_guesses(room_id, round, vip_player_id)


@router.post("/{room_id}/reassign-host", response_model=Optional[HostAssignment])
async def reassign_host(room_id: str, request: ReassignHostRequest, store: GameStore = Depends(get_store)):
    """Elect the earliest-joined remaining human as host; null when nobody is left"""
    with store_errors("Host reassignment"):
        return await store.reassign_host(room_id, request.leaving_player_id)


@router.post("/{room_id}/end-early", status_code=status.HTTP_204_NO_CONTENT)
async def end_game_early(room_id: str, store: GameStore = Depends(get_store)):
    with store_errors("End game"):
        await store.end_game_early(room_id)


@router.post("/{room_id}/players/{player_id}/kick", response_model=KickResponse)
async def kick_inactive_player(room_id: str, player_id: str, store: GameStore = Depends(get_store)):
    """Remove a player who ran out of time, handing off host if needed"""
    with store_errors("Kick player"):
        remaining = await store.kick_inactive_player(room_id, player_id)
    return KickResponse(remaining_count=remaining)
