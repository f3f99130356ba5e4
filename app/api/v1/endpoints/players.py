"""
Player API endpoints
Player rows plus the per-player cleanup used when someone leaves
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_store, store_errors
from app.schemas.game import PlayerView, PlayerCreate, PlayerUpdate
from app.services.store import GameStore

router = APIRouter()


@router.post("", response_model=PlayerView, status_code=status.HTTP_201_CREATED)
async def create_player(player: PlayerCreate, store: GameStore = Depends(get_store)):
    with store_errors("Add player"):
        return await store.insert_player(player)


@router.get("/{player_id}", response_model=PlayerView)
async def get_player(player_id: str, store: GameStore = Depends(get_store)):
    with store_errors("Player lookup"):
        player = await store.get_player(player_id)
    if not player:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not found")
    return player


@router.patch("/{player_id}", response_model=PlayerView)
async def update_player(player_id: str, changes: PlayerUpdate, store: GameStore = Depends(get_store)):
    with store_errors("Update player"):
        return await store.update_player(player_id, changes)


@router.delete("/{player_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_player(player_id: str, store: GameStore = Depends(get_store)):
    with store_errors("Remove player"):
        await store.delete_player(player_id)


@router.delete("/{player_id}/selections", status_code=status.HTTP_204_NO_CONTENT)
async def delete_player_selections(player_id: str, store: GameStore = Depends(get_store)):
    with store_errors("Remove selections"):
        await store.delete_selections_for_player(player_id)


@router.delete("/{player_id}/guesses", status_code=status.HTTP_204_NO_CONTENT)
async def delete_player_guesses(player_id: str, store: GameStore = Depends(get_store)):
    """Guesses made by the player and guesses made about the player"""
    with store_errors("Remove guesses"):
        await store.delete_guesses_for_player(player_id)
