"""
Submission API endpoints
Topic selections and guesses; a second submission for the same slot is a 409
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import get_store, store_errors
from app.schemas.game import SelectionCreate, SelectionView, GuessCreate, GuessView
from app.services.store import GameStore

router = APIRouter()


@router.post("/selections", response_model=SelectionView, status_code=status.HTTP_201_CREATED)
async def create_selection(selection: SelectionCreate, store: GameStore = Depends(get_store)):
    with store_errors("Submit selection"):
        return await store.insert_selection(selection)


@router.post("/guesses", response_model=GuessView, status_code=status.HTTP_201_CREATED)
async def create_guess(guess: GuessCreate, store: GameStore = Depends(get_store)):
    with store_errors("Submit guess"):
        return await store.insert_guess(guess)
