"""
Server function endpoints
AI-player turns and transient broadcasts
"""

import logging

from fastapi import APIRouter, Depends, status

from app.api.deps import get_store, store_errors
from app.schemas.game import AiTopicSelectionRequest, AiGuessRequest, AiTurnResult
from app.schemas.realtime import BroadcastEvent
from app.services.store import GameStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/functions/ai-player-topic-selection", response_model=AiTurnResult)
async def ai_player_topic_selection(request: AiTopicSelectionRequest, store: GameStore = Depends(get_store)):
    """Pick a topic and five items for an AI player; repeat calls are no-ops"""
    with store_errors("AI topic selection"):
        return await store.invoke_ai_topic_selection(request.playerId, request.roomId, request.round)


@router.post("/functions/ai-player-guess", response_model=AiTurnResult)
async def ai_player_guess(request: AiGuessRequest, store: GameStore = Depends(get_store)):
    """Submit and score a guess for an AI player; repeat calls are no-ops"""
    with store_errors("AI guess"):
        return await store.invoke_ai_guess(request.playerId, request.roomId, request.round, request.vipPlayerId)


@router.post("/broadcast", status_code=status.HTTP_202_ACCEPTED)
async def broadcast(event: BroadcastEvent, store: GameStore = Depends(get_store)):
    logger.debug(f"Broadcast {event.event} on {event.channel}")
    await store.broadcast(event.channel, event.event, event.payload)
    return {"status": "accepted"}
