"""
Catalog API endpoints
Organizations, topics, topic items and finished-game history
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_store, store_errors
from app.schemas.catalog import OrganizationView, TopicView, TopicItemView
from app.schemas.game import GameHistoryCreate
from app.services.store import GameStore

router = APIRouter()


@router.get("/organizations/{organization_id}", response_model=OrganizationView)
async def get_organization(organization_id: str, store: GameStore = Depends(get_store)):
    with store_errors("Organization lookup"):
        organization = await store.get_organization(organization_id)
    if not organization:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return organization


@router.get("/topics", response_model=List[TopicView])
async def list_topics(organization_id: Optional[str] = None, store: GameStore = Depends(get_store)):
    """
    Topics offered in a room

    - **organization_id**: include that organization's custom topics; the
      shared catalog is included unless the organization opts out
    """
    with store_errors("List topics"):
        return await store.list_topics(organization_id)


@router.get("/topics/{topic_id}/items", response_model=List[TopicItemView])
async def list_topic_items(topic_id: str, is_custom: bool = False, store: GameStore = Depends(get_store)):
    with store_errors("List topic items"):
        return await store.list_topic_items(topic_id, is_custom)


@router.post("/game-history", status_code=status.HTTP_201_CREATED)
async def record_game_history(history: GameHistoryCreate, store: GameStore = Depends(get_store)):
    with store_errors("Record game history"):
        await store.record_game_history(history)
    return {"status": "recorded"}
