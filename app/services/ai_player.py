"""
AI player service
Server-side turns for AI seats: picking a topic and guessing the VIP's order
"""

import random
import logging
from typing import List, Optional

from app.core.config import settings
from app.schemas.game import SelectionCreate, GuessCreate, AiTurnResult, PlayerUpdate
from app.schemas.item import CatalogItem, OrganizationItem
from app.services.errors import StoreError, DuplicateRowError
from app.services.scoring import score_guess

logger = logging.getLogger(__name__)

AI_PLAYER_NAMES = ["Bot Alice", "Bot Bob", "Bot Charlie", "Bot Diana", "Bot Eve"]


def next_ai_name(taken: List[str]) -> Optional[str]:
    """First pool name not already seated in the room"""
    for name in AI_PLAYER_NAMES:
        if name not in taken:
            return name
    return None


class AiPlayerService:
    """Plays one AI turn against a GameStore"""

    def __init__(self, store, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()

    async def select_topic(self, player_id: str, room_id: str, round: int) -> AiTurnResult:
        """Pick a random available topic and rank five random items from it"""
        existing = await self.store.get_selection(room_id, round, player_id)
        if existing:
            logger.info(f"[AI] Player {player_id} already has a selection for round {round}")
            return AiTurnResult(message="Selection already exists")

        room = await self.store.read_room(room_id)
        if not room:
            raise StoreError(f"Room {room_id} not found", status_code=404)

        topics = await self.store.list_topics(room.organization_id)
        if not topics:
            raise StoreError("No topics available")

        topic = self.rng.choice(topics)
        items = await self.store.list_topic_items(topic.id, is_custom=topic.is_custom)
        if not items:
            raise StoreError(f"Topic {topic.name} has no items")

        picked = self.rng.sample(items, min(settings.ITEMS_PER_SELECTION, len(items)))
        item_type = OrganizationItem if topic.is_custom else CatalogItem
        ordered = [item_type(id=i.id, name=i.name, image_url=i.image_url) for i in picked]

        try:
            await self.store.insert_selection(SelectionCreate(
                player_id=player_id,
                room_id=room_id,
                round=round,
                topic_id=topic.id,
                ordered_items=ordered,
            ))
        except DuplicateRowError:
            logger.info(f"[AI] Selection for {player_id} created concurrently")
            return AiTurnResult(message="Selection created by another instance")

        logger.info(f"[AI] Player {player_id} picked topic {topic.name} for round {round}")
        return AiTurnResult()

    async def guess(self, player_id: str, room_id: str, round: int, vip_player_id: str) -> AiTurnResult:
        """Shuffle the VIP's items into a guess, score it and add the score once"""
        if player_id == vip_player_id:
            logger.info(f"[AI] Prevented VIP {player_id} from guessing their own order")
            return AiTurnResult(message="VIP cannot guess their own order")

        vip_selection = await self.store.get_selection(room_id, round, vip_player_id)
        if not vip_selection:
            raise StoreError("VIP selection not found", status_code=404)

        vip_order = vip_selection.item_ids
        guessed = list(vip_order)
        self.rng.shuffle(guessed)
        score = score_guess(vip_order, guessed)

        try:
            await self.store.insert_guess(GuessCreate(
                player_id=player_id,
                room_id=room_id,
                round=round,
                vip_player_id=vip_player_id,
                guessed_order=guessed,
                score=score,
            ))
        except DuplicateRowError:
            logger.info(f"[AI] Player {player_id} already guessed for VIP {vip_player_id}")
            return AiTurnResult(message="Guess already submitted")

        player = await self.store.get_player(player_id)
        if player:
            await self.store.update_player(player_id, PlayerUpdate(score=player.score + score))

        logger.info(f"[AI] Player {player_id} guessed with score {score}")
        return AiTurnResult(score=score)
