"""
Topic selection phase
Every player ranks five items; once all have submitted the host draws the VIP
"""

import logging
from typing import List, Optional

from app.core.config import settings
from app.schemas.game import GamePhase, RoomUpdate, SelectionCreate
from app.schemas.catalog import TopicView, TopicItemView
from app.schemas.item import SelectionItem, CatalogItem, OrganizationItem
from app.services.errors import StoreError, DuplicateRowError
from app.coordinator.base import PhaseCoordinator
from app.coordinator.timers import Countdown

logger = logging.getLogger(__name__)

INACTIVITY_CHANNEL = "inactivity-kick-{room_id}"
INACTIVITY_EVENT = "player_kicked_inactivity"


class TopicSelectionCoordinator(PhaseCoordinator):
    phase = GamePhase.TOPIC_SELECTION

    def __init__(self, session):
        super().__init__(session)
        self.has_submitted = False
        self.timed_out = False
        self.topics: List[TopicView] = []
        self.countdown: Optional[Countdown] = None

    @property
    def time_remaining(self) -> Optional[int]:
        return self.countdown.remaining if self.countdown else None

    @property
    def time_warning(self) -> bool:
        return bool(self.countdown and self.countdown.warning)

    async def enter(self) -> None:
        player = self.current_player
        if player:
            try:
                existing = await self.store.get_selection(self.room_id, self.room.current_round, player.id)
                self.has_submitted = existing is not None
            except StoreError as e:
                self.notifier.error("Error loading selection", e.message)

        if player and not player.is_ai and not self.has_submitted:
            self.countdown = Countdown(
                self.session.topic_selection_seconds,
                settings.TOPIC_SELECTION_WARNING_SECONDS,
                self.handle_timeout,
                tick=self.session.timer_tick,
            )
            self.countdown.start()

        await self.reconcile()

    async def exit(self) -> None:
        if self.countdown:
            self.countdown.cancel()
        await super().exit()

    async def list_topics(self) -> List[TopicView]:
        """Global topics unless the organization opted out, then the organization's own"""
        try:
            self.topics = await self.store.list_topics(self.session.branding.organization_id)
        except StoreError as e:
            self.notifier.error("Error loading topics", e.message)
        return self.topics

    async def list_topic_items(self, topic: TopicView) -> List[TopicItemView]:
        try:
            return await self.store.list_topic_items(topic.id, is_custom=topic.is_custom)
        except StoreError as e:
            self.notifier.error("Error loading topic items", e.message)
            return []

    @staticmethod
    def item_for(topic: TopicView, item: TopicItemView) -> SelectionItem:
        """Tag a catalog row for ranking"""
        item_type = OrganizationItem if topic.is_custom else CatalogItem
        return item_type(id=item.id, name=item.name, image_url=item.image_url)

    async def submit_selection(self, topic_id: str, items: List[SelectionItem]) -> bool:
        """Submit the ranked list once; rank 1 first"""
        player = self.current_player
        if not player or self.has_submitted or self.timed_out:
            return False

        ids = [item.id for item in items]
        if not topic_id or len(items) != settings.ITEMS_PER_SELECTION or len(set(ids)) != len(ids):
            self.notifier.error(
                "Incomplete selection",
                f"Select a topic and rank exactly {settings.ITEMS_PER_SELECTION} different items.",
            )
            return False

        try:
            await self.store.insert_selection(SelectionCreate(
                player_id=player.id,
                room_id=self.room_id,
                round=self.room.current_round,
                topic_id=topic_id,
                ordered_items=items,
            ))
        except DuplicateRowError:
            logger.info(f"[TOPIC_SELECTION] {player.name} already submitted for round {self.room.current_round}")
            self.has_submitted = True
            return False
        except StoreError as e:
            self.notifier.error("Error submitting selection", e.message)
            return False

        self.has_submitted = True
        if self.countdown:
            self.countdown.cancel()
        logger.info(f"[TOPIC_SELECTION] {player.name} submitted for round {self.room.current_round}")
        self.notifier.info("Selection submitted", "Waiting for the other players.")
        await self.reconcile()
        return True

    async def reconcile(self) -> None:
        """Advance to guessing once every player has a selection this round"""
        try:
            players = await self.store.list_players(self.room_id)
            if len(players) <= 1:
                await self.session.host.end_game_if_abandoned(len(players), "topic selection")
                return

            player_ids = {p.id for p in players}
            selections = [
                s for s in await self.store.list_selections(self.room_id, self.room.current_round)
                if s.player_id in player_ids
            ]
            logger.debug(f"[TOPIC_SELECTION] {len(selections)}/{len(players)} selections in")
            if len(selections) >= len(players) and await self.session.host.is_host():
                await self.select_random_vip()
        except StoreError as e:
            self.notifier.error("Error checking selections", e.message)

    async def select_random_vip(self) -> bool:
        """Draw the VIP from the players that submitted and move to guessing"""
        if not self._try_lock("VIP selection"):
            return False
        try:
            room = await self.store.read_room(self.room_id)
            if not room or room.game_phase != GamePhase.TOPIC_SELECTION:
                logger.info("[TOPIC_SELECTION] Phase already changed, skipping VIP selection")
                return False

            player_ids = {p.id for p in await self.store.list_players(self.room_id)}
            submitters = [
                s.player_id for s in await self.store.list_selections(self.room_id, room.current_round)
                if s.player_id in player_ids
            ]
            if not submitters:
                return False

            vip_id = self.session.rng.choice(submitters)
            applied = await self.store.advance_phase(
                self.room_id,
                GamePhase.TOPIC_SELECTION,
                RoomUpdate(game_phase=GamePhase.GUESSING, current_vip_id=vip_id),
            )
            if applied:
                logger.info(f"[TOPIC_SELECTION] Round {room.current_round} VIP is {vip_id}")
            return applied
        except StoreError as e:
            self.notifier.error("Error selecting VIP", e.message)
            return False
        finally:
            self._release_lock_later()

    async def handle_timeout(self) -> None:
        """Out of time without submitting: leave the room"""
        player = self.current_player
        if not player or self.has_submitted or self.timed_out:
            return
        self.timed_out = True
        logger.info(f"[TOPIC_SELECTION] {player.name} timed out, removing from room")

        try:
            await self.store.broadcast(
                INACTIVITY_CHANNEL.format(room_id=self.room_id),
                INACTIVITY_EVENT,
                {"playerName": player.name},
            )
            try:
                await self.store.kick_inactive_player(self.room_id, player.id)
            except StoreError as e:
                logger.error(f"[TOPIC_SELECTION] Kick failed: {e}")

            self.notifier.error("You were removed from the game due to inactivity.")

            remaining = await self.store.list_players(self.room_id)
            if len(remaining) <= 1:
                logger.info("[TOPIC_SELECTION] Not enough players remaining, ending game early")
                await self.store.end_game_early(self.room_id)
        except StoreError as e:
            self.notifier.error("Error kicking player", e.message)

        await self.session.leave(self.session.branding.exit_path)
