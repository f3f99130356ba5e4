"""
Guessing phase
Everyone but the VIP orders the VIP's five items; the host moves on to scoring
"""

import logging
from typing import List, Optional

from app.core.config import settings
from app.schemas.game import GamePhase, RoomUpdate, GuessCreate, PlayerUpdate
from app.schemas.item import SelectionItem
from app.services.errors import StoreError, DuplicateRowError
from app.services.scoring import score_guess, is_valid_guess
from app.coordinator.base import PhaseCoordinator
from app.coordinator.timers import Countdown

logger = logging.getLogger(__name__)


class GuessingCoordinator(PhaseCoordinator):
    phase = GamePhase.GUESSING

    def __init__(self, session):
        super().__init__(session)
        self.vip_items: List[SelectionItem] = []
        self.staged: List[SelectionItem] = []
        self.has_submitted = False
        self.last_score: Optional[int] = None
        self.countdown: Optional[Countdown] = None

    @property
    def vip_id(self) -> Optional[str]:
        return self.room.current_vip_id

    @property
    def is_vip(self) -> bool:
        return bool(self.current_player and self.current_player.id == self.vip_id)

    @property
    def time_warning(self) -> bool:
        return bool(self.countdown and self.countdown.warning)

    async def enter(self) -> None:
        await self.load_vip_selection()

        player = self.current_player
        if player and not self.is_vip:
            try:
                guesses = await self.store.list_guesses(self.room_id, self.room.current_round, self.vip_id)
                self.has_submitted = any(g.player_id == player.id for g in guesses)
            except StoreError as e:
                self.notifier.error("Error loading guesses", e.message)

            if not player.is_ai and not self.has_submitted:
                self.countdown = Countdown(
                    self.session.guessing_seconds,
                    settings.GUESSING_WARNING_SECONDS,
                    self.handle_timeout,
                    tick=self.session.timer_tick,
                )
                self.countdown.start()

        await self.reconcile()

    async def exit(self) -> None:
        if self.countdown:
            self.countdown.cancel()
        await super().exit()

    async def load_vip_selection(self) -> List[SelectionItem]:
        """Fetch the VIP's items in the VIP's order and stage them as the starting guess"""
        if not self.vip_id:
            return []
        try:
            selection = await self.store.get_selection(self.room_id, self.room.current_round, self.vip_id)
        except StoreError as e:
            self.notifier.error("Error loading VIP selection", e.message)
            return []

        if not selection:
            logger.warning(f"[GUESSING] No selection for VIP {self.vip_id} in round {self.room.current_round}")
            return []

        self.vip_items = list(selection.ordered_items)
        if not self.staged:
            self.staged = list(self.vip_items)
        return self.vip_items

    def move_item(self, old_index: int, new_index: int) -> List[SelectionItem]:
        """Drag one staged item to a new position"""
        if self.has_submitted:
            return self.staged
        if not (0 <= old_index < len(self.staged) and 0 <= new_index < len(self.staged)):
            raise IndexError(f"Cannot move item {old_index} to {new_index} in a list of {len(self.staged)}")
        item = self.staged.pop(old_index)
        self.staged.insert(new_index, item)
        return self.staged

    async def submit_guess(self) -> bool:
        """Score the staged order, insert the guess and add the score once"""
        player = self.current_player
        if not player or self.has_submitted:
            return False
        if self.is_vip:
            self.notifier.error("Cannot submit guess", "The VIP cannot guess.")
            return False

        guessed = [item.id for item in self.staged]
        if len(guessed) != settings.ITEMS_PER_SELECTION:
            self.notifier.error("Incomplete guess", "Order all of the items before submitting.")
            return False

        round_number = self.room.current_round
        vip_id = self.vip_id
        try:
            selection = await self.store.get_selection(self.room_id, round_number, vip_id)
            if not selection:
                raise StoreError("VIP selection not found")

            vip_order = selection.item_ids
            if not is_valid_guess(vip_order, guessed):
                self.notifier.error("Incomplete guess", "Your guess must use exactly the VIP's items.")
                return False

            score = score_guess(vip_order, guessed)
            try:
                await self.store.insert_guess(GuessCreate(
                    player_id=player.id,
                    room_id=self.room_id,
                    round=round_number,
                    vip_player_id=vip_id,
                    guessed_order=guessed,
                    score=score,
                ))
            except DuplicateRowError:
                logger.info(f"[GUESSING] {player.name} already guessed for VIP {vip_id}")
                self.has_submitted = True
                return False
        except StoreError as e:
            self.notifier.error("Error submitting guess", e.message)
            return False

        # The guess row exists from here on; a retry would only hit the unique constraint
        self.has_submitted = True
        self.last_score = score
        try:
            # Read-then-write; the unique guess row above keeps this to one add
            fresh = await self.store.get_player(player.id)
            current_score = fresh.score if fresh else 0
            await self.store.update_player(player.id, PlayerUpdate(score=current_score + score))
        except StoreError as e:
            logger.error(f"[GUESSING] Score update failed for {player.name}: {e.message}")
            self.notifier.error("Error saving score", e.message)

        if self.countdown:
            self.countdown.cancel()
        logger.info(f"[GUESSING] {player.name} guessed {score} points for VIP {vip_id}")
        self.notifier.info("Guess submitted", f"Earned points: {score}")
        await self.reconcile()
        return True

    async def reconcile(self) -> None:
        """Advance to scoring once every player except the VIP has guessed"""
        if self.transitioning:
            return
        try:
            players = await self.store.list_players(self.room_id)
            if len(players) <= 1:
                await self.session.host.end_game_if_abandoned(len(players), "guessing")
                return

            vip_id = self.vip_id
            if not vip_id:
                return
            guessers = [p for p in players if p.id != vip_id]
            count = await self.store.count_guesses(self.room_id, self.room.current_round, vip_id)
            logger.debug(f"[GUESSING] {count}/{len(guessers)} guesses in")
            if guessers and count >= len(guessers) and await self.session.host.is_host():
                await self.advance_to_scoring()
        except StoreError as e:
            self.notifier.error("Error checking guesses", e.message)

    async def advance_to_scoring(self) -> bool:
        if not self._try_lock("Scoring transition"):
            return False
        try:
            room = await self.store.read_room(self.room_id)
            if not room or room.game_phase != GamePhase.GUESSING:
                logger.info("[GUESSING] Phase already changed, skipping transition to scoring")
                return False
            applied = await self.store.advance_phase(
                self.room_id, GamePhase.GUESSING, RoomUpdate(game_phase=GamePhase.SCORING)
            )
            if applied:
                logger.info(f"[GUESSING] All guesses in for VIP {room.current_vip_id}, moving to scoring")
            return applied
        finally:
            self._release_lock_later()

    async def handle_timeout(self) -> None:
        """Out of time: submit whatever order is staged"""
        if self.has_submitted or self.is_vip or not self.current_player:
            return
        logger.info(f"[GUESSING] Timer ran out, auto-submitting for {self.current_player.name}")
        if not self.staged:
            await self.load_vip_selection()
        await self.submit_guess()
