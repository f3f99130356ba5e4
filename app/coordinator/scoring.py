"""
Scoring phase
Shows the round's results; the host moves to the next VIP, the next round or the end
"""

import logging
from typing import List, Optional

from app.schemas.game import GamePhase, RoomUpdate, RoundResult, PlayerView, GameHistoryCreate
from app.services.errors import StoreError
from app.coordinator.base import PhaseCoordinator

logger = logging.getLogger(__name__)


class ScoringCoordinator(PhaseCoordinator):
    phase = GamePhase.SCORING

    def __init__(self, session):
        super().__init__(session)
        self.results: List[RoundResult] = []
        self.all_vips_done = False

    async def enter(self) -> None:
        await self.load_round_results()

    async def reconcile(self) -> None:
        try:
            await self._check_all_vips_done()
        except StoreError as e:
            self.notifier.error("Error loading results", e.message)

    async def load_round_results(self) -> List[RoundResult]:
        """Guesses about the current VIP, best first, with the VIP on zero"""
        try:
            players = {p.id: p for p in await self.store.list_players(self.room_id)}
            guesses = await self.store.list_guesses(self.room_id, self.room.current_round, self.room.current_vip_id)
            await self._check_all_vips_done(len(players))
        except StoreError as e:
            self.notifier.error("Error loading results", e.message)
            return self.results

        results = [
            RoundResult(
                player_id=g.player_id,
                player_name=players[g.player_id].name if g.player_id in players else "Former player",
                score=g.score,
                guessed_order=g.guessed_order,
            )
            for g in guesses
        ]
        vip = players.get(self.room.current_vip_id)
        if vip:
            results.append(RoundResult(player_id=vip.id, player_name=vip.name, score=0, is_vip=True))
        self.results = results
        return results

    async def standings(self) -> List[PlayerView]:
        players = await self.store.list_players(self.room_id)
        return sorted(players, key=lambda p: p.score, reverse=True)

    async def next_vip(self) -> bool:
        """Host: next unplayed VIP this round, else the next round, else the end of the game"""
        if not await self.session.host.is_host():
            return False
        if not self._try_lock("Next VIP"):
            return False

        try:
            room = await self.store.read_room(self.room_id)
            if not room or room.game_phase != GamePhase.SCORING:
                return False

            players = await self.store.list_players(self.room_id)
            vip_ids = await self._vips_this_round(room.current_round, room.current_vip_id)
            vips_completed = len(vip_ids)

            if vips_completed >= len(players):
                if room.current_round >= room.total_rounds:
                    return await self._finish(players, room.total_rounds)

                applied = await self.store.advance_phase(self.room_id, GamePhase.SCORING, RoomUpdate(
                    game_phase=GamePhase.TOPIC_SELECTION,
                    current_round=room.current_round + 1,
                    current_vip_id=None,
                    vips_completed=0,
                ))
                if applied:
                    self.notifier.info("New round starting", f"Round {room.current_round + 1} begins now")
                return applied

            next_player = next((p for p in players if p.id not in vip_ids), None)
            if next_player is None:
                raise StoreError("Could not find next VIP")

            applied = await self.store.advance_phase(self.room_id, GamePhase.SCORING, RoomUpdate(
                game_phase=GamePhase.GUESSING,
                current_vip_id=next_player.id,
                vips_completed=vips_completed,
            ))
            if applied:
                logger.info(f"[SCORING] {next_player.name} is now VIP")
                self.notifier.info("Next VIP selected", f"{next_player.name} is now VIP")
            return applied
        except StoreError as e:
            self.notifier.error("Error progressing game", e.message)
            return False
        finally:
            self._release_lock_later()

    async def continue_game(self) -> bool:
        """Host, once every player has been VIP this round: start the next round"""
        if not await self._round_complete():
            return False
        if not self._try_lock("Continue game"):
            return False
        try:
            room = self.room
            applied = await self.store.advance_phase(self.room_id, GamePhase.SCORING, RoomUpdate(
                game_phase=GamePhase.TOPIC_SELECTION,
                current_round=room.current_round + 1,
                current_vip_id=None,
                vips_completed=0,
            ))
            if applied:
                self.notifier.info("New round starting", f"Round {room.current_round + 1} begins now")
            return applied
        except StoreError as e:
            self.notifier.error("Error progressing game", e.message)
            return False
        finally:
            self._release_lock_later()

    async def end_game(self) -> bool:
        """Host, once every player has been VIP this round: finish now and record the game"""
        if not await self._round_complete():
            return False
        if not self._try_lock("End game"):
            return False
        try:
            players = await self.store.list_players(self.room_id)
            return await self._finish(players, self.room.current_round)
        except StoreError as e:
            self.notifier.error("Error progressing game", e.message)
            return False
        finally:
            self._release_lock_later()

    async def _round_complete(self) -> bool:
        if not await self.session.host.is_host():
            return False
        try:
            await self._check_all_vips_done()
        except StoreError as e:
            self.notifier.error("Error loading results", e.message)
            return False
        if not self.all_vips_done:
            logger.info(f"[SCORING] Round {self.room.current_round} still has players waiting to be VIP")
        return self.all_vips_done

    async def _finish(self, players: List[PlayerView], rounds_played: int) -> bool:
        room = await self.store.read_room(self.room_id)
        if not room:
            return False
        applied = await self.store.advance_phase(
            self.room_id, GamePhase.SCORING, RoomUpdate(game_phase=GamePhase.FINISHED)
        )
        if not applied:
            return False

        winner = max(players, key=lambda p: p.score) if players else None
        if winner:
            await self.store.record_game_history(GameHistoryCreate(
                join_code=room.join_code,
                host_name=room.host_name,
                winner_name=winner.name,
                total_rounds=rounds_played,
                started_at=room.created_at,
            ))
        logger.info(f"[SCORING] Game over in room {self.room_id}, winner {winner.name if winner else None}")
        self.notifier.info("Game complete", "Check out the final scores.")
        return True

    async def _vips_this_round(self, round: int, current_vip_id: Optional[str]) -> set:
        guesses = await self.store.list_guesses(self.room_id, round)
        vip_ids = {g.vip_player_id for g in guesses}
        if current_vip_id:
            vip_ids.add(current_vip_id)
        return vip_ids

    async def _check_all_vips_done(self, player_count: Optional[int] = None) -> None:
        if player_count is None:
            player_count = len(await self.store.list_players(self.room_id))
        vip_ids = await self._vips_this_round(self.room.current_round, self.room.current_vip_id)
        self.all_vips_done = len(vip_ids) >= player_count
