"""
Scoring phase tests: results, next VIP, next round and game end
"""

from sqlalchemy import select

from app.coordinator.guessing import GuessingCoordinator
from app.coordinator.scoring import ScoringCoordinator
from app.models.history import GameHistory
from app.schemas.game import GamePhase, GuessCreate, PlayerUpdate, RoomUpdate
from factories import make_room, seat, submit_selection


async def scoring_room(store, total_rounds=3, current_round=1):
    """Hana (host) was VIP and Ivo has guessed; round results are on screen"""
    room = await make_room(store, phase=GamePhase.TOPIC_SELECTION, total_rounds=total_rounds,
                           current_round=current_round)
    hana = await seat(store, room, "Hana", is_host=True)
    ivo = await seat(store, room, "Ivo")
    for player in (hana, ivo):
        await submit_selection(store, room, player, round=current_round)
    await store.insert_guess(GuessCreate(
        player_id=ivo.id, room_id=room.id, round=current_round, vip_player_id=hana.id,
        guessed_order=[f"hana-{i}" for i in range(1, 6)], score=10,
    ))
    await store.update_player(ivo.id, PlayerUpdate(score=10))
    await store.update_room(room.id, RoomUpdate(game_phase=GamePhase.SCORING, current_vip_id=hana.id))
    return await store.read_room(room.id), hana, ivo


class TestRoundResults:

    async def test_results_list_guessers_and_the_vip(self, store, open_session):
        room, hana, ivo = await scoring_room(store)
        s_ivo = await open_session(room, ivo)
        coordinator = s_ivo.coordinator
        assert isinstance(coordinator, ScoringCoordinator)

        assert [(r.player_name, r.score, r.is_vip) for r in coordinator.results] == [
            ("Ivo", 10, False),
            ("Hana", 0, True),
        ]
        assert not coordinator.all_vips_done

    async def test_standings_best_first(self, store, open_session):
        room, hana, ivo = await scoring_room(store)
        s_hana = await open_session(room, hana)
        standings = await s_hana.coordinator.standings()
        assert [p.name for p in standings] == ["Ivo", "Hana"]


class TestNextVip:

    async def test_only_the_host_moves_on(self, store, open_session):
        room, hana, ivo = await scoring_room(store)
        s_ivo = await open_session(room, ivo)
        assert not await s_ivo.coordinator.next_vip()
        assert (await store.read_room(room.id)).game_phase == GamePhase.SCORING

    async def test_next_unplayed_player_becomes_vip(self, store, open_session, settle):
        room, hana, ivo = await scoring_room(store)
        s_hana = await open_session(room, hana)
        s_ivo = await open_session(room, ivo)

        assert await s_hana.coordinator.next_vip()
        await settle(s_hana, s_ivo)

        fresh = await store.read_room(room.id)
        assert fresh.game_phase == GamePhase.GUESSING
        assert fresh.current_vip_id == ivo.id
        assert fresh.vips_completed == 1
        assert isinstance(s_hana.coordinator, GuessingCoordinator)
        assert [i.id for i in s_hana.coordinator.staged][0] == "ivo-1"

    async def test_after_every_vip_the_next_round_starts(self, store, open_session, settle):
        room, hana, ivo = await scoring_room(store)
        await store.insert_guess(GuessCreate(
            player_id=hana.id, room_id=room.id, round=1, vip_player_id=ivo.id,
            guessed_order=["x"], score=-1,
        ))
        await store.update_room(room.id, RoomUpdate(current_vip_id=ivo.id))
        s_hana = await open_session(room, hana)
        assert s_hana.coordinator.all_vips_done

        assert await s_hana.coordinator.next_vip()
        await settle(s_hana)

        fresh = await store.read_room(room.id)
        assert fresh.game_phase == GamePhase.TOPIC_SELECTION
        assert fresh.current_round == 2
        assert fresh.current_vip_id is None
        assert fresh.vips_completed == 0

    async def test_last_round_finishes_and_records_history(self, store, open_session, settle, db):
        room, hana, ivo = await scoring_room(store, total_rounds=1)
        await store.insert_guess(GuessCreate(
            player_id=hana.id, room_id=room.id, round=1, vip_player_id=ivo.id,
            guessed_order=["x"], score=-1,
        ))
        await store.update_room(room.id, RoomUpdate(current_vip_id=ivo.id))
        s_hana = await open_session(room, hana)

        assert await s_hana.coordinator.next_vip()
        await settle(s_hana)

        assert (await store.read_room(room.id)).game_phase == GamePhase.FINISHED
        async with db.get_session() as session:
            history = (await session.execute(select(GameHistory))).scalars().all()
        assert [(h.winner_name, h.total_rounds) for h in history] == [("Ivo", 1)]

    async def test_full_round_with_two_players(self, store, open_session, settle):
        room, hana, ivo = await scoring_room(store, total_rounds=1)
        s_hana = await open_session(room, hana)
        s_ivo = await open_session(room, ivo)

        # Ivo becomes VIP, Hana guesses, the host moves back to scoring
        assert await s_hana.coordinator.next_vip()
        await settle(s_hana, s_ivo)
        assert await s_hana.coordinator.submit_guess()
        await settle(s_hana, s_ivo)
        assert (await store.read_room(room.id)).game_phase == GamePhase.SCORING
        assert (await store.get_player(hana.id)).score == 10

        assert await s_hana.coordinator.next_vip()
        await settle(s_hana, s_ivo)
        assert (await store.read_room(room.id)).game_phase == GamePhase.FINISHED


async def every_vip_played(store, room, hana, ivo):
    """Hana guesses for Ivo, who is now the current VIP, so the round is complete"""
    await store.insert_guess(GuessCreate(
        player_id=hana.id, room_id=room.id, round=room.current_round, vip_player_id=ivo.id,
        guessed_order=["x"], score=-1,
    ))
    return await store.update_room(room.id, RoomUpdate(current_vip_id=ivo.id))


class TestHostChoices:

    async def test_continue_game_opens_next_round(self, store, open_session, settle):
        room, hana, ivo = await scoring_room(store)
        room = await every_vip_played(store, room, hana, ivo)
        s_hana = await open_session(room, hana)
        assert await s_hana.coordinator.continue_game()
        fresh = await store.read_room(room.id)
        assert fresh.game_phase == GamePhase.TOPIC_SELECTION
        assert fresh.current_round == 2

    async def test_end_game_finishes_now(self, store, open_session):
        room, hana, ivo = await scoring_room(store, total_rounds=5)
        room = await every_vip_played(store, room, hana, ivo)
        s_hana = await open_session(room, hana)
        assert await s_hana.coordinator.end_game()
        assert (await store.read_room(room.id)).game_phase == GamePhase.FINISHED

    async def test_second_press_is_ignored(self, store, open_session):
        room, hana, ivo = await scoring_room(store)
        room = await every_vip_played(store, room, hana, ivo)
        s_hana = await open_session(room, hana)
        coordinator = s_hana.coordinator
        assert await coordinator.continue_game()
        assert not await coordinator.continue_game()
        assert (await store.read_room(room.id)).current_round == 2

    async def test_guest_cannot_continue_or_end(self, store, open_session):
        room, hana, ivo = await scoring_room(store)
        room = await every_vip_played(store, room, hana, ivo)
        s_ivo = await open_session(room, ivo)

        assert not await s_ivo.coordinator.continue_game()
        assert not await s_ivo.coordinator.end_game()
        fresh = await store.read_room(room.id)
        assert fresh.game_phase == GamePhase.SCORING
        assert fresh.current_round == 1

    async def test_bystander_cannot_end_the_game(self, store, open_session):
        room, hana, ivo = await scoring_room(store)
        jun = await seat(store, room, "Jun")
        s_jun = await open_session(room, jun)

        assert not s_jun.coordinator.all_vips_done
        assert not await s_jun.coordinator.end_game()
        assert (await store.read_room(room.id)).game_phase == GamePhase.SCORING

    async def test_host_waits_until_every_player_was_vip(self, store, open_session):
        room, hana, ivo = await scoring_room(store)
        s_hana = await open_session(room, hana)
        assert not s_hana.coordinator.all_vips_done

        assert not await s_hana.coordinator.continue_game()
        assert not await s_hana.coordinator.end_game()
        fresh = await store.read_room(room.id)
        assert fresh.game_phase == GamePhase.SCORING
        assert fresh.current_round == 1
