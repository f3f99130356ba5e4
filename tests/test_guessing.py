"""
Guessing phase tests
"""

import pytest

from app.coordinator.guessing import GuessingCoordinator
from app.coordinator.scoring import ScoringCoordinator
from app.schemas.game import GamePhase, GuessCreate, RoomUpdate
from app.services.errors import StoreError
from factories import make_room, seat, submit_selection, wait_for


async def guessing_room(store, guessers=("Ivo",), ai=()):
    """A room in guessing with Hana as host and VIP"""
    room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
    hana = await seat(store, room, "Hana", is_host=True)
    players = [hana]
    players += [await seat(store, room, name) for name in guessers]
    players += [await seat(store, room, name, is_ai=True) for name in ai]
    for player in players:
        await submit_selection(store, room, player)
    await store.advance_phase(room.id, GamePhase.TOPIC_SELECTION, RoomUpdate(
        game_phase=GamePhase.GUESSING, current_vip_id=hana.id,
    ))
    return await store.read_room(room.id), players


class TestStagedGuess:

    async def test_guess_starts_in_vip_order(self, store, open_session):
        room, (hana, ivo) = await guessing_room(store)
        s_ivo = await open_session(room, ivo)
        coordinator = s_ivo.coordinator
        assert isinstance(coordinator, GuessingCoordinator)
        assert [i.id for i in coordinator.staged] == [f"hana-{i}" for i in range(1, 6)]
        assert not coordinator.is_vip

    async def test_move_item(self, store, open_session):
        room, (hana, ivo) = await guessing_room(store)
        s_ivo = await open_session(room, ivo)
        staged = s_ivo.coordinator.move_item(0, 4)
        assert [i.id for i in staged] == ["hana-2", "hana-3", "hana-4", "hana-5", "hana-1"]

    async def test_move_item_out_of_range(self, store, open_session):
        room, (hana, ivo) = await guessing_room(store)
        s_ivo = await open_session(room, ivo)
        with pytest.raises(IndexError):
            s_ivo.coordinator.move_item(0, 5)

    async def test_vip_cannot_guess(self, store, open_session):
        room, (hana, ivo, jun) = await guessing_room(store, guessers=("Ivo", "Jun"))
        s_hana = await open_session(room, hana)
        assert s_hana.coordinator.is_vip
        assert s_hana.coordinator.countdown is None
        assert not await s_hana.coordinator.submit_guess()
        assert await store.count_guesses(room.id, 1, hana.id) == 0


class TestSubmitGuess:

    async def test_scores_once_and_adds_to_total(self, store, open_session):
        room, (hana, ivo, jun) = await guessing_room(store, guessers=("Ivo", "Jun"))
        s_ivo = await open_session(room, ivo)
        coordinator = s_ivo.coordinator
        # a, e swapped: three middle matches
        coordinator.move_item(0, 4)
        coordinator.move_item(3, 0)

        assert await coordinator.submit_guess()
        assert not await coordinator.submit_guess()

        assert coordinator.last_score == 3
        assert (await store.get_player(ivo.id)).score == 3
        assert await store.count_guesses(room.id, 1, hana.id) == 1

    async def test_duplicate_from_another_device_adds_nothing(self, store, open_session):
        room, (hana, ivo, jun) = await guessing_room(store, guessers=("Ivo", "Jun"))
        await store.insert_guess(GuessCreate(
            player_id=ivo.id, room_id=room.id, round=1, vip_player_id=hana.id,
            guessed_order=[f"hana-{i}" for i in range(1, 6)], score=10,
        ))
        s_ivo = await open_session(room, ivo)
        assert s_ivo.coordinator.has_submitted
        assert not await s_ivo.coordinator.submit_guess()
        assert (await store.get_player(ivo.id)).score == 0

    async def test_failed_score_write_still_marks_the_guess_submitted(self, store, open_session, monkeypatch):
        room, (hana, ivo, jun) = await guessing_room(store, guessers=("Ivo", "Jun"))
        s_ivo = await open_session(room, ivo)
        coordinator = s_ivo.coordinator

        async def failing_update(player_id, changes):
            raise StoreError("connection lost")

        monkeypatch.setattr(store, "update_player", failing_update)
        assert await coordinator.submit_guess()

        assert coordinator.has_submitted
        assert coordinator.last_score == 10
        assert "Error saving score" in s_ivo.notifier.titles()
        assert not await coordinator.submit_guess()
        assert await store.count_guesses(room.id, 1, hana.id) == 1


class TestAdvanceToScoring:

    async def test_waits_for_everyone_but_the_vip(self, store, open_session, settle):
        room, (hana, ivo, jun) = await guessing_room(store, guessers=("Ivo", "Jun"))
        s_hana = await open_session(room, hana)
        s_ivo = await open_session(room, ivo)
        s_jun = await open_session(room, jun)

        assert await s_ivo.coordinator.submit_guess()
        await settle(s_hana, s_ivo, s_jun)
        assert (await store.read_room(room.id)).game_phase == GamePhase.GUESSING

        assert await s_jun.coordinator.submit_guess()
        await settle(s_hana, s_ivo, s_jun)

        assert (await store.read_room(room.id)).game_phase == GamePhase.SCORING
        assert await store.count_guesses(room.id, 1, hana.id) == 2
        assert isinstance(s_ivo.coordinator, ScoringCoordinator)

    async def test_ai_guessers_count_toward_the_total(self, store, open_session, settle):
        room, (hana, ivo, bot) = await guessing_room(store, guessers=("Ivo",), ai=("Bot Alice",))
        s_hana = await open_session(room, hana)
        s_ivo = await open_session(room, ivo)
        await settle(s_hana, s_ivo)

        assert await store.count_guesses(room.id, 1, hana.id) == 1
        assert await s_ivo.coordinator.submit_guess()
        await settle(s_hana, s_ivo)

        guesses = await store.list_guesses(room.id, 1, hana.id)
        assert {g.player_id for g in guesses} == {ivo.id, bot.id}
        assert (await store.read_room(room.id)).game_phase == GamePhase.SCORING
        bot_guess = next(g for g in guesses if g.player_id == bot.id)
        assert (await store.get_player(bot.id)).score == bot_guess.score

    async def test_guess_count_never_exceeds_guessers(self, store, open_session, settle):
        room, players = await guessing_room(store, guessers=("Ivo", "Jun"), ai=("Bot Alice", "Bot Bob"))
        sessions = [await open_session(room, p) for p in players if not p.is_ai]
        for session in sessions[1:]:
            await session.coordinator.submit_guess()
        await settle(*sessions)

        assert await store.count_guesses(room.id, 1, players[0].id) == len(players) - 1
        assert (await store.read_room(room.id)).game_phase == GamePhase.SCORING


class TestGuessingTimeout:

    async def test_timeout_submits_the_staged_order(self, store, open_session, settle):
        room, (hana, ivo, jun) = await guessing_room(store, guessers=("Ivo", "Jun"))
        s_ivo = await open_session(room, ivo, guessing_seconds=1, timer_tick=0.01)

        assert await wait_for(lambda: s_ivo.coordinator.has_submitted)
        await settle(s_ivo)

        # untouched staging is the VIP's own order
        assert s_ivo.active
        assert (await store.get_player(ivo.id)).score == 10
        assert await store.count_guesses(room.id, 1, hana.id) == 1
