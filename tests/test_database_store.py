"""
DatabaseGameStore tests
"""

import asyncio

import pytest
from sqlalchemy import select

from app.models.history import GameHistory
from app.schemas.game import (
    GamePhase, RoomStatus, RoomUpdate, PlayerUpdate, GuessCreate, GameHistoryCreate,
)
from app.schemas.realtime import ChangeType
from app.schemas.room import RoomCreate
from app.services.errors import DuplicateRowError, RowNotFoundError, RoomFullError
from factories import make_room, seat, submit_selection


class TestRooms:

    async def test_join_code_is_unique(self, store):
        await make_room(store, join_code="ABCDEF")
        with pytest.raises(DuplicateRowError):
            await store.insert_room(RoomCreate(join_code="abcdef", host_name="Other"))

    async def test_find_room_by_code_is_case_insensitive(self, store):
        room = await make_room(store, join_code="ABCDEF")
        found = await store.find_room_by_code(" abcdef ")
        assert found.id == room.id
        assert await store.find_room_by_code("ZZZZZZ") is None

    async def test_new_room_defaults(self, store):
        room = await make_room(store)
        assert room.status == RoomStatus.WAITING
        assert room.game_phase == GamePhase.WAITING
        assert room.current_round == 1
        assert room.total_rounds == 3
        assert room.current_vip_id is None

    async def test_update_missing_room_raises(self, store):
        with pytest.raises(RowNotFoundError):
            await store.update_room("missing", RoomUpdate(game_phase=GamePhase.SCORING))


class TestAdvancePhase:

    async def test_applies_only_from_expected_phase(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        assert await store.advance_phase(room.id, GamePhase.TOPIC_SELECTION, RoomUpdate(
            game_phase=GamePhase.GUESSING, current_vip_id="p1",
        ))
        assert not await store.advance_phase(room.id, GamePhase.TOPIC_SELECTION, RoomUpdate(
            game_phase=GamePhase.GUESSING, current_vip_id="p2",
        ))
        fresh = await store.read_room(room.id)
        assert fresh.game_phase == GamePhase.GUESSING
        assert fresh.current_vip_id == "p1"

    async def test_racing_advances_apply_exactly_once(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        results = await asyncio.gather(*[
            store.advance_phase(room.id, GamePhase.TOPIC_SELECTION, RoomUpdate(
                game_phase=GamePhase.GUESSING, current_vip_id=f"p{i}",
            ))
            for i in range(5)
        ])
        assert sum(results) == 1

    async def test_explicit_none_clears_vip(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        await store.update_room(room.id, RoomUpdate(current_vip_id="p1", game_phase=GamePhase.SCORING))
        await store.advance_phase(room.id, GamePhase.SCORING, RoomUpdate(
            game_phase=GamePhase.TOPIC_SELECTION, current_round=2, current_vip_id=None,
        ))
        fresh = await store.read_room(room.id)
        assert fresh.current_vip_id is None
        assert fresh.current_round == 2

    async def test_notifies_subscribers_only_when_applied(self, store, hub):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        events = []

        async def on_change(event):
            events.append(event)

        store.subscribe("game_rooms", {"id": room.id}, on_change)
        await store.advance_phase(room.id, GamePhase.GUESSING, RoomUpdate(game_phase=GamePhase.SCORING))
        await store.advance_phase(room.id, GamePhase.TOPIC_SELECTION, RoomUpdate(game_phase=GamePhase.GUESSING))
        await hub.drain()

        assert len(events) == 1
        assert events[0].new["game_phase"] == "guessing"


class TestPlayers:

    async def test_players_listed_in_join_order(self, store):
        room = await make_room(store)
        names = ["Hana", "Ivo", "Jun"]
        for name in names:
            await seat(store, room, name)
        assert [p.name for p in await store.list_players(room.id)] == names

    async def test_user_can_join_a_room_once(self, store):
        room = await make_room(store)
        await seat(store, room, "Hana", user_id="u1")
        with pytest.raises(DuplicateRowError):
            await seat(store, room, "Hana again", user_id="u1")

    async def test_room_capacity_is_enforced(self, store):
        room = await make_room(store)
        for i in range(6):
            await seat(store, room, f"P{i}")
        with pytest.raises(RoomFullError):
            await seat(store, room, "Seventh")

    async def test_scores_may_go_negative(self, store):
        room = await make_room(store)
        player = await seat(store, room, "Hana")
        updated = await store.update_player(player.id, PlayerUpdate(score=-3))
        assert updated.score == -3

    async def test_delete_publishes_old_row(self, store, hub):
        room = await make_room(store)
        player = await seat(store, room, "Hana", is_host=True)
        events = []

        async def on_change(event):
            events.append(event)

        store.subscribe("players", {"room_id": room.id}, on_change, {ChangeType.DELETE})
        await store.delete_player(player.id)
        await hub.drain()

        assert len(events) == 1
        assert events[0].old["is_host"] is True
        assert await store.get_player(player.id) is None

    async def test_delete_removes_selections_and_guesses(self, store):
        room = await make_room(store, phase=GamePhase.GUESSING)
        hana = await seat(store, room, "Hana", is_host=True)
        ivo = await seat(store, room, "Ivo")
        bot = await seat(store, room, "Bot Alice", is_ai=True)
        for player in (hana, ivo, bot):
            await submit_selection(store, room, player)
        for guesser, vip in ((bot, hana), (ivo, bot), (ivo, hana)):
            await store.insert_guess(GuessCreate(
                player_id=guesser.id, room_id=room.id, round=1, vip_player_id=vip.id,
                guessed_order=["a"], score=0,
            ))

        await store.delete_player(bot.id)

        assert {s.player_id for s in await store.list_selections(room.id, 1)} == {hana.id, ivo.id}
        remaining = await store.list_guesses(room.id, 1)
        assert [(g.player_id, g.vip_player_id) for g in remaining] == [(ivo.id, hana.id)]


class TestSubmissions:

    async def test_one_selection_per_player_and_round(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        player = await seat(store, room, "Hana")
        await submit_selection(store, room, player)
        with pytest.raises(DuplicateRowError):
            await submit_selection(store, room, player)
        await submit_selection(store, room, player, round=2)
        assert len(await store.list_selections(room.id, 1)) == 1

    async def test_selection_keeps_rank_order(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        player = await seat(store, room, "Hana")
        await submit_selection(store, room, player)
        selection = await store.get_selection(room.id, 1, player.id)
        assert selection.item_ids == [f"hana-{i}" for i in range(1, 6)]

    async def test_one_guess_per_vip(self, store):
        room = await make_room(store, phase=GamePhase.GUESSING)
        vip = await seat(store, room, "Hana")
        guesser = await seat(store, room, "Ivo")
        guess = GuessCreate(
            player_id=guesser.id, room_id=room.id, round=1, vip_player_id=vip.id,
            guessed_order=["a", "b", "c", "d", "e"], score=2,
        )
        await store.insert_guess(guess)
        with pytest.raises(DuplicateRowError):
            await store.insert_guess(guess)
        assert await store.count_guesses(room.id, 1, vip.id) == 1

    async def test_delete_guesses_covers_guesser_and_vip(self, store):
        room = await make_room(store, phase=GamePhase.GUESSING)
        a = await seat(store, room, "Hana")
        b = await seat(store, room, "Ivo")
        c = await seat(store, room, "Jun")
        for guesser, vip in ((b, a), (a, b), (c, b)):
            await store.insert_guess(GuessCreate(
                player_id=guesser.id, room_id=room.id, round=1, vip_player_id=vip.id,
                guessed_order=["a"], score=0,
            ))
        await store.delete_guesses_for_player(a.id)
        remaining = await store.list_guesses(room.id, 1)
        assert [(g.player_id, g.vip_player_id) for g in remaining] == [(c.id, b.id)]


class TestHostElection:

    async def test_reassign_picks_earliest_human_and_leaves_one_host(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        host = await seat(store, room, "Hana", is_host=True)
        await seat(store, room, "Bot Alice", is_ai=True)
        ivo = await seat(store, room, "Ivo")
        await seat(store, room, "Jun")

        assignment = await store.reassign_host(room.id, host.id)

        assert assignment.new_host_id == ivo.id
        players = await store.list_players(room.id)
        assert [p.id for p in players if p.is_host] == [ivo.id]
        assert (await store.read_room(room.id)).host_name == "Ivo"

    async def test_reassign_falls_back_to_ai(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        host = await seat(store, room, "Hana", is_host=True)
        bot = await seat(store, room, "Bot Alice", is_ai=True)
        assignment = await store.reassign_host(room.id, host.id)
        assert assignment.new_host_id == bot.id

    async def test_reassign_with_nobody_left(self, store):
        room = await make_room(store)
        host = await seat(store, room, "Hana", is_host=True)
        assert await store.reassign_host(room.id, host.id) is None

    async def test_reassign_clears_duplicate_hosts(self, store):
        room = await make_room(store)
        await seat(store, room, "Hana", is_host=True)
        await seat(store, room, "Ivo", is_host=True)
        await store.reassign_host(room.id, None)
        assert sum(p.is_host for p in await store.list_players(room.id)) == 1


class TestServerOperations:

    async def test_end_game_early(self, store):
        room = await make_room(store, phase=GamePhase.GUESSING)
        await store.end_game_early(room.id)
        assert (await store.read_room(room.id)).game_phase == GamePhase.FINISHED

    async def test_kick_removes_rows_and_counts_humans(self, store):
        room = await make_room(store, phase=GamePhase.TOPIC_SELECTION)
        host = await seat(store, room, "Hana", is_host=True)
        ivo = await seat(store, room, "Ivo")
        await seat(store, room, "Bot Alice", is_ai=True)
        await submit_selection(store, room, host)

        remaining = await store.kick_inactive_player(room.id, host.id)

        assert remaining == 1
        assert await store.get_player(host.id) is None
        assert await store.list_selections(room.id, 1) == []
        assert (await store.get_player(ivo.id)).is_host

    async def test_kick_unknown_player(self, store):
        room = await make_room(store)
        with pytest.raises(RowNotFoundError):
            await store.kick_inactive_player(room.id, "missing")

    async def test_validate_join_code(self, store):
        room = await make_room(store, join_code="ABCDEF")
        await seat(store, room, "Hana", user_id="u1")

        result = await store.validate_join_code("abcdef", "u1")
        assert result.room_exists
        assert result.room_id == room.id
        assert result.player_count == 1
        assert result.room_status == RoomStatus.WAITING
        assert result.user_already_joined

        assert not (await store.validate_join_code("ABCDEF", "u2")).user_already_joined
        assert not (await store.validate_join_code("NOPE00")).room_exists

    async def test_record_game_history(self, store, db):
        await store.record_game_history(GameHistoryCreate(
            join_code="ABCDEF", host_name="Hana", winner_name="Ivo", total_rounds=3,
        ))
        async with db.get_session() as session:
            rows = (await session.execute(select(GameHistory))).scalars().all()
        assert [(r.join_code, r.winner_name) for r in rows] == [("ABCDEF", "Ivo")]
