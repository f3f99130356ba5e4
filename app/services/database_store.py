"""
SQLAlchemy-backed GameStore
Runs inside the storage service, or in-process for tests and single-host play
"""

import logging
from typing import List, Optional, Dict, Any, Set

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import DatabaseManager
from app.models.room import GameRoom
from app.models.player import Player
from app.models.selection import PlayerSelection
from app.models.guess import PlayerGuess
from app.models.catalog import Organization, Topic, TopicItem, CustomTopic, CustomTopicItem
from app.models.history import GameHistory
from app.schemas.game import (
    GamePhase, RoomView, PlayerView, PlayerCreate, PlayerUpdate, RoomUpdate,
    SelectionCreate, SelectionView, GuessCreate, GuessView, JoinCodeValidation,
    HostAssignment, AiTurnResult, GameHistoryCreate,
)
from app.schemas.item import dump_items
from app.schemas.room import RoomCreate
from app.schemas.catalog import TopicView, TopicItemView, OrganizationView
from app.schemas.realtime import ChangeEvent, ChangeType, BroadcastEvent
from app.services.errors import DuplicateRowError, RowNotFoundError, RoomFullError
from app.services.realtime import RealtimeHub, Subscription, ChangeHandler, BroadcastHandler
from app.services.store import GameStore

logger = logging.getLogger(__name__)


def _dump(view) -> Dict[str, Any]:
    return view.model_dump(mode="json")


class DatabaseGameStore(GameStore):
    """GameStore over the relational database, notifying the realtime hub after each commit"""

    def __init__(self, db: DatabaseManager, hub: RealtimeHub):
        self.db = db
        self.hub = hub

    # Rooms

    async def read_room(self, room_id: str) -> Optional[RoomView]:
        async with self.db.get_session() as session:
            room = await session.get(GameRoom, room_id)
            return RoomView.model_validate(room) if room else None

    async def find_room_by_code(self, join_code: str) -> Optional[RoomView]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(GameRoom).where(GameRoom.join_code == join_code.strip().upper())
            )
            room = result.scalar_one_or_none()
            return RoomView.model_validate(room) if room else None

    async def insert_room(self, room: RoomCreate) -> RoomView:
        try:
            async with self.db.get_session() as session:
                db_room = GameRoom(
                    join_code=room.join_code,
                    host_name=room.host_name,
                    total_rounds=room.total_rounds,
                    organization_id=room.organization_id,
                )
                session.add(db_room)
                await session.flush()
                await session.refresh(db_room)
                view = RoomView.model_validate(db_room)
        except IntegrityError as e:
            raise DuplicateRowError(f"Join code {room.join_code} already in use") from e

        await self._notify("game_rooms", ChangeType.INSERT, new=_dump(view))
        return view

    async def update_room(self, room_id: str, changes: RoomUpdate) -> RoomView:
        async with self.db.get_session() as session:
            room = await session.get(GameRoom, room_id)
            if not room:
                raise RowNotFoundError(f"Room {room_id} not found")
            old = _dump(RoomView.model_validate(room))
            for field, value in changes.model_dump(exclude_unset=True).items():
                setattr(room, field, value)
            await session.flush()
            await session.refresh(room)
            view = RoomView.model_validate(room)

        await self._notify("game_rooms", ChangeType.UPDATE, new=_dump(view), old=old)
        return view

    async def advance_phase(self, room_id: str, expected_phase: GamePhase, changes: RoomUpdate) -> bool:
        values = changes.model_dump(exclude_unset=True)
        async with self.db.get_session() as session:
            result = await session.execute(
                update(GameRoom)
                .where(GameRoom.id == room_id, GameRoom.game_phase == expected_phase)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            applied = result.rowcount == 1
            room = await session.get(GameRoom, room_id, populate_existing=True) if applied else None
            view = RoomView.model_validate(room) if room else None

        if not applied:
            logger.debug(f"Phase advance on room {room_id} skipped, no longer {expected_phase.value}")
            return False

        await self._notify("game_rooms", ChangeType.UPDATE, new=_dump(view), old={"id": room_id})
        return True

    # Players

    async def list_players(self, room_id: str) -> List[PlayerView]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(Player).where(Player.room_id == room_id).order_by(Player.joined_at, Player.id)
            )
            return [PlayerView.model_validate(p) for p in result.scalars().all()]

    async def get_player(self, player_id: str) -> Optional[PlayerView]:
        async with self.db.get_session() as session:
            player = await session.get(Player, player_id)
            return PlayerView.model_validate(player) if player else None

    async def insert_player(self, player: PlayerCreate) -> PlayerView:
        try:
            async with self.db.get_session() as session:
                seated = (await session.execute(
                    select(func.count(Player.id)).where(Player.room_id == player.room_id)
                )).scalar_one()
                if seated >= settings.MAX_PLAYERS_PER_ROOM:
                    raise RoomFullError(f"Room {player.room_id} already has {seated} players")

                db_player = Player(**player.model_dump())
                session.add(db_player)
                await session.flush()
                await session.refresh(db_player)
                view = PlayerView.model_validate(db_player)
        except IntegrityError as e:
            raise DuplicateRowError(f"User {player.user_id} already joined room {player.room_id}") from e

        await self._notify("players", ChangeType.INSERT, new=_dump(view))
        return view

    async def delete_player(self, player_id: str) -> None:
        async with self.db.get_session() as session:
            player = await session.get(Player, player_id)
            if not player:
                return
            old = _dump(PlayerView.model_validate(player))
            await session.execute(
                delete(PlayerGuess).where(
                    or_(PlayerGuess.player_id == player_id, PlayerGuess.vip_player_id == player_id)
                )
            )
            await session.execute(delete(PlayerSelection).where(PlayerSelection.player_id == player_id))
            await session.delete(player)

        await self._notify("players", ChangeType.DELETE, old=old)

    async def update_player(self, player_id: str, changes: PlayerUpdate) -> PlayerView:
        async with self.db.get_session() as session:
            player = await session.get(Player, player_id)
            if not player:
                raise RowNotFoundError(f"Player {player_id} not found")
            old = _dump(PlayerView.model_validate(player))
            for field, value in changes.model_dump(exclude_unset=True).items():
                setattr(player, field, value)
            await session.flush()
            view = PlayerView.model_validate(player)

        await self._notify("players", ChangeType.UPDATE, new=_dump(view), old=old)
        return view

    # Selections

    async def insert_selection(self, selection: SelectionCreate) -> SelectionView:
        try:
            async with self.db.get_session() as session:
                row = PlayerSelection(
                    player_id=selection.player_id,
                    room_id=selection.room_id,
                    round=selection.round,
                    topic_id=selection.topic_id,
                    ordered_items=dump_items(selection.ordered_items),
                )
                session.add(row)
                await session.flush()
                view = SelectionView.model_validate(row)
        except IntegrityError as e:
            raise DuplicateRowError(
                f"Player {selection.player_id} already selected for round {selection.round}"
            ) from e

        await self._notify("player_selections", ChangeType.INSERT, new=_dump(view))
        return view

    async def list_selections(self, room_id: str, round: int) -> List[SelectionView]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(PlayerSelection)
                .where(PlayerSelection.room_id == room_id, PlayerSelection.round == round)
                .order_by(PlayerSelection.created_at)
            )
            return [SelectionView.model_validate(s) for s in result.scalars().all()]

    async def get_selection(self, room_id: str, round: int, player_id: str) -> Optional[SelectionView]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(PlayerSelection).where(
                    PlayerSelection.room_id == room_id,
                    PlayerSelection.round == round,
                    PlayerSelection.player_id == player_id,
                )
            )
            row = result.scalar_one_or_none()
            return SelectionView.model_validate(row) if row else None

    async def delete_selections_for_player(self, player_id: str) -> None:
        async with self.db.get_session() as session:
            await session.execute(delete(PlayerSelection).where(PlayerSelection.player_id == player_id))

    # Guesses

    async def insert_guess(self, guess: GuessCreate) -> GuessView:
        try:
            async with self.db.get_session() as session:
                row = PlayerGuess(**guess.model_dump())
                session.add(row)
                await session.flush()
                view = GuessView.model_validate(row)
        except IntegrityError as e:
            raise DuplicateRowError(
                f"Player {guess.player_id} already guessed for VIP {guess.vip_player_id}"
            ) from e

        await self._notify("player_guesses", ChangeType.INSERT, new=_dump(view))
        return view

    async def count_guesses(self, room_id: str, round: int, vip_player_id: str) -> int:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(func.count(PlayerGuess.id)).where(
                    PlayerGuess.room_id == room_id,
                    PlayerGuess.round == round,
                    PlayerGuess.vip_player_id == vip_player_id,
                )
            )
            return result.scalar_one()

    async def list_guesses(self, room_id: str, round: int, vip_player_id: Optional[str] = None) -> List[GuessView]:
        stmt = select(PlayerGuess).where(PlayerGuess.room_id == room_id, PlayerGuess.round == round)
        if vip_player_id:
            stmt = stmt.where(PlayerGuess.vip_player_id == vip_player_id)
        async with self.db.get_session() as session:
            result = await session.execute(stmt.order_by(PlayerGuess.score.desc(), PlayerGuess.created_at))
            return [GuessView.model_validate(g) for g in result.scalars().all()]

    async def delete_guesses_for_player(self, player_id: str) -> None:
        async with self.db.get_session() as session:
            await session.execute(
                delete(PlayerGuess).where(
                    or_(PlayerGuess.player_id == player_id, PlayerGuess.vip_player_id == player_id)
                )
            )

    # Realtime

    def subscribe(
        self,
        table: str,
        filter: Optional[Dict[str, Any]],
        handler: ChangeHandler,
        events: Optional[Set[ChangeType]] = None,
    ) -> Optional[Subscription]:
        return self.hub.subscribe(table, filter, handler, events)

    def subscribe_channel(self, channel: str, handler: BroadcastHandler) -> Optional[Subscription]:
        return self.hub.subscribe_channel(channel, handler)

    def unsubscribe(self, subscription: Optional[Subscription]) -> None:
        if subscription is not None:
            self.hub.unsubscribe(subscription)

    async def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        await self.hub.publish_broadcast(BroadcastEvent(channel=channel, event=event, payload=payload))

    # Server-side operations

    async def reassign_host(self, room_id: str, leaving_player_id: Optional[str]) -> Optional[HostAssignment]:
        async with self.db.get_session() as session:
            assignment, changed = await self._elect_host(session, room_id, leaving_player_id)

        for old, new in changed:
            await self._notify("players", ChangeType.UPDATE, new=new, old=old)
        if assignment:
            logger.info(f"[HOST] Room {room_id} host is now {assignment.new_host_name}")
        return assignment

    async def end_game_early(self, room_id: str) -> None:
        async with self.db.get_session() as session:
            room = await session.get(GameRoom, room_id)
            if not room:
                raise RowNotFoundError(f"Room {room_id} not found")
            room.game_phase = GamePhase.FINISHED
            await session.flush()
            await session.refresh(room)
            view = RoomView.model_validate(room)

        logger.info(f"[EARLY_END] Room {room_id} finished early")
        await self._notify("game_rooms", ChangeType.UPDATE, new=_dump(view), old={"id": room_id})

    async def kick_inactive_player(self, room_id: str, player_id: str) -> int:
        async with self.db.get_session() as session:
            player = await session.get(Player, player_id)
            if not player or player.room_id != room_id:
                raise RowNotFoundError(f"Player {player_id} not in room {room_id}")

            old = _dump(PlayerView.model_validate(player))
            changed = []
            if player.is_host:
                _, changed = await self._elect_host(session, room_id, player_id)

            await session.execute(
                delete(PlayerGuess).where(
                    or_(PlayerGuess.player_id == player_id, PlayerGuess.vip_player_id == player_id)
                )
            )
            await session.execute(delete(PlayerSelection).where(PlayerSelection.player_id == player_id))
            await session.delete(player)
            await session.flush()

            result = await session.execute(
                select(func.count(Player.id)).where(Player.room_id == room_id, Player.is_ai.is_(False))
            )
            remaining = result.scalar_one()

        logger.info(f"[INACTIVITY] Kicked player {player_id} from room {room_id}, {remaining} humans left")
        for previous, new in changed:
            if new["id"] != player_id:
                await self._notify("players", ChangeType.UPDATE, new=new, old=previous)
        await self._notify("players", ChangeType.DELETE, old=old)
        return remaining

    async def validate_join_code(self, join_code: str, user_id: Optional[str] = None) -> JoinCodeValidation:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(GameRoom).where(GameRoom.join_code == join_code.strip().upper())
            )
            room = result.scalar_one_or_none()
            if not room:
                return JoinCodeValidation(room_exists=False)

            count = (await session.execute(
                select(func.count(Player.id)).where(Player.room_id == room.id)
            )).scalar_one()

            already_joined = False
            if user_id:
                existing = (await session.execute(
                    select(Player.id).where(Player.room_id == room.id, Player.user_id == user_id)
                )).first()
                already_joined = existing is not None

            return JoinCodeValidation(
                room_exists=True,
                room_id=room.id,
                player_count=count,
                room_status=room.status,
                user_already_joined=already_joined,
            )

    async def invoke_ai_topic_selection(self, player_id: str, room_id: str, round: int) -> AiTurnResult:
        from app.services.ai_player import AiPlayerService
        return await AiPlayerService(self).select_topic(player_id, room_id, round)

    async def invoke_ai_guess(self, player_id: str, room_id: str, round: int, vip_player_id: str) -> AiTurnResult:
        from app.services.ai_player import AiPlayerService
        return await AiPlayerService(self).guess(player_id, room_id, round, vip_player_id)

    # Catalog

    async def get_organization(self, organization_id: str) -> Optional[OrganizationView]:
        async with self.db.get_session() as session:
            org = await session.get(Organization, organization_id)
            return OrganizationView.model_validate(org) if org else None

    async def list_topics(self, organization_id: Optional[str] = None) -> List[TopicView]:
        async with self.db.get_session() as session:
            include_global = True
            custom: List[TopicView] = []
            if organization_id:
                org = await session.get(Organization, organization_id)
                include_global = org is None or org.use_knowsy_topics
                result = await session.execute(
                    select(CustomTopic)
                    .where(CustomTopic.organization_id == organization_id, CustomTopic.is_active.is_(True))
                    .order_by(CustomTopic.name)
                )
                custom = [
                    TopicView(id=t.id, name=t.name, description=t.description, is_custom=True)
                    for t in result.scalars().all()
                ]

            topics: List[TopicView] = []
            if include_global:
                result = await session.execute(select(Topic).order_by(Topic.name))
                topics = [TopicView.model_validate(t) for t in result.scalars().all()]

            return topics + custom

    async def list_topic_items(self, topic_id: str, is_custom: bool = False) -> List[TopicItemView]:
        async with self.db.get_session() as session:
            if is_custom:
                result = await session.execute(
                    select(CustomTopicItem)
                    .where(CustomTopicItem.custom_topic_id == topic_id)
                    .order_by(CustomTopicItem.sort_order, CustomTopicItem.name)
                )
                return [
                    TopicItemView(id=i.id, topic_id=topic_id, name=i.name, image_url=i.image_url, is_custom=True)
                    for i in result.scalars().all()
                ]

            result = await session.execute(
                select(TopicItem).where(TopicItem.topic_id == topic_id).order_by(TopicItem.sort_order, TopicItem.name)
            )
            return [TopicItemView.model_validate(i) for i in result.scalars().all()]

    async def record_game_history(self, history: GameHistoryCreate) -> None:
        async with self.db.get_session() as session:
            values = history.model_dump(exclude_none=True)
            session.add(GameHistory(**values))

    # Internals

    async def _elect_host(self, session: AsyncSession, room_id: str, leaving_player_id: Optional[str]):
        """Make exactly one remaining player host: earliest-joined human, else earliest-joined"""
        result = await session.execute(
            select(Player).where(Player.room_id == room_id).order_by(Player.joined_at, Player.id)
        )
        players = result.scalars().all()
        candidates = [p for p in players if p.id != leaving_player_id]
        if not candidates:
            return None, []

        humans = [p for p in candidates if not p.is_ai]
        chosen = humans[0] if humans else candidates[0]

        changed = []
        for p in players:
            should_host = p.id == chosen.id
            if p.is_host != should_host:
                changed.append((_dump(PlayerView.model_validate(p)), p))
                p.is_host = should_host

        room = await session.get(GameRoom, room_id)
        if room:
            room.host_name = chosen.name
        await session.flush()

        changes = [(old, _dump(PlayerView.model_validate(p))) for old, p in changed]
        return HostAssignment(new_host_id=chosen.id, new_host_name=chosen.name), changes

    async def _notify(self, table: str, event: ChangeType, new: Optional[Dict[str, Any]] = None,
                      old: Optional[Dict[str, Any]] = None) -> None:
        await self.hub.publish_change(ChangeEvent(table=table, event=event, new=new or {}, old=old or {}))
