"""
Game session
One player's view of a room: loads rows, listens for changes, polls, and runs
the coordinator for the current phase
"""

import asyncio
import logging
import random
from typing import List, Optional

from app.core.config import settings
from app.schemas.game import RoomView, PlayerView
from app.schemas.realtime import ChangeEvent, ChangeType, BroadcastEvent
from app.services.errors import StoreError, RowNotFoundError
from app.services.store import GameStore
from app.coordinator.ai_triggers import AiTurnTrigger
from app.coordinator.base import PhaseCoordinator
from app.coordinator.branding import Branding
from app.coordinator.host import HostAuthority
from app.coordinator.notifier import Notifier
from app.coordinator.phase import dispatch, phase_key, can_transition
from app.coordinator.topic_selection import INACTIVITY_CHANNEL, INACTIVITY_EVENT

logger = logging.getLogger(__name__)


class GameSession:
    """
    Coordinates one player session against a shared GameStore.

    Realtime notifications and the poll loop are two triggers for the same
    refresh; every decision is recomputed from freshly read rows, so missed,
    duplicated or reordered notifications only delay progress.
    """

    def __init__(
        self,
        store: GameStore,
        room_id: str,
        user_id: Optional[str] = None,
        player_name: Optional[str] = None,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
        poll_interval: Optional[float] = None,
        lock_release_seconds: Optional[float] = None,
        topic_selection_seconds: Optional[int] = None,
        guessing_seconds: Optional[int] = None,
        timer_tick: float = 1.0,
    ):
        self.store = store
        self.room_id = room_id
        self.user_id = user_id
        self.player_name = player_name
        self.notifier = notifier or Notifier()
        self.rng = rng or random.Random()

        self.poll_interval = settings.POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        self.lock_release_seconds = (
            settings.TRANSITION_LOCK_RELEASE_SECONDS if lock_release_seconds is None else lock_release_seconds
        )
        self.topic_selection_seconds = topic_selection_seconds or settings.TOPIC_SELECTION_TIME_LIMIT
        self.guessing_seconds = guessing_seconds or settings.GUESSING_TIME_LIMIT
        self.timer_tick = timer_tick

        self.room: Optional[RoomView] = None
        self.players: List[PlayerView] = []
        self.current_player: Optional[PlayerView] = None
        self.host_migrating = False
        self.active = False
        self.exit_path: Optional[str] = None

        self.branding = Branding()
        self.host = HostAuthority(self)
        self.ai = AiTurnTrigger(self)
        self.coordinator: Optional[PhaseCoordinator] = None
        self._coordinator_key = None

        self._subscriptions = []
        self._poll_task: Optional[asyncio.Task] = None
        self._phase_lock = asyncio.Lock()

    @classmethod
    async def join(cls, store: GameStore, join_code: str, **kwargs) -> "GameSession":
        """Open a started session for the room behind a join code"""
        room = await store.find_room_by_code(join_code)
        if not room:
            raise RowNotFoundError(f"Room {join_code} not found")
        session = cls(store, room.id, **kwargs)
        await session.start()
        return session

    @property
    def is_host(self) -> bool:
        """Cached flag for display; writes go through HostAuthority.is_host"""
        return bool(self.current_player and self.current_player.is_host)

    # Lifecycle

    async def start(self) -> None:
        self.active = True
        try:
            if not await self.load():
                return
            self.branding = await Branding.for_room(self.store, self.room.organization_id)
        except StoreError as e:
            self.notifier.error("Error loading room", e.message)

        self._subscribe()
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info(f"[SESSION] Started for room {self.room_id} as {self.player_name or self.user_id}")
        await self.refresh()

    async def stop(self) -> None:
        """Tear down subscriptions, the poll loop and the phase coordinator; writes in flight continue"""
        if not self.active:
            return
        self.active = False
        for subscription in self._subscriptions:
            self.store.unsubscribe(subscription)
        self._subscriptions = []

        if self._poll_task and self._poll_task is not asyncio.current_task():
            self._poll_task.cancel()
        self._poll_task = None

        if self.coordinator:
            await self.coordinator.exit()
        logger.info(f"[SESSION] Stopped for room {self.room_id}")

    async def leave(self, exit_path: Optional[str] = None) -> None:
        """End the session and record where the player goes next"""
        self.exit_path = exit_path or self.branding.exit_path
        await self.stop()

    async def leave_room(self) -> None:
        """Leave for good: hand off host, delete this player's rows, end the session"""
        from app.coordinator.lobby import Lobby

        if self.current_player:
            await Lobby(self.store, self.notifier).leave_room(self.current_player)
        await self.leave()

    # Loading

    async def load(self) -> bool:
        """Re-read the room and players; False when the room is gone"""
        room = await self.store.read_room(self.room_id)
        if room is None:
            logger.info(f"[SESSION] Room {self.room_id} no longer exists")
            self.notifier.error("Room not found", "This room no longer exists.")
            await self.leave()
            return False
        self.room = room
        await self.load_players()
        return True

    async def load_players(self) -> List[PlayerView]:
        players = await self.store.list_players(self.room_id)
        self.players = players

        if any(p.is_host for p in players):
            self.host_migrating = False

        current = None
        if self.user_id:
            current = next((p for p in players if p.user_id == self.user_id), None)
        if current is None and self.player_name:
            current = next((p for p in players if p.name == self.player_name), None)
        self.current_player = current
        return players

    # Reconciliation

    async def refresh(self) -> None:
        """Re-sample the store and let the current phase act on it"""
        if not self.active:
            return
        try:
            if not await self.load():
                return
            await self.sync_phase()
            if self.active and self.coordinator:
                await self.coordinator.reconcile()
            if self.active:
                await self.ai.trigger()
        except StoreError as e:
            self.notifier.error("Connection problem", e.message)

    async def sync_phase(self) -> None:
        """Swap coordinators when the room has moved to another phase, round or VIP"""
        async with self._phase_lock:
            room = self.room
            if room is None or not self.active:
                return
            previous = self.coordinator
            if previous and self._coordinator_key == phase_key(room):
                return

            if previous:
                if not can_transition(previous.phase, room.game_phase):
                    logger.warning(
                        f"[SESSION] Unexpected phase change {previous.phase.value} -> {room.game_phase.value}"
                    )
                await previous.exit()

            self.coordinator = dispatch(self, room)
            self._coordinator_key = phase_key(room)
            logger.info(f"[SESSION] Room {self.room_id} entering {room.game_phase.value} (round {room.current_round})")
            await self.coordinator.enter()

    async def _poll_loop(self) -> None:
        while self.active:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"[SESSION] Poll failed: {e}")

    # Realtime

    def _subscribe(self) -> None:
        subscriptions = [
            self.store.subscribe("players", {"room_id": self.room_id}, self._on_player_change),
            self.store.subscribe("game_rooms", {"id": self.room_id}, self._on_room_change),
            self.store.subscribe(
                "player_selections", {"room_id": self.room_id}, self._on_submission, {ChangeType.INSERT}
            ),
            self.store.subscribe(
                "player_guesses", {"room_id": self.room_id}, self._on_submission, {ChangeType.INSERT}
            ),
            self.store.subscribe_channel(INACTIVITY_CHANNEL.format(room_id=self.room_id), self._on_inactivity_kick),
        ]
        self._subscriptions = [s for s in subscriptions if s is not None]
        if not self._subscriptions:
            logger.info(f"[SESSION] No realtime channel for room {self.room_id}, polling only")

    async def _on_player_change(self, event: ChangeEvent) -> None:
        if not self.active:
            return
        if event.event == ChangeType.DELETE:
            await self.handle_player_left(PlayerView.model_validate(event.old))
        elif event.event == ChangeType.INSERT:
            self.notifier.info(f"{event.new.get('name', 'A player')} joined the game.")
        elif event.event == ChangeType.UPDATE and event.new.get("is_host") and not event.old.get("is_host"):
            if self.user_id and event.new.get("user_id") == self.user_id:
                self.notifier.info("You are now the host")
            else:
                self.notifier.info("New host assigned", f"{event.new.get('name')} is now the host")
        await self.refresh()

    async def _on_room_change(self, event: ChangeEvent) -> None:
        if not self.active:
            return
        if event.event == ChangeType.DELETE:
            await self.leave()
            return
        await self.refresh()

    async def _on_submission(self, event: ChangeEvent) -> None:
        if not self.active or not self.coordinator:
            return
        try:
            await self.coordinator.reconcile()
        except StoreError as e:
            self.notifier.error("Connection problem", e.message)

    async def _on_inactivity_kick(self, event: BroadcastEvent) -> None:
        if event.event != INACTIVITY_EVENT:
            return
        name = event.payload.get("playerName", "A player")
        if self.current_player and name == self.current_player.name:
            return
        self.notifier.info(f"{name} was removed due to inactivity.")

    async def handle_player_left(self, departed: PlayerView) -> None:
        """A player row was deleted: migrate host, restart a VIP-less round, or end the game"""
        self.notifier.info(f"{departed.name} has left the game.", f"{departed.name} had {departed.score} points.")

        if self.current_player and departed.id == self.current_player.id:
            await self.leave()
            return

        room_before = self.room
        try:
            if departed.is_host:
                logger.info(f"[HOST] Host {departed.name} left room {self.room_id}, migrating")
                await self.host.handle_host_departure(departed)
                await self.load_players()

            if room_before and departed.id == room_before.current_vip_id:
                await self.host.restart_round_without_vip()

            if not await self.load():
                return
            if await self.host.end_game_if_abandoned(len(self.players), "player left", require_playing=True):
                await self.leave()
        except StoreError as e:
            self.notifier.error("Connection problem", e.message)
