"""
Phase state machine
The room row's game_phase alone decides which coordinator a session runs
"""

import logging
from typing import Dict, Set, Type, Tuple, Optional

from app.schemas.game import GamePhase, RoomView
from app.coordinator.base import PhaseCoordinator
from app.coordinator.topic_selection import TopicSelectionCoordinator
from app.coordinator.guessing import GuessingCoordinator
from app.coordinator.scoring import ScoringCoordinator

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[GamePhase, Set[GamePhase]] = {
    GamePhase.WAITING: {GamePhase.TOPIC_SELECTION, GamePhase.FINISHED},
    GamePhase.TOPIC_SELECTION: {GamePhase.GUESSING, GamePhase.FINISHED},
    # back to topic selection when the VIP leaves mid-guessing
    GamePhase.GUESSING: {GamePhase.SCORING, GamePhase.TOPIC_SELECTION, GamePhase.FINISHED},
    GamePhase.SCORING: {GamePhase.GUESSING, GamePhase.TOPIC_SELECTION, GamePhase.FINISHED},
    GamePhase.FINISHED: set(),
}


class WaitingCoordinator(PhaseCoordinator):
    """Lobby; nothing advances until the host starts the game"""
    phase = GamePhase.WAITING


class FinishedCoordinator(PhaseCoordinator):
    phase = GamePhase.FINISHED

    async def enter(self) -> None:
        # final scores
        await self.session.load_players()


COORDINATORS: Dict[GamePhase, Type[PhaseCoordinator]] = {
    GamePhase.WAITING: WaitingCoordinator,
    GamePhase.TOPIC_SELECTION: TopicSelectionCoordinator,
    GamePhase.GUESSING: GuessingCoordinator,
    GamePhase.SCORING: ScoringCoordinator,
    GamePhase.FINISHED: FinishedCoordinator,
}


def can_transition(source: GamePhase, target: GamePhase) -> bool:
    return source == target or target in TRANSITIONS[source]


def phase_key(room: RoomView) -> Tuple[GamePhase, int, Optional[str]]:
    """A new VIP or round in the same phase still needs a fresh coordinator"""
    return room.game_phase, room.current_round, room.current_vip_id


def dispatch(session, room: RoomView) -> PhaseCoordinator:
    return COORDINATORS[room.game_phase](session)
