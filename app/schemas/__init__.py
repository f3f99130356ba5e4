# Pydantic schemas
from .game import (
    RoomStatus, GamePhase, RoomView, PlayerView, PlayerCreate, PlayerUpdate,
    RoomUpdate, PhaseAdvance, SelectionCreate, SelectionView, GuessCreate,
    GuessView, JoinCodeValidation, HostAssignment, RoundResult, GameHistoryCreate,
)
from .item import CatalogItem, OrganizationItem, CustomItem, SelectionItem
from .realtime import ChangeEvent, ChangeType, BroadcastEvent
from .catalog import TopicView, TopicItemView, OrganizationView

__all__ = [
    "RoomStatus", "GamePhase", "RoomView", "PlayerView", "PlayerCreate", "PlayerUpdate",
    "RoomUpdate", "PhaseAdvance", "SelectionCreate", "SelectionView", "GuessCreate",
    "GuessView", "JoinCodeValidation", "HostAssignment", "RoundResult", "GameHistoryCreate",
    "CatalogItem", "OrganizationItem", "CustomItem", "SelectionItem",
    "ChangeEvent", "ChangeType", "BroadcastEvent",
    "TopicView", "TopicItemView", "OrganizationView",
]
