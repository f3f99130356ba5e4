"""
HTTP-backed GameStore
Lets a player session run in a separate process from the storage service
"""

import logging
from typing import List, Optional, Dict, Any, Set

import httpx

from app.core.config import settings
from app.schemas.game import (
    GamePhase, RoomView, PlayerView, PlayerCreate, PlayerUpdate, RoomUpdate, PhaseAdvance,
    SelectionCreate, SelectionView, GuessCreate, GuessView, JoinCodeValidation,
    HostAssignment, AiTurnResult, GameHistoryCreate,
)
from app.schemas.room import RoomCreate
from app.schemas.catalog import TopicView, TopicItemView, OrganizationView
from app.schemas.realtime import ChangeType
from app.services.errors import StoreError, DuplicateRowError, RowNotFoundError
from app.services.realtime import Subscription, ChangeHandler, BroadcastHandler
from app.services.store import GameStore

logger = logging.getLogger(__name__)


class HttpGameStore(GameStore):
    """
    GameStore over the REST API.

    Push notifications are not carried over plain HTTP, so subscribe returns
    None and sessions rely on their poll loop alone.
    """

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=settings.API_TIMEOUT,
        )

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {url} failed: {e}") from e

        if response.status_code == 404:
            raise RowNotFoundError(self._detail(response))
        if response.status_code == 409:
            raise DuplicateRowError(self._detail(response))
        if response.is_error:
            raise StoreError(self._detail(response), status_code=response.status_code)
        return response

    async def _get_optional(self, url: str, **kwargs) -> Optional[Dict[str, Any]]:
        try:
            return (await self._request("GET", url, **kwargs)).json()
        except RowNotFoundError:
            return None

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            return str(response.json().get("detail", response.text))
        except ValueError:
            return response.text

    # Rooms

    async def read_room(self, room_id: str) -> Optional[RoomView]:
        data = await self._get_optional(f"/rooms/{room_id}")
        return RoomView.model_validate(data) if data else None

    async def find_room_by_code(self, join_code: str) -> Optional[RoomView]:
        data = await self._get_optional(f"/rooms/by-code/{join_code}")
        return RoomView.model_validate(data) if data else None

    async def insert_room(self, room: RoomCreate) -> RoomView:
        response = await self._request("POST", "/rooms", json=room.model_dump(mode="json"))
        return RoomView.model_validate(response.json())

    async def update_room(self, room_id: str, changes: RoomUpdate) -> RoomView:
        response = await self._request(
            "PATCH", f"/rooms/{room_id}", json=changes.model_dump(mode="json", exclude_unset=True)
        )
        return RoomView.model_validate(response.json())

    async def advance_phase(self, room_id: str, expected_phase: GamePhase, changes: RoomUpdate) -> bool:
        body = PhaseAdvance(expected_phase=expected_phase, changes=changes)
        response = await self._request(
            "POST", f"/rooms/{room_id}/advance", json=body.model_dump(mode="json", exclude_unset=True)
        )
        return bool(response.json().get("applied"))

    # Players

    async def list_players(self, room_id: str) -> List[PlayerView]:
        response = await self._request("GET", f"/rooms/{room_id}/players")
        return [PlayerView.model_validate(p) for p in response.json()]

    async def get_player(self, player_id: str) -> Optional[PlayerView]:
        data = await self._get_optional(f"/players/{player_id}")
        return PlayerView.model_validate(data) if data else None

    async def insert_player(self, player: PlayerCreate) -> PlayerView:
        response = await self._request("POST", "/players", json=player.model_dump(mode="json"))
        return PlayerView.model_validate(response.json())

    async def delete_player(self, player_id: str) -> None:
        await self._request("DELETE", f"/players/{player_id}")

    async def update_player(self, player_id: str, changes: PlayerUpdate) -> PlayerView:
        response = await self._request(
            "PATCH", f"/players/{player_id}", json=changes.model_dump(mode="json", exclude_unset=True)
        )
        return PlayerView.model_validate(response.json())

    # Selections

    async def insert_selection(self, selection: SelectionCreate) -> SelectionView:
        response = await self._request("POST", "/selections", json=selection.model_dump(mode="json"))
        return SelectionView.model_validate(response.json())

    async def list_selections(self, room_id: str, round: int) -> List[SelectionView]:
        response = await self._request("GET", f"/rooms/{room_id}/selections", params={"round": round})
        return [SelectionView.model_validate(s) for s in response.json()]

    async def get_selection(self, room_id: str, round: int, player_id: str) -> Optional[SelectionView]:
        data = await self._get_optional(f"/rooms/{room_id}/selections/{player_id}", params={"round": round})
        return SelectionView.model_validate(data) if data else None

    async def delete_selections_for_player(self, player_id: str) -> None:
        await self._request("DELETE", f"/players/{player_id}/selections")

    # Guesses

    async def insert_guess(self, guess: GuessCreate) -> GuessView:
        response = await self._request("POST", "/guesses", json=guess.model_dump(mode="json"))
        return GuessView.model_validate(response.json())

    async def count_guesses(self, room_id: str, round: int, vip_player_id: str) -> int:
        response = await self._request(
            "GET", f"/rooms/{room_id}/guesses/count",
            params={"round": round, "vip_player_id": vip_player_id},
        )
        return int(response.json()["count"])

    async def list_guesses(self, room_id: str, round: int, vip_player_id: Optional[str] = None) -> List[GuessView]:
        params: Dict[str, Any] = {"round": round}
        if vip_player_id:
            params["vip_player_id"] = vip_player_id
        response = await self._request("GET", f"/rooms/{room_id}/guesses", params=params)
        return [GuessView.model_validate(g) for g in response.json()]

    async def delete_guesses_for_player(self, player_id: str) -> None:
        await self._request("DELETE", f"/players/{player_id}/guesses")

    # Realtime

    def subscribe(
        self,
        table: str,
        filter: Optional[Dict[str, Any]],
        handler: ChangeHandler,
        events: Optional[Set[ChangeType]] = None,
    ) -> Optional[Subscription]:
        logger.debug(f"No push channel for {table}; relying on polling")
        return None

    def subscribe_channel(self, channel: str, handler: BroadcastHandler) -> Optional[Subscription]:
        return None

    def unsubscribe(self, subscription: Optional[Subscription]) -> None:
        return None

    async def broadcast(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        await self._request("POST", "/broadcast", json={"channel": channel, "event": event, "payload": payload})

    # Server-side operations

    async def reassign_host(self, room_id: str, leaving_player_id: Optional[str]) -> Optional[HostAssignment]:
        response = await self._request(
            "POST", f"/rooms/{room_id}/reassign-host", json={"leaving_player_id": leaving_player_id}
        )
        data = response.json()
        return HostAssignment.model_validate(data) if data else None

    async def end_game_early(self, room_id: str) -> None:
        await self._request("POST", f"/rooms/{room_id}/end-early")

    async def kick_inactive_player(self, room_id: str, player_id: str) -> int:
        response = await self._request("POST", f"/rooms/{room_id}/players/{player_id}/kick")
        return int(response.json()["remaining_count"])

    async def validate_join_code(self, join_code: str, user_id: Optional[str] = None) -> JoinCodeValidation:
        params = {"user_id": user_id} if user_id else None
        response = await self._request("GET", f"/rooms/validate/{join_code}", params=params)
        return JoinCodeValidation.model_validate(response.json())

    async def invoke_ai_topic_selection(self, player_id: str, room_id: str, round: int) -> AiTurnResult:
        response = await self._request(
            "POST", "/functions/ai-player-topic-selection",
            json={"playerId": player_id, "roomId": room_id, "round": round},
        )
        return AiTurnResult.model_validate(response.json())

    async def invoke_ai_guess(self, player_id: str, room_id: str, round: int, vip_player_id: str) -> AiTurnResult:
        response = await self._request(
            "POST", "/functions/ai-player-guess",
            json={"playerId": player_id, "roomId": room_id, "round": round, "vipPlayerId": vip_player_id},
        )
        return AiTurnResult.model_validate(response.json())

    # Catalog

    async def get_organization(self, organization_id: str) -> Optional[OrganizationView]:
        data = await self._get_optional(f"/organizations/{organization_id}")
        return OrganizationView.model_validate(data) if data else None

    async def list_topics(self, organization_id: Optional[str] = None) -> List[TopicView]:
        params = {"organization_id": organization_id} if organization_id else None
        response = await self._request("GET", "/topics", params=params)
        return [TopicView.model_validate(t) for t in response.json()]

    async def list_topic_items(self, topic_id: str, is_custom: bool = False) -> List[TopicItemView]:
        response = await self._request("GET", f"/topics/{topic_id}/items", params={"is_custom": is_custom})
        return [TopicItemView.model_validate(i) for i in response.json()]

    async def record_game_history(self, history: GameHistoryCreate) -> None:
        await self._request("POST", "/game-history", json=history.model_dump(mode="json"))

    async def close(self) -> None:
        await self.client.aclose()
