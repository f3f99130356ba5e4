"""
WebSocket connection manager
Streams a room's row changes and broadcasts to connected clients
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Dict, Set, Optional, List, Any

from fastapi import WebSocket

from app.core.config import settings
from app.schemas.realtime import ChangeEvent, BroadcastEvent
from app.services.realtime import RealtimeHub, Subscription, realtime_hub

logger = logging.getLogger(__name__)

# Tables a room watcher receives, with the column that scopes each to the room
ROOM_TABLES = {
    "game_rooms": "id",
    "players": "room_id",
    "player_selections": "room_id",
    "player_guesses": "room_id",
}


class ConnectionManager:
    """
    WebSocket connection manager

    Every connection watches exactly one room. Its hub subscriptions are
    registered on connect and removed on disconnect.
    """

    def __init__(self, hub: Optional[RealtimeHub] = None, max_connections: Optional[int] = None):
        self.hub = hub or realtime_hub
        self.max_connections = max_connections or settings.MAX_WEBSOCKET_CONNECTIONS

        # connection_id -> WebSocket
        self.active_connections: Dict[str, WebSocket] = {}
        # room_id -> connection ids
        self.room_connections: Dict[str, Set[str]] = {}
        # connection_id -> metadata
        self.connection_metadata: Dict[str, Dict[str, Any]] = {}

        self._subscriptions: Dict[str, List[Subscription]] = {}

    async def connect(self, websocket: WebSocket, room_id: str, channels: Optional[List[str]] = None) -> Optional[str]:
        """Accept a connection and start streaming the room to it; None when at capacity"""
        if len(self.active_connections) >= self.max_connections:
            logger.warning(f"Connection limit reached, rejecting watcher for room {room_id}")
            return None

        await websocket.accept()
        connection_id = str(uuid.uuid4())
        self.active_connections[connection_id] = websocket
        self.room_connections.setdefault(room_id, set()).add(connection_id)
        self.connection_metadata[connection_id] = {
            "connected_at": datetime.now(),
            "room_id": room_id,
        }

        async def forward_change(event: ChangeEvent) -> None:
            await self.send_to_connection(connection_id, {"type": "change", "data": event.model_dump(mode="json")})

        async def forward_broadcast(event: BroadcastEvent) -> None:
            await self.send_to_connection(connection_id, {"type": "broadcast", "data": event.model_dump(mode="json")})

        subscriptions = [
            self.hub.subscribe(table, {column: room_id}, forward_change)
            for table, column in ROOM_TABLES.items()
        ]
        for channel in channels or []:
            subscriptions.append(self.hub.subscribe_channel(channel, forward_broadcast))
        self._subscriptions[connection_id] = subscriptions

        logger.info(f"[WS_CONNECT] Watcher {connection_id} connected to room {room_id}")
        return connection_id

    async def disconnect(self, connection_id: str, reason: str = "Connection closed") -> None:
        for subscription in self._subscriptions.pop(connection_id, []):
            self.hub.unsubscribe(subscription)

        metadata = self.connection_metadata.pop(connection_id, {})
        room_id = metadata.get("room_id")
        if room_id in self.room_connections:
            self.room_connections[room_id].discard(connection_id)
            if not self.room_connections[room_id]:
                del self.room_connections[room_id]

        websocket = self.active_connections.pop(connection_id, None)
        if websocket is not None:
            try:
                await websocket.close(code=1000, reason=reason)
            except RuntimeError:
                # Already closed
                pass
        logger.info(f"[WS_DISCONNECT] Watcher {connection_id} left room {room_id}: {reason}")

    async def send_to_connection(self, connection_id: str, message: Dict[str, Any]) -> bool:
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except Exception as e:
            logger.warning(f"Error sending to watcher {connection_id}: {e}")
            await self.disconnect(connection_id, "Send failed")
            return False

    def get_connection_count(self) -> int:
        return len(self.active_connections)

    def get_room_connection_count(self, room_id: str) -> int:
        return len(self.room_connections.get(room_id, set()))


# Global connection manager instance
connection_manager = ConnectionManager()
