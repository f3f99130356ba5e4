"""
WebSocket endpoints
Live feed of one room's changes
"""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.coordinator.topic_selection import INACTIVITY_CHANNEL
from app.websocket.connection_manager import connection_manager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/rooms/{room_id}")
async def websocket_room_endpoint(websocket: WebSocket, room_id: str):
    """
    Stream row changes for the room and its inactivity broadcasts

    Clients may send {"type": "ping"}; anything else is answered with an error.
    """
    connection_id = await connection_manager.connect(
        websocket, room_id, channels=[INACTIVITY_CHANNEL.format(room_id=room_id)]
    )
    if connection_id is None:
        await websocket.close(code=4002, reason="Connection limit reached")
        return

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await connection_manager.send_to_connection(
                    connection_id, {"type": "error", "data": {"message": "Invalid JSON format"}}
                )
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await connection_manager.send_to_connection(connection_id, {"type": "pong"})
            else:
                await connection_manager.send_to_connection(
                    connection_id, {"type": "error", "data": {"message": "Invalid message format"}}
                )
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for watcher {connection_id} in room {room_id}")
    finally:
        await connection_manager.disconnect(connection_id, "Connection closed")
