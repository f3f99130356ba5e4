"""
API v1 router
"""

from fastapi import APIRouter

from app.api.v1.endpoints import health, rooms, players, submissions, functions, catalog, websocket

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(rooms.router, prefix="/rooms", tags=["rooms"])
api_router.include_router(players.router, prefix="/players", tags=["players"])
api_router.include_router(submissions.router, tags=["submissions"])
api_router.include_router(functions.router, tags=["functions"])
api_router.include_router(catalog.router, tags=["catalog"])
api_router.include_router(websocket.router, prefix="/ws", tags=["websocket"])
