"""
Health check endpoints
"""

from fastapi import APIRouter

from app.core.database import health_check as db_health_check
from app.core.redis_client import redis_health_check
from app.services.realtime import realtime_hub
from app.websocket.connection_manager import connection_manager

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "knowsy-game-server",
        "version": "1.0.0",
        "realtime_subscriptions": realtime_hub.subscription_count,
        "websocket_connections": connection_manager.get_connection_count(),
    }


@router.get("/health/database")
async def database_health():
    """Database connection health check"""
    try:
        return await db_health_check()
    except Exception as e:
        return {
            "status": "error",
            "error": str(e)
        }


@router.get("/health/redis")
async def redis_health():
    """
    Redis connection health check

    Redis only carries realtime fan-out between workers, so "unavailable"
    here does not make the service unhealthy.
    """
    try:
        return await redis_health_check()
    except Exception as e:
        return {
            "status": "error",
            "error": str(e)
        }
