"""
Redis client configuration and connection management
Optional pub/sub fan-out of realtime row-change events between server workers
"""

import redis.asyncio as redis
from typing import Optional, Callable, Awaitable
from app.core.config import settings
import logging
import json
import asyncio
import time

logger = logging.getLogger(__name__)


class RedisManager:
    """Redis manager with connection recovery and error handling"""

    def __init__(self):
        self.pool: Optional[redis.ConnectionPool] = None
        self.client: Optional[redis.Redis] = None
        self._connection_retries = 0
        self._max_retries = 3
        self._retry_delay = 1.0
        self._health_check_interval = 30
        self._last_health_check = 0
        self._listener_task: Optional[asyncio.Task] = None

    @property
    def is_available(self) -> bool:
        return self.client is not None

    async def initialize(self):
        """Initialize Redis connection pool"""
        try:
            self.pool = redis.ConnectionPool.from_url(
                settings.REDIS_URL,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                retry_on_timeout=True,
                health_check_interval=30,
                encoding="utf-8",
                decode_responses=True
            )

            self.client = redis.Redis(connection_pool=self.pool)

            if not await self._test_connection():
                raise redis.ConnectionError("Redis ping failed")
            logger.info("Redis manager initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Redis manager: {e}")
            self.client = None
            # Realtime fan-out degrades to in-process delivery without Redis
            if settings.ENVIRONMENT == "production":
                raise

    async def _test_connection(self) -> bool:
        """Test Redis connection health"""
        try:
            if not self.client:
                return False

            await self.client.ping()
            self._connection_retries = 0
            self._last_health_check = time.time()
            return True

        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning(f"Redis connection test failed: {e}")
            return False

    async def _reconnect(self) -> bool:
        """Attempt to reconnect to Redis with exponential backoff"""
        if self._connection_retries >= self._max_retries:
            logger.error("Maximum Redis reconnection attempts exceeded")
            return False

        self._connection_retries += 1
        delay = self._retry_delay * (2 ** (self._connection_retries - 1))

        logger.info(f"Attempting Redis reconnection {self._connection_retries}/{self._max_retries} after {delay}s")
        await asyncio.sleep(delay)

        try:
            if self.client:
                await self.client.aclose()
            if self.pool:
                await self.pool.aclose()

            await self.initialize()
            return self.client is not None

        except Exception as e:
            logger.error(f"Redis reconnection attempt {self._connection_retries} failed: {e}")
            return False

    async def health_check(self) -> bool:
        """Perform periodic health check"""
        current_time = time.time()
        if current_time - self._last_health_check < self._health_check_interval:
            return True

        if await self._test_connection():
            return True

        return await self._reconnect()

    async def get_client(self) -> redis.Redis:
        """Get Redis client with health check"""
        if not await self.health_check():
            raise RuntimeError("Redis connection unavailable")
        return self.client

    async def execute_with_retry(self, operation, *args, **kwargs):
        """Execute Redis operation with automatic retry on connection failure"""
        max_attempts = 2

        for attempt in range(max_attempts):
            try:
                client = await self.get_client()
                return await operation(client, *args, **kwargs)
            except (redis.ConnectionError, redis.TimeoutError) as e:
                if attempt == max_attempts - 1:
                    logger.error(f"Redis operation failed after {max_attempts} attempts: {e}")
                    raise
                logger.warning(f"Redis operation attempt {attempt + 1} failed, retrying: {e}")
                await asyncio.sleep(0.5)

    async def publish_message(self, channel: str, message: dict):
        """Publish message to Redis channel with retry"""
        async def _publish_operation(client, channel, message):
            return await client.publish(channel, json.dumps(message, default=str))

        try:
            await self.execute_with_retry(_publish_operation, channel, message)
        except Exception as e:
            logger.error(f"Failed to publish message: {e}")
            raise

    async def listen(self, pattern: str, on_message: Callable[[str, dict], Awaitable[None]]):
        """Start a background task relaying messages matching a channel pattern"""
        if not self.client or self._listener_task:
            return

        pubsub = self.client.pubsub()
        await pubsub.psubscribe(pattern)

        async def _relay():
            try:
                async for message in pubsub.listen():
                    if message.get("type") != "pmessage":
                        continue
                    try:
                        await on_message(message["channel"], json.loads(message["data"]))
                    except Exception as e:
                        logger.error(f"Failed to relay Redis message: {e}")
            except asyncio.CancelledError:
                pass
            finally:
                await pubsub.aclose()

        self._listener_task = asyncio.create_task(_relay())
        logger.info(f"Listening for Redis messages on {pattern}")

    async def close(self):
        """Close Redis connections"""
        if self._listener_task:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None
        if self.client:
            await self.client.aclose()
        if self.pool:
            await self.pool.aclose()

        self.client = None
        self.pool = None
        logger.info("Redis connections closed")


# Global Redis manager instance
redis_manager = RedisManager()


async def init_redis():
    """Initialize Redis connection pool"""
    await redis_manager.initialize()


async def close_redis():
    """Close Redis connections"""
    await redis_manager.close()


async def redis_health_check() -> dict:
    """Redis health check for monitoring"""
    if not redis_manager.is_available:
        return {"status": "disabled"}
    try:
        is_healthy = await redis_manager.health_check()
        return {
            "status": "healthy" if is_healthy else "unhealthy",
            "connection_retries": redis_manager._connection_retries,
            "last_health_check": redis_manager._last_health_check
        }
    except Exception as e:
        return {
            "status": "error",
            "error": str(e),
            "connection_retries": redis_manager._connection_retries
        }
