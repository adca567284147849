"""
Change broadcast to connected dashboards over Redis pub/sub.

Publishing is fire-and-forget: a failed publish is logged and never fails
the write that triggered it.
"""

import json
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from eventops.config import settings
from eventops.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def event_channel(tenant_id: str) -> str:
    return f"tenant:{tenant_id}:events"


def cue_channel(event_id: str) -> str:
    return f"event:{event_id}:cues"


class RealtimeBroadcaster:
    def __init__(self, redis_url: str | None = None):
        self.redis_url = redis_url
        self.pool: ConnectionPool | None = None
        self.client: redis.Redis | None = None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def initialize(self) -> None:
        if self.client is not None:
            return
        if not self.redis_url:
            logger.info("REDIS_URL not set, realtime broadcast disabled")
            return

        self.pool = ConnectionPool.from_url(
            self.redis_url,
            max_connections=10,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
            decode_responses=True,
        )
        self.client = redis.Redis(connection_pool=self.pool)
        try:
            await self.client.ping()
        except redis.RedisError as e:
            await self.close()
            raise RuntimeError("Redis initialization failed") from e
        logger.info("Realtime broadcaster connected")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
        if self.pool is not None:
            await self.pool.disconnect()
        self.client = None
        self.pool = None

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            return bool(await self.client.ping())
        except redis.RedisError as e:
            logger.error("Redis ping failed", error=str(e))
            return False

    async def publish(self, channel: str, payload: dict[str, Any]) -> bool:
        if self.client is None:
            logger.debug("Realtime publish skipped", channel=channel)
            return False
        try:
            receivers = await self.client.publish(channel, json.dumps(payload, default=str))
        except redis.RedisError as e:
            logger.warning("Realtime publish failed", channel=channel, error=str(e))
            return False
        logger.debug("Realtime publish", channel=channel, receivers=receivers)
        return True


broadcaster = RealtimeBroadcaster(settings.REDIS_URL)


def get_broadcaster() -> RealtimeBroadcaster:
    """FastAPI dependency; overridden in tests."""
    return broadcaster
