import redis.asyncio as aioredis
from redis.asyncio import Redis
from typing import Optional

from app.core.config import settings
from app.core.logging_config import logger


class RedisClient:
    """Redis connection holder used by the Redis OTP store"""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self.redis: Optional[Redis] = None

    async def connect(self):
        """Connect to Redis"""
        try:
            self.redis = aioredis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )
            await self.redis.ping()
            logger.info("Redis connected successfully")
        except Exception as e:
            logger.error(f"Redis connection error: {e}")
            raise

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
        logger.info("Redis disconnected")

    @property
    def client(self) -> Redis:
        if self.redis is None:
            raise RuntimeError("Redis client used before connect()")
        return self.redis

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.warning(f"Redis PING error: {e}")
            return False
