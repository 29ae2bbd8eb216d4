import redis.asyncio as redis
from typing import Optional
import logging

logger = logging.getLogger(__name__)

class RedisClient:
    def __init__(self, url: str):
        self.url = url
        self.client: Optional[redis.Redis] = None

    async def connect(self):
        self.client = redis.from_url(
            self.url,
            encoding="utf-8",
            decode_responses=True
        )
        await self.client.ping()

    async def close(self):
        if self.client:
            await self.client.aclose()
            self.client = None

    async def incr_window(self, key: str, window: int) -> Optional[int]:
        """Increment a fixed-window counter, setting its TTL on the first hit.

        Returns None when Redis is unavailable so callers can let the request through.
        """
        if not self.client:
            return None
        try:
            count = await self.client.incr(key)
            if count == 1:
                await self.client.expire(key, window)
            return count
        except redis.RedisError as e:
            logger.error(f"Redis counter error for {key}: {e}")
            return None
