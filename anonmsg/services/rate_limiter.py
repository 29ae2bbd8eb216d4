from fastapi import Request, HTTPException
from typing import Dict, Optional, Tuple
import threading
import time
import logging

from ..redis import RedisClient
from ..observability import RATE_LIMITED_TOTAL

logger = logging.getLogger(__name__)


class MemoryWindowStore:
    """In-process fixed-window counters, used when no Redis is configured."""

    def __init__(self):
        # window length -> (window index, counts by key); only the current window is kept
        self.windows: Dict[int, Tuple[int, Dict[str, int]]] = {}
        self.lock = threading.Lock()

    def __len__(self) -> int:
        return sum(len(counts) for _, counts in self.windows.values())

    async def incr(self, key: str, window: int) -> Optional[int]:
        current_window = int(time.time() / window)
        with self.lock:
            window_index, counts = self.windows.get(window, (current_window, {}))
            if window_index != current_window:
                counts = {}
                self.windows[window] = (current_window, counts)
            else:
                self.windows.setdefault(window, (current_window, counts))
            counts[key] = counts.get(key, 0) + 1
            return counts[key]

    async def close(self):
        self.windows.clear()


class RedisWindowStore:
    def __init__(self, client: RedisClient):
        self.client = client

    async def incr(self, key: str, window: int) -> Optional[int]:
        current_window = int(time.time() / window)
        return await self.client.incr_window(f"{key}:{current_window}", window)

    async def close(self):
        await self.client.close()


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimiter:
    """Route dependency capping requests per client IP over a fixed window.

    The limit and window are read from settings by attribute name, so one
    limiter instance follows whatever settings the app was built with.
    """

    def __init__(self, scope: str, limit_setting: str, window_setting: str, error: str):
        self.scope = scope
        self.limit_setting = limit_setting
        self.window_setting = window_setting
        self.error = error

    async def __call__(self, request: Request):
        settings = request.app.state.settings
        limit = getattr(settings, self.limit_setting)
        window = getattr(settings, self.window_setting)
        store = request.app.state.rate_limit_store

        ip = client_ip(request)
        count = await store.incr(f"rate:{self.scope}:{ip}", window)
        if count is None:
            # Graceful degradation: allow if the counter store is down
            return

        if count > limit:
            RATE_LIMITED_TOTAL.labels(scope=self.scope).inc()
            logger.warning("Rate limit exceeded", extra={"client_ip": ip, "path": request.url.path})
            retry_after = window - int(time.time()) % window
            raise HTTPException(status_code=429, detail=self.error, headers={"Retry-After": str(retry_after)})


link_rate_limit = RateLimiter(
    scope="links",
    limit_setting="LINK_RATE_LIMIT",
    window_setting="LINK_RATE_WINDOW",
    error="Too many links created, try again later.",
)

message_rate_limit = RateLimiter(
    scope="messages",
    limit_setting="MESSAGE_RATE_LIMIT",
    window_setting="MESSAGE_RATE_WINDOW",
    error="Too many messages sent, try again later.",
)
