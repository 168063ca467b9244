import logging

import redis.asyncio as redis
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from swift.middleware.metrics import RATE_LIMITED

logger = logging.getLogger("swift")

# Paths exempt from rate limiting
EXEMPT_PATHS = {"/api/health", "/docs", "/openapi.json", "/redoc", "/metrics"}


class RateLimiter:
    """Fixed-window request counter per client, stored in Redis.

    Fails open: when Redis is unreachable every request is allowed.
    """

    PREFIX = "swift:rate:"

    def __init__(self, redis_url: str, limit: int, window_s: int = 3600):
        self._redis_url = redis_url
        self._redis: redis.Redis | None = None
        self.limit = limit
        self.window_s = window_s

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    async def allow(self, client_key: str) -> bool:
        key = f"{self.PREFIX}{client_key}"
        try:
            r = await self._get_redis()
            async with r.pipeline(transaction=True) as pipe:
                # The window opens with its TTL already set; INCR keeps it
                pipe.set(key, 0, ex=self.window_s, nx=True)
                pipe.incr(key)
                _, count = await pipe.execute()
        except redis.RedisError as e:
            logger.warning("Rate limiter unavailable, allowing request: %s", e)
            return True
        return count <= self.limit

    async def ping(self) -> bool:
        try:
            r = await self._get_redis()
            return bool(await r.ping())
        except redis.RedisError:
            return False

    async def aclose(self):
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
        if limiter is None or request.method == "OPTIONS" or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        if not await limiter.allow(client_key(request)):
            RATE_LIMITED.inc()
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests"},
                headers={"Retry-After": str(limiter.window_s)},
            )

        return await call_next(request)
