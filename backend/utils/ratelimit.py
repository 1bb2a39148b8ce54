# backend/utils/ratelimit.py
import asyncio
import logging
import math
import threading
import time
from collections import OrderedDict
from typing import Callable, Iterable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class TokenBucket:
    """Classic token bucket refilled continuously at ``rate`` tokens/second."""

    def __init__(self, capacity: float, rate: float, clock: Callable[[], float] = time.monotonic):
        if capacity <= 0 or rate <= 0:
            raise ValueError("capacity and rate must be positive")
        self.capacity = capacity
        self.rate = rate
        self._clock = clock
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = threading.Lock()

    @classmethod
    def per_minute(cls, requests: int, **kwargs) -> "TokenBucket":
        return cls(capacity=requests, rate=requests / 60.0, **kwargs)

    def _refill(self):
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated = now

    def try_consume(self, tokens: float = 1) -> bool:
        with self._lock:
            self._refill()
            if self._tokens >= tokens:
                self._tokens -= tokens
                return True
            return False

    def wait_time(self, tokens: float = 1) -> float:
        with self._lock:
            self._refill()
            missing = tokens - self._tokens
            return 0.0 if missing <= 0 else missing / self.rate

    async def acquire(self, tokens: float = 1):
        # Awaits instead of sleeping the thread, so the event loop keeps serving
        while not self.try_consume(tokens):
            await asyncio.sleep(self.wait_time(tokens))


class BucketRegistry:
    """Buckets per key, least recently used ones evicted past ``max_keys``."""

    def __init__(self, factory: Callable[[], TokenBucket], max_keys: int = 100_000):
        self._factory = factory
        self._max_keys = max_keys
        self._buckets: "OrderedDict[str, TokenBucket]" = OrderedDict()
        self._lock = threading.Lock()

    def resolve(self, key: str) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self._factory()
                self._buckets[key] = bucket
            self._buckets.move_to_end(key)
            while len(self._buckets) > self._max_keys:
                self._buckets.popitem(last=False)
            return bucket

    def clear(self):
        with self._lock:
            self._buckets.clear()


AUTH_PATHS = ("/login", "/register")


def classify(request: Request) -> str:
    path = request.url.path
    if path in AUTH_PATHS:
        return "auth"
    if request.method == "POST" and path in ("/orders", "/orders/checkout"):
        return "order"
    return "general"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, general_per_minute: int = 100, auth_per_minute: int = 10,
                 order_per_minute: int = 20, enabled: bool = True, trusted_proxies: Iterable[str] = ()):
        super().__init__(app)
        self.enabled = enabled
        # X-Forwarded-For is only believed when the peer is one of these
        self.trusted_proxies = frozenset(trusted_proxies)
        self.registries = {
            "general": BucketRegistry(lambda: TokenBucket.per_minute(general_per_minute)),
            "auth": BucketRegistry(lambda: TokenBucket.per_minute(auth_per_minute)),
            "order": BucketRegistry(lambda: TokenBucket.per_minute(order_per_minute)),
        }

    def client_key(self, request: Request) -> Optional[str]:
        peer = request.client.host if request.client else "unknown"
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded and peer in self.trusted_proxies:
            return forwarded.split(",")[0].strip()
        return peer

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or request.scope.get("type") != "http":
            return await call_next(request)

        category = classify(request)
        key = self.client_key(request)
        bucket = self.registries[category].resolve(key)
        if not bucket.try_consume():
            retry_after = max(1, math.ceil(bucket.wait_time()))
            logger.warning("Rate limit exceeded (%s) for %s on %s", category, key, request.url.path)
            return JSONResponse(
                status_code=429,
                content={"kind": "RateLimited", "detail": "Too many requests, please try again later"},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
