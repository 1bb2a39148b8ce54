# backend/utils/geocoding.py
"""Address -> (latitude, longitude) through a Nominatim-compatible service.

The cache and the limiter are injected so several geocoders (or tests) can
share or isolate them. Nominatim allows roughly one request per second; the
limiter is awaited, never slept on.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from config import settings
from utils.errors import InvalidArgument, Unavailable
from utils.ratelimit import TokenBucket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


class GeocodeCache:
    def __init__(self):
        self._entries: Dict[str, Coordinates] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Coordinates]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: Coordinates):
        with self._lock:
            self._entries[key] = value

    def __len__(self):
        with self._lock:
            return len(self._entries)


class Geocoder:
    def __init__(self, client: httpx.AsyncClient, cache: GeocodeCache, limiter: TokenBucket,
                 url: str = None, user_agent: str = None):
        self.client = client
        self.cache = cache
        self.limiter = limiter
        self.url = url or settings.GEOCODER_URL
        self.user_agent = user_agent or settings.GEOCODER_USER_AGENT

    async def geocode(self, address: str) -> Optional[Coordinates]:
        key = (address or "").strip()
        if not key:
            raise InvalidArgument("Cannot geocode an empty address")

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Geocode cache hit for %r", key)
            return cached

        await self.limiter.acquire()
        try:
            response = await self.client.get(
                self.url,
                params={"q": key, "format": "json", "limit": 1},
                headers={"User-Agent": self.user_agent},
            )
            response.raise_for_status()
            results = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Geocoding failed for {key!r}: {e}")
            raise Unavailable("Geocoding service unavailable")

        if not results:
            logger.warning("No geocoding results for %r", key)
            return None
        try:
            coordinates = Coordinates(latitude=float(results[0]["lat"]), longitude=float(results[0]["lon"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Unexpected geocoding payload for %r", key)
            return None
        self.cache.put(key, coordinates)
        logger.info("Geocoded %r to (%s, %s)", key, coordinates.latitude, coordinates.longitude)
        return coordinates


# Process-wide instance used by the routes; tests build their own
_geocoder: Optional[Geocoder] = None


def get_geocoder() -> Geocoder:
    global _geocoder
    if _geocoder is None:
        _geocoder = Geocoder(
            client=httpx.AsyncClient(timeout=settings.GEOCODER_TIMEOUT_SECONDS),
            cache=GeocodeCache(),
            limiter=TokenBucket(capacity=1, rate=1.0 / settings.GEOCODER_MIN_INTERVAL_SECONDS),
        )
    return _geocoder
