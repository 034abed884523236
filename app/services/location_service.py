"""
Location Service - Remember where a sender last was, and what is nearby.

LINE location messages are cached per sender for two hours so a later
"ランチ" message can be answered without asking again. A cached location
older than 120 minutes is treated as absent even if the store has not
evicted it yet.

Nearby search is a placeholder returning fixed sample restaurants around
the given coordinates.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from app.services.kv_store import KeyValueStore


logger = logging.getLogger("notebridge.services.location")

LOCATION_PREFIX = "loc:"

# Maximum number of places shown in the carousel
MAX_RESULTS = 6


@dataclass
class CachedLocation:
    """A sender's last shared position."""
    latitude: float
    longitude: float
    ts: int  # epoch milliseconds

    def age_seconds(self, now_ms: Optional[int] = None) -> float:
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        return (now_ms - self.ts) / 1000


@dataclass
class NearbyPlace:
    """One restaurant card in the nearby carousel."""
    name: str
    rating: Optional[float]
    photo: str
    url: str
    distance: str = ""
    hours: str = ""


class LocationService:
    """
    Caches sender locations in a KeyValueStore.

    Attributes:
        store: Durable store holding loc:<sender> keys
        ttl_seconds: Lifetime of a cached location
    """

    TTL_SECONDS = 60 * 60 * 2

    def __init__(self, store: KeyValueStore, ttl_seconds: int = TTL_SECONDS):
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def remember(self, sender_id: str, latitude: float, longitude: float) -> CachedLocation:
        location = CachedLocation(
            latitude=latitude,
            longitude=longitude,
            ts=int(time.time() * 1000),
        )
        await self.store.put_json(
            f"{LOCATION_PREFIX}{sender_id}",
            {"latitude": latitude, "longitude": longitude, "ts": location.ts},
            ttl_seconds=self.ttl_seconds,
        )
        logger.info(f"Cached location for sender {sender_id[:8]}")
        return location

    async def recent(self, sender_id: str) -> Optional[CachedLocation]:
        """
        Return the sender's location if it is younger than the TTL.

        Returns:
            CachedLocation, or None if missing, malformed, or too old
        """
        data = await self.store.get_json(f"{LOCATION_PREFIX}{sender_id}")
        if not isinstance(data, dict):
            return None

        try:
            location = CachedLocation(
                latitude=float(data["latitude"]),
                longitude=float(data["longitude"]),
                ts=int(data["ts"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Ignoring malformed cached location for sender {sender_id[:8]}")
            return None

        if location.age_seconds() > self.ttl_seconds:
            return None
        return location


async def search_nearby(latitude: float, longitude: float, query: str = "ランチ") -> List[NearbyPlace]:
    """
    Sample restaurants near a position.

    Args:
        latitude: Sender latitude
        longitude: Sender longitude
        query: What the sender asked for (unused by the sample data)

    Returns:
        At most MAX_RESULTS places
    """
    maps_url = f"https://maps.google.com/?q={latitude},{longitude}"
    places = [
        NearbyPlace("麺やサンプル", 4.2, "https://picsum.photos/800/450", maps_url, "徒歩6分", "11:00-15:00,17:00-21:00"),
        NearbyPlace("カレー例", 4.0, "https://picsum.photos/801/450", maps_url, "徒歩8分", "11:00-20:00"),
        NearbyPlace("定食サンプル", 4.1, "https://picsum.photos/802/450", maps_url, "徒歩4分", "11:00-21:00"),
    ]
    logger.info(f"Nearby search '{query}' returned {len(places)} places")
    return places[:MAX_RESULTS]
