"""
Mock distance estimation between free-text addresses.

There is no map provider behind this: every address is hashed onto a
pseudo-coordinate near a known city anchor, and the great-circle
distance between the two points is jittered by a random factor. A real
geocoder can replace ``GeoEstimator`` without touching the pricing code.
"""

import logging
import random
from typing import Dict, Optional, Tuple

from common.utils.geo import haversine_km
from common.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

# Known city anchors, checked in order by case-insensitive substring match
CITY_ANCHORS: Dict[str, Tuple[float, float]] = {
    "bangalore": (12.9716, 77.5946),
    "mumbai": (19.0760, 72.8777),
    "delhi": (28.7041, 77.1025),
    "chennai": (13.0827, 80.2707),
    "hyderabad": (17.3850, 78.4867),
}
DEFAULT_CITY = "bangalore"

MIN_DISTANCE_KM = 1.5
JITTER_MIN = 0.8
JITTER_SPAN = 0.4  # factor lands in [0.8, 1.2]


def _string_hash(text: str) -> int:
    """32-bit signed rolling hash: h = h * 31 + code, wrapped to int32."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
    return h


def _truncated_mod(value: int, modulus: int) -> int:
    """Remainder that keeps the sign of the dividend."""
    remainder = abs(value) % modulus
    return -remainder if value < 0 else remainder


class GeoEstimator:
    """Deterministic-but-jittered distance estimates between two addresses."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def locate(self, address: str) -> Tuple[float, float]:
        """Map an address onto a pseudo (lat, lon) near its city anchor."""
        lowered = address.lower()
        anchor = CITY_ANCHORS[DEFAULT_CITY]
        for city, coords in CITY_ANCHORS.items():
            if city in lowered:
                anchor = coords
                break

        h = _string_hash(address)
        lat_offset = (_truncated_mod(h, 200) - 100) / 2000
        lon_offset = (_truncated_mod(h * 7, 200) - 100) / 2000
        return anchor[0] + lat_offset, anchor[1] + lon_offset

    def estimate_distance(self, pickup: str, drop: str) -> float:
        """
        Estimated trip distance in km, rounded to one decimal.

        Never fails and never returns less than ``MIN_DISTANCE_KM``.
        """
        pickup_lat, pickup_lon = self.locate(pickup)
        drop_lat, drop_lon = self.locate(drop)

        straight_line = round_half_up(haversine_km(pickup_lat, pickup_lon, drop_lat, drop_lon), 2)
        factor = JITTER_MIN + self._rng.random() * JITTER_SPAN
        distance = max(round_half_up(straight_line * factor, 1), MIN_DISTANCE_KM)

        logger.debug("Estimated %.1f km from %r to %r", distance, pickup, drop)
        return distance
