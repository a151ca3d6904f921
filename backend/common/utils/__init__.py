"""Common utility functions."""

from .geo import haversine_km, is_within_service_area
from .locks import KeyedLock, ride_locks

__all__ = [
    "haversine_km",
    "is_within_service_area",
    "KeyedLock",
    "ride_locks",
]
