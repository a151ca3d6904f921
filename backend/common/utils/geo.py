"""
Geographic utility functions.

This module provides core geospatial calculations used throughout the application.
"""

from math import radians, cos, sin, atan2, sqrt
from typing import Tuple

EARTH_RADIUS_KM = 6371.0

# Service area bounding box (India)
SERVICE_BOUNDS = {
    "north": 35.0,
    "south": 8.0,
    "east": 97.0,
    "west": 68.0,
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [float(lat1), float(lon1), float(lat2), float(lon2)])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_within_service_area(coordinates: Tuple[float, float]) -> bool:
    """True when a (lat, lon) pair falls inside the service bounding box."""
    lat, lon = coordinates
    return (
        SERVICE_BOUNDS["south"] <= lat <= SERVICE_BOUNDS["north"]
        and SERVICE_BOUNDS["west"] <= lon <= SERVICE_BOUNDS["east"]
    )
