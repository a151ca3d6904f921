"""
Surge multiplier calculation.

Independent factors multiply into the fare multiplier:
    - peak hours (8-10 AM, 6-8 PM local)
    - night (10 PM - 6 AM local)
    - weekend (Saturday, Sunday)
    - high demand pickup areas
    - rain, decided by a pluggable weather policy

The product is clamped to ``MAX_SURGE``.
"""

import random
from datetime import datetime
from typing import List, Optional, Tuple

from django.utils import timezone

SURGE_FACTORS = {
    "peak_hours": 1.5,
    "night": 1.3,
    "weekend": 1.2,
    "high_demand": 1.3,
    "rain": 1.8,
}

HIGH_DEMAND_AREAS = [
    "mg road",
    "koramangala",
    "whitefield",
    "electronic city",
    "airport",
]

MAX_SURGE = 3.0
DEFAULT_RAIN_PROBABILITY = 0.3


class WeatherPolicy:
    """Decides whether the rain surge applies to a booking."""

    def is_raining(self, at: datetime, location: str) -> bool:
        raise NotImplementedError


class RandomWeatherPolicy(WeatherPolicy):
    """Mock weather: rains with a fixed probability on every quote."""

    def __init__(self, probability: float = DEFAULT_RAIN_PROBABILITY, rng: Optional[random.Random] = None):
        self.probability = probability
        self._rng = rng or random.Random()

    def is_raining(self, at: datetime, location: str) -> bool:
        return self._rng.random() < self.probability


class FixedWeatherPolicy(WeatherPolicy):
    """Always the same answer; used to pin surge in tests."""

    def __init__(self, raining: bool = False):
        self.raining = raining

    def is_raining(self, at: datetime, location: str) -> bool:
        return self.raining


def _local(at: datetime) -> datetime:
    if timezone.is_aware(at):
        return timezone.localtime(at)
    return at


def is_peak_hour(hour: int) -> bool:
    return 8 <= hour <= 10 or 18 <= hour <= 20


def is_night_hour(hour: int) -> bool:
    return hour >= 22 or hour <= 6


def is_high_demand_area(location: str) -> bool:
    lowered = (location or "").lower()
    return any(area in lowered for area in HIGH_DEMAND_AREAS)


def calculate_surge(scheduled_at: datetime, location: str, weather: WeatherPolicy) -> Tuple[float, List[str]]:
    """
    Return ``(multiplier, reasons)`` for a booking.

    ``reasons`` lists the factor names that were applied, in order.
    """
    local = _local(scheduled_at)
    multiplier = 1.0
    reasons: List[str] = []

    if is_peak_hour(local.hour):
        multiplier *= SURGE_FACTORS["peak_hours"]
        reasons.append("peak_hours")

    if is_night_hour(local.hour):
        multiplier *= SURGE_FACTORS["night"]
        reasons.append("night")

    # Saturday = 5, Sunday = 6
    if local.weekday() >= 5:
        multiplier *= SURGE_FACTORS["weekend"]
        reasons.append("weekend")

    if is_high_demand_area(location):
        multiplier *= SURGE_FACTORS["high_demand"]
        reasons.append("high_demand")

    if weather.is_raining(scheduled_at, location):
        multiplier *= SURGE_FACTORS["rain"]
        reasons.append("rain")

    return min(multiplier, MAX_SURGE), reasons
