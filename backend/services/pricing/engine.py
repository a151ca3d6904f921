"""
Dynamic pricing engine.

Turns a distance estimate, ride class, schedule time and pickup text into
an itemized fare. Also computes waiting charges at trip completion.
"""

import logging
from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from common.utils.rounding import round_half_up
from .surge import WeatherPolicy, RandomWeatherPolicy, calculate_surge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateCard:
    """Per-class rate table."""
    per_km: float
    minimum_fare: float
    per_minute: float
    avg_speed_kmh: float
    waiting_per_minute: float


RATE_CARDS: Dict[str, RateCard] = {
    "light": RateCard(per_km=8, minimum_fare=25, per_minute=2, avg_speed_kmh=25, waiting_per_minute=1),
    "auto": RateCard(per_km=12, minimum_fare=40, per_minute=3, avg_speed_kmh=20, waiting_per_minute=1.5),
    "car": RateCard(per_km=15, minimum_fare=60, per_minute=4, avg_speed_kmh=22, waiting_per_minute=2),
}

TIME_WEIGHT = 0.3            # share of the time-based fare added to the base
TRAFFIC_BUFFER = 0.2         # extra duration for city traffic
MIN_TRIP_MINUTES = 10
TAX_RATE = 0.05
DEFAULT_PLATFORM_FEE = 10
FREE_WAITING_MINUTES = 3


@dataclass(frozen=True)
class FareBreakdown:
    """Fare quoted at booking time. Immutable once computed."""
    base_fare: int
    time_fare: int
    surge_multiplier: float
    final_price: int
    taxes: int
    platform_fee: int
    distance_km: float
    estimated_minutes: int
    rate_per_km: float
    rate_per_minute: float
    minimum_fare: float
    surge_applied: bool
    minimum_fare_applied: bool
    surge_reasons: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_payable(self) -> int:
        return self.final_price + self.taxes + self.platform_fee

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["surge_reasons"] = list(self.surge_reasons)
        data["total_payable"] = self.total_payable
        return data


class PricingEngine:
    """Quotes fares for a ride class using the configured rate cards."""

    def __init__(
        self,
        weather: Optional[WeatherPolicy] = None,
        rate_cards: Optional[Dict[str, RateCard]] = None,
        platform_fee: int = DEFAULT_PLATFORM_FEE,
    ):
        self.weather = weather or RandomWeatherPolicy()
        self.rate_cards = rate_cards or RATE_CARDS
        self.platform_fee = platform_fee

    def rate_card(self, ride_class: str) -> RateCard:
        try:
            return self.rate_cards[ride_class]
        except KeyError:
            raise ValueError(f"Unknown ride class: {ride_class!r}") from None

    def estimate_minutes(self, distance_km: float, ride_class: str) -> int:
        """Trip duration at average city speed plus a traffic buffer, min 10 minutes."""
        card = self.rate_card(ride_class)
        minutes = round_half_up(distance_km / card.avg_speed_kmh * 60)
        buffer = round_half_up(minutes * TRAFFIC_BUFFER)
        return max(minutes + buffer, MIN_TRIP_MINUTES)

    def base_fare(self, distance_km: float, ride_class: str) -> float:
        card = self.rate_card(ride_class)
        return max(distance_km * card.per_km, card.minimum_fare)

    def quote(self, distance_km: float, ride_class: str, scheduled_at: datetime, pickup: str) -> FareBreakdown:
        """
        Price a trip.

        Args:
            distance_km: Estimated trip distance
            ride_class: One of RATE_CARDS
            scheduled_at: Pickup time; its local hour and weekday drive surge
            pickup: Pickup address text, checked against high demand areas

        Returns:
            FareBreakdown with every itemized term
        """
        card = self.rate_card(ride_class)

        base = self.base_fare(distance_km, ride_class)
        minutes = self.estimate_minutes(distance_km, ride_class)
        time_component = minutes * card.per_minute * TIME_WEIGHT
        surge, reasons = calculate_surge(scheduled_at, pickup, self.weather)

        final_price = round_half_up((base + time_component) * surge)

        breakdown = FareBreakdown(
            base_fare=round_half_up(base),
            time_fare=round_half_up(time_component),
            surge_multiplier=round_half_up(surge, 2),
            final_price=final_price,
            taxes=round_half_up(final_price * TAX_RATE),
            platform_fee=self.platform_fee,
            distance_km=distance_km,
            estimated_minutes=minutes,
            rate_per_km=card.per_km,
            rate_per_minute=card.per_minute,
            minimum_fare=card.minimum_fare,
            surge_applied=surge > 1.0,
            minimum_fare_applied=distance_km * card.per_km < card.minimum_fare,
            surge_reasons=tuple(reasons),
        )
        logger.debug(
            "Quoted %s ride %.1f km: final=%s surge=%s",
            ride_class, distance_km, final_price, breakdown.surge_multiplier
        )
        return breakdown

    def waiting_charge(self, wait_minutes: float, ride_class: str) -> float:
        """First three minutes are free; the rest is billed per minute."""
        card = self.rate_card(ride_class)
        if wait_minutes <= FREE_WAITING_MINUTES:
            return 0
        return (wait_minutes - FREE_WAITING_MINUTES) * card.waiting_per_minute
