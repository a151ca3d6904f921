"""
Fare estimation service.

This module handles:
    - Mock distance estimation between free-text addresses
    - Fare quotes with surge pricing
    - Waiting charges
"""

from .estimator import GeoEstimator
from .engine import PricingEngine, FareBreakdown, RateCard, RATE_CARDS
from .surge import WeatherPolicy, RandomWeatherPolicy, FixedWeatherPolicy, MAX_SURGE

__all__ = [
    "GeoEstimator",
    "PricingEngine",
    "FareBreakdown",
    "RateCard",
    "RATE_CARDS",
    "WeatherPolicy",
    "RandomWeatherPolicy",
    "FixedWeatherPolicy",
    "MAX_SURGE",
]
