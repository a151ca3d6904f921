"""
Ride management service - Core ride lifecycle operations.

This module handles:
    - Booking rides (estimate, price, match, persist)
    - Starting, tracking and completing trips
    - Cancelling rides and computing the cancellation fee
    - Rating completed rides
    - Querying rides
"""

from .ride_lifecycle import (
    RideLifecycle,
    BookingRequest,
    RideResult,
    RidePage,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    build_ride_lifecycle,
    get_ride_lifecycle,
    ride_booking_setting,
)

from .exceptions import (
    RideServiceError,
    RideValidationError,
    NoCaptainAvailableError,
    RideNotFoundError,
    InvalidTransitionError,
    AlreadyRatedError,
    InvalidRatingError,
)

__all__ = [
    # Lifecycle
    "RideLifecycle",
    "BookingRequest",
    "RideResult",
    "RidePage",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "build_ride_lifecycle",
    "get_ride_lifecycle",
    "ride_booking_setting",
    # Exceptions
    "RideServiceError",
    "RideValidationError",
    "NoCaptainAvailableError",
    "RideNotFoundError",
    "InvalidTransitionError",
    "AlreadyRatedError",
    "InvalidRatingError",
]
