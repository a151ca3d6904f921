"""
Core ride lifecycle operations.

This module owns the ride state machine:

    requested -> searching -> accepted -> started -> completed
                         \\_______________________/
                                     |
                                 cancelled

Booking matches synchronously, so a booked ride is created directly in
``accepted``. Every transition runs under a per-ride lock and a single
database transaction; an illegal transition raises before anything is
written.
"""

import logging
import random
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from captains.ledger import CaptainAvailabilityLedger
from captains.models import Captain, RIDE_CLASS_CHOICES
from common.utils.geo import is_within_service_area
from common.utils.locks import KeyedLock, ride_locks
from common.utils.rounding import round_half_up
from rides.models import Ride, RoutePoint
from rides.notifications import RideNotifier
from services.matching import MatchingPolicy, RandomCaptainSelector
from services.pricing import GeoEstimator, PricingEngine, RandomWeatherPolicy
from .exceptions import (
    RideValidationError,
    NoCaptainAvailableError,
    RideNotFoundError,
    InvalidTransitionError,
    AlreadyRatedError,
    InvalidRatingError,
)

logger = logging.getLogger(__name__)


ACTIVE_STATUSES = ('requested', 'searching', 'accepted', 'started')
TERMINAL_STATUSES = ('completed', 'cancelled')
ACTOR_ROLES = ('passenger', 'captain', 'system')
RATING_ROLES = ('passenger', 'captain')

DEFAULT_RIDE_BOOKING = {
    "FREE_CANCELLATION_SECONDS": 120,
    "CANCELLATION_FEE_RATE": "0.10",
    "CANCELLATION_FEE_CAP": 50,
    "MATCHING_CANDIDATE_LIMIT": 10,
    "RAIN_PROBABILITY": 0.3,
    "PLATFORM_FEE": 10,
    "SCHEDULE_GRACE_SECONDS": 60,
}


def ride_booking_setting(name: str):
    """Read a RIDE_BOOKING knob from settings, falling back to the default."""
    return getattr(settings, "RIDE_BOOKING", {}).get(name, DEFAULT_RIDE_BOOKING[name])


@dataclass
class BookingRequest:
    """Validated input for a new booking."""
    passenger_name: str
    pickup_address: str
    drop_address: str
    ride_class: str
    scheduled_at: datetime
    payment_method: str = "cash"


@dataclass
class RideResult:
    """Result object for ride operations."""
    success: bool
    ride: Optional[Ride] = None
    message: str = ""
    error_code: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None


@dataclass
class RidePage:
    """One page of a rider's ride history."""
    rides: List[Ride] = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)

    @property
    def has_next(self) -> bool:
        return (self.page - 1) * self.limit + len(self.rides) < self.total


class RideLifecycle:
    """
    Ride state machine plus the cancellation-fee and rating policies.

    All collaborators are injected; ``build_ride_lifecycle`` wires the
    production defaults.
    """

    def __init__(
        self,
        geo: Optional[GeoEstimator] = None,
        pricing: Optional[PricingEngine] = None,
        matching: Optional[MatchingPolicy] = None,
        ledger: Optional[CaptainAvailabilityLedger] = None,
        notifier: Optional[RideNotifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        locks: Optional[KeyedLock] = None,
        rng: Optional[random.Random] = None,
    ):
        self.geo = geo or GeoEstimator()
        self.pricing = pricing or PricingEngine()
        self.ledger = ledger or CaptainAvailabilityLedger()
        self.matching = matching or MatchingPolicy(ledger=self.ledger)
        self.notifier = notifier or RideNotifier()
        self.clock = clock or timezone.now
        self._locks = locks or ride_locks
        self._rng = rng or random.Random()

    # ===================== Passenger Operations =====================

    def create(self, rider, booking: BookingRequest) -> RideResult:
        """
        Book a ride: estimate, price, match and persist in one go.

        Args:
            rider: Authenticated User booking the ride
            booking: Booking fields

        Returns:
            RideResult with the accepted ride

        Raises:
            RideValidationError: If the booking is malformed
            NoCaptainAvailableError: If no captain could be reserved; no ride is created
        """
        booking = self._validate_booking(booking)

        pickup_coords = self.geo.locate(booking.pickup_address)
        drop_coords = self.geo.locate(booking.drop_address)
        if not is_within_service_area(pickup_coords):
            raise RideValidationError(
                "Pickup location is outside the service area",
                errors={"pickup_location": "Pickup location is outside the service area"},
            )

        distance = self.geo.estimate_distance(booking.pickup_address, booking.drop_address)
        fare = self.pricing.quote(distance, booking.ride_class, booking.scheduled_at, booking.pickup_address)

        with transaction.atomic():
            captain = self.matching.reserve_captain(booking.ride_class, booking.pickup_address)
            if captain is None:
                raise NoCaptainAvailableError("No captains available at the moment. Please try again.")

            ride = Ride.objects.create(
                rider=rider,
                captain=captain,
                passenger_name=booking.passenger_name,
                passenger_phone=rider.phone_number,
                pickup_address=booking.pickup_address,
                pickup_latitude=_coordinate(pickup_coords[0]),
                pickup_longitude=_coordinate(pickup_coords[1]),
                drop_address=booking.drop_address,
                drop_latitude=_coordinate(drop_coords[0]),
                drop_longitude=_coordinate(drop_coords[1]),
                ride_class=booking.ride_class,
                scheduled_at=booking.scheduled_at,
                estimated_distance_km=Decimal(str(distance)),
                estimated_duration_minutes=fare.estimated_minutes,
                fare_breakdown=fare.to_dict(),
                surge_multiplier=Decimal(str(fare.surge_multiplier)),
                estimated_cost=Decimal(fare.final_price),
                payment_method=booking.payment_method,
                status='accepted',
                accepted_at=self.clock(),
            )

            details = self._confirmation_details(ride, captain)
            phone_number = rider.phone_number
            transaction.on_commit(
                lambda: self.notifier.notify_ride_confirmed(phone_number, details),
                robust=True,
            )
            self._publish('ride_accepted', ride, "Your captain is on the way.")

        logger.info("Ride booked: %s by user %s (captain %s)", ride.ride_code, rider.pk, captain.pk)

        return RideResult(
            success=True,
            ride=ride,
            message="Ride booked successfully",
            extra={"eta_minutes": self._rng.randint(3, 12), "fare": fare},
        )

    def cancel(self, ride_code: str, actor_role: str, reason: str = "", actor=None) -> RideResult:
        """
        Cancel a ride that has not yet finished.

        The cancellation fee is 0 inside the free window or if no captain
        was ever assigned, otherwise ``min(estimated_cost * rate, cap)``.
        The captain (if any) becomes available again; total rides are kept.
        """
        if actor_role not in ACTOR_ROLES:
            raise RideValidationError(f"Unknown actor role: {actor_role}")

        with self._locked_ride(ride_code, actor_role, actor) as ride:
            if ride.status in TERMINAL_STATUSES:
                raise InvalidTransitionError(f"Cannot cancel - ride is already {ride.status}")

            now = self.clock()
            fee = self.cancellation_fee(ride, now)
            captain_id = ride.captain_id

            ride.status = 'cancelled'
            ride.cancelled_by = actor_role
            ride.cancellation_reason = reason or "No reason provided"
            ride.cancelled_at = now
            ride.cancellation_fee = fee
            ride.save(update_fields=[
                'status', 'cancelled_by', 'cancellation_reason',
                'cancelled_at', 'cancellation_fee', 'updated_at',
            ])

            if captain_id:
                self.ledger.set_available(captain_id, True)

            self._publish('ride_cancelled', ride, f"Ride cancelled by {actor_role}.")

        logger.info("Ride cancelled: %s by %s (fee %s)", ride.ride_code, actor_role, fee)

        return RideResult(
            success=True,
            ride=ride,
            message="Ride cancelled successfully",
            extra={"cancellation_fee": fee, "was_assigned": captain_id is not None},
        )

    def rate(self, ride_code: str, actor_role: str, score: int, feedback: str = "", actor=None) -> RideResult:
        """
        Fill the actor's rating slot on a completed ride.

        A passenger's score is folded into the captain's running mean.
        """
        if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
            raise InvalidRatingError("Rating must be between 1 and 5")
        if actor_role not in RATING_ROLES:
            raise RideValidationError(f"Unknown actor role: {actor_role}")
        feedback = (feedback or "").strip()
        if len(feedback) > 500:
            raise RideValidationError(
                "Feedback cannot exceed 500 characters",
                errors={"feedback": "Feedback cannot exceed 500 characters"},
            )

        with self._locked_ride(ride_code, actor_role, actor) as ride:
            if ride.status != 'completed':
                raise InvalidTransitionError("Can only rate completed rides")
            if getattr(ride, f"{actor_role}_rating") is not None:
                raise AlreadyRatedError("You have already rated this ride")

            setattr(ride, f"{actor_role}_rating", score)
            setattr(ride, f"{actor_role}_feedback", feedback)
            setattr(ride, f"{actor_role}_rated_at", self.clock())
            ride.save(update_fields=[
                f"{actor_role}_rating", f"{actor_role}_feedback", f"{actor_role}_rated_at", 'updated_at',
            ])

            if actor_role == 'passenger' and ride.captain_id:
                self.ledger.apply_rating(ride.captain_id, score)

        logger.info("Ride rated: %s by %s - Rating: %s", ride.ride_code, actor_role, score)

        return RideResult(success=True, ride=ride, message="Thank you for your feedback!")

    # ===================== Captain / Trip Tracking Operations =====================

    def start(self, ride_code: str, actor=None) -> RideResult:
        """Captain picked the passenger up: accepted -> started."""
        with self._locked_ride(ride_code, 'captain', actor) as ride:
            self._require_status(ride, 'accepted', 'start')

            ride.status = 'started'
            ride.started_at = self.clock()
            ride.save(update_fields=['status', 'started_at', 'updated_at'])

            self._publish('ride_started', ride, "Your ride has started.")

        logger.info("Ride started: %s", ride.ride_code)
        return RideResult(success=True, ride=ride, message="Ride started")

    def record_location(self, ride_code: str, latitude: float, longitude: float,
                        speed: Optional[float] = None, actor=None) -> RoutePoint:
        """Append a sample to the route trace of a started ride."""
        if not (-90 <= float(latitude) <= 90 and -180 <= float(longitude) <= 180):
            raise RideValidationError("Invalid coordinates")
        if speed is not None and speed < 0:
            raise RideValidationError("Speed cannot be negative")

        with self._locked_ride(ride_code, 'captain', actor) as ride:
            self._require_status(ride, 'started', 'track')

            now = self.clock()
            point = RoutePoint.objects.create(
                ride=ride,
                latitude=_coordinate(latitude),
                longitude=_coordinate(longitude),
                speed=speed,
                recorded_at=now,
            )
            ride.current_latitude = point.latitude
            ride.current_longitude = point.longitude
            ride.location_updated_at = now
            ride.save(update_fields=['current_latitude', 'current_longitude', 'location_updated_at', 'updated_at'])

        return point

    def complete(
        self,
        ride_code: str,
        actual_distance_km: Optional[float] = None,
        actual_duration_minutes: Optional[int] = None,
        actual_cost: Optional[Decimal] = None,
        waiting_minutes: float = 0,
        actor=None,
    ) -> RideResult:
        """
        Finish a started ride.

        When ``actual_cost`` is omitted it defaults to the estimated cost
        plus the waiting charge. The captain becomes available again.
        """
        for name, value in (
            ("actual_distance_km", actual_distance_km),
            ("actual_duration_minutes", actual_duration_minutes),
            ("actual_cost", actual_cost),
            ("waiting_minutes", waiting_minutes),
        ):
            if value is not None and value < 0:
                raise RideValidationError(f"{name} cannot be negative", errors={name: "Must not be negative"})

        with self._locked_ride(ride_code, 'captain', actor) as ride:
            self._require_status(ride, 'started', 'complete')

            now = self.clock()
            waiting = Decimal(str(self.pricing.waiting_charge(waiting_minutes or 0, ride.ride_class)))
            if actual_cost is None:
                actual_cost = ride.estimated_cost + waiting
            if actual_duration_minutes is None and ride.started_at:
                actual_duration_minutes = round_half_up((now - ride.started_at).total_seconds() / 60)

            ride.status = 'completed'
            ride.completed_at = now
            ride.waiting_charge = waiting
            ride.actual_cost = Decimal(str(actual_cost))
            ride.actual_duration_minutes = actual_duration_minutes
            if actual_distance_km is not None:
                ride.actual_distance_km = Decimal(str(actual_distance_km))
            ride.save(update_fields=[
                'status', 'completed_at', 'waiting_charge', 'actual_cost',
                'actual_duration_minutes', 'actual_distance_km', 'updated_at',
            ])

            if ride.captain_id:
                self.ledger.set_available(ride.captain_id, True)

            get_user_model().objects.filter(pk=ride.rider_id).update(
                completed_rides=F('completed_rides') + 1
            )

            self._publish('ride_completed', ride, "Your ride has been completed. Thank you for riding with us!")

        logger.info("Ride completed: %s (cost %s)", ride.ride_code, ride.actual_cost)
        return RideResult(success=True, ride=ride, message="Ride completed successfully")

    # ===================== Queries =====================

    def get_ride(self, ride_code: str, actor_role: str = 'passenger', actor=None) -> Ride:
        """Fetch one ride, scoped to the actor when given."""
        queryset = self._scope(
            Ride.objects.select_related('captain__user', 'rider'), actor_role, actor
        )
        try:
            return queryset.get(ride_code=ride_code)
        except Ride.DoesNotExist:
            raise RideNotFoundError("Ride not found") from None

    def list_rides(self, rider, status: Optional[str] = None, page: int = 1, limit: int = 20) -> RidePage:
        """A rider's rides, newest first, optionally filtered by status."""
        if status and status not in dict(Ride.STATUS_CHOICES):
            raise RideValidationError(f"Unknown status: {status}", errors={"status": "Invalid status"})
        if page < 1 or limit < 1:
            raise RideValidationError("Page and limit must be positive")
        limit = min(limit, 100)

        queryset = Ride.objects.filter(rider=rider).select_related('captain__user')
        if status:
            queryset = queryset.filter(status=status)
        queryset = queryset.order_by('-created_at', '-id')

        offset = (page - 1) * limit
        return RidePage(
            rides=list(queryset[offset:offset + limit]),
            page=page,
            limit=limit,
            total=queryset.count(),
        )

    def get_current_captain_ride(self, captain: Captain) -> Optional[Ride]:
        """The captain's accepted or started ride, if any."""
        return Ride.objects.filter(
            captain=captain,
            status__in=['accepted', 'started'],
        ).select_related('rider').first()

    # ===================== Policies =====================

    def cancellation_fee(self, ride: Ride, now: datetime) -> Decimal:
        """0 inside the free window or when never assigned, else a capped share of the estimate."""
        if ride.captain_id is None and ride.accepted_at is None:
            return Decimal('0.00')

        free_window = timedelta(seconds=ride_booking_setting("FREE_CANCELLATION_SECONDS"))
        if now - ride.created_at <= free_window:
            return Decimal('0.00')

        rate = Decimal(str(ride_booking_setting("CANCELLATION_FEE_RATE")))
        cap = Decimal(str(ride_booking_setting("CANCELLATION_FEE_CAP")))
        fee = min(Decimal(ride.estimated_cost) * rate, cap)
        return fee.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    # ===================== Helper Functions =====================

    def _validate_booking(self, booking: BookingRequest) -> BookingRequest:
        errors = {}

        passenger_name = (booking.passenger_name or "").strip()
        if not 2 <= len(passenger_name) <= 50:
            errors["passenger_name"] = "Passenger name must be between 2-50 characters"

        pickup = (booking.pickup_address or "").strip()
        if not 5 <= len(pickup) <= 200:
            errors["pickup_location"] = "Pickup location is required and must be under 200 characters"

        drop = (booking.drop_address or "").strip()
        if not 5 <= len(drop) <= 200:
            errors["drop_location"] = "Drop location is required and must be under 200 characters"

        if booking.ride_class not in dict(RIDE_CLASS_CHOICES):
            errors["ride_class"] = "Invalid ride type"

        if booking.payment_method not in dict(Ride.PAYMENT_METHOD_CHOICES):
            errors["payment_method"] = "Invalid payment method"

        scheduled_at = booking.scheduled_at
        if not isinstance(scheduled_at, datetime):
            errors["scheduled_at"] = "Invalid date format"
        else:
            if timezone.is_naive(scheduled_at):
                scheduled_at = timezone.make_aware(scheduled_at)
            grace = timedelta(seconds=ride_booking_setting("SCHEDULE_GRACE_SECONDS"))
            if scheduled_at < self.clock() - grace:
                errors["scheduled_at"] = "Scheduled time cannot be in the past"

        if errors:
            raise RideValidationError("Validation error", errors=errors)

        return replace(
            booking,
            passenger_name=passenger_name,
            pickup_address=pickup,
            drop_address=drop,
            scheduled_at=scheduled_at,
        )

    @contextmanager
    def _locked_ride(self, ride_code: str, actor_role: Optional[str] = None, actor=None):
        """Hold the ride's lock and row lock for one read-modify-write."""
        with self._locks.hold(ride_code), transaction.atomic():
            queryset = self._scope(Ride.objects.select_for_update(), actor_role, actor)
            try:
                ride = queryset.get(ride_code=ride_code)
            except Ride.DoesNotExist:
                raise RideNotFoundError("Ride not found") from None
            yield ride

    @staticmethod
    def _scope(queryset, actor_role: Optional[str], actor):
        """Restrict a ride queryset to what the actor owns."""
        if actor is None:
            return queryset
        if actor_role == 'passenger':
            return queryset.filter(rider=actor)
        if actor_role == 'captain':
            return queryset.filter(captain__user=actor)
        return queryset

    @staticmethod
    def _require_status(ride: Ride, expected: str, action: str):
        if ride.status != expected:
            raise InvalidTransitionError(f"Cannot {action} a ride that is {ride.status}")

    def _publish(self, event_type: str, ride: Ride, message: str):
        transaction.on_commit(
            lambda: self.notifier.notify_ride_event(event_type, ride, message),
            robust=True,
        )

    @staticmethod
    def _confirmation_details(ride: Ride, captain: Captain) -> Dict[str, Any]:
        return {
            "ride_code": ride.ride_code,
            "pickup": ride.pickup_address,
            "drop": ride.drop_address,
            "captain_name": captain.display_name,
            "captain_phone": captain.user.phone_number,
            "vehicle_number": captain.vehicle_number,
            "estimated_cost": str(ride.estimated_cost),
        }


def _coordinate(value: float) -> Decimal:
    return Decimal(str(round(float(value), 6)))


# ---------------------- Singleton Instance ----------------------

_ride_lifecycle: Optional[RideLifecycle] = None


def build_ride_lifecycle(rng: Optional[random.Random] = None) -> RideLifecycle:
    """Wire the production collaborators around one shared random source."""
    rng = rng or random.Random()
    ledger = CaptainAvailabilityLedger()
    return RideLifecycle(
        geo=GeoEstimator(rng),
        pricing=PricingEngine(
            weather=RandomWeatherPolicy(ride_booking_setting("RAIN_PROBABILITY"), rng),
            platform_fee=ride_booking_setting("PLATFORM_FEE"),
        ),
        matching=MatchingPolicy(
            ledger=ledger,
            selector=RandomCaptainSelector(rng),
            candidate_limit=ride_booking_setting("MATCHING_CANDIDATE_LIMIT"),
        ),
        ledger=ledger,
        rng=rng,
    )


def get_ride_lifecycle() -> RideLifecycle:
    """Get singleton RideLifecycle instance."""
    global _ride_lifecycle
    if _ride_lifecycle is None:
        _ride_lifecycle = build_ride_lifecycle()
    return _ride_lifecycle
