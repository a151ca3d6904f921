import logging

from captains.ledger import CaptainAvailabilityLedger
from captains.models import Captain
from rides.models import Ride
from services.ride_management.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)

_ledger = CaptainAvailabilityLedger()


# CAPTAIN AVAILABILITY UPDATE
def update_availability(profile: Captain, is_available: bool) -> Captain:
    """
    Toggle whether the captain accepts new bookings.

    Going available is refused while the captain still holds an
    accepted or started ride.
    """
    if is_available and Ride.objects.filter(captain=profile, status__in=["accepted", "started"]).exists():
        raise InvalidTransitionError("Finish or cancel your current ride before going available")

    _ledger.set_available(profile.pk, is_available)
    profile.refresh_from_db(fields=["is_available", "updated_at"])
    logger.info("Captain %s availability set to %s", profile.pk, is_available)
    return profile


# CAPTAIN RIDE HISTORY
def ride_history(profile: Captain, status: str = "completed"):
    return Ride.objects.filter(captain=profile, status=status).select_related("rider")
