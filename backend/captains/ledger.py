"""
Captain availability ledger.

Pure data mutation for captain rows: the busy/free flag, the candidate
query used by matching, and the running rating mean. No business rules
live here beyond keeping availability and approval independent and
moving rating statistics only through ``apply_rating``.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from django.db import transaction
from django.db.models import F

from .models import Captain

logger = logging.getLogger(__name__)

_ONE_DECIMAL = Decimal('0.1')


class CaptainAvailabilityLedger:
    """Reads and atomic writes over Captain availability and rating fields."""

    def set_available(self, captain_id: int, available: bool) -> bool:
        """Set the availability flag. Returns False if the captain is unknown."""
        updated = Captain.objects.filter(pk=captain_id).update(is_available=available)
        if not updated:
            logger.warning("set_available: captain %s not found", captain_id)
        return bool(updated)

    def find_candidates(self, ride_class: str, limit: int = 10) -> List[Captain]:
        """Approved, available captains serving ``ride_class`` (at most ``limit``)."""
        return list(
            Captain.objects.select_related("user")
            .filter(
                ride_class=ride_class,
                approval_status="approved",
                is_available=True,
            )
            .order_by("id")[:limit]
        )

    def claim(self, captain_id: int) -> bool:
        """
        Compare-and-swap a captain from available to busy.

        The conditional UPDATE only matches while the captain is still
        approved and available, so two concurrent bookings can never both
        claim the same captain. Booking-time ``total_rides`` increment rides
        along in the same statement.
        """
        claimed = Captain.objects.filter(
            pk=captain_id,
            approval_status="approved",
            is_available=True,
        ).update(is_available=False, total_rides=F("total_rides") + 1)
        return claimed == 1

    @transaction.atomic
    def apply_rating(self, captain_id: int, score: int) -> Optional[Captain]:
        """
        Fold one score into the captain's running mean.

        new_average = round1((average * count + score) / (count + 1))
        """
        try:
            captain = Captain.objects.select_for_update().get(pk=captain_id)
        except Captain.DoesNotExist:
            logger.warning("apply_rating: captain %s not found", captain_id)
            return None

        count = captain.rating_count
        total = captain.rating_average * count + Decimal(score)
        captain.rating_average = (total / (count + 1)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)
        captain.rating_count = count + 1
        captain.save(update_fields=["rating_average", "rating_count", "updated_at"])

        logger.info(
            "Captain %s rating updated to %s over %d ratings",
            captain_id, captain.rating_average, captain.rating_count
        )
        return captain
