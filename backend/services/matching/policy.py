"""
Captain matching for new bookings.

Pulls a bounded candidate pool from the availability ledger, lets the
selector pick one, and claims it with a compare-and-swap so the same
captain is never handed to two bookings.
"""

import logging
from typing import List, Optional

from captains.ledger import CaptainAvailabilityLedger
from captains.models import Captain
from .selection import CaptainSelector, RandomCaptainSelector

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 10


class MatchingPolicy:
    """Selects and reserves an available captain for a ride class."""

    def __init__(
        self,
        ledger: Optional[CaptainAvailabilityLedger] = None,
        selector: Optional[CaptainSelector] = None,
        candidate_limit: int = MAX_CANDIDATES,
    ):
        self.ledger = ledger or CaptainAvailabilityLedger()
        self.selector = selector or RandomCaptainSelector()
        self.candidate_limit = min(candidate_limit, MAX_CANDIDATES)

    def _candidates(self, ride_class: str) -> List[Captain]:
        return self.ledger.find_candidates(ride_class, limit=self.candidate_limit)

    def find_captain(self, ride_class: str, pickup: str) -> Optional[Captain]:
        """Pick a matchable captain without reserving it. None if the pool is empty."""
        candidates = self._candidates(ride_class)
        if not candidates:
            return None
        return self.selector.choose(candidates, pickup)

    def reserve_captain(self, ride_class: str, pickup: str) -> Optional[Captain]:
        """
        Pick a captain and flip it to unavailable in one atomic step.

        If a concurrent booking claims the chosen captain first, the next
        candidate from the same pool is tried.

        Returns:
            The reserved Captain, or None when every candidate was taken
        """
        candidates = self._candidates(ride_class)

        while candidates:
            captain = self.selector.choose(candidates, pickup)
            if self.ledger.claim(captain.pk):
                captain.refresh_from_db(fields=["is_available", "total_rides"])
                logger.info("Reserved captain %s for %s ride", captain.pk, ride_class)
                return captain

            logger.info("Captain %s was claimed concurrently, trying next candidate", captain.pk)
            candidates = [c for c in candidates if c.pk != captain.pk]

        logger.info("No %s captain available", ride_class)
        return None
