"""
Captain selection strategies.

Without real captain positions there is nothing to rank by, so the
default picks uniformly at random. A proximity-ranked selector can be
plugged in here later without changing MatchingPolicy.
"""

import random
from typing import Optional, Sequence

from captains.models import Captain


class CaptainSelector:
    """Chooses one captain out of a non-empty candidate list."""

    def choose(self, candidates: Sequence[Captain], pickup: str) -> Captain:
        raise NotImplementedError


class RandomCaptainSelector(CaptainSelector):
    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def choose(self, candidates: Sequence[Captain], pickup: str) -> Captain:
        return self._rng.choice(list(candidates))


class FirstCandidateSelector(CaptainSelector):
    """Deterministic: always the first candidate."""

    def choose(self, candidates: Sequence[Captain], pickup: str) -> Captain:
        return candidates[0]
