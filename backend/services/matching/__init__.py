"""
Captain matching service.

This module handles:
    - Querying the availability ledger for matchable captains
    - Choosing one through a pluggable selection strategy
    - Reserving the chosen captain atomically
"""

from .policy import MatchingPolicy, MAX_CANDIDATES
from .selection import CaptainSelector, RandomCaptainSelector, FirstCandidateSelector

__all__ = [
    "MatchingPolicy",
    "MAX_CANDIDATES",
    "CaptainSelector",
    "RandomCaptainSelector",
    "FirstCandidateSelector",
]
