"""
Matching subpackage for the Rides domain.

Public API:
- MatchingEngine
- MatchResult
- KeyedLockManager
"""

from .engine import MatchingEngine, MatchResult
from .candidates import MatchRequest, find_candidates
from .locks import KeyedLockManager

__all__ = [
    "MatchingEngine",
    "MatchResult",
    "MatchRequest",
    "find_candidates",
    "KeyedLockManager",
]
