"""
Purpose: Central configuration for fares and matching (single source of truth).
What it does:

Stores all tunable thresholds:

RATE_PER_METER = 0.01

REROLL_BOUNDS = 80..150 (accept-time override, off by default)

MATCH_MODE = "address" | "radius"

MATCH_RADIUS_M = 500 (radius mode only)

Rule: No logic here - just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass

MATCH_MODES = ("address", "radius")


@dataclass(frozen=True)
class FarePolicy:
    """
    Pricing knobs.

    Notes:
    - total fare is ceil(distance_m * rate_per_meter)
    - the accept-time re-roll replaces the distance based total with a
      uniform draw in [reroll_min, reroll_max]. It is kept for compatibility
      with the existing app and is disabled unless explicitly turned on.
    """

    rate_per_meter: float = 0.01

    reroll_on_accept: bool = False
    reroll_min: int = 80
    reroll_max: int = 150

    def validate(self) -> None:
        if self.rate_per_meter < 0:
            raise ValueError("rate_per_meter must be >= 0")

        if self.reroll_min < 0 or self.reroll_max < self.reroll_min:
            raise ValueError("reroll bounds must satisfy 0 <= reroll_min <= reroll_max")


@dataclass(frozen=True)
class MatchingPolicy:
    """
    How a new request finds its partner.

    - "address": pending ride whose pickup and drop addresses contain the new
      request's addresses (case-insensitive substring).
    - "radius": pending ride whose pickup and drop coordinates are each within
      match_radius_m of the new request's.
    """

    mode: str = "address"
    match_radius_m: float = 500.0

    # Candidates whose claim fails (someone else matched them first) are
    # skipped; this caps how many we try per request.
    max_claim_attempts: int = 5

    def validate(self) -> None:
        if self.mode not in MATCH_MODES:
            raise ValueError(f"mode must be one of {MATCH_MODES}")

        if self.match_radius_m <= 0:
            raise ValueError("match_radius_m must be > 0")

        if self.max_claim_attempts < 1:
            raise ValueError("max_claim_attempts must be >= 1")


def default_fare_policy() -> FarePolicy:
    p = FarePolicy()
    p.validate()
    return p


def default_matching_policy() -> MatchingPolicy:
    p = MatchingPolicy()
    p.validate()
    return p
