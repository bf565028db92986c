"""
Purpose: Central configuration for route estimation and its caches.
What it does:

Stores all tunable thresholds:

PROVIDER_TIMEOUT_SECONDS = 5
CACHE_TTL_SECONDS = 30 * 60
SWEEP_INTERVAL_SECONDS = 15 * 60
FALLBACK_AGE_FRACTION = 0.8
CACHE_KEY_DECIMALS = 4   (~11 m)

Rule: No logic here - just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class RoutingPolicy:
    """
    Central configuration for the RouteEstimator.
    """

    # --- Provider ---
    # Hard upper bound on a single OSRM / geocoder call.
    provider_timeout_seconds: float = 5

    # --- Caching ---
    cache_ttl_seconds: int = 30 * 60
    sweep_interval_seconds: int = 15 * 60

    # Fallback estimates are written as if already this far through their TTL,
    # so OSRM gets asked again sooner.
    fallback_age_fraction: float = 0.8

    # Coordinates are rounded to this many decimals when building cache keys.
    cache_key_decimals: int = 4

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.provider_timeout_seconds <= 0:
            raise ValueError("provider_timeout_seconds must be > 0")

        if self.cache_ttl_seconds <= 0 or self.sweep_interval_seconds <= 0:
            raise ValueError("cache ttl and sweep interval must be > 0")

        if not 0.0 <= self.fallback_age_fraction < 1.0:
            raise ValueError("fallback_age_fraction must be in [0, 1)")

        if self.cache_key_decimals < 0:
            raise ValueError("cache_key_decimals must be >= 0")


def default_routing_policy() -> RoutingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = RoutingPolicy()
    p.validate()
    return p
