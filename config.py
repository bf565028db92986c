"""
Purpose: Process-level settings read from the environment.
What it does:
Loads a .env file (python-dotenv) and turns the variables below into a frozen
Settings object, plus the policy objects the engine takes:

OSRM_BASE_URL=https://router.project-osrm.org
NOMINATIM_BASE_URL=https://nominatim.openstreetmap.org
ROUTING_TIMEOUT_SECONDS=5
ROUTE_CACHE_TTL_SECONDS=1800
CACHE_SWEEP_INTERVAL_SECONDS=900
FARE_RATE_PER_METER=0.01
FARE_REROLL_ON_ACCEPT=false
MATCH_MODE=address
MATCH_RADIUS_M=500
JWT_SECRET=change-me
LOG_LEVEL=INFO

Rule: No logic here beyond parsing; components receive policies, not env vars.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import logging
import os

from dotenv import load_dotenv

from rides.policy import FarePolicy, MatchingPolicy
from routing.policy import RoutingPolicy

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    osrm_base_url: str = "https://router.project-osrm.org"
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    routing_timeout_seconds: float = 5.0
    route_cache_ttl_seconds: int = 30 * 60
    cache_sweep_interval_seconds: int = 15 * 60
    fare_rate_per_meter: float = 0.01
    fare_reroll_on_accept: bool = False
    match_mode: str = "address"
    match_radius_m: float = 500.0
    jwt_secret: str = "secretkey"
    log_level: str = "INFO"

    def routing_policy(self) -> RoutingPolicy:
        p = RoutingPolicy(
            provider_timeout_seconds=self.routing_timeout_seconds,
            cache_ttl_seconds=self.route_cache_ttl_seconds,
            sweep_interval_seconds=self.cache_sweep_interval_seconds,
        )
        p.validate()
        return p

    def fare_policy(self) -> FarePolicy:
        p = FarePolicy(
            rate_per_meter=self.fare_rate_per_meter,
            reroll_on_accept=self.fare_reroll_on_accept,
        )
        p.validate()
        return p

    def matching_policy(self) -> MatchingPolicy:
        p = MatchingPolicy(mode=self.match_mode, match_radius_m=self.match_radius_m)
        p.validate()
        return p


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from `environ` (defaults to os.environ after loading .env).
    Missing variables keep their defaults.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    defaults = Settings()

    def get(name: str, default):
        raw = environ.get(name)
        if raw is None or raw == "":
            return default
        if isinstance(default, bool):
            return raw.strip().lower() in _TRUE
        try:
            return type(default)(raw)
        except ValueError as exc:
            raise ValueError(f"{name}={raw!r} is not a valid {type(default).__name__}") from exc

    return Settings(
        osrm_base_url=get("OSRM_BASE_URL", defaults.osrm_base_url),
        nominatim_base_url=get("NOMINATIM_BASE_URL", defaults.nominatim_base_url),
        routing_timeout_seconds=get("ROUTING_TIMEOUT_SECONDS", defaults.routing_timeout_seconds),
        route_cache_ttl_seconds=get("ROUTE_CACHE_TTL_SECONDS", defaults.route_cache_ttl_seconds),
        cache_sweep_interval_seconds=get("CACHE_SWEEP_INTERVAL_SECONDS", defaults.cache_sweep_interval_seconds),
        fare_rate_per_meter=get("FARE_RATE_PER_METER", defaults.fare_rate_per_meter),
        fare_reroll_on_accept=get("FARE_REROLL_ON_ACCEPT", defaults.fare_reroll_on_accept),
        match_mode=get("MATCH_MODE", defaults.match_mode),
        match_radius_m=get("MATCH_RADIUS_M", defaults.match_radius_m),
        jwt_secret=get("JWT_SECRET", defaults.jwt_secret),
        log_level=get("LOG_LEVEL", defaults.log_level),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
