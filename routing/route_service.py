#Purpose: Route cost computation for downstream use (matching, fares, display).
#Returns the "route information" needed by:
#fare computation (distance in meters)
#rider/driver screens (distance and duration labels, polyline geometry)
#Uses OSRM /route primarily and falls back to geometric estimation
#(eta_service) when OSRM cannot answer. Owns the route and geocode caches.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from rides.models import LatLon, coerce_coordinates, validate_coordinates
from .eta_service import estimate_eta
from .formatting import format_distance, format_duration, round_half_up
from .geocoding_client import NominatimClient
from .osrm_client import OSRMClient, OSRMError
from .policy import RoutingPolicy, default_routing_policy
from .route_cache import CacheSweeper, Clock, TtlCache

logger = logging.getLogger(__name__)

SOURCE_OSRM = "osrm"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class RouteEstimate:
    """
    Route cost between two points.
    distance/duration values are whole meters/seconds; labels are display strings.
    """
    distance_meters: int
    duration_seconds: int
    distance_label: str
    duration_label: str
    geometry: Dict[str, Any]
    source: str = SOURCE_OSRM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance": self.distance_label,
            "distanceValue": self.distance_meters,
            "duration": self.duration_label,
            "durationValue": self.duration_seconds,
            "route": self.geometry,
            "source": self.source,
        }


class RouteEstimator:
    """
    estimate(origin, destination) never fails because of OSRM: timeouts, errors
    and non-Ok answers all degrade to the geometric estimate. Only malformed
    coordinates are rejected (InputError).
    """
    def __init__(
        self,
        osrm: Optional[OSRMClient] = None,
        geocoder: Optional[NominatimClient] = None,
        policy: Optional[RoutingPolicy] = None,
        *,
        clock: Optional[Clock] = None,
    ):
        self.policy = policy or default_routing_policy()
        self.osrm = osrm or OSRMClient(timeout=self.policy.provider_timeout_seconds)
        self.geocoder = geocoder or NominatimClient(timeout=self.policy.provider_timeout_seconds)

        self.route_cache: TtlCache[RouteEstimate] = TtlCache(
            self.policy.cache_ttl_seconds, name="route-cache", clock=clock
        )
        self.geocode_cache: TtlCache[str] = TtlCache(
            self.policy.cache_ttl_seconds, name="geocode-cache", clock=clock
        )
        self.sweeper = CacheSweeper(
            [self.route_cache, self.geocode_cache],
            interval_seconds=self.policy.sweep_interval_seconds,
        )

    #----------------
    # cache keys
    #----------------
    def _point_key(self, point: LatLon) -> str:
        decimals = self.policy.cache_key_decimals
        return f"{point[0]:.{decimals}f},{point[1]:.{decimals}f}"

    def route_key(self, origin: LatLon, destination: LatLon) -> str:
        # directional: A->B and B->A are different entries
        return f"{self._point_key(origin)}-{self._point_key(destination)}"

    #----------------
    # public API
    #----------------
    def estimate(self, origin: LatLon, destination: LatLon) -> RouteEstimate:
        origin = coerce_coordinates(origin)
        destination = coerce_coordinates(destination)

        key = self.route_key(origin, destination)
        cached = self.route_cache.get(key)
        if cached is not None:
            return cached

        try:
            result = self._estimate_with_osrm(origin, destination)
        except OSRMError as exc:
            logger.warning("OSRM unavailable for %s, using geometric fallback: %s", key, exc)
            result = self._estimate_with_fallback(origin, destination)
            self.route_cache.set(key, result, age_fraction=self.policy.fallback_age_fraction)
            return result

        self.route_cache.set(key, result)
        return result

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        """Coordinates -> address text. Geocoder failures raise ExternalServiceError."""
        point = validate_coordinates(latitude, longitude)
        key = self._point_key(point)

        cached = self.geocode_cache.get(key)
        if cached is not None:
            return cached

        address = self.geocoder.reverse(*point)
        self.geocode_cache.set(key, address)
        return address

    def start_sweeper(self) -> None:
        self.sweeper.start()

    def stop_sweeper(self) -> None:
        self.sweeper.stop()

    #----------------
    # internal helpers
    #----------------
    def _estimate_with_osrm(self, origin: LatLon, destination: LatLon) -> RouteEstimate:
        route = self.osrm.compute_route([origin, destination])
        distance = route["distance"]
        duration = route["duration"]
        return RouteEstimate(
            distance_meters=round_half_up(distance),
            duration_seconds=round_half_up(duration),
            distance_label=format_distance(distance),
            duration_label=format_duration(duration),
            geometry=route["geometry"],
            source=SOURCE_OSRM,
        )

    def _estimate_with_fallback(self, origin: LatLon, destination: LatLon) -> RouteEstimate:
        eta = estimate_eta(origin, destination)
        return RouteEstimate(
            distance_meters=round_half_up(eta.distance_m),
            duration_seconds=eta.duration_s,
            distance_label=format_distance(eta.distance_m),
            duration_label=format_duration(eta.duration_s),
            geometry=eta.geometry,
            source=SOURCE_FALLBACK,
        )


