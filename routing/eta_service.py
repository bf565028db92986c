#Purpose: Geometric distance/ETA estimation when OSRM is unavailable.
#Converts two coordinates into a road-like distance and a travel time:
#straight line (haversine) distance
#circuity factor: real roads are longer than the crow flies, more so on short trips
#assumed average speed: dense urban for short trips, arterial/highway for longer ones
#Deterministic: same inputs always give the same estimate.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple
import math

LatLon = Tuple[float, float]

EARTH_RADIUS_M = 6_371_000

# (upper bound on straight-line meters, factor); the last tier has no bound
CIRCUITY_TIERS: List[Tuple[float, float]] = [
    (1_000, 1.40),
    (5_000, 1.35),
    (10_000, 1.30),
    (math.inf, 1.25),
]

# (upper bound on road meters, km/h)
SPEED_TIERS_KMH: List[Tuple[float, float]] = [
    (3_000, 20),
    (10_000, 30),
    (math.inf, 40),
]


@dataclass(frozen=True)
class GeometricEstimate:
    straight_line_m: float
    distance_m: float
    duration_s: int
    geometry: Dict[str, Any]


def haversine_meters(origin: LatLon, destination: LatLon) -> float:
    lat1, lon1 = origin
    lat2, lon2 = destination

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def circuity_factor(straight_line_m: float) -> float:
    for bound, factor in CIRCUITY_TIERS:
        if straight_line_m < bound:
            return factor
    return CIRCUITY_TIERS[-1][1]


def average_speed_kmh(road_distance_m: float) -> float:
    for bound, speed in SPEED_TIERS_KMH:
        if road_distance_m < bound:
            return speed
    return SPEED_TIERS_KMH[-1][1]


def straight_line_geometry(origin: LatLon, destination: LatLon) -> Dict[str, Any]:
    """Two point GeoJSON LineString, (lon, lat) ordered like OSRM's."""
    return {
        "type": "LineString",
        "coordinates": [
            [origin[1], origin[0]],
            [destination[1], destination[0]],
        ],
    }


def estimate_eta(origin: LatLon, destination: LatLon) -> GeometricEstimate:
    straight = haversine_meters(origin, destination)
    road = straight * circuity_factor(straight)

    speed_mps = average_speed_kmh(road) * 1000 / 3600
    duration = math.ceil(road / speed_mps)

    return GeometricEstimate(
        straight_line_m=straight,
        distance_m=road,
        duration_s=duration,
        geometry=straight_line_geometry(origin, destination),
    )
