"""
Purpose: Domain models for the Rides capability.
What it does:
- Defines core data structures:
- Location (latitude, longitude, free text address)
- Ride (one rider's trip, status, optional back reference to a group)
- RideGroup (the shared vehicle assignment for a matched pair)

Defines enums/constants:
- RideStatus = requested | matched | in_progress | completed
- GroupStatus = matched | in_progress | completed

Rule: No OSRM calls, no matching logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple
import math
import uuid

from .errors import InputError

LatLon = Tuple[float, float]


class RideStatus(str, Enum):
    REQUESTED = "requested"
    MATCHED = "matched"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class GroupStatus(str, Enum):
    MATCHED = "matched"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_coordinates(latitude, longitude) -> LatLon:
    """
    Return (lat, lon) as floats or raise InputError.
    Booleans and non finite values are rejected; ranges are the WGS84 bounds.
    """
    for name, value in (("latitude", latitude), ("longitude", longitude)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InputError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise InputError(f"{name} must be finite, got {value!r}")

    if not -90.0 <= latitude <= 90.0:
        raise InputError(f"latitude out of range: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise InputError(f"longitude out of range: {longitude}")

    return float(latitude), float(longitude)


def coerce_coordinates(point: Any) -> LatLon:
    """
    Accept (lat, lon) pairs, Location objects or {"latitude", "longitude"}
    dicts and return a validated (lat, lon) tuple.
    """
    if isinstance(point, dict):
        try:
            return validate_coordinates(point["latitude"], point["longitude"])
        except KeyError as exc:
            raise InputError(f"coordinate is missing {exc.args[0]}") from exc

    if hasattr(point, "latitude") and hasattr(point, "longitude"):
        return validate_coordinates(point.latitude, point.longitude)

    try:
        latitude, longitude = point
    except (TypeError, ValueError) as exc:
        raise InputError(f"coordinate must be a (lat, lon) pair, got {point!r}") from exc
    return validate_coordinates(latitude, longitude)


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: str = ""

    @property
    def coordinates(self) -> LatLon:
        return (self.latitude, self.longitude)


@dataclass
class Ride:
    """
    One rider's trip record.

    For grouped rides the authoritative fare lives on the RideGroup; `fare`
    only describes a solo ride that is still waiting for a match.
    """
    rider: str
    pickup_location: Location
    drop_location: Location

    status: RideStatus = RideStatus.REQUESTED
    driver: Optional[str] = None

    distance: Optional[int] = None  # meters
    duration: Optional[str] = None  # "12 min"
    fare: int = 0

    group: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class RideGroup:
    """
    Shared vehicle assignment for the riders matched together.
    Created at match time, mutated by the lifecycle, never deleted.
    """
    riders: List[str]
    pickup_location: Location
    drop_location: Location

    distance: str  # label snapshot, e.g. "3.3km"
    duration: str
    distance_meters: int = 0

    status: GroupStatus = GroupStatus.MATCHED
    driver: Optional[str] = None

    # written together by FareCalculator.price_group
    total_fare: float = 0
    per_person_fare: float = 0

    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
