"""
Record -> JSON-ready dict conversion for the API surface.
Field names follow the existing mobile client (camelCase, `_id`).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from dispatch.queries import CurrentRide, DriverStats, FareSummary
from rides.models import Location, Ride, RideGroup


def serialize_location(location: Location) -> Dict[str, Any]:
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "address": location.address,
    }


def serialize_ride(ride: Ride) -> Dict[str, Any]:
    return {
        "_id": ride.id,
        "rider": ride.rider,
        "pickupLocation": serialize_location(ride.pickup_location),
        "dropLocation": serialize_location(ride.drop_location),
        "status": ride.status.value,
        "driver": ride.driver,
        "distance": ride.distance,
        "duration": ride.duration,
        "fare": ride.fare,
        "group": ride.group,
        "createdAt": ride.created_at.isoformat(),
    }


def serialize_group(group: RideGroup) -> Dict[str, Any]:
    return {
        "_id": group.id,
        "riders": list(group.riders),
        "driver": group.driver,
        "pickupLocation": serialize_location(group.pickup_location),
        "dropLocation": serialize_location(group.drop_location),
        "status": group.status.value,
        "distance": group.distance,
        "duration": group.duration,
        "totalFare": group.total_fare,
        "perPersonFare": group.per_person_fare,
        "createdAt": group.created_at.isoformat(),
    }


def serialize_rides(rides: List[Ride]) -> List[Dict[str, Any]]:
    return [serialize_ride(ride) for ride in rides]


def serialize_groups(groups: List[RideGroup]) -> List[Dict[str, Any]]:
    return [serialize_group(group) for group in groups]


def serialize_current_ride(current: Optional[CurrentRide]) -> Optional[Dict[str, Any]]:
    if current is None:
        return None
    data = serialize_ride(current.ride)
    data["group"] = serialize_group(current.group) if current.group else None
    data["coRiders"] = current.co_riders
    data["totalFare"] = current.total_fare
    data["perPersonFare"] = current.per_person_fare
    return data


def serialize_fare_summary(summary: FareSummary) -> Dict[str, Any]:
    return {
        "pickupLocation": serialize_location(summary.ride.pickup_location),
        "dropLocation": serialize_location(summary.ride.drop_location),
        "totalFare": summary.total_fare,
        "perPersonFare": summary.per_person_fare,
        "riders": list(summary.group.riders),
    }


def serialize_driver_stats(stats: DriverStats) -> Dict[str, Any]:
    return {
        "driver": stats.driver_id,
        "completedGroups": stats.completed_groups,
        "completedRides": stats.completed_rides,
        "earnings": stats.earnings,
    }
