"""
Purpose: Decide which pending rides a new request is even allowed to join.
What it does:

Builds the candidate list for one incoming request:

- "address" mode: status requested, pickup and drop addresses contain the
  request's addresses (case-insensitive substring), different rider.
  Ordered most recent first.

- "radius" mode: status requested, different rider, pickup within
  match_radius_m of the request's pickup and drop within match_radius_m of
  its drop. Ordered by combined distance, nearest first.

Also derives the exclusion key the engine locks while it searches and creates.

Rule: Candidate search does not mutate anything; the engine claims.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from routing.eta_service import haversine_meters
from ..models import Location, Ride, RideStatus
from ..policy import MatchingPolicy
from ..store import Collection, Contains, Ne


@dataclass(frozen=True)
class MatchRequest:
    rider_id: str
    pickup: Location
    drop: Location


def normalize_address(address: str) -> str:
    return " ".join(address.split()).lower()


def match_key(request: MatchRequest, policy: MatchingPolicy) -> str:
    if policy.mode == "radius":
        # proximity is not partitionable by key; one region covers it
        return "radius"
    return f"{normalize_address(request.pickup.address)}|{normalize_address(request.drop.address)}"


def find_candidates(rides: Collection[Ride], request: MatchRequest, policy: MatchingPolicy) -> List[Ride]:
    if policy.mode == "radius":
        return _radius_candidates(rides, request, policy)
    return _address_candidates(rides, request)


def _address_candidates(rides: Collection[Ride], request: MatchRequest) -> List[Ride]:
    return rides.find({
        "status": RideStatus.REQUESTED,
        "pickup_location.address": Contains(request.pickup.address.strip()),
        "drop_location.address": Contains(request.drop.address.strip()),
        "rider": Ne(request.rider_id),
    })


def _radius_candidates(rides: Collection[Ride], request: MatchRequest, policy: MatchingPolicy) -> List[Ride]:
    pending = rides.find({
        "status": RideStatus.REQUESTED,
        "rider": Ne(request.rider_id),
    })

    scored: List[Tuple[float, int, Ride]] = []
    for index, ride in enumerate(pending):
        pickup_gap = haversine_meters(request.pickup.coordinates, ride.pickup_location.coordinates)
        drop_gap = haversine_meters(request.drop.coordinates, ride.drop_location.coordinates)

        if pickup_gap > policy.match_radius_m or drop_gap > policy.match_radius_m:
            continue

        # index keeps most-recent-first as the tie break
        scored.append((pickup_gap + drop_gap, index, ride))

    scored.sort(key=lambda item: (item[0], item[1]))
    return [ride for _, _, ride in scored]
