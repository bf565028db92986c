"""
Purpose: The matching "orchestrator" (single entry point for ride requests).
What it does:

Coordinates one ride request end-to-end:

- validates addresses and coordinates

- estimates route cost (routing.RouteEstimator)

- inside the request's exclusion region, searches for a pending partner
  (candidates.py) and claims the first one it can with a conditional update

- on a claim: creates the RideGroup, the requester's matched Ride, and links
  the partner's Ride to the group

- otherwise: stores the requester's Ride as requested ("waiting for match")

Typical public call:

- engine.request_ride(rider_id, pickup_address, drop_address, pickup_coords, drop_coords) -> MatchResult

Rule: Engine is the only file other modules should call directly for matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
import logging

from routing.route_service import RouteEstimate, RouteEstimator
from ..errors import ConflictError, InputError
from ..fares import FareCalculator
from ..models import GroupStatus, Location, Ride, RideGroup, RideStatus, coerce_coordinates
from ..policy import MatchingPolicy, default_matching_policy
from ..store import RecordStore
from .candidates import MatchRequest, find_candidates, match_key
from .locks import KeyedLockManager

logger = logging.getLogger(__name__)

WAITING_MESSAGE = "Ride requested. Waiting for a match"
MATCHED_MESSAGE = "Matched with another rider!"


@dataclass(frozen=True)
class MatchResult:
    """
    Output of one ride request.
    `group` is set only when the request was matched.
    """
    matched: bool
    ride: Ride
    route: RouteEstimate
    group: Optional[RideGroup] = None

    @property
    def message(self) -> str:
        return MATCHED_MESSAGE if self.matched else WAITING_MESSAGE


class MatchingEngine:
    def __init__(
        self,
        store: RecordStore,
        estimator: RouteEstimator,
        fares: Optional[FareCalculator] = None,
        policy: Optional[MatchingPolicy] = None,
        locks: Optional[KeyedLockManager] = None,
    ):
        self.store = store
        self.estimator = estimator
        self.fares = fares or FareCalculator()
        self.policy = policy or default_matching_policy()
        self.policy.validate()
        self.locks = locks or KeyedLockManager()

    def request_ride(
        self,
        rider_id: str,
        pickup_address: str,
        drop_address: str,
        pickup_coords: Any,
        drop_coords: Any,
    ) -> MatchResult:
        if not rider_id:
            raise InputError("rider id is required")
        pickup_address = _clean_address(pickup_address, "pickup")
        drop_address = _clean_address(drop_address, "drop")

        # 1) route cost first; also validates the coordinates
        route = self.estimator.estimate(pickup_coords, drop_coords)
        request = MatchRequest(
            rider_id=rider_id,
            pickup=Location(*coerce_coordinates(pickup_coords), address=pickup_address),
            drop=Location(*coerce_coordinates(drop_coords), address=drop_address),
        )

        # 2) search + create is the critical section
        with self.locks.lock(match_key(request, self.policy)):
            partner = self._claim_partner(request)
            if partner is None:
                ride = self._create_waiting_ride(request, route)
                logger.info("ride %s for rider %s is waiting for a match", ride.id, rider_id)
                return MatchResult(matched=False, ride=ride, route=route)

            ride, group = self._form_group(request, route, partner)

        logger.info(
            "matched rider %s with rider %s into group %s (total fare %s)",
            rider_id, partner.rider, group.id, group.total_fare,
        )
        return MatchResult(matched=True, ride=ride, route=route, group=group)

    #----------------
    # internal helpers
    #----------------
    def _claim_partner(self, request: MatchRequest) -> Optional[Ride]:
        """
        Walk the candidates and atomically flip the first one that is still
        requested to matched. Losing a claim means another request matched
        that ride first; move on to the next candidate.
        """
        candidates = find_candidates(self.store.rides, request, self.policy)

        for candidate in candidates[: self.policy.max_claim_attempts]:
            claimed = self.store.rides.update_if(
                candidate.id,
                {"status": RideStatus.REQUESTED, "group": None},
                {"status": RideStatus.MATCHED},
            )
            if claimed is not None:
                return claimed
            logger.debug("candidate %s was claimed by a concurrent request", candidate.id)

        return None

    def _create_waiting_ride(self, request: MatchRequest, route: RouteEstimate) -> Ride:
        ride = Ride(
            rider=request.rider_id,
            pickup_location=request.pickup,
            drop_location=request.drop,
            status=RideStatus.REQUESTED,
            distance=route.distance_meters,
            duration=route.duration_label,
            fare=self.fares.total_fare(route.distance_meters),
        )
        return self.store.rides.create(ride)

    def _form_group(self, request: MatchRequest, route: RouteEstimate, partner: Ride):
        """
        Persist the group and both back references. If any write fails the
        partner goes back to requested and the group is removed, so nothing
        points at a group that does not fully exist.
        """
        group = RideGroup(
            riders=[request.rider_id, partner.rider],
            pickup_location=request.pickup,
            drop_location=request.drop,
            distance=route.distance_label,
            duration=route.duration_label,
            distance_meters=route.distance_meters,
            status=GroupStatus.MATCHED,
        )
        self.fares.price_group(group, self.fares.total_fare(route.distance_meters))

        ride = Ride(
            rider=request.rider_id,
            pickup_location=request.pickup,
            drop_location=request.drop,
            status=RideStatus.MATCHED,
            distance=route.distance_meters,
            duration=route.duration_label,
            group=group.id,
        )

        group_created = ride_created = False
        try:
            group = self.store.groups.create(group)
            group_created = True
            ride = self.store.rides.create(ride)
            ride_created = True
            linked = self.store.rides.update_if(
                partner.id,
                {"status": RideStatus.MATCHED, "group": None},
                {"group": group.id},
            )
            if linked is None:
                raise ConflictError(f"ride {partner.id} changed while being grouped")
        except Exception:
            logger.exception("grouping rider %s with ride %s failed, rolling back", request.rider_id, partner.id)
            if ride_created:
                self.store.rides.delete(ride.id)
            if group_created:
                self.store.groups.delete(group.id)
            self.store.rides.update_if(
                partner.id,
                {"status": RideStatus.MATCHED},
                {"status": RideStatus.REQUESTED, "group": None},
            )
            raise

        return ride, group


def _clean_address(address: Any, label: str) -> str:
    if not isinstance(address, str) or not address.strip():
        raise InputError(f"{label} address must be a non-empty string")
    return address.strip()


