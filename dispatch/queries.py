"""
Purpose: Read-only views over rides and groups for rider and driver screens.
What it does:
Answers "what can a driver pick up", "what is my current ride", "what did I
pay" style questions. Nothing here mutates the store or the state machine.
Fares of grouped rides always resolve through the group.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from rides.errors import NotFoundError
from rides.models import GroupStatus, Ride, RideGroup, RideStatus
from rides.store import In, RecordStore


@dataclass(frozen=True)
class CurrentRide:
    ride: Ride
    group: Optional[RideGroup]
    co_riders: int
    total_fare: float
    per_person_fare: float


@dataclass(frozen=True)
class FareSummary:
    ride: Ride
    group: RideGroup

    @property
    def total_fare(self) -> float:
        return self.group.total_fare or 0

    @property
    def per_person_fare(self) -> float:
        return self.group.per_person_fare or 0


@dataclass(frozen=True)
class DriverStats:
    driver_id: str
    completed_groups: int
    completed_rides: int
    earnings: float


class RideQueries:
    def __init__(self, store: RecordStore):
        self.store = store

    # ---- groups ----

    def unassigned_groups(self) -> List[RideGroup]:
        return self.store.groups.find({"status": GroupStatus.MATCHED, "driver": None})

    def active_groups(self) -> List[RideGroup]:
        return self.store.groups.find({"status": In([GroupStatus.MATCHED, GroupStatus.IN_PROGRESS])})

    def driver_history(self, driver_id: str) -> List[RideGroup]:
        return self.store.groups.find({"status": GroupStatus.COMPLETED, "driver": driver_id})

    # ---- rides ----

    def pending_rides(self) -> List[Ride]:
        return self.store.rides.find({"status": RideStatus.REQUESTED})

    def driver_eligible_rides(self) -> List[Ride]:
        return self.store.rides.find({"status": RideStatus.MATCHED, "driver": None})

    def rider_history(self, rider_id: str) -> List[Ride]:
        return self.store.rides.find({"rider": rider_id, "status": RideStatus.COMPLETED})

    def current_ride(self, rider_id: str) -> Optional[CurrentRide]:
        """
        The rider's most recent ride in any status, with its fare resolved
        through the group when it has one.
        """
        ride = self.store.rides.find_one({"rider": rider_id})
        if ride is None:
            return None

        group = self.store.groups.get(ride.group) if ride.group else None
        if group is None:
            return CurrentRide(ride=ride, group=None, co_riders=0,
                               total_fare=ride.fare, per_person_fare=ride.fare)

        return CurrentRide(
            ride=ride,
            group=group,
            co_riders=len(group.riders) - 1,
            total_fare=group.total_fare,
            per_person_fare=group.per_person_fare,
        )

    def fare_summary(self, rider_id: str) -> FareSummary:
        ride = self.store.rides.find_one({"rider": rider_id, "status": RideStatus.COMPLETED})
        if ride is None:
            raise NotFoundError("No completed rides found.")
        if ride.group is None:
            raise NotFoundError("No group found for this ride.")

        group = self.store.groups.get(ride.group)
        if group is None:
            raise NotFoundError("Group not found.")
        return FareSummary(ride=ride, group=group)

    def driver_stats(self, driver_id: str) -> DriverStats:
        groups = self.driver_history(driver_id)
        rides = self.store.rides.find({"driver": driver_id, "status": RideStatus.COMPLETED})
        return DriverStats(
            driver_id=driver_id,
            completed_groups=len(groups),
            completed_rides=len(rides),
            earnings=sum(group.total_fare or 0 for group in groups),
        )
