"""
Purpose: Driver-driven lifecycle of a RideGroup and its Rides.
What it does:
accept(group_id, caller)   matched -> in_progress, assigns the driver
complete(group_id, caller) in_progress -> completed, assigned driver only

Both apply the group change with a conditional update first (so two drivers
racing for the same group cannot both win), then move the group's rides in
one bulk update. If the bulk update fails the group change is reverted.
"""

from __future__ import annotations

from typing import Optional
import copy
import logging

from accounts.models import Caller, Role
from rides.errors import ConflictError
from rides.fares import FareCalculator
from rides.models import GroupStatus, RideGroup, RideStatus
from rides.store import In, RecordStore
from .state_machines.group_state import check_can_accept, check_can_complete, require_group
from .state_machines.ride_state import rides_complete_patch, rides_start_patch

logger = logging.getLogger(__name__)


class GroupLifecycle:
    def __init__(self, store: RecordStore, fares: Optional[FareCalculator] = None):
        self.store = store
        self.fares = fares or FareCalculator()

    def accept(self, group_id: str, caller: Caller) -> RideGroup:
        caller.require(Role.DRIVER, "Only drivers can accept groups")

        group = require_group(self.store.groups.get(group_id), group_id)
        check_can_accept(group)

        priced = self.fares.reprice_on_accept(copy.deepcopy(group))
        accepted = self.store.groups.update_if(
            group_id,
            {"driver": None, "status": GroupStatus.MATCHED},
            {
                "driver": caller.identity,
                "status": GroupStatus.IN_PROGRESS,
                "total_fare": priced.total_fare,
                "per_person_fare": priced.per_person_fare,
            },
        )
        if accepted is None:
            # another driver got there between our read and our write
            raise ConflictError(f"Group {group_id} already taken")

        try:
            moved = self.store.rides.update_many(
                {"rider": In(accepted.riders), "status": RideStatus.MATCHED, "group": group_id},
                rides_start_patch(caller.identity),
            )
        except Exception:
            self._restore(group)
            raise

        logger.info("driver %s accepted group %s (%d ride(s) started)", caller.identity, group_id, moved)
        return accepted

    def complete(self, group_id: str, caller: Caller) -> RideGroup:
        caller.require(Role.DRIVER, "Only drivers can complete rides")

        group = require_group(self.store.groups.get(group_id), group_id)
        check_can_complete(group, caller.identity)

        completed = self.store.groups.update_if(
            group_id,
            {"driver": caller.identity, "status": GroupStatus.IN_PROGRESS},
            {"status": GroupStatus.COMPLETED},
        )
        if completed is None:
            raise ConflictError(f"Group {group_id} is no longer in progress")

        try:
            moved = self.store.rides.update_many(
                {"rider": In(completed.riders), "status": RideStatus.IN_PROGRESS, "group": group_id},
                rides_complete_patch(),
            )
        except Exception:
            self._restore(group)
            raise

        logger.info("driver %s completed group %s (%d ride(s) completed)", caller.identity, group_id, moved)
        return completed

    def _restore(self, previous: RideGroup) -> None:
        logger.error("rolling back group %s to %s", previous.id, previous.status.value)
        self.store.groups.save(previous)
