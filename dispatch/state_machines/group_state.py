from rides.errors import ConflictError, ForbiddenError, NotFoundError
from rides.models import GroupStatus, RideGroup
from typing import Optional

# matched -> in_progress -> completed, no regression, no cancellation
GROUP_TRANSITIONS = {
    GroupStatus.MATCHED: GroupStatus.IN_PROGRESS,
    GroupStatus.IN_PROGRESS: GroupStatus.COMPLETED,
}


def require_group(group: Optional[RideGroup], group_id: str) -> RideGroup:
    if group is None:
        raise NotFoundError(f"Ride group {group_id} not found")
    return group


def check_group_transition(group: RideGroup, target: GroupStatus) -> None:
    """
    Raise ConflictError unless `target` is the next state after group.status.
    """
    if GROUP_TRANSITIONS.get(group.status) != target:
        raise ConflictError(
            f"Cannot move group {group.id} from {group.status.value} to {target.value}"
        )


def check_can_accept(group: RideGroup) -> None:
    """
    A group can be taken by exactly one driver, and only while it is still matched.
    """
    if group.driver is not None:
        raise ConflictError(f"Group {group.id} already taken")
    check_group_transition(group, GroupStatus.IN_PROGRESS)


def check_can_complete(group: RideGroup, driver_id: str) -> None:
    """
    Only the assigned driver may complete, and only a group that is in progress.
    """
    if group.driver != driver_id:
        raise ForbiddenError("You are not assigned to this ride group")
    check_group_transition(group, GroupStatus.COMPLETED)
