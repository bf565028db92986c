from typing import Any, Dict

from rides.models import RideStatus


def rides_start_patch(driver_id: str) -> Dict[str, Any]:
    """
    Once a driver accepts a group, every matched ride in it is picked up by that driver.
    """
    return {"status": RideStatus.IN_PROGRESS, "driver": driver_id}


def rides_complete_patch() -> Dict[str, Any]:
    return {"status": RideStatus.COMPLETED}
