#Expose the driver-side pipeline pieces:
#Group lifecycle (accept / complete)
#Read-only queries for rider and driver screens

from .lifecycle import GroupLifecycle
from .queries import RideQueries, CurrentRide, FareSummary, DriverStats

__all__ = [
    "GroupLifecycle",
    "RideQueries",
    "CurrentRide",
    "FareSummary",
    "DriverStats",
]
