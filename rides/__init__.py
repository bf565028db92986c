"""
Rides domain package.

Public API:
- Domain models: Ride, RideGroup, Location, RideStatus, GroupStatus
- Errors: RideShareError and its kinds
- Store: InMemoryRecordStore and filter operators
- Fares: FareCalculator, FarePolicy
- (Subpackage) matching: MatchingEngine

"""
from .errors import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    InputError,
    NotFoundError,
    RideShareError,
)
from .models import GroupStatus, Location, Ride, RideGroup, RideStatus
from .store import AnyOf, Contains, In, InMemoryRecordStore, Ne
from .fares import FareCalculator
from .policy import FarePolicy, MatchingPolicy

__all__ = ["Ride",
           "RideGroup",
             "Location",
               "RideStatus",
               "GroupStatus",
               "RideShareError",
               "InputError",
               "NotFoundError",
               "ConflictError",
               "ForbiddenError",
               "AuthenticationError",
               "ExternalServiceError",
               "InMemoryRecordStore",
               "Contains",
               "In",
               "AnyOf",
               "Ne",
               "FareCalculator",
               "FarePolicy",
               "MatchingPolicy",
               ]
