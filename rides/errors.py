"""
Purpose: Error taxonomy shared by routing, matching and dispatch.
What it does:
Every rejection the engine produces is one of these exceptions. Each carries
a machine readable `kind` and a human readable message so the API layer can
report failures without guessing.

Rule: Raise these where the rule is broken; only the API layer converts them.
"""

from __future__ import annotations

from typing import Dict


class RideShareError(Exception):
    """Base class for every rejection raised by the engine."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class InputError(RideShareError):
    """Malformed coordinates, addresses or numeric inputs. Nothing was mutated."""

    kind = "input"


class NotFoundError(RideShareError):
    """Ride, group or user absent."""

    kind = "not_found"


class ConflictError(RideShareError):
    """The record is no longer in the state the transition needs. Callers may retry."""

    kind = "conflict"


class ForbiddenError(RideShareError):
    """Wrong role, or not the driver assigned to the group."""

    kind = "forbidden"


class AuthenticationError(RideShareError):
    """Missing, expired or invalid credential."""

    kind = "unauthenticated"


class ExternalServiceError(RideShareError):
    """An upstream HTTP dependency (routing, geocoding) failed."""

    kind = "external_service"
