"""
Purpose: Core identity models consumed by the engine.
What it does:
Defines who is calling (Caller) and in which capacity (Role) without relying
on how that identity was authenticated or where user profiles live.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from rides.errors import ForbiddenError, InputError


class Role(str, Enum):
    """
    The two capacities the app knows about.
    """
    RIDER = "rider"
    DRIVER = "driver"


@dataclass(frozen=True)
class Caller:
    """
    An authenticated identity at a specific point in time.
    Lifecycle operations receive one explicitly and check its role.
    """
    identity: str
    role: Role

    @classmethod
    def new(cls, identity: str, role: str | Role) -> Caller:
        if not identity:
            raise InputError("caller identity is required")
        if isinstance(role, str):
            try:
                role = Role(role.lower())
            except ValueError as exc:
                raise InputError(f"unknown role {role!r}") from exc
        return cls(identity=str(identity), role=role)

    @property
    def is_driver(self) -> bool:
        return self.role == Role.DRIVER

    def require(self, role: Role, message: str | None = None) -> Caller:
        if self.role != role:
            raise ForbiddenError(message or f"only {role.value}s can do this")
        return self
