"""
Purpose: Fare computation and equal split allocation.
What it does:
- total_fare: distance in meters -> whole currency units, rounded up
- per_person_fare: total + rider count -> share, rounded up so the group
  never under-collects
- price_group: the only writer of RideGroup.total_fare / per_person_fare
- reroll_total: the accept-time override (see FarePolicy)

Decimal arithmetic keeps 700 m * 0.01 at exactly 7 instead of 7.000000000000001.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import Optional
import math
import random

from .errors import InputError
from .models import RideGroup
from .policy import FarePolicy, default_fare_policy


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


class FareCalculator:
    def __init__(self, policy: Optional[FarePolicy] = None, rng: Optional[random.Random] = None):
        self.policy = policy or default_fare_policy()
        self.rng = rng or random.Random()

    def total_fare(self, distance_meters: float) -> int:
        if distance_meters is None or distance_meters < 0 or not math.isfinite(distance_meters):
            raise InputError(f"distance must be a non-negative number, got {distance_meters!r}")

        amount = _to_decimal(distance_meters) * _to_decimal(self.policy.rate_per_meter)
        return int(amount.to_integral_value(rounding=ROUND_CEILING))

    def per_person_fare(self, total_fare: float, rider_count: int) -> int:
        if rider_count < 1:
            raise InputError(f"rider_count must be >= 1, got {rider_count}")

        share = _to_decimal(total_fare) / Decimal(rider_count)
        return int(share.to_integral_value(rounding=ROUND_CEILING))

    def price_group(self, group: RideGroup, total_fare: float) -> RideGroup:
        """Set the group's total and recompute its per person share."""
        group.total_fare = total_fare
        group.per_person_fare = self.per_person_fare(total_fare, len(group.riders))
        return group

    def reroll_total(self) -> int:
        return self.rng.randint(self.policy.reroll_min, self.policy.reroll_max)

    def reprice_on_accept(self, group: RideGroup) -> RideGroup:
        """
        Accept-time pricing. With the re-roll disabled the distance based fare
        stands. With it enabled, the legacy behavior: random total and a
        two-decimal per person share.
        """
        if not self.policy.reroll_on_accept:
            return group

        total = self.reroll_total()
        share = (_to_decimal(total) / Decimal(len(group.riders))).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        group.total_fare = total
        group.per_person_fare = float(share)
        return group
