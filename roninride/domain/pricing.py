"""
Fare Pricing  (Strategy Pattern)
================================

There is no routing engine behind a request, so the default strategy quotes
a bounded random fare in ``[fare_min, fare_max)`` as a stand-in for a real
pricing model.  The quote is fixed on the trip at creation time and never
recalculated; the transaction later copies it verbatim.

Complexity: O(1) per quote.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod

from .enums import VehicleType


# ── Strategy hierarchy ────────────────────────────────────────────────


class PricingStrategy(ABC):
    @abstractmethod
    def quote(self, destination: str, vehicle_type: VehicleType) -> float: ...


class FixedPricing(PricingStrategy):
    def __init__(self, fare: float):
        self.fare = round(fare, 2)

    def quote(self, destination: str, vehicle_type: VehicleType) -> float:
        return self.fare


class RandomRangePricing(PricingStrategy):
    def __init__(
        self,
        fare_min: float = 20.0,
        fare_max: float = 40.0,
        rng: random.Random | None = None,
    ):
        if fare_max < fare_min:
            raise ValueError("fare_max must not be below fare_min")
        self.fare_min = fare_min
        self.fare_max = fare_max
        self.rng = rng or random.Random()

    def quote(self, destination: str, vehicle_type: VehicleType) -> float:
        raw = self.fare_min + self.rng.random() * (self.fare_max - self.fare_min)
        # rounding can land exactly on fare_max; keep the upper bound open
        return min(round(raw, 2), round(self.fare_max - 0.01, 2))
