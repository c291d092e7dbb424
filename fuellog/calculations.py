"""Numeric helpers for distance, consumption and price calculations."""

import math
from enum import Enum
from typing import Optional


def consumption(distance: Optional[float], fuel_amount: float) -> Optional[float]:
    """
    Fuel used per 100 distance units.

    None when the distance is missing, zero or negative.
    """
    if distance is None or distance <= 0:
        return None
    return fuel_amount / distance * 100


def price_per_unit(total_price: float, fuel_amount: float) -> float:
    """Price of one unit of fuel, 0 when no fuel was added."""
    if fuel_amount is None or fuel_amount <= 0:
        return 0
    return total_price / fuel_amount


def distance_from_odometers(current: float, reference: float) -> float:
    """Signed distance between two readings (negative when the odometer went back)."""
    return current - reference


class ConsumptionDeviation(Enum):
    """How far a fillup's consumption sits from the vehicle average."""

    EXTREMELY_LOW = "extremely_low"  # <= -15%
    VERY_LOW = "very_low"  # (-15%, -8%]
    LOW = "low"  # (-8%, 0%)
    NEUTRAL = "neutral"  # [0%, 5%)
    HIGH = "high"  # [5%, 10%)
    VERY_HIGH = "very_high"  # [10%, 20%)
    EXTREMELY_HIGH = "extremely_high"  # >= 20%
    INVALID = "invalid"


def consumption_deviation(
    value: Optional[float], average: Optional[float]
) -> ConsumptionDeviation:
    """Classify a consumption value against the average."""
    if value is None or average is None or average == 0:
        return ConsumptionDeviation.INVALID
    if not math.isfinite(value) or not math.isfinite(average):
        return ConsumptionDeviation.INVALID

    deviation = (value - average) / average * 100

    if deviation <= -15:
        return ConsumptionDeviation.EXTREMELY_LOW
    if deviation <= -8:
        return ConsumptionDeviation.VERY_LOW
    if deviation < 0:
        return ConsumptionDeviation.LOW
    if deviation < 5:
        return ConsumptionDeviation.NEUTRAL
    if deviation < 10:
        return ConsumptionDeviation.HIGH
    if deviation < 20:
        return ConsumptionDeviation.VERY_HIGH
    return ConsumptionDeviation.EXTREMELY_HIGH
