"""Aggregated fuel statistics for a vehicle."""

from dataclasses import dataclass
from typing import Iterable, Optional

from .fillup import Fillup


@dataclass
class VehicleStatistics:
    """Totals and averages over a vehicle's fillups."""

    fillup_count: int = 0
    total_fuel_cost: float = 0
    total_fuel_amount: float = 0
    total_distance: float = 0
    average_consumption: Optional[float] = None
    average_price_per_unit: Optional[float] = None


def compute_statistics(fillups: Iterable[Fillup]) -> VehicleStatistics:
    """
    Summarise fillups.

    average_consumption is weighted by distance and only counts fillups
    that have a consumption (fuel over a known, positive distance).
    """
    stats = VehicleStatistics()
    measured_fuel = 0.0
    measured_distance = 0.0

    for fillup in fillups:
        stats.fillup_count += 1
        stats.total_fuel_cost += fillup.total_price
        stats.total_fuel_amount += fillup.fuel_amount
        stats.total_distance += fillup.distance_traveled or 0
        if fillup.fuel_consumption is not None and fillup.distance_traveled:
            measured_fuel += fillup.fuel_amount
            measured_distance += fillup.distance_traveled

    if measured_distance > 0:
        stats.average_consumption = measured_fuel / measured_distance * 100
    if stats.total_fuel_amount > 0:
        stats.average_price_per_unit = stats.total_fuel_cost / stats.total_fuel_amount
    return stats
