"""
Chain recalculation for a vehicle's fillups.

Every mutation re-walks the vehicle's complete, date-ordered fillup set from
the baseline odometer. A date edit can move a record anywhere in the chain,
so only a full walk finds its new neighbours. The walk is pure: callers read
the set before and write the returned patches after.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .calculations import consumption, distance_from_odometers
from .chain_warning import ChainWarning, WarningKind
from .fillup import Fillup, FillupPatch, chain_key, parse_timestamp
from .mileage_mode import MileageMode
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

# Stored values are rounded to 2 decimals elsewhere; differences below these
# are not changes.
DISTANCE_TOLERANCE = 0.1
CONSUMPTION_TOLERANCE = 0.01


@dataclass
class RecalculationResult:
    """Patches for fillups whose derived fields changed, plus warnings."""

    updated: List[FillupPatch] = field(default_factory=list)
    warnings: List[ChainWarning] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.updated


def sort_chain(fillups: Iterable[Fillup]) -> List[Fillup]:
    """Fillups in chain order (date ascending, then id)."""
    return sorted(fillups, key=chain_key)


def _differs(new: Optional[float], old: Optional[float], tolerance: float) -> bool:
    if new is None and old is None:
        return False
    if new is None or old is None:
        return True
    return abs(new - old) > tolerance


def _check_mode(vehicle: Vehicle) -> None:
    if vehicle.mileage_mode not in (MileageMode.ODOMETER, MileageMode.DISTANCE):
        raise ValueError(f"Unknown mileage mode: {vehicle.mileage_mode!r}")


def _advance(reference: float, distance: Optional[float]) -> float:
    return reference + (distance or 0)


def recalculate(vehicle: Vehicle, fillups: Iterable[Fillup]) -> RecalculationResult:
    """
    Recompute distance and consumption for every fillup of a vehicle.

    Args:
        vehicle: Supplies the baseline odometer and mileage mode.
        fillups: The vehicle's complete fillup set, in any order.

    Returns:
        Patches for records whose stored values differ beyond tolerance,
        and odometer regression/stagnation warnings.
    """
    _check_mode(vehicle)
    result = RecalculationResult()
    reference = vehicle.baseline_odometer
    chain = sort_chain(fillups)

    for fillup in chain:
        if vehicle.mileage_mode is MileageMode.ODOMETER and fillup.odometer is not None:
            raw_delta = distance_from_odometers(fillup.odometer, reference)
            new_distance = max(0, raw_delta)
            if raw_delta < 0:
                result.warnings.append(
                    ChainWarning(
                        WarningKind.ODOMETER_REGRESSION,
                        fillup.id,
                        fillup.odometer,
                        reference,
                    )
                )
            elif raw_delta == 0:
                result.warnings.append(
                    ChainWarning(
                        WarningKind.ODOMETER_STAGNANT,
                        fillup.id,
                        fillup.odometer,
                        reference,
                    )
                )
            reference = fillup.odometer
            derived = True
        else:
            # Distance is user input here; the reference only tracks position
            new_distance = fillup.distance_traveled
            reference = _advance(reference, new_distance)
            derived = False

        new_consumption = consumption(new_distance, fillup.fuel_amount)

        distance_changed = derived and _differs(
            new_distance, fillup.distance_traveled, DISTANCE_TOLERANCE
        )
        consumption_changed = _differs(
            new_consumption, fillup.fuel_consumption, CONSUMPTION_TOLERANCE
        )
        if distance_changed or consumption_changed:
            result.updated.append(
                FillupPatch(fillup.id, new_distance, new_consumption, derived)
            )

    logger.debug(
        "Recalculated %d fillups for vehicle %s: %d changed, %d warnings",
        len(chain),
        vehicle.id,
        len(result.updated),
        len(result.warnings),
    )
    return result


def chain_reference(vehicle: Vehicle, fillups: Iterable[Fillup], date: str) -> float:
    """
    Reference odometer for a record inserted at the given date.

    Existing records on or before the date precede the new one.
    """
    _check_mode(vehicle)
    cutoff = parse_timestamp(date)
    reference = vehicle.baseline_odometer
    for fillup in sort_chain(fillups):
        if fillup.timestamp > cutoff:
            break
        if vehicle.mileage_mode is MileageMode.ODOMETER and fillup.odometer is not None:
            reference = fillup.odometer
        else:
            reference = _advance(reference, fillup.distance_traveled)
    return reference
