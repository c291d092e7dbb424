"""
Mutation operations on a vehicle's fillups.

Each operation applies its direct change through the record store, then
re-walks the vehicle's whole chain and writes back only the records whose
derived fields changed. A failed direct write propagates; a failed chain
write is logged and reported in the result, never rolled back.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .calculations import consumption, distance_from_odometers
from .chain_warning import ChainWarning
from .errors import FillupNotFoundError, FillupValidationError
from .fillup import Fillup, FillupInput, FillupUpdate
from .mileage_mode import MileageMode
from .recalculator import RecalculationResult, chain_reference, recalculate
from .statistics import VehicleStatistics, compute_statistics
from .store import RecordStore
from .validation import (
    validate_baseline,
    validate_fillup_input,
    validate_fillup_update,
)
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of a mutation: affected records, warnings and write counts."""

    fillups: List[Fillup] = field(default_factory=list)
    warnings: List[ChainWarning] = field(default_factory=list)
    updated_entries_count: int = 0
    attempted_entries_count: int = 0
    updated_fillup_ids: List[int] = field(default_factory=list)
    failed_fillup_ids: List[int] = field(default_factory=list)
    vehicle: Optional[Vehicle] = None

    @property
    def fillup(self) -> Optional[Fillup]:
        """The single record a create/update/delete acted on."""
        return self.fillups[0] if self.fillups else None

    @property
    def complete(self) -> bool:
        """True when every recalculated entry was written."""
        return not self.failed_fillup_ids

    def warnings_for(self, fillup_id: int) -> List[ChainWarning]:
        return [w for w in self.warnings if w.fillup_id == fillup_id]


class FillupService:
    """Runs fillup mutations against a record store, one vehicle at a time."""

    def __init__(self, store: RecordStore):
        self.store = store
        # Entries live only while some caller holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    @contextmanager
    def vehicle_lock(self, vehicle_id: str) -> Iterator[None]:
        """Serialise read-recalculate-write cycles for one vehicle."""
        with self._locks_guard:
            lock = self._locks.get(vehicle_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[vehicle_id] = lock
        with lock:
            yield

    # -------------------------------------------------------------------------
    # Chain helpers
    # -------------------------------------------------------------------------

    def _find(self, fillups: List[Fillup], fillup_id: int) -> Fillup:
        for fillup in fillups:
            if fillup.id == fillup_id:
                return fillup
        raise FillupNotFoundError(fillup_id)

    def _persist(
        self,
        vehicle: Vehicle,
        fillups: List[Fillup],
        result: OperationResult,
    ) -> RecalculationResult:
        """Recalculate the full chain and write every changed entry in one batch."""
        recalculation = recalculate(vehicle, fillups)
        by_id = {f.id: f for f in fillups}
        result.warnings = recalculation.warnings
        result.attempted_entries_count = len(recalculation.updated)

        patches = {p.fillup_id: p.as_fields() for p in recalculation.updated}
        failed = self.store.update_fillups_fields(patches) if patches else {}

        for fillup_id, fields in patches.items():
            if fillup_id in failed:
                logger.warning(
                    "Vehicle %s: could not write recalculated fillup %s: %s",
                    vehicle.id,
                    fillup_id,
                    failed[fillup_id],
                )
                result.failed_fillup_ids.append(fillup_id)
                continue
            result.updated_entries_count += 1
            result.updated_fillup_ids.append(fillup_id)
            if fillup_id in by_id:
                by_id[fillup_id].apply(fields)

        if result.failed_fillup_ids:
            logger.warning(
                "Vehicle %s: wrote %d of %d recalculated fillups",
                vehicle.id,
                result.updated_entries_count,
                result.attempted_entries_count,
            )
        return recalculation

    def _own_fields(
        self, vehicle: Vehicle, existing: List[Fillup], fillup_input: FillupInput
    ) -> Fillup:
        """Build a new record with derived fields from its chain predecessor."""
        if vehicle.mileage_mode is MileageMode.ODOMETER:
            reference = chain_reference(vehicle, existing, fillup_input.date)
            distance = max(
                0, distance_from_odometers(fillup_input.odometer, reference)
            )
            odometer = fillup_input.odometer
        elif vehicle.mileage_mode is MileageMode.DISTANCE:
            distance = fillup_input.distance
            odometer = None
        else:
            raise ValueError(f"Unknown mileage mode: {vehicle.mileage_mode!r}")

        return Fillup(
            vehicle_id=vehicle.id,
            date=fillup_input.date,
            fuel_amount=fillup_input.fuel_amount,
            total_price=fillup_input.total_price,
            odometer=odometer,
            distance_traveled=distance,
            fuel_consumption=consumption(distance, fillup_input.fuel_amount),
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create_fillup(
        self, vehicle_id: str, fillup_input: FillupInput
    ) -> OperationResult:
        """
        Record a new fillup.

        The vehicle's mileage mode decides whether odometer or distance is
        accepted. Later fillups are corrected if the new record lands
        before them in date order.
        """
        with self.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            validate_fillup_input(vehicle, fillup_input)
            existing = self.store.list_fillups(vehicle_id)

            fillup = self.store.insert_fillup(
                self._own_fields(vehicle, existing, fillup_input)
            )
            result = OperationResult(fillups=[fillup], vehicle=vehicle)
            self._persist(vehicle, existing + [fillup], result)

        logger.info(
            "Vehicle %s: created fillup %s, %d/%d chain entries updated",
            vehicle_id,
            fillup.id,
            result.updated_entries_count,
            result.attempted_entries_count,
        )
        return result

    def update_fillup(
        self, vehicle_id: str, fillup_id: int, update: FillupUpdate
    ) -> OperationResult:
        """
        Edit supplied fields of a fillup and restore chain consistency.

        updated_entries_count counts every record whose derived fields
        changed, the edited one included.
        """
        with self.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            fillups = self.store.list_fillups(vehicle_id)
            fillup = self._find(fillups, fillup_id)
            validate_fillup_update(vehicle, update)

            fields = update.to_fields()
            if fields:
                self.store.update_fillup_fields(fillup_id, fields)
                fillup.apply(fields)

            result = OperationResult(fillups=[fillup], vehicle=vehicle)
            self._persist(vehicle, fillups, result)

        logger.info(
            "Vehicle %s: updated fillup %s (%s), %d/%d chain entries updated",
            vehicle_id,
            fillup_id,
            ", ".join(sorted(fields)) or "no fields",
            result.updated_entries_count,
            result.attempted_entries_count,
        )
        return result

    def delete_fillup(self, vehicle_id: str, fillup_id: int) -> OperationResult:
        """Remove a fillup; its successor is re-anchored on its predecessor."""
        with self.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            fillups = self.store.list_fillups(vehicle_id)
            fillup = self._find(fillups, fillup_id)

            self.store.delete_fillup_by_id(fillup_id)
            remaining = [f for f in fillups if f.id != fillup_id]

            result = OperationResult(fillups=[fillup], vehicle=vehicle)
            self._persist(vehicle, remaining, result)

        logger.info(
            "Vehicle %s: deleted fillup %s (odometer=%s), %d/%d chain entries "
            "updated",
            vehicle_id,
            fillup_id,
            fillup.odometer,
            result.updated_entries_count,
            result.attempted_entries_count,
        )
        return result

    def batch_import_fillups(
        self, vehicle_id: str, inputs: List[FillupInput]
    ) -> OperationResult:
        """
        Insert many fillups at once, then recalculate the chain once.

        Every input is validated against the vehicle's mode before anything
        is written. Derived fields are left for the recalculation to fill.
        """
        with self.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            for index, fillup_input in enumerate(inputs):
                try:
                    validate_fillup_input(vehicle, fillup_input)
                except FillupValidationError as e:
                    raise FillupValidationError(
                        f"Import row {index + 1}: {e.message}", field=e.field
                    ) from e

            existing = self.store.list_fillups(vehicle_id)
            records = [
                Fillup(
                    vehicle_id=vehicle.id,
                    date=i.date,
                    fuel_amount=i.fuel_amount,
                    total_price=i.total_price,
                    odometer=i.odometer,
                    distance_traveled=i.distance,
                )
                for i in inputs
            ]
            imported = self.store.insert_fillups(records) if records else []

            result = OperationResult(fillups=list(imported), vehicle=vehicle)
            self._persist(vehicle, existing + list(imported), result)

        logger.info(
            "Vehicle %s: imported %d fillups, %d/%d chain entries updated",
            vehicle_id,
            len(imported),
            result.updated_entries_count,
            result.attempted_entries_count,
        )
        return result

    def change_vehicle_baseline(
        self, vehicle_id: str, new_baseline: float
    ) -> OperationResult:
        """Move the chain anchor; the first fillup's distance follows it."""
        validate_baseline(new_baseline)
        with self.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            old_baseline = vehicle.baseline_odometer
            self.store.update_vehicle_baseline(vehicle_id, new_baseline)
            vehicle.baseline_odometer = new_baseline

            fillups = self.store.list_fillups(vehicle_id)
            result = OperationResult(vehicle=vehicle)
            self._persist(vehicle, fillups, result)
            result.fillups = [f for f in fillups if f.id in result.updated_fillup_ids]

        logger.info(
            "Vehicle %s: baseline %s -> %s, %d/%d chain entries updated",
            vehicle_id,
            old_baseline,
            new_baseline,
            result.updated_entries_count,
            result.attempted_entries_count,
        )
        return result

    def recalculate_vehicle(self, vehicle_id: str) -> OperationResult:
        """Restore chain consistency without any direct change."""
        with self.vehicle_lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            fillups = self.store.list_fillups(vehicle_id)
            result = OperationResult(vehicle=vehicle)
            self._persist(vehicle, fillups, result)
            result.fillups = [f for f in fillups if f.id in result.updated_fillup_ids]

        logger.info(
            "Vehicle %s: recalculated, %d/%d chain entries updated",
            vehicle_id,
            result.updated_entries_count,
            result.attempted_entries_count,
        )
        return result

    # -------------------------------------------------------------------------
    # Read-only
    # -------------------------------------------------------------------------

    def check_vehicle(self, vehicle_id: str) -> RecalculationResult:
        """Pending corrections and warnings, without writing anything."""
        vehicle = self.store.get_vehicle(vehicle_id)
        return recalculate(vehicle, self.store.list_fillups(vehicle_id))

    def statistics(self, vehicle_id: str) -> VehicleStatistics:
        self.store.get_vehicle(vehicle_id)
        return compute_statistics(self.store.list_fillups(vehicle_id))
