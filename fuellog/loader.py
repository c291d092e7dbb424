"""YAML file record store for vehicles and fillups."""

import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .errors import (
    FillupNotFoundError,
    FuelLogError,
    StoreError,
    VehicleNotFoundError,
)
from .fillup import Fillup
from .mileage_mode import MileageMode
from .schema import schema_errors
from .store import PATCHABLE_FIELDS, RecordStore
from .validation import validate_baseline
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

# Fillup attribute -> YAML key
_FILLUP_KEYS = {
    "id": "id",
    "vehicle_id": "vehicleId",
    "date": "date",
    "fuel_amount": "fuelAmount",
    "total_price": "totalPrice",
    "odometer": "odometer",
    "distance_traveled": "distanceTraveled",
    "fuel_consumption": "fuelConsumption",
}


def _date_str(value: Any) -> Any:
    """Unquoted YAML dates load as date objects; keep them as ISO strings."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _vehicle_from_dict(dct: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        dct["id"],
        dct.get("name", dct["id"]),
        dct.get("baselineOdometer", 0),
        MileageMode(dct.get("mileageMode", MileageMode.ODOMETER.value)),
    )


def _vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "name": vehicle.name,
        "baselineOdometer": vehicle.baseline_odometer,
        "mileageMode": vehicle.mileage_mode.value,
    }


def _fillup_from_dict(dct: Dict[str, Any]) -> Fillup:
    return Fillup(
        vehicle_id=dct["vehicleId"],
        date=_date_str(dct["date"]),
        fuel_amount=dct["fuelAmount"],
        total_price=dct["totalPrice"],
        odometer=dct.get("odometer"),
        distance_traveled=dct.get("distanceTraveled"),
        fuel_consumption=dct.get("fuelConsumption"),
        id=dct["id"],
    )


def _fillup_to_dict(fillup: Fillup) -> Dict[str, Any]:
    """Serialize a Fillup, omitting None values for cleaner YAML."""
    d: Dict[str, Any] = {}
    for attr, key in _FILLUP_KEYS.items():
        value = getattr(fillup, attr)
        if value is not None:
            d[key] = value
    return d


class YamlStore(RecordStore):
    """
    Record store backed by a single YAML data file.

    Each call loads the file, applies its change and writes it back. An
    RLock serialises those read-modify-write cycles within the process.
    A missing file reads as an empty store and is created on first write.
    """

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # File access
    # -------------------------------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        if not self.filename.exists():
            return {"nextFillupId": 1, "vehicles": [], "fillups": []}
        try:
            with open(self.filename, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read {self.filename}: {e}") from e

        data.setdefault("vehicles", [])
        data.setdefault("fillups", [])
        if data["vehicles"] is None:
            data["vehicles"] = []
        if data["fillups"] is None:
            data["fillups"] = []
        for entry in data["fillups"]:
            if isinstance(entry, dict) and "date" in entry:
                entry["date"] = _date_str(entry["date"])
        if "nextFillupId" not in data:
            ids = [f.get("id", 0) for f in data["fillups"] if isinstance(f, dict)]
            data["nextFillupId"] = max(ids, default=0) + 1

        errors = schema_errors(data)
        if errors:
            raise StoreError(f"Invalid data file {self.filename}: {errors[0]}")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            with open(self.filename, "w") as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot write {self.filename}: {e}") from e

    @staticmethod
    def _find_fillup(data: Dict[str, Any], fillup_id: int) -> Dict[str, Any]:
        for entry in data["fillups"]:
            if entry["id"] == fillup_id:
                return entry
        raise FillupNotFoundError(fillup_id)

    @staticmethod
    def _find_vehicle(data: Dict[str, Any], vehicle_id: str) -> Dict[str, Any]:
        for entry in data["vehicles"]:
            if entry["id"] == vehicle_id:
                return entry
        raise VehicleNotFoundError(vehicle_id)

    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    def list_vehicles(self) -> List[Vehicle]:
        with self._lock:
            data = self._read()
        return [_vehicle_from_dict(v) for v in data["vehicles"]]

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        with self._lock:
            data = self._read()
        return _vehicle_from_dict(self._find_vehicle(data, vehicle_id))

    def create_vehicle(self, vehicle: Vehicle) -> Vehicle:
        """
        Add a vehicle.

        Raises FillupValidationError for a bad baseline and ValueError if the
        id is already taken. Nothing is written in either case.
        """
        validate_baseline(vehicle.baseline_odometer)
        with self._lock:
            data = self._read()
            if any(v["id"] == vehicle.id for v in data["vehicles"]):
                raise ValueError(f"Vehicle '{vehicle.id}' already exists")
            data["vehicles"].append(_vehicle_to_dict(vehicle))
            self._write(data)
        logger.info(
            "Created vehicle %s (%s mode)", vehicle.id, vehicle.mileage_mode.value
        )
        return vehicle

    def update_vehicle_baseline(self, vehicle_id: str, new_baseline: float) -> None:
        validate_baseline(new_baseline)
        with self._lock:
            data = self._read()
            self._find_vehicle(data, vehicle_id)["baselineOdometer"] = new_baseline
            self._write(data)

    def delete_vehicle(self, vehicle_id: str) -> None:
        """Remove a vehicle together with its fillups."""
        with self._lock:
            data = self._read()
            vehicle = self._find_vehicle(data, vehicle_id)
            data["vehicles"].remove(vehicle)
            data["fillups"] = [
                f for f in data["fillups"] if f["vehicleId"] != vehicle_id
            ]
            self._write(data)

    # -------------------------------------------------------------------------
    # Fillups
    # -------------------------------------------------------------------------

    def list_fillups(self, vehicle_id: str) -> List[Fillup]:
        with self._lock:
            data = self._read()
        return [
            _fillup_from_dict(f)
            for f in data["fillups"]
            if f["vehicleId"] == vehicle_id
        ]

    def get_fillup(self, fillup_id: int) -> Fillup:
        with self._lock:
            data = self._read()
        return _fillup_from_dict(self._find_fillup(data, fillup_id))

    def insert_fillup(self, fillup: Fillup) -> Fillup:
        return self.insert_fillups([fillup])[0]

    def insert_fillups(self, fillups: List[Fillup]) -> List[Fillup]:
        """Assign ids in order and write all records in one file update."""
        with self._lock:
            data = self._read()
            for vehicle_id in {f.vehicle_id for f in fillups}:
                self._find_vehicle(data, vehicle_id)
            for fillup in fillups:
                fillup.id = data["nextFillupId"]
                data["nextFillupId"] += 1
                data["fillups"].append(_fillup_to_dict(fillup))
            self._write(data)
        return fillups

    @staticmethod
    def _check_patch(patch: Dict[str, Any]) -> None:
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch fillup fields: {sorted(unknown)}")

    @staticmethod
    def _apply_patch(entry: Dict[str, Any], patch: Dict[str, Any]) -> None:
        for name, value in patch.items():
            key = _FILLUP_KEYS[name]
            if value is None:
                entry.pop(key, None)
            else:
                entry[key] = value

    def update_fillup_fields(self, fillup_id: int, patch: Dict[str, Any]) -> None:
        self._check_patch(patch)
        with self._lock:
            data = self._read()
            self._apply_patch(self._find_fillup(data, fillup_id), patch)
            self._write(data)

    def update_fillups_fields(
        self, patches: Dict[int, Dict[str, Any]]
    ) -> Dict[int, FuelLogError]:
        """Apply all patches in one file update; missing ids are reported."""
        for patch in patches.values():
            self._check_patch(patch)
        failed: Dict[int, FuelLogError] = {}
        with self._lock:
            try:
                data = self._read()
            except StoreError as e:
                return {fillup_id: e for fillup_id in patches}
            for fillup_id, patch in patches.items():
                try:
                    entry = self._find_fillup(data, fillup_id)
                except FillupNotFoundError as e:
                    failed[fillup_id] = e
                    continue
                self._apply_patch(entry, patch)
            if len(failed) < len(patches):
                try:
                    self._write(data)
                except StoreError as e:
                    return {fillup_id: e for fillup_id in patches}
        return failed

    def delete_fillup_by_id(self, fillup_id: int) -> None:
        with self._lock:
            data = self._read()
            data["fillups"].remove(self._find_fillup(data, fillup_id))
            self._write(data)
