"""Input validation for fillup creation and edits."""

import math
from typing import Any, Dict

from jsonschema import validate, ValidationError

from .errors import FillupValidationError
from .fillup import FillupInput, FillupUpdate, parse_timestamp
from .mileage_mode import MileageMode
from .vehicle import Vehicle

_FIELDS = {
    "date": {"type": "string", "minLength": 1},
    "fuel_amount": {"type": "number", "exclusiveMinimum": 0},
    "total_price": {"type": "number", "minimum": 0},
    "odometer": {"type": "number", "minimum": 0},
    "distance": {"type": "number", "minimum": 0},
}

FILLUP_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": _FIELDS,
    "required": ["date", "fuel_amount", "total_price"],
    "additionalProperties": False,
}

FILLUP_UPDATE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": _FIELDS,
    "additionalProperties": False,
}

# Which mileage field each mode accepts, and which it rejects
_MODE_FIELDS = {
    MileageMode.ODOMETER: ("odometer", "distance"),
    MileageMode.DISTANCE: ("distance", "odometer"),
}


def _check_schema(data: Dict[str, Any], schema: Dict[str, Any]) -> None:
    try:
        validate(instance=data, schema=schema)
    except ValidationError as e:
        field = str(e.path[-1]) if e.path else None
        raise FillupValidationError(e.message, field=field) from e


def _check_finite(data: Dict[str, Any]) -> None:
    # NaN and infinity pass the schema bounds
    for name, value in data.items():
        if isinstance(value, float) and not math.isfinite(value):
            raise FillupValidationError(
                f"'{name}' must be a finite number, got {value}", field=name
            )


def _check_date(data: Dict[str, Any]) -> None:
    if "date" not in data:
        return
    try:
        parse_timestamp(data["date"])
    except (ValueError, OverflowError) as e:
        raise FillupValidationError(
            f"Invalid date '{data['date']}' (expected ISO-8601)", field="date"
        ) from e


def _mode_fields(vehicle: Vehicle):
    try:
        return _MODE_FIELDS[vehicle.mileage_mode]
    except KeyError:
        raise ValueError(f"Unknown mileage mode: {vehicle.mileage_mode!r}") from None


def validate_fillup_input(vehicle: Vehicle, fillup_input: FillupInput) -> None:
    """
    Check a new fillup against the schema and the vehicle's mileage mode.

    The mode decides which of odometer/distance is required; the other
    must be absent.
    """
    data = fillup_input.to_dict()
    _check_schema(data, FILLUP_INPUT_SCHEMA)
    _check_finite(data)
    _check_date(data)

    accepted, rejected = _mode_fields(vehicle)
    if rejected in data:
        raise FillupValidationError(
            f"'{rejected}' is not accepted for a vehicle in "
            f"{vehicle.mileage_mode.value} mode",
            field=rejected,
        )
    if accepted not in data:
        raise FillupValidationError(
            f"'{accepted}' is required for a vehicle in "
            f"{vehicle.mileage_mode.value} mode",
            field=accepted,
        )


def validate_fillup_update(vehicle: Vehicle, update: FillupUpdate) -> None:
    """Check a partial edit; only the mode's own mileage field may be supplied."""
    data = update.to_dict()
    _check_schema(data, FILLUP_UPDATE_SCHEMA)
    _check_finite(data)
    _check_date(data)

    _, rejected = _mode_fields(vehicle)
    if rejected in data:
        raise FillupValidationError(
            f"'{rejected}' is not accepted for a vehicle in "
            f"{vehicle.mileage_mode.value} mode",
            field=rejected,
        )


def validate_baseline(baseline: Any) -> None:
    """Baseline odometer must be a finite, non-negative number."""
    data = {"baseline_odometer": baseline}
    _check_schema(
        data,
        {
            "type": "object",
            "properties": {"baseline_odometer": {"type": "number", "minimum": 0}},
        },
    )
    _check_finite(data)
