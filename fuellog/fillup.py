"""Fillup records, user inputs and recalculation patches."""

from dataclasses import dataclass
from datetime import date as date_type, datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from dateutil.parser import isoparse

from .calculations import price_per_unit


def parse_timestamp(value: Union[str, date_type, datetime]) -> datetime:
    """
    Parse a fillup date into a naive UTC datetime for ordering.

    Accepts ISO-8601 dates ('2024-12-01') and date-times, with or without
    an offset. Raises ValueError for anything else.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date_type):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = isoparse(value.strip())
    else:
        raise ValueError(f"Unsupported date value: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class Fillup:
    """A recorded fuel purchase."""

    def __init__(
        self,
        vehicle_id: str,
        date: str,
        fuel_amount: float,
        total_price: float,
        odometer: Optional[float] = None,
        distance_traveled: Optional[float] = None,
        fuel_consumption: Optional[float] = None,
        id: Optional[int] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.date = date
        self.fuel_amount = fuel_amount
        self.total_price = total_price
        self.odometer = odometer
        self.distance_traveled = distance_traveled
        self.fuel_consumption = fuel_consumption

    @property
    def price_per_unit(self) -> float:
        return price_per_unit(self.total_price, self.fuel_amount)

    @property
    def timestamp(self) -> datetime:
        return parse_timestamp(self.date)

    def apply(self, fields: Dict[str, Any]) -> None:
        """Set attributes from a patch dict (snake_case field names)."""
        for name, value in fields.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        return (
            f"Fillup(id={self.id}, date={self.date!r}, odometer={self.odometer}, "
            f"distance={self.distance_traveled}, consumption={self.fuel_consumption})"
        )


def chain_key(fillup: Fillup) -> Tuple[datetime, float]:
    """Sort key for chain order: date, then insertion order (unsaved records last)."""
    return (fillup.timestamp, fillup.id if fillup.id is not None else float("inf"))


@dataclass
class FillupInput:
    """A new fillup as submitted by the user or an import source."""

    date: str
    fuel_amount: float
    total_price: float
    odometer: Optional[float] = None
    distance: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Submitted fields only (None means not submitted)."""
        d = {
            "date": self.date,
            "fuel_amount": self.fuel_amount,
            "total_price": self.total_price,
            "odometer": self.odometer,
            "distance": self.distance,
        }
        return {k: v for k, v in d.items() if v is not None}


@dataclass
class FillupUpdate:
    """A partial edit of an existing fillup. None means leave unchanged."""

    date: Optional[str] = None
    fuel_amount: Optional[float] = None
    total_price: Optional[float] = None
    odometer: Optional[float] = None
    distance: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "date": self.date,
            "fuel_amount": self.fuel_amount,
            "total_price": self.total_price,
            "odometer": self.odometer,
            "distance": self.distance,
        }
        return {k: v for k, v in d.items() if v is not None}

    def to_fields(self) -> Dict[str, Any]:
        """Store field names for the supplied values."""
        fields = self.to_dict()
        if "distance" in fields:
            fields["distance_traveled"] = fields.pop("distance")
        return fields


@dataclass
class FillupPatch:
    """Recomputed derived fields for one fillup."""

    fillup_id: Optional[int]
    distance_traveled: Optional[float]
    fuel_consumption: Optional[float]
    derived_distance: bool = True

    def as_fields(self) -> Dict[str, Any]:
        """Fields to write. User-entered distances are never written back."""
        fields: Dict[str, Any] = {"fuel_consumption": self.fuel_consumption}
        if self.derived_distance:
            fields["distance_traveled"] = self.distance_traveled
        return fields
