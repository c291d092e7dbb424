"""Exception hierarchy for fuel log operations."""

from typing import Any, Dict, Optional


class FuelLogError(Exception):
    """Base class for all fuel log errors."""


class FillupValidationError(FuelLogError, ValueError):
    """Input rejected before anything was written."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"code": "VALIDATION_ERROR", "message": self.message}
        if self.field is not None:
            d["field"] = self.field
        return d


class NotFoundError(FuelLogError, LookupError):
    """A vehicle or fillup does not exist (or is not visible to the caller)."""

    def to_dict(self) -> Dict[str, Any]:
        return {"code": "NOT_FOUND", "message": str(self)}


class VehicleNotFoundError(NotFoundError):
    def __init__(self, vehicle_id: Any):
        super().__init__(f"Vehicle '{vehicle_id}' not found")
        self.vehicle_id = vehicle_id


class FillupNotFoundError(NotFoundError):
    def __init__(self, fillup_id: Any):
        super().__init__(f"Fillup {fillup_id} not found")
        self.fillup_id = fillup_id


class StoreError(FuelLogError):
    """The record store failed to read or write."""
