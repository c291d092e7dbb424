"""
Fuel log models and chain consistency engine.

This package records fuel purchases and keeps their derived fields correct:
- MileageMode: Odometer vs distance input convention (per vehicle)
- Vehicle: Chain anchor (baseline odometer)
- Fillup: A fuel purchase record
- recalculate: Full-chain recomputation of distance and consumption
- FillupService: Create/update/delete/import/baseline operations
- YamlStore: YAML file persistence
"""

from .mileage_mode import MileageMode
from .vehicle import Vehicle
from .fillup import Fillup, FillupInput, FillupUpdate, FillupPatch, parse_timestamp
from .chain_warning import ChainWarning, WarningKind
from .errors import (
    FuelLogError,
    FillupValidationError,
    NotFoundError,
    VehicleNotFoundError,
    FillupNotFoundError,
    StoreError,
)
from .calculations import (
    consumption,
    price_per_unit,
    distance_from_odometers,
    ConsumptionDeviation,
    consumption_deviation,
)
from .recalculator import RecalculationResult, recalculate, chain_reference, sort_chain
from .statistics import VehicleStatistics, compute_statistics
from .store import RecordStore
from .loader import YamlStore
from .operations import FillupService, OperationResult

__all__ = [
    "MileageMode",
    "Vehicle",
    "Fillup",
    "FillupInput",
    "FillupUpdate",
    "FillupPatch",
    "parse_timestamp",
    "ChainWarning",
    "WarningKind",
    "FuelLogError",
    "FillupValidationError",
    "NotFoundError",
    "VehicleNotFoundError",
    "FillupNotFoundError",
    "StoreError",
    "consumption",
    "price_per_unit",
    "distance_from_odometers",
    "ConsumptionDeviation",
    "consumption_deviation",
    "RecalculationResult",
    "recalculate",
    "chain_reference",
    "sort_chain",
    "VehicleStatistics",
    "compute_statistics",
    "RecordStore",
    "YamlStore",
    "FillupService",
    "OperationResult",
]
