"""Record store interface the chain engine reads from and writes to."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .errors import FillupNotFoundError, FuelLogError, StoreError
from .fillup import Fillup
from .vehicle import Vehicle

# Fields a store must accept in update_fillup_fields()
PATCHABLE_FIELDS = frozenset(
    {
        "distance_traveled",
        "fuel_consumption",
        "odometer",
        "date",
        "fuel_amount",
        "total_price",
    }
)


class RecordStore(ABC):
    """
    Persistence collaborator for vehicles and fillups.

    Implementations raise VehicleNotFoundError / FillupNotFoundError for
    missing records and StoreError for I/O failures.
    """

    @abstractmethod
    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        ...

    @abstractmethod
    def list_fillups(self, vehicle_id: str) -> List[Fillup]:
        """All fillups of a vehicle, in no particular order."""

    @abstractmethod
    def insert_fillup(self, fillup: Fillup) -> Fillup:
        """Persist a new fillup and return it with its assigned id."""

    def insert_fillups(self, fillups: List[Fillup]) -> List[Fillup]:
        """Persist several fillups. Stores that can write in one batch override this."""
        return [self.insert_fillup(f) for f in fillups]

    @abstractmethod
    def update_fillup_fields(self, fillup_id: int, patch: Dict[str, Any]) -> None:
        """Overwrite the given fields (keys from PATCHABLE_FIELDS)."""

    def update_fillups_fields(
        self, patches: Dict[int, Dict[str, Any]]
    ) -> Dict[int, FuelLogError]:
        """
        Write several patches, keyed by fillup id.

        Returns the ids that could not be written with their errors. Stores
        that can write in one batch override this.
        """
        failed: Dict[int, FuelLogError] = {}
        for fillup_id, patch in patches.items():
            try:
                self.update_fillup_fields(fillup_id, patch)
            except (StoreError, FillupNotFoundError) as e:
                failed[fillup_id] = e
        return failed

    @abstractmethod
    def delete_fillup_by_id(self, fillup_id: int) -> None:
        ...

    @abstractmethod
    def update_vehicle_baseline(self, vehicle_id: str, new_baseline: float) -> None:
        ...
