"""Non-blocking consistency warnings attached to operation results."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class WarningKind(Enum):
    """Kinds of chain consistency warnings."""

    ODOMETER_REGRESSION = "odometer_regression"  # Reading below the previous one
    ODOMETER_STAGNANT = "odometer_stagnant"  # Reading equal to the previous one


@dataclass
class ChainWarning:
    """A warning raised for one fillup while walking the chain."""

    kind: WarningKind
    fillup_id: Optional[int]
    odometer: float
    reference_odometer: float
    field: str = "odometer"

    @property
    def message(self) -> str:
        if self.kind is WarningKind.ODOMETER_REGRESSION:
            return (
                f"Odometer {self.odometer:,.0f} is lower than the previous "
                f"reading {self.reference_odometer:,.0f}"
            )
        return f"Odometer {self.odometer:,.0f} is the same as the previous reading"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "fillupId": self.fillup_id,
            "field": self.field,
            "message": self.message,
        }
