"""Vehicle class - the anchor of a fillup chain."""

from .mileage_mode import MileageMode


class Vehicle:
    """A vehicle whose fillups form one chain."""

    def __init__(
        self,
        id: str,
        name: str,
        baseline_odometer: float = 0,
        mileage_mode: MileageMode = MileageMode.ODOMETER,
    ):
        self.id = id
        self.name = name
        self.baseline_odometer = baseline_odometer or 0
        self.mileage_mode = mileage_mode

    def __repr__(self) -> str:
        return (
            f"Vehicle(id={self.id!r}, baseline_odometer={self.baseline_odometer}, "
            f"mileage_mode={self.mileage_mode.value})"
        )
