"""MileageMode enum for how a vehicle's mileage is entered."""

from enum import Enum


class MileageMode(Enum):
    """Per-vehicle mileage input convention. Fixed once the vehicle exists."""

    ODOMETER = "odometer"  # Absolute readings; distance is derived
    DISTANCE = "distance"  # Distance per fillup is entered directly
