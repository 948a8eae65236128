"""
Mass tolerance options for spectral averaging.
"""

from dataclasses import dataclass
from enum import Enum, auto


class ToleranceUnits(Enum):
    """Units of a mass tolerance."""
    PPM = auto()   # parts per million of the reference mass
    MMU = auto()   # milli mass units (mDa)
    AMU = auto()   # absolute mass units (Da)


@dataclass(frozen=True, slots=True)
class AverageOptions:
    """
    Options controlling how peaks of several scans are merged.

    Attributes:
        tolerance_units: Units of tolerance_value.
        tolerance_value: Merge tolerance, must be > 0.
        normalize: Divide merged intensities by the number of scans
            combined. Off by default, which keeps total intensity
            conserved.
    """
    tolerance_units: ToleranceUnits = ToleranceUnits.PPM
    tolerance_value: float = 5.0
    normalize: bool = False

    def __post_init__(self) -> None:
        if not self.tolerance_value > 0:
            raise ValueError(f"tolerance_value must be > 0, got {self.tolerance_value}")

    def tolerance_at(self, mass: float) -> float:
        """Absolute tolerance in Da at a reference mass."""
        if self.tolerance_units == ToleranceUnits.PPM:
            return abs(mass) * self.tolerance_value * 1e-6
        if self.tolerance_units == ToleranceUnits.MMU:
            return self.tolerance_value / 1000.0
        return self.tolerance_value
