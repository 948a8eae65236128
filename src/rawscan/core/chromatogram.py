"""
Chromatogram trace types and points.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class TraceType(Enum):
    """Kind of chromatogram trace."""
    TIC = auto()          # Total ion current
    BASE_PEAK = auto()    # Most intense peak per scan
    MASS_RANGE = auto()   # Summed intensity within a mass window
    ANALOG_1 = auto()     # A/D converter channels of analog devices
    ANALOG_2 = auto()
    ANALOG_3 = auto()
    ANALOG_4 = auto()

    @property
    def scan_derived(self) -> bool:
        """True for traces computed from MS scan data."""
        return self in (TraceType.TIC, TraceType.BASE_PEAK, TraceType.MASS_RANGE)


@dataclass(frozen=True, slots=True)
class TraceSpec:
    """
    Selector for a chromatogram trace.

    Attributes:
        trace_type: Kind of trace.
        mass_range: Optional (low, high) mass window, inclusive.
    """
    trace_type: TraceType
    mass_range: Optional[tuple[float, float]] = None


@dataclass(frozen=True, slots=True)
class ChromatogramPoint:
    """One chromatogram sample: retention time (minutes) and intensity."""
    time: float
    intensity: float
