"""
Mass-precision estimation for centroid peaks.

Precision is estimated per centroid peak from the analyzer's peak width
at that mass and an estimate of the number of ions behind the peak:
the statistical error of a peak's mass falls with the square root of the
ion count. The numerics live in a PrecisionStrategy so that other
models can be substituted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import math
from typing import Optional, TYPE_CHECKING

from ..core.errors import IonTimeNotFoundError
from ..core.logs import LogEntry
from ..core.scan_metadata import MassAnalyzer
from ..core.scan_record import ScanRecord, load_scan

if TYPE_CHECKING:
    from ..io.base import InstrumentDataStore


logger = logging.getLogger(__name__)

ION_TIME_LABELS = (
    "Ion Injection Time (ms)",
    "Ion Injection Time",
    "Ion Time (ms)",
    "Injection Time (ms)",
    "Fill Time (ms)",
)

# FWHM = 2 * sqrt(2 * ln 2) * sigma
_FWHM_TO_SIGMA = 2.0 * math.sqrt(2.0 * math.log(2.0))


@dataclass(frozen=True, slots=True)
class PeakAccuracy:
    """
    Estimated mass precision of one centroid peak.

    Attributes:
        mass: Peak mass.
        accuracy_mmu: Precision in milli mass units.
        accuracy_ppm: Precision in parts per million of the mass.
    """
    mass: float
    accuracy_mmu: float
    accuracy_ppm: float


def find_ion_time(entry: LogEntry) -> float:
    """
    Ion accumulation time (ms) from a trailer entry.

    Raises:
        IonTimeNotFoundError: If no ion time field holds a number.
    """
    ion_time = entry.get_float(*ION_TIME_LABELS)
    if ion_time is None:
        raise IonTimeNotFoundError(f"No ion time field among {', '.join(ION_TIME_LABELS)}")
    return ion_time


class PrecisionStrategy(ABC):
    """Model turning a centroid peak into a mass precision (Da)."""

    @abstractmethod
    def precision(
        self,
        mass: float,
        intensity: float,
        analyzer: MassAnalyzer,
        ion_time: float,
        instrument_resolution: float,
    ) -> float:
        """Precision of one peak in Da."""
        ...


class ResolutionScaledPrecision(PrecisionStrategy):
    """
    Peak width from resolving power, scaled by counting statistics.

    Resolving power R(m) depends on the analyzer:

    - FTMS: R(m) = R0 * sqrt(reference_mass / m)
    - TOFMS and others: R(m) = R0
    - ITMS: constant peak width (itms_peak_width Da)

    The peak width m / R(m) is converted to a Gaussian sigma and divided
    by sqrt(N), with N = max(intensity * ion_time / 1000, 1).

    Args:
        default_resolution: R0 used when the instrument reports none.
        reference_mass: Mass at which R0 is specified for FTMS.
        itms_peak_width: Ion trap peak width in Da.
    """

    def __init__(
        self,
        default_resolution: float = 60000.0,
        reference_mass: float = 200.0,
        itms_peak_width: float = 0.5,
    ):
        self.default_resolution = default_resolution
        self.reference_mass = reference_mass
        self.itms_peak_width = itms_peak_width

    def peak_width(self, mass: float, analyzer: MassAnalyzer, instrument_resolution: float) -> float:
        """Full width at half maximum in Da."""
        if analyzer == MassAnalyzer.ITMS:
            return self.itms_peak_width
        resolution = instrument_resolution if instrument_resolution > 0 else self.default_resolution
        if analyzer == MassAnalyzer.FTMS and mass > 0:
            resolution *= math.sqrt(self.reference_mass / mass)
        return abs(mass) / resolution

    def precision(
        self,
        mass: float,
        intensity: float,
        analyzer: MassAnalyzer,
        ion_time: float,
        instrument_resolution: float,
    ) -> float:
        ions = max(intensity * ion_time / 1000.0, 1.0)
        sigma = self.peak_width(mass, analyzer, instrument_resolution) / _FWHM_TO_SIGMA
        return sigma / math.sqrt(ions)


class PrecisionEstimator:
    """
    Estimates mass precision for every centroid peak of a scan.

    Example:
        >>> estimator = PrecisionEstimator()
        >>> for peak in estimator.estimate_for_scan(store, 1):
        ...     print(f"{peak.mass:.4f} {peak.accuracy_ppm:.2f} ppm")
    """

    def __init__(self, strategy: Optional[PrecisionStrategy] = None):
        self.strategy = strategy if strategy is not None else ResolutionScaledPrecision()

    def estimate(
        self,
        record: ScanRecord,
        analyzer: MassAnalyzer,
        ion_time: float,
        instrument_resolution: float,
    ) -> list[PeakAccuracy]:
        """
        One estimate per centroid peak; empty when the scan has no centroid data.

        Args:
            record: The scan.
            analyzer: Mass analyzer of the scan.
            ion_time: Ion accumulation time in ms.
            instrument_resolution: Resolving power from the run header (0 if unknown).
        """
        if not record.has_centroid:
            return []

        results = []
        for mass, intensity in zip(record.centroid_masses, record.centroid_intensities):
            mass = float(mass)
            precision = self.strategy.precision(
                mass, float(intensity), analyzer, ion_time, instrument_resolution
            )
            results.append(PeakAccuracy(
                mass=mass,
                accuracy_mmu=precision * 1000.0,
                accuracy_ppm=precision / mass * 1e6 if mass else 0.0,
            ))
        return results

    def estimate_for_scan(self, store: 'InstrumentDataStore', scan_number: int) -> list[PeakAccuracy]:
        """
        Load a scan and estimate its centroid precisions.

        The analyzer comes from the scan event, the ion time from the
        scan's trailer and the resolution from the run header.

        Raises:
            ScanReadError: If the scan cannot be read.
            IonTimeNotFoundError: If the trailer has no ion time.
        """
        record = load_scan(store, scan_number)
        analyzer = store.scan_event_for(scan_number).analyzer
        ion_time = find_ion_time(store.trailer_entry(scan_number))
        resolution = store.run_header.mass_resolution
        logger.debug(f"Scan {scan_number}: ion time {ion_time} ms, resolution {resolution}")
        return self.estimate(record, analyzer, ion_time, resolution)
