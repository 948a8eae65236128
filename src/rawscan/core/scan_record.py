"""
In-memory representation of a single scan.

A ScanRecord carries a scan's profile data, its optional centroid
(label) data and the metadata needed by the processing algorithms.
Records are immutable value objects built on demand from an
instrument data store with load_scan().
"""

from dataclasses import dataclass, field, replace
from typing import NamedTuple, Optional, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .errors import ScanReadError
from .scan_metadata import MSOrder, MassAnalyzer, Reaction

if TYPE_CHECKING:
    from ..io.base import InstrumentDataStore


def _empty_float() -> NDArray[np.float64]:
    return np.empty(0, dtype=np.float64)


def _empty_int() -> NDArray[np.int32]:
    return np.empty(0, dtype=np.int32)


class CentroidData(NamedTuple):
    """Centroid (label) peak list of a scan."""
    masses: NDArray[np.float64]
    intensities: NDArray[np.float64]
    charges: NDArray[np.int32]


class RawScanData(NamedTuple):
    """Spectral data of one scan as returned by a data store."""
    profile_masses: NDArray[np.float64]
    profile_intensities: NDArray[np.float64]
    centroid: Optional[CentroidData] = None


@dataclass(frozen=True, slots=True, eq=False)
class ScanRecord:
    """
    A single scan with profile data, optional centroid data and metadata.

    Profile arrays hold the continuous sampled trace (or, for instruments
    that only record peak lists, the normal peak data). Centroid arrays
    hold the discrete peak list and are only populated when has_centroid
    is set.

    Attributes:
        scan_number: Scan number, unique within a run (1-based).
        retention_time: Retention time in minutes.
        ms_order: Acquisition stage (MS1, MS2, ...).
        filter_text: Scan filter string.
        profile_masses: Profile mass values.
        profile_intensities: Intensities aligned with profile_masses.
        has_centroid: Whether centroid data is present.
        centroid_masses: Centroid peak masses.
        centroid_intensities: Centroid peak intensities.
        centroid_charges: Centroid peak charge states (0 when unknown).
        reactions: Precursor reactions of the scan event.
        analyzer: Mass analyzer of the scan.

    Example:
        >>> import numpy as np
        >>> record = ScanRecord(
        ...     scan_number=1,
        ...     retention_time=0.5,
        ...     ms_order=MSOrder.MS1,
        ...     filter_text="FTMS + p ESI Full ms [100.00-1000.00]",
        ...     profile_masses=np.array([100.0, 100.1, 100.2]),
        ...     profile_intensities=np.array([10.0, 50.0, 10.0]),
        ... )
        >>> record.n_profile_points
        3
    """
    scan_number: int
    retention_time: float
    ms_order: MSOrder
    filter_text: str
    profile_masses: NDArray[np.float64] = field(default_factory=_empty_float)
    profile_intensities: NDArray[np.float64] = field(default_factory=_empty_float)
    has_centroid: bool = False
    centroid_masses: NDArray[np.float64] = field(default_factory=_empty_float)
    centroid_intensities: NDArray[np.float64] = field(default_factory=_empty_float)
    centroid_charges: NDArray[np.int32] = field(default_factory=_empty_int)
    reactions: tuple[Reaction, ...] = ()
    analyzer: MassAnalyzer = MassAnalyzer.UNKNOWN

    def __post_init__(self) -> None:
        """Validate array alignment and coerce dtypes."""
        if self.scan_number < 1:
            raise ValueError(f"scan_number must be >= 1, got {self.scan_number}")
        if self.retention_time < 0:
            raise ValueError(f"retention_time must be >= 0, got {self.retention_time}")

        for name, dtype in (
            ('profile_masses', np.float64),
            ('profile_intensities', np.float64),
            ('centroid_masses', np.float64),
            ('centroid_intensities', np.float64),
            ('centroid_charges', np.int32),
        ):
            array = np.asarray(getattr(self, name))
            if array.ndim != 1:
                raise ValueError(f"{name} must be 1-dimensional, got shape {array.shape}")
            if array.dtype != dtype:
                array = array.astype(dtype)
            object.__setattr__(self, name, array)

        if len(self.profile_masses) != len(self.profile_intensities):
            raise ValueError(
                f"profile masses and intensities must have same length, "
                f"got {len(self.profile_masses)} and {len(self.profile_intensities)}"
            )
        n_centroids = len(self.centroid_masses)
        if len(self.centroid_intensities) != n_centroids or len(self.centroid_charges) != n_centroids:
            raise ValueError(
                f"centroid arrays must have same length, got {n_centroids}, "
                f"{len(self.centroid_intensities)} and {len(self.centroid_charges)}"
            )
        if n_centroids and not self.has_centroid:
            raise ValueError("centroid arrays are populated but has_centroid is False")

    @property
    def n_profile_points(self) -> int:
        """Number of profile samples."""
        return len(self.profile_masses)

    @property
    def n_centroids(self) -> int:
        """Number of centroid peaks."""
        return len(self.centroid_masses)

    @property
    def preferred_masses(self) -> NDArray[np.float64]:
        """Centroid masses when centroid data is present, else profile masses."""
        return self.centroid_masses if self.has_centroid else self.profile_masses

    @property
    def preferred_intensities(self) -> NDArray[np.float64]:
        """Intensities aligned with preferred_masses."""
        return self.centroid_intensities if self.has_centroid else self.profile_intensities

    @property
    def total_intensity(self) -> float:
        """Sum of the preferred intensities."""
        return float(np.sum(self.preferred_intensities))

    @property
    def base_peak_intensity(self) -> float:
        """Largest preferred intensity (0.0 for an empty scan)."""
        intensities = self.preferred_intensities
        return float(intensities.max()) if len(intensities) else 0.0

    @property
    def base_peak_mass(self) -> Optional[float]:
        """Mass of the most intense preferred peak."""
        intensities = self.preferred_intensities
        if not len(intensities):
            return None
        return float(self.preferred_masses[int(np.argmax(intensities))])

    @property
    def precursor_mass(self) -> Optional[float]:
        """First-stage precursor mass, if the scan has reactions."""
        return self.reactions[0].precursor_mass if self.reactions else None

    def with_centroid(
        self,
        masses: NDArray[np.float64],
        intensities: NDArray[np.float64],
        charges: Optional[NDArray[np.int32]] = None,
    ) -> 'ScanRecord':
        """Return a copy of this record carrying the given centroid data."""
        if charges is None:
            charges = np.zeros(len(masses), dtype=np.int32)
        return replace(
            self,
            has_centroid=True,
            centroid_masses=masses,
            centroid_intensities=intensities,
            centroid_charges=charges,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScanRecord):
            return NotImplemented
        return (
            self.scan_number == other.scan_number
            and self.retention_time == other.retention_time
            and self.ms_order == other.ms_order
            and self.filter_text == other.filter_text
            and self.has_centroid == other.has_centroid
            and self.reactions == other.reactions
            and self.analyzer == other.analyzer
            and np.array_equal(self.profile_masses, other.profile_masses)
            and np.array_equal(self.profile_intensities, other.profile_intensities)
            and np.array_equal(self.centroid_masses, other.centroid_masses)
            and np.array_equal(self.centroid_intensities, other.centroid_intensities)
            and np.array_equal(self.centroid_charges, other.centroid_charges)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"ScanRecord(scan={self.scan_number}, "
            f"{self.ms_order.name}, "
            f"RT={self.retention_time:.2f}min, "
            f"{self.n_profile_points} profile points, "
            f"{self.n_centroids} centroids)"
        )


def load_scan(store: 'InstrumentDataStore', scan_number: int) -> ScanRecord:
    """
    Build a ScanRecord for one scan from an instrument data store.

    Every call re-reads the store; nothing is cached.

    Args:
        store: Open data store with the MS channel selected.
        scan_number: Scan to read.

    Returns:
        The scan as an immutable ScanRecord.

    Raises:
        ScanReadError: If the store cannot produce data for the scan.
    """
    try:
        retention_time = store.retention_time(scan_number)
        scan_filter = store.filter_for(scan_number)
        scan_event = store.scan_event_for(scan_number)
        raw = store.raw_scan(scan_number)
    except ScanReadError:
        raise
    except (KeyError, IndexError, ValueError, OSError) as e:
        raise ScanReadError(scan_number, str(e)) from e

    centroid = raw.centroid
    try:
        return ScanRecord(
            scan_number=scan_number,
            retention_time=retention_time,
            ms_order=scan_filter.ms_order,
            filter_text=str(scan_filter),
            profile_masses=raw.profile_masses,
            profile_intensities=raw.profile_intensities,
            has_centroid=centroid is not None,
            centroid_masses=centroid.masses if centroid is not None else _empty_float(),
            centroid_intensities=centroid.intensities if centroid is not None else _empty_float(),
            centroid_charges=centroid.charges if centroid is not None else _empty_int(),
            reactions=scan_event.reactions,
            analyzer=scan_event.analyzer,
        )
    except ValueError as e:
        raise ScanReadError(scan_number, f"corrupt scan data: {e}") from e
