from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
import logging
from pathlib import Path
from typing import ClassVar, Optional

import numpy as np
from numpy.typing import NDArray

from ..core.chromatogram import TraceSpec
from ..core.errors import NoDataError, ScanReadError
from ..core.logs import LogEntry, LogField, nearest_preceding_index
from ..core.scan_metadata import FilterDescriptor, MSOrder, ScanEvent
from ..core.scan_record import RawScanData


logger = logging.getLogger(__name__)


class DeviceKind(Enum):
    """Kind of instrument (controller) recorded in a data file."""
    MS = auto()
    ANALOG = auto()
    AD_CARD = auto()
    PDA = auto()
    UV = auto()
    OTHER = auto()


@dataclass(frozen=True, slots=True)
class RunHeader:
    """
    Run header of the selected device.

    Attributes:
        first_scan: First scan number.
        last_scan: Last scan number.
        start_time: Retention time of the first scan in minutes.
        end_time: Retention time of the last scan in minutes.
        low_mass: Lowest acquired mass.
        high_mass: Highest acquired mass.
        mass_resolution: Instrument mass resolution.
    """
    first_scan: int
    last_scan: int
    start_time: float = 0.0
    end_time: float = 0.0
    low_mass: float = 0.0
    high_mass: float = 0.0
    mass_resolution: float = 0.0

    @property
    def spectra_count(self) -> int:
        """Number of scans in the run."""
        if self.last_scan < self.first_scan:
            return 0
        return self.last_scan - self.first_scan + 1


class InstrumentDataStore(ABC):
    """
    Abstract base class for instrument data stores.

    A store gives indexed random access to the scans, logs and method
    text of one acquisition file. All format-specific stores implement
    this interface.

    Stores are safe for sequential access by a single consumer only.
    Callers working from several threads must use one store per thread
    or synchronize externally.
    """

    # Set by each concrete store
    vendor: ClassVar[str]  # e.g., "Thermo", "Open Format"
    supported_extensions: ClassVar[list[str]]  # e.g., [".mzml"]

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._validate_path()
        self._device = DeviceKind.MS
        self._device_index = 1

    def _validate_path(self) -> None:
        """Validate file exists and has correct extension."""
        if not self.path.exists():
            raise FileNotFoundError(f"File not found: {self.path}")

        suffix = self.path.suffix.lower()
        if suffix not in self.supported_extensions:
            raise ValueError(
                f"Unsupported extension {suffix} for {self.vendor} store. "
                f"Expected: {self.supported_extensions}"
            )

    @classmethod
    @abstractmethod
    def is_available(cls) -> bool:
        """Whether the libraries this store reads with can be imported."""
        ...

    @abstractmethod
    def open(self) -> None:
        """Open the underlying file. Raises OpenError on failure."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the underlying file."""
        ...

    def __enter__(self) -> 'InstrumentDataStore':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # File state
    # -------------------------------------------------------------------------

    @property
    def is_acquiring(self) -> bool:
        """True while the file is still being written by the instrument."""
        return False

    @property
    def has_error(self) -> bool:
        """True when the store reports an internal error."""
        return False

    @property
    def error_message(self) -> Optional[str]:
        """Description of the internal error, if any."""
        return None

    @property
    @abstractmethod
    def run_metadata(self) -> dict:
        """
        Instrument and sample information for the header of a report.

        Keys a store fills in when it knows them: source_file,
        instrument_model, instrument_name, instrument_serial,
        software_version, creation_date (a datetime) and sample_name.
        """
        ...

    # -------------------------------------------------------------------------
    # Device selection
    # -------------------------------------------------------------------------

    @abstractmethod
    def instrument_count(self, device: Optional[DeviceKind] = None) -> int:
        """Number of devices of a kind (all kinds when device is None)."""
        ...

    @abstractmethod
    def select_channel(self, device: DeviceKind, index: int) -> None:
        """
        Select the device that subsequent calls read from.

        Args:
            device: Kind of device.
            index: 1-based instance of that kind.

        Raises:
            ChannelNotFoundError: If no such device is present.
        """
        ...

    @property
    def selected_device(self) -> tuple[DeviceKind, int]:
        """Currently selected device kind and 1-based index."""
        return self._device, self._device_index

    def channel_labels(self) -> list[str]:
        """Channel labels of the selected device (analog devices)."""
        return []

    @property
    @abstractmethod
    def run_header(self) -> RunHeader:
        """Run header of the selected device."""
        ...

    @property
    def first_scan(self) -> int:
        """First scan number of the selected device."""
        return self.run_header.first_scan

    @property
    def last_scan(self) -> int:
        """Last scan number of the selected device."""
        return self.run_header.last_scan

    # -------------------------------------------------------------------------
    # Scan access
    # -------------------------------------------------------------------------

    @abstractmethod
    def retention_time(self, scan_number: int) -> float:
        """Retention time of a scan in minutes."""
        ...

    @abstractmethod
    def filter_for(self, scan_number: int) -> FilterDescriptor:
        """Scan filter of a scan."""
        ...

    @abstractmethod
    def scan_event_for(self, scan_number: int) -> ScanEvent:
        """Scan event (reactions, analyzer) of a scan."""
        ...

    @abstractmethod
    def raw_scan(self, scan_number: int) -> RawScanData:
        """
        Spectral data of a scan.

        Raises:
            ScanReadError: If the scan cannot be read.
        """
        ...

    def filters(self) -> list[FilterDescriptor]:
        """
        Distinct scan filters of the selected device, in order of first use.

        Scans that cannot be read are logged and left out.
        """
        found: list[FilterDescriptor] = []
        seen: set[str] = set()
        for scan_number in range(self.first_scan, self.last_scan + 1):
            try:
                scan_filter = self.filter_for(scan_number)
            except ScanReadError as e:
                logger.warning(f"Skipping scan {scan_number} while listing filters: {e}")
                continue
            if scan_filter.text not in seen:
                seen.add(scan_filter.text)
                found.append(scan_filter)
        return found

    def dependent_scans(self, scan_number: int) -> list[int]:
        """
        Scans acquired as dependents of a master scan.

        The dependents of a scan are the following scans of a higher
        MS order, up to the next scan of the same or lower order.
        Unreadable candidates are skipped.

        Raises:
            ScanReadError: If the master scan itself cannot be read.
        """
        order = self.filter_for(scan_number).ms_order
        if order == MSOrder.UNKNOWN:
            return []
        dependents = []
        for candidate in range(scan_number + 1, self.last_scan + 1):
            try:
                candidate_order = self.filter_for(candidate).ms_order
            except ScanReadError as e:
                logger.debug(f"Skipping unreadable scan {candidate}: {e}")
                continue
            if candidate_order.level <= order.level:
                break
            dependents.append(candidate)
        return dependents

    # -------------------------------------------------------------------------
    # Trailer and status logs
    # -------------------------------------------------------------------------

    @abstractmethod
    def trailer_fields(self) -> list[LogField]:
        """Catalog of the per-scan trailer fields."""
        ...

    @abstractmethod
    def trailer_entry(self, scan_number: int) -> LogEntry:
        """Trailer values of a scan."""
        ...

    @abstractmethod
    def status_fields(self) -> list[LogField]:
        """Catalog of the status log fields."""
        ...

    @abstractmethod
    def status_sample_times(self) -> NDArray[np.float64]:
        """Retention times (minutes) of the status log samples, non-decreasing."""
        ...

    @abstractmethod
    def status_entry(self, index: int) -> LogEntry:
        """Status log sample by index."""
        ...

    def status_entry_at_time(self, time: float) -> LogEntry:
        """Status log sample at or immediately before a retention time."""
        index = nearest_preceding_index(self.status_sample_times(), time)
        if index is None:
            return LogEntry()
        return self.status_entry(index)

    # -------------------------------------------------------------------------
    # Method text and chromatograms
    # -------------------------------------------------------------------------

    @abstractmethod
    def method_count(self) -> int:
        """Number of instrument method text blobs."""
        ...

    @abstractmethod
    def method_text(self, index: int) -> str:
        """Instrument method text by 0-based index."""
        ...

    def supports_trace(self, spec: TraceSpec) -> bool:
        """Whether the selected device can produce a trace."""
        return spec.trace_type.scan_derived and self._device == DeviceKind.MS

    def chromatogram(
        self,
        spec: TraceSpec,
        first_scan: int,
        last_scan: int,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """
        Device-recorded trace as (times, intensities).

        Raises:
            NoDataError: If the selected device does not record this trace.
        """
        raise NoDataError(
            f"{spec.trace_type.name} trace is not available for device "
            f"{self._device.name} {self._device_index}"
        )
