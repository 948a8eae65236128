"""
In-memory instrument data store.

This module provides InMemoryDataStore, a store backed by Python
objects instead of a file. It is used to run the processing algorithms
on data assembled in memory (simulations, data converted from other
sources) and as the store behind the test suite.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import ClassVar, Optional

import numpy as np
from numpy.typing import NDArray

from ..base import DeviceKind, InstrumentDataStore, RunHeader
from ...core import (
    CentroidData,
    ChannelNotFoundError,
    FilterDescriptor,
    LogEntry,
    LogField,
    MSOrder,
    NoDataError,
    RawScanData,
    ScanEvent,
    ScanReadError,
    ScanRecord,
    TraceSpec,
    TraceType,
    parse_filter_string,
)


@dataclass
class StoredScan:
    """One scan held by an InMemoryDataStore."""
    retention_time: float
    filter: FilterDescriptor
    raw: RawScanData
    event: ScanEvent = field(default_factory=ScanEvent)
    trailer: LogEntry = field(default_factory=LogEntry)


@dataclass
class AnalogChannel:
    """A device-recorded analog trace (e.g. pump pressure)."""
    label: str
    times: NDArray[np.float64]
    intensities: NDArray[np.float64]


_ANALOG_TRACES = (TraceType.ANALOG_1, TraceType.ANALOG_2, TraceType.ANALOG_3, TraceType.ANALOG_4)


class InMemoryDataStore(InstrumentDataStore):
    """
    Instrument data store over in-memory scans and logs.

    Scan numbers between the lowest and highest stored scan that are
    not stored behave like unreadable scans and raise ScanReadError.

    Example:
        >>> store = InMemoryDataStore.from_records(records)
        >>> with store:
        ...     record = load_scan(store, store.first_scan)
    """

    vendor: ClassVar[str] = "Memory"
    supported_extensions: ClassVar[list[str]] = []

    def __init__(
        self,
        scans: Mapping[int, StoredScan],
        *,
        trailer_fields: Optional[list[LogField]] = None,
        status_fields: Optional[list[LogField]] = None,
        status_log: Optional[list[tuple[float, LogEntry]]] = None,
        methods: Optional[list[str]] = None,
        analog_channels: Optional[list[AnalogChannel]] = None,
        metadata: Optional[dict] = None,
        mass_resolution: float = 0.0,
        acquiring: bool = False,
        error: Optional[str] = None,
        name: str = "memory",
    ):
        # No file backs this store, so skip path validation
        self.path = Path(name)
        self._device = DeviceKind.MS
        self._device_index = 1

        self._scans = dict(scans)
        self._trailer_fields = list(trailer_fields or [])
        self._status_fields = list(status_fields or [])
        status_log = sorted(status_log or [], key=lambda sample: sample[0])
        self._status_times = np.array([time for time, _ in status_log], dtype=np.float64)
        self._status_entries = [entry for _, entry in status_log]
        self._methods = list(methods or [])
        self._analog = list(analog_channels or [])
        self._metadata = dict(metadata or {})
        self._mass_resolution = mass_resolution
        self._acquiring = acquiring
        self._error = error
        self._is_open = False

    @classmethod
    def from_records(
        cls,
        records: Iterable[ScanRecord],
        trailers: Optional[Mapping[int, LogEntry]] = None,
        **kwargs,
    ) -> 'InMemoryDataStore':
        """
        Build a store from ScanRecords.

        Args:
            records: Scans to store.
            trailers: Optional trailer entry per scan number.
            **kwargs: Passed on to the constructor.
        """
        trailers = trailers or {}
        scans = {}
        for record in records:
            scan_filter = parse_filter_string(record.filter_text)
            if scan_filter.ms_order != record.ms_order:
                scan_filter = replace(scan_filter, ms_order=record.ms_order)
            centroid = None
            if record.has_centroid:
                centroid = CentroidData(
                    record.centroid_masses, record.centroid_intensities, record.centroid_charges
                )
            scans[record.scan_number] = StoredScan(
                retention_time=record.retention_time,
                filter=scan_filter,
                raw=RawScanData(record.profile_masses, record.profile_intensities, centroid),
                event=ScanEvent(reactions=record.reactions, analyzer=record.analyzer),
                trailer=trailers.get(record.scan_number, LogEntry()),
            )
        return cls(scans, **kwargs)

    @classmethod
    def is_available(cls) -> bool:
        """Always available."""
        return True

    def open(self) -> None:
        self._is_open = True

    def close(self) -> None:
        self._is_open = False

    @property
    def is_open(self) -> bool:
        """Whether open() has been called without a matching close()."""
        return self._is_open

    @property
    def is_acquiring(self) -> bool:
        return self._acquiring

    @property
    def has_error(self) -> bool:
        return self._error is not None

    @property
    def error_message(self) -> Optional[str]:
        return self._error

    @property
    def run_metadata(self) -> dict:
        metadata = {'source_file': str(self.path)}
        metadata.update(self._metadata)
        return metadata

    # -------------------------------------------------------------------------
    # Device selection
    # -------------------------------------------------------------------------

    def instrument_count(self, device: Optional[DeviceKind] = None) -> int:
        counts = {
            DeviceKind.MS: 1 if self._scans else 0,
            DeviceKind.ANALOG: len(self._analog),
        }
        if device is None:
            return sum(counts.values())
        return counts.get(device, 0)

    def select_channel(self, device: DeviceKind, index: int) -> None:
        if index < 1 or index > self.instrument_count(device):
            raise ChannelNotFoundError(f"No {device.name} device with index {index}")
        self._device = device
        self._device_index = index

    def channel_labels(self) -> list[str]:
        if self._device == DeviceKind.ANALOG:
            return [self._analog[self._device_index - 1].label]
        return []

    @property
    def run_header(self) -> RunHeader:
        if self._device == DeviceKind.ANALOG:
            channel = self._analog[self._device_index - 1]
            n_samples = len(channel.times)
            return RunHeader(
                first_scan=1,
                last_scan=n_samples,
                start_time=float(channel.times[0]) if n_samples else 0.0,
                end_time=float(channel.times[-1]) if n_samples else 0.0,
            )
        if not self._scans:
            return RunHeader(first_scan=1, last_scan=0)

        first, last = min(self._scans), max(self._scans)
        masses = [
            scan.raw.centroid.masses if scan.raw.centroid is not None else scan.raw.profile_masses
            for scan in self._scans.values()
        ]
        masses = [array for array in masses if len(array)]
        return RunHeader(
            first_scan=first,
            last_scan=last,
            start_time=self._scans[first].retention_time,
            end_time=self._scans[last].retention_time,
            low_mass=float(min(array.min() for array in masses)) if masses else 0.0,
            high_mass=float(max(array.max() for array in masses)) if masses else 0.0,
            mass_resolution=self._mass_resolution,
        )

    # -------------------------------------------------------------------------
    # Scan access
    # -------------------------------------------------------------------------

    def _get(self, scan_number: int) -> StoredScan:
        if self._device != DeviceKind.MS:
            raise ScanReadError(scan_number, f"selected device {self._device.name} has no scans")
        try:
            return self._scans[scan_number]
        except KeyError:
            raise ScanReadError(scan_number, "scan not present in store") from None

    def retention_time(self, scan_number: int) -> float:
        return self._get(scan_number).retention_time

    def filter_for(self, scan_number: int) -> FilterDescriptor:
        return self._get(scan_number).filter

    def scan_event_for(self, scan_number: int) -> ScanEvent:
        return self._get(scan_number).event

    def raw_scan(self, scan_number: int) -> RawScanData:
        return self._get(scan_number).raw

    def filters(self) -> list[FilterDescriptor]:
        found: list[FilterDescriptor] = []
        seen: set[str] = set()
        for scan_number in sorted(self._scans):
            scan_filter = self._scans[scan_number].filter
            if scan_filter.text not in seen:
                seen.add(scan_filter.text)
                found.append(scan_filter)
        return found

    def dependent_scans(self, scan_number: int) -> list[int]:
        order = self._get(scan_number).filter.ms_order
        if order == MSOrder.UNKNOWN:
            return []
        dependents = []
        for candidate in range(scan_number + 1, self.last_scan + 1):
            stored = self._scans.get(candidate)
            if stored is None:
                continue
            if stored.filter.ms_order.level <= order.level:
                break
            dependents.append(candidate)
        return dependents

    # -------------------------------------------------------------------------
    # Trailer and status logs
    # -------------------------------------------------------------------------

    def trailer_fields(self) -> list[LogField]:
        return list(self._trailer_fields)

    def trailer_entry(self, scan_number: int) -> LogEntry:
        return self._get(scan_number).trailer

    def status_fields(self) -> list[LogField]:
        return list(self._status_fields)

    def status_sample_times(self) -> NDArray[np.float64]:
        return self._status_times

    def status_entry(self, index: int) -> LogEntry:
        return self._status_entries[index]

    # -------------------------------------------------------------------------
    # Method text and chromatograms
    # -------------------------------------------------------------------------

    def method_count(self) -> int:
        return len(self._methods)

    def method_text(self, index: int) -> str:
        return self._methods[index]

    def supports_trace(self, spec: TraceSpec) -> bool:
        if self._device == DeviceKind.ANALOG:
            return spec.trace_type in _ANALOG_TRACES
        return super().supports_trace(spec)

    def chromatogram(
        self,
        spec: TraceSpec,
        first_scan: int,
        last_scan: int,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        if self._device != DeviceKind.ANALOG or spec.trace_type not in _ANALOG_TRACES:
            return super().chromatogram(spec, first_scan, last_scan)
        # An analog device records a single A/D channel
        if spec.trace_type != TraceType.ANALOG_1:
            raise NoDataError(f"{spec.trace_type.name} not recorded by analog device {self._device_index}")
        channel = self._analog[self._device_index - 1]
        start = max(first_scan, 1) - 1
        return channel.times[start:last_scan].copy(), channel.intensities[start:last_scan].copy()
