"""
Trailer and status log indexing.

Trailer entries belong to a single scan; status log entries are sampled
over retention time and are looked up by the nearest preceding sample.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from ..core.logs import LogEntry, LogField

if TYPE_CHECKING:
    from ..io.base import InstrumentDataStore


MONOISOTOPIC_MZ_LABELS = ("Monoisotopic M/Z",)
MASTER_SCAN_LABELS = ("Master Scan Number", "Master Index")


def field_catalog(store: 'InstrumentDataStore') -> list[LogField]:
    """Trailer field catalog in store order, unfiltered."""
    return list(store.trailer_fields())


def status_catalog(store: 'InstrumentDataStore') -> list[LogField]:
    """Status log field catalog in store order, unfiltered."""
    return list(store.status_fields())


def displayable(fields: list[LogField]) -> list[LogField]:
    """Fields worth printing: drops empty labels and NULL-typed separators."""
    return [log_field for log_field in fields if log_field.displayable]


def lookup_by_time(store: 'InstrumentDataStore', retention_time: float) -> LogEntry:
    """
    Status log sample at or immediately before a retention time.

    Times before the first sample resolve to the first sample; an empty
    status log yields an empty LogEntry.
    """
    return store.status_entry_at_time(retention_time)


def lookup_by_scan(store: 'InstrumentDataStore', scan_number: int) -> LogEntry:
    """Status log sample for a scan, via the scan's retention time."""
    return lookup_by_time(store, store.retention_time(scan_number))


def trailer_entry(store: 'InstrumentDataStore', scan_number: int) -> LogEntry:
    """Trailer values of a scan."""
    return store.trailer_entry(scan_number)


@dataclass(frozen=True, slots=True)
class TrailerSummary:
    """Precursor bookkeeping recorded in a dependent scan's trailer."""
    monoisotopic_mz: Optional[float] = None
    master_scan: Optional[int] = None


def scan_trailer_summary(entry: LogEntry) -> TrailerSummary:
    """Extract monoisotopic m/z and master scan number from a trailer entry."""
    master_scan = entry.get_float(*MASTER_SCAN_LABELS)
    return TrailerSummary(
        monoisotopic_mz=entry.get_float(*MONOISOTOPIC_MZ_LABELS),
        master_scan=int(master_scan) if master_scan is not None else None,
    )
