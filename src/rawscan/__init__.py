"""
rawscan: analytical processing of mass spectrometry acquisition data.

Subpackages:
- core: Scan records, scan metadata, logs and error types
- io: Instrument data stores (mzML, in-memory) and format detection
- processing: Averaging, centroiding, chromatograms, inclusion lists,
  log lookups, mass precision and mass-order validation
- report: Configurable acquisition report
- utils: System and process resource helpers
"""

from .core import (
    AverageOptions,
    ChromatogramPoint,
    FailureLog,
    FilterDescriptor,
    InclusionItem,
    LogEntry,
    LogField,
    MSOrder,
    RawScanError,
    Reaction,
    ScanEvent,
    ScanRecord,
    TraceType,
    load_scan,
)
from .io import InMemoryDataStore, InstrumentDataStore, MzMLDataStore, open_store
from .report import ReportConfig, run_report

__version__ = "0.1.0"

__all__ = [
    "ScanRecord",
    "Reaction",
    "ScanEvent",
    "FilterDescriptor",
    "LogField",
    "LogEntry",
    "InclusionItem",
    "ChromatogramPoint",
    "AverageOptions",
    "MSOrder",
    "TraceType",
    "FailureLog",
    "RawScanError",
    "load_scan",
    "InstrumentDataStore",
    "MzMLDataStore",
    "InMemoryDataStore",
    "open_store",
    "ReportConfig",
    "run_report",
]
