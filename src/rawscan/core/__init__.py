"""
Core data structures for rawscan.

This module provides the fundamental data types for representing
instrument acquisition data:

- ScanRecord: One scan's profile/centroid data and metadata
- Reaction, ScanEvent: Precursor reactions of MSn scans
- FilterDescriptor: Parsed scan filter
- LogField, LogEntry: Trailer and status log catalogs and values
- InclusionItem: Inclusion/exclusion list target
- ChromatogramPoint, TraceSpec: Chromatogram traces
- AverageOptions: Mass tolerance for spectral averaging

Errors:
- RawScanError and its subclasses
- FailureLog: Recoverable per-scan failures of a sweep
"""

from .chromatogram import ChromatogramPoint, TraceSpec, TraceType
from .errors import (
    AcquisitionInProgressError,
    ChannelNotFoundError,
    ConfigError,
    EmptyRangeError,
    FailureLog,
    IonTimeNotFoundError,
    NoDataError,
    OpenError,
    RawScanError,
    ScanReadError,
    StoreError,
)
from .inclusion import InclusionItem, inclusion_sort_key
from .logs import (
    GenericDataType,
    LogEntry,
    LogField,
    StatusField,
    TrailerField,
    nearest_preceding_index,
)
from .options import AverageOptions, ToleranceUnits
from .scan_metadata import (
    ActivationType,
    FilterDescriptor,
    MassAnalyzer,
    MSOrder,
    Polarity,
    Reaction,
    ScanEvent,
    SpectrumType,
    parse_filter_string,
)
from .scan_record import CentroidData, RawScanData, ScanRecord, load_scan

__all__ = [
    # Main classes
    "ScanRecord",
    "RawScanData",
    "CentroidData",
    "Reaction",
    "ScanEvent",
    "FilterDescriptor",
    "LogField",
    "TrailerField",
    "StatusField",
    "LogEntry",
    "InclusionItem",
    "ChromatogramPoint",
    "TraceSpec",
    "AverageOptions",
    # Functions
    "load_scan",
    "parse_filter_string",
    "inclusion_sort_key",
    "nearest_preceding_index",
    # Enums
    "MSOrder",
    "Polarity",
    "SpectrumType",
    "MassAnalyzer",
    "ActivationType",
    "GenericDataType",
    "TraceType",
    "ToleranceUnits",
    # Errors
    "RawScanError",
    "OpenError",
    "StoreError",
    "AcquisitionInProgressError",
    "ChannelNotFoundError",
    "ScanReadError",
    "EmptyRangeError",
    "NoDataError",
    "IonTimeNotFoundError",
    "ConfigError",
    "FailureLog",
]
