"""
I/O module for reading instrument acquisition data.

This module provides:

Stores:
- MzMLDataStore: Read mzML files via pyteomics
- InMemoryDataStore: Store over in-memory scans and logs

Base classes:
- InstrumentDataStore: Abstract base class for all stores
- RunHeader: Scan/time/mass range of the selected device
- DeviceKind: Enum of instrument device kinds

Registry:
- StoreRegistry: Auto-detection and store selection
- open_store(): Detect a file's format and open it
- detect_vendor(): Detect file vendor from path
- Vendor: Enum of supported vendors
"""

from .base import DeviceKind, InstrumentDataStore, RunHeader
from .registry import StoreRegistry, Vendor, detect_vendor, open_store
from .stores import AnalogChannel, InMemoryDataStore, MzMLDataStore, StoredScan

__all__ = [
    # Base
    "InstrumentDataStore",
    "RunHeader",
    "DeviceKind",
    # Stores
    "MzMLDataStore",
    "InMemoryDataStore",
    "StoredScan",
    "AnalogChannel",
    # Registry
    "StoreRegistry",
    "open_store",
    "detect_vendor",
    "Vendor",
]
