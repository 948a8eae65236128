"""
Concrete instrument data stores.

Importing this package registers every file-backed store with the
StoreRegistry.
"""

from .memory import AnalogChannel, InMemoryDataStore, StoredScan
from .mzml import MzMLDataStore

__all__ = [
    "InMemoryDataStore",
    "StoredScan",
    "AnalogChannel",
    "MzMLDataStore",
]
