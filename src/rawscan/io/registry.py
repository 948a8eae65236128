from pathlib import Path
from enum import Enum, auto
import logging
from typing import TYPE_CHECKING

from ..core.errors import OpenError

if TYPE_CHECKING:
    from .base import InstrumentDataStore


logger = logging.getLogger(__name__)


class Vendor(Enum):
    THERMO = auto()
    AGILENT = auto()
    BRUKER = auto()
    SCIEX = auto()
    WATERS = auto()
    OPEN_FORMAT = auto()  # mzML
    UNKNOWN = auto()

# Suffix lookup; '.raw' and '.d' are refined by looking inside the path
VENDOR_EXTENSIONS: dict[str, Vendor] = {
    '.raw': Vendor.THERMO,
    '.d': Vendor.AGILENT,
    '.wiff': Vendor.SCIEX,
    '.mzml': Vendor.OPEN_FORMAT,
}

#: UTF-16 marker found near the start of Thermo RAW files
_THERMO_SIGNATURE = 'Finnigan'.encode('utf-16-le')


def detect_vendor(path: Path | str) -> Vendor:
    """
    Guess which vendor wrote an acquisition.

    The suffix decides, except for the two ambiguous ones: a '.d'
    directory is Bruker when it holds an analysis.tdf/.baf file and
    Agilent when it holds AcqData. A '.raw' directory is Waters and a
    '.raw' file is Thermo only if its header carries the Finnigan mark.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == '.d' and path.is_dir():
        return _vendor_of_d_directory(path)
    if suffix == '.raw':
        return _vendor_of_raw(path)
    return VENDOR_EXTENSIONS.get(suffix, Vendor.UNKNOWN)


def _vendor_of_d_directory(path: Path) -> Vendor:
    if any((path / name).exists() for name in ('analysis.tdf', 'analysis.baf')):
        return Vendor.BRUKER
    if (path / 'AcqData').exists():
        return Vendor.AGILENT
    return Vendor.UNKNOWN


def _vendor_of_raw(path: Path) -> Vendor:
    if path.is_dir():
        return Vendor.WATERS
    if not path.is_file():
        # nothing to sniff yet; the store reports the missing file
        return Vendor.THERMO
    try:
        with open(path, 'rb') as fh:
            head = fh.read(64)
    except OSError as e:
        logger.debug(f"Cannot sniff {path}: {e}")
        return Vendor.UNKNOWN
    if _THERMO_SIGNATURE in head:
        return Vendor.THERMO
    logger.debug(f"{path.name} has no Thermo header signature")
    return Vendor.UNKNOWN


class StoreRegistry:
    """Registry for instrument data stores with automatic vendor detection."""

    _stores: dict[Vendor, type['InstrumentDataStore']] = {}

    @classmethod
    def register(cls, vendor: Vendor):
        """Decorator to register a store class for a vendor."""
        def decorator(store_class: type['InstrumentDataStore']):
            cls._stores[vendor] = store_class
            return store_class
        return decorator

    @classmethod
    def get_store(cls, path: Path | str) -> 'InstrumentDataStore':
        """
        Get an (unopened) store for a file, with automatic vendor detection.

        Raises:
            OpenError: If no usable store exists for the file.
        """
        path = Path(path)
        vendor = detect_vendor(path)

        store_class = cls._stores.get(vendor)
        if store_class is None or not store_class.is_available():
            raise OpenError(
                f"No store available for {path} (detected vendor: {vendor.name}). "
                f"Convert the file to mzML or install the store's dependencies."
            )
        try:
            return store_class(path)
        except (FileNotFoundError, ValueError) as e:
            raise OpenError(str(e)) from e

    @classmethod
    def list_available(cls) -> dict[str, bool]:
        """List all stores and their availability status."""
        return {vendor.name: store.is_available() for vendor, store in cls._stores.items()}


def open_store(path: Path | str) -> 'InstrumentDataStore':
    """
    Detect the format of a file and open it.

    Args:
        path: Acquisition file.

    Returns:
        An open store; the caller must close it (or use it as a
        context manager).

    Raises:
        OpenError: If the file cannot be opened.
    """
    store = StoreRegistry.get_store(path)
    store.open()
    logger.info(f"Opened {store.path.name} with {type(store).__name__}")
    return store
