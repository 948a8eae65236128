"""
Error taxonomy for rawscan.

Errors fall into three groups:

- Fatal store errors (OpenError, StoreError, AcquisitionInProgressError,
  ChannelNotFoundError) abort a whole report.
- Per-item errors (ScanReadError) are caught at the scan-loop boundary and
  recorded in a FailureLog so the sweep can continue.
- Empty-result and lookup errors (EmptyRangeError, NoDataError,
  IonTimeNotFoundError) signal that an operation had nothing to work on.
"""

from dataclasses import dataclass, field
import logging
from typing import Optional


logger = logging.getLogger(__name__)


class RawScanError(Exception):
    """Base class for all rawscan errors."""


class OpenError(RawScanError):
    """The instrument data store could not be opened."""


class StoreError(RawScanError):
    """The instrument data store reports an internal error."""


class AcquisitionInProgressError(RawScanError):
    """The data file is still being acquired."""


class ChannelNotFoundError(RawScanError):
    """The requested instrument channel is not present in the store."""


class ScanReadError(RawScanError):
    """A single scan could not be read from the store."""

    def __init__(self, scan_number: int, message: str):
        super().__init__(f"scan {scan_number}: {message}")
        self.scan_number = scan_number
        self.reason = message


class EmptyRangeError(RawScanError):
    """No scans qualified for an operation that needs at least one."""


class NoDataError(RawScanError):
    """The store has no data of the requested kind for the selected device."""


class IonTimeNotFoundError(RawScanError):
    """No ion time field is present in the trailer data of a scan."""


class ConfigError(RawScanError):
    """Invalid report configuration."""


@dataclass
class FailureLog:
    """
    Collects recoverable per-scan failures during a scan-range sweep.

    Attributes:
        messages: One message per recorded failure, in order of occurrence.
        scan_numbers: Scan number of each recorded failure.
    """
    messages: list[str] = field(default_factory=list)
    scan_numbers: list[int] = field(default_factory=list)

    def record(self, scan_number: int, error: Exception) -> None:
        """Record a failure for a scan and log it."""
        message = str(error)
        self.scan_numbers.append(scan_number)
        self.messages.append(message)
        logger.warning(f"Error reading spectrum {scan_number} - {message}")

    @property
    def count(self) -> int:
        """Number of recorded failures."""
        return len(self.messages)

    @property
    def first_message(self) -> Optional[str]:
        """Message of the first recorded failure, if any."""
        return self.messages[0] if self.messages else None
