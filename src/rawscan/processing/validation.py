"""
Mass-order validation of scan data.

Mass arrays of a scan are expected to increase strictly. The validator
uses a running-maximum test: every element that does not exceed the
largest mass seen so far in the array counts as a failure, even when it
is larger than its immediate predecessor. Findings are data, not
errors; a report prints them as counts plus the first failure location.
"""

from dataclasses import dataclass, field
import logging
from typing import Optional, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..core.errors import FailureLog, ScanReadError
from ..core.scan_record import ScanRecord, load_scan

if TYPE_CHECKING:
    from ..io.base import InstrumentDataStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ArrayValidation:
    """
    Validation findings for one kind of mass array.

    Attributes:
        first_failure_scan: Scan of the first failure, None if none failed.
        first_failure_mass: Offending mass of the first failure.
        failure_count: Number of failing elements.
    """
    first_failure_scan: Optional[int] = None
    first_failure_mass: Optional[float] = None
    failure_count: int = 0

    @property
    def ok(self) -> bool:
        return self.failure_count == 0

    def merge(self, later: 'ArrayValidation') -> 'ArrayValidation':
        """Combine with findings of a later scan, keeping the first failure location."""
        if self.first_failure_scan is not None:
            first_scan, first_mass = self.first_failure_scan, self.first_failure_mass
        else:
            first_scan, first_mass = later.first_failure_scan, later.first_failure_mass
        return ArrayValidation(
            first_failure_scan=first_scan,
            first_failure_mass=first_mass,
            failure_count=self.failure_count + later.failure_count,
        )


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Findings for the profile and centroid arrays of one scan or a scan range."""
    profile: ArrayValidation = field(default_factory=ArrayValidation)
    centroid: ArrayValidation = field(default_factory=ArrayValidation)
    scans_checked: int = 0

    @property
    def ok(self) -> bool:
        return self.profile.ok and self.centroid.ok

    def merge(self, later: 'ValidationResult') -> 'ValidationResult':
        return ValidationResult(
            profile=self.profile.merge(later.profile),
            centroid=self.centroid.merge(later.centroid),
            scans_checked=self.scans_checked + later.scans_checked,
        )


def validate_masses(masses: NDArray[np.float64], scan_number: int) -> ArrayValidation:
    """
    Run the running-maximum test over one mass array.

    Args:
        masses: Mass values in acquisition order.
        scan_number: Scan the array belongs to.

    Returns:
        ArrayValidation for the array.

    Example:
        >>> validate_masses(np.array([100.0, 101.0, 99.0, 103.0]), 7)
        ArrayValidation(first_failure_scan=7, first_failure_mass=99.0, failure_count=1)
    """
    masses = np.asarray(masses, dtype=np.float64)
    if len(masses) < 2:
        return ArrayValidation()

    running_max = np.maximum.accumulate(masses)
    failed = masses[1:] <= running_max[:-1]
    failure_count = int(np.count_nonzero(failed))
    if failure_count == 0:
        return ArrayValidation()

    first = int(np.argmax(failed)) + 1
    return ArrayValidation(
        first_failure_scan=scan_number,
        first_failure_mass=float(masses[first]),
        failure_count=failure_count,
    )


def validate(record: ScanRecord) -> ValidationResult:
    """Validate the profile masses and, if present, the centroid masses of a scan."""
    centroid = ArrayValidation()
    if record.has_centroid:
        centroid = validate_masses(record.centroid_masses, record.scan_number)
    return ValidationResult(
        profile=validate_masses(record.profile_masses, record.scan_number),
        centroid=centroid,
        scans_checked=1,
    )


def validate_range(
    store: 'InstrumentDataStore',
    first_scan: int,
    last_scan: int,
    failures: Optional[FailureLog] = None,
) -> ValidationResult:
    """
    Validate every scan in an inclusive range.

    Failure counts accumulate across scans; only the very first failure
    location per array kind is kept. Scans that cannot be read are
    recorded in failures and skipped.

    Args:
        store: Open data store with the MS channel selected.
        first_scan: First scan number.
        last_scan: Last scan number (inclusive).
        failures: Log receiving per-scan read faults.

    Returns:
        Aggregate ValidationResult.
    """
    if failures is None:
        failures = FailureLog()

    result = ValidationResult()
    for scan_number in range(first_scan, last_scan + 1):
        try:
            record = load_scan(store, scan_number)
        except ScanReadError as e:
            failures.record(scan_number, e)
            continue
        result = result.merge(validate(record))

    logger.debug(
        f"Validated {result.scans_checked} scans: {result.profile.failure_count} profile "
        f"and {result.centroid.failure_count} centroid failures"
    )
    return result
