"""
Spectral averaging across scans.

Peaks of several scans are combined into one spectrum by merging masses
that lie within a tolerance of each other. Merged peaks sit at the
intensity-weighted mean mass and carry the summed intensity, so total
intensity is conserved.

The range form selects the scans of a range whose filter matches a
given filter and hands them to the list form; both forms therefore
produce the same result for the same set of scans.
"""

from collections.abc import Sequence
from dataclasses import replace
import logging
from typing import Optional, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..core.errors import EmptyRangeError, FailureLog, ScanReadError
from ..core.options import AverageOptions
from ..core.scan_metadata import FilterDescriptor
from ..core.scan_record import ScanRecord, load_scan

if TYPE_CHECKING:
    from ..io.base import InstrumentDataStore


logger = logging.getLogger(__name__)


def merge_peaks(
    masses: NDArray[np.float64],
    intensities: NDArray[np.float64],
    options: AverageOptions,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Greedily merge peaks whose masses lie within tolerance.

    Peaks are stably sorted by mass. A peak joins the open cluster when
    it is within the tolerance of the cluster's first mass, with the
    tolerance evaluated at that first mass; otherwise it opens a new
    cluster.

    Args:
        masses: Peak masses, any order.
        intensities: Intensities aligned with masses.
        options: Merge tolerance.

    Returns:
        Tuple of (masses, intensities) of the merged peaks, sorted by mass.
    """
    masses = np.asarray(masses, dtype=np.float64)
    intensities = np.asarray(intensities, dtype=np.float64)
    if len(masses) == 0:
        return np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64)

    order = np.argsort(masses, kind='mergesort')
    masses = masses[order]
    intensities = intensities[order]

    # Cluster boundaries, each cluster anchored at its first mass
    starts = [0]
    anchor = masses[0]
    limit = anchor + options.tolerance_at(anchor)
    for i in range(1, len(masses)):
        if masses[i] > limit:
            starts.append(i)
            anchor = masses[i]
            limit = anchor + options.tolerance_at(anchor)
    bounds = np.append(starts, len(masses))

    merged_masses = np.empty(len(starts), dtype=np.float64)
    merged_intensities = np.empty(len(starts), dtype=np.float64)
    for k, (lo, hi) in enumerate(zip(bounds[:-1], bounds[1:])):
        cluster_masses = masses[lo:hi]
        cluster_intensities = intensities[lo:hi]
        total = cluster_intensities.sum()
        if total != 0:
            merged_masses[k] = np.dot(cluster_masses, cluster_intensities) / total
        else:
            merged_masses[k] = cluster_masses.mean()
        merged_intensities[k] = total

    return merged_masses, merged_intensities


def average_records(records: Sequence[ScanRecord], options: AverageOptions) -> ScanRecord:
    """
    Combine loaded scans into one averaged ScanRecord.

    The output takes its scan number, filter text, MS order, reactions
    and analyzer from the first record, and the mean retention time of
    all records. When any record has centroid data the merged peaks are
    placed in the centroid arrays, otherwise in the profile arrays.

    Raises:
        EmptyRangeError: If records is empty.
    """
    if not records:
        raise EmptyRangeError("No scans to average")

    masses = np.concatenate([record.preferred_masses for record in records])
    intensities = np.concatenate([record.preferred_intensities for record in records])
    merged_masses, merged_intensities = merge_peaks(masses, intensities, options)
    if options.normalize:
        merged_intensities = merged_intensities / len(records)

    first = records[0]
    retention_time = float(np.mean([record.retention_time for record in records]))
    if any(record.has_centroid for record in records):
        return ScanRecord(
            scan_number=first.scan_number,
            retention_time=retention_time,
            ms_order=first.ms_order,
            filter_text=first.filter_text,
            has_centroid=True,
            centroid_masses=merged_masses,
            centroid_intensities=merged_intensities,
            centroid_charges=np.zeros(len(merged_masses), dtype=np.int32),
            reactions=first.reactions,
            analyzer=first.analyzer,
        )
    return replace(
        first,
        retention_time=retention_time,
        profile_masses=merged_masses,
        profile_intensities=merged_intensities,
    )


def average_by_list(
    store: 'InstrumentDataStore',
    scan_numbers: Sequence[int],
    options: Optional[AverageOptions] = None,
    failures: Optional[FailureLog] = None,
) -> ScanRecord:
    """
    Average an explicit list of scans.

    Scans that cannot be read are recorded in failures and skipped.

    Args:
        store: Open data store with the MS channel selected.
        scan_numbers: Scans to combine, in order.
        options: Merge tolerance (default 5 ppm).
        failures: Log receiving per-scan read faults.

    Returns:
        The averaged scan.

    Raises:
        EmptyRangeError: If no scan could be loaded.
    """
    if options is None:
        options = AverageOptions()
    if failures is None:
        failures = FailureLog()

    records = []
    for scan_number in scan_numbers:
        try:
            records.append(load_scan(store, scan_number))
        except ScanReadError as e:
            failures.record(scan_number, e)

    if not records:
        raise EmptyRangeError(f"None of {len(scan_numbers)} requested scans could be loaded")

    logger.debug(f"Averaging {len(records)} scans")
    return average_records(records, options)


def matching_scans(
    store: 'InstrumentDataStore',
    scan_filter: FilterDescriptor,
    first_scan: int,
    last_scan: int,
    failures: Optional[FailureLog] = None,
) -> list[int]:
    """Scan numbers in an inclusive range whose filter matches scan_filter."""
    if failures is None:
        failures = FailureLog()

    matched = []
    for scan_number in range(first_scan, last_scan + 1):
        try:
            candidate = store.filter_for(scan_number)
        except (ScanReadError, KeyError, IndexError, ValueError, OSError) as e:
            failures.record(scan_number, e)
            continue
        if candidate.matches(scan_filter):
            matched.append(scan_number)
    return matched


def average_by_range(
    store: 'InstrumentDataStore',
    scan_filter: FilterDescriptor,
    first_scan: int,
    last_scan: int,
    options: Optional[AverageOptions] = None,
    failures: Optional[FailureLog] = None,
) -> ScanRecord:
    """
    Average the scans of a range that match a scan filter.

    Args:
        store: Open data store with the MS channel selected.
        scan_filter: Filter selecting the scans to combine.
        first_scan: First scan number.
        last_scan: Last scan number (inclusive).
        options: Merge tolerance (default 5 ppm).
        failures: Log receiving per-scan faults.

    Returns:
        The averaged scan.

    Raises:
        EmptyRangeError: If no scan in the range matches the filter.
    """
    if failures is None:
        failures = FailureLog()

    scan_numbers = matching_scans(store, scan_filter, first_scan, last_scan, failures)
    if not scan_numbers:
        raise EmptyRangeError(
            f"No scans between {first_scan} and {last_scan} match filter '{scan_filter}'"
        )
    return average_by_list(store, scan_numbers, options, failures)
