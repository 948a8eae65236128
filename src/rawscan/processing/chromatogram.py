"""
Chromatogram trace extraction.

Scan-derived traces (TIC, base peak, mass range) are computed from each
scan's preferred peaks; device-recorded traces (analog channels) are
returned as the store provides them.
"""

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np
import pandas as pd

from ..core.chromatogram import ChromatogramPoint, TraceSpec, TraceType
from ..core.errors import FailureLog, NoDataError, ScanReadError
from ..core.scan_record import ScanRecord, load_scan

if TYPE_CHECKING:
    from ..io.base import InstrumentDataStore


logger = logging.getLogger(__name__)


def trace_intensity(
    record: ScanRecord,
    trace_type: TraceType,
    mass_range: Optional[tuple[float, float]] = None,
) -> float:
    """
    Intensity of one scan for a scan-derived trace.

    Args:
        record: The scan.
        trace_type: TIC, BASE_PEAK or MASS_RANGE.
        mass_range: Inclusive (low, high) window; the whole scan when None.

    Returns:
        Summed intensity in the window (TIC, MASS_RANGE) or the largest
        intensity in the window (BASE_PEAK, 0.0 when the window is empty).
    """
    masses = record.preferred_masses
    intensities = record.preferred_intensities
    if mass_range is not None:
        low, high = mass_range
        in_window = (masses >= low) & (masses <= high)
        intensities = intensities[in_window]

    if trace_type == TraceType.BASE_PEAK:
        return float(intensities.max()) if len(intensities) else 0.0
    return float(intensities.sum())


def extract(
    store: 'InstrumentDataStore',
    trace_type: TraceType,
    mass_range: Optional[tuple[float, float]],
    first_scan: int,
    last_scan: int,
    failures: Optional[FailureLog] = None,
) -> list[ChromatogramPoint]:
    """
    Extract a chromatogram over an inclusive scan range.

    Scans that cannot be read are recorded in failures and omitted, so
    the result holds one point per scan with retrievable data.

    Args:
        store: Open data store.
        trace_type: Kind of trace.
        mass_range: Inclusive (low, high) window; required for MASS_RANGE.
        first_scan: First scan number (or sample index for device traces).
        last_scan: Last scan number (inclusive).
        failures: Log receiving per-scan read faults.

    Returns:
        Chromatogram points in scan order.

    Raises:
        NoDataError: If the selected device cannot produce the trace.
        ValueError: If MASS_RANGE is requested without a mass range.
    """
    if trace_type == TraceType.MASS_RANGE and mass_range is None:
        raise ValueError("MASS_RANGE trace requires a mass range")
    if failures is None:
        failures = FailureLog()

    spec = TraceSpec(trace_type, mass_range)
    if not trace_type.scan_derived:
        times, intensities = store.chromatogram(spec, first_scan, last_scan)
        return [
            ChromatogramPoint(float(time), float(intensity))
            for time, intensity in zip(times, intensities)
        ]

    if not store.supports_trace(spec):
        device, index = store.selected_device
        raise NoDataError(f"{trace_type.name} trace is not available for device {device.name} {index}")

    points = []
    for scan_number in range(first_scan, last_scan + 1):
        try:
            record = load_scan(store, scan_number)
        except ScanReadError as e:
            failures.record(scan_number, e)
            continue
        points.append(ChromatogramPoint(
            record.retention_time,
            trace_intensity(record, trace_type, mass_range),
        ))

    logger.debug(f"Extracted {trace_type.name} trace with {len(points)} points")
    return points


def chromatogram_frame(points: list[ChromatogramPoint]) -> pd.DataFrame:
    """
    Chromatogram points as a DataFrame.

    Returns:
        DataFrame with float columns 'time' and 'intensity'.
    """
    return pd.DataFrame({
        'time': np.array([point.time for point in points], dtype=np.float64),
        'intensity': np.array([point.intensity for point in points], dtype=np.float64),
    })
