"""
Report sections.

Each section writes human-readable lines about one aspect of an open
data store to a text stream. Toggleable sections share the signature
``section(store, config, out, failures)`` and are listed in SECTIONS in
report order; per-scan faults go to the FailureLog and the section
carries on with the next scan.
"""

from collections.abc import Callable
import logging
from typing import Optional, TextIO

from ..core.chromatogram import ChromatogramPoint, TraceType
from ..core.errors import (
    EmptyRangeError,
    FailureLog,
    IonTimeNotFoundError,
    NoDataError,
    ScanReadError,
)
from ..core.scan_metadata import MSOrder
from ..core.scan_record import ScanRecord, load_scan
from ..io.base import DeviceKind, InstrumentDataStore
from ..processing.averaging import average_by_list, average_by_range
from ..processing.centroiding import Centroider
from ..processing.chromatogram import extract
from ..processing.inclusion import InclusionListReconciler
from ..processing.precision import PrecisionEstimator
from ..processing.trailer import (
    displayable,
    field_catalog,
    lookup_by_scan,
    scan_trailer_summary,
    status_catalog,
    trailer_entry,
)
from ..processing.validation import validate_range
from ..utils.resources import SystemInfo, get_system_info
from .config import ReportConfig
from .sequence import EXAMPLE_HEADER, EXAMPLE_SAMPLES, write_sequence_list


logger = logging.getLogger(__name__)

# Errors a single scan can raise while a section reads it
_SCAN_ERRORS = (ScanReadError, KeyError, IndexError, ValueError, OSError)

SectionFunc = Callable[[InstrumentDataStore, ReportConfig, TextIO, FailureLog], None]


# -----------------------------------------------------------------------------
# Header sections (always written)
# -----------------------------------------------------------------------------

def write_system_information(out: TextIO, info: Optional[SystemInfo] = None) -> None:
    info = info if info is not None else get_system_info()
    print("System Information:", file=out)
    print(f"   OS Version: {info.os_version}", file=out)
    print(f"   64 bit OS: {info.is_64bit}", file=out)
    print(f"   Computer: {info.computer}", file=out)
    print(f"   # Cores: {info.cores}", file=out)
    print(f"   Date: {info.date:%Y-%m-%d %H:%M:%S}", file=out)
    print(file=out)


def write_file_information(store: InstrumentDataStore, out: TextIO) -> None:
    """General file information from the run metadata and run header."""
    metadata = store.run_metadata
    header = store.run_header
    print("General File Information:", file=out)
    print(f"   File: {metadata.get('source_file', store.path)}", file=out)
    print(f"   Creation date: {metadata.get('creation_date', '')}", file=out)
    print(f"   Operator: {metadata.get('operator', '')}", file=out)
    print(f"   Number of instruments: {store.instrument_count()}", file=out)
    print(f"   Instrument model: {metadata.get('instrument_model', '')}", file=out)
    print(f"   Instrument name: {metadata.get('instrument_name', '')}", file=out)
    print(f"   Serial number: {metadata.get('instrument_serial', '')}", file=out)
    print(f"   Software version: {metadata.get('software_version', '')}", file=out)
    print(f"   Mass resolution: {header.mass_resolution:.3f}", file=out)
    print(f"   Number of scans: {header.spectra_count}", file=out)
    print(f"   Scan range: {header.first_scan} - {header.last_scan}", file=out)
    print(f"   Time range: {header.start_time:.2f} - {header.end_time:.2f}", file=out)
    print(f"   Mass range: {header.low_mass:.4f} - {header.high_mass:.4f}", file=out)
    print(file=out)

    print("Sample Information:", file=out)
    for key, label in (
        ('sample_name', 'Sample name'),
        ('sample_id', 'Sample id'),
        ('sample_type', 'Sample type'),
        ('sample_comment', 'Sample comment'),
        ('sample_vial', 'Sample vial'),
    ):
        print(f"   {label}: {metadata.get(key, '')}", file=out)
    print(file=out)


def write_filter_information(
    store: InstrumentDataStore,
    out: TextIO,
    failures: Optional[FailureLog] = None,
) -> None:
    if failures is None:
        failures = FailureLog()
    print("Filter Information:", file=out)
    for label, scan_number in (("first scan", store.first_scan), ("last scan", store.last_scan)):
        try:
            scan_filter = store.filter_for(scan_number)
        except _SCAN_ERRORS as e:
            failures.record(scan_number, e)
            scan_filter = ''
        print(f"   Scan filter ({label}): {scan_filter}", file=out)
    print(f"   Total number of filters: {len(store.filters())}", file=out)
    print(file=out)


# -----------------------------------------------------------------------------
# Shared printers
# -----------------------------------------------------------------------------

def _write_peaks(record: ScanRecord, out: TextIO, print_data: bool, title: str = "Average spectrum") -> None:
    masses, intensities = record.preferred_masses, record.preferred_intensities
    print(f"{title} ({len(masses)} points)", file=out)
    if print_data:
        for mass, intensity in zip(masses, intensities):
            print(f"  {mass:.4f} {intensity:.0f}", file=out)


def _write_trace(
    points: list[ChromatogramPoint],
    out: TextIO,
    print_data: bool,
    title: str = "Base Peak chromatogram",
    intensity_format: str = ".0f",
) -> None:
    if not points:
        return
    print(f"{title} ({len(points)} points)", file=out)
    if print_data:
        for i, point in enumerate(points):
            print(f"  {i} - {point.time:.3f}, {point.intensity:{intensity_format}}", file=out)


# -----------------------------------------------------------------------------
# Toggleable sections
# -----------------------------------------------------------------------------

def trailer_extra_section(store, config, out, failures) -> None:
    print("Trailer Extra Data Information:", file=out)
    for i, log_field in enumerate(field_catalog(store)):
        print(f"   Field {i} = {log_field.label} storing data of type {log_field.data_type.name}", file=out)
    print(file=out)


def status_log_section(store, config, out, failures) -> None:
    print("Status Log Information:", file=out)
    for log_field in displayable(status_catalog(store)):
        print(
            f"   Field {log_field.position} = {log_field.label} "
            f"storing data of type {log_field.data_type.name}",
            file=out,
        )
    print(file=out)

    item = config.status_item_index
    print(f"Status Information for item {item}:", file=out)
    for scan_number in range(store.first_scan, store.last_scan + 1):
        try:
            entry = lookup_by_scan(store, scan_number)
        except _SCAN_ERRORS as e:
            failures.record(scan_number, e)
            continue
        value = entry.values[item] if item < len(entry) else ''
        print(f"   Scan {scan_number} = {value}", file=out)
    print(file=out)


def inclusion_list_section(store, config, out, failures) -> None:
    reconciler = InclusionListReconciler(config.inclusion_policy)
    items = reconciler.reconcile(store, config.inclusion_tolerance, failures)
    for count, item in enumerate(items, start=1):
        print(
            f"  {count} - {item.descriptor}, {item.mass:.4f}, {item.threshold:.0f}, {item.scan_number}",
            file=out,
        )
    print(file=out)


def chromatogram_section(store, config, out, failures) -> None:
    points = extract(store, TraceType.BASE_PEAK, None, store.first_scan, store.last_scan, failures)
    _write_trace(points, out, config.print_data)
    print(file=out)


def scan_information_section(store, config, out, failures) -> None:
    for scan_number in range(store.first_scan, store.last_scan + 1):
        try:
            time = store.retention_time(scan_number)
            scan_filter = store.filter_for(scan_number)
            if scan_filter.ms_order == MSOrder.MS2:
                reaction = store.scan_event_for(scan_number).get_reaction(0)
                summary = scan_trailer_summary(trailer_entry(store, scan_number))
                if config.print_data:
                    print(
                        f"Scan number {scan_number} @ time {time:.2f} - "
                        f"Master scan = {summary.master_scan or 0}, "
                        f"Ionization mode={scan_filter.ionization or ''}, "
                        f"MS Order={scan_filter.ms_order.name}, "
                        f"Precursor mass={reaction.precursor_mass:.4f}, "
                        f"Monoisotopic Mass = {summary.monoisotopic_mz or 0.0:.4f}, "
                        f"Collision energy={reaction.collision_energy:.2f}, "
                        f"Isolation width={reaction.isolation_width:.2f}",
                        file=out,
                    )
            elif scan_filter.ms_order == MSOrder.MS1:
                dependents = store.dependent_scans(scan_number)
                print(
                    f"Scan number {scan_number} @ time {time:.2f} - "
                    f"Instrument type={scan_filter.analyzer.name}, "
                    f"Number dependent scans={len(dependents)}",
                    file=out,
                )
        except _SCAN_ERRORS as e:
            failures.record(scan_number, e)


def spectrum_section(store, config, out, failures) -> None:
    scan_number = store.first_scan
    try:
        record = load_scan(store, scan_number)
    except ScanReadError as e:
        failures.record(scan_number, e)
        return

    if record.has_centroid:
        print(f"Spectrum (centroid/label) {scan_number} - {record.n_centroids} points", file=out)
        if config.print_data:
            for i, (mass, intensity, charge) in enumerate(zip(
                record.centroid_masses, record.centroid_intensities, record.centroid_charges
            )):
                print(f"  {i} - {mass:.4f}, {intensity:.0f}, {charge}", file=out)
    else:
        print(f"Spectrum (normal data) {scan_number} - {record.n_profile_points} points", file=out)
        if config.print_data:
            for i, (mass, intensity) in enumerate(zip(record.profile_masses, record.profile_intensities)):
                print(f"  {i} - {mass:.4f}, {intensity:.0f}", file=out)
    print(file=out)


def average_section(store, config, out, failures) -> None:
    options = config.average_options
    try:
        scan_filter = store.filter_for(config.average_first_scan)
        averaged = average_by_range(
            store, scan_filter, config.average_first_scan, config.average_last_scan, options, failures
        )
        _write_peaks(averaged, out, config.print_data)
    except EmptyRangeError as e:
        print(f"No average spectrum - {e}", file=out)
    except _SCAN_ERRORS as e:
        failures.record(config.average_first_scan, e)

    try:
        averaged = average_by_list(store, config.average_scan_list, options, failures)
        _write_peaks(averaged, out, config.print_data)
    except EmptyRangeError as e:
        print(f"No average spectrum - {e}", file=out)
    print(file=out)


def all_spectra_section(store, config, out, failures) -> None:
    for scan_number in range(store.first_scan, store.last_scan + 1):
        try:
            scan_filter = store.filter_for(scan_number)
            if not str(scan_filter):
                continue
            record = load_scan(store, scan_number)
        except _SCAN_ERRORS as e:
            failures.record(scan_number, e)
            continue
        if config.print_data:
            print(
                f"Spectrum {scan_number} - {scan_filter}: "
                f"normal {len(record.preferred_masses)}, label {record.n_centroids} points",
                file=out,
            )


def mass_precision_section(store, config, out, failures) -> None:
    try:
        results = PrecisionEstimator().estimate_for_scan(store, config.precision_scan)
    except ScanReadError as e:
        failures.record(config.precision_scan, e)
        return
    except IonTimeNotFoundError as e:
        print(f"No mass precision for scan {config.precision_scan} - {e}", file=out)
        return

    if results:
        print("Mass Precision Results:", file=out)
        for result in results:
            print(
                f"Mass {result.mass:.5f}, mmu = {result.accuracy_mmu:.3f}, ppm = {result.accuracy_ppm:.2f}",
                file=out,
            )


def scan_analysis_section(store, config, out, failures) -> None:
    result = validate_range(store, store.first_scan, store.last_scan, failures)
    if result.centroid.first_failure_scan is not None:
        print(
            f"First failure: Failed in centroid data at: Scan: {result.centroid.first_failure_scan} "
            f"Mass: {result.centroid.first_failure_mass:.4f}",
            file=out,
        )
    if result.profile.first_failure_scan is not None:
        print(
            f"First failure: Failed in scan data at: Scan: {result.profile.first_failure_scan} "
            f"Mass: {result.profile.first_failure_mass:.4f}",
            file=out,
        )

    print(file=out)
    if result.ok:
        print("Analysis completed: No out of order data found", file=out)
    else:
        print(
            f"Analysis completed: Preferred data failed: {result.profile.failure_count} "
            f"Centroid data failed: {result.centroid.failure_count}",
            file=out,
        )


def sequence_list_section(store, config, out, failures) -> None:
    path = write_sequence_list(config.sequence_file, EXAMPLE_SAMPLES, EXAMPLE_HEADER)
    print(f"Sequence list written to {path}", file=out)


def analog_section(store, config, out, failures) -> None:
    selected = 0
    try:
        for i in range(1, store.instrument_count(DeviceKind.ANALOG) + 1):
            store.select_channel(DeviceKind.ANALOG, i)
            labels = store.channel_labels()
            label = labels[0] if labels else ''
            print(f"Analog channel {i}: {label}", file=out)
            if label == config.analog_label:
                selected = i

        if selected:
            store.select_channel(DeviceKind.ANALOG, selected)
            header = store.run_header
            points = extract(store, TraceType.ANALOG_1, None, header.first_scan, header.last_scan, failures)
            _write_trace(points, out, config.print_data, title="Analog chromatogram", intensity_format=".3f")
    finally:
        if store.instrument_count(DeviceKind.MS):
            store.select_channel(DeviceKind.MS, 1)


def mass_chromatogram_section(store, config, out, failures) -> None:
    if store.instrument_count(DeviceKind.MS) == 0:
        return
    store.select_channel(DeviceKind.MS, 1)
    header = store.run_header
    try:
        points = extract(
            store,
            TraceType.BASE_PEAK,
            (0.0, header.high_mass),
            header.first_scan,
            header.last_scan,
            failures,
        )
    except NoDataError as e:
        print(f"Error accessing data store! - {e}", file=out)
        return
    _write_trace(points, out, config.print_data, intensity_format=".3f")


def centroid_section(store, config, out, failures) -> None:
    scan_number = config.centroid_scan_number
    try:
        record = load_scan(store, scan_number)
    except ScanReadError as e:
        failures.record(scan_number, e)
        return
    centroided = Centroider().to_centroid(record)
    masses = centroided.centroid_masses
    print(f"Centroided spectrum ({len(masses)} points)", file=out)
    if config.print_data:
        for mass, intensity in zip(masses, centroided.centroid_intensities):
            print(f"  {mass:.4f} {intensity:.0f}", file=out)


# Toggle name -> section, in report order
SECTIONS: dict[str, SectionFunc] = {
    'get_trailer_extra': trailer_extra_section,
    'get_status_log': status_log_section,
    'get_inclusion_exclusion_list': inclusion_list_section,
    'get_chromatogram': chromatogram_section,
    'read_scan_information': scan_information_section,
    'read_spectrum': spectrum_section,
    'average_scans': average_section,
    'read_all_scans': all_spectra_section,
    'calculate_mass_precision': mass_precision_section,
    'analyze_scans': scan_analysis_section,
    'create_sequence_list_file': sequence_list_section,
    'read_analog': analog_section,
    'read_mass_chromatogram': mass_chromatogram_section,
    'centroid_scan': centroid_section,
}
