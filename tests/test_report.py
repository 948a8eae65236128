"""
Tests for the acquisition report: sections, runner and sequence lists.
"""

import io
from datetime import datetime

import pytest

from rawscan.core import (
    AcquisitionInProgressError,
    ChannelNotFoundError,
    FailureLog,
    ScanReadError,
    StoreError,
)
from rawscan.io import InMemoryDataStore, InstrumentDataStore
from rawscan.report import (
    SECTION_NAMES,
    SECTIONS,
    ReportConfig,
    SequenceHeader,
    SequenceSample,
    check_store,
    read_sequence_list,
    run_report,
    write_sequence_list,
)
from rawscan.report.sections import write_filter_information, write_system_information
from rawscan.utils import SystemInfo

from conftest import MS1_FILTER, MS2_FILTER, MS2_FILTER_B


def report_text(store, config, path="dda.raw"):
    out = io.StringIO()
    status = run_report(path, config, out=out, store=store)
    return status, out.getvalue()


def section_text(store, name, **config_values):
    out = io.StringIO()
    failures = FailureLog()
    with store:
        SECTIONS[name](store, ReportConfig(**config_values), out, failures)
    return out.getvalue(), failures


class TestRunReport:
    """Whole-report runs against in-memory stores."""

    def test_default_report(self, dda_store):
        status, text = report_text(dda_store, ReportConfig())
        assert status == 0
        assert "The file has data from 2 instruments" in text
        assert "General File Information:" in text
        assert "Instrument model: Orbitrap Test" in text
        assert "Number of scans: 5" in text
        assert "Total number of filters: 4" in text
        assert "Base Peak chromatogram (5 points)" in text
        assert "Closing dda.raw" in text
        assert not dda_store.is_open

    def test_all_sections(self, dda_store, tmp_path):
        config = ReportConfig(
            sequence_file=str(tmp_path / "sequence_list.csv"),
            precision_scan=2,
            centroid_scan_number=1,
        ).with_sections(enable=SECTION_NAMES)
        status, text = report_text(dda_store, config)
        assert status == 0
        assert "Trailer Extra Data Information:" in text
        assert "Status Log Information:" in text
        assert "Mass Precision Results:" in text
        assert "Analysis completed: No out of order data found" in text
        assert "Analog chromatogram (4 points)" in text
        assert "Centroided spectrum (1 points)" in text
        assert "Closing dda.raw" in text
        assert (tmp_path / "sequence_list.csv").exists()

    def test_unreadable_scans_are_summarized(self, dda_store):
        config = ReportConfig().with_sections(enable=['average_scans'])
        status, text = report_text(dda_store, config)
        assert status == 0
        # The default range runs to scan 15 and the store ends at 5
        assert "scans could not be read" in text

    def test_acquiring_store_stops(self, dda_records):
        store = InMemoryDataStore.from_records(dda_records, acquiring=True, name="live.raw")
        status, text = report_text(store, ReportConfig(), path="live.raw")
        assert status == 1
        assert "RAW file still being acquired - live.raw" in text
        assert "Closing" not in text
        assert not store.is_open

    def test_store_error_stops(self, dda_records):
        store = InMemoryDataStore.from_records(dda_records, error="header corrupt")
        status, text = report_text(store, ReportConfig())
        assert status == 1
        assert "Error opening (header corrupt)" in text

    def test_store_without_ms_device_stops(self):
        status, text = report_text(InMemoryDataStore({}), ReportConfig())
        assert status == 1
        assert "No MS device" in text

    def test_unopenable_file(self, tmp_path):
        path = tmp_path / "sample.wiff"
        path.write_bytes(b"")
        out = io.StringIO()
        assert run_report(path, out=out) == 1
        assert "Unable to access the data file" in out.getvalue()

    def test_memory_usage_reported(self, dda_store):
        _, text = report_text(dda_store, ReportConfig())
        assert "Memory Usage:" in text


class _BaseFilterStore(InMemoryDataStore):
    """In-memory store that walks the scan range through the base class."""

    filters = InstrumentDataStore.filters
    dependent_scans = InstrumentDataStore.dependent_scans


class _BadLastFilterStore(InMemoryDataStore):
    """In-memory store whose last scan has an unreadable filter."""

    def filter_for(self, scan_number):
        if scan_number == self.last_scan:
            raise ScanReadError(scan_number, "filter record damaged")
        return super().filter_for(scan_number)


class TestScanRangeGaps:
    """A missing scan in the range costs that scan only."""

    @pytest.fixture
    def gap_store(self, dda_records):
        return _BaseFilterStore.from_records([r for r in dda_records if r.scan_number != 3])

    def test_report_completes(self, gap_store):
        status, text = report_text(gap_store, ReportConfig())
        assert status == 0
        assert "Error accessing data store!" not in text
        assert "Total number of filters: 3" in text
        assert "Base Peak chromatogram (4 points)" in text
        assert "scans could not be read; first: scan 3" in text
        assert "Closing dda.raw" in text

    def test_filters_skip_missing_scan(self, gap_store):
        with gap_store:
            texts = [str(scan_filter) for scan_filter in gap_store.filters()]
        assert texts == [MS1_FILTER, MS2_FILTER, MS2_FILTER_B]

    def test_dependent_scans_skip_missing_scan(self, gap_store):
        with gap_store:
            assert gap_store.dependent_scans(1) == [2]
            assert gap_store.dependent_scans(4) == [5]

    def test_unreadable_header_filter_is_recorded(self, dda_records):
        store = _BadLastFilterStore.from_records(dda_records)
        out = io.StringIO()
        failures = FailureLog()
        with store:
            write_filter_information(store, out, failures)
        text = out.getvalue()
        assert "Scan filter (first scan): " + MS1_FILTER in text
        assert "Scan filter (last scan): \n" in text
        assert "Total number of filters: 4" in text
        assert failures.scan_numbers == [5]


class TestCheckStore:
    """Fatal store conditions."""

    def test_selects_ms_channel(self, dda_store):
        with dda_store:
            check_store(dda_store)
            assert dda_store.selected_device[1] == 1

    @pytest.mark.parametrize("kwargs, error", [
        ({'acquiring': True}, AcquisitionInProgressError),
        ({'error': "bad"}, StoreError),
    ])
    def test_fatal_conditions(self, dda_records, kwargs, error):
        store = InMemoryDataStore.from_records(dda_records, **kwargs)
        with store:
            with pytest.raises(error):
                check_store(store)

    def test_missing_ms_device(self):
        with pytest.raises(ChannelNotFoundError):
            check_store(InMemoryDataStore({}))


class TestSections:
    """Individual report sections."""

    def test_trailer_extra(self, dda_store):
        text, _ = section_text(dda_store, 'get_trailer_extra')
        assert "Field 0 = Ion Injection Time (ms): storing data of type DOUBLE" in text

    def test_status_log(self, dda_store):
        text, _ = section_text(dda_store, 'get_status_log', status_item_index=0)
        assert "Field 1" not in text
        assert "Field 2 = Vacuum (Torr):" in text
        assert "Scan 1 = 3.5" in text
        assert "Scan 5 = 3.6" in text

    def test_inclusion_list(self, dda_store):
        text, _ = section_text(dda_store, 'get_inclusion_exclusion_list')
        assert "  1 - CompoundA, 500.1000, 1000, 2" in text
        assert "  2 - CompoundB, 620.2000, 500, 5" in text

    def test_scan_information(self, dda_store):
        text, failures = section_text(dda_store, 'read_scan_information')
        assert "Scan number 1 @ time 0.10 - Instrument type=FTMS, Number dependent scans=2" in text
        assert "Master scan = 1" in text
        assert "Precursor mass=500.1000" in text
        assert "Monoisotopic Mass = 500.0995" in text
        assert failures.count == 0

    def test_spectrum_profile(self, dda_store):
        text, _ = section_text(dda_store, 'read_spectrum')
        assert "Spectrum (normal data) 1 - 3 points" in text
        assert "  0 - 500.1000, 1000" in text

    def test_average(self, dda_store):
        text, _ = section_text(dda_store, 'average_scans', average_last_scan=5, average_scan_list=(1, 4))
        assert text.count("Average spectrum (3 points)") == 2
        assert "  500.1000 1800" in text

    def test_average_without_matches(self, dda_store):
        text, _ = section_text(
            dda_store, 'average_scans', average_first_scan=2, average_last_scan=2, average_scan_list=(99,)
        )
        assert "Average spectrum (3 points)" in text
        assert "No average spectrum" in text

    def test_all_spectra(self, dda_store):
        text, _ = section_text(dda_store, 'read_all_scans')
        assert "Spectrum 2 - FTMS + c ESI d Full ms2 500.10@hcd30.00 [110.00-1510.00]: normal 3, label 3 points" in text

    def test_mass_precision_without_ion_time(self, dda_store):
        text, _ = section_text(dda_store, 'calculate_mass_precision', precision_scan=1)
        assert "No mass precision for scan 1" in text

    def test_scan_analysis_with_failures(self, make_record):
        store = InMemoryDataStore.from_records([
            make_record(1, 0.1, [100.0, 101.0], [1.0, 1.0]),
            make_record(2, 0.2, [100.0, 99.5], [1.0, 1.0]),
        ])
        text, _ = section_text(store, 'analyze_scans')
        assert "First failure: Failed in scan data at: Scan: 2 Mass: 99.5000" in text
        assert "Analysis completed: Preferred data failed: 1 Centroid data failed: 0" in text

    def test_analog_restores_ms_selection(self, dda_store):
        text, _ = section_text(dda_store, 'read_analog')
        assert "Analog channel 1: Pump_Pressure" in text
        assert "  1 - 0.100, 251.500" in text
        assert dda_store.selected_device[0].name == "MS"

    def test_analog_label_not_found(self, dda_store):
        text, _ = section_text(dda_store, 'read_analog', analog_label="Column_Temp")
        assert "Analog chromatogram" not in text

    def test_mass_chromatogram_without_data_printing(self, chromatogram_store):
        text, _ = section_text(chromatogram_store, 'read_mass_chromatogram', print_data=False)
        assert text.strip() == "Base Peak chromatogram (3 points)"

    def test_centroid_missing_scan_recorded(self, dda_store):
        _, failures = section_text(dda_store, 'centroid_scan')
        assert failures.scan_numbers == [100]

    def test_sections_cover_every_toggle(self):
        assert list(SECTIONS) == list(SECTION_NAMES)


def test_system_information():
    out = io.StringIO()
    info = SystemInfo("Linux-6", True, "lab-pc", 8, datetime(2024, 1, 2, 3, 4, 5))
    write_system_information(out, info)
    text = out.getvalue()
    assert "   Computer: lab-pc" in text
    assert "   # Cores: 8" in text
    assert "   Date: 2024-01-02 03:04:05" in text


class TestSequenceList:
    """Sequence list CSV files."""

    def test_round_trip(self, tmp_path):
        header = SequenceHeader(description="Batch 7", created_by="qc")
        samples = [
            SequenceSample("S1", "1", "blank", "A1", "data", "run_1"),
            SequenceSample("S2", vial="A2"),
        ]
        path = write_sequence_list(tmp_path / "batch" / "seq.csv", samples, header)
        read_header, read_samples = read_sequence_list(path)
        assert read_header == header
        assert read_samples == samples

    def test_section_writes_example_batch(self, dda_store, tmp_path):
        target = tmp_path / "sequence_list.csv"
        text, _ = section_text(dda_store, 'create_sequence_list_file', sequence_file=str(target))
        assert f"Sequence list written to {target}" in text
        header, samples = read_sequence_list(target)
        assert header.description == "Test Sequence List File"
        assert [sample.sample_name for sample in samples] == ["Casper_1", "Wendy_1", "Pete_1", "Jack_1"]
        assert all(sample.comment == "Greyhounds" for sample in samples)
