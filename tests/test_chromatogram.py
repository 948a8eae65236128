"""
Tests for chromatogram trace extraction.
"""

import pytest
from numpy.testing import assert_array_almost_equal

from rawscan.core import ChromatogramPoint, FailureLog, NoDataError, TraceType
from rawscan.io import DeviceKind, InMemoryDataStore
from rawscan.processing import chromatogram_frame, extract, trace_intensity


class TestTraceIntensity:
    """Per-scan trace values."""

    def test_tic_sums_all_peaks(self, make_record):
        record = make_record(masses=[100.0, 200.0], intensities=[3.0, 4.0])
        assert trace_intensity(record, TraceType.TIC) == pytest.approx(7.0)

    def test_mass_range_window_is_inclusive(self, make_record):
        record = make_record(masses=[100.0, 200.0, 300.0], intensities=[1.0, 2.0, 4.0])
        assert trace_intensity(record, TraceType.MASS_RANGE, (100.0, 200.0)) == pytest.approx(3.0)

    def test_base_peak_of_empty_window_is_zero(self, make_record):
        record = make_record(masses=[100.0], intensities=[1.0])
        assert trace_intensity(record, TraceType.BASE_PEAK, (500.0, 600.0)) == 0.0


class TestExtract:
    """Trace extraction over a scan range."""

    def test_base_peak_trace(self, chromatogram_store):
        with chromatogram_store:
            points = extract(chromatogram_store, TraceType.BASE_PEAK, None, 1, 3)
        assert points == [
            ChromatogramPoint(0.10, 10.0),
            ChromatogramPoint(0.20, 50.0),
            ChromatogramPoint(0.30, 20.0),
        ]

    def test_tic_trace(self, chromatogram_store):
        with chromatogram_store:
            points = extract(chromatogram_store, TraceType.TIC, None, 1, 3)
        assert [point.intensity for point in points] == pytest.approx([16.0, 55.0, 25.0])

    def test_mass_range_trace(self, chromatogram_store):
        with chromatogram_store:
            points = extract(chromatogram_store, TraceType.MASS_RANGE, (150.0, 250.0), 1, 3)
        assert [point.intensity for point in points] == pytest.approx([10.0, 3.0, 4.0])

    def test_mass_range_requires_window(self, chromatogram_store):
        with chromatogram_store:
            with pytest.raises(ValueError):
                extract(chromatogram_store, TraceType.MASS_RANGE, None, 1, 3)

    def test_unreadable_scans_are_omitted(self, make_record):
        store = InMemoryDataStore.from_records([
            make_record(1, 0.1, [100.0], [5.0]),
            make_record(3, 0.3, [100.0], [7.0]),
        ])
        failures = FailureLog()
        with store:
            points = extract(store, TraceType.TIC, None, 1, 3, failures)
        assert [point.time for point in points] == pytest.approx([0.1, 0.3])
        assert failures.scan_numbers == [2]

    def test_points_follow_scan_order(self, dda_store):
        with dda_store:
            points = extract(dda_store, TraceType.TIC, None, dda_store.first_scan, dda_store.last_scan)
        times = [point.time for point in points]
        assert times == sorted(times)
        assert len(points) == 5


class TestAnalogTraces:
    """Device-recorded traces of analog channels."""

    def test_analog_channel_trace(self, dda_store):
        with dda_store:
            dda_store.select_channel(DeviceKind.ANALOG, 1)
            assert dda_store.channel_labels() == ["Pump_Pressure"]
            points = extract(dda_store, TraceType.ANALOG_1, None, 1, dda_store.last_scan)
        assert len(points) == 4
        assert points[1] == ChromatogramPoint(0.1, 251.5)

    def test_unrecorded_analog_channel_raises(self, dda_store):
        with dda_store:
            dda_store.select_channel(DeviceKind.ANALOG, 1)
            with pytest.raises(NoDataError):
                extract(dda_store, TraceType.ANALOG_2, None, 1, 4)

    def test_scan_trace_on_analog_device_raises(self, dda_store):
        with dda_store:
            dda_store.select_channel(DeviceKind.ANALOG, 1)
            with pytest.raises(NoDataError):
                extract(dda_store, TraceType.TIC, None, 1, 4)

    def test_analog_trace_on_ms_device_raises(self, dda_store):
        with dda_store:
            with pytest.raises(NoDataError):
                extract(dda_store, TraceType.ANALOG_1, None, 1, 5)


class TestChromatogramFrame:
    """DataFrame view of a trace."""

    def test_columns_and_values(self, chromatogram_store):
        with chromatogram_store:
            frame = chromatogram_frame(extract(chromatogram_store, TraceType.BASE_PEAK, None, 1, 3))
        assert list(frame.columns) == ['time', 'intensity']
        assert_array_almost_equal(frame['intensity'].to_numpy(), [10.0, 50.0, 20.0])

    def test_empty_trace(self):
        frame = chromatogram_frame([])
        assert len(frame) == 0
        assert list(frame.columns) == ['time', 'intensity']
