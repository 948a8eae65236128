"""
Tests for mass-precision estimation.
"""

import math

import pytest

from rawscan.core import IonTimeNotFoundError, LogEntry, MassAnalyzer
from rawscan.processing import (
    PrecisionEstimator,
    ResolutionScaledPrecision,
    find_ion_time,
)


class TestFindIonTime:
    """Ion time lookup across label variants."""

    @pytest.mark.parametrize("label", [
        "Ion Injection Time (ms):",
        "Ion Injection Time:",
        "Fill Time (ms):",
    ])
    def test_known_labels(self, label):
        assert find_ion_time(LogEntry.from_pairs([(label, "12.5")])) == pytest.approx(12.5)

    def test_missing_ion_time_raises(self):
        with pytest.raises(IonTimeNotFoundError):
            find_ion_time(LogEntry.from_pairs([("Charge State:", "2")]))


class TestResolutionScaledPrecision:
    """Peak width and counting-statistics scaling."""

    @pytest.fixture
    def model(self):
        return ResolutionScaledPrecision()

    def test_ftms_width_grows_with_mass(self, model):
        low = model.peak_width(200.0, MassAnalyzer.FTMS, 60000.0)
        high = model.peak_width(800.0, MassAnalyzer.FTMS, 60000.0)
        assert low == pytest.approx(200.0 / 60000.0)
        assert high / low == pytest.approx(8.0)

    def test_tof_width_is_proportional_to_mass(self, model):
        low = model.peak_width(200.0, MassAnalyzer.TOFMS, 20000.0)
        high = model.peak_width(800.0, MassAnalyzer.TOFMS, 20000.0)
        assert high / low == pytest.approx(4.0)

    def test_itms_width_is_constant(self, model):
        assert model.peak_width(300.0, MassAnalyzer.ITMS, 0.0) == 0.5
        assert model.peak_width(1500.0, MassAnalyzer.ITMS, 0.0) == 0.5

    def test_unknown_resolution_uses_default(self, model):
        assert model.peak_width(200.0, MassAnalyzer.FTMS, 0.0) == pytest.approx(200.0 / 60000.0)

    def test_more_ions_give_better_precision(self, model):
        weak = model.precision(500.0, 1000.0, MassAnalyzer.FTMS, 1000.0, 60000.0)
        strong = model.precision(500.0, 100000.0, MassAnalyzer.FTMS, 1000.0, 60000.0)
        assert weak / strong == pytest.approx(10.0)

    def test_ion_count_floor(self, model):
        tiny = model.precision(500.0, 1e-3, MassAnalyzer.FTMS, 1.0, 60000.0)
        one_ion = model.precision(500.0, 1000.0, MassAnalyzer.FTMS, 1.0, 60000.0)
        assert tiny == pytest.approx(one_ion)


class TestPrecisionEstimator:
    """Per-peak estimates for a scan."""

    def test_one_estimate_per_centroid(self, dda_store):
        with dda_store:
            peaks = PrecisionEstimator().estimate_for_scan(dda_store, 2)
        assert [peak.mass for peak in peaks] == pytest.approx([150.1, 250.2, 350.3])

    def test_estimate_values(self, dda_store):
        with dda_store:
            (first, *_) = PrecisionEstimator().estimate_for_scan(dda_store, 2)
        # 10 counts over 20 ms is below one ion, so N = 1
        resolution = 60000.0 * math.sqrt(200.0 / 150.1)
        sigma = (150.1 / resolution) / (2.0 * math.sqrt(2.0 * math.log(2.0)))
        assert first.accuracy_mmu == pytest.approx(sigma * 1000.0)
        assert first.accuracy_ppm == pytest.approx(sigma / 150.1 * 1e6)

    def test_scan_without_centroid_data(self, profile_record):
        peaks = PrecisionEstimator().estimate(profile_record, MassAnalyzer.FTMS, 10.0, 60000.0)
        assert peaks == []

    def test_scan_without_ion_time_raises(self, dda_store):
        with dda_store:
            with pytest.raises(IonTimeNotFoundError):
                PrecisionEstimator().estimate_for_scan(dda_store, 1)
