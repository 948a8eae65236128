"""
Pytest configuration and fixtures for rawscan tests.

These fixtures build small acquisitions in memory with InMemoryDataStore,
so every processing algorithm and report section can be exercised
without data files.
"""

import pytest
import numpy as np

from rawscan.core import (
    GenericDataType,
    LogEntry,
    LogField,
    MassAnalyzer,
    MSOrder,
    Reaction,
    ScanRecord,
)
from rawscan.io import AnalogChannel, InMemoryDataStore


MS1_FILTER = "FTMS + p ESI Full ms [350.00-1800.00]"
MS2_FILTER = "FTMS + c ESI d Full ms2 500.10@hcd30.00 [110.00-1510.00]"
MS2_FILTER_B = "FTMS + c ESI d Full ms2 620.20@hcd30.00 [110.00-1510.00]"

MASS_LIST_METHOD = "\n".join([
    "Method Summary",
    "Scan Event 1: Full MS",
    "Mass List Table",
    "CompoundName|Mass|Threshold|Reserved",
    "CompoundA|500.1|1000|0",
    "CompoundB|620.2|500|0",
    "End Mass List Table",
    "Tune File: default",
])


def build_record(
    scan_number: int = 1,
    retention_time: float = 0.1,
    masses=(),
    intensities=(),
    ms_order: MSOrder = MSOrder.MS1,
    filter_text: str = MS1_FILTER,
    centroid=None,
    reactions=(),
    analyzer: MassAnalyzer = MassAnalyzer.FTMS,
) -> ScanRecord:
    """ScanRecord with profile data, or centroid data when centroid=(masses, intensities)."""
    kwargs = {}
    if centroid is not None:
        centroid_masses, centroid_intensities = centroid
        kwargs = dict(
            has_centroid=True,
            centroid_masses=np.asarray(centroid_masses, dtype=np.float64),
            centroid_intensities=np.asarray(centroid_intensities, dtype=np.float64),
            centroid_charges=np.zeros(len(centroid_masses), dtype=np.int32),
        )
    return ScanRecord(
        scan_number=scan_number,
        retention_time=retention_time,
        ms_order=ms_order,
        filter_text=filter_text,
        profile_masses=np.asarray(masses, dtype=np.float64),
        profile_intensities=np.asarray(intensities, dtype=np.float64),
        reactions=tuple(reactions),
        analyzer=analyzer,
        **kwargs,
    )


# =============================================================================
# Record Fixtures
# =============================================================================

@pytest.fixture
def make_record():
    """Factory for ScanRecords."""
    return build_record


@pytest.fixture
def profile_record():
    """Profile scan with two Gaussian-like peaks around 400.2 and 500.3."""
    masses = np.array([400.0, 400.1, 400.2, 400.3, 400.4, 500.1, 500.2, 500.3, 500.4, 500.5])
    intensities = np.array([0.0, 100.0, 400.0, 100.0, 0.0, 0.0, 50.0, 300.0, 50.0, 0.0])
    return build_record(masses=masses, intensities=intensities)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def chromatogram_store():
    """Three MS1 scans at 0.10, 0.20, 0.30 min with base peaks 10, 50, 20."""
    records = [
        build_record(1, 0.10, [100.0, 200.0, 300.0], [5.0, 10.0, 1.0]),
        build_record(2, 0.20, [100.0, 200.0, 300.0], [50.0, 3.0, 2.0]),
        build_record(3, 0.30, [100.0, 200.0, 300.0], [20.0, 4.0, 1.0]),
    ]
    return InMemoryDataStore.from_records(records)


@pytest.fixture
def dda_records():
    """
    Data-dependent run: MS1 survey scans, each followed by MS2 scans.

    Scans: 1 MS1, 2 MS2 (500.10002), 3 MS2 (700.0), 4 MS1, 5 MS2 (620.2).
    """
    ms1_masses = [500.1, 620.2, 700.0]
    return [
        build_record(1, 0.10, ms1_masses, [1000.0, 500.0, 200.0]),
        build_record(
            2, 0.11, ms_order=MSOrder.MS2, filter_text=MS2_FILTER,
            centroid=([150.1, 250.2, 350.3], [10.0, 30.0, 20.0]),
            reactions=[Reaction(500.10002, collision_energy=30.0, isolation_width=1.6)],
        ),
        build_record(
            3, 0.12, ms_order=MSOrder.MS2, filter_text="FTMS + c ESI d Full ms2 700.00@hcd30.00 [110.00-1510.00]",
            centroid=([160.0, 260.0], [5.0, 15.0]),
            reactions=[Reaction(700.0, collision_energy=30.0, isolation_width=1.6)],
        ),
        build_record(4, 0.20, ms1_masses, [800.0, 900.0, 100.0]),
        build_record(
            5, 0.21, ms_order=MSOrder.MS2, filter_text=MS2_FILTER_B,
            centroid=([170.0, 270.0], [8.0, 4.0]),
            reactions=[Reaction(620.2, collision_energy=35.0, isolation_width=2.0)],
        ),
    ]


@pytest.fixture
def status_fields():
    """Status log catalog with a separator field at position 1."""
    return [
        LogField("Source Voltage (kV):", GenericDataType.DOUBLE, 0),
        LogField("", GenericDataType.NULL, 1),
        LogField("Vacuum (Torr):", GenericDataType.DOUBLE, 2),
    ]


@pytest.fixture
def dda_store(dda_records, status_fields):
    """In-memory DDA store with trailers, status log, method text and an analog channel."""
    trailers = {
        2: LogEntry.from_pairs([
            ("Ion Injection Time (ms):", "20.0"),
            ("Monoisotopic M/Z:", "500.0995"),
            ("Master Scan Number:", "1"),
        ]),
        3: LogEntry.from_pairs([
            ("Ion Injection Time (ms):", "35.0"),
            ("Master Scan Number:", "1"),
        ]),
        5: LogEntry.from_pairs([
            ("Ion Injection Time (ms):", "50.0"),
            ("Monoisotopic M/Z:", "620.1990"),
            ("Master Index:", "4"),
        ]),
    }
    trailer_fields = [
        LogField("Ion Injection Time (ms):", GenericDataType.DOUBLE, 0),
        LogField("Monoisotopic M/Z:", GenericDataType.DOUBLE, 1),
        LogField("Master Scan Number:", GenericDataType.INT, 2),
    ]
    status_log = [
        (0.0, LogEntry.from_pairs([("Source Voltage (kV):", "3.5"), ("", ""), ("Vacuum (Torr):", "1e-9")])),
        (0.15, LogEntry.from_pairs([("Source Voltage (kV):", "3.6"), ("", ""), ("Vacuum (Torr):", "2e-9")])),
    ]
    analog = AnalogChannel(
        label="Pump_Pressure",
        times=np.array([0.0, 0.1, 0.2, 0.3]),
        intensities=np.array([250.0, 251.5, 249.0, 250.5]),
    )
    return InMemoryDataStore.from_records(
        dda_records,
        trailers=trailers,
        trailer_fields=trailer_fields,
        status_fields=status_fields,
        status_log=status_log,
        methods=[MASS_LIST_METHOD],
        analog_channels=[analog],
        metadata={'instrument_model': 'Orbitrap Test', 'sample_name': 'QC_1'},
        mass_resolution=60000.0,
        name="dda.raw",
    )
