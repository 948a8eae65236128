"""
Acquisition report for instrument data files.

- ReportConfig: Section toggles and parameters
- run_report(): Open a file and write the report
- SECTIONS: Toggle name to section function, in report order
- write_sequence_list(), read_sequence_list(): Sequence list CSV files
"""

from .config import SECTION_NAMES, ReportConfig
from .runner import check_store, run_report, write_report
from .sections import SECTIONS
from .sequence import SequenceHeader, SequenceSample, read_sequence_list, write_sequence_list

__all__ = [
    "ReportConfig",
    "SECTION_NAMES",
    "SECTIONS",
    "run_report",
    "write_report",
    "check_store",
    "SequenceSample",
    "SequenceHeader",
    "write_sequence_list",
    "read_sequence_list",
]
