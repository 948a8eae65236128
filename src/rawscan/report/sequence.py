"""
Sequence list files.

A sequence list describes the samples of an acquisition batch. Lists are
stored as CSV: '#'-prefixed header lines ("# key: value") followed by
one row per sample.
"""

from dataclasses import asdict, dataclass, fields
import logging
from pathlib import Path

import pandas as pd


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SequenceSample:
    """One sample row of a sequence list."""
    sample_name: str
    sample_id: str = ''
    comment: str = ''
    vial: str = ''
    path: str = ''
    raw_file_name: str = ''


@dataclass(frozen=True)
class SequenceHeader:
    """File header of a sequence list."""
    description: str = ''
    created_by: str = ''
    created_logon: str = ''


# Example batch written by the sequence-list report section
EXAMPLE_HEADER = SequenceHeader(
    description="Test Sequence List File",
    created_by="me",
    created_logon="you",
)
EXAMPLE_SAMPLES = (
    SequenceSample("Casper_1", "Casper", "Greyhounds", "1", "data", "run_1"),
    SequenceSample("Wendy_1", "Wendy", "Greyhounds", "2", "data", "run_2"),
    SequenceSample("Pete_1", "Pete", "Greyhounds", "3", "data", "run_3"),
    SequenceSample("Jack_1", "Jack", "Greyhounds", "4", "data", "run_4"),
)

_COLUMNS = [f.name for f in fields(SequenceSample)]


def write_sequence_list(
    path: Path | str,
    samples: list[SequenceSample] | tuple[SequenceSample, ...],
    header: SequenceHeader = SequenceHeader(),
) -> Path:
    """
    Write a sequence list file.

    Args:
        path: Output CSV file; parent directories are created.
        samples: Sample rows in batch order.
        header: File header.

    Returns:
        Path to the written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame([asdict(sample) for sample in samples], columns=_COLUMNS)
    with open(path, 'w', newline='') as f:
        for key, value in asdict(header).items():
            f.write(f"# {key}: {value}\n")
        df.to_csv(f, index=False)

    logger.info(f"Wrote sequence list with {len(df)} samples to {path}")
    return path


def read_sequence_list(path: Path | str) -> tuple[SequenceHeader, list[SequenceSample]]:
    """Read a sequence list written by write_sequence_list()."""
    path = Path(path)
    header_values = {}
    with open(path, 'r') as f:
        for line in f:
            if not line.startswith('#'):
                break
            key, _, value = line[1:].strip().partition(':')
            header_values[key.strip()] = value.strip()

    df = pd.read_csv(path, comment='#', dtype=str, keep_default_na=False)
    samples = [SequenceSample(**row) for row in df[_COLUMNS].to_dict(orient='records')]
    known = {f.name for f in fields(SequenceHeader)}
    header = SequenceHeader(**{k: v for k, v in header_values.items() if k in known})
    return header, samples
