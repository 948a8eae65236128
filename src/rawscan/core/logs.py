"""
Trailer and status log structures.

Instruments record named telemetry values alongside acquisition: the
trailer (one entry per scan) and the status log (entries sampled over
retention time). Both are described by a catalog of LogField items and
read back as LogEntry label/value sequences.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

import numpy as np
from numpy.typing import NDArray


class GenericDataType(Enum):
    """Storage type of a log field."""
    INT = auto()
    DOUBLE = auto()
    STRING = auto()
    NULL = auto()


@dataclass(frozen=True, slots=True)
class LogField:
    """
    One field of a trailer or status log catalog.

    Attributes:
        label: Field label as recorded by the instrument, e.g. "Ion Injection Time (ms):".
        data_type: Storage type of the field's values.
        position: Index of the field within its catalog.
    """
    label: str
    data_type: GenericDataType
    position: int

    @property
    def displayable(self) -> bool:
        """False for separator fields (empty label or NULL type)."""
        return bool(self.label.strip()) and self.data_type != GenericDataType.NULL


# Trailer and status catalogs share one structure
TrailerField = LogField
StatusField = LogField


def normalize_label(label: str) -> str:
    """Normalize a log label for lookup: trimmed, lower case, no trailing colon."""
    return label.strip().rstrip(':').strip().lower()


@dataclass(frozen=True, slots=True)
class LogEntry:
    """
    Ordered label/value pairs for one scan or one status sample.

    Values are kept as the strings recorded by the instrument; use
    get_float() for numeric access.
    """
    labels: tuple[str, ...] = ()
    values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if len(self.labels) != len(self.values):
            raise ValueError(
                f"labels and values must have same length, "
                f"got {len(self.labels)} and {len(self.values)}"
            )

    @classmethod
    def from_pairs(cls, pairs) -> 'LogEntry':
        """Build an entry from (label, value) pairs."""
        pairs = list(pairs)
        return cls(
            labels=tuple(str(label) for label, _ in pairs),
            values=tuple(str(value) for _, value in pairs),
        )

    def __len__(self) -> int:
        return len(self.labels)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(zip(self.labels, self.values))

    def get(self, label: str, default: Optional[str] = None) -> Optional[str]:
        """Value for a label; labels compare case-insensitively, ignoring a trailing colon."""
        wanted = normalize_label(label)
        for entry_label, value in zip(self.labels, self.values):
            if normalize_label(entry_label) == wanted:
                return value
        return default

    def find(self, *labels: str) -> Optional[str]:
        """Value of the first of the given labels that is present."""
        for label in labels:
            value = self.get(label)
            if value is not None:
                return value
        return None

    def get_float(self, *labels: str) -> Optional[float]:
        """Numeric value of the first present label, None if absent or not numeric."""
        value = self.find(*labels)
        if value is None:
            return None
        try:
            return float(value.strip())
        except ValueError:
            return None

    def as_dict(self) -> dict[str, str]:
        """Entry as a label -> value dictionary (last duplicate wins)."""
        return dict(zip(self.labels, self.values))


def nearest_preceding_index(times: NDArray[np.float64], time: float) -> Optional[int]:
    """
    Index of the sample at or immediately before a time.

    Times before the first sample resolve to the first sample.

    Args:
        times: Non-decreasing sample times.
        time: Requested time.

    Returns:
        Sample index, or None when there are no samples.
    """
    if len(times) == 0:
        return None
    index = int(np.searchsorted(times, time, side='right')) - 1
    return max(index, 0)
