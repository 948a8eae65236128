"""
Inclusion/exclusion list reconstruction and precursor matching.

Instrument methods may embed a mass list table, for example::

    Mass List Table
    CompoundName|Mass|Threshold|Reserved
    CompoundA|500.1|1000|0
    End Mass List Table

parse_inclusion_list() turns such tables into InclusionItem targets and
match_precursors() assigns each target the MS2 scan whose first-stage
precursor mass falls within a relative tolerance of the target mass.
"""

from collections.abc import Iterable, Sequence
from dataclasses import replace
from enum import Enum, auto
import logging
from typing import Optional, TYPE_CHECKING

from ..core.errors import FailureLog, ScanReadError
from ..core.inclusion import InclusionItem
from ..core.scan_metadata import MSOrder
from ..io.base import DeviceKind

if TYPE_CHECKING:
    from ..io.base import InstrumentDataStore


logger = logging.getLogger(__name__)

START_MARKER = "Mass List Table"
END_MARKER = "End Mass List Table"
FIELD_SEPARATOR = "|"
HEADER_TOKEN = "CompoundName"


class MatchPolicy(Enum):
    """How repeated precursor matches of an inclusion target are resolved."""
    FIRST_ASSIGNMENT = auto()  # only unassigned targets are eligible
    LAST_MATCH = auto()        # every match overwrites the assigned scan


def _table_lines(
    method_text: str,
    start_marker: str,
    end_marker: str,
) -> list[tuple[str, bool]]:
    """Lines between start and end marker lines, each with its table's exclusion flag."""
    lines = []
    save_line = False
    is_exclusion = False
    for line in method_text.split("\n"):
        line = line.rstrip("\r")
        if end_marker in line:
            save_line = False
            continue
        if start_marker in line:
            save_line = True
            is_exclusion = "Exclusion" in line
            continue
        if save_line:
            lines.append((line, is_exclusion))
    return lines


def parse_inclusion_list(
    method_texts: Iterable[str],
    start_marker: str = START_MARKER,
    end_marker: str = END_MARKER,
    separator: str = FIELD_SEPARATOR,
    header_token: str = HEADER_TOKEN,
) -> list[InclusionItem]:
    """
    Parse inclusion/exclusion targets from instrument method texts.

    Lines between a line containing start_marker and a line containing
    end_marker are read; marker lines themselves are not. The header
    line (containing header_token) is skipped, as is every line that does
    not split into exactly 4 fields: descriptor, mass, threshold and a
    reserved field.

    Args:
        method_texts: Instrument method text blobs.
        start_marker: Text flagging the start of a table.
        end_marker: Text flagging the end of a table.
        separator: Field separator.
        header_token: Text identifying the header line.

    Returns:
        Unassigned targets (scan_number 0) in method order.
    """
    items = []
    for method_text in method_texts:
        if start_marker not in method_text:
            continue
        for line, is_exclusion in _table_lines(method_text, start_marker, end_marker):
            if header_token in line:
                continue
            fields = line.split(separator)
            if len(fields) != 4:
                continue
            try:
                mass = float(fields[1])
                threshold = float(fields[2])
            except ValueError:
                logger.warning(f"Skipping mass list line with non-numeric values: {line!r}")
                continue
            items.append(InclusionItem(
                descriptor=fields[0].strip(),
                mass=mass,
                threshold=threshold,
                is_exclusion=is_exclusion,
            ))

    logger.debug(f"Parsed {len(items)} mass list targets")
    return items


def match_precursors(
    store: 'InstrumentDataStore',
    items: Sequence[InclusionItem],
    relative_tolerance: float,
    first_scan: int,
    last_scan: int,
    policy: MatchPolicy = MatchPolicy.FIRST_ASSIGNMENT,
    failures: Optional[FailureLog] = None,
) -> tuple[InclusionItem, ...]:
    """
    Assign MS2 scans to inclusion targets by precursor mass.

    For each MS2 scan the first-stage precursor mass p is read and the
    first eligible target (in list order) with a mass inside
    [p - p * relative_tolerance, p + p * relative_tolerance] is assigned
    the scan. At most one target is assigned per scan.

    Args:
        store: Open data store with the MS channel selected.
        items: Targets, typically from parse_inclusion_list().
        relative_tolerance: Tolerance as a fraction of the precursor mass.
        first_scan: First scan number.
        last_scan: Last scan number (inclusive).
        policy: FIRST_ASSIGNMENT keeps a target's first scan;
            LAST_MATCH lets later scans overwrite it.
        failures: Log receiving per-scan faults.

    Returns:
        The targets with scan numbers assigned, in the input order.
    """
    if failures is None:
        failures = FailureLog()

    matched = list(items)
    if not matched:
        return ()

    for scan_number in range(first_scan, last_scan + 1):
        try:
            if store.filter_for(scan_number).ms_order != MSOrder.MS2:
                continue
            precursor_mass = store.scan_event_for(scan_number).get_reaction(0).precursor_mass
        except (ScanReadError, KeyError, IndexError, ValueError, OSError) as e:
            failures.record(scan_number, e)
            continue

        tolerance = precursor_mass * relative_tolerance
        low, high = precursor_mass - tolerance, precursor_mass + tolerance
        for position, item in enumerate(matched):
            if policy == MatchPolicy.FIRST_ASSIGNMENT and item.assigned:
                continue
            if low <= item.mass <= high:
                matched[position] = replace(item, scan_number=scan_number)
                logger.debug(f"Scan {scan_number} matches target {item.descriptor} ({item.mass})")
                break

    return tuple(matched)


class InclusionListReconciler:
    """
    Reconstructs a store's inclusion/exclusion list and matches it to scans.

    Example:
        >>> reconciler = InclusionListReconciler()
        >>> items = reconciler.reconcile(store, relative_tolerance=1e-5)
    """

    def __init__(self, policy: MatchPolicy = MatchPolicy.FIRST_ASSIGNMENT):
        self.policy = policy

    def reconcile(
        self,
        store: 'InstrumentDataStore',
        relative_tolerance: float,
        failures: Optional[FailureLog] = None,
    ) -> tuple[InclusionItem, ...]:
        """Parse the store's method texts and match over its full scan range."""
        store.select_channel(DeviceKind.MS, 1)
        method_texts = [store.method_text(i) for i in range(store.method_count())]
        items = parse_inclusion_list(method_texts)
        return match_precursors(
            store,
            items,
            relative_tolerance,
            store.first_scan,
            store.last_scan,
            policy=self.policy,
            failures=failures,
        )
