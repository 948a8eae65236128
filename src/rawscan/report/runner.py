"""
Acquisition report driver.

run_report() opens a data file, writes the header sections and every
enabled report section to a text stream, and closes the file. Fatal
store conditions (open failure, store error, acquisition in progress,
missing MS channel) print one diagnostic line and stop the run.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from ..core.errors import (
    AcquisitionInProgressError,
    ChannelNotFoundError,
    FailureLog,
    OpenError,
    StoreError,
)
from ..io.base import DeviceKind, InstrumentDataStore
from ..io.registry import StoreRegistry
from ..utils.resources import process_memory_kb
from .config import ReportConfig
from .sections import (
    SECTIONS,
    write_file_information,
    write_filter_information,
    write_system_information,
)


logger = logging.getLogger(__name__)


def check_store(store: InstrumentDataStore) -> None:
    """
    Verify an open store can be reported on and select its MS channel.

    Raises:
        StoreError: If the store reports an internal error.
        AcquisitionInProgressError: If the file is still being written.
        ChannelNotFoundError: If the store has no MS device.
    """
    if store.has_error:
        raise StoreError(f"Error opening ({store.error_message}) - {store.path}")
    if store.is_acquiring:
        raise AcquisitionInProgressError(f"RAW file still being acquired - {store.path}")
    store.select_channel(DeviceKind.MS, 1)


def write_report(
    store: InstrumentDataStore,
    config: ReportConfig,
    out: TextIO,
    failures: Optional[FailureLog] = None,
) -> None:
    """
    Write the header sections and every enabled section for an open store.

    Raises:
        StoreError, AcquisitionInProgressError, ChannelNotFoundError:
            From check_store().
    """
    if failures is None:
        failures = FailureLog()

    check_store(store)
    print(f"The file has data from {store.instrument_count()} instruments", file=out)
    write_system_information(out)
    write_file_information(store, out)
    write_filter_information(store, out, failures)

    for name in config.enabled_sections:
        logger.info(f"Running report section {name}")
        SECTIONS[name](store, config, out, failures)


def run_report(
    path: Path | str,
    config: Optional[ReportConfig] = None,
    out: Optional[TextIO] = None,
    store: Optional[InstrumentDataStore] = None,
) -> int:
    """
    Produce the acquisition report for one data file.

    Args:
        path: Data file to report on.
        config: Enabled sections and their parameters (defaults if None).
        out: Output stream (stdout if None).
        store: Unopened store to use instead of detecting one from path.

    Returns:
        Exit status: 0 on success, 1 when the run stopped early.

    Example:
        >>> status = run_report("sample.mzML", ReportConfig(analyze_scans=True))
    """
    config = config if config is not None else ReportConfig()
    out = out if out is not None else sys.stdout
    failures = FailureLog()
    memory_before = process_memory_kb()
    status = 0

    try:
        if store is None:
            store = StoreRegistry.get_store(path)
        store.open()
    except OpenError as e:
        print(f"Unable to access the data file - {e}", file=out)
        status = 1
    else:
        try:
            write_report(store, config, out, failures)
            print(file=out)
            print(f"Closing {path}", file=out)
        except (StoreError, AcquisitionInProgressError, ChannelNotFoundError) as e:
            print(str(e), file=out)
            status = 1
        except Exception as e:
            logger.debug("Report aborted", exc_info=True)
            print(f"Error accessing data store! - {e}", file=out)
            status = 1
        finally:
            store.close()

    if failures.count:
        print(f"{failures.count} scans could not be read; first: {failures.first_message}", file=out)

    memory_after = process_memory_kb()
    if memory_before is not None and memory_after is not None:
        print(file=out)
        print("Memory Usage:", file=out)
        print(
            f"   Before {memory_before} kb, After {memory_after} kb, "
            f"Extra {memory_after - memory_before} kb",
            file=out,
        )
    return status
