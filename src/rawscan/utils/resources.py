"""
System and process resource utilities for rawscan.

This module provides utilities for:
- Describing the host for report headers
- Measuring the memory used by the current process
"""

import logging
import os
import platform
import socket
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemInfo:
    """Host description printed at the top of a report."""
    os_version: str
    is_64bit: bool
    computer: str
    cores: int
    date: datetime


def get_system_info() -> SystemInfo:
    """Describe the host: OS, word size, name, core count and current date."""
    return SystemInfo(
        os_version=platform.platform(),
        is_64bit=platform.architecture()[0] == '64bit',
        computer=socket.gethostname(),
        cores=os.cpu_count() or 1,
        date=datetime.now(),
    )


def process_memory_kb(status_path: Path | str = '/proc/self/status') -> Optional[int]:
    """
    Private memory of the current process in kB.

    Reads VmRSS from the process status file; falls back to the peak
    resident set size reported by the resource module.

    Returns:
        Memory in kB, or None when it cannot be determined.
    """
    status_path = Path(status_path)
    if status_path.exists():
        try:
            with open(status_path) as f:
                for line in f:
                    if line.startswith('VmRSS:'):
                        return int(line.split()[1])
        except (OSError, ValueError, IndexError) as e:
            logger.debug(f"Could not read {status_path}: {e}")

    try:
        import resource
    except ImportError:
        return None
    # ru_maxrss is in kB on Linux and bytes on macOS
    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return usage // 1024 if platform.system() == 'Darwin' else usage
