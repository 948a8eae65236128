"""
Utility functions for rawscan.

Resources:
- get_system_info(): Describe the host for report headers
- process_memory_kb(): Memory used by the current process
"""

from .resources import SystemInfo, get_system_info, process_memory_kb

__all__ = [
    "SystemInfo",
    "get_system_info",
    "process_memory_kb",
]
