"""
Report configuration.

A ReportConfig enumerates every report section toggle together with the
parameters of the sections. It is built once at startup (defaults, then
an optional JSON file, then command-line overrides) and passed to the
report runner; nothing reads process-wide flags.
"""

from collections.abc import Iterable
from dataclasses import dataclass, fields, replace
import json
from pathlib import Path
from typing import Any

from ..core.errors import ConfigError
from ..core.options import AverageOptions, ToleranceUnits
from ..processing.inclusion import MatchPolicy


# Section toggles in report order
SECTION_NAMES: tuple[str, ...] = (
    'get_trailer_extra',
    'get_status_log',
    'get_inclusion_exclusion_list',
    'get_chromatogram',
    'read_scan_information',
    'read_spectrum',
    'average_scans',
    'read_all_scans',
    'calculate_mass_precision',
    'analyze_scans',
    'create_sequence_list_file',
    'read_analog',
    'read_mass_chromatogram',
    'centroid_scan',
)


@dataclass(frozen=True)
class ReportConfig:
    """
    Which report sections run and how.

    Section toggles (all off except read_mass_chromatogram):
        analyze_scans: Check every scan for out-of-order masses.
        average_scans: Average a scan range and an explicit scan list.
        calculate_mass_precision: Mass precision of precision_scan.
        centroid_scan: Centroid centroid_scan_number.
        create_sequence_list_file: Write a sample sequence list to sequence_file.
        get_chromatogram: Base-peak chromatogram over all scans.
        get_inclusion_exclusion_list: Inclusion list matched to MS2 scans.
        get_status_log: Status log fields and one status item per scan.
        get_trailer_extra: Trailer field catalog.
        read_all_scans: Point counts of every scan.
        read_analog: Trace of the analog channel labelled analog_label.
        read_mass_chromatogram: Base peak over [0, high mass].
        read_scan_information: Precursor details of MS2 scans and
            dependent counts of MS1 scans.
        read_spectrum: Peak list of the first scan.
    """
    analyze_scans: bool = False
    average_scans: bool = False
    calculate_mass_precision: bool = False
    centroid_scan: bool = False
    create_sequence_list_file: bool = False
    get_chromatogram: bool = False
    get_inclusion_exclusion_list: bool = False
    get_status_log: bool = False
    get_trailer_extra: bool = False
    read_all_scans: bool = False
    read_analog: bool = False
    read_mass_chromatogram: bool = True
    read_scan_information: bool = False
    read_spectrum: bool = False

    # Section parameters
    average_first_scan: int = 1
    average_last_scan: int = 15
    average_scan_list: tuple[int, ...] = (1, 6, 7, 9, 11, 12, 14)
    average_tolerance_units: ToleranceUnits = ToleranceUnits.PPM
    average_tolerance: float = 5.0
    inclusion_tolerance: float = 1e-5
    inclusion_policy: MatchPolicy = MatchPolicy.FIRST_ASSIGNMENT
    precision_scan: int = 1
    centroid_scan_number: int = 100
    analog_label: str = "Pump_Pressure"
    sequence_file: str = "sequence_list.csv"
    status_item_index: int = 10
    print_data: bool = True

    def __post_init__(self) -> None:
        if self.average_tolerance <= 0:
            raise ConfigError(f"average_tolerance must be > 0, got {self.average_tolerance}")
        if self.inclusion_tolerance < 0:
            raise ConfigError(f"inclusion_tolerance must be >= 0, got {self.inclusion_tolerance}")
        if self.status_item_index < 0:
            raise ConfigError(f"status_item_index must be >= 0, got {self.status_item_index}")

    @property
    def enabled_sections(self) -> list[str]:
        """Names of the enabled sections, in report order."""
        return [name for name in SECTION_NAMES if getattr(self, name)]

    @property
    def average_options(self) -> AverageOptions:
        return AverageOptions(
            tolerance_units=self.average_tolerance_units,
            tolerance_value=self.average_tolerance,
        )

    def with_sections(
        self,
        enable: Iterable[str] = (),
        disable: Iterable[str] = (),
    ) -> 'ReportConfig':
        """
        Return a copy with sections switched on or off.

        Section names may use '-' or '_'. Disabling wins over enabling.

        Raises:
            ConfigError: If a name is not a known section.
        """
        changes = {}
        for names, value in ((enable, True), (disable, False)):
            for name in names:
                key = name.replace('-', '_')
                if key not in SECTION_NAMES:
                    raise ConfigError(
                        f"Unknown report section '{name}'. Expected one of: {', '.join(SECTION_NAMES)}"
                    )
                changes[key] = value
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ReportConfig':
        """
        Build a config from a plain dictionary (e.g. parsed JSON).

        Enum parameters accept their names ("ppm", "last_match").

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = dict(data)
        try:
            if 'average_scan_list' in values:
                values['average_scan_list'] = tuple(int(scan) for scan in values['average_scan_list'])
            if isinstance(values.get('average_tolerance_units'), str):
                values['average_tolerance_units'] = ToleranceUnits[values['average_tolerance_units'].upper()]
            if isinstance(values.get('inclusion_policy'), str):
                values['inclusion_policy'] = MatchPolicy[values['inclusion_policy'].upper()]
        except KeyError as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid average_scan_list: {e}") from e

        for name in SECTION_NAMES:
            if name in values and not isinstance(values[name], bool):
                raise ConfigError(f"Section toggle '{name}' must be true or false")
        try:
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

    @classmethod
    def from_json(cls, path: Path | str) -> 'ReportConfig':
        """
        Load a config from a JSON object file.

        Raises:
            ConfigError: If the file cannot be read or is invalid.
        """
        path = Path(path)
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a JSON object")
        return cls.from_dict(data)
