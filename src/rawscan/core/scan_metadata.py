"""
Scan metadata for instrument acquisition data.

This module defines the categorical enums and small value objects that
describe a scan's acquisition: MS order, polarity, analyzer, the precursor
reactions of an MSn scan event and the parsed scan filter.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
import re
from typing import Optional


class MSOrder(Enum):
    """Acquisition stage of a scan."""
    UNKNOWN = 0
    MS1 = 1
    MS2 = 2
    MS3 = 3
    MS4 = 4
    MS5 = 5
    MS6 = 6
    MS7 = 7
    MS8 = 8
    MS9 = 9
    MS10 = 10

    @classmethod
    def from_level(cls, level: Optional[int]) -> 'MSOrder':
        """Map a numeric MS level (1, 2, ...) to an MSOrder."""
        try:
            return cls(int(level)) if level is not None else cls.UNKNOWN
        except ValueError:
            return cls.UNKNOWN

    @property
    def level(self) -> int:
        """Numeric MS level (0 when unknown)."""
        return self.value


class Polarity(Enum):
    """Ion polarity mode."""
    POSITIVE = auto()
    NEGATIVE = auto()
    UNKNOWN = auto()


class SpectrumType(Enum):
    """Spectrum data representation type."""
    PROFILE = auto()
    CENTROID = auto()
    UNKNOWN = auto()


class MassAnalyzer(Enum):
    """Mass analyzer that acquired a scan."""
    FTMS = auto()     # Orbitrap / FT-ICR
    ITMS = auto()     # Ion trap
    TOFMS = auto()    # Time of flight
    TQMS = auto()     # Triple quadrupole
    SQMS = auto()     # Single quadrupole
    ASTMS = auto()    # Asymmetric track
    SECTOR = auto()
    UNKNOWN = auto()


class ActivationType(Enum):
    """Fragmentation/activation method for MS2+ scans."""
    CID = auto()      # Collision-Induced Dissociation
    HCD = auto()      # Higher-energy Collisional Dissociation
    ETD = auto()      # Electron Transfer Dissociation
    ECD = auto()      # Electron Capture Dissociation
    UVPD = auto()     # Ultraviolet Photodissociation
    IRMPD = auto()    # Infrared Multiphoton Dissociation
    PQD = auto()      # Pulsed Q Dissociation
    UNKNOWN = auto()


@dataclass(frozen=True, slots=True)
class Reaction:
    """
    One precursor reaction of an MSn scan event.

    Attributes:
        precursor_mass: m/z of the ion selected for fragmentation.
        collision_energy: Activation energy.
        isolation_width: Width of the isolation window in Da.
        activation_type: Fragmentation method used.
    """
    precursor_mass: float
    collision_energy: float = 0.0
    isolation_width: float = 0.0
    activation_type: ActivationType = ActivationType.UNKNOWN


@dataclass(frozen=True, slots=True)
class ScanEvent:
    """
    Acquisition event of a scan.

    Attributes:
        reactions: Precursor reactions; index 0 is the first stage.
        analyzer: Mass analyzer used for the scan.
    """
    reactions: tuple[Reaction, ...] = ()
    analyzer: MassAnalyzer = MassAnalyzer.UNKNOWN

    def get_reaction(self, index: int) -> Reaction:
        """
        Return the reaction at a given stage.

        Raises:
            IndexError: If the event has no reaction at that stage.
        """
        if index < 0 or index >= len(self.reactions):
            raise IndexError(
                f"Scan event has {len(self.reactions)} reactions, no reaction {index}"
            )
        return self.reactions[index]


# Filter string grammar, e.g. "FTMS + p ESI d Full ms2 445.12@cid35.00 [110.00-905.00]"
_ANALYZER_PAT = re.compile(r'^(FTMS|ITMS|TOFMS|TQMS|SQMS|ASTMS|SECTOR)$')
_IONIZATION_PAT = re.compile(r'^(ESI|NSI|APCI|APPI|EI|CI|FAB|MALDI|FD|TSP|PSI|GD|CARDNSI)$')
_SCAN_MODE_PAT = re.compile(r'^(FULL|SIM|SRM|CRM|Z|Q1MS|Q3MS)$')
_MS_LEVEL_PAT = re.compile(r'^MS(?P<level>\d*)$')
_ACTIVATION_PAT = re.compile(
    r'^(?P<isolation_mz>\d+(?:\.\d+)?)@(?P<activation_type>[A-Z]+)(?P<activation_energy>\d+(?:\.\d+)?)'
)
_MASS_RANGE_PAT = re.compile(r'(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)')

_ACTIVATION_MAP: dict[str, ActivationType] = {
    'CID': ActivationType.CID,
    'HCD': ActivationType.HCD,
    'ETD': ActivationType.ETD,
    'ECD': ActivationType.ECD,
    'UVPD': ActivationType.UVPD,
    'MPD': ActivationType.IRMPD,
    'PQD': ActivationType.PQD,
}


@dataclass(frozen=True, slots=True)
class FilterDescriptor:
    """
    A parsed scan filter.

    Two scans with matching filters were acquired with the same scan
    type and are combined by spectral averaging.

    Attributes:
        text: Original filter text.
        analyzer: Mass analyzer token.
        polarity: Ion polarity.
        peak_mode: Profile (p) or centroid (c) acquisition.
        ionization: Ionization source token, upper case.
        ms_order: MS order from the "ms"/"msN" token.
        scan_mode: Scan mode token (FULL, SIM, ...).
        dependent: True for data-dependent scans ("d" token).
        precursor_masses: Precursor m/z of each activation stage.
        activations: Activation type of each stage.
        mass_ranges: Scan mass ranges from the bracketed section.
    """
    text: str = ''
    analyzer: MassAnalyzer = MassAnalyzer.UNKNOWN
    polarity: Polarity = Polarity.UNKNOWN
    peak_mode: SpectrumType = SpectrumType.UNKNOWN
    ionization: Optional[str] = None
    ms_order: MSOrder = MSOrder.UNKNOWN
    scan_mode: Optional[str] = None
    dependent: bool = False
    precursor_masses: tuple[float, ...] = ()
    activations: tuple[ActivationType, ...] = ()
    mass_ranges: tuple[tuple[float, float], ...] = field(default=())

    def matches(self, other: 'FilterDescriptor', precursor_tolerance: float = 0.01) -> bool:
        """
        Check whether another filter describes the same scan type.

        Args:
            other: Filter to compare against.
            precursor_tolerance: Allowed absolute difference between
                precursor masses of the same stage.
        """
        if (self.ms_order != other.ms_order
                or self.polarity != other.polarity
                or self.analyzer != other.analyzer
                or self.scan_mode != other.scan_mode):
            return False
        if len(self.mass_ranges) != len(other.mass_ranges):
            return False
        for (low_a, high_a), (low_b, high_b) in zip(self.mass_ranges, other.mass_ranges):
            if abs(low_a - low_b) > 1e-6 or abs(high_a - high_b) > 1e-6:
                return False
        if len(self.precursor_masses) != len(other.precursor_masses):
            return False
        return all(
            abs(a - b) <= precursor_tolerance
            for a, b in zip(self.precursor_masses, other.precursor_masses)
        )

    def __str__(self) -> str:
        return self.text


def parse_filter_string(text: str) -> FilterDescriptor:
    """
    Parse a Thermo-style scan filter string.

    Unknown tokens are ignored, so a partial or empty filter yields a
    descriptor with UNKNOWN fields rather than an error.

    Args:
        text: Filter text, e.g. "FTMS + p ESI Full ms [350.00-1800.00]".

    Returns:
        Parsed FilterDescriptor.
    """
    text = text or ''
    head, _, bracket = text.partition('[')
    words = head.upper().split()

    analyzer = MassAnalyzer.UNKNOWN
    polarity = Polarity.UNKNOWN
    peak_mode = SpectrumType.UNKNOWN
    ionization = None
    ms_order = MSOrder.UNKNOWN
    scan_mode = None
    dependent = False
    precursors: list[float] = []
    activations: list[ActivationType] = []

    in_ms_section = False
    for word in words:
        if in_ms_section:
            activation = _ACTIVATION_PAT.match(word)
            if activation is not None:
                precursors.append(float(activation.group('isolation_mz')))
                activations.append(
                    _ACTIVATION_MAP.get(activation.group('activation_type'), ActivationType.UNKNOWN)
                )
            continue
        if _ANALYZER_PAT.match(word):
            analyzer = MassAnalyzer[word]
        elif word == '+':
            polarity = Polarity.POSITIVE
        elif word == '-':
            polarity = Polarity.NEGATIVE
        elif word == 'P':
            peak_mode = SpectrumType.PROFILE
        elif word == 'C':
            peak_mode = SpectrumType.CENTROID
        elif word == 'D':
            dependent = True
        elif _IONIZATION_PAT.match(word):
            ionization = word
        elif _SCAN_MODE_PAT.match(word):
            scan_mode = word
        else:
            level_info = _MS_LEVEL_PAT.match(word)
            if level_info is not None:
                level = level_info.group('level')
                ms_order = MSOrder.from_level(int(level) if level else 1)
                in_ms_section = True

    mass_ranges = tuple(
        (float(low), float(high)) for low, high in _MASS_RANGE_PAT.findall(bracket)
    )

    return FilterDescriptor(
        text=text,
        analyzer=analyzer,
        polarity=polarity,
        peak_mode=peak_mode,
        ionization=ionization,
        ms_order=ms_order,
        scan_mode=scan_mode,
        dependent=dependent,
        precursor_masses=tuple(precursors),
        activations=tuple(activations),
        mass_ranges=mass_ranges,
    )
