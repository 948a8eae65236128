"""
Inclusion/exclusion list items.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class InclusionItem:
    """
    One target of an instrument method's inclusion or exclusion list.

    Attributes:
        descriptor: Compound name or other free-text descriptor.
        mass: Target mass.
        threshold: Acquisition parameter of the target; an intensity
            threshold or isolation window depending on the instrument.
        scan_number: MS2 scan that acquired the target, 0 when unassigned.
        is_exclusion: True for exclusion list targets.
    """
    descriptor: str
    mass: float
    threshold: float = 0.0
    scan_number: int = 0
    is_exclusion: bool = False

    @property
    def assigned(self) -> bool:
        """Whether a scan has been matched to this target."""
        return self.scan_number != 0


def inclusion_sort_key(item: InclusionItem) -> tuple[str, float, float, int]:
    """
    Sort key ordering items by descriptor, mass, threshold, then scan number.

    String comparison is by code point, so descriptors order ordinally.
    """
    return (item.descriptor, item.mass, item.threshold, item.scan_number)
