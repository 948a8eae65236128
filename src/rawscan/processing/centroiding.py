"""
Profile to centroid reduction.

The Centroider turns a profile scan into one carrying a centroid peak
list. Peak detection is delegated to a CentroidStrategy so that other
algorithms can be substituted; LocalMaximaStrategy is the default.
"""

from abc import ABC, abstractmethod
import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from ..core.scan_record import ScanRecord


logger = logging.getLogger(__name__)


class CentroidStrategy(ABC):
    """
    Peak detection over a profile trace.

    Implementations must be deterministic, return no more peaks than
    profile samples, and return strictly increasing masses.
    """

    @abstractmethod
    def pick(
        self,
        masses: NDArray[np.float64],
        intensities: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """
        Detect peaks in a profile trace.

        Args:
            masses: Profile masses.
            intensities: Profile intensities aligned with masses.

        Returns:
            Tuple of (centroid masses, centroid intensities).
        """
        ...


class LocalMaximaStrategy(CentroidStrategy):
    """
    Local-maxima peak picking with a noise floor.

    An apex is a sample strictly above its left neighbour, not below its
    right neighbour and strictly above the noise floor. The centroid
    mass is the intensity-weighted mean of the apex and its immediate
    neighbours; the centroid intensity is the apex intensity.

    Args:
        relative_noise: Noise floor as a fraction of the largest intensity.
        absolute_noise: Noise floor as an absolute intensity.
    """

    def __init__(self, relative_noise: float = 0.0, absolute_noise: float = 0.0):
        if relative_noise < 0 or absolute_noise < 0:
            raise ValueError("Noise levels must be >= 0")
        self.relative_noise = relative_noise
        self.absolute_noise = absolute_noise

    def noise_floor(self, intensities: NDArray[np.float64]) -> float:
        if len(intensities) == 0:
            return 0.0
        return max(self.absolute_noise, self.relative_noise * float(intensities.max()), 0.0)

    def pick(
        self,
        masses: NDArray[np.float64],
        intensities: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        masses = np.asarray(masses, dtype=np.float64)
        intensities = np.asarray(intensities, dtype=np.float64)
        if len(masses) == 0:
            return np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64)

        order = np.argsort(masses, kind='mergesort')
        masses = masses[order]
        intensities = intensities[order]

        # Pad with -inf on the left and right so edge samples can be apexes
        padded = np.concatenate(([-np.inf], intensities, [-np.inf]))
        left = padded[:-2]
        right = padded[2:]
        is_apex = (
            (intensities > left)
            & (intensities >= right)
            & (intensities > self.noise_floor(intensities))
        )
        apexes = np.flatnonzero(is_apex)

        centroid_masses = np.empty(len(apexes), dtype=np.float64)
        for k, apex in enumerate(apexes):
            lo = max(apex - 1, 0)
            hi = min(apex + 2, len(masses))
            weights = np.clip(intensities[lo:hi], 0.0, None)
            if weights.sum() > 0:
                centroid_masses[k] = np.dot(masses[lo:hi], weights) / weights.sum()
            else:
                centroid_masses[k] = masses[apex]
        centroid_intensities = intensities[apexes]

        # Drop centroids that do not increase in mass
        keep = np.ones(len(centroid_masses), dtype=bool)
        last = -np.inf
        for k, mass in enumerate(centroid_masses):
            if mass > last:
                last = mass
            else:
                keep[k] = False
        return centroid_masses[keep], centroid_intensities[keep]


class Centroider:
    """
    Converts profile scans to centroided scans.

    Example:
        >>> centroider = Centroider(LocalMaximaStrategy(relative_noise=0.01))
        >>> centroided = centroider.to_centroid(record)
        >>> centroided.has_centroid
        True
    """

    def __init__(self, strategy: Optional[CentroidStrategy] = None):
        self.strategy = strategy if strategy is not None else LocalMaximaStrategy()

    def to_centroid(self, record: ScanRecord) -> ScanRecord:
        """
        Centroid a profile scan.

        Profile arrays are kept; centroid arrays are filled with zero
        charges. A scan that already has centroid data is returned
        unchanged.
        """
        if record.has_centroid:
            return record

        masses, intensities = self.strategy.pick(record.profile_masses, record.profile_intensities)
        logger.debug(
            f"Scan {record.scan_number}: {record.n_profile_points} profile points "
            f"-> {len(masses)} centroids"
        )
        return record.with_centroid(masses, intensities)


def to_centroid(record: ScanRecord, strategy: Optional[CentroidStrategy] = None) -> ScanRecord:
    """Centroid a scan with the given (default: local maxima) strategy."""
    return Centroider(strategy).to_centroid(record)
