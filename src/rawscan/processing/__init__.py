"""
Analytical algorithms over instrument data stores.

This module provides:

- validate(), validate_range(): Mass-order (monotonicity) validation
- average_by_range(), average_by_list(): Spectral averaging
- Centroider, LocalMaximaStrategy: Profile to centroid reduction
- extract(), chromatogram_frame(): Chromatogram traces
- parse_inclusion_list(), match_precursors(), InclusionListReconciler:
  Inclusion/exclusion list reconstruction
- lookup_by_time(), lookup_by_scan(): Trailer and status log lookups
- PrecisionEstimator, ResolutionScaledPrecision: Mass precision
"""

from .averaging import average_by_list, average_by_range, average_records, matching_scans, merge_peaks
from .centroiding import CentroidStrategy, Centroider, LocalMaximaStrategy, to_centroid
from .chromatogram import chromatogram_frame, extract, trace_intensity
from .inclusion import (
    InclusionListReconciler,
    MatchPolicy,
    match_precursors,
    parse_inclusion_list,
)
from .precision import (
    PeakAccuracy,
    PrecisionEstimator,
    PrecisionStrategy,
    ResolutionScaledPrecision,
    find_ion_time,
)
from .trailer import (
    TrailerSummary,
    displayable,
    field_catalog,
    lookup_by_scan,
    lookup_by_time,
    scan_trailer_summary,
    status_catalog,
    trailer_entry,
)
from .validation import ArrayValidation, ValidationResult, validate, validate_masses, validate_range

__all__ = [
    # Validation
    "validate",
    "validate_masses",
    "validate_range",
    "ValidationResult",
    "ArrayValidation",
    # Averaging
    "average_by_range",
    "average_by_list",
    "average_records",
    "matching_scans",
    "merge_peaks",
    # Centroiding
    "Centroider",
    "CentroidStrategy",
    "LocalMaximaStrategy",
    "to_centroid",
    # Chromatograms
    "extract",
    "trace_intensity",
    "chromatogram_frame",
    # Inclusion lists
    "parse_inclusion_list",
    "match_precursors",
    "MatchPolicy",
    "InclusionListReconciler",
    # Trailer and status logs
    "field_catalog",
    "status_catalog",
    "displayable",
    "lookup_by_time",
    "lookup_by_scan",
    "trailer_entry",
    "scan_trailer_summary",
    "TrailerSummary",
    # Precision
    "PrecisionEstimator",
    "PrecisionStrategy",
    "ResolutionScaledPrecision",
    "PeakAccuracy",
    "find_ion_time",
]
