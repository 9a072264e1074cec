"""Join-and-complete engine for long-format feature tables.

This module provides:
- Expansion of features into member peaks and matching to reported values
- Tolerance-based intensity matching (Numba)
- Deterministic tie-breaking for duplicate peaks
- Output size guard
- Completion to every feature x sample combination
- Sample metadata join and the peak-level fallback

Examples
--------
>>> from tidyxcms.assembly import AssemblyParams, join_features_to_peaks
>>> params = AssemblyParams(max_output_rows=1_000_000)
>>> matched = join_features_to_peaks(pairs, peaks, feature_values, params)
"""

from .join import (
    AssemblyParams,
    attach_feature_values,
    drop_duplicate_peaks,
    filter_to_feature_values,
    intensities_match,
    join_features_to_peaks,
)

from .complete import (
    add_sample_metadata,
    check_output_size,
    complete_feature_sample_combinations,
    peak_level_table,
)

__all__ = [
    # Join
    "AssemblyParams",
    "attach_feature_values",
    "drop_duplicate_peaks",
    "filter_to_feature_values",
    "intensities_match",
    "join_features_to_peaks",
    # Completion
    "add_sample_metadata",
    "check_output_size",
    "complete_feature_sample_combinations",
    "peak_level_table",
]
