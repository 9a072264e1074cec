"""Normalized input tables for long-format assembly.

This module provides:
- Peak extraction (peak matrix + peak metadata, indexed, with file names)
- Feature annotation (feature index, summaries, CAMERA-style annotations)
- Feature-peak pair expansion
- Feature value resolution (feature x sample matrix in long form)
"""

from .peaks import (
    chrom_peaks_table,
    extract_peaks,
    sample_table,
)

from .features import (
    add_annotations,
    annotate_features,
    expand_feature_peaks,
    feature_columns,
)

from .feature_values import (
    resolve_feature_values,
)

__all__ = [
    # Peaks
    'chrom_peaks_table',
    'extract_peaks',
    'sample_table',

    # Features
    'add_annotations',
    'annotate_features',
    'expand_feature_peaks',
    'feature_columns',

    # Feature values
    'resolve_feature_values',
]
