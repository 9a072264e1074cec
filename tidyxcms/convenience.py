"""Convenience entry points for long-format peak tables.

This module wires the extraction, annotation, join and completion stages
into a single call. Use it when you want the finished table; use the
stage functions in ``tidyxcms.tables`` and ``tidyxcms.assembly`` when you
need the intermediate tables.

The result has one row per feature per sample. Missing values (NA) in the
peak columns mean the feature was not detected in that sample. Without
feature grouping, the result falls back to one row per peak.

Examples
--------
>>> # Grouped dataset, no annotation
>>> table = tidy_peaklist(dataset)

>>> # With CAMERA-style annotations
>>> table = tidy_peaklist(dataset, PeakAnnotation(camera_peaklist))
>>> table.loc[table["adduct"] != "", ["feature_index", "f_mzmed", "adduct", "pcgroup"]]

>>> # Count detected features per sample
>>> table.groupby("file_name")["into"].count()
"""

import logging
import warnings
from typing import Optional

import pandas as pd

from .assembly.complete import (
    add_sample_metadata,
    check_output_size,
    complete_feature_sample_combinations,
    peak_level_table,
)
from .assembly.join import AssemblyParams, join_features_to_peaks
from .exceptions import NoFeaturesWarning
from .tables.feature_values import resolve_feature_values
from .tables.features import annotate_features, expand_feature_peaks
from .tables.peaks import extract_peaks, sample_table
from .validation import validate_inputs

logger = logging.getLogger(__name__)


# =============================================================================
# Long-Format Assembly
# =============================================================================

def tidy_peaklist(
    dataset,
    annotation=None,
    params: Optional[AssemblyParams] = None,
) -> pd.DataFrame:
    """Create a long-format peak table with optional annotations.

    Parameters
    ----------
    dataset : PeakDatasetLike
        Peak-detection result, raw (no features) or grouped
    annotation : PeakAnnotationLike, optional
        CAMERA-style annotation with one row per feature, matched by
        position. When omitted, no isotopes/adduct/pcgroup columns appear.
    params : AssemblyParams, optional
        Matching tolerances, feature value policy and size limit

    Returns
    -------
    pd.DataFrame
        Grouped dataset: one row per (feature, sample) with sample metadata
        columns, ``sample_id``, feature-level columns (``feature_index``,
        ``f_mzmed`` ... ``f_rtmax``, ``ms_level``, optional ``isotopes``,
        ``adduct``, ``pcgroup``, ``feature_group_label``), ``file_path``,
        ``file_name`` and the representative peak's columns.
        Raw dataset: one row per peak with sample metadata.

    Raises
    ------
    InvalidInputType, EmptyPeakSet, InvalidAnnotationType, FeatureCountMismatch
        Before any table is built

    Warns
    -----
    NoFeaturesWarning
        The dataset has no features; the result is peak-level only
    LargeOutputWarning
        The completed table exceeds ``params.max_output_rows`` rows

    Notes
    -----
    - The grouping engine reports one value per feature and sample from the
      member peak with the largest intensity ("maxint"). Only that peak is
      kept; peaks are matched to the reported value within floating-point
      tolerance.
    - Duplicate peaks with identical intensity are resolved by keeping the
      first one in peak table order.
    """
    if params is None:
        params = AssemblyParams()

    validate_inputs(dataset, annotation)

    peaks = extract_peaks(dataset)
    sample_metadata = dataset.sample_data()

    if len(dataset.feature_definitions()) == 0:
        warnings.warn(
            "No features defined (feature grouping not run). Returning peak-level data only.",
            NoFeaturesWarning,
            stacklevel=2,
        )
        return peak_level_table(peaks, sample_metadata)

    features = annotate_features(dataset, annotation)
    feature_values = resolve_feature_values(dataset, method=params.method)

    matched = join_features_to_peaks(
        expand_feature_peaks(features), peaks, feature_values, params
    )

    samples = sample_table(dataset)
    check_output_size(len(features), len(samples), params.max_output_rows)

    out = complete_feature_sample_combinations(matched, features, samples)
    out = add_sample_metadata(out, sample_metadata)

    logger.info(
        f"Assembled {len(out):,} rows ({len(features):,} features x {len(samples):,} samples, "
        f"{len(matched):,} detected)"
    )
    return out


assemble_long_table = tidy_peaklist


def camera_peaklist_long(dataset, annotation=None) -> pd.DataFrame:
    """Deprecated name of ``tidy_peaklist``."""
    warnings.warn(
        "camera_peaklist_long() is deprecated; use tidy_peaklist() instead.",
        DeprecationWarning,
        stacklevel=2,
    )
    return tidy_peaklist(dataset, annotation)
