"""Feature annotation: feature definitions with optional CAMERA-style labels.

Features are numbered 1..F in the row order of the upstream feature table.
That order is the only link to an external annotation table: annotation
rows are matched to features purely by position, so the two tables must have
the same number of rows.

The member-peak lists are expanded into a feature <-> peak pair table, one
row per member peak, which the join stage uses to pull in peak data.
"""

import logging

import numpy as np
import pandas as pd

from ..constants import (
    ADDUCT,
    ANNOTATION_COLUMNS,
    DEFAULT_MS_LEVEL,
    FEATURE_GROUP_LABEL,
    FEATURE_INDEX,
    FEATURE_PREFIX,
    FEATURE_SUMMARY_COLUMNS,
    ISOTOPES,
    MS_LEVEL,
    PCGROUP,
    PEAK_INDEX,
    PEAK_INDICES,
    UNANNOTATED,
    UPSTREAM_FEATURE_GROUP,
)
from ..dataset import PeakAnnotationLike, PeakDatasetLike, flatten_peak_indices
from ..exceptions import FeatureCountMismatch

logger = logging.getLogger(__name__)

# Output order of feature-level columns
FEATURE_LEVEL_COLUMNS = (
    FEATURE_INDEX,
    *(FEATURE_PREFIX + c for c in FEATURE_SUMMARY_COLUMNS),
    MS_LEVEL,
    ISOTOPES,
    ADDUCT,
    PCGROUP,
    FEATURE_GROUP_LABEL,
)


def add_annotations(
    features: pd.DataFrame,
    annotation: PeakAnnotationLike,
) -> pd.DataFrame:
    """Append isotope, adduct and pseudospectrum-group columns by position.

    Parameters
    ----------
    features : pd.DataFrame
        Feature definitions (F rows)
    annotation : PeakAnnotationLike
        Annotation whose peak list has exactly F rows

    Returns
    -------
    pd.DataFrame
        Copy of ``features`` with whichever of ``isotopes``, ``adduct`` and
        ``pcgroup`` the annotation provides. ``pcgroup`` is a nullable
        integer, missing isotope/adduct labels become empty strings.

    Raises
    ------
    FeatureCountMismatch
        If the peak list and the feature table differ in length
    ValueError
        If a pcgroup is missing or not numeric
    """
    peaklist = annotation.peaklist().reset_index(drop=True)
    if len(peaklist) != len(features):
        raise FeatureCountMismatch(len(features), len(peaklist))

    columns = [c for c in ANNOTATION_COLUMNS if c in peaklist.columns]
    annotated = features.reset_index(drop=True).copy()
    if not columns:
        logger.info("Annotation peak list has no isotopes, adduct or pcgroup column")
        return annotated

    for column in columns:
        annotated[column] = peaklist[column].to_numpy()

    for column in (ISOTOPES, ADDUCT):
        if column in annotated.columns:
            annotated[column] = annotated[column].fillna(UNANNOTATED).astype(str)

    if PCGROUP in annotated.columns:
        annotated[PCGROUP] = pd.to_numeric(annotated[PCGROUP]).astype("Int64")
        missing = annotated[PCGROUP].isna()
        if missing.any():
            raise ValueError(
                f"Annotation has {missing.sum():,} features without a pcgroup "
                f"(feature rows {(np.flatnonzero(missing.to_numpy()) + 1).tolist()})"
            )

    logger.debug(f"Added annotation columns {columns} to {len(annotated):,} features")
    return annotated


def annotate_features(
    dataset: PeakDatasetLike,
    annotation: PeakAnnotationLike | None = None,
) -> pd.DataFrame:
    """Feature table with feature index, prefixed summaries and annotations.

    Parameters
    ----------
    dataset : PeakDatasetLike
        Grouped peak-detection result
    annotation : PeakAnnotationLike, optional
        Annotation matched to features by row position

    Returns
    -------
    pd.DataFrame
        One row per feature: ``feature_index`` (1..F), ``f_mzmed`` ...
        ``f_rtmax``, ``ms_level``, optional annotation columns, optional
        ``feature_group_label`` and the original ``peak_indices`` lists

    Raises
    ------
    ValueError
        If any feature has a missing ``ms_level``
    """
    features = dataset.feature_definitions().reset_index(drop=True)

    if annotation is not None:
        features = add_annotations(features, annotation)

    if MS_LEVEL not in features.columns:
        features[MS_LEVEL] = DEFAULT_MS_LEVEL
    missing = features[MS_LEVEL].isna()
    if missing.any():
        raise ValueError(
            f"Feature definitions have {missing.sum():,} features without an ms_level "
            f"(feature rows {(np.flatnonzero(missing.to_numpy()) + 1).tolist()})"
        )
    features[MS_LEVEL] = features[MS_LEVEL].astype(np.int64)

    renames = {c: FEATURE_PREFIX + c for c in FEATURE_SUMMARY_COLUMNS}
    renames[UPSTREAM_FEATURE_GROUP] = FEATURE_GROUP_LABEL
    features = features.rename(columns=renames)

    features.insert(0, FEATURE_INDEX, np.arange(1, len(features) + 1, dtype=np.int64))
    return features


def feature_columns(table: pd.DataFrame) -> list[str]:
    """Feature-level columns present in ``table``, in output order."""
    return [c for c in FEATURE_LEVEL_COLUMNS if c in table.columns]


def expand_feature_peaks(features: pd.DataFrame) -> pd.DataFrame:
    """Unnest member-peak lists into feature <-> peak pairs.

    A feature with K member peaks yields K rows, a feature without member
    peaks yields none.

    Parameters
    ----------
    features : pd.DataFrame
        Output of ``annotate_features``

    Returns
    -------
    pd.DataFrame
        Columns ``feature_index`` and ``peak_index``, ordered by feature and
        then by position in the feature's peak list
    """
    feature_pos, peak_pos = flatten_peak_indices(features[PEAK_INDICES])
    pairs = pd.DataFrame({
        FEATURE_INDEX: features[FEATURE_INDEX].to_numpy(dtype=np.int64)[feature_pos],
        PEAK_INDEX: peak_pos + 1,
    })

    logger.debug(f"Expanded {len(features):,} features into {len(pairs):,} feature-peak pairs")
    return pairs
