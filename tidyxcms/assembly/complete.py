"""Completing the long table to every feature x sample combination.

After the join, a (feature, sample) pair only has a row if the feature was
detected in that sample. Completion crosses the feature-level attributes
with the sample identities so every pair appears exactly once; peak columns
are NA where nothing was detected. Sample metadata is joined on last so each
row carries it regardless of detection.
"""

from __future__ import annotations

import logging
import warnings

import numpy as np
import pandas as pd

from ..constants import (
    FEATURE_INDEX,
    FILE_NAME,
    FILE_PATH,
    MAX_OUTPUT_ROWS,
    PEAK_INDEX,
    SAMPLE_ID,
    SAMPLE_IDENTITY_COLUMNS,
    SAMPLE_METADATA_SUFFIX,
)
from ..exceptions import LargeOutputWarning
from ..tables.features import feature_columns

logger = logging.getLogger(__name__)


def check_output_size(
    n_features: int,
    n_samples: int,
    max_rows: int = MAX_OUTPUT_ROWS,
) -> int:
    """Warn when the completed table would exceed ``max_rows`` rows.

    Parameters
    ----------
    n_features : int
        Distinct features entering completion
    n_samples : int
        Distinct samples entering completion
    max_rows : int, default=10,000,000
        Row count above which LargeOutputWarning is issued

    Returns
    -------
    int
        Expected number of rows (never aborts)

    Notes
    -----
    Callers pass the full feature and sample counts, not the distinct
    features and samples left after the join. Completion emits every
    feature x sample pair, including features without any matched peak, so
    the full product is the exact size of the completed table.
    """
    expected_rows = n_features * n_samples

    if expected_rows > max_rows:
        warnings.warn(
            f"Creating large table with {expected_rows:,} rows "
            f"({n_features:,} features x {n_samples:,} samples). "
            "Consider filtering features first.",
            LargeOutputWarning,
            stacklevel=3,
        )

    return expected_rows


def complete_feature_sample_combinations(
    matched: pd.DataFrame,
    features: pd.DataFrame,
    samples: pd.DataFrame,
) -> pd.DataFrame:
    """Right-pad the joined table to the full feature x sample cross product.

    Parameters
    ----------
    matched : pd.DataFrame
        Output of ``join_features_to_peaks``
    features : pd.DataFrame
        Output of ``annotate_features`` (all F features)
    samples : pd.DataFrame
        Output of ``sample_table`` (all N samples)

    Returns
    -------
    pd.DataFrame
        F x N rows ordered by feature and sample: feature-level columns,
        sample identity columns, then peak columns (NA where undetected).
        ``peak_index`` is a nullable integer.
    """
    nesting = feature_columns(features)
    feature_grid = features[nesting].drop_duplicates()
    sample_grid = samples[list(SAMPLE_IDENTITY_COLUMNS)].drop_duplicates()

    grid = feature_grid.merge(sample_grid, how="cross")

    # feature attributes come from the grid, not from the peak side
    redundant = [c for c in nesting if c != FEATURE_INDEX] + [FILE_PATH, FILE_NAME]
    peak_side = matched.drop(columns=[c for c in redundant if c in matched.columns])

    out = grid.merge(peak_side, on=[FEATURE_INDEX, SAMPLE_ID], how="left")
    if PEAK_INDEX in out.columns:
        out[PEAK_INDEX] = out[PEAK_INDEX].astype("Int64")

    logger.debug(
        f"Completed {len(matched):,} detected pairs to {len(out):,} rows "
        f"({len(feature_grid):,} features x {len(sample_grid):,} samples)"
    )
    return out.sort_values([FEATURE_INDEX, SAMPLE_ID], kind="stable").reset_index(drop=True)


def add_sample_metadata(data: pd.DataFrame, sample_metadata: pd.DataFrame) -> pd.DataFrame:
    """Join sample metadata onto every row, keyed by sample order.

    The i-th metadata row describes sample i + 1. Metadata columns come
    first; a metadata column named like an output column is kept with a
    ``_sample`` suffix.
    """
    metadata = sample_metadata.reset_index(drop=True).copy()
    metadata[SAMPLE_ID] = np.arange(1, len(metadata) + 1, dtype=np.int64)

    return metadata.merge(
        data,
        on=SAMPLE_ID,
        how="right",
        suffixes=(SAMPLE_METADATA_SUFFIX, ""),
    )


def peak_level_table(peaks: pd.DataFrame, sample_metadata: pd.DataFrame) -> pd.DataFrame:
    """One row per peak with sample metadata, for datasets without features."""
    out = add_sample_metadata(peaks, sample_metadata)
    return out.sort_values(PEAK_INDEX, kind="stable").reset_index(drop=True)
