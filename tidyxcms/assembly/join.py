"""Joining features to their representative peaks.

A feature can list several member peaks from the same sample (shoulder
peaks, split peaks). The grouping engine reports a single value per feature
and sample, taken from the member peak with the largest intensity. This
module expands features into their member peaks, keeps only the peak whose
intensity equals the reported value and resolves exact ties.

Steps
-----
1. Expand: feature <-> peak pairs left-joined to the peak table
2. Disambiguate: attach the reported feature value per (feature, sample)
3. Filter: keep peaks whose intensity matches the reported value within
   floating-point tolerance
4. Tie-break: the grouping engine can report duplicate peaks with identical
   intensity; the first one in row order is kept

Examples
--------
>>> pairs = expand_feature_peaks(features)
>>> matched = join_features_to_peaks(pairs, peaks, feature_values)
>>> matched.duplicated(["feature_index", "sample_id"]).any()
False
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numba import njit

from ..constants import (
    DEFAULT_VALUE_COLUMN,
    FEATURE_INDEX,
    FEATURE_VALUE,
    FEATURE_VALUE_METHOD,
    INTENSITY_TOLERANCE,
    MAX_OUTPUT_ROWS,
    PEAK_INDEX,
    SAMPLE_ID,
)

logger = logging.getLogger(__name__)


@dataclass
class AssemblyParams:
    """Parameters for long-format assembly.

    Intensities are compared with a combined tolerance,
    ``|a - b| <= max(atol, rtol * max(|a|, |b|))``, never exact equality.
    """

    # Representative peak policy of the grouping engine
    method: str = FEATURE_VALUE_METHOD

    # Intensity matching tolerances
    intensity_rtol: float = INTENSITY_TOLERANCE
    intensity_atol: float = INTENSITY_TOLERANCE

    # Completed tables above this many rows trigger LargeOutputWarning
    max_output_rows: int = MAX_OUTPUT_ROWS

    def __post_init__(self):
        if self.intensity_rtol < 0 or self.intensity_atol < 0:
            raise ValueError("Intensity tolerances must be non-negative")
        if self.max_output_rows <= 0:
            raise ValueError(f"max_output_rows must be positive, got {self.max_output_rows}")


# =============================================================================
# Numba-Accelerated Intensity Matching
# =============================================================================

@njit(cache=True)
def intensities_match(
    observed: np.ndarray,
    reference: np.ndarray,
    rtol: float,
    atol: float,
) -> np.ndarray:
    """Element-wise tolerance comparison of peak and feature intensities.

    Parameters
    ----------
    observed : np.ndarray (float64)
        Peak intensities
    reference : np.ndarray (float64)
        Reported feature values, same length as ``observed``
    rtol : float
        Relative tolerance
    atol : float
        Absolute tolerance (floor for small intensities)

    Returns
    -------
    mask : np.ndarray (bool)
        True where the intensities agree; NaN on either side never matches

    Examples
    --------
    >>> intensities_match(np.array([1000.0, 1000.0]), np.array([1000.0 + 1e-9, 999.0]), 1.5e-8, 1.5e-8)
    array([ True, False])
    """
    n = len(observed)
    mask = np.zeros(n, dtype=np.bool_)

    for i in range(n):
        a = observed[i]
        b = reference[i]
        if np.isnan(a) or np.isnan(b):
            continue
        tol = max(atol, rtol * max(abs(a), abs(b)))
        mask[i] = abs(a - b) <= tol

    return mask


# =============================================================================
# Join Steps
# =============================================================================

def attach_feature_values(
    feature_peaks: pd.DataFrame,
    peaks: pd.DataFrame,
    feature_values: pd.DataFrame,
) -> pd.DataFrame:
    """Expand feature <-> peak pairs and attach the reported feature value.

    Parameters
    ----------
    feature_peaks : pd.DataFrame
        Pairs of ``feature_index`` and ``peak_index``
    peaks : pd.DataFrame
        Output of ``extract_peaks``
    feature_values : pd.DataFrame
        Output of ``resolve_feature_values``

    Returns
    -------
    pd.DataFrame
        One row per pair that refers to an existing peak, carrying all peak
        columns and ``into_f``
    """
    expanded = feature_peaks.merge(peaks, on=PEAK_INDEX, how="left")

    dangling = expanded[SAMPLE_ID].isna()
    if dangling.any():
        logger.warning(f"Dropping {dangling.sum():,} feature members without a matching peak")
        expanded = expanded.loc[~dangling]
    expanded = expanded.astype({SAMPLE_ID: np.int64})

    keys = [FEATURE_INDEX, SAMPLE_ID]
    return expanded.merge(feature_values[keys + [FEATURE_VALUE]], on=keys, how="left")


def filter_to_feature_values(
    expanded: pd.DataFrame,
    rtol: float = INTENSITY_TOLERANCE,
    atol: float = INTENSITY_TOLERANCE,
) -> pd.DataFrame:
    """Keep rows whose peak ``into`` matches the reported feature value.

    The reported value is always the representative peak's ``into``, so
    matching on any other column could admit a shoulder peak.
    """
    mask = intensities_match(
        expanded[DEFAULT_VALUE_COLUMN].to_numpy(dtype=np.float64),
        expanded[FEATURE_VALUE].to_numpy(dtype=np.float64),
        rtol,
        atol,
    )
    return expanded.loc[mask].drop(columns=FEATURE_VALUE)


def drop_duplicate_peaks(matched: pd.DataFrame) -> pd.DataFrame:
    """Keep the first row per (feature, sample); later ties are discarded."""
    deduplicated = matched.drop_duplicates(subset=[FEATURE_INDEX, SAMPLE_ID], keep="first")

    n_ties = len(matched) - len(deduplicated)
    if n_ties:
        logger.info(f"Discarded {n_ties:,} duplicate peaks with tied intensity")

    return deduplicated.reset_index(drop=True)


def join_features_to_peaks(
    feature_peaks: pd.DataFrame,
    peaks: pd.DataFrame,
    feature_values: pd.DataFrame,
    params: AssemblyParams | None = None,
) -> pd.DataFrame:
    """Representative peak per (feature, sample) where one was detected.

    Parameters
    ----------
    feature_peaks : pd.DataFrame
        Output of ``expand_feature_peaks``
    peaks : pd.DataFrame
        Output of ``extract_peaks``
    feature_values : pd.DataFrame
        Output of ``resolve_feature_values``
    params : AssemblyParams, optional
        Matching parameters (defaults if omitted)

    Returns
    -------
    pd.DataFrame
        ``feature_index`` plus all peak columns; (feature_index, sample_id)
        is unique
    """
    if params is None:
        params = AssemblyParams()

    expanded = attach_feature_values(feature_peaks, peaks, feature_values)
    matched = filter_to_feature_values(
        expanded, params.intensity_rtol, params.intensity_atol
    )
    logger.debug(
        f"{len(matched):,} of {len(expanded):,} member peaks match the reported feature values"
    )
    return drop_duplicate_peaks(matched)
