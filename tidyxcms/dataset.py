"""In-memory peak-detection results and CAMERA-style annotations.

The assembly pipeline never talks to a peak-detection engine directly. It
consumes any object that exposes the accessors of ``PeakDatasetLike``
(peak matrix, peak metadata, feature definitions, feature values, file names
and sample metadata) and, optionally, an annotation object exposing
``peaklist()``. Both protocols are runtime-checkable so the pipeline can
reject foreign objects up front.

``PeakDataset`` is the concrete container shipped with the library. It
covers both shapes produced by the upstream engine:

- raw: peaks detected, no cross-sample correspondence (empty feature table)
- grouped: peaks grouped into features, each feature listing its member peaks

Examples
--------
>>> raw = PeakDataset.from_peaks(peaks, files=["/data/KO01.CDF", "/data/KO02.CDF"])
>>> raw.has_features
False
>>> grouped = raw.with_features(feature_definitions)
>>> grouped.feature_values().shape
(n_features, 2)
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, Protocol, Sequence, runtime_checkable

import numpy as np
import pandas as pd
from numba import njit

from .constants import (
    DEFAULT_VALUE_COLUMN,
    FEATURE_SUMMARY_COLUMNS,
    FEATURE_VALUE_METHOD,
    PEAK_INDICES,
    REQUIRED_PEAK_COLUMNS,
    UPSTREAM_FEATURE_GROUP,
    UPSTREAM_SAMPLE,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Protocols
# =============================================================================

@runtime_checkable
class PeakDatasetLike(Protocol):
    """Accessors the assembly pipeline needs from a peak-detection result."""

    def chrom_peaks(self) -> pd.DataFrame:
        """Peak matrix, one row per chromatographic peak, with a 1-based ``sample`` column."""
        ...

    def chrom_peak_data(self) -> pd.DataFrame:
        """Extra peak metadata, row-aligned with ``chrom_peaks()``."""
        ...

    def feature_definitions(self) -> pd.DataFrame:
        """Feature table with summaries and a ``peak_indices`` list column (may be empty)."""
        ...

    def feature_values(
        self,
        value: str = DEFAULT_VALUE_COLUMN,
        method: str = FEATURE_VALUE_METHOD,
    ) -> pd.DataFrame:
        """Feature x sample intensity matrix, columns in file order."""
        ...

    def file_names(self) -> list[str]:
        """Raw-data file paths, one per sample."""
        ...

    def sample_data(self) -> pd.DataFrame:
        """Sample metadata, one row per file in file order."""
        ...


@runtime_checkable
class PeakAnnotationLike(Protocol):
    """Annotation result whose peak list rows correspond to features by position."""

    def peaklist(self) -> pd.DataFrame:
        """Annotated feature list with any of isotopes, adduct, pcgroup."""
        ...


# =============================================================================
# Numba-Accelerated Representative Peak Selection
# =============================================================================

@njit(cache=True)
def select_representative_peaks(
    feature_pos: np.ndarray,
    sample_pos: np.ndarray,
    ranking: np.ndarray,
    n_features: int,
    n_samples: int,
) -> np.ndarray:
    """Pick the highest-ranked member peak for every (feature, sample) cell.

    Parameters
    ----------
    feature_pos : np.ndarray (int64)
        0-based feature position of each feature-peak pair
    sample_pos : np.ndarray (int64)
        0-based sample position of each pair's peak, -1 for unknown peaks
    ranking : np.ndarray (float64)
        Intensity used to rank peaks within a cell (NaN is never selected)
    n_features : int
        Number of features
    n_samples : int
        Number of samples

    Returns
    -------
    chosen : np.ndarray (int64), shape (n_features, n_samples)
        Pair position of the selected peak, -1 where the feature has no peak

    Notes
    -----
    Ties keep the pair seen first, so the selection only depends on the
    order of the feature table and of each feature's peak list.
    """
    chosen = np.full((n_features, n_samples), -1, dtype=np.int64)
    best = np.zeros((n_features, n_samples), dtype=np.float64)

    for i in range(len(feature_pos)):
        f = feature_pos[i]
        s = sample_pos[i]
        r = ranking[i]
        if s < 0 or np.isnan(r):
            continue
        if chosen[f, s] == -1 or r > best[f, s]:
            chosen[f, s] = i
            best[f, s] = r

    return chosen


def flatten_peak_indices(peak_lists: pd.Series) -> tuple[np.ndarray, np.ndarray]:
    """Flatten a column of peak-index lists into parallel position arrays.

    Parameters
    ----------
    peak_lists : pd.Series
        One list of 1-based peak indices per feature

    Returns
    -------
    feature_pos : np.ndarray (int64)
        0-based feature position, repeated once per member peak
    peak_pos : np.ndarray (int64)
        0-based peak position of each member peak
    """
    arrays = [np.asarray(p, dtype=np.int64).ravel() for p in peak_lists]
    lengths = np.array([len(a) for a in arrays], dtype=np.int64)
    feature_pos = np.repeat(np.arange(len(arrays), dtype=np.int64), lengths)
    if lengths.sum() == 0:
        return feature_pos, np.empty(0, dtype=np.int64)
    peak_pos = np.concatenate(arrays) - 1
    return feature_pos, peak_pos


# =============================================================================
# Peak Dataset
# =============================================================================

@dataclass
class PeakDataset:
    """Peak-detection result held in memory.

    Attributes
    ----------
    peaks : pd.DataFrame
        Peak matrix (mz, mzmin, mzmax, rt, rtmin, rtmax, into, optionally
        intb, maxo, sn) with the 1-based owning ``sample``
    files : Sequence[str]
        Raw-data file path per sample, in sample order
    peak_data : pd.DataFrame, optional
        Extra peak metadata (e.g. ms_level, is_filled), row-aligned with ``peaks``
    features : pd.DataFrame, optional
        Feature definitions: mzmed, mzmin, mzmax, rtmed, rtmin, rtmax,
        optional ms_level and feature_group, and ``peak_indices`` (1-based)
    samples : pd.DataFrame, optional
        Sample metadata, one row per file
    feature_value_matrix : pd.DataFrame, optional
        Feature x sample "into" values reported by the grouping engine. When
        absent, ``feature_values()`` derives them with the "maxint" policy.
    """

    peaks: pd.DataFrame
    files: Sequence[str]
    peak_data: Optional[pd.DataFrame] = None
    features: Optional[pd.DataFrame] = None
    samples: Optional[pd.DataFrame] = None
    feature_value_matrix: Optional[pd.DataFrame] = None

    def __post_init__(self):
        self.files = [str(f) for f in self.files]
        n_peaks = len(self.peaks)
        n_files = len(self.files)

        missing = [c for c in REQUIRED_PEAK_COLUMNS if c not in self.peaks.columns]
        if missing:
            raise ValueError(f"Peak matrix is missing columns: {missing}")

        if self.peak_data is not None and len(self.peak_data) != n_peaks:
            raise ValueError(
                f"Peak metadata has {len(self.peak_data)} rows but peak matrix has {n_peaks}"
            )

        if self.samples is not None and len(self.samples) != n_files:
            raise ValueError(
                f"Sample metadata has {len(self.samples)} rows but there are {n_files} files"
            )

        if n_peaks > 0:
            sample = self.peaks[UPSTREAM_SAMPLE].to_numpy()
            if sample.min() < 1 or sample.max() > n_files:
                raise ValueError(
                    f"Peak sample indices must lie in 1..{n_files}, "
                    f"got {sample.min()}..{sample.max()}"
                )

        if self.features is not None and len(self.features) > 0:
            required = list(FEATURE_SUMMARY_COLUMNS) + [PEAK_INDICES]
            missing = [c for c in required if c not in self.features.columns]
            if missing:
                raise ValueError(f"Feature definitions are missing columns: {missing}")

        if self.feature_value_matrix is not None:
            expected = (len(self.feature_definitions()), n_files)
            if self.feature_value_matrix.shape != expected:
                raise ValueError(
                    f"Feature value matrix has shape {self.feature_value_matrix.shape}, "
                    f"expected {expected}"
                )

    @classmethod
    def from_peaks(
        cls,
        peaks: pd.DataFrame,
        files: Sequence[str],
        peak_data: Optional[pd.DataFrame] = None,
        samples: Optional[pd.DataFrame] = None,
    ) -> 'PeakDataset':
        """Create a raw dataset: peaks detected, no feature grouping."""
        return cls(peaks=peaks, files=files, peak_data=peak_data, samples=samples)

    def with_features(
        self,
        features: pd.DataFrame,
        feature_value_matrix: Optional[pd.DataFrame] = None,
    ) -> 'PeakDataset':
        """Return the grouped dataset for the given feature definitions."""
        return dataclasses.replace(
            self, features=features, feature_value_matrix=feature_value_matrix
        )

    def with_feature_groups(self, labels: Sequence[str]) -> 'PeakDataset':
        """Attach labels from a separate feature-grouping pass, one per feature."""
        if not self.has_features:
            raise ValueError("No features defined; group peaks into features first.")
        labels = list(labels)
        features = self.feature_definitions()
        if len(labels) != len(features):
            raise ValueError(
                f"Got {len(labels)} feature group labels for {len(features)} features"
            )
        features[UPSTREAM_FEATURE_GROUP] = labels
        return dataclasses.replace(self, features=features)

    @property
    def has_features(self) -> bool:
        return self.features is not None and len(self.features) > 0

    # -------------------------------------------------------------------------
    # Accessors (always return copies)
    # -------------------------------------------------------------------------

    def chrom_peaks(self) -> pd.DataFrame:
        return self.peaks.reset_index(drop=True).copy()

    def chrom_peak_data(self) -> pd.DataFrame:
        if self.peak_data is None:
            return pd.DataFrame(index=pd.RangeIndex(len(self.peaks)))
        return self.peak_data.reset_index(drop=True).copy()

    def feature_definitions(self) -> pd.DataFrame:
        if self.features is None:
            return pd.DataFrame(columns=list(FEATURE_SUMMARY_COLUMNS) + [PEAK_INDICES])
        return self.features.reset_index(drop=True).copy()

    def file_names(self) -> list[str]:
        return list(self.files)

    def sample_data(self) -> pd.DataFrame:
        if self.samples is None:
            return pd.DataFrame(index=pd.RangeIndex(len(self.files)))
        return self.samples.reset_index(drop=True).copy()

    def feature_values(
        self,
        value: str = DEFAULT_VALUE_COLUMN,
        method: str = FEATURE_VALUE_METHOD,
    ) -> pd.DataFrame:
        """Feature x sample matrix of representative peak values.

        Parameters
        ----------
        value : str, default="into"
            Peak column to report for the representative peak
        method : str, default="maxint"
            Selection policy; only "maxint" (member peak with the largest
            ``into`` per feature and sample) is supported

        Returns
        -------
        pd.DataFrame
            One row per feature, one column per file (basename), NaN where a
            feature has no peak in a sample
        """
        if method != FEATURE_VALUE_METHOD:
            raise ValueError(f"Unknown feature value method: {method}")

        names = [PurePath(f).name for f in self.files]

        if self.feature_value_matrix is not None:
            # supplied matrices always hold "into" values
            if value != DEFAULT_VALUE_COLUMN:
                raise ValueError(
                    f"Supplied feature value matrix holds '{DEFAULT_VALUE_COLUMN}' values, "
                    f"cannot report '{value}'"
                )
            matrix = self.feature_value_matrix.reset_index(drop=True).copy()
            matrix.columns = names
            return matrix

        features = self.feature_definitions()
        n_features = len(features)
        if n_features == 0:
            return pd.DataFrame(columns=names, dtype=np.float64)

        peaks = self.chrom_peaks()
        if value not in peaks.columns:
            raise ValueError(f"Peak matrix has no column '{value}'")

        feature_pos, peak_pos = flatten_peak_indices(features[PEAK_INDICES])
        valid = (peak_pos >= 0) & (peak_pos < len(peaks))
        if not valid.all():
            logger.warning(
                f"{(~valid).sum():,} feature member indices do not refer to a peak"
            )

        sample_pos = np.full(len(peak_pos), -1, dtype=np.int64)
        ranking = np.full(len(peak_pos), np.nan, dtype=np.float64)
        sample_pos[valid] = peaks[UPSTREAM_SAMPLE].to_numpy(dtype=np.int64)[peak_pos[valid]] - 1
        ranking[valid] = peaks[DEFAULT_VALUE_COLUMN].to_numpy(dtype=np.float64)[peak_pos[valid]]

        chosen = select_representative_peaks(
            feature_pos, sample_pos, ranking, n_features, len(self.files)
        )

        values = np.full(chosen.shape, np.nan, dtype=np.float64)
        hit = chosen >= 0
        values[hit] = peaks[value].to_numpy(dtype=np.float64)[peak_pos[chosen[hit]]]

        return pd.DataFrame(values, columns=names)


# =============================================================================
# Annotation
# =============================================================================

@dataclass
class PeakAnnotation:
    """CAMERA-style annotation, one row per feature in feature-table order.

    Attributes
    ----------
    table : pd.DataFrame
        Annotated peak list with any of ``isotopes``, ``adduct`` and
        ``pcgroup`` (other columns are ignored by the pipeline)
    """

    table: pd.DataFrame

    def peaklist(self) -> pd.DataFrame:
        return self.table.reset_index(drop=True).copy()

    def __len__(self) -> int:
        return len(self.table)
