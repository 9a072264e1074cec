"""Pytest configuration for tidyxcms tests.

This module provides common fixtures for all tests. Every fixture builds a
fresh in-memory dataset, so tests never share state.

The grouped dataset has 3 samples, 8 peaks and 5 features:

- feature 1: peaks 1 (sample 1) and 2 (sample 2)
- feature 2: no member peaks (undetected everywhere)
- feature 3: peaks 3 and 4, both sample 1 with identical into = 1000.0
- feature 4: peaks 5 (into 500) and 6 (shoulder, into 300), both sample 2
- feature 5: peak 7 (sample 3)

Peak 8 (sample 3) belongs to no feature.
"""

import numpy as np
import pandas as pd
import pytest

from tidyxcms.dataset import PeakAnnotation, PeakDataset


@pytest.fixture
def file_paths():
    """Raw-data files, one per sample."""
    return [
        "/data/faahKO/cdf/KO/ko15.CDF",
        "/data/faahKO/cdf/KO/ko16.CDF",
        "/data/faahKO/cdf/WT/wt15.CDF",
    ]


@pytest.fixture
def peak_matrix():
    """xcms-style peak matrix with 8 peaks."""
    mz = np.array([200.1, 200.1, 300.2, 300.2, 400.3, 400.3, 500.4, 600.5])
    rt = np.array([2500.0, 2502.0, 3000.0, 3004.0, 3500.0, 3520.0, 4000.0, 4200.0])
    into = np.array([1000.0, 2000.0, 1000.0, 1000.0, 500.0, 300.0, 800.0, 50.0])
    return pd.DataFrame({
        "mz": mz,
        "mzmin": mz - 0.01,
        "mzmax": mz + 0.01,
        "rt": rt,
        "rtmin": rt - 10.0,
        "rtmax": rt + 10.0,
        "into": into,
        "intb": into * 0.9,
        "maxo": into / 10.0,
        "sn": [12.0, 25.0, 9.0, 9.0, np.nan, 4.0, 15.0, 3.0],
        "sample": [1, 2, 1, 1, 2, 2, 3, 3],
    })


@pytest.fixture
def peak_metadata():
    """Extra per-peak metadata, row-aligned with the peak matrix."""
    return pd.DataFrame({
        "ms_level": [1] * 8,
        "is_filled": [False] * 8,
    })


@pytest.fixture
def sample_metadata():
    """Caller-supplied sample metadata, one row per file."""
    return pd.DataFrame({
        "sample_name": ["ko15", "ko16", "wt15"],
        "sample_group": ["KO", "KO", "WT"],
    })


@pytest.fixture
def feature_definitions():
    """Feature table with summaries and 1-based member peak lists."""
    mzmed = np.array([200.1, 250.0, 300.2, 400.3, 500.4])
    rtmed = np.array([2501.0, 2800.0, 3002.0, 3510.0, 4000.0])
    return pd.DataFrame({
        "mzmed": mzmed,
        "mzmin": mzmed - 0.005,
        "mzmax": mzmed + 0.005,
        "rtmed": rtmed,
        "rtmin": rtmed - 5.0,
        "rtmax": rtmed + 5.0,
        "ms_level": [1, 1, 1, 1, 1],
        "peak_indices": [[1, 2], [], [3, 4], [5, 6], [7]],
    })


@pytest.fixture
def raw_dataset(peak_matrix, peak_metadata, file_paths, sample_metadata):
    """Peaks detected, no feature grouping."""
    return PeakDataset.from_peaks(
        peak_matrix, file_paths, peak_data=peak_metadata, samples=sample_metadata
    )


@pytest.fixture
def grouped_dataset(raw_dataset, feature_definitions):
    """Peaks grouped into 5 features."""
    return raw_dataset.with_features(feature_definitions)


@pytest.fixture
def camera_peaklist():
    """CAMERA-style peak list, one row per feature."""
    return pd.DataFrame({
        "mz": [200.1, 250.0, 300.2, 400.3, 500.4],
        "isotopes": ["[1][M]+", "", "[1][M+1]+", None, ""],
        "adduct": ["[M+H]+ 199.093", "", "", "[M+Na]+ 377.31", None],
        "pcgroup": ["1", "2", "1", "3", "4"],
    })


@pytest.fixture
def annotation(camera_peaklist):
    """Annotation matching the grouped dataset's 5 features."""
    return PeakAnnotation(camera_peaklist)
