"""Peak extraction: the upstream peak matrix as a flat, indexed table.

Every peak gets a dense 1-based ``peak_index`` in matrix row order, which is
the index feature definitions use to refer to their member peaks. The owning
sample is resolved to its raw-data file path and basename.
"""

import logging
from pathlib import PurePath

import numpy as np
import pandas as pd

from ..constants import (
    FILE_NAME,
    FILE_PATH,
    PEAK_INDEX,
    SAMPLE_ID,
    SAMPLE_IDENTITY_COLUMNS,
    UPSTREAM_SAMPLE,
)
from ..dataset import PeakDatasetLike

logger = logging.getLogger(__name__)


def chrom_peaks_table(dataset: PeakDatasetLike) -> pd.DataFrame:
    """Combine the peak matrix with its peak metadata side table.

    Parameters
    ----------
    dataset : PeakDatasetLike
        Peak-detection result

    Returns
    -------
    pd.DataFrame
        One row per peak: all peak matrix columns followed by all peak
        metadata columns (bound by row position)
    """
    peaks = dataset.chrom_peaks().reset_index(drop=True)
    peak_data = dataset.chrom_peak_data().reset_index(drop=True)

    if len(peak_data) != len(peaks):
        raise ValueError(
            f"Peak metadata has {len(peak_data)} rows but peak matrix has {len(peaks)}"
        )

    extra = [c for c in peak_data.columns if c not in peaks.columns]
    return pd.concat([peaks, peak_data[extra]], axis=1)


def extract_peaks(dataset: PeakDatasetLike) -> pd.DataFrame:
    """Flat peak table with peak index, sample id and file information.

    Parameters
    ----------
    dataset : PeakDatasetLike
        Peak-detection result with at least one peak

    Returns
    -------
    pd.DataFrame
        Peak table with ``peak_index`` (1..P), ``sample_id`` (renamed from
        the matrix's ``sample`` column), ``file_path`` and ``file_name``

    Examples
    --------
    >>> peaks = extract_peaks(dataset)
    >>> peaks[["peak_index", "sample_id", "file_name", "into"]].head()
    """
    peaks = chrom_peaks_table(dataset)
    files = np.asarray(dataset.file_names(), dtype=object)

    peaks = peaks.rename(columns={UPSTREAM_SAMPLE: SAMPLE_ID})
    peaks[SAMPLE_ID] = peaks[SAMPLE_ID].astype(np.int64)
    peaks[PEAK_INDEX] = np.arange(1, len(peaks) + 1, dtype=np.int64)
    peaks[FILE_PATH] = files[peaks[SAMPLE_ID].to_numpy() - 1]
    peaks[FILE_NAME] = [PurePath(p).name for p in peaks[FILE_PATH]]

    logger.debug(f"Extracted {len(peaks):,} peaks from {len(files):,} files")
    return peaks


def sample_table(dataset: PeakDatasetLike) -> pd.DataFrame:
    """Sample identity tuples (sample_id, file_path, file_name) in file order."""
    files = dataset.file_names()
    return pd.DataFrame({
        SAMPLE_ID: np.arange(1, len(files) + 1, dtype=np.int64),
        FILE_PATH: files,
        FILE_NAME: [PurePath(f).name for f in files],
    }, columns=list(SAMPLE_IDENTITY_COLUMNS))
