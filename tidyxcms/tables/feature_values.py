"""Feature value resolution: the feature x sample matrix in long form.

The grouping engine reports one representative intensity per feature and
sample ("maxint": the ``into`` of the member peak with the largest ``into``).
In long form it serves as the key that tells the join stage which member
peak represents a feature in a sample. It is not part of the final table.
"""

import numpy as np
import pandas as pd

from ..constants import (
    DEFAULT_VALUE_COLUMN,
    FEATURE_INDEX,
    FEATURE_VALUE,
    FEATURE_VALUE_METHOD,
    FILE_NAME,
    SAMPLE_ID,
)
from ..dataset import PeakDatasetLike


def resolve_feature_values(
    dataset: PeakDatasetLike,
    value: str = DEFAULT_VALUE_COLUMN,
    method: str = FEATURE_VALUE_METHOD,
) -> pd.DataFrame:
    """Reshape the feature x sample intensity matrix to long form.

    Rows and columns are read by position: row i is feature i + 1, column j
    is sample j + 1. The column labels only provide ``file_name``.

    Parameters
    ----------
    dataset : PeakDatasetLike
        Grouped peak-detection result
    value : str, default="into"
        Peak column reported by the grouping engine
    method : str, default="maxint"
        Representative peak selection policy

    Returns
    -------
    pd.DataFrame
        Columns ``feature_index``, ``sample_id``, ``file_name`` and
        ``into_f``, one row per (feature, sample), feature-major order

    Examples
    --------
    >>> values = resolve_feature_values(dataset)
    >>> len(values) == n_features * n_samples
    True
    """
    matrix = dataset.feature_values(value=value, method=method)
    n_features, n_samples = matrix.shape

    return pd.DataFrame({
        FEATURE_INDEX: np.repeat(np.arange(1, n_features + 1, dtype=np.int64), n_samples),
        SAMPLE_ID: np.tile(np.arange(1, n_samples + 1, dtype=np.int64), n_features),
        FILE_NAME: np.tile(np.asarray(matrix.columns, dtype=object), n_features),
        FEATURE_VALUE: matrix.to_numpy(dtype=np.float64).ravel(),
    })
