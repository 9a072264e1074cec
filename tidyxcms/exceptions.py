"""Exceptions and warnings raised by tidyxcms.

Errors are input-contract violations detected before any table is built.
They propagate without recovery. Warnings accompany a valid result.
"""

from __future__ import annotations


class TidyXcmsError(Exception):
    """Base exception for tidyxcms.

    All library exceptions inherit from this base class.
    """


class InvalidInputType(TidyXcmsError, TypeError):
    """Raised when the dataset does not expose the peak/feature/sample interface."""

    def __init__(self, received: object) -> None:
        self.received = type(received).__name__
        super().__init__(
            "'dataset' must expose chrom_peaks, chrom_peak_data, feature_definitions, "
            f"feature_values, file_names and sample_data (got {self.received})"
        )


class EmptyPeakSet(TidyXcmsError, ValueError):
    """Raised when the peak matrix has zero rows."""

    def __init__(self) -> None:
        super().__init__("No chromatographic peaks found. Run peak detection first.")


class InvalidAnnotationType(TidyXcmsError, TypeError):
    """Raised when the annotation object does not expose a peak list."""

    def __init__(self, received: object) -> None:
        self.received = type(received).__name__
        super().__init__(
            f"'annotation' must expose peaklist() like a CAMERA annotation (got {self.received})"
        )


class FeatureCountMismatch(TidyXcmsError, ValueError):
    """Raised when annotation rows cannot be matched to features by position.

    Attributes:
        n_features: Rows in the feature-definition table.
        n_annotations: Rows in the annotation peak list.
    """

    def __init__(self, n_features: int, n_annotations: int) -> None:
        self.n_features = n_features
        self.n_annotations = n_annotations
        super().__init__(
            f"Feature count mismatch: dataset has {n_features} features "
            f"but annotation has {n_annotations}"
        )


class NoFeaturesWarning(UserWarning):
    """Feature grouping was not performed; result is peak-level only."""


class LargeOutputWarning(UserWarning):
    """Completed feature x sample table exceeds the configured row limit."""
