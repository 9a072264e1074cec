"""Input guards run before any table is built."""

from .dataset import PeakAnnotationLike, PeakDatasetLike
from .exceptions import (
    EmptyPeakSet,
    FeatureCountMismatch,
    InvalidAnnotationType,
    InvalidInputType,
)


def validate_inputs(dataset, annotation=None) -> None:
    """Reject inputs the assembly pipeline cannot process.

    Parameters
    ----------
    dataset : object
        Must implement ``PeakDatasetLike``
    annotation : object, optional
        Must implement ``PeakAnnotationLike`` when given

    Raises
    ------
    InvalidInputType
        ``dataset`` lacks the peak/feature/sample accessors
    EmptyPeakSet
        The peak matrix has no rows
    InvalidAnnotationType
        ``annotation`` lacks ``peaklist()``
    FeatureCountMismatch
        Features are defined and the annotation has a different row count
    """
    if not isinstance(dataset, PeakDatasetLike):
        raise InvalidInputType(dataset)

    if len(dataset.chrom_peaks()) == 0:
        raise EmptyPeakSet()

    if annotation is None:
        return

    if not isinstance(annotation, PeakAnnotationLike):
        raise InvalidAnnotationType(annotation)

    n_features = len(dataset.feature_definitions())
    if n_features > 0:
        n_annotations = len(annotation.peaklist())
        if n_annotations != n_features:
            raise FeatureCountMismatch(n_features, n_annotations)
