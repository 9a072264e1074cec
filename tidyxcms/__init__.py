"""tidyxcms - Long-format feature tables from LC-MS peak-detection results.

Reshapes chromatographic peaks, feature definitions and feature intensities
produced by an xcms-style peak-detection engine into one table with a row
per feature per sample, optionally enriched with CAMERA-style isotope,
adduct and pseudospectrum annotations and with feature-group labels.
"""

__version__ = "0.1.0"

from tidyxcms import tables
from tidyxcms import assembly

from tidyxcms.convenience import (
    assemble_long_table,
    camera_peaklist_long,
    tidy_peaklist,
)
from tidyxcms.dataset import (
    PeakAnnotation,
    PeakAnnotationLike,
    PeakDataset,
    PeakDatasetLike,
)
from tidyxcms.exceptions import (
    EmptyPeakSet,
    FeatureCountMismatch,
    InvalidAnnotationType,
    InvalidInputType,
    LargeOutputWarning,
    NoFeaturesWarning,
    TidyXcmsError,
)
from tidyxcms.assembly import AssemblyParams

__all__ = [
    "tables",
    "assembly",
    # Entry points
    "tidy_peaklist",
    "assemble_long_table",
    "camera_peaklist_long",
    "AssemblyParams",
    # Inputs
    "PeakDataset",
    "PeakDatasetLike",
    "PeakAnnotation",
    "PeakAnnotationLike",
    # Errors and warnings
    "TidyXcmsError",
    "InvalidInputType",
    "EmptyPeakSet",
    "InvalidAnnotationType",
    "FeatureCountMismatch",
    "NoFeaturesWarning",
    "LargeOutputWarning",
]
