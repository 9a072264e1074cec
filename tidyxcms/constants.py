"""Column names, tolerances and limits shared across tidyxcms.

This module collects every column name the assembly pipeline relies on, the
default intensity-matching tolerance and the output size limit. Column names
follow the conventions of the upstream peak-detection engine (xcms), so a
peak table exported from it can be used without renaming.

Key Features
------------
- Peak matrix columns (mz, rt and intensity windows per chromatographic peak)
- Feature summary columns and their ``f_``-prefixed output names
- CAMERA-style annotation columns (isotopes, adduct, pcgroup)
- Intensity tolerance equal to sqrt(machine epsilon) for float64
"""

import numpy as np

# =============================================================================
# Identity Columns
# =============================================================================

PEAK_INDEX = "peak_index"
FEATURE_INDEX = "feature_index"
SAMPLE_ID = "sample_id"
FILE_PATH = "file_path"
FILE_NAME = "file_name"

# Upstream peak matrix names its sample column "sample"
UPSTREAM_SAMPLE = "sample"

# Upstream feature definitions store member peaks as a list of 1-based indices
PEAK_INDICES = "peak_indices"

SAMPLE_IDENTITY_COLUMNS = (SAMPLE_ID, FILE_PATH, FILE_NAME)

# =============================================================================
# Peak Matrix
# =============================================================================

# Columns every peak matrix must carry
REQUIRED_PEAK_COLUMNS = (
    "mz", "mzmin", "mzmax",
    "rt", "rtmin", "rtmax",
    "into",
    UPSTREAM_SAMPLE,
)

# =============================================================================
# Feature Definitions
# =============================================================================

FEATURE_SUMMARY_COLUMNS = ("mzmed", "mzmin", "mzmax", "rtmed", "rtmin", "rtmax")
FEATURE_PREFIX = "f_"

MS_LEVEL = "ms_level"
DEFAULT_MS_LEVEL = 1

# Label column written by a separate feature-grouping pass (e.g. "FG.001")
UPSTREAM_FEATURE_GROUP = "feature_group"
FEATURE_GROUP_LABEL = "feature_group_label"

# =============================================================================
# Annotations
# =============================================================================

ISOTOPES = "isotopes"
ADDUCT = "adduct"
PCGROUP = "pcgroup"
ANNOTATION_COLUMNS = (ISOTOPES, ADDUCT, PCGROUP)

# Sentinel for features without isotope/adduct annotation
UNANNOTATED = ""

# =============================================================================
# Feature Values
# =============================================================================

DEFAULT_VALUE_COLUMN = "into"
FEATURE_VALUE_METHOD = "maxint"
FEATURE_VALUE = "into_f"

# =============================================================================
# Default Tolerances and Limits
# =============================================================================

# sqrt(eps) for float64, ~1.49e-8
INTENSITY_TOLERANCE = float(np.sqrt(np.finfo(np.float64).eps))

# Completed feature x sample tables above this size trigger a warning
MAX_OUTPUT_ROWS = 10_000_000

# Suffix for sample metadata columns that clash with output columns
SAMPLE_METADATA_SUFFIX = "_sample"
