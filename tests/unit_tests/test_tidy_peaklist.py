"""End-to-end tests for long-format assembly.

Tests:
- Input validation (fail fast, before any table is built)
- Completeness, uniqueness and attribute purity of grouped output
- Peak-level fallback for datasets without features
- Annotation optionality and feature-group labels
- Warnings, idempotence and the deprecated entry point
"""

import warnings

import numpy as np
import pandas as pd
import pytest

import tidyxcms
from tidyxcms import (
    AssemblyParams,
    EmptyPeakSet,
    FeatureCountMismatch,
    InvalidAnnotationType,
    InvalidInputType,
    LargeOutputWarning,
    NoFeaturesWarning,
    PeakAnnotation,
    PeakDataset,
    TidyXcmsError,
    assemble_long_table,
    camera_peaklist_long,
    tidy_peaklist,
)
from tidyxcms.validation import validate_inputs

FEATURE_LEVEL = [
    "feature_index",
    "f_mzmed", "f_mzmin", "f_mzmax", "f_rtmed", "f_rtmin", "f_rtmax",
    "ms_level",
]
ANNOTATION = ["isotopes", "adduct", "pcgroup"]


def _quiet(dataset, annotation=None, params=None):
    """Run assembly, turning library warnings into errors."""
    with warnings.catch_warnings():
        warnings.simplefilter("error", NoFeaturesWarning)
        warnings.simplefilter("error", LargeOutputWarning)
        return tidy_peaklist(dataset, annotation, params)


class TestValidateInputs:
    """Test input guards."""

    def test_valid_inputs(self, grouped_dataset, annotation):
        validate_inputs(grouped_dataset, annotation)

    def test_wrong_dataset_type(self, peak_matrix):
        """A bare peak table is not a dataset."""
        with pytest.raises(InvalidInputType) as excinfo:
            validate_inputs(peak_matrix)
        assert excinfo.value.received == "DataFrame"

    def test_empty_peaks(self, peak_matrix, file_paths):
        dataset = PeakDataset.from_peaks(peak_matrix.iloc[:0], file_paths)
        with pytest.raises(EmptyPeakSet, match="No chromatographic peaks"):
            validate_inputs(dataset)

    def test_wrong_annotation_type(self, grouped_dataset, camera_peaklist):
        """A bare peak list is not an annotation."""
        with pytest.raises(InvalidAnnotationType):
            validate_inputs(grouped_dataset, camera_peaklist)

    def test_count_mismatch(self, grouped_dataset, camera_peaklist):
        with pytest.raises(FeatureCountMismatch):
            validate_inputs(grouped_dataset, PeakAnnotation(camera_peaklist.iloc[:2]))

    def test_count_not_checked_without_features(self, raw_dataset, camera_peaklist):
        """Raw datasets accept any annotation."""
        validate_inputs(raw_dataset, PeakAnnotation(camera_peaklist.iloc[:2]))

    def test_dataset_checked_before_annotation(self, peak_matrix):
        """The dataset type is reported first."""
        with pytest.raises(InvalidInputType):
            validate_inputs(peak_matrix, object())

    def test_errors_share_base_class(self, peak_matrix):
        """Library errors can be caught together or as builtin types."""
        with pytest.raises(TidyXcmsError):
            validate_inputs(peak_matrix)
        with pytest.raises(TypeError):
            validate_inputs(peak_matrix)

    def test_mismatch_is_value_error(self, grouped_dataset, camera_peaklist):
        with pytest.raises(ValueError):
            validate_inputs(grouped_dataset, PeakAnnotation(camera_peaklist.iloc[:2]))


class TestGroupedOutput:
    """Test the feature x sample table."""

    def test_completeness(self, grouped_dataset):
        """F x N rows."""
        out = _quiet(grouped_dataset)
        assert len(out) == 5 * 3

    def test_uniqueness(self, grouped_dataset):
        out = _quiet(grouped_dataset)
        assert not out.duplicated(["feature_index", "file_name"]).any()
        assert not out.duplicated(["feature_index", "sample_id"]).any()

    def test_feature_attribute_purity(self, grouped_dataset, annotation):
        """Feature columns are constant within a feature and never NA."""
        out = _quiet(grouped_dataset, annotation)
        columns = FEATURE_LEVEL + ANNOTATION
        assert out[columns].notna().all().all()
        assert (out.groupby("feature_index")[columns[1:]].nunique() == 1).all().all()

    def test_sample_attribute_purity(self, grouped_dataset):
        """Sample columns are never NA."""
        out = _quiet(grouped_dataset)
        columns = ["sample_name", "sample_group", "sample_id", "file_path", "file_name"]
        assert out[columns].notna().all().all()

    def test_feature_1_and_2(self, grouped_dataset):
        """Detected cells have intensity, undetected ones NA with feature data."""
        out = _quiet(grouped_dataset).set_index(["feature_index", "sample_id"])
        assert out.loc[(1, 1), "into"] == 1000.0
        assert out.loc[(1, 2), "into"] == 2000.0
        assert np.isnan(out.loc[(1, 3), "into"])
        assert out.loc[(1, 3), "f_mzmed"] == pytest.approx(200.1)
        feature2 = out.loc[2]
        assert feature2["into"].isna().all()
        assert feature2["f_mzmed"].notna().all()

    def test_duplicate_peak_resolved(self, grouped_dataset):
        """Tied peaks 3 and 4 yield one row, holding peak 3."""
        out = _quiet(grouped_dataset)
        rows = out[(out["feature_index"] == 3) & (out["sample_id"] == 1)]
        assert len(rows) == 1
        assert rows["peak_index"].iloc[0] == 3
        assert rows["rt"].iloc[0] == 3000.0

    def test_shoulder_peak_excluded(self, grouped_dataset):
        """Feature 4 is represented by its most intense peak."""
        out = _quiet(grouped_dataset)
        row = out[(out["feature_index"] == 4) & (out["sample_id"] == 2)].iloc[0]
        assert row["peak_index"] == 5
        assert row["into"] == 500.0
        assert 6 not in out["peak_index"].dropna().tolist()

    def test_detected_count(self, grouped_dataset):
        out = _quiet(grouped_dataset)
        assert out["into"].notna().sum() == 5

    def test_column_order(self, grouped_dataset):
        """Sample metadata, feature columns, file columns, peak columns."""
        out = _quiet(grouped_dataset)
        assert list(out.columns) == [
            "sample_name", "sample_group", "sample_id",
            *FEATURE_LEVEL,
            "file_path", "file_name",
            "peak_index",
            "mz", "mzmin", "mzmax", "rt", "rtmin", "rtmax",
            "into", "intb", "maxo", "sn",
            "is_filled",
        ]

    def test_na_propagates_through_peak_columns(self, grouped_dataset):
        """An NA peak column value (sn) survives for a detected peak."""
        out = _quiet(grouped_dataset)
        row = out[out["peak_index"] == 5].iloc[0]
        assert np.isnan(row["sn"])

    def test_supplied_feature_values(self, grouped_dataset):
        """An engine-reported into matrix selects the same peaks."""
        dataset = grouped_dataset.with_features(
            grouped_dataset.feature_definitions(),
            feature_value_matrix=grouped_dataset.feature_values(),
        )
        out = _quiet(dataset)
        assert out["into"].notna().sum() == 5
        pd.testing.assert_frame_equal(out, _quiet(grouped_dataset))

    def test_without_sample_metadata(self, peak_matrix, feature_definitions, file_paths):
        """Sample identity columns lead when no metadata is attached."""
        dataset = PeakDataset.from_peaks(peak_matrix, file_paths).with_features(
            feature_definitions
        )
        out = _quiet(dataset)
        assert out.columns[0] == "sample_id"
        assert len(out) == 15


class TestAnnotations:
    """Test annotation and feature-group label columns."""

    def test_absent_without_annotation(self, grouped_dataset):
        out = _quiet(grouped_dataset)
        for column in ANNOTATION:
            assert column not in out.columns

    def test_present_with_annotation(self, grouped_dataset, annotation):
        """All three columns appear, pcgroup as integer."""
        out = _quiet(grouped_dataset, annotation)
        for column in ANNOTATION:
            assert column in out.columns
        assert out["pcgroup"].dtype == "Int64"
        assert out.loc[out["feature_index"] == 4, "adduct"].eq("[M+Na]+ 377.31").all()
        assert out.loc[out["feature_index"] == 4, "isotopes"].eq("").all()

    def test_annotation_columns_follow_ms_level(self, grouped_dataset, annotation):
        out = _quiet(grouped_dataset, annotation)
        columns = list(out.columns)
        start = columns.index("ms_level") + 1
        assert columns[start:start + 3] == ANNOTATION

    def test_mismatch_rejected(self, grouped_dataset, camera_peaklist):
        with pytest.raises(FeatureCountMismatch):
            tidy_peaklist(grouped_dataset, PeakAnnotation(camera_peaklist.iloc[:4]))

    def test_feature_group_label(self, grouped_dataset):
        """Labels from a prior grouping pass are carried per feature."""
        labels = ["FG.001", "FG.002", "FG.001", "FG.003", "FG.004"]
        out = _quiet(grouped_dataset.with_feature_groups(labels))
        by_feature = out.groupby("feature_index")["feature_group_label"].first()
        assert by_feature.tolist() == labels

    def test_no_feature_group_label_by_default(self, grouped_dataset):
        out = _quiet(grouped_dataset)
        assert "feature_group_label" not in out.columns


class TestPeakLevelFallback:
    """Test datasets without feature grouping."""

    def test_one_row_per_peak(self, raw_dataset):
        with pytest.warns(NoFeaturesWarning, match="peak-level"):
            out = tidy_peaklist(raw_dataset)
        assert len(out) == 8
        assert out["peak_index"].tolist() == list(range(1, 9))

    def test_no_feature_columns(self, raw_dataset):
        with pytest.warns(NoFeaturesWarning):
            out = tidy_peaklist(raw_dataset)
        for column in ["feature_index", "f_mzmed", *ANNOTATION]:
            assert column not in out.columns

    def test_sample_columns_present(self, raw_dataset):
        with pytest.warns(NoFeaturesWarning):
            out = tidy_peaklist(raw_dataset)
        assert out[["sample_name", "file_path", "file_name"]].notna().all().all()

    def test_annotation_ignored(self, raw_dataset, camera_peaklist):
        """With no features the annotation count is not checked."""
        with pytest.warns(NoFeaturesWarning):
            out = tidy_peaklist(raw_dataset, PeakAnnotation(camera_peaklist.iloc[:2]))
        assert len(out) == 8


class TestWarningsAndState:
    """Test non-fatal reporting and reproducibility."""

    def test_large_output_warning(self, grouped_dataset):
        """The result is still returned alongside the warning."""
        with pytest.warns(LargeOutputWarning):
            out = tidy_peaklist(grouped_dataset, params=AssemblyParams(max_output_rows=10))
        assert len(out) == 15

    def test_size_guard_counts_undetected_features(self, grouped_dataset):
        """Features without peaks count towards the projected size."""
        with pytest.warns(LargeOutputWarning, match="15 rows"):
            tidy_peaklist(grouped_dataset, params=AssemblyParams(max_output_rows=14))

    def test_idempotent(self, grouped_dataset, annotation):
        first = _quiet(grouped_dataset, annotation)
        second = _quiet(grouped_dataset, annotation)
        pd.testing.assert_frame_equal(first, second)

    def test_inputs_not_mutated(self, grouped_dataset, annotation, peak_matrix, camera_peaklist):
        _quiet(grouped_dataset, annotation)
        pd.testing.assert_frame_equal(grouped_dataset.chrom_peaks(), peak_matrix)
        pd.testing.assert_frame_equal(annotation.peaklist(), camera_peaklist)

    def test_alias(self):
        assert assemble_long_table is tidy_peaklist

    def test_deprecated_entry_point(self, grouped_dataset, annotation):
        """The legacy name warns and returns the same table."""
        with pytest.warns(DeprecationWarning, match="tidy_peaklist"):
            legacy = camera_peaklist_long(grouped_dataset, annotation)
        pd.testing.assert_frame_equal(legacy, _quiet(grouped_dataset, annotation))

    def test_version(self):
        assert tidyxcms.__version__ == "0.1.0"
