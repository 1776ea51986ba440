"""Tests for the CSV data loader."""

import pandas as pd
import pytest

from src.data_loader import clean_label, load_dataset, read_labeled_samples, read_unlabeled_samples


class TestCleanLabel:
    """Tests for clean_label."""

    @pytest.mark.parametrize("raw,expected", [
        ("red  ", "red"),
        (" blue", "blue"),
        ("b'green'", "green"),
        (3, "3"),
    ])
    def test_clean_label(self, raw, expected):
        assert clean_label(raw) == expected


class TestReadSamples:
    """Tests for the labelled and unlabelled readers."""

    def test_labeled_samples(self, colors_csv):
        X, y = read_labeled_samples(colors_csv)

        assert list(X.columns) == ["red", "green", "blue"]
        assert X.shape == (9, 3)
        assert all(dtype == float for dtype in X.dtypes)
        assert y.name == "label"
        assert list(y.unique()) == ["red", "green", "blue"]

    def test_missing_label_column_raises(self, colors_csv):
        with pytest.raises(ValueError, match="category"):
            read_labeled_samples(colors_csv, label_column="category")

    def test_non_numeric_feature_raises(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("a,b,label\n1,x,red\n2,3,blue\n")
        with pytest.raises(ValueError):
            read_labeled_samples(path)

    def test_unlabeled_columns_follow_training_order(self, colors_predict_csv):
        X = read_unlabeled_samples(colors_predict_csv, feature_names=["red", "green", "blue"])

        assert list(X.columns) == ["red", "green", "blue"]
        assert X.iloc[0].tolist() == [201.0, 42.0, 20.0]

    def test_unlabeled_missing_column_raises(self, colors_predict_csv):
        with pytest.raises(ValueError):
            read_unlabeled_samples(colors_predict_csv, feature_names=["red", "alpha"])


class TestLoadDataset:
    """Tests for load_dataset."""

    def test_with_prediction_file(self, colors_csv, colors_predict_csv):
        X, y, X_predict = load_dataset({
            "name": "colors",
            "file_path": str(colors_csv),
            "predict_file_path": str(colors_predict_csv),
        })

        assert X.shape == (9, 3)
        assert len(y) == 9
        assert isinstance(X_predict, pd.DataFrame)
        assert list(X_predict.columns) == list(X.columns)

    def test_without_prediction_file(self, colors_csv):
        _, _, X_predict = load_dataset({"name": "colors", "file_path": str(colors_csv)})
        assert X_predict is None

    def test_missing_file_path_raises(self):
        with pytest.raises(ValueError):
            load_dataset({"name": "empty"})
