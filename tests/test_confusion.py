"""Tests for ConfusionMatrix."""

import math

import numpy as np
import pandas as pd
import pytest

from src.forest.confusion import ConfusionMatrix


@pytest.fixture
def matrix():
    m = ConfusionMatrix(["red", "green", "blue", "other"])
    m.add_counts(np.array([
        [8, 1, 1, 0],
        [0, 9, 0, 1],
        [2, 0, 6, 0],
        [0, 0, 0, 0],
    ]))
    return m


class TestErrorPercentage:
    """Tests for the cached error percentage."""

    def test_off_diagonal_share(self, matrix):
        assert matrix.total == 28
        assert matrix.error_percentage == pytest.approx(100.0 * 5 / 28)

    def test_cache_is_invalidated_by_updates(self, matrix):
        before = matrix.error_percentage
        matrix.record("red", "red")

        assert matrix.error_percentage == pytest.approx(100.0 * 5 / 29)
        assert matrix.error_percentage != before

    def test_empty_matrix_is_nan(self):
        assert math.isnan(ConfusionMatrix(["a", "b"]).error_percentage)


class TestPerCategoryStatistics:
    """Tests for accuracy and vote strength."""

    def test_category_accuracy(self, matrix):
        accuracy = matrix.category_accuracy()

        assert accuracy["red"] == pytest.approx(80.0)
        assert accuracy["green"] == pytest.approx(90.0)
        assert accuracy["blue"] == pytest.approx(75.0)
        assert np.isnan(accuracy["other"])

    def test_vote_strength(self, matrix):
        matrix.record_vote_strength("red", 40, 50)
        matrix.record_vote_strength("red", 30, 50)

        strength = matrix.vote_strength()
        assert strength["red"] == pytest.approx(70.0)
        assert np.isnan(strength["green"])

    def test_summary_has_statistics_columns(self, matrix):
        summary = matrix.summary()

        assert list(summary.columns) == ["red", "green", "blue", "other", "accuracy_%", "vote_strength_%"]
        assert summary.loc["red", "red"] == 8


class TestUpdates:
    """Tests for recording predictions."""

    def test_record_increments_cell(self):
        m = ConfusionMatrix(["a", "b"])
        m.record("a", "b")
        m.record("a", "b")

        assert m.counts.tolist() == [[0, 2], [0, 0]]

    def test_unknown_category_raises(self):
        with pytest.raises(ValueError):
            ConfusionMatrix(["a"]).record("a", "z")

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError):
            ConfusionMatrix(["a", "b"]).add_counts(np.zeros((3, 3)))

    def test_duplicate_categories_raise(self):
        with pytest.raises(ValueError):
            ConfusionMatrix(["a", "a"])

    def test_to_frame(self, matrix):
        frame = matrix.to_frame()

        assert isinstance(frame, pd.DataFrame)
        assert frame.index.name == "true"
        assert frame.loc["blue", "red"] == 2
