"""Shared fixtures for the cosine forest tests."""

import numpy as np
import pandas as pd
import pytest

from src.forest.cosine_forest import CosineRandomForest


@pytest.fixture
def separable_data():
    """Three categories of 10 samples, each dominated by a different feature."""
    rows, labels = [], []
    for i in range(10):
        rows.append([200 + 5 * i, 20 + i, 10 + 2 * i])
        labels.append("A")
    for i in range(10):
        rows.append([15 + i, 210 + 4 * i, 12 + i])
        labels.append("B")
    for i in range(10):
        rows.append([10 + 2 * i, 18 + i, 190 + 5 * i])
        labels.append("C")
    return np.array(rows, dtype=float), np.array(labels, dtype=object)


@pytest.fixture
def separable_frame(separable_data):
    X, y = separable_data
    return pd.DataFrame(X, columns=["f0", "f1", "f2"]), pd.Series(y, name="label")


@pytest.fixture
def trained_forest(separable_data):
    X, y = separable_data
    forest = CosineRandomForest(n_workers=4, seed=7)
    forest.train(X, y, forest_size=60, percent_parameters=100)
    return forest


@pytest.fixture
def colors_csv(tmp_path):
    path = tmp_path / "colors.csv"
    path.write_text(
        "red,green,blue,label\n"
        "255,0,0,red  \n"
        "210,45,10,red  \n"
        "147,13,7,red  \n"
        "147,254,10,green\n"
        "41,187,11,green\n"
        "14,187,14,green\n"
        "144,24,207,blue \n"
        "37,74,114,blue \n"
        "1,74,104,blue \n"
    )
    return path


@pytest.fixture
def colors_predict_csv(tmp_path):
    path = tmp_path / "colors_predict.csv"
    path.write_text("blue,red,green\n20,201,42\n54,141,200\n117,74,12\n")
    return path
