"""End-to-end tests of the experiment driver on a small configuration."""

import numpy as np
import pandas as pd
import pytest
import yaml

from src.experiment import TreeProgress, build_forest, predict_samples, run_experiment
from src.forest.confusion import ConfusionMatrix
from src.models.cosine_forest import CosineForestModel
from src.models.random_forest import RandomForestModel


@pytest.fixture
def config_path(tmp_path, colors_csv, colors_predict_csv):
    config = {
        "random_seed": 3,
        "output_dir": str(tmp_path / "results"),
        "forest": {
            "n_workers": 2,
            "forest_size": 10,
            "percent_parameters": 100,
            "progress_every": 5,
            "other_class": {"enabled": True, "threshold_percent": 20, "label": "suspect"},
        },
        "cross_validation": {"enabled": True, "iterations": 2},
        "datasets": [
            {"name": "colors", "file_path": str(colors_csv), "predict_file_path": str(colors_predict_csv)},
            {"name": "missing", "file_path": str(tmp_path / "missing.csv")},
        ],
        "models": [
            {"name": "CosineForest"},
            {"name": "RandomForest", "params": {"n_estimators": 5, "n_jobs": 1}},
        ],
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config))
    return str(path)


class TestTreeProgress:
    """Tests for the tree-created progress callback."""

    def test_counts_calls(self, capsys):
        progress = TreeProgress(every=2)
        for _ in range(5):
            progress()

        assert progress.count == 5
        assert capsys.readouterr().out.count("trees built") == 2


class TestBuildForest:
    """Tests for build_forest."""

    def test_defaults(self):
        forest = build_forest({})

        assert forest.n_workers == 8
        assert forest.predict_excluded
        assert not forest.other_class_enabled

    def test_configured_sections(self):
        forest = build_forest({
            "n_workers": 3,
            "other_class": {"enabled": True, "threshold_percent": 40, "label": "suspect"},
            "exclusion": {"predict_excluded": False, "flag_index": 2, "label": "cut"},
        }, seed=1)

        assert forest.n_workers == 3
        assert forest.other_class_name == "suspect"
        assert forest.other_threshold_percent == pytest.approx(40)
        assert not forest.predict_excluded
        assert forest.exclusion_flag_index == 2
        assert forest.excluded_class_name == "cut"


class TestPredictSamples:
    """Tests for predict_samples."""

    def test_cosine_records_carry_votes(self, separable_frame):
        X, y = separable_frame
        model = CosineForestModel({"n_estimators": 6, "percent_parameters": 100, "n_workers": 2})
        model.fit(X.values, y.values)
        records = predict_samples(model, pd.DataFrame([[200, 10, 5]], columns=X.columns))

        assert records[0]["predicted_class"] == "A"
        assert records[0]["total_trees"] == 6
        assert 0 <= records[0]["votes"] <= 6

    def test_other_models_carry_confidence(self, separable_frame):
        X, y = separable_frame
        model = RandomForestModel({"n_estimators": 5, "n_jobs": 1, "random_state": 0})
        model.fit(X.values, y.values)
        records = predict_samples(model, X.head(2))

        assert len(records) == 2
        assert 0.0 <= records[0]["confidence"] <= 1.0
        assert "votes" not in records[0]


class TestRunExperiment:
    """Tests for run_experiment."""

    def test_run(self, config_path):
        results, config = run_experiment(config_path)

        assert config["random_seed"] == 3
        assert len(results) == 1
        result = results[0]
        assert result["dataset"] == "colors"
        assert (result["n_samples"], result["n_features"]) == (9, 3)

        matrix = result["confusion_matrix"]
        assert isinstance(matrix, ConfusionMatrix)
        assert matrix.categories == ("red", "green", "blue", "suspect")
        assert matrix.total == 2 * 9
        assert result["cross_validation"]["total"] == 18

        assert set(result["predictions"]) == {"CosineForest", "RandomForest"}
        cosine = result["predictions"]["CosineForest"]
        assert len(cosine) == 3
        assert all(record["total_trees"] == 10 for record in cosine)
        assert np.isclose(cosine[0]["sample"], [201.0, 42.0, 20.0]).all()

    def test_cross_validation_can_be_disabled(self, config_path):
        with open(config_path) as f:
            config = yaml.safe_load(f)
        config["cross_validation"]["enabled"] = False
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)

        results, _ = run_experiment(config_path)

        assert results[0]["confusion_matrix"] is None
        assert results[0]["cross_validation"] is None
