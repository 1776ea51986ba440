# src/experiment.py
import os
import random
import threading
import time
import numpy as np
import yaml
from src.data_loader import load_dataset
from src.forest.cosine_forest import CosineRandomForest, DEFAULT_N_WORKERS, DEFAULT_EXCLUDED_CLASS_NAME, \
    DEFAULT_OTHER_CLASS_NAME
from src.evaluation import summarize_confusion
from src.models.cosine_forest import CosineForestModel
from src.models.utils import get_model_instance


class TreeProgress:

    def __init__(self, every=100):
        """
        Tree-created callback printing a line every `every` trees. Safe to call from worker threads.

        Args:
            every (int): Number of trees between two progress lines.
        """
        self.every = every
        self.count = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.count += 1
            count = self.count
        if count % self.every == 0:
            print(f"      {count} trees built")


def load_config(config_path):
    """
    Loads the YAML experiment configuration.

    Args:
        config_path (str): Path to the configuration file.

    Returns:
        dict: Parsed configuration.
    """
    print(f"Loading configuration from {config_path}...")
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)
    print("Configuration loaded.")
    return config


def build_forest(forest_conf, seed=None, progress=None):
    """
    Creates a CosineRandomForest from the 'forest' section of the configuration.

    Args:
        forest_conf (dict): Keys 'n_workers', 'other_class' {enabled, threshold_percent, label}
                            and 'exclusion' {predict_excluded, flag_index, label}, all optional.
        seed (int, optional): Seed of the forest's random source.
        progress (callable, optional): Tree-created callback.

    Returns:
        CosineRandomForest: Configured, untrained engine.
    """
    exclusion_conf = forest_conf.get('exclusion', {})
    forest = CosineRandomForest(
        n_workers=forest_conf.get('n_workers', DEFAULT_N_WORKERS),
        seed=seed,
        predict_excluded=exclusion_conf.get('predict_excluded', True),
        exclusion_flag_index=exclusion_conf.get('flag_index', 0),
        excluded_class_name=exclusion_conf.get('label', DEFAULT_EXCLUDED_CLASS_NAME),
        tree_created_callbacks=[progress] if progress is not None else None
    )
    other_conf = forest_conf.get('other_class', {})
    if other_conf.get('enabled', False):
        forest.configure_other_class(other_conf.get('threshold_percent', 30),
                                     other_conf.get('label', DEFAULT_OTHER_CLASS_NAME))
    else:
        forest.disable_other_class()
    return forest


def predict_samples(model_wrapper, X_predict):
    """
    Classifies the prediction samples of a dataset with a fitted model.

    Args:
        model_wrapper (BaseModel): Fitted model.
        X_predict (pd.DataFrame): Samples to classify.

    Returns:
        list[dict]: One record per sample with its features and prediction.
            Cosine forest records also carry 'max_class', 'votes' and 'total_trees'.
    """
    records = []
    if isinstance(model_wrapper, CosineForestModel):
        forest = model_wrapper.get_forest()
        for _, row in X_predict.iterrows():
            prediction = forest.predict(row)
            records.append({
                'sample': row.tolist(),
                'predicted_class': prediction.predicted_class,
                'max_class': prediction.max_class,
                'votes': prediction.tree_predicted_class,
                'total_trees': prediction.total_trees,
            })
    else:
        predicted = model_wrapper.predict(X_predict.values)
        confidence = model_wrapper.predict_proba(X_predict.values).max(axis=1)
        for row, label, proba in zip(X_predict.values, predicted, confidence):
            records.append({'sample': row.tolist(), 'predicted_class': label, 'confidence': float(proba)})
    return records


def run_experiment(config_path="config.yaml"):
    """
    Runs the full experiment pipeline:
    - Loads each dataset.
    - Cross-validates the cosine forest and collects its confusion matrix.
    - Trains every configured model on the full dataset and classifies the prediction samples.

    Args:
        config_path (str): Path to the configuration YAML file.

    Returns:
        tuple:
            - master_results (list[dict]): One entry per dataset. 'confusion_matrix' holds the
              ConfusionMatrix object (None when cross-validation is disabled).
            - config (dict): The parsed configuration used for this run.
    """
    config = load_config(config_path)

    seed = config.get('random_seed')
    if seed is not None:
        os.environ["PYTHONHASHSEED"] = str(seed)
        random.seed(seed)
        np.random.seed(seed)

    forest_conf = config.get('forest', {})
    forest_size = forest_conf.get('forest_size', 500)
    percent_parameters = forest_conf.get('percent_parameters', 0)
    cv_conf = config.get('cross_validation', {})
    progress_every = forest_conf.get('progress_every', 100)

    master_results = []

    # Loop through Datasets
    for dataset_conf in config.get('datasets', []):
        dataset_name = dataset_conf.get('name', 'unnamed')
        print(f"\n--- Starting Dataset: {dataset_name} ---")
        try:
            X, y, X_predict = load_dataset(dataset_conf)
        except Exception as e:
            print(f"Error loading dataset {dataset_name}: {e}. Skipping.")
            continue

        dataset_start_time = time.time()
        matrix = None
        cv_summary = None
        if cv_conf.get('enabled', True):
            iterations = cv_conf.get('iterations', 5)
            print(f"  Cross-validating cosine forest ({iterations} iterations, {forest_size} trees)...")
            forest = build_forest(forest_conf, seed=seed, progress=TreeProgress(progress_every))
            matrix = forest.evaluate_cross_validation(iterations, X, y, forest_size, percent_parameters)
            cv_summary = summarize_confusion(matrix)
            print(matrix.summary().to_string())

        # Loop through Models
        predictions = {}
        for model_conf in config.get('models', [{'name': 'CosineForest'}]):
            model_name = model_conf['name']
            if X_predict is None:
                print(f"  No prediction samples for {dataset_name}, skipping model {model_name}.")
                continue
            model_params = dict(model_conf.get('params', {}))
            if model_name == 'CosineForest':
                model_params.setdefault('n_estimators', forest_size)
                model_params.setdefault('percent_parameters', percent_parameters)
                model_params.setdefault('n_workers', forest_conf.get('n_workers', DEFAULT_N_WORKERS))

            print(f"\n  --- Model: {model_name} ---")
            model_wrapper = get_model_instance(model_name, model_params, seed=seed)
            model_wrapper.fit(X.values, y.values)
            predictions[model_name] = predict_samples(model_wrapper, X_predict)
            for record in predictions[model_name]:
                print(f"    {record['sample']} -> {record['predicted_class']}"
                      + (f" ({record['votes']}/{record['total_trees']})" if 'votes' in record else ""))

        dataset_duration = time.time() - dataset_start_time
        print(f"  Dataset {dataset_name} finished. Duration: {dataset_duration:.2f} seconds.")

        master_results.append({
            "dataset": dataset_name,
            "n_samples": int(X.shape[0]),
            "n_features": int(X.shape[1]),
            "confusion_matrix": matrix,
            "cross_validation": cv_summary,
            "predictions": predictions,
            "duration_seconds": dataset_duration
        })

    print("\nExperiment Complete.")
    return master_results, config
