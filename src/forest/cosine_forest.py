# src/forest/cosine_forest.py
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import numpy as np
import pandas as pd
from src.forest.sampler import SharedRandomSource
from src.forest.tree import TreeBuilder, descend
from src.forest.cross_validation import cross_validate

DEFAULT_N_WORKERS = 8
BOOTSTRAP_FRACTION = 0.64
DEFAULT_OTHER_CLASS_NAME = "other"
DEFAULT_EXCLUDED_CLASS_NAME = "Cut_Objects"


class ForestTrainingError(Exception):
    """Raised when building the trees of a forest failed. The original error is chained as the cause."""


@dataclass(frozen=True)
class Prediction:
    predicted_class: str
    max_class: str
    tree_predicted_class: int
    total_trees: int

    @property
    def vote_fraction(self):
        return self.tree_predicted_class / self.total_trees if self.total_trees else 0.0

    @property
    def is_demoted(self):
        """True when the majority was replaced by the low-confidence category."""
        return self.predicted_class != self.max_class


def as_sample_matrix(samples):
    """
    Converts training samples to a 2D float array.

    Args:
        samples (array-like or pd.DataFrame): Samples of shape (n_samples, dim).

    Returns:
        np.ndarray: Float64 matrix.
    """
    if isinstance(samples, pd.DataFrame):
        samples = samples.values
    X = np.asarray(samples, dtype=float)
    if X.ndim != 2:
        raise ValueError(f"Samples must be a 2D array, got shape {X.shape}.")
    if X.shape[0] == 0 or X.shape[1] == 0:
        raise ValueError(f"Samples must not be empty, got shape {X.shape}.")
    return X


def as_label_array(labels, n_samples):
    labels = np.asarray(list(labels), dtype=object)
    if labels.shape != (n_samples,):
        raise ValueError(f"Expected {n_samples} labels, got {labels.shape[0]}.")
    return labels


class CosineRandomForest:

    def __init__(self, n_workers=DEFAULT_N_WORKERS, seed=None, predict_excluded=True, exclusion_flag_index=0,
                 excluded_class_name=DEFAULT_EXCLUDED_CLASS_NAME, tree_created_callbacks=None):
        """
        Random forest whose nodes split on cosine similarity to the centroid of their dominant category.

        Trees are grown in parallel on a fixed pool of worker threads. Predictions are majority votes,
        optionally demoted to an "other" category when the vote share is too low.

        Args:
            n_workers (int): Size of the tree-building thread pool. Defaults to 8.
            seed (int, optional): Seed of the shared random source. Runs are reproducible only with n_workers=1.
            predict_excluded (bool): If False, samples whose exclusion flag is 1 are classified as
                                     `excluded_class_name` without consulting the trees. Defaults to True.
            exclusion_flag_index (int): Dimension holding the exclusion flag. Defaults to 0.
            excluded_class_name (str): Category assigned to excluded samples.
            tree_created_callbacks (list[callable], optional): Called without arguments after each tree is built.
        """
        if n_workers < 1:
            raise ValueError(f"n_workers must be at least 1, got {n_workers}.")
        self.n_workers = n_workers
        self.random_source = SharedRandomSource(seed)
        self.predict_excluded = predict_excluded
        self.exclusion_flag_index = exclusion_flag_index
        self.excluded_class_name = excluded_class_name
        self._tree_created_callbacks = list(tree_created_callbacks or [])

        self._create_other_class = False
        self._percentage_other = 0.0
        self._other_class_name = DEFAULT_OTHER_CLASS_NAME

        self._forest = ()
        self._categories = ()
        self._code_of = {}
        self._X = None
        self._n_features = 0
        self._bootstrap_size = 0
        self._n_random_parameters = 0

    # Configuration

    def configure_other_class(self, threshold_percent, label=DEFAULT_OTHER_CLASS_NAME):
        """
        Enables the low-confidence category.

        Args:
            threshold_percent (float): Minimum share of votes (in %) a majority needs to be kept.
            label (str): Name of the low-confidence category. Defaults to "other".
        """
        if not 0 <= threshold_percent <= 100:
            raise ValueError(f"threshold_percent must be in [0, 100], got {threshold_percent}.")
        self._create_other_class = True
        self._percentage_other = threshold_percent / 100.0
        self._other_class_name = label

    def disable_other_class(self):
        self._create_other_class = False

    def add_tree_created_callback(self, callback):
        self._tree_created_callbacks.append(callback)

    def remove_tree_created_callback(self, callback):
        self._tree_created_callbacks.remove(callback)

    @property
    def other_class_enabled(self):
        return self._create_other_class

    @property
    def other_class_name(self):
        return self._other_class_name

    @property
    def other_threshold_percent(self):
        return self._percentage_other * 100.0

    @property
    def categories(self):
        return self._categories

    @property
    def forest(self):
        return self._forest

    @property
    def n_features(self):
        return self._n_features

    @property
    def bootstrap_size(self):
        return self._bootstrap_size

    @property
    def n_random_parameters(self):
        return self._n_random_parameters

    @property
    def is_trained(self):
        return self._X is not None and len(self._forest) > 0

    # Training

    def train(self, samples, labels, forest_size, percent_parameters=0):
        """
        Builds a new forest, discarding the previous one.

        Args:
            samples (array-like or pd.DataFrame): Training samples of shape (n_samples, dim).
            labels (array-like): Category of each sample.
            forest_size (int): Number of trees to build.
            percent_parameters (float): Percentage of dimensions drawn at each node. 0 uses sqrt(dim).

        Raises:
            ValueError: If the inputs are inconsistent.
            ForestTrainingError: If building any tree failed. The engine is left untrained.
        """
        X = as_sample_matrix(samples)
        labels = as_label_array(labels, X.shape[0])
        if forest_size < 1:
            raise ValueError(f"forest_size must be at least 1, got {forest_size}.")
        if not 0 <= percent_parameters <= 100:
            raise ValueError(f"percent_parameters must be in [0, 100], got {percent_parameters}.")
        if not self.predict_excluded:
            self._checked_flag_index(X.shape[1])

        self._forest = ()
        self._X = None

        categories = tuple(dict.fromkeys(labels))
        code_of = {category: i for i, category in enumerate(categories)}
        codes = np.array([code_of[label] for label in labels], dtype=int)
        n_features = X.shape[1]
        bootstrap_size = max(1, int(BOOTSTRAP_FRACTION * X.shape[0]))
        n_random_parameters = self._parameter_subset_size(n_features, percent_parameters)

        print(f"Training forest of {forest_size} trees on {X.shape[0]} samples "
              f"({len(categories)} categories, {n_random_parameters}/{n_features} parameters per node)...")
        builder = TreeBuilder(X.copy(), codes, categories, n_random_parameters, self.random_source)
        trees = self._populate_forest(builder, forest_size, bootstrap_size)

        self._categories = categories
        self._code_of = code_of
        self._X = builder.X
        self._n_features = n_features
        self._bootstrap_size = bootstrap_size
        self._n_random_parameters = n_random_parameters
        self._forest = tuple(trees)

    def _checked_flag_index(self, n_features):
        # Settings may change between train and predict
        if not 0 <= self.exclusion_flag_index < n_features:
            raise ValueError(f"exclusion_flag_index {self.exclusion_flag_index} out of bounds for {n_features} features.")
        return self.exclusion_flag_index

    @staticmethod
    def _parameter_subset_size(n_features, percent_parameters):
        if percent_parameters == 0:
            size = int(math.sqrt(n_features))
        else:
            size = int(percent_parameters / 100.0 * n_features)
        return min(n_features, max(1, size))

    def _populate_forest(self, builder, forest_size, bootstrap_size):
        share = forest_size // self.n_workers
        trees = []
        if share > 0:
            with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
                futures = [executor.submit(self._build_trees, builder, share, bootstrap_size)
                           for _ in range(self.n_workers)]
            failures = [future.exception() for future in futures if future.exception() is not None]
            if failures:
                raise ForestTrainingError(
                    f"{len(failures)} of {self.n_workers} tree-building workers failed: {failures[0]!r}"
                ) from failures[0]
            for future in futures:
                trees.extend(future.result())

        remainder = forest_size - len(trees)
        try:
            trees.extend(self._build_trees(builder, remainder, bootstrap_size))
        except Exception as e:
            raise ForestTrainingError(f"Building the remaining {remainder} trees failed: {e!r}") from e
        return trees

    def _build_trees(self, builder, count, bootstrap_size):
        trees = []
        n_samples = builder.X.shape[0]
        for _ in range(count):
            indices = self.random_source.draw_unique(n_samples, bootstrap_size)
            trees.append(builder.build(indices))
            for callback in self._tree_created_callbacks:
                callback()
        return trees

    # Prediction

    def predict(self, sample):
        """
        Classifies one sample by majority vote over the forest.

        Args:
            sample (array-like): Feature vector of the training dimensionality.

        Returns:
            Prediction: Predicted category (after low-confidence demotion), raw majority and vote counts.

        Raises:
            RuntimeError: If no forest has been trained.
            ValueError: If the sample dimensionality differs from the training data.
        """
        if not self.is_trained:
            raise RuntimeError("Forest is not trained yet.")
        sample = self._as_sample(sample)
        total_trees = len(self._forest)

        if not self.predict_excluded and sample[self._checked_flag_index(self._n_features)] == 1:
            return Prediction(self.excluded_class_name, self.excluded_class_name, total_trees, total_trees)

        votes = self._tally(sample)
        majority = int(votes.argmax())
        max_class = self._categories[majority]
        tree_predicted_class = int(votes[majority])
        predicted_class = max_class
        if self._create_other_class and tree_predicted_class < total_trees * self._percentage_other:
            predicted_class = self._other_class_name
        return Prediction(predicted_class, max_class, tree_predicted_class, total_trees)

    def vote_counts(self, sample):
        """
        Raw per-category vote tally of the forest for one sample.

        Returns:
            pd.Series: Number of trees voting for each training category.
        """
        if not self.is_trained:
            raise RuntimeError("Forest is not trained yet.")
        votes = self._tally(self._as_sample(sample))
        return pd.Series(votes, index=list(self._categories), name='votes')

    def _tally(self, sample):
        votes = np.zeros(len(self._categories), dtype=int)
        for tree in self._forest:
            votes[self._code_of[descend(tree, sample)]] += 1
        return votes

    def _as_sample(self, sample):
        if isinstance(sample, (pd.Series, pd.DataFrame)):
            sample = sample.values
        sample = np.asarray(sample, dtype=float)
        if sample.ndim == 2 and sample.shape[0] == 1:
            sample = sample[0]
        if sample.ndim != 1:
            raise ValueError(f"Expected a single sample, got shape {sample.shape}.")
        if sample.shape[0] != self._n_features:
            raise ValueError(f"Sample has {sample.shape[0]} parameters, the forest was trained on {self._n_features}.")
        return sample

    # Cross-validation

    def cross_validation_categories(self, labels):
        """
        Category set of a cross-validation run: training labels plus the synthetic categories in use.

        Args:
            labels (array-like): Training labels.

        Returns:
            list[str]: Distinct labels in first-seen order, then "other" and "excluded" when enabled.
        """
        categories = list(dict.fromkeys(labels))
        if self._create_other_class and self._other_class_name not in categories:
            categories.append(self._other_class_name)
        if not self.predict_excluded and self.excluded_class_name not in categories:
            categories.append(self.excluded_class_name)
        return categories

    def evaluate_cross_validation(self, iterations, samples, labels, forest_size, percent_parameters=0):
        """
        Repeated two-block cross-validation: each block is predicted by a forest trained on the other one.

        Args:
            iterations (int): Number of random block splits.
            samples (array-like or pd.DataFrame): Samples of shape (n_samples, dim).
            labels (array-like): Category of each sample.
            forest_size (int): Trees per trained forest.
            percent_parameters (float): Percentage of dimensions drawn at each node. 0 uses sqrt(dim).

        Returns:
            ConfusionMatrix: Counts aggregated over every iteration and both directions.
        """
        X = as_sample_matrix(samples)
        labels = as_label_array(labels, X.shape[0])
        return cross_validate(self, iterations, X, labels, forest_size, percent_parameters)
