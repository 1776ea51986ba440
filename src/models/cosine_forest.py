# src/models/cosine_forest.py
import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_is_fitted
from src.forest.cosine_forest import CosineRandomForest, DEFAULT_N_WORKERS, DEFAULT_OTHER_CLASS_NAME, \
    as_sample_matrix
from src.models.base_model import BaseModel

DEFAULT_COSINE_FOREST_PARAMS = {
    'n_estimators': 500,
    'percent_parameters': 0,
    'n_workers': DEFAULT_N_WORKERS
}


class CosineForestClassifier(ClassifierMixin, BaseEstimator):

    def __init__(self, n_estimators=500, percent_parameters=0, n_workers=DEFAULT_N_WORKERS,
                 other_threshold=None, other_label=DEFAULT_OTHER_CLASS_NAME, random_state=None):
        """
        scikit-learn compatible front end of CosineRandomForest.

        Args:
            n_estimators (int): Number of trees. Defaults to 500.
            percent_parameters (float): Percentage of dimensions drawn at each node. 0 uses sqrt(dim).
            n_workers (int): Size of the tree-building thread pool.
            other_threshold (float, optional): Vote share (in %) under which predictions become `other_label`.
                                               None disables the low-confidence category.
            other_label (str): Name of the low-confidence category.
            random_state (int, optional): Seed of the forest's random source.
        """
        self.n_estimators = n_estimators
        self.percent_parameters = percent_parameters
        self.n_workers = n_workers
        self.other_threshold = other_threshold
        self.other_label = other_label
        self.random_state = random_state

    def fit(self, X, y):
        """
        Trains a new cosine forest.

        Args:
            X (array-like): Training features.
            y (array-like): Training labels.

        Returns:
            CosineForestClassifier: self.
        """
        forest = CosineRandomForest(n_workers=self.n_workers, seed=self.random_state)
        if self.other_threshold is not None:
            forest.configure_other_class(self.other_threshold, self.other_label)
        forest.train(X, y, self.n_estimators, self.percent_parameters)

        self.forest_ = forest
        self.classes_ = np.array(forest.categories, dtype=object)
        self.n_features_in_ = forest.n_features
        return self

    def predict(self, X):
        """
        Predicts the category of each row, low-confidence rows included.

        Args:
            X (array-like): Input features.

        Returns:
            np.ndarray: Predicted categories.
        """
        check_is_fitted(self, 'forest_')
        X = as_sample_matrix(X)
        return np.array([self.forest_.predict(row).predicted_class for row in X], dtype=object)

    def predict_proba(self, X):
        """
        Share of trees voting for each class, columns ordered as `classes_`.

        Args:
            X (array-like): Input features.

        Returns:
            np.ndarray: Vote fractions of shape (n_samples, n_classes).
        """
        check_is_fitted(self, 'forest_')
        X = as_sample_matrix(X)
        n_trees = len(self.forest_.forest)
        return np.vstack([self.forest_.vote_counts(row).values / n_trees for row in X])


class CosineForestModel(BaseModel):
    """
    Wrapper for CosineForestClassifier.

    Inherits all model interface methods from BaseModel, and exposes the
    underlying engine through `get_forest()` for vote-level predictions.
    """

    def _build_model(self):
        """
        Constructs the CosineForestClassifier using default and user-specified parameters.

        Returns:
            CosineForestClassifier: An unfitted classifier.
        """
        params = {**DEFAULT_COSINE_FOREST_PARAMS, **self.model_params}
        return CosineForestClassifier(**params)

    def get_forest(self):
        """
        Returns the trained engine.

        Raises:
            RuntimeError: If the model has not been fitted yet.
        """
        if not self.fitted:
            raise RuntimeError("Model is not fitted yet.")
        return self.model.forest_
