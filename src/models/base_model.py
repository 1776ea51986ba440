# src/models/base_model.py
import numpy as np
from sklearn.base import BaseEstimator
from abc import ABC, abstractmethod


class BaseModel(ABC):

    def __init__(self, model_params=None):
        """
        Abstract Base Class for the classifiers compared in an experiment.
        Enforces a standardized interface for training and inference using scikit-learn compatible models

        Args:
            model_params (dict, optional): Parameters to configure the model. If None, an empty dict is used.
        """
        self.model_params = model_params if model_params is not None else {}
        self.model: BaseEstimator = self._build_model()
        self.fitted = False

    @abstractmethod
    def _build_model(self) -> BaseEstimator:
        """
        Instantiates and returns the scikit-learn compatible classifier.

        Returns:
            BaseEstimator: The unfitted classifier.
        """
        pass

    def fit(self, X, y):
        """
        Fits the model to the provided samples and labels.

        Args:
            X (array-like): Training features.
            y (array-like): Training labels.
        """
        self.model.fit(X, np.asarray(y))
        self.fitted = True

    def predict(self, X):
        """
        Predicts the category of each sample.

        Args:
            X (array-like): Input features.

        Returns:
            np.ndarray: Predicted categories.

        Raises:
            RuntimeError: If the model has not been fitted yet.
        """
        if not self.fitted:
            raise RuntimeError("Model is not fitted yet.")
        return self.model.predict(X)

    def predict_proba(self, X):
        """
        Predicts class probabilities using the fitted model.

        Args:
            X (array-like): Input features.

        Returns:
            np.ndarray: Class probabilities, columns ordered as the classifier's `classes_`.

        Raises:
            RuntimeError: If the model is not yet fitted.
        """
        if not self.fitted:
            raise RuntimeError("Model is not fitted yet.")
        return self.model.predict_proba(X)

    def classes(self):
        """
        Returns the categories seen during fitting.

        Raises:
            RuntimeError: If the model is not yet fitted.
        """
        if not self.fitted:
            raise RuntimeError("Model is not fitted yet.")
        return list(self.model.classes_)

    def get_model(self):
        return self.model

    def is_fitted(self):
        return self.fitted

    def clone_model(self):
        """
        Creates a new, unfitted instance of the same class with identical parameters.

        Returns:
            BaseModel: A new instance of the current model class.
        """
        return type(self)(model_params=self.model_params)
