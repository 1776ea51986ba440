# src/models/random_forest.py
from sklearn.ensemble import RandomForestClassifier
from sklearn.base import BaseEstimator
from src.models.base_model import BaseModel

DEFAULT_RF_PARAMS = {
    'n_estimators': 100,
    'max_features': 'sqrt',
    'n_jobs': -1  # Use all available CPU cores
}


class RandomForestModel(BaseModel):
    """
    Gini-based scikit-learn RandomForestClassifier used as a reference next to the cosine forest.

    Its axis-aligned thresholds react to the magnitude of each parameter, while the cosine forest
    only sees the direction of a sample (brightness of a colour, overall intensity of a spectrum).
    Both are trained and queried on the same data so the experiment output shows where the two
    notions of similarity disagree.
    """

    def _build_model(self) -> BaseEstimator:
        """
        Constructs the RandomForestClassifier using default and user-specified parameters.

        Returns:
            BaseEstimator: A configured scikit-learn RandomForestClassifier instance.
        """
        params = {**DEFAULT_RF_PARAMS, **self.model_params}
        return RandomForestClassifier(**params)
