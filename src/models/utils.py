from src.models.cosine_forest import CosineForestModel
from src.models.random_forest import RandomForestModel

MODEL_REGISTRY = {
    "CosineForest": CosineForestModel,
    "RandomForest": RandomForestModel,
}


def get_model_instance(model_name, model_params=None, seed=None):
    """
    Factory function to instantiate a model wrapper by name.

    Args:
        model_name (str): Name of the model to instantiate. One of: "CosineForest", "RandomForest".
        model_params (dict, optional): Dictionary of hyperparameters to pass to the model.
        seed (int, optional): Used as `random_state` unless the parameters already set one.

    Returns:
        BaseModel: An instance of the requested model class.

    Raises:
        ValueError: If the provided model name is not recognized.
    """
    model_params = dict(model_params) if model_params is not None else dict()
    if seed is not None and "random_state" not in model_params:
        model_params["random_state"] = seed

    if model_name not in MODEL_REGISTRY:
        raise ValueError(f"Unknown model name: {model_name}")
    return MODEL_REGISTRY[model_name](model_params=model_params)
