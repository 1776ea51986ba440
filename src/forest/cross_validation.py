# src/forest/cross_validation.py
import numpy as np
from src.forest.confusion import ConfusionMatrix

BLOCK_A_FRACTION = 0.6


def split_blocks(n_samples, random_source):
    """
    Splits the sample indices into two complementary random blocks.

    Args:
        n_samples (int): Number of samples.
        random_source (SharedRandomSource): Generator used to draw block A.

    Returns:
        tuple:
            - np.ndarray: Sorted indices of block A (int(0.6 * n_samples) of them).
            - np.ndarray: Sorted indices of block B, the complement of A.
    """
    if n_samples < 2:
        raise ValueError(f"Cross-validation needs at least 2 samples, got {n_samples}.")
    size_a = int(n_samples * BLOCK_A_FRACTION)
    in_a = np.zeros(n_samples, dtype=bool)
    in_a[random_source.draw_unique(n_samples, size_a)] = True
    return np.flatnonzero(in_a), np.flatnonzero(~in_a)


def record_predictions(matrix, true_labels, predictions, other_class_name=None):
    """
    Adds a batch of held-out predictions to a confusion matrix.
    Vote strength is accumulated for every prediction except the ones in the low-confidence category.

    Args:
        matrix (ConfusionMatrix): Matrix to update.
        true_labels (array-like): True category of each predicted sample.
        predictions (list[Prediction]): Forest predictions, aligned with `true_labels`.
        other_class_name (str, optional): Low-confidence category, None when it is disabled.
    """
    for true_label, prediction in zip(true_labels, predictions):
        matrix.record(true_label, prediction.predicted_class)
        if other_class_name is None or prediction.predicted_class != other_class_name:
            matrix.record_vote_strength(prediction.predicted_class, prediction.tree_predicted_class,
                                        prediction.total_trees)


def cross_validate(forest, iterations, X, labels, forest_size, percent_parameters=0):
    """
    Repeated two-block cross-validation of a CosineRandomForest.

    Each iteration draws block A (60% of the samples) and its complement B, trains on A and predicts B,
    then trains on B and predicts A. The forest is left trained on the last block B.

    Args:
        forest (CosineRandomForest): Engine to train and evaluate. Its other/excluded settings apply.
        iterations (int): Number of random splits.
        X (np.ndarray): Samples of shape (n_samples, dim).
        labels (np.ndarray): Category of each sample.
        forest_size (int): Trees per trained forest.
        percent_parameters (float): Percentage of dimensions drawn at each node. 0 uses sqrt(dim).

    Returns:
        ConfusionMatrix: Counts over every iteration and both directions.
    """
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}.")
    n_samples = X.shape[0]
    matrix = ConfusionMatrix(forest.cross_validation_categories(labels))

    for iteration in range(iterations):
        block_a, block_b = split_blocks(n_samples, forest.random_source)
        print(f"  Cross-validation iteration {iteration + 1}/{iterations} "
              f"(block A: {block_a.size}, block B: {block_b.size})")
        for train_idx, test_idx in ((block_a, block_b), (block_b, block_a)):
            forest.train(X[train_idx], labels[train_idx], forest_size, percent_parameters)
            predictions = [forest.predict(X[i]) for i in test_idx]
            record_predictions(matrix, labels[test_idx], predictions,
                               forest.other_class_name if forest.other_class_enabled else None)

    print(f"  Cross-validation finished. Error: {matrix.error_percentage:.2f}% over {matrix.total} predictions.")
    return matrix
