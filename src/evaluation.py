# src/evaluation.py
import os
import json
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns


def numpy_converter(obj):
    """
    Converts numpy objects to native Python types for JSON serialization.

    Args:
        obj (Any): Object to convert.

    Returns:
        int, float, list, or str: Serializable representation of the object.
    """
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    return str(obj)


def _nan_to_none(series):
    return {str(k): (None if pd.isna(v) else float(v)) for k, v in series.items()}


def summarize_confusion(matrix):
    """
    Flattens a confusion matrix into JSON-friendly statistics.

    Args:
        matrix (ConfusionMatrix): Cross-validation result.

    Returns:
        dict: 'categories', 'counts', 'total', 'error_percentage', per-category 'accuracy'
              and 'vote_strength' (None where undefined).
    """
    error = matrix.error_percentage
    return {
        'categories': [str(c) for c in matrix.categories],
        'counts': matrix.counts.tolist(),
        'total': matrix.total,
        'error_percentage': None if np.isnan(error) else error,
        'accuracy': _nan_to_none(matrix.category_accuracy()),
        'vote_strength': _nan_to_none(matrix.vote_strength()),
    }


def save_summary_results(summary_data, config_used, base_filename, output_dir):
    """
    Saves the experiment summary to a JSON file.

    Args:
        summary_data (dict): Summary results keyed by dataset.
        config_used (dict): Configuration dictionary used in the experiment.
        base_filename (str): Prefix for the output file.
        output_dir (str): Directory where the JSON file will be saved.

    Returns:
        str: Path of the written file.
    """
    summary_results_path = os.path.join(output_dir, f"{base_filename}_summary.json")
    full_summary_data = {
        'config': config_used,
        'summary': summary_data
    }
    with open(summary_results_path, 'w') as f:
        json.dump(full_summary_data, f, indent=4, default=numpy_converter)
    print(f"Experiment summary saved to: {summary_results_path}")
    return summary_results_path


def plot_confusion_matrix(matrix, title, output_path):
    """
    Draws a confusion matrix as an annotated heatmap, rows labelled with per-category accuracy.

    Args:
        matrix (ConfusionMatrix): Matrix to draw.
        title (str): Plot title.
        output_path (str): PNG file to write.
    """
    sns.set_theme(style="white")
    df_plot = matrix.to_frame()
    accuracy = matrix.category_accuracy()
    df_plot.index = [f"{c} ({a:.1f}%)" if not pd.isna(a) else str(c) for c, a in accuracy.items()]

    size = max(4, 1.2 * len(matrix.categories) + 2)
    plt.figure(figsize=(size + 2, size))
    sns.heatmap(df_plot, annot=True, fmt='d', cmap='Blues', cbar=False)
    error = matrix.error_percentage
    error_label = "n/a" if np.isnan(error) else f"{error:.2f}%"
    plt.title(f"{title} - error {error_label}")
    plt.xlabel('Predicted category')
    plt.ylabel('True category')
    plt.tight_layout()

    os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)
    try:
        plt.savefig(output_path)
        print(f"   Confusion matrix plot saved to: {output_path}")
    except Exception as e:
        print(f"   Error saving plot {output_path}: {e}")
    plt.close()
