# src/data_loader.py
import pandas as pd


def clean_label(val):
    """
    Normalises a raw category label (strips byte-string markers and surrounding whitespace).

    Args:
        val: Raw label as read from the CSV file.

    Returns:
        str: Cleaned label.
    """
    val = str(val)
    if val.startswith("b'") and val.endswith("'"):
        val = val[2:-1]
    return val.strip()


def read_labeled_samples(data_path, label_column='label'):
    """
    Reads a CSV file of training samples, one row per sample and one column per parameter.

    Args:
        data_path (str): Path to the CSV file.
        label_column (str): Name of the column holding the category. Defaults to 'label'.

    Returns:
        tuple: Features (X) as float DataFrame and labels (y) as Series of str.

    Raises:
        ValueError: If the label column is missing or a feature is not numeric.
    """
    df = pd.read_csv(data_path)
    if label_column not in df.columns:
        raise ValueError(f"Label column '{label_column}' not found in {data_path}. Columns: {list(df.columns)}")

    y = df[label_column].apply(clean_label)
    X = df.drop(columns=[label_column])
    try:
        X = X.astype(float)
    except ValueError as e:
        raise ValueError(f"Non-numeric feature values in {data_path}: {e}") from e

    return X, y.rename('label')


def read_unlabeled_samples(data_path, feature_names=None):
    """
    Reads a CSV file of samples to classify.

    Args:
        data_path (str): Path to the CSV file.
        feature_names (list[str], optional): Expected columns, in training order. The file is reordered to match.

    Returns:
        pd.DataFrame: Float features.

    Raises:
        ValueError: If expected columns are missing.
    """
    X = pd.read_csv(data_path)
    if feature_names is not None:
        missing = [name for name in feature_names if name not in X.columns]
        if missing:
            raise ValueError(f"Columns {missing} missing from {data_path}.")
        X = X[list(feature_names)]
    return X.astype(float)


def load_dataset(dataset_conf):
    """
    Loads a dataset entry of the experiment configuration.

    Args:
        dataset_conf (dict): Dataset metadata. Keys:
            - 'name' (str)
            - 'file_path' (str): labelled training samples
            - 'label_column' (str, optional): defaults to 'label'
            - 'predict_file_path' (str, optional): samples to classify after training

    Returns:
        tuple:
            - pd.DataFrame: Training features.
            - pd.Series: Training labels.
            - pd.DataFrame or None: Samples to classify, if configured.
    """
    if 'file_path' not in dataset_conf:
        raise ValueError(f"Dataset '{dataset_conf.get('name')}' has no 'file_path'.")

    X, y = read_labeled_samples(dataset_conf['file_path'], dataset_conf.get('label_column', 'label'))
    X_predict = None
    if dataset_conf.get('predict_file_path'):
        X_predict = read_unlabeled_samples(dataset_conf['predict_file_path'], feature_names=list(X.columns))

    print(f"Loaded {X.shape[0]} samples with {X.shape[1]} parameters and {y.nunique()} categories.")
    return X, y, X_predict
