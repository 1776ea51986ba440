# src/forest/confusion.py
import numpy as np
import pandas as pd


class ConfusionMatrix:

    def __init__(self, categories):
        """
        Square true-vs-predicted count matrix over a fixed category set,
        plus the vote strength accumulated for each predicted category.

        Args:
            categories (list[str]): Category names. Their order indexes rows (true) and columns (predicted).
        """
        categories = tuple(categories)
        if len(set(categories)) != len(categories):
            raise ValueError(f"Categories must be unique, got {list(categories)}.")
        self.categories = categories
        self._index = {category: i for i, category in enumerate(categories)}
        self.counts = np.zeros((len(categories), len(categories)), dtype=np.int64)
        self.predicted_votes = np.zeros(len(categories), dtype=np.int64)
        self.total_votes = np.zeros(len(categories), dtype=np.int64)
        self._error_percentage = None

    def index_of(self, category):
        if category not in self._index:
            raise ValueError(f"Unknown category '{category}'. Known categories: {list(self.categories)}")
        return self._index[category]

    def record(self, true_category, predicted_category):
        """Counts one prediction in cell [true_category][predicted_category]."""
        self.counts[self.index_of(true_category), self.index_of(predicted_category)] += 1
        self._error_percentage = None

    def add_counts(self, counts):
        """
        Adds a block of counts laid out over the same category order.

        Args:
            counts (np.ndarray): Square matrix of shape (n_categories, n_categories).
        """
        counts = np.asarray(counts)
        if counts.shape != self.counts.shape:
            raise ValueError(f"Count matrix shape mismatch: expected {self.counts.shape}, got {counts.shape}")
        self.counts += counts.astype(np.int64)
        self._error_percentage = None

    def record_vote_strength(self, category, votes, total):
        """
        Accumulates the votes won by a predicted category out of the trees consulted.

        Args:
            category (str): Predicted category.
            votes (int): Trees that voted for it.
            total (int): Trees in the forest.
        """
        i = self.index_of(category)
        self.predicted_votes[i] += votes
        self.total_votes[i] += total

    @property
    def total(self):
        return int(self.counts.sum())

    @property
    def error_percentage(self):
        """Percentage of off-diagonal counts. Cached until the matrix changes; NaN when empty."""
        if self._error_percentage is None:
            total = self.total
            if total == 0:
                self._error_percentage = float('nan')
            else:
                errors = total - int(np.trace(self.counts))
                self._error_percentage = 100.0 * errors / total
        return self._error_percentage

    def category_accuracy(self):
        """
        Per-category accuracy: correct predictions over all samples of that true category.

        Returns:
            pd.Series: Percentages indexed by category, NaN where the category never occurred.
        """
        row_sums = self.counts.sum(axis=1)
        diagonal = np.diag(self.counts)
        with np.errstate(divide='ignore', invalid='ignore'):
            accuracy = np.where(row_sums > 0, 100.0 * diagonal / row_sums, np.nan)
        return pd.Series(accuracy, index=list(self.categories), name='accuracy_%')

    def vote_strength(self):
        """
        Mean share of trees agreeing with each predicted category.

        Returns:
            pd.Series: Percentages indexed by category, NaN where nothing was predicted.
        """
        with np.errstate(divide='ignore', invalid='ignore'):
            strength = np.where(self.total_votes > 0, 100.0 * self.predicted_votes / self.total_votes, np.nan)
        return pd.Series(strength, index=list(self.categories), name='vote_strength_%')

    def to_frame(self):
        """Counts as a DataFrame, true categories as rows and predicted categories as columns."""
        frame = pd.DataFrame(self.counts, index=list(self.categories), columns=list(self.categories))
        frame.index.name = 'true'
        frame.columns.name = 'predicted'
        return frame

    def summary(self):
        """Counts with per-category accuracy and vote strength appended as extra columns."""
        frame = self.to_frame()
        frame['accuracy_%'] = self.category_accuracy().round(1)
        frame['vote_strength_%'] = self.vote_strength().round(1)
        return frame

    def __repr__(self):
        return f"ConfusionMatrix(categories={list(self.categories)}, total={self.total})"
