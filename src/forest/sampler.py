# src/forest/sampler.py
import threading
import numpy as np


class SharedRandomSource:

    def __init__(self, seed=None):
        """
        Random source shared by every tree-building worker.
        All draws go through a single lock, numpy generators are not safe to call concurrently.

        Args:
            seed (int, optional): Seed for the underlying numpy Generator. None draws fresh OS entropy.
        """
        self.seed = seed
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def draw_unique(self, range_size, count):
        """
        Draws distinct integer indices in [0, range_size) without replacement.

        Args:
            range_size (int): Size of the index range.
            count (int): Number of indices to draw.

        Returns:
            np.ndarray: `count` distinct indices (order carries no meaning).

        Raises:
            ValueError: If count exceeds range_size or either value is negative.
        """
        if range_size < 0 or count < 0:
            raise ValueError(f"range_size and count must be non-negative (got {range_size}, {count}).")
        if count > range_size:
            raise ValueError(f"Cannot draw {count} unique indices out of {range_size}.")

        with self._lock:
            return self._rng.choice(range_size, size=count, replace=False)
