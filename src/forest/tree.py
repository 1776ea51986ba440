# src/forest/tree.py
from dataclasses import dataclass
from typing import Union
import numpy as np


@dataclass(frozen=True)
class LeafNode:
    category: str


@dataclass(frozen=True, eq=False)
class SplitNode:
    """
    Internal node routing a sample by its cosine similarity to `classifier` over `dimensions`.
    Samples more similar than `threshold` go left, the rest go right.
    """
    dimensions: np.ndarray
    classifier: np.ndarray
    threshold: float
    left: 'TreeNode'
    right: 'TreeNode'


TreeNode = Union[LeafNode, SplitNode]


def cosine_similarity(a, b, dimensions):
    """
    Cosine similarity of two vectors restricted to the given dimensions.

    Args:
        a (np.ndarray): First vector.
        b (np.ndarray): Second vector.
        dimensions (np.ndarray): Indices of the dimensions taking part in the measure.

    Returns:
        float: sum(a_i * b_i) / (|a| * |b|) over `dimensions`, 0.0 if either norm is zero.
    """
    a_sel = a[dimensions]
    b_sel = b[dimensions]
    norms = np.sqrt(np.dot(a_sel, a_sel)) * np.sqrt(np.dot(b_sel, b_sel))
    if norms == 0:
        return 0.0
    return float(np.dot(a_sel, b_sel) / norms)


def cosine_similarities(rows, vector, dimensions):
    """
    Vectorised `cosine_similarity` of every row of a matrix against one vector.

    Args:
        rows (np.ndarray): Matrix of shape (n, dim).
        vector (np.ndarray): Vector of shape (dim, ).
        dimensions (np.ndarray): Indices of the dimensions taking part in the measure.

    Returns:
        np.ndarray: Similarities of shape (n, ), 0.0 where a norm is zero.
    """
    rows_sel = rows[:, dimensions]
    vector_sel = vector[dimensions]
    dots = rows_sel @ vector_sel
    norms = np.sqrt(np.einsum('ij,ij->i', rows_sel, rows_sel)) * np.sqrt(np.dot(vector_sel, vector_sel))
    similarities = np.zeros_like(dots)
    np.divide(dots, norms, out=similarities, where=norms > 0)
    return similarities


def descend(node, sample):
    """
    Walks a tree from `node` down to a leaf for one sample.

    Args:
        node (TreeNode): Root of the tree.
        sample (np.ndarray): Sample of the forest's dimensionality.

    Returns:
        str: Category of the leaf reached.
    """
    while isinstance(node, SplitNode):
        if cosine_similarity(sample, node.classifier, node.dimensions) > node.threshold:
            node = node.left
        else:
            node = node.right
    return node.category


def iter_leaves(node):
    """Yields every leaf of a tree."""
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, LeafNode):
            yield current
        else:
            stack.append(current.right)
            stack.append(current.left)


def tree_depth(node):
    """Number of split nodes on the longest root-to-leaf path."""
    depth = 0
    stack = [(node, 0)]
    while stack:
        current, level = stack.pop()
        if isinstance(current, LeafNode):
            depth = max(depth, level)
        else:
            stack.append((current.left, level + 1))
            stack.append((current.right, level + 1))
    return depth


class TreeBuilder:

    def __init__(self, X, codes, categories, n_random_parameters, random_source):
        """
        Grows cosine-similarity decision trees over a fixed training set.
        Splits are anchored on the centroid of the dominant category of each node, no depth limit or pruning.

        Args:
            X (np.ndarray): Training samples of shape (n_samples, dim).
            codes (np.ndarray): Category index of each training sample, shape (n_samples, ).
            categories (tuple[str]): Category names indexed by code.
            n_random_parameters (int): Number of dimensions drawn for each split node.
            random_source (SharedRandomSource): Shared generator used for the dimension draws.
        """
        if not 1 <= n_random_parameters <= X.shape[1]:
            raise ValueError(f"n_random_parameters must be in [1, {X.shape[1]}], got {n_random_parameters}.")
        self.X = X
        self.codes = codes
        self.categories = categories
        self.n_random_parameters = n_random_parameters
        self.random_source = random_source

    def build(self, indices):
        """
        Builds one tree from a subset of training indices.

        Nodes are planned top-down with an explicit stack and assembled bottom-up,
        so deep trees do not depend on the interpreter recursion limit.

        Args:
            indices (array-like): Training-set indices of the samples reaching the root.

        Returns:
            TreeNode: Root of the tree.
        """
        indices = np.asarray(indices, dtype=int)
        if indices.size == 0:
            raise ValueError("Cannot build a tree from an empty index set.")

        # plans[i] is a category code for leaves or (dimensions, classifier, threshold, left_id, right_id)
        plans = [None]
        pending = [(0, indices)]
        while pending:
            plan_id, subset = pending.pop()
            if subset.size == 1:
                plans[plan_id] = int(self.codes[subset[0]])
                continue

            dimensions, classifier, threshold, goes_left = self._split(subset)
            left_id, right_id = len(plans), len(plans) + 1
            plans.extend([None, None])
            plans[plan_id] = (dimensions, classifier, threshold, left_id, right_id)
            pending.append((right_id, subset[~goes_left]))
            pending.append((left_id, subset[goes_left]))

        # Children always carry larger ids than their parent
        nodes = [None] * len(plans)
        for plan_id in range(len(plans) - 1, -1, -1):
            plan = plans[plan_id]
            if isinstance(plan, int):
                nodes[plan_id] = LeafNode(self.categories[plan])
            else:
                dimensions, classifier, threshold, left_id, right_id = plan
                nodes[plan_id] = SplitNode(dimensions, classifier, threshold, nodes[left_id], nodes[right_id])
                nodes[left_id] = nodes[right_id] = None
        return nodes[0]

    def make_classifier(self, subset):
        """
        Centroid of the majority category among the subset (ties go to the lowest category index).

        Args:
            subset (np.ndarray): Training-set indices.

        Returns:
            np.ndarray: Classifier vector of the full dimensionality.
        """
        subset_codes = self.codes[subset]
        majority = np.bincount(subset_codes, minlength=len(self.categories)).argmax()
        return self.X[subset[subset_codes == majority]].mean(axis=0)

    def _split(self, subset):
        dimensions = self.random_source.draw_unique(self.X.shape[1], self.n_random_parameters)
        classifier = self.make_classifier(subset)
        similarities = cosine_similarities(self.X[subset], classifier, dimensions)
        threshold = (similarities.min() + similarities.max()) / 2.0

        goes_left = similarities >= threshold
        # Both children must be non-empty: move the first sample across
        if not goes_left.any():
            goes_left[0] = True
        elif goes_left.all():
            goes_left[0] = False
        return dimensions, classifier, float(threshold), goes_left
