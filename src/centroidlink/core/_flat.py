from __future__ import annotations

__all__ = []

import logging
import math
from collections.abc import Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray

from centroidlink.core._boundary import Status, compute_centroid_linkage
from centroidlink.types import ArrayND
from centroidlink.utils._array import as_numpy, flatten

_logger = logging.getLogger(__name__)


def normalize_features(embeddings: ArrayND[float]) -> NDArray[np.float64]:
    """
    Scales every row to unit L2 norm.

    Rows with zero norm become all zeros.

    Parameters
    ----------
    embeddings : ArrayND, shape - (N, ...)
        Feature vectors, flattened to (N, D)

    Returns
    -------
    NDArray[np.float64]
        C-contiguous array of shape (N, D)
    """
    x = np.ascontiguousarray(flatten(embeddings), dtype=np.float64)
    norms = np.sqrt(np.einsum("ij,ij->i", x, x))
    scale = np.divide(1.0, norms, out=np.zeros_like(norms), where=norms > 0)
    return np.ascontiguousarray(x * scale[:, np.newaxis])


def similarity_to_distance(similarity: float) -> float:
    """
    Converts a cosine similarity threshold to the Euclidean distance between unit vectors.

    Parameters
    ----------
    similarity : float
        Cosine similarity; values outside [-1, 1] are clamped

    Returns
    -------
    float
        ``sqrt(2 - 2 * similarity)``, or infinity when `similarity` is NaN
    """
    if math.isnan(similarity):
        return math.inf
    if similarity < -1.0 or similarity > 1.0:
        _logger.debug(f"Clustering threshold {similarity} outside cosine range; clamping to [-1, 1]")
    clamped = max(-1.0, min(1.0, similarity))
    return math.sqrt(max(0.0, 2.0 - 2.0 * clamped))


def assign_clusters(linkage: NDArray[Any], distance_threshold: float) -> NDArray[np.intp]:
    """
    Cuts a linkage matrix into flat clusters.

    Walks the tree from the root. The first internal node on each path whose
    merge distance is at most `distance_threshold` becomes one cluster holding
    all of its leaves; leaves reached without passing such a node become
    singleton clusters.

    Parameters
    ----------
    linkage : NDArray
        Linkage matrix of shape (N - 1, 4)
    distance_threshold : float
        Largest merge distance kept inside a cluster

    Returns
    -------
    NDArray[np.intp]
        Cluster label of each of the N points, numbered in traversal order

    Raises
    ------
    ValueError
        If `linkage` is not two dimensional
    """
    linkage = as_numpy(linkage, dtype=np.float64, required_ndim=2)
    n_points = linkage.shape[0] + 1
    if n_points == 1:
        return np.zeros(1, dtype=np.intp)

    children = linkage[:, :2].astype(np.intp)
    distances = linkage[:, 2]

    labels = np.full(n_points, -1, dtype=np.intp)
    next_label = 0
    stack = [2 * n_points - 2]
    while stack:
        node = stack.pop()
        if node < n_points:
            if labels[node] == -1:
                labels[node] = next_label
                next_label += 1
            continue

        row = node - n_points
        if distances[row] <= distance_threshold:
            queue = [node]
            while queue:
                current = queue.pop()
                if current < n_points:
                    labels[current] = next_label
                else:
                    queue.extend(children[current - n_points])
            next_label += 1
        else:
            stack.extend(children[row])

    for index in np.nonzero(labels == -1)[0]:
        labels[index] = next_label
        next_label += 1

    return labels


def remap_cluster_ids(labels: Sequence[int] | NDArray[Any]) -> NDArray[np.intp]:
    """
    Renumbers cluster labels 0, 1, 2, ... in order of first appearance.

    Parameters
    ----------
    labels : Sequence[int] or NDArray

    Returns
    -------
    NDArray[np.intp]
    """
    mapping: dict[int, int] = {}
    return np.array([mapping.setdefault(int(label), len(mapping)) for label in labels], dtype=np.intp)


def ahc_cluster(embeddings: ArrayND[float], threshold: float) -> NDArray[np.intp]:
    """
    Groups embeddings by centroid-linkage clustering under a cosine similarity threshold.

    The embeddings are L2 normalised, clustered with
    :func:`compute_centroid_linkage` and cut where merges are farther apart
    than the distance equivalent of `threshold`.

    Parameters
    ----------
    embeddings : ArrayND, shape - (N, ...)
        Feature vectors, flattened to (N, D)
    threshold : float
        Cosine similarity above which points stay in one cluster

    Returns
    -------
    NDArray[np.intp]
        Cluster label of each point, numbered by first appearance. When the
        clustering fails every point is its own cluster.

    Examples
    --------
    >>> ahc_cluster([[1.0, 0.0], [0.99, 0.01], [0.0, 1.0]], threshold=0.9)
    array([0, 0, 1])
    """
    x = flatten(embeddings)
    count, dimension = x.shape
    if count == 0:
        return np.empty(0, dtype=np.intp)
    if dimension == 0:
        return np.zeros(count, dtype=np.intp)
    if count == 1:
        return np.zeros(1, dtype=np.intp)

    normalized = normalize_features(x)
    linkage = np.zeros((count - 1) * 4, dtype=np.float64)
    status = compute_centroid_linkage(normalized, count, dimension, linkage)
    if status != Status.SUCCESS:
        _logger.error(f"Centroid linkage failed with status {status.name} ({status.value})")
        return np.arange(count, dtype=np.intp)

    labels = assign_clusters(linkage.reshape(count - 1, 4), similarity_to_distance(threshold))
    return remap_cluster_ids(labels)
