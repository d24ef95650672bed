from __future__ import annotations

__all__ = []

from typing import Any

import numpy as np
from numpy.typing import NDArray

from centroidlink.config import get_index_dtype


class IndexSpace:
    """
    Unified numbering of leaves and internal nodes for one clustering call.

    Leaves ``0 .. N-1`` address rows of the input matrix and internal nodes
    ``N .. 2N-2`` address rows of the centroid storage at ``index - N``. The
    storage and the member counts are allocated once here and never resized.

    Parameters
    ----------
    points : NDArray[np.float64]
        C-contiguous matrix of shape (N, D). A read-only view is kept.

    Attributes
    ----------
    n_points : int
        Number of leaves, N
    dimension : int
        Feature dimension, D
    points : NDArray[np.float64]
        Read-only view of the input, shape (N, D)
    centroids : NDArray[np.float64]
        Centroid storage, shape (N - 1, D)
    members : NDArray[np.signedinteger]
        Member count of every node, shape (2N - 1,)
    """

    def __init__(self, points: NDArray[np.float64]) -> None:
        n_points, dimension = points.shape
        self.n_points: int = int(n_points)
        self.dimension: int = int(dimension)

        view = points.view()
        view.setflags(write=False)
        self.points = view

        self.centroids = np.empty((max(self.n_points - 1, 0), self.dimension), dtype=np.float64)
        self.members: NDArray[np.signedinteger[Any]] = np.zeros(self.n_nodes, dtype=get_index_dtype())
        self.members[: self.n_points] = 1

    @property
    def n_nodes(self) -> int:
        """Size of the index space, 2N - 1."""
        return max(2 * self.n_points - 1, 0)

    def is_leaf(self, index: int) -> bool:
        return index < self.n_points

    def representative(self, index: int) -> NDArray[np.float64]:
        """Returns the vector standing for node `index`: its point or its centroid."""
        if self.is_leaf(index):
            return self.points[index]
        return self.centroids[index - self.n_points]

    def centroid_slot(self, index: int) -> NDArray[np.float64]:
        """Returns the writable storage row of internal node `index`."""
        if self.is_leaf(index):
            raise IndexError(f"Node {index} is a leaf and has no centroid storage.")
        return self.centroids[index - self.n_points]

    def size(self, index: int) -> int:
        return int(self.members[index])

    def set_size(self, index: int, size: int) -> None:
        self.members[index] = size
