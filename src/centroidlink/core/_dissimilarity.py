"""Centroid-linkage dissimilarity and update model.

Distances are squared Euclidean while the engine runs and are converted to
Euclidean distances once, after the last merge. Accumulation over the
feature dimension is index-ascending in float64 so results are reproducible
bit for bit.
"""

from __future__ import annotations

__all__ = []

import logging
import math
from typing import TYPE_CHECKING

import numba
import numpy as np
from numpy.typing import NDArray

from centroidlink.core._index_space import IndexSpace
from centroidlink.exceptions import NumericError

if TYPE_CHECKING:
    from centroidlink.core._engine import MergeEvents

_logger = logging.getLogger(__name__)


@numba.njit(cache=True)
def _sqeuclidean(a: NDArray[np.float64], b: NDArray[np.float64]) -> float:
    total = 0.0
    for k in range(a.shape[0]):
        diff = a[k] - b[k]
        total += diff * diff
    return total


@numba.njit(cache=True)
def _weighted_centroid(
    a: NDArray[np.float64], weight_a: float, b: NDArray[np.float64], weight_b: float, out: NDArray[np.float64]
) -> None:
    denom = weight_a + weight_b
    for k in range(a.shape[0]):
        out[k] = (a[k] * weight_a + b[k] * weight_b) / denom


@numba.njit(cache=True)
def _midpoint(a: NDArray[np.float64], b: NDArray[np.float64], out: NDArray[np.float64]) -> None:
    for k in range(a.shape[0]):
        out[k] = 0.5 * (a[k] + b[k])


class CentroidDissimilarity:
    """
    Distance and merge operations for centroid linkage over an :class:`IndexSpace`.

    Satisfies :class:`centroidlink.protocols.DissimilarityModel`.

    Parameters
    ----------
    points : NDArray[np.float64]
        C-contiguous matrix of shape (N, D)
    """

    def __init__(self, points: NDArray[np.float64]) -> None:
        self.space = IndexSpace(points)

    @property
    def n_points(self) -> int:
        return self.space.n_points

    def _checked(self, value: float, i: int, j: int, check_nan: bool) -> float:
        if check_nan and math.isnan(value):
            raise NumericError(f"Squared distance between nodes {i} and {j} is NaN.")
        return value

    def initial_distance(self, i: int, j: int, check_nan: bool = True) -> float:
        """
        Squared Euclidean distance between two leaves.

        Parameters
        ----------
        i, j : int
            Leaf indices, both less than N
        check_nan : bool, default True
            Raise :class:`NumericError` when the distance is NaN

        Returns
        -------
        float
        """
        points = self.space.points
        return self._checked(_sqeuclidean(points[i], points[j]), i, j, check_nan)

    def extended_distance(self, i: int, j: int, check_nan: bool = True) -> float:
        """
        Squared Euclidean distance between any two nodes of the index space.

        Parameters
        ----------
        i, j : int
            Node indices in [0, 2N - 2]
        check_nan : bool, default True
            Raise :class:`NumericError` when the distance is NaN

        Returns
        -------
        float
        """
        space = self.space
        return self._checked(_sqeuclidean(space.representative(i), space.representative(j)), i, j, check_nan)

    def merge(self, i: int, j: int, new_index: int) -> None:
        """Stores the member-weighted mean of nodes `i` and `j` as node `new_index`."""
        space = self.space
        weight_i = space.size(i)
        weight_j = space.size(j)
        _weighted_centroid(
            space.representative(i),
            float(weight_i),
            space.representative(j),
            float(weight_j),
            space.centroid_slot(new_index),
        )
        space.set_size(new_index, weight_i + weight_j)

    def merge_unweighted(self, i: int, j: int, new_index: int) -> None:
        """Stores the midpoint of nodes `i` and `j` as node `new_index` (median-style update)."""
        space = self.space
        _midpoint(space.representative(i), space.representative(j), space.centroid_slot(new_index))
        space.set_size(new_index, space.size(i) + space.size(j))

    def finalize_distances(self, events: MergeEvents) -> None:
        """Replaces every squared distance recorded in `events` with its square root."""
        distances = events.distance[: len(events)]
        np.sqrt(distances, out=distances)
        _logger.debug(f"Converted {len(events)} squared merge distances to euclidean.")
