"""Generic agglomerative merge engine.

The engine only talks to a :class:`~centroidlink.protocols.DissimilarityModel`;
it decides which pair merges next and records the merges, while the model
owns every vector and every distance.

Algorithm Overview
------------------
Each active node keeps its nearest neighbour among the active nodes that come
after it in creation order, together with that distance. The candidates sit in
a binary heap; the closest pair overall is always at the top once stale
entries are discarded.

1. Seed the neighbours of all leaves with ``initial_distance``
2. Pop the closest candidate. If its neighbour was merged away, rescan its
   successors with ``extended_distance`` and push it back
3. Record the merge, let the model build the new node and append the new node
   to the end of the active list
4. Offer the new node as a neighbour to every remaining active node

New nodes are numbered ``N, N+1, ...`` in merge order. Merge distances are
not necessarily non-decreasing because centroid distances can shrink after a
merge.
"""

from __future__ import annotations

__all__ = []

import heapq
import logging
from typing import Any

import numpy as np
from numpy.typing import NDArray

from centroidlink._log import LogMessage
from centroidlink.config import get_index_dtype
from centroidlink.exceptions import LinkageError
from centroidlink.protocols import DissimilarityModel, MergeFunction

_logger = logging.getLogger(__name__)

_END = -1


class MergeEvents:
    """
    Append-only record of the merges produced by the engine.

    The k-th event creates internal node ``N + k``.

    Parameters
    ----------
    capacity : int
        Number of events to hold, N - 1

    Attributes
    ----------
    left : NDArray[np.signedinteger]
        First merged node of each event
    right : NDArray[np.signedinteger]
        Second merged node of each event
    distance : NDArray[np.float64]
        Merge distance of each event, as reported by the model
    """

    def __init__(self, capacity: int) -> None:
        dtype = get_index_dtype()
        self.left: NDArray[np.signedinteger[Any]] = np.empty(capacity, dtype=dtype)
        self.right: NDArray[np.signedinteger[Any]] = np.empty(capacity, dtype=dtype)
        self.distance: NDArray[np.float64] = np.empty(capacity, dtype=np.float64)
        self._size = 0

    @classmethod
    def from_arrays(cls, left: NDArray[Any], right: NDArray[Any], distance: NDArray[Any]) -> MergeEvents:
        """Builds a full event record from parallel arrays, e.g. the first three columns of a linkage matrix."""
        if not len(left) == len(right) == len(distance):
            raise ValueError("left, right and distance must have the same length.")
        events = cls(len(left))
        for node1, node2, dist in zip(left, right, distance):
            events.append(int(node1), int(node2), float(dist))
        return events

    @property
    def capacity(self) -> int:
        return self.distance.shape[0]

    def __len__(self) -> int:
        return self._size

    def append(self, left: int, right: int, distance: float) -> None:
        if self._size >= self.capacity:
            raise LinkageError(f"Merge record is full; capacity is {self.capacity} events.")
        self.left[self._size] = left
        self.right[self._size] = right
        self.distance[self._size] = distance
        self._size += 1


class _ActiveNodes:
    """Doubly linked list of active node ids in creation order."""

    def __init__(self, n_points: int, n_nodes: int) -> None:
        self.succ = [i + 1 for i in range(n_nodes)]
        self.pred = [i - 1 for i in range(n_nodes)]
        self.active = [i < n_points for i in range(n_nodes)]
        self.start = 0 if n_points else _END
        self.last = n_points - 1
        if n_points:
            self.succ[self.last] = _END

    def remove(self, idx: int) -> None:
        succ, pred = self.succ[idx], self.pred[idx]
        if pred == _END:
            self.start = succ
        else:
            self.succ[pred] = succ
        if succ == _END:
            self.last = pred
        else:
            self.pred[succ] = pred
        self.active[idx] = False

    def append(self, idx: int) -> None:
        self.pred[idx] = self.last
        self.succ[idx] = _END
        if self.last == _END:
            self.start = idx
        else:
            self.succ[self.last] = idx
        self.last = idx
        self.active[idx] = True


def generic_linkage(
    n_points: int,
    model: DissimilarityModel,
    *,
    merge: MergeFunction | None = None,
) -> MergeEvents:
    """
    Agglomerates `n_points` leaves by repeatedly merging the closest pair of active nodes.

    Parameters
    ----------
    n_points : int
        Number of leaves, N
    model : DissimilarityModel
        Supplies all distances and builds the representative of each new node
    merge : MergeFunction or None, default None
        Update rule called as ``merge(i, j, new_index)``. Defaults to
        ``model.merge``.

    Returns
    -------
    MergeEvents
        Exactly N - 1 events in merge order. Distances are as reported by the
        model; call ``model.finalize_distances`` before encoding.

    Raises
    ------
    NumericError
        Propagated from the model when a distance is NaN
    """
    merge = model.merge if merge is None else merge
    events = MergeEvents(max(n_points - 1, 0))
    if n_points < 2:
        return events

    n_nodes = 2 * n_points - 1
    nodes = _ActiveNodes(n_points, n_nodes)
    mindist = [float("inf")] * n_nodes
    nghbr = [_END] * n_nodes
    heap: list[tuple[float, int]] = []

    _logger.debug(f"Seeding nearest neighbours for {n_points} leaves.")
    for i in range(n_points - 1):
        best_j = i + 1
        best = model.initial_distance(i, best_j, check_nan=True)
        for j in range(i + 2, n_points):
            dist = model.initial_distance(i, j, check_nan=True)
            if dist < best:
                best, best_j = dist, j
        mindist[i], nghbr[i] = best, best_j
        heap.append((best, i))
    heapq.heapify(heap)

    for k in range(n_points - 1):
        new_index = n_points + k

        while True:
            if not heap:
                raise LinkageError(f"No candidate pair left after {k} of {n_points - 1} merges.")
            dist, idx1 = heapq.heappop(heap)
            if not nodes.active[idx1] or dist != mindist[idx1]:
                continue
            if nghbr[idx1] != _END and nodes.active[nghbr[idx1]]:
                break
            # Neighbour was merged away; rescan the nodes after idx1.
            j = nodes.succ[idx1]
            if j == _END:
                mindist[idx1], nghbr[idx1] = float("inf"), _END
                continue
            best, best_j = model.extended_distance(idx1, j, check_nan=True), j
            j = nodes.succ[j]
            while j != _END:
                dist = model.extended_distance(idx1, j, check_nan=True)
                if dist < best:
                    best, best_j = dist, j
                j = nodes.succ[j]
            mindist[idx1], nghbr[idx1] = best, best_j
            heapq.heappush(heap, (best, idx1))

        idx2 = nghbr[idx1]
        events.append(idx1, idx2, mindist[idx1])
        merge(idx1, idx2, new_index)
        _logger.log(
            logging.DEBUG,
            LogMessage(lambda: f"merge {k}: ({idx1}, {idx2}) -> {new_index} at {mindist[idx1]!r}"),
        )

        nodes.remove(idx1)
        nodes.remove(idx2)
        nodes.append(new_index)

        j = nodes.start
        while j != new_index:
            dist = model.extended_distance(j, new_index, check_nan=True)
            if dist < mindist[j] or nghbr[j] == _END:
                mindist[j], nghbr[j] = dist, new_index
                heapq.heappush(heap, (dist, j))
            j = nodes.succ[j]

    _logger.debug(f"Recorded {len(events)} merges for {n_points} leaves.")
    return events
