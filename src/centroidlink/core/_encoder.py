"""Encoding of merge events into a SciPy-style linkage matrix.

Rows are ``[min(id_a, id_b), max(id_a, id_b), distance, size]``. Leaves keep
their ids ``0 .. N-1``; the internal node written at row k gets id ``N + k``.
"""

from __future__ import annotations

__all__ = []

import logging
from typing import Any

import numba
import numpy as np
from numpy.typing import NDArray

from centroidlink._log import LogMessage
from centroidlink.core._disjoint_set import ds_create, ds_find, ds_union_into
from centroidlink.core._engine import MergeEvents
from centroidlink.exceptions import InvalidArgumentError, LinkageError, OutputTooSmallError

_logger = logging.getLogger(__name__)


class LinkageWriter:
    """
    Sequential, bounds-checked writer of linkage rows.

    The writer owns an ``(n_rows, 4)`` float64 view. When `out` is given it
    must hold at least ``n_rows * 4`` elements and be C-contiguous; the rows
    are then written straight into its leading elements.

    Parameters
    ----------
    n_rows : int
        Number of rows to write, N - 1
    out : NDArray[np.float64] or None, default None
        Caller-owned buffer to write into
    """

    def __init__(self, n_rows: int, out: NDArray[np.float64] | None = None) -> None:
        required = n_rows * 4
        if out is None:
            self._rows = np.empty((n_rows, 4), dtype=np.float64)
        else:
            if out.size < required:
                raise OutputTooSmallError(f"Output holds {out.size} values; {required} are required.")
            if out.dtype != np.float64 or not out.flags.c_contiguous or not out.flags.writeable:
                raise InvalidArgumentError("Output must be a writeable, C-contiguous float64 array.")
            self._rows = out.reshape(-1)[:required].reshape(n_rows, 4)
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return self._rows.shape[0]

    def size_of(self, node: int, n_points: int) -> float:
        """Returns 1 for a leaf, otherwise the size column of the row that created `node`."""
        if node < n_points:
            return 1.0
        row = node - n_points
        if row >= self._count:
            raise LinkageError(f"Node {node} is referenced before the row creating it was written.")
        return float(self._rows[row, 3])

    def append(self, node1: int, node2: int, distance: float, size: float) -> None:
        if self._count >= self.capacity:
            raise OutputTooSmallError(f"Linkage output is full; capacity is {self.capacity} rows.")
        if node1 > node2:
            node1, node2 = node2, node1
        row = self._rows[self._count]
        row[0] = node1
        row[1] = node2
        row[2] = distance
        row[3] = size
        self._count += 1

    def result(self) -> NDArray[np.float64]:
        if self._count != self.capacity:
            raise LinkageError(f"Linkage output is incomplete; wrote {self._count} of {self.capacity} rows.")
        return self._rows


@numba.njit(cache=True)
def _prepare_events(
    left: NDArray[np.int64], right: NDArray[np.int64], distance: NDArray[np.float64], n_points: int
) -> Any:
    # Returns (sort keys, leaf of every node, first malformed event or -1).
    # The key of a merge is the largest distance in its subtree, so it is
    # never smaller than the keys of the merges that created its children.
    n_events = distance.shape[0]
    keys = np.empty(n_events, dtype=np.float64)
    leaf_of = np.arange(n_points + n_events, dtype=np.int64)
    consumed = np.zeros(n_points + n_events, dtype=np.bool_)
    for k in range(n_events):
        key = distance[k]
        for node in (left[k], right[k]):
            if node < 0 or node >= n_points + k or consumed[node]:
                return keys, leaf_of, k
            consumed[node] = True
            if node >= n_points and keys[node - n_points] > key:
                key = keys[node - n_points]
        keys[k] = key
        leaf_of[n_points + k] = leaf_of[left[k]]
    return keys, leaf_of, -1


def count_inversions(linkage: NDArray[np.float64]) -> int:
    """
    Counts the rows whose distance is smaller than the distance of one of their children.

    Parameters
    ----------
    linkage : NDArray[np.float64]
        Linkage matrix of shape (N - 1, 4)

    Returns
    -------
    int
    """
    n_points = linkage.shape[0] + 1
    inversions = 0
    for row in linkage:
        for child in (int(row[0]), int(row[1])):
            if child >= n_points and linkage[child - n_points, 2] > row[2]:
                inversions += 1
                break
    return inversions


def encode_dendrogram(
    events: MergeEvents, n_points: int, out: NDArray[np.float64] | None = None
) -> NDArray[np.float64]:
    """
    Sorts merge events by distance and relabels them into a canonical linkage matrix.

    Events are stably sorted on their distance, so ties keep the engine's
    order. For inputs with inversions the sort key of a merge is the largest
    distance in its subtree, which keeps every merge after the merges that
    created its children. Each side is then resolved to its current
    union-find root, so node ids refer to rows of the sorted output.

    Parameters
    ----------
    events : MergeEvents
        Exactly N - 1 merge events with final (not squared) distances
    n_points : int
        Number of leaves, N
    out : NDArray[np.float64] or None, default None
        Optional caller-owned buffer of at least ``(N - 1) * 4`` values

    Returns
    -------
    NDArray[np.float64]
        Linkage matrix of shape (N - 1, 4). A view of `out` if provided.

    Raises
    ------
    LinkageError
        If the events do not describe a binary merge tree over N leaves
    OutputTooSmallError
        If `out` is too small
    """
    n_rows = max(n_points - 1, 0)
    if len(events) != n_rows:
        raise LinkageError(f"Expected {n_rows} merge events for {n_points} points; got {len(events)}.")
    writer = LinkageWriter(n_rows, out)
    if n_rows == 0:
        return writer.result()

    left = events.left[:n_rows].astype(np.int64)
    right = events.right[:n_rows].astype(np.int64)
    distance = events.distance[:n_rows]

    keys, leaf_of, bad = _prepare_events(left, right, distance, n_points)
    if bad >= 0:
        raise LinkageError(
            f"Merge event {bad} joins ({left[bad]}, {right[bad]}); a node is missing or was already merged."
        )
    order = np.argsort(keys, kind="stable")

    # Internal ids from the engine are resolved through a leaf of their subtree,
    # whose root is the row that most recently absorbed it.
    parent = ds_create(2 * n_points - 1)
    next_node = n_points
    for k in order:
        node1 = int(ds_find(parent, leaf_of[left[k]]))
        node2 = int(ds_find(parent, leaf_of[right[k]]))
        if node1 == node2:
            raise LinkageError(f"Merge event {k} joins node {node1} with itself.")
        size = writer.size_of(node1, n_points) + writer.size_of(node2, n_points)
        writer.append(node1, node2, distance[k], size)
        ds_union_into(parent, node1, node2, next_node)
        next_node += 1

    linkage = writer.result()
    _logger.log(
        logging.DEBUG, LogMessage(lambda: f"Encoded {n_rows} rows with {count_inversions(linkage)} inversions.")
    )
    return linkage


def is_canonical(linkage: NDArray[Any], n_points: int | None = None) -> bool:
    """
    Checks the structural invariants of a linkage matrix.

    Every row must have its smaller id first, reference only leaves or
    internal nodes created by earlier rows, use each node at most once and
    carry a size equal to the sum of its sides. The last row must cover all
    points and distances must be non-negative.

    Parameters
    ----------
    linkage : NDArray
        Linkage matrix of shape (N - 1, 4)
    n_points : int or None, default None
        Expected number of leaves; inferred from the row count when omitted

    Returns
    -------
    bool
    """
    linkage = np.asarray(linkage, dtype=np.float64)
    if linkage.ndim != 2 or linkage.shape[1] != 4:
        return False
    n_rows = linkage.shape[0]
    n = n_rows + 1 if n_points is None else n_points
    if n_rows != max(n - 1, 0):
        return False

    sizes = np.ones(n + n_rows, dtype=np.float64)
    used = np.zeros(n + n_rows, dtype=np.bool_)
    for k, (a, b, dist, size) in enumerate(linkage):
        if not (np.isfinite(a) and np.isfinite(b)) or a != int(a) or b != int(b):
            return False
        node1, node2 = int(a), int(b)
        if not 0 <= node1 < node2 < n + k:
            return False
        if used[node1] or used[node2] or not dist >= 0:
            return False
        used[node1] = used[node2] = True
        sizes[n + k] = sizes[node1] + sizes[node2]
        if size != sizes[n + k]:
            return False
    return n_rows == 0 or sizes[-1] == n
