"""Disjoint set (union-find) over the unified node index space, JIT compiled with Numba.

Find is adapted from fast_hdbscan.disjoint_set v0.2.0 (path halving):
    https://github.com/TutteInstitute/fast_hdbscan
    Copyright (c) 2020, Leland McInnes
    License: BSD 2-Clause

Unlike union-by-rank, a union here always makes a fresh internal node the
root of both sets, so the root of a set is the id of the latest merge that
absorbed it.
"""

__all__ = []

import numba
import numpy as np
from numpy.typing import NDArray


@numba.njit(cache=True)
def ds_create(n_elements: np.int64) -> NDArray[np.int64]:
    """
    Create a disjoint set forest where every element is its own root.

    Parameters
    ----------
    n_elements : np.int64
        Number of nodes, 2N - 1 for N leaves

    Returns
    -------
    NDArray[np.int64]
        Parent array with parent[i] = i
    """
    return np.arange(n_elements, dtype=np.int64)


@numba.njit(cache=True)
def ds_find(parent: NDArray[np.int64], x: np.int64) -> np.int64:
    """
    Find the root of the set containing element x with path compression.

    As it walks towards the root it points each visited node at its
    grandparent, flattening the tree for later queries.

    Parameters
    ----------
    parent : NDArray[np.int64]
        Parent array of the forest
    x : np.int64
        The element whose set root we want to find

    Returns
    -------
    np.int64
        The root element of the set containing x
    """
    while parent[x] != x:
        parent[x] = parent[parent[x]]
        x = parent[x]
    return x


@numba.njit(cache=True)
def ds_union_into(parent: NDArray[np.int64], x: np.int64, y: np.int64, root: np.int64) -> None:
    """
    Join the sets rooted at x and y beneath `root`.

    x and y must already be roots and `root` must not yet belong to any
    other set.
    """
    parent[x] = root
    parent[y] = root
