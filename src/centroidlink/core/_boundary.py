from __future__ import annotations

__all__ = []

import logging
import warnings
from enum import IntEnum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from centroidlink.config import get_max_index
from centroidlink.core._dissimilarity import CentroidDissimilarity
from centroidlink.core._encoder import count_inversions, encode_dendrogram
from centroidlink.core._engine import generic_linkage
from centroidlink.exceptions import (
    IndexOverflowError,
    InvalidArgumentError,
    InversionWarning,
    LinkageError,
    NumericError,
    OutputTooSmallError,
)
from centroidlink.types import ArrayND
from centroidlink.utils._array import flatten

_logger = logging.getLogger(__name__)


class Status(IntEnum):
    """
    Closed set of outcomes reported by :func:`compute_centroid_linkage`.

    Any value other than ``SUCCESS`` leaves the output buffer undefined.
    """

    SUCCESS = 0
    INVALID_ARGUMENT = 1
    INDEX_OVERFLOW = 2
    OUTPUT_TOO_SMALL = 3
    ALLOCATION_FAILURE = 4
    RUNTIME_ERROR = 5
    UNKNOWN_ERROR = 255


def _check_index_range(n_points: int, dimension: int) -> None:
    max_index = get_max_index()
    if n_points > max_index or dimension > max_index:
        raise IndexOverflowError(
            f"Point count {n_points} or dimension {dimension} exceeds the maximum index {max_index}."
        )


def _linkage(points: NDArray[np.float64], out: NDArray[np.float64] | None = None) -> NDArray[np.float64]:
    n_points = points.shape[0]
    model = CentroidDissimilarity(points)
    events = generic_linkage(n_points, model)
    model.finalize_distances(events)
    return encode_dendrogram(events, n_points, out)


def centroid_linkage(embeddings: ArrayND[float], *, warn_inversions: bool = False) -> NDArray[np.float64]:
    """
    Clusters the flattened data with centroid linkage and returns the linkage matrix.

    Parameters
    ----------
    embeddings : ArrayND, shape - (N, ...)
        A dataset that can be a list, or array-like object. Trailing
        dimensions are flattened to (N, D) and the values cast to float64.
    warn_inversions : bool, default False
        Issue an :class:`~centroidlink.exceptions.InversionWarning` when some
        merge is closer than one of its children

    Returns
    -------
    NDArray[np.float64]
        Linkage matrix of shape (N - 1, 4) with rows ``[left, right,
        distance, size]``, ordered so every merge follows its children;
        non-decreasing in distance unless the tree has inversions. Empty
        (0, 4) when N < 2.

    Raises
    ------
    InvalidArgumentError
        If the samples have no features
    IndexOverflowError
        If N or D exceeds :func:`~centroidlink.config.get_max_index`
    NumericError
        If a distance is NaN

    Examples
    --------
    >>> points = [[0.0, 0.0], [0.0, 1.0], [5.0, 5.0], [5.0, 6.0]]
    >>> centroid_linkage(points)
    array([[0.        , 1.        , 1.        , 2.        ],
           [2.        , 3.        , 1.        , 2.        ],
           [4.        , 5.        , 7.07106781, 4.        ]])
    """
    x = np.ascontiguousarray(flatten(embeddings), dtype=np.float64)
    n_points, dimension = x.shape
    if n_points and dimension < 1:
        raise InvalidArgumentError(f"Samples should have at least 1 feature; got {dimension}")
    _check_index_range(n_points, dimension)
    if n_points < 2:
        return np.empty((0, 4), dtype=np.float64)

    linkage = _linkage(x)
    if warn_inversions:
        inversions = count_inversions(linkage)
        if inversions:
            warnings.warn(f"Linkage contains {inversions} inversion(s).", InversionWarning, stacklevel=2)
    return linkage


def compute_centroid_linkage(
    data: NDArray[Any] | None,
    point_count: int,
    dimension: int,
    out: NDArray[np.float64] | None,
) -> Status:
    """
    Computes a centroid-linkage dendrogram into a caller-owned buffer.

    No exception escapes this function; every failure is reported as a
    :class:`Status`.

    Parameters
    ----------
    data : NDArray or None
        ``point_count * dimension`` float64 values in row-major order, flat or
        already shaped (N, D)
    point_count : int
        Number of vectors, N
    dimension : int
        Feature dimension, D
    out : NDArray[np.float64] or None
        Writeable, C-contiguous float64 buffer of at least ``(N - 1) * 4``
        values, receiving the linkage rows in its leading elements

    Returns
    -------
    Status
        ``SUCCESS`` with `out` filled, otherwise the failure class with `out`
        undefined. N = 0 and N = 1 succeed without writing anything.
    """
    if data is None or out is None:
        return Status.INVALID_ARGUMENT
    for count in (point_count, dimension):
        if isinstance(count, bool) or not isinstance(count, (int, np.integer)) or count < 0:
            return Status.INVALID_ARGUMENT
    if point_count == 0:
        return Status.SUCCESS
    if dimension == 0:
        return Status.INVALID_ARGUMENT

    try:
        _check_index_range(point_count, dimension)
        required = (point_count - 1) * 4
        if np.size(out) < required:
            raise OutputTooSmallError(f"Output holds {np.size(out)} values; {required} are required.")
        if not isinstance(out, np.ndarray):
            raise InvalidArgumentError(f"Output must be a numpy array; got {type(out).__name__}.")
        if point_count == 1:
            return Status.SUCCESS

        try:
            values = np.asarray(data, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Data cannot be read as float64 values: {e}") from e
        if values.size < point_count * dimension:
            raise InvalidArgumentError(
                f"Data holds {values.size} values; {point_count * dimension} are required for "
                f"{point_count} points of dimension {dimension}."
            )
        points = np.ascontiguousarray(values[: point_count * dimension].reshape(point_count, dimension))
        _linkage(points, out)
        return Status.SUCCESS
    except InvalidArgumentError as e:
        _logger.debug(f"Invalid argument: {e}")
        return Status.INVALID_ARGUMENT
    except IndexOverflowError as e:
        _logger.debug(f"Index overflow: {e}")
        return Status.INDEX_OVERFLOW
    except OutputTooSmallError as e:
        _logger.debug(f"Output too small: {e}")
        return Status.OUTPUT_TOO_SMALL
    except MemoryError as e:
        _logger.debug(f"Allocation failure: {e}")
        return Status.ALLOCATION_FAILURE
    except (NumericError, ArithmeticError, LinkageError) as e:
        _logger.debug(f"Runtime error: {e}")
        return Status.RUNTIME_ERROR
    except Exception as e:
        _logger.debug(f"Unclassified failure: {e!r}")
        return Status.UNKNOWN_ERROR
