from __future__ import annotations

__all__ = []

import logging
from collections.abc import Iterable
from typing import Any, TypeVar

import numpy as np
from numpy.typing import NDArray

from centroidlink._log import LogMessage
from centroidlink.protocols import ArrayLike
from centroidlink.types import SequenceLike

_logger = logging.getLogger(__name__)

_np_dtype = TypeVar("_np_dtype", bound=np.generic)


def as_numpy(
    array: ArrayLike | SequenceLike[Any] | None,
    *,
    dtype: type[_np_dtype] | None = None,
    required_ndim: int | Iterable[int] | None = None,
) -> NDArray[_np_dtype]:
    """Converts an ArrayLike to Numpy array without copying (if possible)"""
    return to_numpy(array, dtype=dtype, required_ndim=required_ndim, copy=False)


def to_numpy(
    array: ArrayLike | SequenceLike[Any] | None,
    *,
    dtype: type[_np_dtype] | None = None,
    required_ndim: int | Iterable[int] | None = None,
    copy: bool = True,
) -> NDArray[_np_dtype]:
    """Converts an ArrayLike to new Numpy array"""
    _array: NDArray[_np_dtype]

    if array is None:
        _array = np.array([], dtype=dtype)
    elif isinstance(array, np.ndarray):
        _array = array.astype(dtype, copy=True) if copy else np.asarray(array, dtype=dtype)
    else:
        _array = np.array(array, dtype=dtype) if copy else np.asarray(array, dtype=dtype)
        _logger.log(logging.DEBUG, LogMessage(lambda: f"{type(array).__name__} -> ndarray{_array.shape}"))

    required_ndims = (required_ndim,) if isinstance(required_ndim, int) else required_ndim
    if required_ndims is not None and _array.ndim not in required_ndims:
        raise ValueError(f"Array has {_array.ndim} dimensions, expected {required_ndim}.")

    return _array


def flatten(array: ArrayLike | SequenceLike[Any]) -> NDArray[Any]:
    """
    Flattens input array from (N, ... ) to (N, -1) where all samples N have all data in their last dimension

    Parameters
    ----------
    array : ArrayLike
        Input array

    Returns
    -------
    np.ndarray, shape: (N, -1)
    """
    try:
        nparr = as_numpy(array)
        if nparr.ndim == 0:
            raise ValueError("cannot flatten a scalar")
        if nparr.ndim == 1:
            return nparr.reshape((-1, 1))
        return nparr.reshape((nparr.shape[0], int(np.prod(nparr.shape[1:]))))
    except Exception as e:
        raise TypeError(f"Unsupported array type {type(array)}: {e}.") from e
