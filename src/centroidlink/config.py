"""
Global configuration settings for centroidlink.
"""

from __future__ import annotations

__all__ = ["get_index_dtype", "get_max_index", "set_index_dtype", "use_index_dtype"]

from typing import Any

import numpy as np

### GLOBALS ###

_index_dtype: type[np.signedinteger[Any]] | None = None

### CONSTS ###

DEFAULT_INDEX_DTYPE = np.int64
SUPPORTED_INDEX_DTYPES = (np.int32, np.int64)

### FUNCS ###


def set_index_dtype(dtype: type[np.signedinteger[Any]] | None) -> None:
    """
    Sets the integer type used to number leaves and internal nodes.

    The index width bounds both the number of points and the feature dimension
    a single clustering call accepts.

    Parameters
    ----------
    dtype : np.int32, np.int64 or None
        The index type to use. None restores the default of `np.int64`.

    Raises
    ------
    ValueError
        If `dtype` is not one of the supported signed integer types.
    """
    if dtype is not None and np.dtype(dtype).type not in SUPPORTED_INDEX_DTYPES:
        raise ValueError(f"Unsupported index dtype {dtype}; expected one of np.int32 or np.int64.")
    global _index_dtype
    _index_dtype = None if dtype is None else np.dtype(dtype).type


def get_index_dtype() -> type[np.signedinteger[Any]]:
    """
    Returns the integer type used to number leaves and internal nodes.

    Returns
    -------
    type[np.signedinteger]
        The configured index type, `np.int64` if unset.
    """
    global _index_dtype
    return DEFAULT_INDEX_DTYPE if _index_dtype is None else _index_dtype


def get_max_index() -> int:
    """
    Returns the largest point count or dimension accepted for the configured index type.

    Returns
    -------
    int
    """
    return int(np.iinfo(get_index_dtype()).max)


class IndexDtypeContextManager:
    def __init__(self, dtype: type[np.signedinteger[Any]]) -> None:
        self._dtype = dtype

    def __enter__(self) -> None:
        global _index_dtype
        self._old = _index_dtype
        set_index_dtype(self._dtype)

    def __exit__(self, *args: tuple[Any, ...]) -> None:
        global _index_dtype
        _index_dtype = self._old


def use_index_dtype(dtype: type[np.signedinteger[Any]]) -> IndexDtypeContextManager:
    return IndexDtypeContextManager(dtype)
