"""
Common type protocols used for interoperability with centroidlink.
"""

from __future__ import annotations

__all__ = [
    "Array",
    "ArrayLike",
    "DissimilarityModel",
    "MergeFunction",
]

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from centroidlink.core._engine import MergeEvents

ArrayLike: TypeAlias = np.typing.ArrayLike
"""
Type alias for a `Union` representing objects that can be coerced into an array.

See Also
--------
`NumPy ArrayLike <https://numpy.org/doc/stable/reference/typing.html#numpy.typing.ArrayLike>`_
"""


@runtime_checkable
class Array(Protocol):
    """
    Protocol for array objects providing interoperability with centroidlink.

    Example
    -------
    >>> import numpy as np
    >>> from centroidlink.protocols import Array

    >>> ndarray = np.random.random((10, 10))
    >>> isinstance(ndarray, Array)
    True
    """

    @property
    def shape(self) -> tuple[int, ...]: ...
    def __array__(self) -> NDArray[Any]: ...
    def __getitem__(self, key: Any, /) -> Any: ...
    def __iter__(self) -> Iterator[Any]: ...
    def __len__(self) -> int: ...


MergeFunction: TypeAlias = Callable[[int, int, int], None]
"""
Type alias for an update rule ``merge(i, j, new_index)`` that records the
representative of a newly created internal node.
"""


@runtime_checkable
class DissimilarityModel(Protocol):
    """
    Capability required by :func:`centroidlink.core.generic_linkage`.

    Any linkage policy that can measure the distance between two nodes of the
    unified index space and fold two nodes into a new one can drive the
    engine. Distances are compared only with each other, so a model may work
    in a monotone transform of the reported distance (e.g. squared) and undo
    it in :meth:`finalize_distances`.

    Leaves are numbered ``0 .. N-1`` and internal nodes ``N .. 2N-2`` in
    creation order.
    """

    def initial_distance(self, i: int, j: int, check_nan: bool = True) -> float:
        """Distance between two leaves, used to seed the engine."""
        ...

    def extended_distance(self, i: int, j: int, check_nan: bool = True) -> float:
        """Distance between any two nodes, leaf or internal."""
        ...

    def merge(self, i: int, j: int, new_index: int) -> None:
        """Create internal node `new_index` from nodes `i` and `j`."""
        ...

    def finalize_distances(self, events: MergeEvents) -> None:
        """Convert every recorded distance into its externally reported form, in place."""
        ...
