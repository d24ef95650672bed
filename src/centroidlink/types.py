"""Data types used in centroidlink."""

from __future__ import annotations

__all__ = [
    "Array1D",
    "Array2D",
    "Array3D",
    "ArrayND",
]

from collections.abc import Iterator
from typing import Any, Protocol, TypeAlias, TypeVar, overload, runtime_checkable

from centroidlink.protocols import Array

DType = TypeVar("DType", covariant=True)


@runtime_checkable
class SequenceLike(Protocol[DType]):
    """Protocol for sequence-like objects that can be indexed and iterated."""

    @overload
    def __getitem__(self, key: int, /) -> DType: ...
    @overload
    def __getitem__(self, key: Any, /) -> DType | SequenceLike[DType]: ...
    def __iter__(self) -> Iterator[DType]: ...
    def __len__(self) -> int: ...


Array1D: TypeAlias = Array | SequenceLike[DType]
Array2D: TypeAlias = Array | SequenceLike[Array1D[DType]]
Array3D: TypeAlias = Array | SequenceLike[Array2D[DType]]
ArrayND: TypeAlias = Array | Array1D[DType] | Array2D[DType] | Array3D[DType]
