"""Exception and warning classes for centroidlink."""

__all__ = [
    "IndexOverflowError",
    "InvalidArgumentError",
    "InversionWarning",
    "LinkageError",
    "NumericError",
    "OutputTooSmallError",
]


class LinkageError(Exception):
    """Base class for failures raised while building a dendrogram."""


class InvalidArgumentError(LinkageError, ValueError):
    """Raised when the input matrix or output buffer has an unusable shape.

    Detected before any computation starts; the caller can recover by fixing
    the inputs.
    """


class IndexOverflowError(LinkageError, OverflowError):
    """Raised when the point count or dimension exceeds the configured index width.

    See :func:`centroidlink.config.get_max_index`.
    """


class OutputTooSmallError(LinkageError, ValueError):
    """Raised when an output buffer cannot hold ``(N - 1) * 4`` values."""


class NumericError(LinkageError, ArithmeticError):
    """Raised when a squared distance evaluates to NaN.

    A NaN distance means the input contains NaN (or Inf patterns that cancel
    to NaN). The whole computation is aborted instead of producing a corrupted
    tree.
    """


class InversionWarning(UserWarning):
    """Issued when a dendrogram has a merge closer than one of its children.

    Centroid linkage does not guarantee monotonic merge distances, so
    inversions are expected on some inputs.
    """
