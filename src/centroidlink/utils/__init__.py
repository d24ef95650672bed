"""
Array helpers shared by the clustering functions.
"""

from centroidlink.utils._array import as_numpy, flatten, to_numpy

__all__ = ["as_numpy", "flatten", "to_numpy"]
