"""
Core stateless functions for centroid-linkage clustering and dendrogram encoding.
"""

__all__ = [
    "CentroidDissimilarity",
    "IndexSpace",
    "LinkageWriter",
    "MergeEvents",
    "Status",
    "ahc_cluster",
    "assign_clusters",
    "centroid_linkage",
    "compute_centroid_linkage",
    "count_inversions",
    "encode_dendrogram",
    "generic_linkage",
    "is_canonical",
    "normalize_features",
    "remap_cluster_ids",
    "similarity_to_distance",
]

from centroidlink.core._boundary import Status, centroid_linkage, compute_centroid_linkage
from centroidlink.core._dissimilarity import CentroidDissimilarity
from centroidlink.core._encoder import LinkageWriter, count_inversions, encode_dendrogram, is_canonical
from centroidlink.core._engine import MergeEvents, generic_linkage
from centroidlink.core._flat import (
    ahc_cluster,
    assign_clusters,
    normalize_features,
    remap_cluster_ids,
    similarity_to_distance,
)
from centroidlink.core._index_space import IndexSpace
