"""
Distance module for distkit.

This module stores symmetric pairwise distances compactly and derives
everything else from that storage, without ever knowing item coordinates.

Main Classes:
- DistanceStore: Immutable condensed distance storage with label indexing
- DistanceBuilder: Build a store from raw rows and a metric, optionally in parallel
- CentroidDistanceEngine: Point-to-centroid and centroid-to-centroid distances

Convenience Functions:
- build_distance_store: Quick store construction
- subset / get_pairs: Reorder/select items, look up origin/destination pairs
- tabulate_groups: Pair table with group labels
- dist_between_centroids / dist_to_centroids / dist_multi_centroids

Example:
    >>> from distkit.distance import build_distance_store, dist_to_centroids
    >>> store = build_distance_store(frame, "euclidean", n_jobs=4)
    >>> dist_to_centroids(store, {"s1": "Control", "s2": "Control", "s3": "Treatment"})
"""

from .builder import (
    PARALLEL_BACKENDS,
    PARALLEL_STRATEGIES,
    DistanceBuilder,
    ParallelConfig,
    build_distance_store,
    resolve_metric,
)
from .centroid import (
    CentroidConfig,
    CentroidDistanceEngine,
    dist_between_centroids,
    dist_multi_centroids,
    dist_to_centroids,
)
from .exceptions import (
    AsymmetricInputError,
    DataValidationError,
    DistanceComputationError,
    DistanceError,
    DuplicateLabelError,
    EmptyGroupError,
    LengthMismatchError,
    MetricEvaluationError,
    NonEuclideanInputError,
    OverlappingGroupsError,
    UnknownLabelError,
)
from .groups import pair_label, resolve_groups, tabulate_groups
from .store import DistanceStore, condensed_size, pair_offset, pair_offsets
from .views import get_pairs, subset

__all__ = [
    # Storage
    "DistanceStore",
    "condensed_size",
    "pair_offset",
    "pair_offsets",
    # Builder
    "DistanceBuilder",
    "ParallelConfig",
    "build_distance_store",
    "resolve_metric",
    "PARALLEL_STRATEGIES",
    "PARALLEL_BACKENDS",
    # Views
    "subset",
    "get_pairs",
    "tabulate_groups",
    "pair_label",
    "resolve_groups",
    # Centroids
    "CentroidConfig",
    "CentroidDistanceEngine",
    "dist_between_centroids",
    "dist_to_centroids",
    "dist_multi_centroids",
    # Exceptions
    "DistanceError",
    "DataValidationError",
    "DistanceComputationError",
    "UnknownLabelError",
    "DuplicateLabelError",
    "LengthMismatchError",
    "AsymmetricInputError",
    "EmptyGroupError",
    "OverlappingGroupsError",
    "NonEuclideanInputError",
    "MetricEvaluationError",
]
