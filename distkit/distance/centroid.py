"""
Centroid distances computed from pairwise distances alone.

Items are assumed to sit in some Euclidean space whose coordinates are never
known. For a point set A with centroid c_A and any point x,

    Σ_{i∈A} ‖x − p_i‖² = n_A·‖x − c_A‖² + Σ_{i∈A} ‖p_i − c_A‖²

which yields closed forms over squared pairwise distances only:

    d²(x, c_A)   = (1/n_A) Σ_{i∈A} d(x,i)² − (1/n_A²) Σ_{i<j∈A} d(i,j)²
    d²(c_A, c_B) = (1/(n_A n_B)) Σ_{i∈A, j∈B} d(i,j)²
                   − (1/n_A²) Σ_{i<j∈A} d(i,j)² − (1/n_B²) Σ_{i<j∈B} d(i,j)²

Rounding can push a squared result slightly below zero. With ``scale`` the
largest squared distance taking part in the computation, values down to
``-(atol + rtol * scale)`` are clamped to zero; anything lower raises
NonEuclideanInputError because the input cannot come from a Euclidean
embedding.
"""

import itertools
import math
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..utils.logging import get_logger
from .exceptions import EmptyGroupError, NonEuclideanInputError, OverlappingGroupsError
from .groups import GroupAssignment, group_members, resolve_groups
from .store import DistanceStore, normalize_labels

logger = get_logger(__name__)

CENTROID_TABLE_COLUMNS = ["Item", "CentroidGroup", "CentroidDistance"]


@dataclass
class CentroidConfig:
    """Numeric tolerance for negative squared centroid distances.

    Attributes:
        rtol: Tolerance relative to the largest squared distance involved
        atol: Absolute tolerance
    """

    rtol: float = 1e-9
    atol: float = 1e-12

    def __post_init__(self):
        # YAML reads "1e-9" as a string
        self.rtol = float(self.rtol)
        self.atol = float(self.atol)
        if self.rtol < 0 or self.atol < 0:
            raise ValueError(f"Tolerances must be non-negative, got rtol={self.rtol}, atol={self.atol}")

    def tolerance(self, scale: float) -> float:
        return self.atol + self.rtol * scale


@dataclass
class _GroupGeometry:
    """Positions of a group's members and the squared-distance terms that do not depend on x."""

    positions: NDArray[np.intp]
    within_term: float  # (1/n²) Σ_{i<j} d(i,j)²
    max_squared: float

    @property
    def size(self) -> int:
        return len(self.positions)


class CentroidDistanceEngine:
    """Distances to and between group centroids of a :class:`DistanceStore`.

    Args:
        store: Pairwise distances over the items
        config: Clamp tolerances (default: ``CentroidConfig()``)

    Examples:
        >>> engine = CentroidDistanceEngine(store)
        >>> engine.between_centroids(["a", "b"], ["c", "d"])
        1.0
    """

    def __init__(self, store: DistanceStore, config: Optional[CentroidConfig] = None):
        self.store = store
        self.config = config if config is not None else CentroidConfig()

    def _geometry(self, members: Iterable[Any]) -> _GroupGeometry:
        labels = normalize_labels(members)
        if not labels:
            raise EmptyGroupError("Centroid requested for a group without members")
        positions = self.store.positions(labels)

        squared = self.store.block(positions, positions) ** 2
        n = len(positions)
        return _GroupGeometry(
            positions=positions,
            within_term=float(squared.sum()) / 2.0 / (n * n),
            max_squared=float(squared.max()),
        )

    def _finalize(self, value: float, scale: float, squared: bool) -> float:
        if value < 0:
            tolerance = self.config.tolerance(scale)
            if value < -tolerance:
                raise NonEuclideanInputError(value, tolerance)
            logger.debug(f"Clamped squared centroid distance {value:.3g} to 0")
            value = 0.0
        return value if squared else math.sqrt(value)

    def _point_value(self, position: int, geometry: _GroupGeometry, squared: bool) -> float:
        to_members = self.store.block([position], geometry.positions) ** 2
        value = float(to_members.sum()) / geometry.size - geometry.within_term
        scale = max(float(to_members.max()), geometry.max_squared)
        return self._finalize(value, scale, squared)

    def _between_value(self, a: _GroupGeometry, b: _GroupGeometry, squared: bool) -> float:
        cross = self.store.block(a.positions, b.positions) ** 2
        value = float(cross.sum()) / (a.size * b.size) - a.within_term - b.within_term
        scale = max(float(cross.max()), a.max_squared, b.max_squared)
        return self._finalize(value, scale, squared)

    def point_to_centroid(self, item: Any, members: Iterable[Any], squared: bool = False) -> float:
        """Distance from ``item`` to the centroid of ``members``.

        ``item`` may or may not belong to ``members``.

        Raises:
            EmptyGroupError: If ``members`` is empty
            UnknownLabelError: If a label is not in the store
            NonEuclideanInputError: If the squared result is negative beyond tolerance
        """
        position = self.store.position(item)
        return self._point_value(position, self._geometry(members), squared)

    def between_centroids(
        self, members_a: Iterable[Any], members_b: Iterable[Any], squared: bool = False
    ) -> float:
        """Distance between the centroids of two disjoint groups.

        Raises:
            EmptyGroupError: If either group is empty
            OverlappingGroupsError: If the groups share members
            UnknownLabelError: If a label is not in the store
            NonEuclideanInputError: If the squared result is negative beyond tolerance
        """
        labels_a = normalize_labels(members_a)
        labels_b = normalize_labels(members_b)
        geometry_a = self._geometry(labels_a)
        geometry_b = self._geometry(labels_b)

        shared = sorted(set(labels_a) & set(labels_b))
        if shared:
            raise OverlappingGroupsError(shared)
        return self._between_value(geometry_a, geometry_b, squared)

    def _group_geometries(self, groups: GroupAssignment) -> Tuple[Dict[str, Hashable], Dict[Hashable, _GroupGeometry]]:
        assignment = resolve_groups(self.store, groups)
        if not assignment:
            raise EmptyGroupError("No item is assigned to a group")
        members = group_members(assignment)
        return assignment, {group: self._geometry(labels) for group, labels in members.items()}

    def to_centroids(
        self, groups: GroupAssignment, all_groups: bool = False, squared: bool = False
    ) -> pd.DataFrame:
        """Distances from items to group centroids.

        Only assigned items are reported and only they make up the groups.

        Args:
            groups: Group assignment (may cover a subset of the store)
            all_groups: Report every item against every group instead of its own group only
            squared: Return squared distances

        Returns:
            DataFrame with columns ``Item, CentroidGroup, CentroidDistance``
        """
        assignment, geometries = self._group_geometries(groups)

        records: List[Tuple[str, Hashable, float]] = []
        for label, own_group in assignment.items():
            position = self.store.position(label)
            targets = list(geometries) if all_groups else [own_group]
            for group in targets:
                records.append((label, group, self._point_value(position, geometries[group], squared)))

        return pd.DataFrame.from_records(records, columns=CENTROID_TABLE_COLUMNS)

    def multi_centroids(self, groups: GroupAssignment, squared: bool = False) -> DistanceStore:
        """Centroid-to-centroid distances between every pair of groups.

        Returns:
            DistanceStore labelled by group name, in order of first appearance
        """
        _, geometries = self._group_geometries(groups)
        names = list(geometries)

        condensed = [
            self._between_value(geometries[a], geometries[b], squared)
            for a, b in itertools.combinations(names, 2)
        ]
        logger.debug(f"Computed centroid distances between {len(names)} groups")
        method = "centroid_squared" if squared else "centroid"
        return DistanceStore(names, condensed, method=method)


def dist_between_centroids(
    store: DistanceStore,
    members_a: Iterable[Any],
    members_b: Iterable[Any],
    squared: bool = False,
    config: Optional[CentroidConfig] = None,
) -> float:
    """Convenience wrapper around :meth:`CentroidDistanceEngine.between_centroids`."""
    return CentroidDistanceEngine(store, config).between_centroids(members_a, members_b, squared=squared)


def dist_to_centroids(
    store: DistanceStore,
    groups: GroupAssignment,
    all_groups: bool = False,
    squared: bool = False,
    config: Optional[CentroidConfig] = None,
) -> pd.DataFrame:
    """Convenience wrapper around :meth:`CentroidDistanceEngine.to_centroids`."""
    return CentroidDistanceEngine(store, config).to_centroids(groups, all_groups=all_groups, squared=squared)


def dist_multi_centroids(
    store: DistanceStore,
    groups: GroupAssignment,
    squared: bool = False,
    config: Optional[CentroidConfig] = None,
) -> DistanceStore:
    """Convenience wrapper around :meth:`CentroidDistanceEngine.multi_centroids`."""
    return CentroidDistanceEngine(store, config).multi_centroids(groups, squared=squared)
