"""
Read-only derivations over a DistanceStore: subsetting/reordering and
arbitrary origin/destination pair lookup.
"""

from typing import Any, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from ..utils.logging import get_logger
from .exceptions import LengthMismatchError
from .store import DistanceStore, normalize_labels, pair_offsets

logger = get_logger(__name__)


def subset(store: DistanceStore, label_order: Iterable[Any]) -> DistanceStore:
    """Return a new store restricted to ``label_order``, in that order.

    Repeated labels are rejected because a store cannot hold the same label
    twice.

    Args:
        store: Source distance store (not modified)
        label_order: Labels to keep, in the desired output order

    Returns:
        New DistanceStore with distances copied from ``store``

    Raises:
        UnknownLabelError: If a label is not in ``store``
        DuplicateLabelError: If ``label_order`` repeats a label

    Examples:
        >>> reordered = subset(store, ["b", "c", "a"])
        >>> reordered.labels
        ('b', 'c', 'a')
    """
    labels = normalize_labels(label_order)
    positions = store.positions(labels)

    rows, cols = np.triu_indices(len(labels), k=1)
    condensed = store.block(positions, positions)[rows, cols]
    logger.debug(f"Subset {len(labels)} of {len(store)} items")
    return DistanceStore(labels, condensed, method=store.method)


def get_pairs(
    store: DistanceStore,
    origins: Sequence[Any],
    destinations: Sequence[Any],
) -> NDArray[np.float64]:
    """Distances for aligned origin/destination label sequences.

    Args:
        store: Distance store to read from
        origins: Origin labels
        destinations: Destination labels, same length as ``origins``

    Returns:
        Array whose k-th entry is ``store.distance(origins[k], destinations[k])``

    Raises:
        LengthMismatchError: If the sequences differ in length
        UnknownLabelError: If any label is not in ``store``
    """
    origins = list(origins)
    destinations = list(destinations)
    if len(origins) != len(destinations):
        raise LengthMismatchError(len(origins), len(destinations), what="destinations")

    # Resolve every label before reading any distance
    rows = store.positions(origins)
    cols = store.positions(destinations)

    result = np.zeros(len(rows), dtype=np.float64)
    off_diagonal = rows != cols
    if off_diagonal.any():
        result[off_diagonal] = store.condensed[pair_offsets(rows[off_diagonal], cols[off_diagonal], len(store))]
    return result
