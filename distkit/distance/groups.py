"""
Group assignments and the (item pair × group) distance table.

A group assignment maps item labels to group names. It can be given as a
mapping (dict or pandas Series indexed by label) or as a sequence aligned
with the store's label order.
"""

from collections.abc import Mapping
from typing import Any, Dict, Hashable, List, Sequence, Union

import numpy as np
import pandas as pd

from ..utils.logging import get_logger
from .exceptions import DataValidationError, LengthMismatchError, UnknownLabelError
from .store import DistanceStore

logger = get_logger(__name__)

# Type aliases
GroupAssignment = Union[Mapping, pd.Series, Sequence[Hashable]]

GROUP_TABLE_COLUMNS = ["Item1", "Item2", "Group1", "Group2", "Label", "Distance"]


def resolve_groups(store: DistanceStore, groups: GroupAssignment) -> Dict[str, Hashable]:
    """Normalize a group assignment to an ordered ``label -> group`` dict.

    The result follows the store's label order and only holds assigned items.
    Missing values (None/NaN) count as unassigned. Distinct groups must have
    distinct string forms, so ``1`` and ``"1"`` cannot both be used.

    Raises:
        DataValidationError: If two different groups have the same string form
        UnknownLabelError: If the assignment names a label absent from ``store``
        LengthMismatchError: If a positional assignment does not match the store size
    """
    if isinstance(groups, pd.Series):
        groups = groups.to_dict()

    if isinstance(groups, Mapping):
        assigned = {}
        for label, group in groups.items():
            if str(label) not in store:
                raise UnknownLabelError(label)
            assigned[str(label)] = group
    else:
        groups = list(groups)
        if len(groups) != len(store):
            raise LengthMismatchError(len(store), len(groups), what="group assignment")
        assigned = dict(zip(store.labels, groups))

    resolved = {
        label: assigned[label]
        for label in store.labels
        if label in assigned and not _is_missing(assigned[label])
    }

    # Group names are rendered with str() in labels and centroid stores
    by_name: Dict[str, Hashable] = {}
    by_group: Dict[Hashable, str] = {}
    for group in resolved.values():
        name = str(group)
        other = by_name.setdefault(name, group)
        if other != group or by_group.setdefault(group, name) != name:
            raise DataValidationError(f"Group {group!r} collides with another group when written as text")
    return resolved


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and np.isnan(value))


def group_members(assignment: Dict[str, Hashable]) -> Dict[Hashable, List[str]]:
    """Invert an assignment into ``group -> members`` in first-appearance order."""
    members: Dict[Hashable, List[str]] = {}
    for label, group in assignment.items():
        members.setdefault(group, []).append(label)
    return members


def pair_label(group_a: Hashable, group_b: Hashable) -> str:
    """Human-readable label for a pair of groups, independent of argument order.

    Examples:
        >>> pair_label("Treatment", "Control")
        'Between Control and Treatment'
        >>> pair_label("Control", "Control")
        'Within Control'
    """
    name_a, name_b = sorted((str(group_a), str(group_b)))
    if name_a == name_b:
        return f"Within {name_a}"
    return f"Between {name_a} and {name_b}"


def tabulate_groups(store: DistanceStore, groups: GroupAssignment) -> pd.DataFrame:
    """Tabulate every unordered item pair alongside its groups.

    Rows come in the store's canonical pair order (i<j by position).

    Args:
        store: Distance store
        groups: Group assignment covering every item of ``store``

    Returns:
        DataFrame with columns ``Item1, Item2, Group1, Group2, Label, Distance``

    Raises:
        DataValidationError: If an item has no group
        UnknownLabelError: If the assignment names an unknown label
    """
    assignment = resolve_groups(store, groups)
    missing = [label for label in store.labels if label not in assignment]
    if missing:
        raise DataValidationError(f"No group assigned for items: {missing}")

    n = len(store)
    rows, cols = np.triu_indices(n, k=1)
    labels = np.array(store.labels, dtype=object)
    group_values = [assignment[label] for label in store.labels]

    group1 = [group_values[i] for i in rows]
    group2 = [group_values[j] for j in cols]

    table = pd.DataFrame(
        {
            "Item1": labels[rows],
            "Item2": labels[cols],
            "Group1": group1,
            "Group2": group2,
            "Label": [pair_label(a, b) for a, b in zip(group1, group2)],
            "Distance": np.array(store.condensed, dtype=np.float64),
        },
        columns=GROUP_TABLE_COLUMNS,
    )
    logger.debug(f"Tabulated {len(table)} pairs across {len(set(group_values))} groups")
    return table
