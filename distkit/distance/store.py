"""
Compact symmetric distance storage.

A DistanceStore keeps the n·(n-1)/2 distances of the upper triangle in a flat
array, in the condensed order used by ``scipy.spatial.distance.squareform``:

    (0, 1), (0, 2), ..., (0, n-1), (1, 2), ..., (n-2, n-1)

The diagonal is implicitly zero and the lower triangle is the transpose of
the upper one. Every other module addresses distances through
:func:`pair_offset` / :func:`pair_offsets`, so this order must not change.
"""

from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy.spatial.distance import squareform

from ..utils.logging import get_logger
from .exceptions import (
    AsymmetricInputError,
    DataValidationError,
    DuplicateLabelError,
    LengthMismatchError,
    UnknownLabelError,
)

logger = get_logger(__name__)

DEFAULT_SYMMETRY_ATOL = 1e-8


def condensed_size(n: int) -> int:
    """Number of unordered pairs among ``n`` items."""
    return n * (n - 1) // 2


def pair_offset(i: int, j: int, n: int) -> int:
    """Return the flat offset of the unordered pair {i, j}.

    Pairs are enumerated with ``i`` running over 0..n-2 and, for each ``i``,
    ``j`` over i+1..n-1. The arguments may be given in either order.

    Args:
        i: Positional index of the first item
        j: Positional index of the second item
        n: Number of items in the store

    Returns:
        Offset into the condensed distance vector

    Raises:
        ValueError: If ``i == j`` or an index is outside ``[0, n)``
    """
    if i == j:
        raise ValueError(f"Pair offsets are undefined on the diagonal (i == j == {i})")
    if not (0 <= i < n and 0 <= j < n):
        raise ValueError(f"Indices ({i}, {j}) out of range for {n} items")
    if i > j:
        i, j = j, i
    return n * i - i * (i + 1) // 2 + (j - i - 1)


def pair_offsets(rows: NDArray[np.intp], cols: NDArray[np.intp], n: int) -> NDArray[np.intp]:
    """Vectorized :func:`pair_offset` for index arrays with ``rows != cols`` elementwise."""
    lo = np.minimum(rows, cols)
    hi = np.maximum(rows, cols)
    return n * lo - lo * (lo + 1) // 2 + (hi - lo - 1)


def normalize_labels(labels: Iterable[Any]) -> Tuple[str, ...]:
    normalized = tuple(str(label) for label in labels)
    if len(set(normalized)) != len(normalized):
        seen = set()
        duplicates = []
        for label in normalized:
            if label in seen and label not in duplicates:
                duplicates.append(label)
            seen.add(label)
        raise DuplicateLabelError(duplicates)
    return normalized


class DistanceStore:
    """Immutable symmetric pairwise-distance relation over labelled items.

    Args:
        labels: Ordered, unique item labels (converted with ``str``)
        condensed: Upper-triangle distances in canonical pair order
        method: Optional name of the metric that produced the distances

    Raises:
        DuplicateLabelError: If labels repeat
        LengthMismatchError: If ``condensed`` does not hold n·(n-1)/2 values
        DataValidationError: If a distance is negative or not finite

    Examples:
        >>> store = DistanceStore(["a", "b", "c"], [1.0, 2.0, 3.0])
        >>> store.distance("c", "a")
        2.0
    """

    def __init__(
        self,
        labels: Iterable[Any],
        condensed: Union[Sequence[float], NDArray[np.float64]],
        method: Optional[str] = None,
    ):
        self._labels = normalize_labels(labels)
        values = np.array(condensed, dtype=np.float64).reshape(-1)

        expected = condensed_size(len(self._labels))
        if values.shape[0] != expected:
            raise LengthMismatchError(expected, values.shape[0], what="condensed distances")
        if not np.all(np.isfinite(values)):
            raise DataValidationError("Distances must be finite")
        if np.any(values < 0):
            raise DataValidationError(f"Distances must be non-negative, minimum is {values.min():.6g}")

        values.setflags(write=False)
        self._values = values
        self._index = {label: pos for pos, label in enumerate(self._labels)}
        self._method = method

    @classmethod
    def from_square(
        cls,
        matrix: Union[NDArray[np.float64], pd.DataFrame],
        labels: Optional[Iterable[Any]] = None,
        atol: float = DEFAULT_SYMMETRY_ATOL,
        method: Optional[str] = None,
    ) -> "DistanceStore":
        """Create a store from a full n×n distance table.

        Asymmetric input is rejected rather than symmetrized: every pair must
        satisfy ``|m[i, j] - m[j, i]| <= atol`` and every diagonal entry
        ``|m[i, i]| <= atol``. Within tolerance the upper triangle is kept.

        Args:
            matrix: Square array, or a DataFrame whose index and columns hold the labels
            labels: Item labels; required unless ``matrix`` is a DataFrame, in which
                case they must match its index when given
            atol: Absolute symmetry tolerance
            method: Optional metric name recorded on the store

        Raises:
            AsymmetricInputError: If the table is not symmetric with a zero diagonal
            DataValidationError: If the table is not square, labels are missing, or
                ``labels`` disagrees with a DataFrame index
        """
        if labels is not None:
            labels = list(labels)
        if isinstance(matrix, pd.DataFrame):
            frame_labels = [str(label) for label in matrix.index]
            if frame_labels != [str(label) for label in matrix.columns]:
                raise DataValidationError("DataFrame index and columns must list the same labels in order")
            if labels is None:
                labels = frame_labels
            elif [str(label) for label in labels] != frame_labels:
                raise DataValidationError(f"labels do not match the DataFrame index {frame_labels}")
            matrix = matrix.to_numpy(dtype=np.float64)

        square = np.asarray(matrix, dtype=np.float64)
        if square.ndim != 2 or square.shape[0] != square.shape[1]:
            raise DataValidationError(f"Distance table must be square, got shape {square.shape}")
        if labels is None:
            raise DataValidationError("Labels are required when building from a plain array")
        labels = list(labels)
        if len(labels) != square.shape[0]:
            raise LengthMismatchError(square.shape[0], len(labels), what="labels")

        deviation = np.abs(square - square.T)
        np.fill_diagonal(deviation, np.abs(np.diag(square)))
        if deviation.size and deviation.max() > atol:
            i, j = np.unravel_index(int(np.argmax(deviation)), deviation.shape)
            raise AsymmetricInputError(labels[i], labels[j], float(deviation[i, j]))

        rows, cols = np.triu_indices(square.shape[0], k=1)
        logger.debug(f"Condensed {square.shape[0]}x{square.shape[0]} distance table")
        return cls(labels, square[rows, cols], method=method)

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    @property
    def condensed(self) -> NDArray[np.float64]:
        """Read-only view of the upper-triangle distances."""
        return self._values

    @property
    def method(self) -> Optional[str]:
        return self._method

    @property
    def n_items(self) -> int:
        return len(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, label: Any) -> bool:
        return str(label) in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DistanceStore):
            return NotImplemented
        return self._labels == other._labels and np.array_equal(self._values, other._values)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        method = f", method={self._method!r}" if self._method else ""
        return f"DistanceStore(n_items={len(self)}{method})"

    def position(self, label: Any) -> int:
        """Return the positional index of ``label``.

        Raises:
            UnknownLabelError: If the label is not in the store
        """
        try:
            return self._index[str(label)]
        except KeyError:
            raise UnknownLabelError(label) from None

    def positions(self, labels: Iterable[Any]) -> NDArray[np.intp]:
        """Positional indices for several labels, validated before returning."""
        return np.array([self.position(label) for label in labels], dtype=np.intp)

    def distance(self, a: Any, b: Any) -> float:
        """Return the distance between labels ``a`` and ``b``."""
        i = self.position(a)
        j = self.position(b)
        if i == j:
            return 0.0
        return float(self._values[pair_offset(i, j, len(self))])

    def block(self, rows: Sequence[int], cols: Sequence[int]) -> NDArray[np.float64]:
        """Distances between two sets of positions as a ``len(rows) × len(cols)`` array.

        Entries where the row and column position coincide are zero. The full
        square matrix is never built.
        """
        row_idx = np.asarray(rows, dtype=np.intp).reshape(-1, 1)
        col_idx = np.asarray(cols, dtype=np.intp).reshape(1, -1)
        row_grid, col_grid = np.broadcast_arrays(row_idx, col_idx)

        result = np.zeros(row_grid.shape, dtype=np.float64)
        off_diagonal = row_grid != col_grid
        if off_diagonal.any():
            offsets = pair_offsets(row_grid[off_diagonal], col_grid[off_diagonal], len(self))
            result[off_diagonal] = self._values[offsets]
        return result

    def to_square(self) -> NDArray[np.float64]:
        """Dense symmetric n×n matrix."""
        if len(self) < 2:
            return np.zeros((len(self), len(self)), dtype=np.float64)
        return squareform(self._values, checks=False)

    def to_dataframe(self) -> pd.DataFrame:
        """Dense matrix as a DataFrame labelled on both axes."""
        labels: List[str] = list(self._labels)
        return pd.DataFrame(self.to_square(), index=labels, columns=labels)

    def relabel(self, new_labels: Iterable[Any]) -> "DistanceStore":
        """Return a store with the same distances under new labels."""
        new_labels = list(new_labels)
        if len(new_labels) != len(self):
            raise LengthMismatchError(len(self), len(new_labels), what="labels")
        return DistanceStore(new_labels, self._values, method=self._method)
