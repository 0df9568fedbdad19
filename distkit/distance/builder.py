"""
Distance store construction from raw rows and a caller-supplied metric.

The metric is evaluated once per unordered pair, in the canonical order of
:func:`distkit.distance.store.pair_offset`. Callers are responsible for
supplying a symmetric metric: ``m(a, b)`` is used for both (a, b) and (b, a)
and an asymmetric metric silently yields the upper-triangle values.

Example:
    >>> from distkit.distance import DistanceBuilder, ParallelConfig
    >>> builder = DistanceBuilder(ParallelConfig(strategy="worker_pool", n_jobs=4))
    >>> store = builder.build(frame, "euclidean")
"""

import itertools
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from scipy.spatial import distance as scipy_distance
from tqdm import tqdm

from ..utils.logging import get_logger
from .exceptions import LengthMismatchError, MetricEvaluationError
from .store import DistanceStore, condensed_size, normalize_labels, pair_offset

logger = get_logger(__name__)

# Type aliases
Metric = Callable[..., float]
ParallelBackend = Literal["loky", "threading", "multiprocessing"]

PARALLEL_STRATEGIES = ["sequential", "worker_pool"]
PARALLEL_BACKENDS = ["loky", "threading", "multiprocessing"]


@dataclass
class ParallelConfig:
    """Concurrency settings for :class:`DistanceBuilder`.

    Attributes:
        strategy: ``"sequential"`` or ``"worker_pool"``
        n_jobs: Pool size for the worker pool; ``-1`` uses all cores
        backend: joblib backend used by the worker pool
        batch_size: joblib batch size (``"auto"`` or a positive int)
        show_progress: Show a tqdm progress bar over pairs
    """

    strategy: str = "sequential"
    n_jobs: int = 1
    backend: str = "loky"
    batch_size: Union[int, str] = "auto"
    show_progress: bool = False

    def __post_init__(self):
        if self.strategy not in PARALLEL_STRATEGIES:
            raise ValueError(f"Unknown parallel strategy '{self.strategy}'. Available: {PARALLEL_STRATEGIES}")
        if self.backend not in PARALLEL_BACKENDS:
            raise ValueError(f"Unknown joblib backend '{self.backend}'. Available: {PARALLEL_BACKENDS}")
        if self.n_jobs == 0 or self.n_jobs < -1:
            raise ValueError(f"n_jobs must be a positive integer or -1, got {self.n_jobs}")
        if isinstance(self.batch_size, int) and self.batch_size < 1:
            raise ValueError(f"batch_size must be 'auto' or a positive integer, got {self.batch_size}")

    @property
    def is_parallel(self) -> bool:
        return self.strategy == "worker_pool" and self.n_jobs != 1


def resolve_metric(metric: Union[str, Metric]) -> Tuple[Metric, str]:
    """Turn a metric name or callable into a callable and a display name.

    Names are looked up among the distance functions of ``scipy.spatial.distance``.
    """
    if callable(metric):
        return metric, getattr(metric, "__name__", type(metric).__name__)
    if isinstance(metric, str):
        func = getattr(scipy_distance, metric, None)
        if func is None or not callable(func) or metric.startswith("_"):
            raise ValueError(f"Unknown metric '{metric}'. Use a scipy.spatial.distance function name or a callable")
        return func, metric
    raise TypeError(f"Metric must be a callable or a string, got {type(metric)}")


def _split_rows(rows: Any, labels: Optional[Iterable[Any]]) -> Tuple[List[Any], List[Any]]:
    """Return (row values, labels) for the supported row containers."""
    if isinstance(rows, pd.DataFrame):
        values = [row for row in rows.to_numpy()]
        default_labels = list(rows.index)
    elif isinstance(rows, np.ndarray):
        values = [row for row in rows]
        default_labels = [str(i) for i in range(len(values))]
    elif isinstance(rows, Mapping):
        values = list(rows.values())
        default_labels = list(rows.keys())
    else:
        values = list(rows)
        default_labels = [str(i) for i in range(len(values))]

    if labels is None:
        return values, default_labels

    labels = list(labels)
    if len(labels) != len(values):
        raise LengthMismatchError(len(values), len(labels), what="row labels")
    return values, labels


def _evaluate_pair(
    metric: Metric,
    row_a: Any,
    row_b: Any,
    label_a: Any,
    label_b: Any,
    metric_kwargs: Dict[str, Any],
) -> float:
    """Evaluate the metric for one pair, tagging any failure with the pair's labels."""
    try:
        value = float(metric(row_a, row_b, **metric_kwargs))
    except Exception as e:
        raise MetricEvaluationError(label_a, label_b, f"{type(e).__name__}: {e}") from e

    if math.isnan(value) or math.isinf(value):
        raise MetricEvaluationError(label_a, label_b, f"metric returned non-finite value {value}")
    if value < 0:
        raise MetricEvaluationError(label_a, label_b, f"metric returned negative value {value}")
    return value


class DistanceBuilder:
    """Build a :class:`DistanceStore` from rows and a two-argument metric.

    The metric is called once for every pair i<j. With the worker-pool
    strategy the pairs are dispatched through ``joblib.Parallel``; results are
    written to the slot given by their pair offset, so the stored distances
    are identical to a sequential build. The first failing pair aborts the
    build with :class:`MetricEvaluationError`.

    Args:
        config: Concurrency settings (default: sequential)
    """

    def __init__(self, config: Optional[ParallelConfig] = None):
        self.config = config if config is not None else ParallelConfig()

    def build(
        self,
        rows: Any,
        metric: Union[str, Metric],
        labels: Optional[Iterable[Any]] = None,
        **metric_kwargs: Any,
    ) -> DistanceStore:
        """Compute all pairwise distances between ``rows``.

        Args:
            rows: DataFrame (index gives labels), array (one row per item; a 1-D
                array holds one scalar per item), mapping label -> row, or a
                sequence of arbitrary row values. With a named metric every row
                is passed as a 1-D vector.
            metric: Callable ``m(row_a, row_b, **metric_kwargs) -> float`` or the
                name of a ``scipy.spatial.distance`` function
            labels: Row labels; overrides labels taken from ``rows``
            **metric_kwargs: Extra keyword arguments forwarded to every metric call

        Returns:
            DistanceStore over the row labels in input order

        Raises:
            MetricEvaluationError: If the metric fails for any pair
            DuplicateLabelError: If row labels repeat
            LengthMismatchError: If ``labels`` does not match the number of rows
        """
        func, method_name = resolve_metric(metric)
        values, row_labels = _split_rows(rows, labels)
        if isinstance(metric, str):
            # scipy metrics only take 1-D vectors; scalar rows become length-1 vectors
            values = [np.atleast_1d(value) for value in values]
        n = len(values)
        n_pairs = condensed_size(n)

        # Fail before evaluating any pair
        normalize_labels(row_labels)

        strategy = "worker_pool" if self.config.is_parallel else "sequential"
        logger.info(f"Computing {n_pairs} pairwise '{method_name}' distances for {n} rows ({strategy})")

        pairs: Iterable[Tuple[int, int]] = itertools.combinations(range(n), 2)
        if self.config.show_progress:
            # Advances as pairs are dispatched
            pairs = tqdm(pairs, total=n_pairs, desc=f"{method_name} distances")

        if self.config.is_parallel:
            results = self._evaluate_parallel(pairs, func, values, row_labels, metric_kwargs)
        else:
            results = self._evaluate_sequential(pairs, func, values, row_labels, metric_kwargs)

        condensed = np.empty(n_pairs, dtype=np.float64)
        for (i, j), value in results:
            condensed[pair_offset(i, j, n)] = value

        logger.debug(f"Finished {n_pairs} distance evaluations")
        return DistanceStore(row_labels, condensed, method=method_name)

    def _evaluate_sequential(
        self,
        pairs: Iterable[Tuple[int, int]],
        func: Metric,
        values: Sequence[Any],
        row_labels: Sequence[Any],
        metric_kwargs: Dict[str, Any],
    ) -> List[Tuple[Tuple[int, int], float]]:
        return [
            ((i, j), _evaluate_pair(func, values[i], values[j], row_labels[i], row_labels[j], metric_kwargs))
            for i, j in pairs
        ]

    def _evaluate_parallel(
        self,
        pairs: Iterable[Tuple[int, int]],
        func: Metric,
        values: Sequence[Any],
        row_labels: Sequence[Any],
        metric_kwargs: Dict[str, Any],
    ) -> List[Tuple[Tuple[int, int], float]]:
        index_pairs: List[Tuple[int, int]] = []

        def dispatch():
            for i, j in pairs:
                index_pairs.append((i, j))
                yield delayed(_evaluate_pair)(func, values[i], values[j], row_labels[i], row_labels[j], metric_kwargs)

        distances = Parallel(
            n_jobs=self.config.n_jobs,
            backend=self.config.backend,
            batch_size=self.config.batch_size,
        )(dispatch())
        # joblib returns results in dispatch order
        return list(zip(index_pairs, distances))


def build_distance_store(
    rows: Any,
    metric: Union[str, Metric],
    labels: Optional[Iterable[Any]] = None,
    n_jobs: int = 1,
    backend: ParallelBackend = "loky",
    **metric_kwargs: Any,
) -> DistanceStore:
    """Convenience function to build a distance store.

    Uses a worker pool when ``n_jobs`` is not 1.

    Examples:
        >>> store = build_distance_store(
        ...     {"a": [0.0, 0.0], "b": [3.0, 4.0]},
        ...     "euclidean",
        ... )
        >>> store.distance("a", "b")
        5.0
    """
    strategy = "sequential" if n_jobs == 1 else "worker_pool"
    builder = DistanceBuilder(ParallelConfig(strategy=strategy, n_jobs=n_jobs, backend=backend))
    return builder.build(rows, metric, labels=labels, **metric_kwargs)
