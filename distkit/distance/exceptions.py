"""
Distance exceptions for the distkit framework.

This module contains the exceptions raised by the distance store, the builder
and the centroid engine. Validation problems derive from DataValidationError,
failures that happen while computing derive from DistanceComputationError.
"""

from typing import Any, Iterable, Sequence


class DistanceError(Exception):
    """Base exception for distance operations."""

    pass


class DataValidationError(DistanceError):
    """Custom exception for data validation errors."""

    pass


class DistanceComputationError(DistanceError):
    """Custom exception for distance computation errors."""

    pass


class UnknownLabelError(DataValidationError, KeyError):
    """Raised when a label is not part of the distance store."""

    def __init__(self, label: Any):
        self.label = label
        super().__init__(f"Unknown label: {label!r}")

    def __str__(self) -> str:
        # KeyError would otherwise quote the whole message
        return str(self.args[0])


class DuplicateLabelError(DataValidationError):
    """Raised when a label sequence contains repeated labels."""

    def __init__(self, labels: Iterable[Any]):
        self.labels = list(labels)
        super().__init__(f"Duplicate labels are not allowed: {self.labels}")


class LengthMismatchError(DataValidationError):
    """Raised when two sequences that must be aligned differ in length."""

    def __init__(self, expected: int, actual: int, what: str = "sequence"):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Length mismatch for {what}: expected {expected}, got {actual}")


class AsymmetricInputError(DataValidationError):
    """Raised when a square distance table is not symmetric with a zero diagonal."""

    def __init__(self, label_a: Any, label_b: Any, value: float):
        self.labels = (label_a, label_b)
        self.value = value
        super().__init__(
            f"Distance table is not symmetric/zero-diagonal at ({label_a!r}, {label_b!r}): "
            f"deviation {value:.6g}"
        )


class EmptyGroupError(DataValidationError):
    """Raised when a centroid is requested for a group without members."""

    pass


class OverlappingGroupsError(DataValidationError):
    """Raised when two groups passed to a centroid computation share members."""

    def __init__(self, shared: Sequence[Any]):
        self.shared = list(shared)
        super().__init__(f"Groups must be disjoint, shared members: {self.shared}")


class NonEuclideanInputError(DistanceComputationError):
    """Raised when a squared centroid distance is negative beyond tolerance."""

    def __init__(self, value: float, tolerance: float):
        self.value = value
        self.tolerance = tolerance
        super().__init__(
            f"Squared centroid distance {value:.6g} is below -{tolerance:.3g}; "
            "the distances cannot be embedded in a Euclidean space"
        )


class MetricEvaluationError(DistanceComputationError):
    """Raised when the metric fails for a pair of rows during a build."""

    def __init__(self, label_a: Any, label_b: Any, reason: str = ""):
        self.labels = (label_a, label_b)
        self.reason = reason
        super().__init__(f"Metric failed for pair ({label_a!r}, {label_b!r}): {reason}")

    def __reduce__(self):
        # Keeps the exception intact when it crosses a process boundary
        return (type(self), (self.labels[0], self.labels[1], self.reason))
