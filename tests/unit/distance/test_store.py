"""
Tests for the compact distance store.

This test suite covers:
- Pair addressing (canonical order, bijection)
- Construction from condensed vectors and square tables
- Label lookup, symmetry and zero diagonal
- Immutability and dense views
"""

import itertools

import numpy as np
import pandas as pd
import pytest
from scipy.spatial.distance import pdist, squareform

from distkit.distance.exceptions import (
    AsymmetricInputError,
    DataValidationError,
    DuplicateLabelError,
    LengthMismatchError,
    UnknownLabelError,
)
from distkit.distance.store import DistanceStore, condensed_size, pair_offset, pair_offsets

# ============================================================================
# Addressing
# ============================================================================


@pytest.mark.unit
class TestPairAddressing:
    """Test the flat offset of unordered pairs."""

    def test_canonical_enumeration_order(self):
        """Offsets follow i over 0..n-2, then j over i+1..n-1."""
        n = 5
        pairs = [(i, j) for i in range(n - 1) for j in range(i + 1, n)]
        assert [pair_offset(i, j, n) for i, j in pairs] == list(range(condensed_size(n)))

    def test_offset_is_bijection(self):
        """Every unordered pair maps to a distinct offset covering the whole vector."""
        n = 9
        offsets = {pair_offset(i, j, n) for i, j in itertools.combinations(range(n), 2)}
        assert offsets == set(range(condensed_size(n)))

    def test_offset_ignores_argument_order(self):
        assert pair_offset(3, 1, 6) == pair_offset(1, 3, 6)

    def test_matches_scipy_condensed_layout(self):
        """The layout is the one produced by scipy's pdist."""
        rng = np.random.default_rng(0)
        points = rng.normal(size=(6, 2))
        condensed = pdist(points)
        square = squareform(condensed)
        for i, j in itertools.combinations(range(6), 2):
            assert condensed[pair_offset(i, j, 6)] == square[i, j]

    def test_diagonal_is_rejected(self):
        with pytest.raises(ValueError, match="diagonal"):
            pair_offset(2, 2, 4)

    def test_out_of_range_is_rejected(self):
        with pytest.raises(ValueError, match="out of range"):
            pair_offset(0, 4, 4)

    def test_vectorized_offsets_match_scalar(self):
        n = 7
        rows = np.array([0, 6, 2, 5, 1])
        cols = np.array([1, 0, 4, 3, 6])
        expected = [pair_offset(int(i), int(j), n) for i, j in zip(rows, cols)]
        assert pair_offsets(rows, cols, n).tolist() == expected

    def test_condensed_size(self):
        assert condensed_size(0) == 0
        assert condensed_size(1) == 0
        assert condensed_size(4) == 6


# ============================================================================
# Construction
# ============================================================================


@pytest.mark.unit
class TestDistanceStoreConstruction:
    """Test building stores and their validation."""

    def test_labels_and_values(self, small_store):
        assert small_store.labels == ("a", "b", "c", "d")
        assert small_store.condensed.tolist() == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
        assert len(small_store) == 4
        assert small_store.n_items == 4

    def test_labels_are_converted_to_strings(self):
        store = DistanceStore([1, 2], [0.5])
        assert store.labels == ("1", "2")
        assert store.distance(1, "2") == 0.5

    def test_duplicate_labels(self):
        with pytest.raises(DuplicateLabelError) as exc_info:
            DistanceStore(["a", "b", "a"], [1.0, 2.0, 3.0])
        assert exc_info.value.labels == ["a"]

    def test_wrong_length(self):
        with pytest.raises(LengthMismatchError) as exc_info:
            DistanceStore(["a", "b", "c"], [1.0, 2.0])
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2

    def test_negative_distance(self):
        with pytest.raises(DataValidationError, match="non-negative"):
            DistanceStore(["a", "b"], [-0.1])

    def test_non_finite_distance(self):
        with pytest.raises(DataValidationError, match="finite"):
            DistanceStore(["a", "b", "c"], [1.0, np.nan, 2.0])

    def test_empty_and_single_item_stores(self):
        assert len(DistanceStore([], [])) == 0
        single = DistanceStore(["only"], [])
        assert single.distance("only", "only") == 0.0
        assert single.to_square().shape == (1, 1)

    def test_input_is_copied(self):
        values = np.array([1.0, 2.0, 3.0])
        store = DistanceStore(["a", "b", "c"], values)
        values[0] = 99.0
        assert store.distance("a", "b") == 1.0

    def test_condensed_is_read_only(self, small_store):
        with pytest.raises(ValueError):
            small_store.condensed[0] = 10.0

    def test_method_metadata(self):
        store = DistanceStore(["a", "b"], [1.0], method="euclidean")
        assert store.method == "euclidean"
        assert "euclidean" in repr(store)


@pytest.mark.unit
class TestFromSquare:
    """Test construction from full square tables."""

    def test_from_array(self, small_store):
        square = small_store.to_square()
        rebuilt = DistanceStore.from_square(square, labels=["a", "b", "c", "d"])
        assert rebuilt == small_store

    def test_from_dataframe_uses_index(self, small_store):
        frame = small_store.to_dataframe()
        rebuilt = DistanceStore.from_square(frame)
        assert rebuilt.labels == small_store.labels
        assert rebuilt == small_store

    def test_dataframe_with_matching_labels(self, small_store):
        rebuilt = DistanceStore.from_square(small_store.to_dataframe(), labels=["a", "b", "c", "d"])
        assert rebuilt == small_store

    def test_dataframe_with_conflicting_labels(self, small_store):
        with pytest.raises(DataValidationError, match="DataFrame index"):
            DistanceStore.from_square(small_store.to_dataframe(), labels=["d", "c", "b", "a"])

    def test_asymmetric_input_fails(self):
        """Asymmetric tables are rejected, never symmetrized."""
        matrix = np.array([[0.0, 1.0, 2.0], [1.0, 0.0, 3.0], [2.5, 3.0, 0.0]])
        with pytest.raises(AsymmetricInputError) as exc_info:
            DistanceStore.from_square(matrix, labels=["a", "b", "c"])
        assert set(exc_info.value.labels) == {"a", "c"}
        assert exc_info.value.value == pytest.approx(0.5)

    def test_non_zero_diagonal_fails(self):
        matrix = np.array([[0.0, 1.0], [1.0, 0.2]])
        with pytest.raises(AsymmetricInputError):
            DistanceStore.from_square(matrix, labels=["a", "b"])

    def test_small_asymmetry_within_tolerance(self):
        matrix = np.array([[0.0, 1.0], [1.0 + 1e-12, 0.0]])
        store = DistanceStore.from_square(matrix, labels=["a", "b"])
        assert store.distance("b", "a") == 1.0

    def test_custom_tolerance(self):
        matrix = np.array([[0.0, 1.0], [1.01, 0.0]])
        store = DistanceStore.from_square(matrix, labels=["a", "b"], atol=0.1)
        assert store.distance("a", "b") == 1.0

    def test_non_square_fails(self):
        with pytest.raises(DataValidationError, match="square"):
            DistanceStore.from_square(np.zeros((2, 3)), labels=["a", "b"])

    def test_labels_required_for_arrays(self):
        with pytest.raises(DataValidationError, match="Labels are required"):
            DistanceStore.from_square(np.zeros((2, 2)))

    def test_label_count_mismatch(self):
        with pytest.raises(LengthMismatchError):
            DistanceStore.from_square(np.zeros((2, 2)), labels=["a", "b", "c"])

    def test_dataframe_with_mismatched_axes(self):
        frame = pd.DataFrame(np.zeros((2, 2)), index=["a", "b"], columns=["b", "a"])
        with pytest.raises(DataValidationError, match="same labels"):
            DistanceStore.from_square(frame)


# ============================================================================
# Lookup
# ============================================================================


@pytest.mark.unit
class TestDistanceLookup:
    """Test label-based access."""

    def test_distance_values(self, small_store):
        assert small_store.distance("a", "b") == 1.0
        assert small_store.distance("b", "d") == 5.0
        assert small_store.distance("c", "d") == 6.0

    def test_symmetry(self, small_store):
        for a, b in itertools.product(small_store.labels, repeat=2):
            assert small_store.distance(a, b) == small_store.distance(b, a)

    def test_zero_diagonal(self, small_store):
        for label in small_store.labels:
            assert small_store.distance(label, label) == 0.0

    def test_unknown_label(self, small_store):
        with pytest.raises(UnknownLabelError) as exc_info:
            small_store.distance("a", "zzz")
        assert exc_info.value.label == "zzz"
        assert str(exc_info.value) == "Unknown label: 'zzz'"

    def test_unknown_label_on_diagonal(self, small_store):
        with pytest.raises(UnknownLabelError):
            small_store.distance("zzz", "zzz")

    def test_unknown_label_is_key_error(self, small_store):
        with pytest.raises(KeyError):
            small_store.position("missing")

    def test_contains_and_iter(self, small_store):
        assert "a" in small_store
        assert "z" not in small_store
        assert list(small_store) == ["a", "b", "c", "d"]

    def test_block(self, small_store):
        block = small_store.block([0, 2], [1, 2, 3])
        np.testing.assert_array_equal(block, [[1.0, 2.0, 3.0], [4.0, 0.0, 6.0]])

    def test_block_matches_square(self, small_store):
        positions = [3, 0, 2, 1]
        expected = small_store.to_square()[np.ix_(positions, positions)]
        np.testing.assert_array_equal(small_store.block(positions, positions), expected)


@pytest.mark.unit
class TestDenseViewsAndRelabel:
    def test_to_square(self, small_store):
        square = small_store.to_square()
        assert square.shape == (4, 4)
        np.testing.assert_array_equal(square, square.T)
        np.testing.assert_array_equal(np.diag(square), 0.0)
        assert square[1, 3] == 5.0

    def test_to_dataframe(self, small_store):
        frame = small_store.to_dataframe()
        assert list(frame.index) == ["a", "b", "c", "d"]
        assert list(frame.columns) == ["a", "b", "c", "d"]
        assert frame.loc["d", "a"] == 3.0

    def test_relabel(self, small_store):
        renamed = small_store.relabel(["w", "x", "y", "z"])
        assert renamed.distance("w", "x") == 1.0
        assert small_store.labels == ("a", "b", "c", "d")

    def test_relabel_wrong_length(self, small_store):
        with pytest.raises(LengthMismatchError):
            small_store.relabel(["w", "x"])

    def test_equality(self, small_store):
        same = DistanceStore(["a", "b", "c", "d"], [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        other = DistanceStore(["a", "b", "c", "d"], [1.0, 2.0, 3.0, 4.0, 5.0, 7.0])
        assert small_store == same
        assert small_store != other
