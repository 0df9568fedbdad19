import numpy as np
import pandas as pd
import pytest

from distkit.distance import DistanceStore, build_distance_store


@pytest.fixture
def unit_square_points():
    """Corners of the unit square; bottom edge and top edge form the two groups."""
    return pd.DataFrame(
        [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]],
        index=["bl", "br", "tl", "tr"],
        columns=["x", "y"],
    )


@pytest.fixture
def unit_square_store(unit_square_points):
    return build_distance_store(unit_square_points, "euclidean")


@pytest.fixture
def unit_square_groups():
    return {"bl": "Bottom", "br": "Bottom", "tl": "Top", "tr": "Top"}


@pytest.fixture
def small_store():
    """Four items with distinct distances so that offsets are easy to tell apart."""
    # (a,b)=1 (a,c)=2 (a,d)=3 (b,c)=4 (b,d)=5 (c,d)=6
    return DistanceStore(["a", "b", "c", "d"], [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])


@pytest.fixture(scope="module")
def random_points():
    """Random 3-D points with labels s0..s11, reproducible."""
    rng = np.random.default_rng(42)
    coords = rng.normal(size=(12, 3))
    return pd.DataFrame(coords, index=[f"s{i}" for i in range(12)], columns=["x", "y", "z"])


@pytest.fixture(scope="module")
def random_groups():
    return {f"s{i}": ("Control" if i % 3 == 0 else "Treatment" if i % 3 == 1 else "Placebo") for i in range(12)}
