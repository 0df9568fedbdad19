#!/usr/bin/env python
"""
distkit Quickstart Example
==========================

This example builds a distance store from a small abundance table, looks at
a subset of it, tabulates within/between-group distances and computes
centroid distances without ever using the sample coordinates.

Usage
-----
1. Defaults:
   python quickstart.py

2. With config file:
   python quickstart.py --config config.yaml

3. Custom options:
   python quickstart.py --metric cityblock --n-jobs 4
"""

import argparse

import numpy as np
import pandas as pd

from distkit.config import DistkitConfig
from distkit.distance import dist_multi_centroids, dist_to_centroids, get_pairs, subset, tabulate_groups
from distkit.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def make_abundance_table(n_samples: int = 10, n_species: int = 6, seed: int = 0) -> pd.DataFrame:
    """Random species counts, one row per sample."""
    rng = np.random.default_rng(seed)
    counts = rng.poisson(lam=20.0, size=(n_samples, n_species)).astype(float)
    return pd.DataFrame(
        counts,
        index=[f"Sample{i:02d}" for i in range(n_samples)],
        columns=[f"sp{j}" for j in range(n_species)],
    )


def main():
    parser = argparse.ArgumentParser(description="distkit quickstart")
    parser.add_argument("--config", help="Path to a distkit YAML config")
    parser.add_argument("--metric", default="euclidean", help="scipy.spatial.distance metric name")
    parser.add_argument("--n-jobs", type=int, default=None, help="Worker pool size")
    args = parser.parse_args()

    config = DistkitConfig.from_yaml(args.config) if args.config else DistkitConfig()
    if args.n_jobs is not None:
        config.parallel.strategy = "worker_pool"
        config.parallel.n_jobs = args.n_jobs
    setup_logging(config.logging)

    table = make_abundance_table()
    groups = {label: ("Control" if i % 2 == 0 else "Treatment") for i, label in enumerate(table.index)}

    store = config.builder().build(table, args.metric)
    logger.info(f"Built {store!r}")

    first_three = subset(store, list(store.labels[:3]))
    print("\nFirst three samples:")
    print(first_three.to_dataframe().round(3))

    print("\nSelected pairs:")
    print(get_pairs(store, ["Sample00", "Sample01"], ["Sample05", "Sample09"]))

    pairs = tabulate_groups(store, groups)
    print("\nMean distance by pair type:")
    print(pairs.groupby("Label")["Distance"].mean().round(3))

    if args.metric == "euclidean":
        print("\nDistance to own group centroid:")
        print(dist_to_centroids(store, groups).round(3))
        print("\nCentroid distances:")
        print(dist_multi_centroids(store, groups).to_dataframe().round(3))
    else:
        logger.warning("Centroid distances assume Euclidean distances; skipped for this metric")


if __name__ == "__main__":
    main()
