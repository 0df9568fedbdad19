"""distkit: pairwise distance matrices, subsets and centroid distances without coordinates."""

from ._version import __version__

# Only import version by default for fast loading
__all__ = [
    "__version__",
    "DistanceStore",
    "DistanceBuilder",
    "CentroidDistanceEngine",
    "DistkitConfig",
    "build_distance_store",
    "subset",
    "get_pairs",
    "tabulate_groups",
    "dist_between_centroids",
    "dist_to_centroids",
    "dist_multi_centroids",
    "setup_logging",
]

_DISTANCE_EXPORTS = {
    "DistanceStore",
    "DistanceBuilder",
    "CentroidDistanceEngine",
    "build_distance_store",
    "subset",
    "get_pairs",
    "tabulate_groups",
    "dist_between_centroids",
    "dist_to_centroids",
    "dist_multi_centroids",
}


def __getattr__(name):
    """Lazy loading of heavy modules to keep imports fast."""
    if name in _DISTANCE_EXPORTS:
        from . import distance

        return getattr(distance, name)
    elif name == "DistkitConfig":
        from .config import DistkitConfig

        return DistkitConfig
    elif name == "setup_logging":
        from .utils.logging import setup_logging

        return setup_logging
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
