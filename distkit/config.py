"""
Configuration system for distkit.

This module provides YAML-based configuration for building distance stores
and computing centroid distances.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .distance.builder import DistanceBuilder, ParallelConfig
from .distance.centroid import CentroidConfig, CentroidDistanceEngine
from .distance.store import DEFAULT_SYMMETRY_ATOL, DistanceStore
from .utils.config import LoggingConfig
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationConfig:
    """Configuration for validating square distance tables."""

    symmetry_atol: float = DEFAULT_SYMMETRY_ATOL

    def __post_init__(self):
        self.symmetry_atol = float(self.symmetry_atol)
        if self.symmetry_atol < 0:
            raise ValueError(f"symmetry_atol must be non-negative, got {self.symmetry_atol}")


@dataclass
class DistkitConfig:
    """Main configuration for distkit.

    Example YAML:
    ```yaml
    parallel:
      strategy: "worker_pool"
      n_jobs: 8
      backend: "loky"

    centroid:
      rtol: 1.0e-9
      atol: 1.0e-12

    validation:
      symmetry_atol: 1.0e-8

    logging:
      level: "INFO"
      log_file: "logs/distkit.log"
    ```
    """

    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    centroid: CentroidConfig = field(default_factory=CentroidConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DistkitConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            DistkitConfig instance.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            config_dict = yaml.safe_load(f) or {}

        return cls.from_dict(config_dict)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "DistkitConfig":
        """Create configuration from a dictionary.

        Args:
            config_dict: Dictionary with configuration values.

        Returns:
            DistkitConfig instance.
        """
        return cls(
            parallel=ParallelConfig(**config_dict.get("parallel", {})),
            centroid=CentroidConfig(**config_dict.get("centroid", {})),
            validation=ValidationConfig(**config_dict.get("validation", {})),
            logging=LoggingConfig(**config_dict.get("logging", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "parallel": asdict(self.parallel),
            "centroid": asdict(self.centroid),
            "validation": asdict(self.validation),
            "logging": asdict(self.logging),
        }

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file.

        Args:
            path: Path to save the YAML file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {path}")

    def builder(self) -> DistanceBuilder:
        """DistanceBuilder using the configured parallel settings."""
        return DistanceBuilder(self.parallel)

    def centroid_engine(self, store: DistanceStore) -> CentroidDistanceEngine:
        """CentroidDistanceEngine over ``store`` using the configured tolerances."""
        return CentroidDistanceEngine(store, self.centroid)

    def store_from_square(self, matrix: Any, labels: Any = None) -> DistanceStore:
        """Build a store from a square table using the configured symmetry tolerance."""
        return DistanceStore.from_square(matrix, labels=labels, atol=self.validation.symmetry_atol)
