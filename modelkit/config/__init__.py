"""
Config module - builder options

This module provides:
- One dataclass per builder, every option with its default
- Construction-time validation of those options
- YAML loading with dotted overrides
"""

from .config import (
    NeuralLayerConfig,
    NeuralNetworkConfig,
    SpatialLayerConfig,
    SpatialNetworkConfig,
    RecurrentConfig,
)
from .io import load_config, load_yaml_config, update_config

__all__ = [
    "NeuralLayerConfig",
    "NeuralNetworkConfig",
    "SpatialLayerConfig",
    "SpatialNetworkConfig",
    "RecurrentConfig",
    "load_config",
    "load_yaml_config",
    "update_config",
]
