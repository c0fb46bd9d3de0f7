"""
modelkit: functional model construction for autograd

This package provides:
- Builders that assemble primitive layers into a single forward(params, input)
- An ordered parameter container aligned with the layer list
- Unrolled recurrent (tanh RNN and LSTM) forward functions with detached state carry
"""

__version__ = "0.1.0"

from .errors import ConfigurationError, ShapeError
from .config import (
    NeuralLayerConfig,
    NeuralNetworkConfig,
    SpatialLayerConfig,
    SpatialNetworkConfig,
    RecurrentConfig,
    load_config,
)
from .nn_builder import (
    LayerStack,
    Sequence,
    sequence,
    summarize_parameters,
    neural_layer,
    neural_network,
    spatial_layer,
    spatial_network,
    recurrent_network,
    recurrent_lstm_network,
    detach_state,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "ShapeError",

    # Configuration
    "NeuralLayerConfig",
    "NeuralNetworkConfig",
    "SpatialLayerConfig",
    "SpatialNetworkConfig",
    "RecurrentConfig",
    "load_config",

    # Composition
    "LayerStack",
    "Sequence",
    "sequence",
    "summarize_parameters",

    # Builders
    "neural_layer",
    "neural_network",
    "spatial_layer",
    "spatial_network",

    # Recurrent
    "recurrent_network",
    "recurrent_lstm_network",
    "detach_state",

    # Version
    "__version__",
]
