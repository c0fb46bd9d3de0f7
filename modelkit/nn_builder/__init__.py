from .layer import (
    LAYER_REGISTRY,
    ACTIVATIONS,
    register_layer,
    build_layer,
    resolve_activation,
    Layer,
)
from .model import (
    LayerStack,
    Sequence,
    sequence,
    summarize_parameters,
)
from .builders import (
    neural_layer,
    neural_network,
    spatial_layer,
    spatial_network,
)
from .recurrent import (
    detach_state,
    recurrent_network,
    recurrent_lstm_network,
)

__all__ = [
    "LAYER_REGISTRY",
    "ACTIVATIONS",
    "register_layer",
    "build_layer",
    "resolve_activation",
    "Layer",
    "LayerStack",
    "Sequence",
    "sequence",
    "summarize_parameters",
    "neural_layer",
    "neural_network",
    "spatial_layer",
    "spatial_network",
    "detach_state",
    "recurrent_network",
    "recurrent_lstm_network"]
