import logging
from typing import List, Optional, Tuple

from ..config import (
    NeuralLayerConfig,
    NeuralNetworkConfig,
    SpatialLayerConfig,
    SpatialNetworkConfig,
)
from .layer import Layer, build_layer
from .model import LayerStack, ParameterBlock, Sequence

logger = logging.getLogger(__name__)

BuildResult = Tuple[Sequence, List[ParameterBlock], List[Layer]]


def _result(stack: LayerStack) -> BuildResult:
    stack.check()
    return stack.sequence(), stack.params, stack.layers


def neural_layer(config: Optional[NeuralLayerConfig] = None,
                 stack: Optional[LayerStack] = None) -> BuildResult:
    """[dropout] -> linear -> [batch norm] -> [activation]"""
    config = (config or NeuralLayerConfig()).validate()
    stack = stack if stack is not None else LayerStack()

    if config.dropout_prob > 0:
        stack.append(build_layer({"type": "Dropout", "p": config.dropout_prob}))

    stack.append(build_layer({"type": "Linear",
                              "in_features": config.input_features,
                              "out_features": config.output_features}))

    if config.batch_normalization:
        stack.append(build_layer({"type": "BatchNormalization",
                                  "num_features": config.output_features}))

    if config.activations:
        stack.append(build_layer({"type": config.activations}))

    return _result(stack)


def neural_network(config: Optional[NeuralNetworkConfig] = None,
                   stack: Optional[LayerStack] = None) -> BuildResult:
    """
    Fully connected stack: a reshape forcing the input to
    ``(batch, input_features)``, then one neural_layer per entry of
    ``hidden_features``.

    With ``classifier=True`` the last layer is left as a bare projection
    (no activation, no batch norm) so it can feed a loss directly.
    """
    config = (config or NeuralNetworkConfig()).validate()
    stack = stack if stack is not None else LayerStack()

    stack.append(build_layer({"type": "Reshape", "features": config.input_features}))

    input_features = config.input_features
    num_layers = len(config.hidden_features)
    for i, hiddens in enumerate(config.hidden_features):
        is_head = config.classifier and i == num_layers - 1
        dropout_prob = config.dropout_prob
        if config.dropout_probs is not None and config.dropout_probs[i] is not None:
            dropout_prob = config.dropout_probs[i]
        neural_layer(NeuralLayerConfig(
            input_features=input_features,
            output_features=hiddens,
            dropout_prob=dropout_prob,
            activations=None if is_head else config.activations,
            batch_normalization=False if is_head else config.batch_normalization,
        ), stack)
        input_features = hiddens

    logger.debug("neural_network: %d layers, %d parameter blocks", len(stack), len(stack.params))
    return _result(stack)


def spatial_layer(config: Optional[SpatialLayerConfig] = None,
                  stack: Optional[LayerStack] = None) -> BuildResult:
    """[spatial dropout] -> convolution -> [batch norm] -> [activation] -> [max pooling]"""
    config = (config or SpatialLayerConfig()).validate()
    stack = stack if stack is not None else LayerStack()

    if config.dropout_prob > 0:
        stack.append(build_layer({"type": "SpatialDropout", "p": config.dropout_prob}))

    stack.append(build_layer({"type": "SpatialConvolution",
                              "in_features": config.input_features,
                              "out_features": config.output_features,
                              "kernel_size": config.kernel_size,
                              "stride": config.input_stride,
                              "padding": config.resolved_padding}))

    if config.batch_normalization:
        stack.append(build_layer({"type": "SpatialBatchNormalization",
                                  "num_features": config.output_features}))

    if config.activations:
        stack.append(build_layer({"type": config.activations}))

    if config.pooling > 1:
        stack.append(build_layer({"type": "SpatialMaxPooling", "kernel_size": config.pooling}))

    return _result(stack)


def spatial_network(config: Optional[SpatialNetworkConfig] = None,
                    stack: Optional[LayerStack] = None) -> BuildResult:
    config = (config or SpatialNetworkConfig()).validate()
    stack = stack if stack is not None else LayerStack()

    for layer_config in config.layer_configs():
        spatial_layer(layer_config, stack)

    logger.debug("spatial_network: %d layers, %d parameter blocks", len(stack), len(stack.params))
    return _result(stack)
