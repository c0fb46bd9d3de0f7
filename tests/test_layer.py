"""Tests for nn_builder/layer.py - primitive layers and the registry."""

import pytest
import torch
import torch.nn.functional as F

from modelkit.errors import ConfigurationError, ShapeError
from modelkit.nn_builder.layer import (
    ACTIVATIONS,
    LAYER_REGISTRY,
    BatchNormalization,
    Dropout,
    Linear,
    Reshape,
    SpatialBatchNormalization,
    SpatialConvolution,
    SpatialMaxPooling,
    build_layer,
    resolve_activation,
)


class TestRegistry:
    def test_activations_are_registered_layers(self):
        for name, cls in ACTIVATIONS.items():
            assert LAYER_REGISTRY[name] is cls

    def test_resolve_known_activation(self):
        cls = resolve_activation("Tanh")
        x = torch.randn(3, 4)
        torch.testing.assert_close(cls()(x), torch.tanh(x))

    def test_resolve_unknown_activation(self):
        with pytest.raises(ConfigurationError) as exc:
            resolve_activation("Swish")
        assert exc.value.option == "activations"

    def test_build_layer_from_spec(self):
        layer = build_layer({"type": "Linear", "in_features": 3, "out_features": 2})
        assert isinstance(layer, Linear)
        assert layer.param_shapes == {"W": (2, 3), "b": (2,)}

    def test_build_unknown_layer(self):
        with pytest.raises(ConfigurationError):
            build_layer({"type": "Transformer"})


class TestParameterizedLayers:
    def test_stateless_layers_have_no_params(self):
        assert Dropout(0.5).param_shapes is None
        assert resolve_activation("ReLU")().init_params() is None

    def test_init_params_are_zero(self):
        block = Linear(3, 2).init_params()
        assert set(block) == {"W", "b"}
        assert torch.count_nonzero(block["W"]) == 0
        assert torch.count_nonzero(block["b"]) == 0

    def test_linear_matches_functional(self):
        layer = Linear(3, 2)
        x, W, b = torch.randn(5, 3), torch.randn(2, 3), torch.randn(2)
        torch.testing.assert_close(layer(x, W, b), x @ W.t() + b)

    def test_linear_rejects_wrong_width(self):
        layer = Linear(3, 2)
        block = layer.init_params()
        with pytest.raises(ShapeError):
            layer(torch.randn(5, 4), block["W"], block["b"])

    def test_convolution_flat_weights(self):
        layer = SpatialConvolution(3, 4, kernel_size=3, padding=1)
        assert layer.param_shapes["W"] == (4, 27)
        x = torch.randn(2, 3, 6, 6)
        W, b = torch.randn(4, 27), torch.randn(4)
        expected = F.conv2d(x, W.view(4, 3, 3, 3), b, padding=1)
        torch.testing.assert_close(layer(x, W, b), expected)

    def test_convolution_rejects_wrong_planes(self):
        layer = SpatialConvolution(3, 4, kernel_size=3)
        block = layer.init_params()
        with pytest.raises(ShapeError):
            layer(torch.randn(2, 5, 6, 6), block["W"], block["b"])

    def test_batch_norm_uses_supplied_affine(self):
        layer = BatchNormalization(4)
        x = torch.randn(8, 4)
        W, b = torch.ones(4), torch.full((4,), 2.0)
        out = layer(x, W, b)
        torch.testing.assert_close(out.mean(0), torch.full((4,), 2.0), atol=1e-5, rtol=0)

    def test_batch_norm_zero_weights_outputs_bias(self):
        layer = BatchNormalization(4)
        block = layer.init_params()
        out = layer(torch.randn(8, 4), block["W"], block["b"])
        assert torch.count_nonzero(out) == 0

    def test_spatial_batch_norm_rejects_flat_input(self):
        layer = SpatialBatchNormalization(4)
        block = layer.init_params()
        with pytest.raises(ShapeError):
            layer(torch.randn(8, 4), block["W"], block["b"])


class TestStatelessLayers:
    def test_dropout_zero_is_identity(self):
        layer = Dropout(0.0)
        layer.train()
        x = torch.randn(16, 8)
        assert torch.equal(layer(x), x)

    def test_dropout_eval_is_identity(self):
        layer = Dropout(0.5)
        layer.eval()
        x = torch.randn(16, 8)
        assert torch.equal(layer(x), x)

    def test_max_pooling(self):
        out = SpatialMaxPooling(2)(torch.randn(1, 2, 8, 8))
        assert out.shape == (1, 2, 4, 4)

    def test_reshape_flattens_samples(self):
        out = Reshape(10)(torch.randn(4, 2, 5))
        assert out.shape == (4, 10)

    def test_reshape_single_sample(self):
        out = Reshape(10)(torch.randn(10))
        assert out.shape == (10,)

    def test_reshape_empty_batch(self):
        out = Reshape(10)(torch.randn(0, 2, 5))
        assert out.shape == (0, 10)

    def test_reshape_rejects_mismatch(self):
        with pytest.raises(ShapeError):
            Reshape(10)(torch.randn(4, 3))
