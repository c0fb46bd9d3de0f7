"""Tests for config/ - builder option dataclasses and YAML loading."""

import pytest

from modelkit.config import (
    NeuralNetworkConfig,
    RecurrentConfig,
    SpatialLayerConfig,
    SpatialNetworkConfig,
    load_config,
    load_yaml_config,
    update_config,
)
from modelkit.errors import ConfigurationError


class TestDefaults:
    def test_neural_network_defaults(self):
        cfg = NeuralNetworkConfig()
        assert cfg.input_features == 10
        assert cfg.hidden_features == [100, 2]
        assert cfg.activations == "ReLU"
        assert cfg.classifier is False

    def test_hidden_features_not_shared(self):
        a, b = NeuralNetworkConfig(), NeuralNetworkConfig()
        a.hidden_features.append(5)
        assert b.hidden_features == [100, 2]

    def test_spatial_padding_default_keeps_size(self):
        assert SpatialLayerConfig(kernel_size=5).resolved_padding == 2
        assert SpatialLayerConfig(kernel_size=3, padding=0).resolved_padding == 0

    def test_recurrent_defaults(self):
        cfg = RecurrentConfig()
        assert (cfg.input_features, cfg.hidden_features, cfg.output_type) == (10, 100, "last")


class TestValidation:
    def test_validate_returns_config(self):
        cfg = NeuralNetworkConfig()
        assert cfg.validate() is cfg

    @pytest.mark.parametrize("kwargs,option", [
        ({"input_features": 0}, "input_features"),
        ({"hidden_features": [8, -1]}, "hidden_features[1]"),
        ({"dropout_prob": 1.0}, "dropout_prob"),
        ({"activations": "relu"}, "activations"),
    ])
    def test_neural_network_errors_name_option(self, kwargs, option):
        with pytest.raises(ConfigurationError) as exc:
            NeuralNetworkConfig(**kwargs).validate()
        assert exc.value.option == option

    def test_spatial_layer_negative_padding(self):
        with pytest.raises(ConfigurationError) as exc:
            SpatialLayerConfig(padding=-1).validate()
        assert exc.value.option == "padding"

    def test_spatial_output_size(self):
        cfg = SpatialLayerConfig(kernel_size=3, input_stride=2, pooling=2, input_size=(16, 12))
        assert cfg.output_size() == (4, 3)

    def test_spatial_network_layer_configs(self):
        cfg = SpatialNetworkConfig(
            input_features=1, hidden_features=[4, 8], kernel_size=3,
            input_stride=2, poolings=[2, 1], dropout_prob=0.1, dropout_probs=[None, 0.3],
            input_size=(16, 16),
        )
        first, second = cfg.layer_configs()
        assert (first.input_features, first.output_features, first.input_stride) == (1, 4, 2)
        assert (second.input_features, second.output_features, second.input_stride) == (4, 8, 1)
        assert (first.dropout_prob, second.dropout_prob) == (0.1, 0.3)
        assert second.input_size == (4, 4)


class TestLoading:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "net.yaml"
        path.write_text("input_features: 4\nhidden_features: [8, 2]\nactivations: Tanh\n")
        assert load_yaml_config(str(path)) == {
            "input_features": 4, "hidden_features": [8, 2], "activations": "Tanh",
        }

    def test_load_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_config(str(path)) == {}

    def test_load_config_with_overrides(self, tmp_path):
        path = tmp_path / "net.yaml"
        path.write_text("input_features: 4\nhidden_features: [8, 2]\n")
        cfg = load_config(NeuralNetworkConfig, str(path), overrides={"classifier": True})
        assert cfg.input_features == 4
        assert cfg.hidden_features == [8, 2]
        assert cfg.classifier is True
        assert cfg.activations == "ReLU"

    def test_input_size_becomes_tuple(self):
        cfg = load_config(SpatialNetworkConfig, overrides={"input_size": [32, 32]})
        assert cfg.input_size == (32, 32)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown config field"):
            update_config(RecurrentConfig(), {"hidden_size": 10})

    def test_null_dropout_prob_from_yaml_rejected(self, tmp_path):
        path = tmp_path / "net.yaml"
        path.write_text("dropout_prob: null\n")
        cfg = load_config(SpatialNetworkConfig, str(path))
        with pytest.raises(ConfigurationError) as exc:
            cfg.validate()
        assert exc.value.option == "dropout_prob"

    def test_none_dropout_probs_entry_falls_back(self):
        cfg = NeuralNetworkConfig(hidden_features=[8, 4], dropout_prob=0.2, dropout_probs=[None, 0.1])
        assert cfg.validate() is cfg

    def test_overrides_are_flat_field_names(self):
        cfg = load_config(RecurrentConfig, overrides={"hidden_features": 4})
        assert cfg.hidden_features == 4
        with pytest.raises(ValueError, match="Unknown config field"):
            load_config(RecurrentConfig, overrides={"model.hidden_features": 4})
