from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import ConfigurationError

OUTPUT_TYPES = ("last", "all")


def _check_positive(option: str, value: int):
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ConfigurationError(option, f"must be a positive integer (got {value!r})")


def _check_dropout(option: str, value: float):
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(option, f"must be a number in [0, 1) (got {value!r})")
    if not 0.0 <= float(value) < 1.0:
        raise ConfigurationError(option, f"must be in [0, 1) (got {value!r})")


def _check_activation(option: str, name: Optional[str]):
    if name is None:
        return
    from ..nn_builder.layer import ACTIVATIONS
    if name not in ACTIVATIONS:
        raise ConfigurationError(
            option, f"unknown activation {name!r}, expected one of {sorted(ACTIVATIONS)}"
        )


def _check_overrides(option: str, values: Optional[Sequence], num_layers: int):
    if values is None:
        return
    if len(values) != num_layers:
        raise ConfigurationError(
            option,
            f"has {len(values)} entries but hidden_features defines {num_layers} layers",
        )


def _spatial_out(size: int, kernel_size: int, stride: int, padding: int, pooling: int) -> int:
    size = (size + 2 * padding - kernel_size) // stride + 1
    if size < 1:
        return size
    return size // pooling


@dataclass
class NeuralLayerConfig:
    input_features: int = 3
    output_features: int = 16
    batch_normalization: bool = False
    dropout_prob: float = 0.0
    # name of an activation primitive appended after the projection, or None
    activations: Optional[str] = None

    def validate(self):
        _check_positive("input_features", self.input_features)
        _check_positive("output_features", self.output_features)
        _check_dropout("dropout_prob", self.dropout_prob)
        _check_activation("activations", self.activations)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NeuralNetworkConfig:
    input_features: int = 10
    hidden_features: List[int] = field(default_factory=lambda: [100, 2])
    batch_normalization: bool = False
    dropout_prob: float = 0.0
    # per-layer override of dropout_prob, one entry per hidden layer
    dropout_probs: Optional[List[Optional[float]]] = None
    activations: Optional[str] = "ReLU"
    # no activation / normalization on the last layer
    classifier: bool = False

    def validate(self):
        _check_positive("input_features", self.input_features)
        if not self.hidden_features:
            raise ConfigurationError("hidden_features", "must define at least one layer")
        for i, hiddens in enumerate(self.hidden_features):
            _check_positive(f"hidden_features[{i}]", hiddens)
        _check_dropout("dropout_prob", self.dropout_prob)
        _check_overrides("dropout_probs", self.dropout_probs, len(self.hidden_features))
        for i, p in enumerate(self.dropout_probs or []):
            # None falls back to dropout_prob
            if p is not None:
                _check_dropout(f"dropout_probs[{i}]", p)
        _check_activation("activations", self.activations)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SpatialLayerConfig:
    input_features: int = 3
    output_features: int = 16
    kernel_size: int = 5
    # None -> (kernel_size - 1) // 2, which keeps the spatial size for odd kernels
    padding: Optional[int] = None
    input_stride: int = 1
    pooling: int = 1
    batch_normalization: bool = False
    dropout_prob: float = 0.0
    activations: Optional[str] = None
    # (height, width) of the input; enables the collapse check at build time
    input_size: Optional[Tuple[int, int]] = None

    @property
    def resolved_padding(self) -> int:
        if self.padding is None:
            return (self.kernel_size - 1) // 2
        return self.padding

    def output_size(self) -> Optional[Tuple[int, int]]:
        if self.input_size is None:
            return None
        return tuple(
            _spatial_out(s, self.kernel_size, self.input_stride, self.resolved_padding, self.pooling)
            for s in self.input_size
        )

    def validate(self):
        _check_positive("input_features", self.input_features)
        _check_positive("output_features", self.output_features)
        _check_positive("kernel_size", self.kernel_size)
        _check_positive("input_stride", self.input_stride)
        _check_positive("pooling", self.pooling)
        if self.padding is not None and (not isinstance(self.padding, int) or self.padding < 0):
            raise ConfigurationError("padding", f"must be a non-negative integer (got {self.padding!r})")
        _check_dropout("dropout_prob", self.dropout_prob)
        _check_activation("activations", self.activations)
        if self.input_size is not None:
            if len(self.input_size) != 2:
                raise ConfigurationError("input_size", f"must be (height, width) (got {self.input_size!r})")
            for s in self.input_size:
                _check_positive("input_size", s)
            out = self.output_size()
            if min(out) < 1:
                raise ConfigurationError(
                    "pooling" if self.pooling > 1 else "kernel_size",
                    f"collapses spatial size {tuple(self.input_size)} to {out}",
                )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SpatialNetworkConfig:
    input_features: int = 3
    hidden_features: List[int] = field(default_factory=lambda: [16, 32, 64])
    kernel_size: int = 5
    padding: Optional[int] = None
    # stride of the first convolution only, later layers use 1
    input_stride: int = 1
    # per-layer max-pooling factor; None means no pooling anywhere
    poolings: Optional[List[int]] = None
    batch_normalization: bool = False
    dropout_prob: float = 0.0
    dropout_probs: Optional[List[Optional[float]]] = None
    activations: Optional[str] = "ReLU"
    input_size: Optional[Tuple[int, int]] = None

    def layer_configs(self) -> List[SpatialLayerConfig]:
        """Expand into one SpatialLayerConfig per hidden width."""
        poolings = self.poolings or [1] * len(self.hidden_features)
        dropout_probs = self.dropout_probs or [None] * len(self.hidden_features)
        configs = []
        input_features = self.input_features
        input_stride = self.input_stride
        input_size = self.input_size
        for hiddens, pooling, dropout_prob in zip(self.hidden_features, poolings, dropout_probs):
            cfg = SpatialLayerConfig(
                input_features=input_features,
                output_features=hiddens,
                kernel_size=self.kernel_size,
                padding=self.padding,
                input_stride=input_stride,
                pooling=pooling,
                batch_normalization=self.batch_normalization,
                dropout_prob=self.dropout_prob if dropout_prob is None else dropout_prob,
                activations=self.activations,
                input_size=input_size,
            )
            configs.append(cfg)
            input_features = hiddens
            input_stride = 1
            if input_size is not None:
                input_size = cfg.output_size()
        return configs

    def validate(self):
        if not self.hidden_features:
            raise ConfigurationError("hidden_features", "must define at least one layer")
        for i, hiddens in enumerate(self.hidden_features):
            _check_positive(f"hidden_features[{i}]", hiddens)
        _check_overrides("poolings", self.poolings, len(self.hidden_features))
        _check_overrides("dropout_probs", self.dropout_probs, len(self.hidden_features))
        # checked before layer_configs(), which divides by them when input_size is set
        _check_positive("input_stride", self.input_stride)
        for i, pooling in enumerate(self.poolings or []):
            _check_positive(f"poolings[{i}]", pooling)
        _check_dropout("dropout_prob", self.dropout_prob)
        for i, p in enumerate(self.dropout_probs or []):
            if p is not None:
                _check_dropout(f"dropout_probs[{i}]", p)
        for i, cfg in enumerate(self.layer_configs()):
            try:
                cfg.validate()
            except ConfigurationError as e:
                option = "poolings" if e.option == "pooling" else e.option
                raise ConfigurationError(f"{option} (layer {i})", e.reason) from e
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RecurrentConfig:
    input_features: int = 10
    hidden_features: int = 100
    output_type: str = "last"

    def validate(self):
        _check_positive("input_features", self.input_features)
        _check_positive("hidden_features", self.hidden_features)
        if self.output_type not in OUTPUT_TYPES:
            raise ConfigurationError(
                "output_type", f"must be one of {OUTPUT_TYPES} (got {self.output_type!r})"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
