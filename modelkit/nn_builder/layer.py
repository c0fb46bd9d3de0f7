from typing import Dict, Any, Tuple, Callable, Optional
import torch
import torch.nn as nn
from torch.nn import functional as F

from ..errors import ConfigurationError, ShapeError

LAYER_REGISTRY: Dict[str, Callable[..., nn.Module]] = {}
ACTIVATIONS: Dict[str, Callable[..., nn.Module]] = {}


def register_layer(name: str, activation: bool = False):
    def decorator(cls):
        LAYER_REGISTRY[name] = cls
        if activation:
            ACTIVATIONS[name] = cls
        return cls
    return decorator


def build_layer(spec: Dict[str, Any]):
    layer_type = spec.get("type")
    if layer_type not in LAYER_REGISTRY:
        raise ConfigurationError("type", f"unknown layer type {layer_type!r}")
    cls = LAYER_REGISTRY[layer_type]
    return cls(**{k: v for k, v in spec.items() if k != "type"})


def resolve_activation(name: str) -> Callable[..., nn.Module]:
    """Look up an activation primitive by name, failing on anything outside the registered set."""
    if name not in ACTIVATIONS:
        raise ConfigurationError(
            "activations", f"unknown activation {name!r}, expected one of {sorted(ACTIVATIONS)}"
        )
    return ACTIVATIONS[name]


class Layer(nn.Module):
    """
    A primitive transform.

    Stateless layers are called as ``layer(x)``. Parameterized layers declare
    ``param_shapes`` and are called as ``layer(x, W, b)``; they never own their
    weights, which are supplied on every call.
    """

    @property
    def param_shapes(self) -> Optional[Dict[str, Tuple[int, ...]]]:
        return None

    def init_params(self, dtype: torch.dtype = torch.float32) -> Optional[Dict[str, torch.Tensor]]:
        shapes = self.param_shapes
        if shapes is None:
            return None
        return {k: torch.zeros(*shape, dtype=dtype) for k, shape in shapes.items()}

    def forward(self, x: torch.Tensor, *params: torch.Tensor) -> torch.Tensor:
        raise NotImplementedError


@register_layer("Linear")
class Linear(Layer):
    def __init__(self, in_features: int, out_features: int):
        super().__init__()
        self.in_features = in_features
        self.out_features = out_features

    @property
    def param_shapes(self):
        return {"W": (self.out_features, self.in_features), "b": (self.out_features,)}

    def forward(self, x: torch.Tensor, W: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
        if x.size(-1) != self.in_features:
            raise ShapeError(f"Linear: last dim of input ({x.size(-1)}) != in_features ({self.in_features})")
        return F.linear(x, W, b)

    def extra_repr(self) -> str:
        return f"{self.in_features} -> {self.out_features}"


@register_layer("SpatialConvolution")
class SpatialConvolution(Layer):
    def __init__(self,
                 in_features: int,
                 out_features: int,
                 kernel_size: int,
                 stride: int = 1,
                 padding: int = 0):
        super().__init__()
        self.in_features = in_features
        self.out_features = out_features
        self.kernel_size = kernel_size
        self.stride = stride
        self.padding = padding

    @property
    def param_shapes(self):
        # weights kept flat, one row per output plane
        k = self.kernel_size
        return {"W": (self.out_features, self.in_features * k * k), "b": (self.out_features,)}

    def forward(self, x: torch.Tensor, W: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
        if x.dim() not in (3, 4):
            raise ShapeError(f"SpatialConvolution expects (C,H,W) or (B,C,H,W) input, got shape {tuple(x.shape)}")
        if x.size(-3) != self.in_features:
            raise ShapeError(f"SpatialConvolution: input planes ({x.size(-3)}) != in_features ({self.in_features})")
        k = self.kernel_size
        weight = W.view(self.out_features, self.in_features, k, k)
        return F.conv2d(x, weight, b, stride=self.stride, padding=self.padding)

    def extra_repr(self) -> str:
        k = self.kernel_size
        return (f"{self.in_features} -> {self.out_features}, {k}x{k}, "
                f"stride={self.stride}, padding={self.padding}")


@register_layer("BatchNormalization")
class BatchNormalization(Layer):
    expected_dim = 2

    def __init__(self, num_features: int, eps: float = 1e-5, momentum: float = 0.1):
        super().__init__()
        self.num_features = num_features
        self.eps = eps
        self.momentum = momentum
        # running statistics are layer state, not trainable parameters
        self.register_buffer("running_mean", torch.zeros(num_features))
        self.register_buffer("running_var", torch.ones(num_features))

    @property
    def param_shapes(self):
        return {"W": (self.num_features,), "b": (self.num_features,)}

    def forward(self, x: torch.Tensor, W: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
        if x.dim() != self.expected_dim or x.size(1) != self.num_features:
            raise ShapeError(
                f"{type(self).__name__}: expected {self.expected_dim}-D input with "
                f"{self.num_features} features, got shape {tuple(x.shape)}"
            )
        return F.batch_norm(x, self.running_mean, self.running_var, W, b,
                            training=self.training, momentum=self.momentum, eps=self.eps)

    def extra_repr(self) -> str:
        return f"{self.num_features}, eps={self.eps}, momentum={self.momentum}"


@register_layer("SpatialBatchNormalization")
class SpatialBatchNormalization(BatchNormalization):
    expected_dim = 4


@register_layer("Dropout")
class Dropout(Layer):
    def __init__(self, p: float = 0.5):
        super().__init__()
        self.p = p

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return F.dropout(x, self.p, self.training)

    def extra_repr(self) -> str:
        return f"p={self.p}"


@register_layer("SpatialDropout")
class SpatialDropout(Dropout):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        # zeroes whole feature planes
        return F.dropout2d(x, self.p, self.training)


@register_layer("SpatialMaxPooling")
class SpatialMaxPooling(Layer):
    def __init__(self, kernel_size: int, stride: Optional[int] = None):
        super().__init__()
        self.kernel_size = kernel_size
        self.stride = kernel_size if stride is None else stride

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return F.max_pool2d(x, self.kernel_size, self.stride)

    def extra_repr(self) -> str:
        return f"{self.kernel_size}, stride={self.stride}"


@register_layer("Reshape")
class Reshape(Layer):
    """Flattens every sample to ``features`` values, keeping the batch dimension."""

    def __init__(self, features: int):
        super().__init__()
        self.features = features

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        if x.dim() == 1 and x.numel() == self.features:
            return x
        if x.dim() < 2 or x.shape[1:].numel() != self.features:
            raise ShapeError(
                f"Reshape: cannot view input of shape {tuple(x.shape)} as (batch, {self.features})"
            )
        return x.reshape(x.size(0), self.features)

    def extra_repr(self) -> str:
        return str(self.features)


class Activation(Layer):
    fn: Callable[[torch.Tensor], torch.Tensor]

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return type(self).fn(x)


@register_layer("ReLU", activation=True)
class ReLU(Activation):
    fn = F.relu


@register_layer("Tanh", activation=True)
class Tanh(Activation):
    fn = torch.tanh


@register_layer("Sigmoid", activation=True)
class Sigmoid(Activation):
    fn = torch.sigmoid


@register_layer("ELU", activation=True)
class ELU(Activation):
    fn = F.elu


@register_layer("SoftPlus", activation=True)
class SoftPlus(Activation):
    fn = F.softplus


@register_layer("SoftMax", activation=True)
class SoftMax(Activation):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return F.softmax(x, dim=-1)


@register_layer("LogSoftMax", activation=True)
class LogSoftMax(Activation):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return F.log_softmax(x, dim=-1)
