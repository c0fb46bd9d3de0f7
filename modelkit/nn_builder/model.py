import logging
from typing import Dict, List, Optional

import torch
import torch.nn as nn

from .layer import Layer

logger = logging.getLogger(__name__)

ParameterBlock = Dict[str, torch.Tensor]


class Sequence(nn.Module):
    """
    Composed forward over an ordered layer list.

    ``layer2params[i]`` is the index of layer ``i``'s block in the parameter
    container, or ``None`` for a stateless layer. Parameters are passed on every
    call and never stored, so the same Sequence can be evaluated with any
    parameter values (including the ones a gradient transform hands in).
    """

    def __init__(self, layers: List[Layer], layer2params: List[Optional[int]]):
        super().__init__()
        if len(layers) != len(layer2params):
            raise ValueError(
                f"layer2params has {len(layer2params)} entries for {len(layers)} layers"
            )
        self.layers = nn.ModuleList(layers)
        self.layer2params = list(layer2params)

    def forward(self, params: List[ParameterBlock], input: torch.Tensor) -> torch.Tensor:
        for layer, k in zip(self.layers, self.layer2params):
            if k is not None:
                input = layer(input, params[k]["W"], params[k]["b"])
            else:
                input = layer(input)
        return input


def sequence(layers: List[Layer], layer2params: List[Optional[int]]) -> Sequence:
    return Sequence(layers, layer2params)


class LayerStack:
    """
    Growable model under construction: layers, parameter blocks and the
    layer-to-block index, always kept aligned.

    Builders share one LayerStack by passing it into nested calls.
    """

    def __init__(self, dtype: torch.dtype = torch.float32):
        self.dtype = dtype
        self.layers: List[Layer] = []
        self.params: List[ParameterBlock] = []
        self.layer2params: List[Optional[int]] = []

    def __len__(self) -> int:
        return len(self.layers)

    def append(self, layer: Layer) -> Optional[int]:
        """Append a layer, and a zero block if it is parameterized. Returns the block index."""
        block = layer.init_params(dtype=self.dtype)
        self.layers.append(layer)
        if block is None:
            self.layer2params.append(None)
            logger.debug("layer %d: %s", len(self.layers) - 1, layer)
            return None
        self.params.append(block)
        k = len(self.params) - 1
        self.layer2params.append(k)
        logger.debug("layer %d: %s -> params[%d] %s", len(self.layers) - 1, layer, k,
                     {name: tuple(t.shape) for name, t in block.items()})
        return k

    def check(self):
        """Verify that every parameterized layer owns exactly one block of the right shapes."""
        if len(self.layer2params) != len(self.layers):
            raise RuntimeError("layer2params is not aligned with layers")
        owned = [k for k in self.layer2params if k is not None]
        if sorted(owned) != list(range(len(self.params))):
            raise RuntimeError(f"parameter blocks {owned} do not map one-to-one onto {len(self.params)} blocks")
        for i, (layer, k) in enumerate(zip(self.layers, self.layer2params)):
            shapes = layer.param_shapes
            if (shapes is None) != (k is None):
                raise RuntimeError(f"layer {i} ({layer}) has inconsistent parameter ownership")
            if k is None:
                continue
            block = self.params[k]
            for name, shape in shapes.items():
                if tuple(block[name].shape) != tuple(shape):
                    raise RuntimeError(
                        f"params[{k}].{name} has shape {tuple(block[name].shape)}, layer {i} expects {tuple(shape)}"
                    )
        return self

    def sequence(self) -> Sequence:
        return sequence(self.layers, self.layer2params)


def summarize_parameters(params: List[ParameterBlock], verbose: bool = False) -> str:
    def _commas(n: int) -> str:
        return f"{n:,}"

    rows = []
    for k, block in enumerate(params):
        for pname, tensor in block.items():
            rows.append((f"{k}.{pname}", tuple(tensor.shape), int(tensor.numel()),
                         str(tensor.dtype).replace("torch.", "")))
    headers = ("Block.Param", "Shape", "#Params", "Dtype")

    name_w = max(len(headers[0]), *(len(r[0]) for r in rows)) if rows else len(headers[0])
    shape_w = max(len(headers[1]), *(len(str(r[1])) for r in rows)) if rows else len(headers[1])
    num_w   = max(len(headers[2]), *(len(_commas(r[2])) for r in rows)) if rows else len(headers[2])
    dtype_w = max(len(headers[3]), *(len(r[3]) for r in rows)) if rows else len(headers[3])

    line = f"{headers[0]:<{name_w}}  {headers[1]:<{shape_w}}  {headers[2]:>{num_w}}  {headers[3]:<{dtype_w}}"
    sep  = "-" * len(line)
    out_lines = [line, sep]
    for name, shape, numel, dtype in rows:
        out_lines.append(
            f"{name:<{name_w}}  {str(shape):<{shape_w}}  {_commas(numel):>{num_w}}  {dtype:<{dtype_w}}"
        )
    out_lines.append(sep)
    out_lines.append(f"Total: {_commas(sum(r[2] for r in rows))}")
    table = "\n".join(out_lines)
    if verbose:
        print(table)
    return table
