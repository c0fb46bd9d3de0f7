"""
Unrolled recurrent networks.

Each builder appends one zero-initialised parameter block to ``params`` and
returns ``(f, params)``. The forward functions take ``(params, x)`` where ``x``
is ``(batch, time, input_features)`` or a single ``(time, input_features)``
sequence, and loop explicitly over time.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import torch

from ..config import RecurrentConfig
from ..errors import ShapeError
from .model import ParameterBlock

logger = logging.getLogger(__name__)

Params = Union[List[ParameterBlock], ParameterBlock]


def detach_state(x: Any) -> Any:
    """Snapshot tensors (recursing into containers) so they carry no autograd history."""
    if isinstance(x, torch.Tensor):
        return x.detach()
    if isinstance(x, (list, tuple)):
        t = type(x)
        return t(detach_state(v) for v in x)
    if isinstance(x, dict):
        return {k: detach_state(v) for k, v in x.items()}
    return x


def _select_block(params: Params, k: int) -> ParameterBlock:
    # a bare block is accepted as well as the full container
    if isinstance(params, dict):
        return params
    return params[k]


def _as_batch(x: torch.Tensor, input_features: int, name: str) -> torch.Tensor:
    if x.dim() == 2:
        x = x.unsqueeze(0)
    if x.dim() != 3:
        raise ShapeError(f"{name} expects (B,T,F) or (T,F) input, got shape {tuple(x.shape)}")
    if x.size(2) != input_features:
        raise ShapeError(f"{name}: input features ({x.size(2)}) != input_features ({input_features})")
    if x.size(1) == 0:
        raise ShapeError(f"{name}: input has no timesteps")
    return x


def _gather(hs: List[torch.Tensor], output_type: str) -> torch.Tensor:
    if output_type == "last":
        return hs[-1]
    return torch.cat([h.unsqueeze(1) for h in hs], dim=1)


def recurrent_network(config: Optional[RecurrentConfig] = None,
                      params: Optional[List[ParameterBlock]] = None):
    """Plain tanh recurrence: h[t] = tanh(x[t] Wx + bx + h[t-1] Wh + bh)."""
    config = (config or RecurrentConfig()).validate()
    input_features = config.input_features
    hidden_features = config.hidden_features
    output_type = config.output_type

    params = params if params is not None else []
    params.append({
        "Wx": torch.zeros(input_features, hidden_features),
        "bx": torch.zeros(1, hidden_features),
        "Wh": torch.zeros(hidden_features, hidden_features),
        "bh": torch.zeros(1, hidden_features),
    })
    k = len(params) - 1
    logger.debug("recurrent_network: %d -> %d, output_type=%s, params[%d]",
                 input_features, hidden_features, output_type, k)

    def f(params: Params, x: torch.Tensor) -> torch.Tensor:
        p = _select_block(params, k)
        x = _as_batch(x, input_features, "recurrent_network")
        batch, steps = x.size(0), x.size(1)

        hs = []
        for t in range(steps):
            xt = x.select(1, t)
            hx = xt @ p["Wx"] + p["bx"].expand(batch, hidden_features)
            if t > 0:
                hh = hs[t - 1] @ p["Wh"] + p["bh"].expand(batch, hidden_features)
            else:
                hh = p["bh"].expand(batch, hidden_features)
            hs.append(torch.tanh(hx + hh))

        return _gather(hs, output_type)

    return f, params


def _check_state(prev_state: Dict[str, torch.Tensor], batch: int, hidden_features: int):
    for key in ("h", "c"):
        if key not in prev_state:
            raise ShapeError(f"recurrent_lstm_network: prev_state is missing {key!r}")
        s = prev_state[key]
        if tuple(s.shape) != (batch, hidden_features):
            raise ShapeError(
                f"recurrent_lstm_network: prev_state[{key!r}] has shape {tuple(s.shape)}, "
                f"expected {(batch, hidden_features)}"
            )


def recurrent_lstm_network(config: Optional[RecurrentConfig] = None,
                           params: Optional[List[ParameterBlock]] = None):
    """
    LSTM recurrence with all four gates packed into one projection of width
    ``4 * hidden_features``, in the order input, forget, output, candidate.
    That order fixes which slice of the learned weights drives which gate.

    The forward returns ``(output, state)`` where ``state = {"h", "c"}`` holds
    the last hidden and cell values, detached so that feeding them to the next
    call does not link the two graphs.
    """
    config = (config or RecurrentConfig()).validate()
    input_features = config.input_features
    hidden_features = config.hidden_features
    output_type = config.output_type
    H4 = 4 * hidden_features

    params = params if params is not None else []
    params.append({
        "Wx": torch.zeros(input_features, H4),
        "bx": torch.zeros(1, H4),
        "Wh": torch.zeros(hidden_features, H4),
        "bh": torch.zeros(1, H4),
    })
    k = len(params) - 1
    logger.debug("recurrent_lstm_network: %d -> %d, output_type=%s, params[%d]",
                 input_features, hidden_features, output_type, k)

    def f(params: Params,
          x: torch.Tensor,
          prev_state: Optional[Dict[str, torch.Tensor]] = None) -> Tuple[torch.Tensor, Dict[str, torch.Tensor]]:
        p = _select_block(params, k)
        x = _as_batch(x, input_features, "recurrent_lstm_network")
        batch, steps = x.size(0), x.size(1)
        if prev_state is not None:
            _check_state(prev_state, batch, hidden_features)

        hs = []
        cs = []
        for t in range(steps):
            xt = x.select(1, t)

            # pack all dot products
            hx = xt @ p["Wx"] + p["bx"].expand(batch, H4)
            if t > 0:
                hh = hs[t - 1] @ p["Wh"] + p["bh"].expand(batch, H4)
            elif prev_state is not None:
                hh = prev_state["h"] @ p["Wh"] + p["bh"].expand(batch, H4)
            else:
                hh = p["bh"].expand(batch, H4)
            sums = (hx + hh).view(batch, 4, hidden_features)

            sigmoids = torch.sigmoid(sums.narrow(1, 0, 3))
            input_gate = sigmoids.select(1, 0)
            forget_gate = sigmoids.select(1, 1)
            output_gate = sigmoids.select(1, 2)
            input_value = torch.tanh(sums.select(1, 3))

            if t > 0:
                cs.append(forget_gate * cs[t - 1] + input_gate * input_value)
            elif prev_state is not None:
                cs.append(forget_gate * prev_state["c"] + input_gate * input_value)
            else:
                cs.append(input_gate * input_value)

            hs.append(output_gate * torch.tanh(cs[t]))

        new_state = detach_state({"h": hs[-1], "c": cs[-1]})
        return _gather(hs, output_type), new_state

    return f, params
