import random
from typing import Dict, Iterable

import numpy as np
import torch


def set_seed(seed: int = 42):
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


def count_parameters(params: Iterable[Dict[str, torch.Tensor]]) -> int:
    return sum(int(t.numel()) for block in params for t in block.values())


def randomize_(params: Iterable[Dict[str, torch.Tensor]], std: float = 0.1, generator=None):
    """Fill every tensor of every block in place with N(0, std^2) samples."""
    with torch.no_grad():
        for block in params:
            for t in block.values():
                t.normal_(0.0, std, generator=generator)
    return params


def requires_grad_(params: Iterable[Dict[str, torch.Tensor]], requires_grad: bool = True):
    for block in params:
        for t in block.values():
            t.requires_grad_(requires_grad)
    return params
