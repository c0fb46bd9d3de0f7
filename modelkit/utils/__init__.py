from .utils import set_seed, count_parameters, randomize_, requires_grad_

__all__ = ["set_seed", "count_parameters", "randomize_", "requires_grad_"]
