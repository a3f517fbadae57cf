"""State Space Model implementations."""
from .linear_decay import linear_decay_rhs, simulate_linear_decay
from .lorenz96 import lorenz96_ssm, lorenz96_rhs, observation_matrix
from .joint import augment_with_parameters, split_state

__all__ = [
    'linear_decay_rhs',
    'simulate_linear_decay',
    'lorenz96_ssm',
    'lorenz96_rhs',
    'observation_matrix',
    'augment_with_parameters',
    'split_state',
]
