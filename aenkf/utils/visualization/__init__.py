"""
Visualization utilities for adaptive EnKF results.
"""
from .filters import (
    plot_aenkf,
    plot_process_noise,
)

__all__ = [
    'plot_aenkf',
    'plot_process_noise',
]
