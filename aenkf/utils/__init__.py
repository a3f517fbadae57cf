"""
Utility Functions.

This module contains utility functions for:
- Metrics computation
- Visualization (organized in visualization/ subfolder)
"""
from .metrics import (
    compute_mse,
    compute_rmse,
    compute_nees,
    compute_symmetry_error,
    compute_min_eigenvalues,
    band_coverage,
)

from .visualization import (
    plot_aenkf,
    plot_process_noise,
)

__all__ = [
    # metrics
    'compute_mse',
    'compute_rmse',
    'compute_nees',
    'compute_symmetry_error',
    'compute_min_eigenvalues',
    'band_coverage',
    # visualization
    'plot_aenkf',
    'plot_process_noise',
]
