"""Adaptive ensemble Kalman filter components."""
from .aenkf import adaptive_ensemble_kalman_filter, AEnKFResult, validate_inputs, resolve_callable
from .forecast import forecast_step, integrate_member, rk4_step
from .adaptive import (
    AdaptiveNoiseState,
    distribution_matrix,
    estimate_process_noise,
    update_process_noise,
)
from .enkf import enkf_analysis, enkf_gain
from .perturbation import (
    gaussian_perturbations,
    covariance_sqrt,
    apply_covariance_policy,
    min_eigenvalue,
)
from .common import (
    ensemble_mean,
    ensemble_perturbations,
    ensemble_covariance,
    ensemble_statistics,
    three_sigma_band,
)
from .errors import (
    AEnKFError,
    SingularOperatorError,
    IntegrationFailureError,
    NonPositiveCovarianceError,
)

__all__ = [
    # Main filter
    'adaptive_ensemble_kalman_filter',
    'AEnKFResult',
    'validate_inputs',
    'resolve_callable',
    # Forecast
    'forecast_step',
    'integrate_member',
    'rk4_step',
    # Adaptive process noise
    'AdaptiveNoiseState',
    'distribution_matrix',
    'estimate_process_noise',
    'update_process_noise',
    # Analysis
    'enkf_analysis',
    'enkf_gain',
    # Perturbations
    'gaussian_perturbations',
    'covariance_sqrt',
    'apply_covariance_policy',
    'min_eigenvalue',
    # Statistics
    'ensemble_mean',
    'ensemble_perturbations',
    'ensemble_covariance',
    'ensemble_statistics',
    'three_sigma_band',
    # Errors
    'AEnKFError',
    'SingularOperatorError',
    'IntegrationFailureError',
    'NonPositiveCovarianceError',
]
