"""Ensemble Kalman Filter (EnKF) analysis step."""
import numpy as np

from .common import DEFAULT_COND_LIMIT, check_conditioning, ensemble_statistics
from .errors import SingularOperatorError


def enkf_analysis(Ap, y, M, C_ee, cond_limit=DEFAULT_COND_LIMIT):
    """
    Ensemble Kalman Filter analysis in ensemble space (Evensen 2003, eq. 58-63).

    Parameters
    ----------
    Ap : ndarray [n_x, N]
        Forecast ensemble with process noise
    y : ndarray [n_y]
        Observation
    M : ndarray [n_y, n_x]
        Observation matrix
    C_ee : ndarray [n_y, n_y]
        Sample covariance of the measurement perturbations
    cond_limit : float
        Largest acceptable condition number of C

    Returns
    -------
    A : ndarray [n_x, N]
        Analysed ensemble Ap @ X
    """
    N = Ap.shape[1]
    _, A_prime, _ = ensemble_statistics(Ap)

    # Innovations D' = D - M Ap, one column per member
    D_prime = y[:, None] - M @ Ap

    S = M @ A_prime
    C = S @ S.T + (N - 1) * C_ee
    check_conditioning(C, 'innovation covariance C', cond_limit)

    try:
        X = np.eye(N) + S.T @ np.linalg.solve(C, D_prime)
    except np.linalg.LinAlgError as e:
        raise SingularOperatorError(f"innovation covariance C is singular: {e}") from e

    return Ap @ X


def enkf_gain(Ap, M, C_ee):
    """
    Kalman gain implied by the analysis step.

    K = P M^T (M P M^T + C_ee)^{-1} with P the sample covariance of Ap.
    The analysis never forms K; this is for diagnostics.

    Parameters
    ----------
    Ap : ndarray [n_x, N]
        Forecast ensemble
    M : ndarray [n_y, n_x]
        Observation matrix
    C_ee : ndarray [n_y, n_y]
        Measurement perturbation covariance

    Returns
    -------
    ndarray [n_x, n_y]
    """
    _, _, P = ensemble_statistics(Ap)
    S = M @ P @ M.T + C_ee
    return np.linalg.solve(S.T, M @ P.T).T
