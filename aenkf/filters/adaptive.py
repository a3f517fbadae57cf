"""
Adaptive process noise estimation.

Re-estimates the process noise covariance V at every observation from the
discrepancy between the innovation spread and the spread predicted by the
noise-free forecast, following Rastetter et al. (2010):

    Gamma_t = [(1-beta) (M P_t M^T)^{-1} M P_t (I - M^T M) + beta M]^T
    Qhat_t  = Gamma_t (S_t - M P*_t M^T - R) Gamma_t^T
    V      <- alpha V + (1-alpha) Qhat_t

Qhat_t is not constrained to be positive semi-definite, so neither is V.
"""
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .common import DEFAULT_COND_LIMIT, check_conditioning, ensemble_statistics
from .errors import SingularOperatorError
from .perturbation import apply_covariance_policy


def _check_weight(name, value):
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must lie in [0, 1], got {value}")


def distribution_matrix(M, P_t, beta, cond_limit=DEFAULT_COND_LIMIT):
    """
    Error distribution matrix Gamma_t.

    Spreads innovation-driven corrections from the observed onto the
    unobserved state components. beta = 1 reduces it to M^T, in which case
    the inverse term is not evaluated.

    Parameters
    ----------
    M : ndarray [n_y, n_x]
        Observation matrix
    P_t : ndarray [n_x, n_x]
        Forecast covariance (with process noise)
    beta : float
        Blending weight in [0, 1]
    cond_limit : float
        Largest acceptable condition number of M P_t M^T

    Returns
    -------
    ndarray [n_x, n_y]
    """
    _check_weight('beta', beta)
    n_x = M.shape[1]

    G = beta * M
    if beta < 1.0:
        MPMt = M @ P_t @ M.T
        check_conditioning(MPMt, 'M P_t M^T', cond_limit)
        try:
            G = G + (1.0 - beta) * np.linalg.solve(MPMt, M @ P_t @ (np.eye(n_x) - M.T @ M))
        except np.linalg.LinAlgError as e:
            raise SingularOperatorError(f"M P_t M^T is singular: {e}") from e

    return G.T


def estimate_process_noise(Ap, A_star, M, y, E, R, beta, cond_limit=DEFAULT_COND_LIMIT):
    """
    Raw process noise estimate for one observation.

    Parameters
    ----------
    Ap : ndarray [n_x, N]
        Forecast ensemble with process noise
    A_star : ndarray [n_x, N]
        Noise-free forecast ensemble
    M : ndarray [n_y, n_x]
        Observation matrix
    y : ndarray [n_y]
        Observation
    E : ndarray [n_y, N]
        Measurement perturbations drawn with covariance R
    R : ndarray [n_y, n_y]
        Observation noise covariance
    beta : float
        Distribution weight in [0, 1]
    cond_limit : float
        Conditioning threshold for M P_t M^T

    Returns
    -------
    Qhat : ndarray [n_x, n_x]
        Raw estimate of the process noise covariance
    Gamma : ndarray [n_x, n_y]
        Distribution matrix
    C_ee : ndarray [n_y, n_y]
        Sample covariance of the measurement perturbations
    """
    N = Ap.shape[1]

    _, _, P_t = ensemble_statistics(Ap)
    _, _, P_star = ensemble_statistics(A_star)

    Gamma = distribution_matrix(M, P_t, beta, cond_limit)

    C_ee = E @ E.T / (N - 1)

    # Innovation spread about the observation, not about its own mean
    Y_t = y[:, None] - M @ Ap + E
    S_t = Y_t @ Y_t.T / (N - 1)

    Qhat = Gamma @ (S_t - M @ P_star @ M.T - R) @ Gamma.T
    return Qhat, Gamma, C_ee


def update_process_noise(V, Qhat, alpha, policy='none', tol=1e-12):
    """
    Exponential smoothing V <- alpha V + (1 - alpha) Qhat.

    Parameters
    ----------
    V : ndarray [n_x, n_x]
        Current process noise covariance
    Qhat : ndarray [n_x, n_x]
        Raw estimate for this step
    alpha : float
        Forgetting factor in [0, 1]; close to 1 adapts slowly
    policy : str
        Covariance policy, see apply_covariance_policy
    tol : float
        Negative eigenvalue tolerance for the 'strict' policy

    Returns
    -------
    ndarray [n_x, n_x]
    """
    _check_weight('alpha', alpha)
    V_new = alpha * V + (1.0 - alpha) * Qhat
    return apply_covariance_policy(V_new, policy, tol)


@dataclass
class AdaptiveNoiseState:
    """
    Process noise covariance threaded through the filter recursion.

    Attributes
    ----------
    V : ndarray [n_x, n_x]
        Current process noise covariance
    alpha, beta : float
        Forgetting factor and distribution weight
    policy : str
        Covariance policy applied after every update
    Qhat : ndarray [n_x, n_x], optional
        Raw estimate from the most recent update
    n_updates : int
        Number of updates applied so far
    """
    V: np.ndarray
    alpha: float
    beta: float
    policy: str = 'none'
    Qhat: Optional[np.ndarray] = field(default=None, repr=False)
    n_updates: int = 0

    def __post_init__(self):
        _check_weight('alpha', self.alpha)
        _check_weight('beta', self.beta)
        self.V = np.atleast_2d(np.asarray(self.V, dtype=float))

    def step(self, Ap, A_star, M, y, E, R, cond_limit=DEFAULT_COND_LIMIT):
        """
        Estimate Qhat for this observation and return the updated state.

        Returns
        -------
        state : AdaptiveNoiseState
            New state carrying the smoothed V
        C_ee : ndarray [n_y, n_y]
            Measurement perturbation covariance for the analysis step
        """
        Qhat, _, C_ee = estimate_process_noise(Ap, A_star, M, y, E, R, self.beta, cond_limit)
        V_new = update_process_noise(self.V, Qhat, self.alpha, self.policy)
        state = AdaptiveNoiseState(V_new, self.alpha, self.beta, self.policy,
                                   Qhat=Qhat, n_updates=self.n_updates + 1)
        return state, C_ee
