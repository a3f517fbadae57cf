"""Ensemble statistics shared by the forecast, adaptive and analysis steps."""
import numpy as np

from .errors import SingularOperatorError

DEFAULT_COND_LIMIT = 1e12


def ensemble_mean(A):
    """
    Sample mean across ensemble members.

    Parameters
    ----------
    A : ndarray [n_x, N]
        Ensemble, one member per column

    Returns
    -------
    ndarray [n_x]
    """
    return np.mean(A, axis=1)


def ensemble_perturbations(A):
    """Ensemble minus its mean, broadcast per member: A' = A - mean."""
    return A - ensemble_mean(A)[:, None]


def ensemble_covariance(A):
    """
    Sample covariance (1 / (N - 1)) A' A'^T of an ensemble.

    Parameters
    ----------
    A : ndarray [n_x, N]
        Ensemble, one member per column

    Returns
    -------
    ndarray [n_x, n_x]
        Symmetric sample covariance (singular when N <= n_x)
    """
    return ensemble_statistics(A)[2]


def ensemble_statistics(A):
    """
    Mean, perturbation matrix and sample covariance of an ensemble.

    Parameters
    ----------
    A : ndarray [n_x, N]
        Ensemble, one member per column

    Returns
    -------
    x_bar : ndarray [n_x]
        Sample mean
    A_prime : ndarray [n_x, N]
        Perturbations A - x_bar
    P : ndarray [n_x, n_x]
        Sample covariance A' A'^T / (N - 1)
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 2:
        raise ValueError(f"ensemble must be 2-D [n_x, N], got shape {A.shape}")
    N = A.shape[1]
    if N < 2:
        raise ValueError(f"ensemble needs at least 2 members, got {N}")

    x_bar = np.mean(A, axis=1)
    A_prime = A - x_bar[:, None]
    P = A_prime @ A_prime.T / (N - 1)
    # Enforce exact symmetry against round-off in the product
    P = 0.5 * (P + P.T)
    return x_bar, A_prime, P


def three_sigma_band(P):
    """Half-width of the +/-3 standard deviation band: 3 * sqrt(diag(P))."""
    return 3.0 * np.sqrt(np.clip(np.diag(P), 0.0, None))


def check_conditioning(S, name, cond_limit=DEFAULT_COND_LIMIT):
    """
    Raise SingularOperatorError if S is singular or ill-conditioned.

    Parameters
    ----------
    S : ndarray [k, k]
        Matrix about to be solved against
    name : str
        Label used in the error message
    cond_limit : float
        Largest acceptable 2-norm condition number

    Returns
    -------
    float
        Condition number of S
    """
    if not np.all(np.isfinite(S)):
        raise SingularOperatorError(f"{name} contains non-finite entries")
    cond = np.linalg.cond(S)
    if not np.isfinite(cond) or cond > cond_limit:
        raise SingularOperatorError(
            f"{name} is singular or ill-conditioned (cond={cond:.3e})",
            condition_number=cond,
        )
    return cond
