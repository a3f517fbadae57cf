"""Gaussian perturbations for ensembles and covariance policies for V."""
import numpy as np
from scipy import linalg as sla

from .errors import NonPositiveCovarianceError

COVARIANCE_POLICIES = ('none', 'elementwise', 'psd', 'strict')


def min_eigenvalue(cov):
    """Smallest eigenvalue of the symmetric part of cov."""
    cov = np.atleast_2d(np.asarray(cov, dtype=float))
    return sla.eigvalsh(0.5 * (cov + cov.T))[0]


def covariance_sqrt(cov):
    """
    Real part of the principal square root of a symmetric matrix.

    The eigenvalues are square-rooted in the complex domain, so a negative
    eigenvalue gives an imaginary root. Only the real part is kept: those
    directions contribute no spread. This is an approximation and not a
    valid factorisation of an indefinite matrix.

    Parameters
    ----------
    cov : ndarray [n, n]
        Symmetric matrix (not necessarily PSD)

    Returns
    -------
    ndarray [n, n]
        Real symmetric matrix L with L @ L = cov whenever cov is PSD
    """
    cov = np.atleast_2d(np.asarray(cov, dtype=float))
    w, U = sla.eigh(0.5 * (cov + cov.T))
    root = (U * np.sqrt(w.astype(complex))) @ U.T
    # Explicit projection onto the real component
    return root.real


def gaussian_perturbations(cov, n_samples, rng, strict=False, tol=1e-12):
    """
    Draw zero-mean Gaussian samples with covariance cov.

    Parameters
    ----------
    cov : ndarray [n, n]
        Covariance of the samples
    n_samples : int
        Number of independent samples (columns)
    rng : np.random.Generator
        Random source
    strict : bool
        Raise NonPositiveCovarianceError instead of projecting when cov has
        an eigenvalue below -tol
    tol : float
        Tolerance on negative eigenvalues in strict mode

    Returns
    -------
    ndarray [n, n_samples]
        Column-stacked samples sqrt(cov) @ Z, Z standard normal
    """
    cov = np.atleast_2d(np.asarray(cov, dtype=float))
    if strict:
        lam = min_eigenvalue(cov)
        if lam < -tol:
            raise NonPositiveCovarianceError(
                f"covariance has negative eigenvalue {lam:.3e}",
                min_eigenvalue=lam,
            )
    n = cov.shape[0]
    Z = rng.standard_normal((n, n_samples))
    return covariance_sqrt(cov) @ Z


def apply_covariance_policy(V, policy='none', tol=1e-12):
    """
    Post-process an adaptively estimated covariance.

    Parameters
    ----------
    V : ndarray [n, n]
        Covariance estimate
    policy : str
        'none'        keep V as is, negative eigenvalues allowed
        'elementwise' set negative entries to zero
        'psd'         clip eigenvalues at zero
        'strict'      raise NonPositiveCovarianceError on a negative eigenvalue
    tol : float
        Tolerance on negative eigenvalues for 'strict'

    Returns
    -------
    ndarray [n, n]
    """
    if policy == 'none':
        return V
    if policy == 'elementwise':
        V = V.copy()
        V[V < 0] = 0.0
        return V
    if policy == 'psd':
        w, U = sla.eigh(0.5 * (V + V.T))
        return (U * np.clip(w, 0.0, None)) @ U.T
    if policy == 'strict':
        lam = min_eigenvalue(V)
        if lam < -tol:
            raise NonPositiveCovarianceError(
                f"process noise covariance has negative eigenvalue {lam:.3e}",
                min_eigenvalue=lam,
            )
        return V
    raise ValueError(f"policy must be one of {COVARIANCE_POLICIES}, got '{policy}'")
