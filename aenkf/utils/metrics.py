"""
Metrics for evaluating filter performance.
"""
import numpy as np


def compute_mse(estimated, true):
    """
    Mean squared error over all steps and components.

    Parameters
    ----------
    estimated : ndarray [T, n_x]
        Filtered means
    true : ndarray
        True states, reshaped to the shape of estimated (a 1-D series is
        accepted for a scalar state)

    Returns
    -------
    float
    """
    estimated = np.asarray(estimated)
    true = np.asarray(true).reshape(estimated.shape)
    return float(np.mean((estimated - true)**2))


def compute_rmse(estimated, true):
    """Root Mean Squared Error."""
    return np.sqrt(compute_mse(estimated, true))


def compute_nees(xfilter, P, xs, regularize=1e-8):
    """
    Normalized Estimation Error Squared of the analysed mean.

    NEES_t = (x_t - xbar_t)' P_t^{-1} (x_t - xbar_t)

    For a consistent filter the average over steps is close to n_x. The
    ensemble covariance is rank deficient when N <= n_x, so a small ridge is
    added before solving.

    Parameters
    ----------
    xfilter : ndarray [T, n_x]
        Filtered means
    P : ndarray [T, n_x, n_x]
        Ensemble covariances
    xs : ndarray [T, n_x]
        True states
    regularize : float
        Ridge added to the diagonal of every P_t

    Returns
    -------
    ndarray [T]
    """
    xfilter = np.asarray(xfilter)
    err = np.asarray(xs).reshape(xfilter.shape) - xfilter
    P_reg = np.asarray(P) + regularize * np.eye(xfilter.shape[1])
    return np.einsum('ti,ti->t', err, np.linalg.solve(P_reg, err[..., None])[..., 0])


def compute_symmetry_error(P_filt):
    """
    Compute symmetry error ||P - P'||_F / ||P||_F over all time steps.

    Parameters
    ----------
    P_filt : ndarray [T, n_x, n_x]
        Covariance matrices

    Returns
    -------
    ndarray [T]
        Relative symmetry error at each time step
    """
    T = P_filt.shape[0]
    sym_err = np.zeros(T)
    for t in range(T):
        P = P_filt[t]
        norm_P = np.linalg.norm(P, 'fro')
        if norm_P > 0:
            sym_err[t] = np.linalg.norm(P - P.T, 'fro') / norm_P
    return sym_err


def compute_min_eigenvalues(P_filt):
    """
    Minimum eigenvalue of every matrix in a covariance sequence.

    Negative values indicate loss of positive semi-definiteness, which is
    expected for the adaptively estimated process noise.
    """
    return np.array([np.linalg.eigvalsh(0.5 * (P + P.T)).min() for P in P_filt])


def band_coverage(xfilter, tsd, xs):
    """
    Fraction of time steps where the truth lies inside the +/- tsd band.

    Parameters
    ----------
    xfilter : ndarray [T, n_x]
        Filtered means
    tsd : ndarray [T, n_x]
        Band half-widths (e.g. three standard deviations)
    xs : ndarray [T, n_x]
        True states

    Returns
    -------
    float
        Share of steps with every component inside its band
    """
    xs = np.asarray(xs).reshape(np.shape(xfilter))
    inside = np.abs(xs - xfilter) <= tsd
    return float(np.mean(np.all(inside, axis=1)))
