"""Scalar linear decay model dx/dt = -r x."""
import numpy as np


def linear_decay_rhs(t, x, q):
    """Right-hand side -q * x (q is the decay rate)."""
    return -q * np.asarray(x, dtype=float)


def simulate_linear_decay(time, x0, R, rng, rate=1.0):
    """
    Simulate exact exponential decay observed with Gaussian noise.

    Parameters
    ----------
    time : ndarray [T]
        Observation times
    x0 : float or ndarray [n_x]
        State at time[0]
    R : float or ndarray [n_x, n_x]
        Observation noise covariance
    rng : np.random.Generator
    rate : float
        Decay rate

    Returns
    -------
    xs : ndarray [T, n_x]
        True states
    ys : ndarray [T, n_x]
        Observations (identity observation operator)
    """
    time = np.asarray(time, dtype=float)
    x0 = np.atleast_1d(np.asarray(x0, dtype=float))
    R = np.atleast_2d(np.asarray(R, dtype=float))
    n_x = x0.size

    xs = np.exp(-rate * (time - time[0]))[:, None] * x0[None, :]
    ys = xs + rng.multivariate_normal(np.zeros(n_x), R, size=len(time))

    return xs, ys
