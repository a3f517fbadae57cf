"""Lorenz 96 State Space Model."""
import numpy as np
from scipy.integrate import solve_ivp


def lorenz96_rhs(t, x, F):
    """Lorenz 96 ODE right-hand side."""
    xm2 = np.roll(x, 2)
    xm1 = np.roll(x, 1)
    xp1 = np.roll(x, -1)
    return (xp1 - xm2) * xm1 - x + F


def observation_matrix(K, obs_every=1):
    """Selection matrix observing every obs_every-th variable."""
    obs_idx = np.arange(0, K, obs_every)
    H = np.zeros((len(obs_idx), K))
    H[np.arange(len(obs_idx)), obs_idx] = 1.0
    return H


def lorenz96_ssm(time, rng, K=40, F=8.0, obs_every=1, R_std=1.0, spinup=10.0):
    """
    Simulate the Lorenz 96 system observed at the given times.

    Parameters
    ----------
    time : ndarray [T]
        Observation times
    rng : np.random.Generator
    K : int
        State dimension
    F : float
        Forcing parameter (F=8 gives chaos)
    obs_every : int
        Observe every m-th variable (1 = all)
    R_std : float
        Observation noise std
    spinup : float
        Integration time used to reach the attractor before time[0]

    Returns
    -------
    xs : ndarray [T, K]
        True states
    ys : ndarray [T, n_obs]
        Observations
    H : ndarray [n_obs, K]
        Observation matrix
    R : ndarray [n_obs, n_obs]
        Observation noise covariance
    """
    time = np.asarray(time, dtype=float)
    H = observation_matrix(K, obs_every)
    n_obs = H.shape[0]
    R = (R_std ** 2) * np.eye(n_obs)

    # Spinup to attractor
    x = F * np.ones(K)
    x[0] += 0.01
    if spinup > 0:
        x = solve_ivp(lorenz96_rhs, (0.0, spinup), x, args=(F,), rtol=1e-8, atol=1e-8).y[:, -1]

    sol = solve_ivp(lorenz96_rhs, (time[0], time[-1]), x, t_eval=time, args=(F,),
                    rtol=1e-8, atol=1e-8)
    xs = sol.y.T
    ys = xs @ H.T + rng.normal(0, R_std, (len(time), n_obs))

    return xs, ys, H, R
