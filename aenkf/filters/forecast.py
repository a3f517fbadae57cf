"""Forecast step: push every ensemble member through the dynamics model."""
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from scipy.integrate import solve_ivp

from .errors import IntegrationFailureError
from .perturbation import gaussian_perturbations

logger = logging.getLogger(__name__)

SOLVER_METHODS = ('RK23', 'RK45', 'DOP853', 'Radau', 'BDF', 'LSODA', 'rk4')


def rk4_step(rhs, h, t, x, q):
    """Fourth order explicit Runge-Kutta step of size h for rhs(t, x, q)."""
    k1 = rhs(t, x, q)
    k2 = rhs(t + h / 2, x + h / 2 * k1, q)
    k3 = rhs(t + h / 2, x + h / 2 * k2, q)
    k4 = rhs(t + h, x + h * k3, q)
    return x + (h / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def integrate_member(dynfun, x, q, t0, t1, method='BDF', rtol=1e-5, atol=1e-5):
    """
    Integrate one state vector from t0 to t1.

    Parameters
    ----------
    dynfun : callable
        dynfun(t, x, q) -> dx/dt
    x : ndarray [n_x]
        State at t0
    q : any
        Fixed model parameters passed through to dynfun
    t0, t1 : float
        Integration interval
    method : str
        solve_ivp method name, or 'rk4' for a single fixed RK4 step
    rtol, atol : float
        solve_ivp tolerances

    Returns
    -------
    ndarray [n_x]
        State at t1

    Raises
    ------
    IntegrationFailureError
        If the solver or the model raises, the solver reports failure, or
        the result is not finite
    """
    try:
        if method == 'rk4':
            x_end = np.asarray(rk4_step(dynfun, t1 - t0, t0, x, q), dtype=float)
        else:
            sol = solve_ivp(lambda t, y: dynfun(t, y, q), (t0, t1), x,
                            method=method, rtol=rtol, atol=atol)
            if not sol.success:
                raise IntegrationFailureError(
                    f"{method} failed on [{t0}, {t1}]: {sol.message}")
            x_end = sol.y[:, -1]
    except (ArithmeticError, ValueError, np.linalg.LinAlgError) as e:
        raise IntegrationFailureError(f"{method} failed on [{t0}, {t1}]: {e}") from e

    if not np.all(np.isfinite(x_end)):
        raise IntegrationFailureError(f"non-finite state at t={t1}")
    return x_end


def forecast_step(A, dynfun, q, t0, t1, V, rng, method='BDF', rtol=1e-5,
                  atol=1e-5, n_workers=1, strict=False):
    """
    Forecast an ensemble over one observation interval.

    Members are integrated independently (optionally on a thread pool) and
    gathered in member order before process noise with covariance V is
    added. All random draws happen here, on the calling thread.

    Parameters
    ----------
    A : ndarray [n_x, N]
        Analysed ensemble at t0
    dynfun : callable
        dynfun(t, x, q) -> dx/dt
    q : any
        Fixed model parameters
    t0, t1 : float
        Observation interval
    V : ndarray [n_x, n_x]
        Process noise covariance
    rng : np.random.Generator
    method : str
        solve_ivp method or 'rk4'
    rtol, atol : float
        Integrator tolerances
    n_workers : int
        Number of threads for the per-member integrations (1 = serial)
    strict : bool
        Reject a V with negative eigenvalues instead of projecting

    Returns
    -------
    A_star : ndarray [n_x, N]
        Deterministic forecast
    Ap : ndarray [n_x, N]
        Forecast with process noise added
    """
    n_x, N = A.shape
    logger.debug("Forecast [%g, %g]: %d members, method=%s, workers=%d",
                 t0, t1, N, method, n_workers)

    def run(j):
        try:
            return integrate_member(dynfun, A[:, j], q, t0, t1, method, rtol, atol)
        except IntegrationFailureError as e:
            e.member = j
            e.message = f"member {j}: {e.message}"
            raise
        except Exception as e:
            # Errors raised by the model itself
            raise IntegrationFailureError(
                f"member {j}: model failed on [{t0}, {t1}]: {e!r}", member=j) from e

    if n_workers > 1:
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            columns = list(executor.map(run, range(N)))
    else:
        columns = [run(j) for j in range(N)]

    A_star = np.column_stack(columns).reshape(n_x, N)
    Ap = A_star + gaussian_perturbations(V, N, rng, strict=strict)

    return A_star, Ap
