"""
Adaptive Ensemble Kalman Filter (AEnKF).

State estimation for an ODE model observed through a linear operator M,
with the process noise covariance V re-estimated online at every
observation (Rastetter et al. 2010). Parameters are estimated by folding
them into the state vector (see aenkf.ssm.joint).
"""
import importlib
import logging
from dataclasses import dataclass

import numpy as np

from .adaptive import AdaptiveNoiseState
from .common import DEFAULT_COND_LIMIT, ensemble_statistics, three_sigma_band
from .enkf import enkf_analysis
from .errors import AEnKFError
from .forecast import SOLVER_METHODS, forecast_step
from .perturbation import COVARIANCE_POLICIES, gaussian_perturbations, min_eigenvalue

logger = logging.getLogger(__name__)


@dataclass
class AEnKFResult:
    """
    Output bundle of one filter run.

    Attributes
    ----------
    xfilter : ndarray [L, n_x]
        Filtered mean at every observation time
    P : ndarray [L, n_x, n_x]
        Sample covariance of the analysed ensemble
    time : ndarray [L]
        Observation times
    data : ndarray [L, n_y]
        Observations used by the filter
    tsd : ndarray [L, n_x]
        Three standard deviations of every state component
    ensemble : ndarray [n_x, N, L]
        Analysed ensemble at every observation time
    process_noise : ndarray [L, n_x, n_x]
        Process noise covariance V after each update
    """
    xfilter: np.ndarray
    P: np.ndarray
    time: np.ndarray
    data: np.ndarray
    tsd: np.ndarray
    ensemble: np.ndarray
    process_noise: np.ndarray

    @property
    def n_steps(self):
        return self.xfilter.shape[0]

    @property
    def lower(self):
        """Lower edge of the +/-3 sigma band."""
        return self.xfilter - self.tsd

    @property
    def upper(self):
        """Upper edge of the +/-3 sigma band."""
        return self.xfilter + self.tsd


def resolve_callable(dynfun):
    """
    Return dynfun itself, or import it from a 'module:name' / 'module.name' path.
    """
    if callable(dynfun):
        return dynfun
    if not isinstance(dynfun, str):
        raise TypeError(f"dynfun must be callable or an import path, got {type(dynfun)!r}")

    if ':' in dynfun:
        module_name, _, attr = dynfun.partition(':')
    else:
        module_name, _, attr = dynfun.rpartition('.')
    if not module_name or not attr:
        raise ValueError(f"cannot resolve '{dynfun}', expected 'module:function'")

    func = getattr(importlib.import_module(module_name), attr)
    if not callable(func):
        raise TypeError(f"'{dynfun}' does not name a callable")
    return func


def _as_matrix(name, value, shape):
    value = np.atleast_2d(np.asarray(value, dtype=float))
    if value.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got {value.shape}")
    return value


def validate_inputs(M, data, time, x0, R, V, P0, N, alpha, beta):
    """
    Check shapes and ranges of the filter inputs and coerce them to arrays.

    Returns
    -------
    tuple
        (M [n_y, n_x], data [L, n_y], time [L], x0 [n_x],
         R [n_y, n_y], V [n_x, n_x], P0 [n_x, n_x])
    """
    x0 = np.atleast_1d(np.asarray(x0, dtype=float)).ravel()
    n_x = x0.size

    M = np.atleast_2d(np.asarray(M, dtype=float))
    if M.shape[1] != n_x:
        raise ValueError(f"M must have {n_x} columns, got shape {M.shape}")
    n_y = M.shape[0]

    data = np.asarray(data, dtype=float)
    if data.ndim == 1:
        data = data.reshape(-1, 1) if n_y == 1 else data.reshape(1, -1)
    if data.ndim != 2 or data.shape[1] != n_y:
        raise ValueError(f"data must have shape [L, {n_y}], got {data.shape}")
    L = data.shape[0]

    time = np.asarray(time, dtype=float).ravel()
    if time.size != L:
        raise ValueError(f"time has {time.size} points but data has {L} rows")
    if L > 1 and np.any(np.diff(time) <= 0):
        raise ValueError("time must be strictly increasing")

    R = _as_matrix('R', R, (n_y, n_y))
    V = _as_matrix('V', V, (n_x, n_x))
    P0 = _as_matrix('P0', P0, (n_x, n_x))

    if int(N) != N or N < 2:
        raise ValueError(f"ensemble size N must be an integer >= 2, got {N}")
    for name, w in (('alpha', alpha), ('beta', beta)):
        if not 0.0 <= w <= 1.0:
            raise ValueError(f"{name} must lie in [0, 1], got {w}")

    return M, data, time, x0, R, V, P0


def adaptive_ensemble_kalman_filter(dynfun, M, data, time, x0, R, V, P0, N, q,
                                    alpha, beta, rng=None, method='BDF',
                                    rtol=1e-5, atol=1e-5, n_workers=1,
                                    v_policy='none', strict_perturbations=False,
                                    cond_limit=DEFAULT_COND_LIMIT):
    """
    Adaptive Ensemble Kalman Filter with online process noise estimation.

    Parameters
    ----------
    dynfun : callable or str
        Model right-hand side dynfun(t, x, q) -> dx/dt, or an import path
    M : ndarray [n_y, n_x]
        Observation matrix
    data : ndarray [L, n_y]
        Observations (1-D allowed when n_y = 1)
    time : ndarray [L]
        Observation times, strictly increasing
    x0 : ndarray [n_x]
        Initial state
    R : ndarray [n_y, n_y]
        Observation noise covariance (constant)
    V : ndarray [n_x, n_x]
        Initial process noise covariance
    P0 : ndarray [n_x, n_x]
        Initial state covariance
    N : int
        Ensemble size (>= 2)
    q : any
        Fixed model parameters passed to dynfun
    alpha : float
        Forgetting factor for V in [0, 1]
    beta : float
        Error distribution weight in [0, 1]
    rng : np.random.Generator, optional
    method : str
        solve_ivp method, or 'rk4' for one fixed RK4 step per interval
    rtol, atol : float
        Integrator tolerances
    n_workers : int
        Threads used for the per-member integrations
    v_policy : str
        'none' (default, V may become indefinite), 'elementwise', 'psd'
        or 'strict'
    strict_perturbations : bool
        Raise instead of projecting when a perturbation covariance is indefinite
    cond_limit : float
        Conditioning threshold for M P_t M^T and C

    Returns
    -------
    AEnKFResult

    Raises
    ------
    SingularOperatorError, IntegrationFailureError, NonPositiveCovarianceError
        With ``step`` set to the observation index (1-based) that failed
    """
    if rng is None:
        rng = np.random.default_rng()
    if method not in SOLVER_METHODS:
        raise ValueError(f"method must be one of {SOLVER_METHODS}, got '{method}'")
    if v_policy not in COVARIANCE_POLICIES:
        raise ValueError(f"v_policy must be one of {COVARIANCE_POLICIES}, got '{v_policy}'")

    dynfun = resolve_callable(dynfun)
    M, data, time, x0, R, V, P0 = validate_inputs(M, data, time, x0, R, V, P0, N, alpha, beta)
    N = int(N)
    L, n_x = data.shape[0], x0.size

    logger.info("AEnKF: L=%d, n_x=%d, n_y=%d, N=%d, alpha=%.3f, beta=%.3f, method=%s",
                L, n_x, M.shape[0], N, alpha, beta, method)

    xfilter = np.zeros((L, n_x))
    P = np.zeros((L, n_x, n_x))
    tsd = np.zeros((L, n_x))
    ensemble = np.zeros((n_x, N, L))
    process_noise = np.zeros((L, n_x, n_x))

    # Initializing
    k = 1
    try:
        A = x0[:, None] + gaussian_perturbations(P0, N, rng, strict=strict_perturbations)
    except AEnKFError as e:
        e.step = k
        logger.error("AEnKF failed at step %d: %s", k, e.message)
        raise
    noise = AdaptiveNoiseState(V, alpha, beta, policy=v_policy)

    xfilter[0] = x0
    P[0] = P0
    tsd[0] = three_sigma_band(P0)
    ensemble[:, :, 0] = A
    process_noise[0] = noise.V

    warned_indefinite = False
    for k in range(2, L + 1):
        i = k - 1
        y = data[i]
        try:
            logger.debug("step %d/%d: forecasting", k, L)
            A_star, Ap = forecast_step(A, dynfun, q, time[i - 1], time[i], noise.V, rng,
                                       method=method, rtol=rtol, atol=atol,
                                       n_workers=n_workers, strict=strict_perturbations)

            logger.debug("step %d/%d: analyzing", k, L)
            E = gaussian_perturbations(R, N, rng, strict=strict_perturbations)
            noise, C_ee = noise.step(Ap, A_star, M, y, E, R, cond_limit)
            A = enkf_analysis(Ap, y, M, C_ee, cond_limit)
        except AEnKFError as e:
            e.step = k
            logger.error("AEnKF failed at step %d: %s", k, e.message)
            raise

        lam = min_eigenvalue(noise.V)
        logger.debug("step %d/%d: recording (min eig V = %.3e)", k, L, lam)
        if lam < 0 and not warned_indefinite:
            logger.warning("Process noise covariance became indefinite at step %d "
                           "(min eigenvalue %.3e); negative directions are ignored "
                           "when sampling", k, lam)
            warned_indefinite = True

        x_bar, _, P_k = ensemble_statistics(A)
        xfilter[i] = x_bar
        P[i] = P_k
        tsd[i] = three_sigma_band(P_k)
        ensemble[:, :, i] = A
        process_noise[i] = noise.V

    logger.info("AEnKF finished %d steps", L)

    return AEnKFResult(xfilter=xfilter, P=P, time=time, data=data, tsd=tsd,
                       ensemble=ensemble, process_noise=process_noise)
