"""Shared pytest fixtures for unit tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def decay_model():
    """Scalar decay dx/dt = -x observed directly."""
    def f(t, x, q):
        return -q * x

    return {
        'f': f, 'q': 1.0,
        'M': np.array([[1.0]]),
        'R': np.array([[0.05]]),
        'V': np.array([[0.01]]),
        'P0': np.array([[0.1]]),
        'x0': np.array([1.0]),
    }


@pytest.fixture
def coupled_model():
    """Two-state damped oscillator with only the first state observed."""
    A = np.array([[0.0, 1.0], [-1.0, -0.2]])

    def f(t, x, q):
        return A @ x

    return {
        'f': f, 'q': None, 'A': A,
        'M': np.array([[1.0, 0.0]]),
        'R': np.array([[0.01]]),
        'V': 0.001 * np.eye(2),
        'P0': 0.1 * np.eye(2),
        'x0': np.array([1.0, 0.0]),
    }


@pytest.fixture
def forecast_ensembles(rng):
    """Noise-free and noisy forecast ensembles [n_x, N] with a 2x3 observation matrix."""
    n_x, N = 3, 40
    A_star = rng.standard_normal((n_x, N)) + np.array([[1.0], [2.0], [-1.0]])
    Ap = A_star + 0.3 * rng.standard_normal((n_x, N))
    M = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    R = 0.1 * np.eye(2)
    E = np.sqrt(0.1) * rng.standard_normal((2, N))
    y = np.array([1.2, 1.8])
    return {'A_star': A_star, 'Ap': Ap, 'M': M, 'R': R, 'E': E, 'y': y, 'N': N, 'n_x': n_x}


def check_psd(matrix, tol=1e-10):
    """Check if matrix is positive semi-definite."""
    return np.all(np.linalg.eigvalsh(matrix) >= -tol)
