"""Unit tests for Lorenz 96 SSM."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from aenkf.ssm import lorenz96_ssm, lorenz96_rhs, observation_matrix


class TestLorenz96RHS:
    """Tests for Lorenz 96 ODE right-hand side."""

    def test_output_shape(self):
        """RHS should return same shape as input."""
        K = 40
        x = np.ones(K)
        F = 8.0

        dx = lorenz96_rhs(0.0, x, F)

        assert dx.shape == (K,)

    def test_cyclic_boundary(self):
        """RHS should handle cyclic boundary correctly."""
        x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        F = 8.0

        dx = lorenz96_rhs(0.0, x, F)

        # dx[0] = (x[1] - x[-2]) * x[-1] - x[0] + F
        #       = (2 - 4) * 5 - 1 + 8 = -3
        np.testing.assert_allclose(dx[0], -3.0)

    def test_fixed_point(self):
        """x = F everywhere is an equilibrium."""
        np.testing.assert_allclose(lorenz96_rhs(0.0, 8.0 * np.ones(6), 8.0), 0.0)


class TestObservationMatrix:
    """Tests for the selection matrix."""

    def test_every_other(self):
        H = observation_matrix(6, obs_every=2)

        assert H.shape == (3, 6)
        np.testing.assert_array_equal(H @ np.arange(6.0), [0.0, 2.0, 4.0])

    def test_full(self):
        np.testing.assert_array_equal(observation_matrix(4), np.eye(4))


class TestLorenz96SSM:
    """Tests for Lorenz 96 state space model."""

    def test_output_shapes(self, rng):
        """Generated data should have correct shapes."""
        time = np.linspace(0, 1, 21)
        K = 10

        xs, ys, H, R = lorenz96_ssm(time, rng, K=K, spinup=1.0)

        assert xs.shape == (21, K)
        assert ys.shape == (21, K)  # Default obs_every=1
        assert H.shape == (K, K)
        assert R.shape == (K, K)

    def test_partial_observation(self, rng):
        """obs_every should thin the observed variables."""
        time = np.linspace(0, 0.5, 11)

        xs, ys, H, R = lorenz96_ssm(time, rng, K=8, obs_every=2, R_std=0.5, spinup=1.0)

        assert H.shape == (4, 8)
        assert ys.shape == (11, 4)
        np.testing.assert_allclose(R, 0.25 * np.eye(4))
        assert np.sum(H) == 4

    def test_no_nan(self, rng):
        """Generated data should not contain NaN."""
        xs, ys, H, R = lorenz96_ssm(np.linspace(0, 2, 41), rng, K=12)

        assert not np.any(np.isnan(xs)), "NaN in states"
        assert not np.any(np.isnan(ys)), "NaN in observations"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
