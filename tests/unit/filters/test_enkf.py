"""Unit tests for the Ensemble Kalman Filter analysis step."""
import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from aenkf.filters.enkf import enkf_analysis, enkf_gain
from aenkf.filters.common import ensemble_statistics
from aenkf.filters.errors import SingularOperatorError


class TestEnKFAnalysis:
    """Tests for enkf_analysis."""

    def test_output_shape(self, forecast_ensembles):
        d = forecast_ensembles
        C_ee = d['E'] @ d['E'].T / (d['N'] - 1)

        A = enkf_analysis(d['Ap'], d['y'], d['M'], C_ee)

        assert A.shape == d['Ap'].shape
        assert np.all(np.isfinite(A))

    def test_linear_combination_of_members(self, forecast_ensembles):
        """Analysed members lie in the span of the forecast members."""
        d = forecast_ensembles
        C_ee = 0.1 * np.eye(2)

        A = enkf_analysis(d['Ap'], d['y'], d['M'], C_ee)

        X, *_ = np.linalg.lstsq(d['Ap'], A, rcond=None)
        np.testing.assert_allclose(d['Ap'] @ X, A, atol=1e-8)

    def test_mean_update_matches_kalman_gain(self, forecast_ensembles):
        """The mean moves by K (y - M x_bar) with K built from the forecast spread."""
        d = forecast_ensembles
        C_ee = 0.1 * np.eye(2)
        x_bar = d['Ap'].mean(axis=1)

        A = enkf_analysis(d['Ap'], d['y'], d['M'], C_ee)

        K = enkf_gain(d['Ap'], d['M'], C_ee)
        np.testing.assert_allclose(A.mean(axis=1), x_bar + K @ (d['y'] - d['M'] @ x_bar),
                                   atol=1e-10)

    def test_gain_matches_formula(self, forecast_ensembles):
        d = forecast_ensembles
        C_ee = 0.2 * np.eye(2)
        _, _, P = ensemble_statistics(d['Ap'])

        K = enkf_gain(d['Ap'], d['M'], C_ee)

        expected = P @ d['M'].T @ np.linalg.inv(d['M'] @ P @ d['M'].T + C_ee)
        np.testing.assert_allclose(K, expected, atol=1e-10)

    def test_noise_free_collapse(self, rng):
        """With no observation noise and M = I the ensemble collapses onto the observation."""
        n_x, N = 2, 10
        A_star = rng.standard_normal((n_x, N))
        y = A_star.mean(axis=1)

        A = enkf_analysis(A_star, y, np.eye(n_x), np.zeros((n_x, n_x)))

        np.testing.assert_allclose(A, np.tile(y[:, None], (1, N)), atol=1e-10)

    def test_unobserved_leaves_ensemble(self, forecast_ensembles):
        """M = 0 gives X = I, so the ensemble is unchanged."""
        d = forecast_ensembles
        M = np.zeros((2, 3))

        A = enkf_analysis(d['Ap'], d['y'], M, 0.1 * np.eye(2))

        np.testing.assert_allclose(A, d['Ap'], atol=1e-12)

    def test_precise_observation_dominates(self, rng):
        """As the measurement noise vanishes the mean goes to the observation."""
        Ap = 2.0 + 0.5 * rng.standard_normal((1, 30))
        y = np.array([1.0])

        A = enkf_analysis(Ap, y, np.eye(1), np.array([[1e-10]]))

        np.testing.assert_allclose(A.mean(axis=1), y, atol=1e-6)

    def test_singular_innovation_covariance(self):
        """Collapsed ensemble and zero observation noise cannot be solved."""
        Ap = np.ones((2, 5))

        with pytest.raises(SingularOperatorError):
            enkf_analysis(Ap, np.zeros(2), np.eye(2), np.zeros((2, 2)))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
