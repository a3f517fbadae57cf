"""Smoke tests for AEnKF plotting."""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from aenkf.filters import adaptive_ensemble_kalman_filter
from aenkf.utils.visualization import plot_aenkf, plot_process_noise


@pytest.fixture
def result(coupled_model):
    m = coupled_model
    time = np.linspace(0, 2, 8)
    return adaptive_ensemble_kalman_filter(
        m['f'], m['M'], np.cos(time), time, m['x0'], m['R'], m['V'], m['P0'], 20,
        m['q'], 0.9, 0.5, rng=np.random.default_rng(0))


class TestPlots:
    """Figures should be written without error."""

    def test_plot_aenkf(self, result, tmp_path):
        path = tmp_path / 'aenkf.png'
        xs = np.column_stack([np.cos(result.time), -np.sin(result.time)])

        plot_aenkf(result, xs=xs, state_names=['x', 'v'], save_path=str(path))

        assert path.exists()

    def test_plot_process_noise(self, result, tmp_path):
        path = tmp_path / 'noise.png'

        plot_process_noise(result, save_path=str(path))

        assert path.exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
