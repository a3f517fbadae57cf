"""Root conftest.py - Shared pytest fixtures for all tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator for data simulation."""
    return np.random.default_rng(42)


@pytest.fixture
def make_rng():
    """Factory for independent generators, one per filter run."""
    def factory(seed):
        return np.random.default_rng(seed)
    return factory
