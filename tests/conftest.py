"""Pytest configuration shared by all test modules."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random stream so statistical tests are reproducible."""
    return np.random.default_rng(12345)
