"""
Pytest configuration and shared fixtures for mcevidence tests.
"""

import math

import numpy as np
import pytest

from mcevidence.mcmc.types import LikePrior, Sample
from mcevidence.stats import log_gaussian


class FixedUniformRng:
    """Stand-in Generator: random() always returns u, standard_normal() returns 0."""

    def __init__(self, u):
        self.u = u

    def random(self, size=None):
        if size is None:
            return self.u
        return np.full(size, self.u)

    def standard_normal(self, size=None):
        if size is None:
            return 0.0
        return np.zeros(size)


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def rng(rng_seed):
    """Fresh numpy Generator per test."""
    return np.random.default_rng(rng_seed)


@pytest.fixture
def fixed_rng():
    """Factory for generators with a fixed uniform draw."""
    return FixedUniformRng


@pytest.fixture
def standard_normal_model():
    """(log_likelihood, log_prior) of N(0, 1) with a flat prior."""
    return (lambda x: log_gaussian(0.0, 1.0, x)), (lambda x: 0.0)


@pytest.fixture
def flat_unit_square_samples(rng):
    """20000 iid uniform points on [0,1]^2 with L = 1 and a flat unit prior (Z = 1)."""
    points = rng.random((20000, 2))
    return [Sample(p, LikePrior(0.0, 0.0)) for p in points]


@pytest.fixture
def make_sample():
    """Build a Sample from (value, log_likelihood, log_prior)."""
    def _make(value, log_likelihood=0.0, log_prior=0.0):
        return Sample(value, LikePrior(log_likelihood, log_prior))
    return _make


@pytest.fixture
def half_square_likelihood():
    """Log-likelihood 0 on x < 0.5 and log(0.01) elsewhere."""
    low = math.log(0.01)
    return lambda p: 0.0 if p[0] < 0.5 else low
