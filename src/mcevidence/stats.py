"""
Gaussian helpers used by proposals, samplers and tests.

Scalar functions use the math module; they sit inside the per-step loop
where array dispatch would dominate the cost of a transition. Vector
densities go through jax.scipy.stats.
"""

import math

import jax
import jax.numpy as jnp
import jax.scipy.stats as stats
import numpy as np

LOG_TWO_PI = math.log(2.0 * math.pi)


def log_gaussian(mu, sigma, x):
    """Log density of N(mu, sigma^2) at x."""
    d = (x - mu) / sigma
    return -0.5 * LOG_TWO_PI - math.log(sigma) - 0.5 * d * d


@jax.jit
def _sum_norm_logpdf(x, mu, sigma):
    return jnp.sum(stats.norm.logpdf(x, loc=mu, scale=sigma))


def log_multi_gaussian(mu, sigma, x):
    """
    Log density of an axis-aligned Gaussian at x.

    mu and sigma are scalars or arrays broadcasting against x.
    """
    return float(_sum_norm_logpdf(np.asarray(x, dtype=float), np.asarray(mu, dtype=float),
                                  np.asarray(sigma, dtype=float)))


def draw_gaussian(mu, sigma, rng):
    """Single draw from N(mu, sigma^2) as a Python float."""
    return mu + sigma * float(rng.standard_normal())
