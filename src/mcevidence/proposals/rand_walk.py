"""
Random Walk Proposals for MCMC Sampling

Symmetric random walks centered on the current state:

    gaussian_random_walk:  x' ~ N(x, sigma^2 I)
    uniform_random_walk:   x' ~ U(x - delta, x + delta), per coordinate

Both return a (propose, log_jump_prob) pair. Since q(x'|x) = q(x|x'),
log_jump_prob is identically 0 and drops out of the acceptance ratio.

State values may be Python floats or numpy arrays; the proposal keeps the
shape (and float-ness) of its input.
"""

import numpy as np


def _perturb(x, noise):
    if np.ndim(x) == 0:
        return float(x + noise)
    return np.asarray(x, dtype=float) + noise


def symmetric_log_jump_prob(x, y):
    """Log jump density of any symmetric proposal, up to the cancelling constant."""
    return 0.0


def gaussian_random_walk(sigma):
    """
    Gaussian random walk with step size sigma.

    Args:
        sigma: Standard deviation per coordinate (scalar or array)

    Returns:
        (propose, log_jump_prob)
    """
    if np.any(np.asarray(sigma) <= 0):
        raise ValueError(f"sigma must be > 0, got {sigma}")

    def propose(x, rng):
        return _perturb(x, sigma * rng.standard_normal(np.shape(x)))

    return propose, symmetric_log_jump_prob


def uniform_random_walk(delta):
    """
    Uniform random walk: each coordinate moves by U(-delta, delta).

    Args:
        delta: Half-width of the step per coordinate (scalar or array)

    Returns:
        (propose, log_jump_prob)
    """
    if np.any(np.asarray(delta) <= 0):
        raise ValueError(f"delta must be > 0, got {delta}")

    def propose(x, rng):
        return _perturb(x, rng.uniform(-1.0, 1.0, np.shape(x)) * delta)

    return propose, symmetric_log_jump_prob
