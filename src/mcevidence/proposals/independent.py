"""
Independence Proposals and Pseudo-Priors

Proposals that ignore the current state and draw from a fixed axis-aligned
Gaussian N(mu, sigma^2):

    gaussian_independence: (propose, log_jump_prob) for a within-model move;
        log_jump_prob(x, y) = log N(y; mu, sigma)
    gaussian_pseudo_prior: (jump_into, log_jump_into) for RJMCMC moves into a
        model the chain does not currently occupy

A pseudo-prior close to that model's posterior makes cross-model jumps
accept often.
"""

import numpy as np

from ..stats import draw_gaussian, log_gaussian, log_multi_gaussian


def _log_density(mu, sigma):
    if np.ndim(mu) == 0 and np.ndim(sigma) == 0:
        return lambda y: log_gaussian(mu, sigma, y)
    return lambda y: log_multi_gaussian(mu, sigma, y)


def _draw(mu, sigma):
    if np.ndim(mu) == 0 and np.ndim(sigma) == 0:
        return lambda rng: draw_gaussian(mu, sigma, rng)
    mu_arr = np.asarray(mu, dtype=float)
    return lambda rng: mu_arr + sigma * rng.standard_normal(mu_arr.shape)


def gaussian_pseudo_prior(mu, sigma):
    """
    Fixed Gaussian pseudo-prior for jumps into a model.

    Args:
        mu: Mean (scalar or array)
        sigma: Standard deviation (scalar or array, > 0)

    Returns:
        (jump_into, log_jump_into) with jump_into(rng) -> value and
        log_jump_into(value) -> float
    """
    if np.any(np.asarray(sigma) <= 0):
        raise ValueError(f"sigma must be > 0, got {sigma}")
    return _draw(mu, sigma), _log_density(mu, sigma)


def gaussian_independence(mu, sigma):
    """
    Independence proposal x' ~ N(mu, sigma^2), whatever the current x.

    Returns:
        (propose, log_jump_prob)
    """
    draw, log_density = gaussian_pseudo_prior(mu, sigma)

    def propose(x, rng):
        return draw(rng)

    def log_jump_prob(x, y):
        return log_density(y)

    return propose, log_jump_prob
