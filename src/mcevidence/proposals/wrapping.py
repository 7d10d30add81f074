"""
Wrapping Uniform Proposal for MCMC Sampling

Uniform step of total width delta centered on the current state, folded
periodically back into [low, high):

    x' = low + ((x + delta * (u - 1/2) - low) mod (high - low)),  u ~ U(0, 1)

Folding keeps the chain inside a bounded prior support without ever
proposing outside it, and the move stays symmetric on the circle, so
log_jump_prob is identically 0.
"""

import numpy as np

from .rand_walk import symmetric_log_jump_prob


def fold_periodic(x, low, high):
    """Fold x (scalar or array) into [low, high)."""
    low = np.asarray(low, dtype=float)
    period = np.asarray(high, dtype=float) - low
    folded = low + np.mod(np.asarray(x, dtype=float) - low, period)
    if np.ndim(folded) == 0:
        return float(folded)
    return folded


def uniform_wrapping(low, high, delta):
    """
    Build a wrapping uniform proposal.

    Args:
        low: Lower edge of the support (scalar or array)
        high: Upper edge of the support (scalar or array)
        delta: Width of the uniform step (must not exceed high - low)

    Returns:
        (propose, log_jump_prob)
    """
    period = np.asarray(high, dtype=float) - np.asarray(low, dtype=float)
    if np.any(period <= 0):
        raise ValueError(f"high must exceed low, got low={low}, high={high}")
    if np.any(np.asarray(delta) <= 0) or np.any(np.asarray(delta) > period):
        raise ValueError(f"delta must be in (0, high - low], got {delta}")

    def propose(x, rng):
        step = delta * (rng.random(np.shape(x)) - 0.5)
        return fold_periodic(np.asarray(x, dtype=float) + step, low, high)

    return propose, symmetric_log_jump_prob
