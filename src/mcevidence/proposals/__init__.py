"""
Proposal Distributions for MCMC Sampling

This package implements proposal distributions for Metropolis-Hastings sampling.

Every factory returns a pair of plain functions:
    propose(x, rng) -> x'          draws a candidate with the chain's Generator
    log_jump_prob(x, y) -> float   log density of proposing y from x

Each proposal supplies its own jump density - there's no separate
symmetric/asymmetric handling needed in the samplers. Symmetric walks
return 0.0 and drop out of the acceptance ratio.

RJMCMC pseudo-priors use the related pair
    jump_into(rng) -> value
    log_jump_into(value) -> float

To add a new proposal:
1. Create new file in proposals/ returning (propose, log_jump_prob)
2. Export from this __init__.py
"""

from .rand_walk import gaussian_random_walk, uniform_random_walk, symmetric_log_jump_prob
from .wrapping import uniform_wrapping, fold_periodic
from .independent import gaussian_independence, gaussian_pseudo_prior
from .mixture import combine_proposals

__all__ = [
    'gaussian_random_walk',
    'uniform_random_walk',
    'symmetric_log_jump_prob',
    'uniform_wrapping',
    'fold_periodic',
    'gaussian_independence',
    'gaussian_pseudo_prior',
    'combine_proposals',
]
