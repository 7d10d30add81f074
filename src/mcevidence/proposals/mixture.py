"""
Mixture Proposal for MCMC Sampling

Combines several (proposal, log density) components with fixed weights.

Proposal:
    With prob w_k: x' ~ q_k(. | x)

Jump density of the mixture:
    q(y | x) = sum_k w_k q_k(y | x)

so log_jump_prob is a log-sum-exp over log w_k + log q_k(x, y). Each
component must supply the normalised density it actually samples from.
The 0 returned by symmetric walks is only usable when every component is
symmetric, since the dropped constants then cancel in the ratio.
"""

import itertools
import math

from ..error_handling import InternalError
from ..mcmc.admixture import log_sum_exp


def combine_proposals(components):
    """
    Weighted mixture of proposals with one coherent jump density.

    Args:
        components: Sequence of (weight, propose, log_jump_prob) triples.
            Weights are non-negative and normalised internally.

    Returns:
        (propose, log_jump_prob)

    Raises:
        ValueError: If there are no components, a weight is negative, or
            the weights sum to zero
    """
    components = list(components)
    if not components:
        raise ValueError("combine_proposals needs at least one component")
    weights = [float(w) for w, _, _ in components]
    if any(w < 0 for w in weights):
        raise ValueError(f"Mixture weights must be >= 0, got {weights}")
    total = sum(weights)
    if not total > 0:
        raise ValueError(f"Mixture weights must sum to > 0, got {weights}")

    normalized = [w / total for w in weights]
    log_weights = [math.log(w) if w > 0 else -math.inf for w in normalized]
    proposals = [c[1] for c in components]
    densities = [c[2] for c in components]

    # Rounding can leave the running sum just below 1.0; pin the tail so a
    # draw of u close to 1 still lands on the last positive-weight component
    cumulative = list(itertools.accumulate(normalized))
    last = max(i for i, w in enumerate(normalized) if w > 0)
    cumulative[last:] = [1.0] * (len(cumulative) - last)

    def propose(x, rng):
        u = float(rng.random())
        for c, prop in zip(cumulative, proposals):
            if u < c:
                return prop(x, rng)
        raise InternalError(
            f"Mixture proposal scan exhausted: u={u!r}, cumulative weights {cumulative!r}"
        )

    def log_jump_prob(x, y):
        log_q = -math.inf
        for lw, density in zip(log_weights, densities):
            if lw == -math.inf:
                continue
            log_q = log_sum_exp(log_q, lw + density(x, y))
        return log_q

    return propose, log_jump_prob
