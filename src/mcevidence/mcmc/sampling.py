"""
MCMC Sampling Functions.

Core sampling functions for the chain drivers:
- evaluate: Wrap a state and its evaluated likelihood/prior as a Sample
- accept_log_uniform: The Metropolis accept test
- metropolis_step: One Metropolis-Hastings transition, generic over state type
- make_sampler: Per-step closure over fixed likelihood/prior/proposal functions

The samplers never look inside a state value. Everything they need is
supplied by the caller:

    log_likelihood(x) -> float
    log_prior(x) -> float
    proposal(x, rng) -> x'
    log_jump_prob(x, y) -> log q(y | x), the log density of jumping x -> y
"""

import math

from .types import LikePrior, Sample


def evaluate(value, log_likelihood, log_prior) -> Sample:
    """Sample holding value and its freshly computed LikePrior."""
    return Sample(value, LikePrior(log_likelihood(value), log_prior(value)))


def accept_log_uniform(log_accept_prob: float, u: float) -> bool:
    """
    Metropolis accept test: accept iff log(u) < log_accept_prob.

    log(0) is taken as -inf, so u == 0 accepts every proposal with a finite
    or +inf log_accept_prob. A proposal with log_accept_prob == -inf (zero
    target density) is never accepted, not even at u == 0, and a NaN ratio
    always rejects.
    """
    log_u = math.log(u) if u > 0.0 else -math.inf
    return log_u < log_accept_prob


def metropolis_step(current: Sample, log_likelihood, log_prior, proposal, log_jump_prob, rng):
    """
    Perform one Metropolis-Hastings transition.

    Args:
        current: Current Sample (value + cached LikePrior)
        log_likelihood: fn(value) -> float
        log_prior: fn(value) -> float
        proposal: fn(value, rng) -> proposed value
        log_jump_prob: fn(x, y) -> log density of proposing y from x
        rng: numpy Generator owned by this chain

    Returns:
        (next_sample, accepted). On rejection next_sample is current itself.
    """
    start = current.value
    start_log_post = current.like_prior.log_likelihood + current.like_prior.log_prior

    proposed = proposal(start, rng)
    proposed_like = log_likelihood(proposed)
    proposed_prior = log_prior(proposed)

    log_forward_jump = log_jump_prob(start, proposed)
    log_backward_jump = log_jump_prob(proposed, start)
    log_accept_prob = (proposed_like + proposed_prior - start_log_post
                       + log_backward_jump - log_forward_jump)

    if accept_log_uniform(log_accept_prob, float(rng.random())):
        return Sample(proposed, LikePrior(proposed_like, proposed_prior)), True
    return current, False


def make_sampler(log_likelihood, log_prior, proposal, log_jump_prob):
    """
    Bind the model functions into a per-step transition.

    The returned step(current, rng) -> (Sample, accepted) is the primitive
    handed to drivers that advance many chains one step at a time
    (e.g. parallel tempering).
    """
    def step(current: Sample, rng):
        return metropolis_step(current, log_likelihood, log_prior, proposal, log_jump_prob, rng)

    return step
