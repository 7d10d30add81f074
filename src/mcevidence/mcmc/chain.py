"""
Chain Driver - repeated transitions into a fixed-length Chain.

- run_chain_from: Advance an already evaluated first sample n-1 times
- run_chain: Evaluate a start value and run a plain MH chain
- remove_repeat_samples: Collapse runs of rejected transitions
- values_equal: Default state equality, array aware
"""

import logging
import time

import numpy as np

from .config import as_rng
from .diagnostics import log_acceptance_summary
from .sampling import evaluate, make_sampler
from .types import Chain, Counters, ModelValue

logger = logging.getLogger('mcevidence')


def run_chain_from(n, first, step, rng, label="MCMC") -> Chain:
    """
    Build a chain of n samples starting from an evaluated Sample.

    Args:
        n: Chain length including the first sample (>= 1)
        first: Sample placed at index 0
        step: fn(current, rng) -> (Sample, accepted)
        rng: Generator owned by this chain
        label: Name used in the log summary

    Returns:
        Chain with chain-local Counters
    """
    if n < 1:
        raise ValueError(f"Chain length must be >= 1, got {n}")

    counters = Counters()
    samples = [first] * n
    start_time = time.perf_counter()
    for i in range(1, n):
        samples[i], accepted = step(samples[i - 1], rng)
        counters.record(accepted)
    wall_time = time.perf_counter() - start_time

    chain = Chain(samples, counters)
    log_acceptance_summary(label, counters, wall_time)
    return chain


def run_chain(n, start, log_likelihood, log_prior, proposal, log_jump_prob, rng=None) -> Chain:
    """
    Run a Metropolis-Hastings chain.

    Args:
        n: Number of samples, including the start
        start: Initial state value
        log_likelihood: fn(value) -> float
        log_prior: fn(value) -> float
        proposal: fn(value, rng) -> proposed value
        log_jump_prob: fn(x, y) -> log q(y | x)
        rng: Generator, integer seed, or None

    Returns:
        Chain whose index 0 is start with its evaluated LikePrior
    """
    rng = as_rng(rng)
    step = make_sampler(log_likelihood, log_prior, proposal, log_jump_prob)
    return run_chain_from(n, evaluate(start, log_likelihood, log_prior), step, rng)


def values_equal(x, y) -> bool:
    """
    Structural equality of two state values.

    Array leaves compare with np.array_equal, ModelValues by tag and payload,
    tuples (AdmixtureValue included) element by element.
    """
    if isinstance(x, ModelValue) or isinstance(y, ModelValue):
        return (isinstance(x, ModelValue) and isinstance(y, ModelValue)
                and x.model == y.model and values_equal(x.value, y.value))
    if isinstance(x, tuple) and isinstance(y, tuple):
        return len(x) == len(y) and all(values_equal(a, b) for a, b in zip(x, y))
    return bool(np.array_equal(x, y))


def remove_repeat_samples(samples, equals=values_equal):
    """
    Drop every sample whose value equals its immediate predecessor's.

    Comparison is against the predecessor in the original sequence, so a
    run of rejections collapses to its first occurrence. Index 0 is always
    kept and order is preserved.

    Args:
        samples: Chain or sequence of Samples
        equals: fn(value1, value2) -> bool; values_equal by default

    Returns:
        List of Samples
    """
    samples = list(samples)
    if not samples:
        return []
    kept = [samples[0]]
    for prev, cur in zip(samples, samples[1:]):
        if not equals(cur.value, prev.value):
            kept.append(cur)
    return kept
