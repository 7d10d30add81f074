"""
MCMC Tempering - in-process parallel tempering and thermodynamic integration.

One chain per inverse temperature beta targets L(x)^beta * pi(x). After every
swap_interval transitions, adjacent temperatures are offered a state
exchange using the DEO (Deterministic Even-Odd) scheme (Syed et al. 2021):
even rounds try pairs (0,1), (2,3), ...; odd rounds try (1,2), (3,4), ...

Swap acceptance between beta_i and beta_j:
    alpha = min(1, exp((beta_i - beta_j) * (log_lik_j - log_lik_i)))

Samples are stored with their *untempered* log-likelihood so that every
chain can feed thermodynamic integration:
    log Z = integral_0^1 <log L>_beta dbeta

Functions:
- temperature_ladder: Geometric inverse-temperature ladder
- attempt_swaps: One DEO swap round
- run_parallel_tempering: Run all tempered chains
- thermodynamic_integrate: Log evidence from a tempered run
"""

import logging
import math
from dataclasses import dataclass
from typing import List

import jax.numpy as jnp
import numpy as np
from jax.scipy.integrate import trapezoid

from ..error_handling import validate_config
from ..settings import clean_config
from .config import make_chain_rngs
from .diagnostics import log_acceptance_summary, log_swap_acceptance_summary
from .sampling import accept_log_uniform, metropolis_step
from .types import Chain, Counters, LikePrior, Sample

logger = logging.getLogger('mcevidence')


def temperature_ladder(n_temperatures: int, beta_min: float) -> np.ndarray:
    """
    Geometric ladder beta_i = beta_min^(i/(n-1)), from 1.0 down to beta_min.

    Raises:
        ValueError: If n_temperatures < 1 or beta_min is not in (0, 1]
    """
    if n_temperatures < 1:
        raise ValueError(f"n_temperatures must be >= 1, got {n_temperatures}")
    if beta_min <= 0 or beta_min > 1:
        raise ValueError(f"beta_min must be in (0, 1], got {beta_min}")
    if n_temperatures == 1:
        return np.array([1.0])
    temp_indices = np.arange(n_temperatures)
    return np.power(beta_min, temp_indices / (n_temperatures - 1))


@dataclass
class TemperedRun:
    """
    Output of run_parallel_tempering.

    Fields:
        betas: Inverse temperatures, betas[0] == 1.0 is the cold chain
        chains: One Chain per beta, samples carry untempered log-likelihoods
        swap_accepts: Accepted swaps per adjacent pair (n_temperatures - 1,)
        swap_attempts: Attempted swaps per adjacent pair (n_temperatures - 1,)
    """
    betas: np.ndarray
    chains: List[Chain]
    swap_accepts: np.ndarray
    swap_attempts: np.ndarray

    @property
    def cold_chain(self) -> Chain:
        return self.chains[0]


def _tempered_step(current: Sample, beta, log_likelihood, log_prior, proposal, log_jump_prob, rng):
    """MH step on L^beta * pi; input and output samples hold untempered likelihoods."""
    tempered = Sample(current.value, LikePrior(beta * current.log_likelihood, current.log_prior))
    nxt, accepted = metropolis_step(
        tempered,
        lambda x: beta * log_likelihood(x),
        log_prior, proposal, log_jump_prob, rng,
    )
    if not accepted:
        return current, False
    return Sample(nxt.value, LikePrior(nxt.log_likelihood / beta, nxt.log_prior)), True


def attempt_swaps(states, betas, parity, rng, swap_accepts, swap_attempts, use_deo=True):
    """
    One round of adjacent-temperature state exchanges.

    Args:
        states: Current Sample per temperature (modified in place)
        betas: Inverse temperatures
        parity: DEO parity (0 = even pairs, 1 = odd pairs)
        rng: Generator reserved for swap decisions
        swap_accepts: Per-pair accept counts (modified in place)
        swap_attempts: Per-pair attempt counts (modified in place)
        use_deo: If False, every pair is attempted each round

    Returns:
        Parity for the next round
    """
    for i in range(len(betas) - 1):
        if use_deo and i % 2 != parity:
            continue
        log_lik_cold = states[i].log_likelihood
        log_lik_hot = states[i + 1].log_likelihood
        log_alpha = (betas[i] - betas[i + 1]) * (log_lik_hot - log_lik_cold)
        if math.isnan(log_alpha):
            log_alpha = -math.inf

        swap_attempts[i] += 1
        if accept_log_uniform(log_alpha, float(rng.random())):
            states[i], states[i + 1] = states[i + 1], states[i]
            swap_accepts[i] += 1
    return 1 - parity


def run_parallel_tempering(n, start, log_likelihood, log_prior, proposal, log_jump_prob,
                           betas, swap_interval=1, rng=None, use_deo=True) -> TemperedRun:
    """
    Run one Metropolis-Hastings chain per inverse temperature with state swaps.

    Args:
        n: Samples per chain, including the start
        start: Initial state value shared by all chains
        log_likelihood: fn(value) -> float (untempered)
        log_prior: fn(value) -> float (never tempered)
        proposal: fn(value, rng) -> proposed value
        log_jump_prob: fn(x, y) -> log q(y | x)
        betas: Inverse temperatures in (0, 1], betas[0] should be 1.0
        swap_interval: Transitions between swap rounds
        rng: Integer seed, Generator, or None
        use_deo: Alternate even/odd pairs (True) or try all pairs each round

    Returns:
        TemperedRun
    """
    betas = np.asarray(betas, dtype=float)
    n_temps = len(betas)
    if n < 1:
        raise ValueError(f"Chain length must be >= 1, got {n}")
    if n_temps < 1 or np.any(betas <= 0) or np.any(betas > 1):
        raise ValueError(f"betas must be a non-empty ladder in (0, 1], got {betas}")
    if swap_interval < 1:
        raise ValueError(f"swap_interval must be >= 1, got {swap_interval}")

    if isinstance(rng, np.random.Generator):
        rngs = rng.spawn(n_temps + 1)
    else:
        rngs = make_chain_rngs(rng, n_temps + 1)
    chain_rngs, swap_rng = rngs[:n_temps], rngs[n_temps]

    first = Sample(start, LikePrior(log_likelihood(start), log_prior(start)))
    states = [first] * n_temps
    histories = [[first] * n for _ in range(n_temps)]
    counters = [Counters() for _ in range(n_temps)]
    swap_accepts = np.zeros(max(n_temps - 1, 0), dtype=np.int64)
    swap_attempts = np.zeros(max(n_temps - 1, 0), dtype=np.int64)
    parity = 0

    for t in range(1, n):
        for k in range(n_temps):
            states[k], accepted = _tempered_step(
                states[k], betas[k], log_likelihood, log_prior, proposal, log_jump_prob, chain_rngs[k]
            )
            counters[k].record(accepted)
        if n_temps > 1 and t % swap_interval == 0:
            parity = attempt_swaps(states, betas, parity, swap_rng, swap_accepts, swap_attempts, use_deo)
        for k in range(n_temps):
            histories[k][t] = states[k]

    chains = [Chain(h, c) for h, c in zip(histories, counters)]
    for beta, chain in zip(betas, chains):
        log_acceptance_summary(f"Tempered (beta={beta:.4g})", chain.counters)
    log_swap_acceptance_summary(betas, swap_accepts, swap_attempts)
    return TemperedRun(betas, chains, swap_accepts, swap_attempts)


def thermodynamic_integrate(betas, chains, burn_in: int = 0) -> float:
    """
    Log evidence by thermodynamic integration over a tempered run.

    Integrates the mean untempered log-likelihood <log L>_beta over beta
    with the trapezoid rule; <log L> at the smallest beta is held flat down
    to beta = 0.

    Args:
        betas: Inverse temperatures of the chains
        chains: One Chain (or sample sequence) per beta
        burn_in: Samples to drop from the start of each chain

    Returns:
        log Z estimate
    """
    betas = np.asarray(betas, dtype=float)
    if len(betas) != len(chains):
        raise ValueError(f"Got {len(betas)} betas but {len(chains)} chains")
    mean_ll = np.array([
        np.mean([s.log_likelihood for s in list(chain)[burn_in:]]) for chain in chains
    ])
    order = np.argsort(betas)
    x = jnp.asarray(betas[order])
    y = jnp.asarray(mean_ll[order])
    log_z = x[0] * y[0] + trapezoid(y, x)
    return float(log_z)


def tempered_log_evidence(n, start, log_likelihood, log_prior, proposal, log_jump_prob,
                          config=None, burn_in: int = 0):
    """
    Parallel tempering run plus thermodynamic integration, set up from a config dict.

    Uses 'n_temperatures', 'beta_min', 'swap_interval' and 'rng_seed'.

    Returns:
        (log Z estimate, TemperedRun)
    """
    config = clean_config(config)
    validate_config(config)
    betas = temperature_ladder(config['n_temperatures'], config['beta_min'])
    run = run_parallel_tempering(n, start, log_likelihood, log_prior, proposal, log_jump_prob,
                                 betas, swap_interval=config['swap_interval'], rng=config['rng_seed'])
    log_z = thermodynamic_integrate(run.betas, run.chains, burn_in)
    logger.info(f"Thermodynamic integration over {len(betas)} temperatures: log Z = {log_z:.6g}")
    return log_z, run
