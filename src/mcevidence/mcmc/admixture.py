"""
Admixture sampler: continuous model averaging between two models.

The state is (lam, a, b). The target density is the lam-weighted mixture

    lam * L_a(a) pi_a(a) p_a / v_b  +  (1 - lam) * L_b(b) pi_b(b) p_b / v_a

where v_a, v_b are the volumes of the reference measures of the two
parameter spaces; dividing by the *other* model's volume makes the
unused coordinates integrate to one. All prior mass is carried by this
term, so the sampler's log prior is identically zero.

Under this target the marginal of lam is proportional to
r * lam + (1 - lam) with r = (p_a Z_a) / (p_b Z_b); see
root_finding.max_like_admixture_ratio for recovering r from a chain.
"""

import math
from dataclasses import dataclass
from typing import Callable, Tuple

from .chain import run_chain_from
from .config import as_rng
from .rjmcmc import validate_model_weights
from .sampling import evaluate, make_sampler
from .types import AdmixtureValue, Chain


def log_sum_exp(la: float, lb: float) -> float:
    """
    log(exp(la) + exp(lb)) without overflow.

    Symmetric in its arguments; exact when either argument is -inf and
    returns -inf when both are.
    """
    if la == -math.inf and lb == -math.inf:
        return -math.inf
    hi, lo = (la, lb) if la >= lb else (lb, la)
    return hi + math.log1p(math.exp(lo - hi))


def _log(x: float) -> float:
    return math.log(x) if x > 0.0 else -math.inf


@dataclass(frozen=True)
class AdmixtureModels:
    """
    Functions, weights and reference volumes of an admixture sampler.

    Fields (each a pair, model A first):
        log_likelihoods: fn(value) -> float
        log_priors: fn(value) -> float
        proposals: Within-model proposals fn(value, rng) -> value
        log_jump_probs: Within-model fn(x, y) -> log q(y | x)
        weights: Model weights (p_a, p_b), summing to 1
        volumes: Reference-measure volumes (v_a, v_b), both > 0
    """
    log_likelihoods: Tuple[Callable, Callable]
    log_priors: Tuple[Callable, Callable]
    proposals: Tuple[Callable, Callable]
    log_jump_probs: Tuple[Callable, Callable]
    weights: Tuple[float, float] = (0.5, 0.5)
    volumes: Tuple[float, float] = (1.0, 1.0)

    def __post_init__(self):
        validate_model_weights(*self.weights)
        v_a, v_b = self.volumes
        if not (v_a > 0 and v_b > 0):
            raise ValueError(f"Reference volumes must be > 0, got {self.volumes}")

    def log_likelihood(self, x: AdmixtureValue) -> float:
        lam, a, b = x
        ll_a, ll_b = self.log_likelihoods
        lp_a, lp_b = self.log_priors
        p_a, p_b = self.weights
        v_a, v_b = self.volumes
        term_a = _log(lam) + ll_a(a) + lp_a(a) + math.log(p_a) - math.log(v_b)
        term_b = _log(1.0 - lam) + ll_b(b) + lp_b(b) + math.log(p_b) - math.log(v_a)
        return log_sum_exp(term_a, term_b)

    def log_prior(self, x: AdmixtureValue) -> float:
        return 0.0

    def propose(self, x: AdmixtureValue, rng) -> AdmixtureValue:
        # lam is redrawn independently of the current value
        lam = float(rng.random())
        jp_a, jp_b = self.proposals
        return AdmixtureValue(lam, jp_a(x.a, rng), jp_b(x.b, rng))

    def log_jump_prob(self, x: AdmixtureValue, y: AdmixtureValue) -> float:
        # Uniform lam contributes the same density both ways
        ljp_a, ljp_b = self.log_jump_probs
        return ljp_a(x.a, y.a) + ljp_b(x.b, y.b)

    def sampler(self):
        """Per-step transition step(current, rng) -> (Sample, accepted)."""
        return make_sampler(self.log_likelihood, self.log_prior, self.propose, self.log_jump_prob)


def run_admixture(n: int, models: AdmixtureModels, start, rng=None) -> Chain:
    """
    Run an admixture chain.

    Args:
        n: Number of samples, including the start
        models: AdmixtureModels definition
        start: AdmixtureValue or (lam, a, b) tuple
        rng: Generator, integer seed, or None

    Returns:
        Chain of AdmixtureValue samples
    """
    lam = start[0]
    if not 0.0 <= lam <= 1.0:
        raise ValueError(f"Admixture weight must be in [0, 1], got {lam}")
    rng = as_rng(rng)
    first = evaluate(AdmixtureValue(*start), models.log_likelihood, models.log_prior)
    return run_chain_from(n, first, models.sampler(), rng, label="Admixture")
