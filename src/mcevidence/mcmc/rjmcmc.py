"""
Reversible-Jump MCMC over two model spaces.

The chain state is a ModelValue tagged A or B. Moves within a model use that
model's own proposal; moves between models draw a fresh point from a fixed
pseudo-prior for the target model, ignoring the current value. The
pseudo-prior density enters log_jump_prob so detailed balance holds across
subspaces of different dimension without a dimension-matching bijection.

The model-selection weights p_a, p_b are folded into the prior, so the
fraction of samples in each model estimates the posterior model
probabilities.
"""

import math
import sys
from dataclasses import dataclass
from typing import Any, Callable, Tuple

from .chain import run_chain_from
from .config import as_rng
from .diagnostics import log_model_summary
from .sampling import make_sampler
from .types import Chain, LikePrior, Model, ModelValue, Sample

WEIGHT_TOL = math.sqrt(sys.float_info.epsilon)


def validate_model_weights(p_a: float, p_b: float) -> None:
    """
    Model-selection weights must be positive and sum to one.

    Raises:
        ValueError: If |p_a + p_b - 1| exceeds sqrt(machine epsilon) or a
            weight is not strictly positive
    """
    errors = []
    if not p_a > 0:
        errors.append(f"p_a must be > 0, got {p_a}")
    if not p_b > 0:
        errors.append(f"p_b must be > 0, got {p_b}")
    if not abs(p_a + p_b - 1.0) <= WEIGHT_TOL:
        errors.append(f"p_a + p_b must equal 1, got {p_a} + {p_b} = {p_a + p_b}")
    if errors:
        raise ValueError("Invalid model weights:\n  " + "\n  ".join(errors))


@dataclass(frozen=True)
class RJMCMCModels:
    """
    Functions and weights defining a two-model reversible-jump sampler.

    Fields (each a pair, model A first):
        log_likelihoods: fn(value) -> float
        log_priors: fn(value) -> float
        proposals: Within-model proposals fn(value, rng) -> value
        log_jump_probs: Within-model fn(x, y) -> log q(y | x)
        jumps_into: Pseudo-prior draws fn(rng) -> value
        log_jumps_into: Pseudo-prior log densities fn(value) -> float
        weights: Model-selection weights (p_a, p_b), summing to 1

    Example:
        models = RJMCMCModels(
            log_likelihoods=(ll_a, ll_b),
            log_priors=(lp_a, lp_b),
            proposals=(jp_a, jp_b),
            log_jump_probs=(ljp_a, ljp_b),
            jumps_into=(draw_a, draw_b),
            log_jumps_into=(log_q_a, log_q_b),
            weights=(0.5, 0.5),
        )
        chain = run_rjmcmc(100000, models, (a0, b0), rng=42)
    """
    log_likelihoods: Tuple[Callable, Callable]
    log_priors: Tuple[Callable, Callable]
    proposals: Tuple[Callable, Callable]
    log_jump_probs: Tuple[Callable, Callable]
    jumps_into: Tuple[Callable, Callable]
    log_jumps_into: Tuple[Callable, Callable]
    weights: Tuple[float, float] = (0.5, 0.5)

    def __post_init__(self):
        validate_model_weights(*self.weights)

    @property
    def log_weights(self) -> Tuple[float, float]:
        return math.log(self.weights[0]), math.log(self.weights[1])

    def propose(self, x: ModelValue, rng) -> ModelValue:
        p_a, p_b = self.weights
        jp_a, jp_b = self.proposals
        jump_into_a, jump_into_b = self.jumps_into
        if x.model == Model.A:
            if rng.random() < p_a:
                return ModelValue.a(jp_a(x.value, rng))
            return ModelValue.b(jump_into_b(rng))
        if rng.random() < p_b:
            return ModelValue.b(jp_b(x.value, rng))
        return ModelValue.a(jump_into_a(rng))

    def log_jump_prob(self, x: ModelValue, y: ModelValue) -> float:
        log_p_a, log_p_b = self.log_weights
        if x.model == Model.A:
            if y.model == Model.A:
                return self.log_jump_probs[0](x.value, y.value)
            return log_p_b + self.log_jumps_into[1](y.value)
        if y.model == Model.A:
            return log_p_a + self.log_jumps_into[0](y.value)
        return self.log_jump_probs[1](x.value, y.value)

    def log_likelihood(self, x: ModelValue) -> float:
        return self.log_likelihoods[x.model](x.value)

    def log_prior(self, x: ModelValue) -> float:
        return self.log_weights[x.model] + self.log_priors[x.model](x.value)

    def initial_state(self, a: Any, b: Any, rng) -> Sample:
        """Start in A with probability p_a, otherwise in B, and evaluate it."""
        x = ModelValue.a(a) if rng.random() < self.weights[0] else ModelValue.b(b)
        return Sample(x, LikePrior(self.log_likelihood(x), self.log_prior(x)))

    def sampler(self):
        """Per-step transition step(current, rng) -> (Sample, accepted)."""
        return make_sampler(self.log_likelihood, self.log_prior, self.propose, self.log_jump_prob)


def run_rjmcmc(n: int, models: RJMCMCModels, start: Tuple[Any, Any], rng=None) -> Chain:
    """
    Run a reversible-jump chain.

    Args:
        n: Number of samples, including the start
        models: RJMCMCModels definition
        start: (a, b) candidate start values; one is chosen by a p_a coin flip
        rng: Generator, integer seed, or None

    Returns:
        Chain of ModelValue samples
    """
    rng = as_rng(rng)
    first = models.initial_state(start[0], start[1], rng)
    chain = run_chain_from(n, first, models.sampler(), rng, label="RJMCMC")
    log_model_summary(*model_counts(chain))
    return chain


def model_counts(samples) -> Tuple[int, int]:
    """Number of samples in model A and in model B."""
    n_a = n_b = 0
    for s in samples:
        if s.value.model == Model.A:
            n_a += 1
        else:
            n_b += 1
    return n_a, n_b


def model_probabilities(samples) -> Tuple[float, float]:
    """Posterior model probability estimates (fraction of samples per model)."""
    n_a, n_b = model_counts(samples)
    total = n_a + n_b
    if total == 0:
        raise ValueError("Cannot estimate model probabilities from an empty chain")
    return n_a / total, n_b / total


def bayes_factor(samples, models: RJMCMCModels) -> float:
    """
    Evidence ratio Z_A / Z_B estimated from model occupancy.

    Posterior odds n_a / n_b divided by prior odds p_a / p_b. Returns inf
    (or 0) when the chain never visited B (or A).
    """
    n_a, n_b = model_counts(samples)
    p_a, p_b = models.weights
    if n_b == 0:
        return math.inf if n_a > 0 else math.nan
    return (n_a / n_b) / (p_a / p_b)
