"""
mcevidence - MCMC sampling, model selection and Bayesian evidence

Public API:
    Sampling:
        run_chain - Metropolis-Hastings chain over any state type
        make_sampler - Per-step transition for custom drivers
        remove_repeat_samples - Collapse runs of rejected transitions
        Sample, LikePrior, Chain, Counters - Chain data structures

    Model selection:
        RJMCMCModels, run_rjmcmc - Reversible jump between two models
        model_probabilities, bayes_factor - Summaries of an RJMCMC chain
        AdmixtureModels, run_admixture - Continuous mixture of two models
        max_like_admixture_ratio - ML evidence ratio from an admixture chain
        max_posterior_admixture_ratio - MAP evidence ratio
        fit_admixture_ratio - Both ratios with Newton settings from a config

    Tempering:
        temperature_ladder, run_parallel_tempering - Swapping tempered chains
        thermodynamic_integrate - Log evidence from a tempered run
        tempered_log_evidence - Both, set up from a config dict

    Evidence:
        evidence_harmonic_mean, evidence_direct, evidence_lebesgue
        estimate_evidence - All three with a logged summary

    Proposals (mcevidence.proposals):
        gaussian_random_walk, uniform_wrapping, gaussian_pseudo_prior,
        combine_proposals, ...

    Configuration:
        clean_config - Fill in defaults
        validate_config - Raise ValueError listing every bad setting
        InternalError - Broken internal invariant

Example:
    from mcevidence import run_chain, estimate_evidence
    from mcevidence.proposals import gaussian_random_walk

    propose, log_jump_prob = gaussian_random_walk(0.5)
    chain = run_chain(100000, 0.0, log_likelihood, log_prior, propose, log_jump_prob, rng=42)
    print(estimate_evidence(chain, lambda x: [x]))
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

from .mcmc import (
    LikePrior,
    Sample,
    Counters,
    Chain,
    Model,
    ModelValue,
    AdmixtureValue,
    make_rng,
    make_chain_rngs,
    run_chain,
    make_sampler,
    remove_repeat_samples,
    RJMCMCModels,
    run_rjmcmc,
    model_probabilities,
    bayes_factor,
    AdmixtureModels,
    run_admixture,
    TemperedRun,
    temperature_ladder,
    run_parallel_tempering,
    thermodynamic_integrate,
    tempered_log_evidence,
)
from .root_finding import (
    newton_nonnegative,
    max_like_admixture_ratio,
    max_posterior_admixture_ratio,
    fit_admixture_ratio,
)
from .evidence import (
    evidence_harmonic_mean,
    evidence_direct,
    evidence_direct_tree,
    evidence_lebesgue,
    estimate_evidence,
    kd_tree_of_samples,
)
from .settings import clean_config, CONFIG_DEFAULTS
from .error_handling import InternalError, validate_config, diagnose_chain, print_diagnostics

__all__ = [
    # Sampling
    'LikePrior',
    'Sample',
    'Counters',
    'Chain',
    'Model',
    'ModelValue',
    'AdmixtureValue',
    'make_rng',
    'make_chain_rngs',
    'run_chain',
    'make_sampler',
    'remove_repeat_samples',
    # Model selection
    'RJMCMCModels',
    'run_rjmcmc',
    'model_probabilities',
    'bayes_factor',
    'AdmixtureModels',
    'run_admixture',
    'newton_nonnegative',
    'max_like_admixture_ratio',
    'max_posterior_admixture_ratio',
    'fit_admixture_ratio',
    # Tempering
    'TemperedRun',
    'temperature_ladder',
    'run_parallel_tempering',
    'thermodynamic_integrate',
    'tempered_log_evidence',
    # Evidence
    'evidence_harmonic_mean',
    'evidence_direct',
    'evidence_direct_tree',
    'evidence_lebesgue',
    'estimate_evidence',
    'kd_tree_of_samples',
    # Configuration
    'clean_config',
    'CONFIG_DEFAULTS',
    'validate_config',
    'InternalError',
    'diagnose_chain',
    'print_diagnostics',
]
