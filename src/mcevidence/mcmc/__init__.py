"""
MCMC Subpackage - Core MCMC sampling implementation.

This package contains the core MCMC sampling logic:
- types: Core data structures (Sample, Chain, Counters, ModelValue, ...)
- config: Per-chain random streams from a single seed
- sampling: Metropolis-Hastings transition
- chain: Chain driver and repeat removal
- rjmcmc: Reversible-jump sampler over two models
- admixture: Continuous model-averaging sampler
- tempering: Parallel tempering and thermodynamic integration
- diagnostics: Run summaries on the 'mcevidence' logger
"""

# Import types first (needed by other modules)
from .types import (
    LikePrior,
    Sample,
    Counters,
    Chain,
    Model,
    ModelValue,
    AdmixtureValue,
)

from .config import gen_rng_keys, make_rng, make_chain_rngs, as_rng
from .sampling import evaluate, accept_log_uniform, metropolis_step, make_sampler
from .chain import run_chain, run_chain_from, remove_repeat_samples, values_equal
from .rjmcmc import (
    RJMCMCModels,
    run_rjmcmc,
    model_counts,
    model_probabilities,
    bayes_factor,
    validate_model_weights,
)
from .admixture import AdmixtureModels, run_admixture, log_sum_exp
from .tempering import (
    TemperedRun,
    temperature_ladder,
    attempt_swaps,
    run_parallel_tempering,
    thermodynamic_integrate,
    tempered_log_evidence,
)

__all__ = [
    # Types
    'LikePrior',
    'Sample',
    'Counters',
    'Chain',
    'Model',
    'ModelValue',
    'AdmixtureValue',
    # Random streams
    'gen_rng_keys',
    'make_rng',
    'make_chain_rngs',
    'as_rng',
    # Transition + driver
    'evaluate',
    'accept_log_uniform',
    'metropolis_step',
    'make_sampler',
    'run_chain',
    'run_chain_from',
    'remove_repeat_samples',
    'values_equal',
    # RJMCMC
    'RJMCMCModels',
    'run_rjmcmc',
    'model_counts',
    'model_probabilities',
    'bayes_factor',
    'validate_model_weights',
    # Admixture
    'AdmixtureModels',
    'run_admixture',
    'log_sum_exp',
    # Tempering
    'TemperedRun',
    'temperature_ladder',
    'attempt_swaps',
    'run_parallel_tempering',
    'thermodynamic_integrate',
    'tempered_log_evidence',
]
