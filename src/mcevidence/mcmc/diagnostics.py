"""
MCMC Diagnostics - run summaries on the 'mcevidence' logger.

- log_acceptance_summary: Acceptance rate of one chain
- log_model_summary: Posterior model frequencies of an RJMCMC chain
- log_swap_acceptance_summary: Per-pair swap rates of a tempered run
"""

import logging
from datetime import timedelta

import numpy as np

logger = logging.getLogger('mcevidence')

LOW_ACCEPTANCE = 0.10


def log_acceptance_summary(label, counters, wall_time=None) -> None:
    """
    Log the acceptance rate of one chain, warning when it is below 10%.

    Args:
        label: Chain name for the log line
        counters: Counters of the run
        wall_time: Seconds spent, if known
    """
    if counters.total == 0:
        return
    msg = (f"--- {label} Run Summary --- {counters.total} transitions, "
           f"acceptance {counters.acceptance_rate:.1%}")
    if wall_time is not None:
        msg += f", wall time {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)"
    logger.info(msg)

    if counters.acceptance_rate < LOW_ACCEPTANCE:
        logger.warning(f"  WARNING: {label} acceptance rate {counters.acceptance_rate:.1%} is below "
                       f"{LOW_ACCEPTANCE:.0%}; consider a narrower proposal")


def log_model_summary(count_a: int, count_b: int) -> None:
    """Log how often an RJMCMC chain visited each model."""
    total = count_a + count_b
    if total == 0:
        return
    logger.info(f"--- Model Occupancy --- A: {count_a} ({count_a / total:.1%})  "
                f"B: {count_b} ({count_b / total:.1%})")
    if count_a == 0 or count_b == 0:
        logger.warning("  WARNING: chain never visited one of the models; "
                       "model probabilities are not resolved")


def log_swap_acceptance_summary(betas, swap_accepts, swap_attempts) -> None:
    """
    Log parallel tempering swap acceptance rates per adjacent pair.

    Args:
        betas: Inverse temperatures (n_temperatures,)
        swap_accepts: Accepted swaps per adjacent pair (n_temperatures - 1,)
        swap_attempts: Attempted swaps per adjacent pair (n_temperatures - 1,)
    """
    betas = np.asarray(betas)
    swap_accepts = np.asarray(swap_accepts)
    swap_attempts = np.asarray(swap_attempts)
    if len(betas) < 2:
        return

    rates = np.where(swap_attempts > 0, swap_accepts / np.maximum(swap_attempts, 1), np.nan)
    logger.info(f"--- Swap Acceptance Rates ({len(rates)} pairs) ---")
    for i, rate in enumerate(rates):
        logger.info(f"  beta {betas[i]:.4g} <-> {betas[i + 1]:.4g}: "
                    f"{rate:.1%} ({int(swap_accepts[i])}/{int(swap_attempts[i])})")

    low = np.nan_to_num(rates, nan=1.0) < 0.05
    if np.any(low):
        logger.warning(f"  WARNING: {int(np.sum(low))} pair(s) swap less than 5% of the time; "
                       "add temperatures between them")
