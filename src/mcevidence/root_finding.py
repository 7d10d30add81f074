"""
Constrained Newton-Raphson and admixture ratio fits.

The admixture sampler (mcmc/admixture.py) leaves lam with marginal density

    p(lam | r) = 2 (r lam + 1 - lam) / (r + 1),   0 <= lam <= 1

where r = (p_a Z_a) / (p_b Z_b). Treating the chain's lam values as draws
from p(lam | r), the mean log-likelihood in r has derivatives

    d/dr   = mean(q) - 1/(r+1)
    d2/dr2 = 1/(r+1)^2 - mean(q^2),       q = lam / (r lam + 1 - lam)

and admixture_log_likelihood_derivatives returns their negatives
(dll, ddll), a convex-problem form whose Newton step is the same. Since
E[lam] = (2r + 1) / (3 (r + 1)), the chain mean gives a closed-form start
that also detects the r = 0 and r = inf boundaries.
"""

import logging
import math

import jax.numpy as jnp
import numpy as np

from .error_handling import validate_config
from .mcmc.types import AdmixtureValue
from .settings import clean_config

logger = logging.getLogger('mcevidence')


def newton_nonnegative(abs_tol, rel_tol, f_and_derivative, x0, max_iter=None):
    """
    Newton-Raphson on [0, inf).

    Iterates x' = x - f(x)/f'(x) until
        |x' - x| < abs_tol + 0.5 * rel_tol * (x + |x'|).

    Args:
        abs_tol: Absolute tolerance
        rel_tol: Relative tolerance
        f_and_derivative: fn(x) -> (f(x), f'(x))
        x0: Starting point, >= 0
        max_iter: Iteration cap, or None for no cap

    Returns:
        The converged iterate x'

    Raises:
        ValueError: If x0 or any iterate is negative (or NaN)
        RuntimeError: If max_iter is set and exceeded
    """
    x = x0
    n_iter = 0
    while True:
        if not x >= 0:
            raise ValueError(f"newton_nonnegative: iterate must be >= 0, got {x}")
        if max_iter is not None and n_iter >= max_iter:
            raise RuntimeError(f"newton_nonnegative: no convergence after {max_iter} iterations (x = {x})")
        f, df = f_and_derivative(x)
        x_new = x - f / df
        n_iter += 1
        if abs(x_new - x) < abs_tol + 0.5 * rel_tol * (x + abs(x_new)):
            if not x_new >= 0:
                raise ValueError(f"newton_nonnegative: iterate must be >= 0, got {x_new}")
            logger.debug(f"newton_nonnegative converged to {x_new} in {n_iter} iterations")
            return x_new
        x = x_new


# ============================================================================
# ADMIXTURE RATIO
# ============================================================================

def admixture_lambdas(samples) -> np.ndarray:
    """The lam coordinate of every sample of an admixture chain, as an array."""
    lams = []
    for s in samples:
        value = getattr(s, 'value', s)
        lams.append(value.lam if isinstance(value, AdmixtureValue) else value[0])
    return np.asarray(lams, dtype=float)


def admixture_log_likelihood_derivatives(r, lambdas):
    """
    Negated first and second derivatives of the mean lam log-likelihood at r.

    Returns:
        (dll, ddll) with dll = 1/(r+1) - mean(q), ddll = mean(q^2) - 1/(r+1)^2
    """
    lam = jnp.asarray(lambdas)
    q = lam / (r * lam + 1.0 - lam)
    inv = 1.0 / (r + 1.0)
    dll = inv - jnp.mean(q)
    ddll = jnp.mean(q * q) - inv * inv
    return float(dll), float(ddll)


def mean_lambda_ratio(lambdas) -> float:
    """
    Method-of-moments admixture ratio from the chain's mean lam.

    Inverts E[lam] = (2r + 1) / (3 (r + 1)). A mean at or below 1/3 means
    r = 0 (all weight on B), at or above 2/3 means r = inf.
    """
    m = float(jnp.mean(jnp.asarray(lambdas)))
    if m <= 1.0 / 3.0:
        return 0.0
    if m >= 2.0 / 3.0:
        return math.inf
    return (3.0 * m - 1.0) / (2.0 - 3.0 * m)


def max_like_admixture_ratio(samples, abs_tol=1e-8, rel_tol=1e-8, max_iter=None) -> float:
    """
    Maximum-likelihood admixture ratio r from an admixture chain.

    Args:
        samples: Admixture chain, sample sequence, or array of lam values
        abs_tol: Newton absolute tolerance
        rel_tol: Newton relative tolerance
        max_iter: Newton iteration cap, or None

    Returns:
        r in [0, inf]
    """
    lambdas = _as_lambdas(samples)
    r0 = mean_lambda_ratio(lambdas)
    if r0 == 0.0 or math.isinf(r0):
        return r0
    return newton_nonnegative(
        abs_tol, rel_tol,
        lambda r: admixture_log_likelihood_derivatives(r, lambdas),
        r0, max_iter,
    )


def default_log_prior_derivatives(r):
    """
    Derivatives of log p(r) for p flat on [0, 1] and proportional to 1/r^2 above.

    This prior treats r and 1/r alike.

    Returns:
        (d log p / dr, d^2 log p / dr^2)
    """
    if r <= 1.0:
        return 0.0, 0.0
    return -2.0 / r, 2.0 / (r * r)


def max_posterior_admixture_ratio(samples, abs_tol=1e-8, rel_tol=1e-8,
                                  log_prior_derivatives=default_log_prior_derivatives,
                                  max_iter=None) -> float:
    """
    Maximum-a-posteriori admixture ratio r.

    The total log-likelihood of n lam values is n times the mean, so the
    Newton function is
        f(r)  = n * dll(r)  - d log p / dr
        f'(r) = n * ddll(r) - d^2 log p / dr^2

    Args:
        samples: Admixture chain, sample sequence, or array of lam values
        abs_tol: Newton absolute tolerance
        rel_tol: Newton relative tolerance
        log_prior_derivatives: fn(r) -> (d log p/dr, d^2 log p/dr^2)
        max_iter: Newton iteration cap, or None

    Returns:
        r in [0, inf]
    """
    lambdas = _as_lambdas(samples)
    n = len(lambdas)
    r0 = mean_lambda_ratio(lambdas)
    if r0 == 0.0 or math.isinf(r0):
        return r0

    def f_and_derivative(r):
        dll, ddll = admixture_log_likelihood_derivatives(r, lambdas)
        dlp, ddlp = log_prior_derivatives(r)
        return n * dll - dlp, n * ddll - ddlp

    return newton_nonnegative(abs_tol, rel_tol, f_and_derivative, r0, max_iter)


def _as_lambdas(samples) -> np.ndarray:
    if isinstance(samples, (np.ndarray, jnp.ndarray)):
        lambdas = np.asarray(samples, dtype=float)
    else:
        lambdas = admixture_lambdas(samples)
    if lambdas.size == 0:
        raise ValueError("Cannot fit an admixture ratio to an empty chain")
    return lambdas


def fit_admixture_ratio(samples, config=None):
    """
    ML and MAP admixture ratios with Newton settings taken from a config dict.

    Args:
        samples: Admixture chain, sample sequence, or array of lam values
        config: Settings dict; uses 'newton_abs_tol', 'newton_rel_tol'
            and 'newton_max_iter'

    Returns:
        {'max_like': r_ml, 'max_posterior': r_map}
    """
    config = clean_config(config)
    validate_config(config)
    lambdas = _as_lambdas(samples)
    tols = (config['newton_abs_tol'], config['newton_rel_tol'])
    max_iter = config['newton_max_iter']

    ratios = {
        'max_like': max_like_admixture_ratio(lambdas, *tols, max_iter=max_iter),
        'max_posterior': max_posterior_admixture_ratio(lambdas, *tols, max_iter=max_iter),
    }
    logger.info(f"Admixture ratio from {len(lambdas)} samples: "
                f"ML {ratios['max_like']:.6g}, MAP {ratios['max_posterior']:.6g}")
    return ratios
