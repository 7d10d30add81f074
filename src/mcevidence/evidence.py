"""
Evidence (marginal likelihood) estimates from a finished chain.

Three estimators of Z = integral L(x) p(x) dx:

- evidence_harmonic_mean: n / sum(1 / L_i). Cheap and notoriously
  unstable; included for comparison.
- evidence_direct: Riemann sum of the posterior density over the region
  the samples occupy. The samples are partitioned by a kD-tree and every
  cell contributes volume * mean(exp(ll + lp)).
- evidence_lebesgue: 1/Z is the posterior mean of 1/L restricted to the
  high-likelihood region; the prior mass of that region comes from the
  same kD-tree decomposition with the cell's median prior density.

Samples only need .log_likelihood, .log_prior and .value; to_coords maps a
value to a fixed-length float vector for the tree.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import jax.numpy as jnp
import numpy as np
from jax.scipy.special import logsumexp

from .error_handling import InternalError, validate_config
from .kd_tree import Cell, bounds_of_coords, bounds_volume, collect_subvolumes, tree_of_objects
from .settings import clean_config

logger = logging.getLogger('mcevidence')


def _log_likelihoods(samples) -> np.ndarray:
    return np.array([s.log_likelihood for s in samples], dtype=float)


def _coords_of_samples(samples, to_coords: Callable) -> np.ndarray:
    return np.array([np.atleast_1d(np.asarray(to_coords(s.value), dtype=float)) for s in samples],
                    dtype=float)


def _require_samples(samples, name):
    samples = list(samples)
    if not samples:
        raise ValueError(f"{name}: need at least one sample")
    return samples


# ============================================================================
# HARMONIC MEAN
# ============================================================================

def evidence_harmonic_mean(samples) -> float:
    """
    Harmonic-mean evidence estimate n / sum(1 / L_i).

    Evaluated as log n - logsumexp(-ll) so very small likelihoods do not
    overflow 1/L.
    """
    samples = _require_samples(samples, "evidence_harmonic_mean")
    ll = jnp.asarray(_log_likelihoods(samples))
    log_z = jnp.log(ll.shape[0]) - logsumexp(-ll)
    return float(jnp.exp(log_z))


# ============================================================================
# TREE CONSTRUCTION
# ============================================================================

def remove_duplicate_samples(samples, to_coords: Callable) -> List[Any]:
    """
    Drop samples whose coordinates exactly repeat an earlier sample's.

    Rows are sorted lexicographically and adjacent repeats removed; the
    first occurrence of each coordinate vector is kept, in chain order.
    """
    samples = list(samples)
    if not samples:
        return []
    coords = _coords_of_samples(samples, to_coords)
    _, first = np.unique(coords, axis=0, return_index=True)
    return [samples[i] for i in np.sort(first)]


def kd_tree_of_samples(samples, to_coords: Callable, low=None, high=None,
                       leaf_size: int = 1) -> Optional[Cell]:
    """
    kD-tree over duplicate-free samples.

    Args:
        samples: Samples with distinct coordinates
        to_coords: fn(value) -> coordinate vector
        low: Lower corner of the root box (default: tight bounds)
        high: Upper corner of the root box (default: tight bounds)
        leaf_size: Maximum objects in an unsplit cell

    Returns:
        Root Cell, or None for no samples
    """
    samples = list(samples)
    if not samples:
        return None
    if low is None or high is None:
        tight_low, tight_high = bounds_of_coords(_coords_of_samples(samples, to_coords))
        low = tight_low if low is None else low
        high = tight_high if high is None else high
    return tree_of_objects(samples, low, high, lambda s: to_coords(s.value), leaf_size)


def _leaf_cells(tree, n, name) -> List[Cell]:
    cells = collect_subvolumes(n, tree)
    for cell in cells:
        if not isinstance(cell, Cell):
            raise InternalError(f"{name}: bad cell in integral accumulation: {cell!r}")
    return cells


def _tight_volume(cell: Cell) -> float:
    low, high = bounds_of_coords(cell.coords)
    return bounds_volume(low, high)


# ============================================================================
# DIRECT VOLUME
# ============================================================================

def evidence_direct_tree(tree: Optional[Cell], n: int = 64) -> float:
    """
    Sum of volume * mean posterior density over cells of at most n samples.

    Each cell's volume is the tight box of its own samples, so empty space
    between cells is not counted.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    total = 0.0
    for cell in _leaf_cells(tree, n, "evidence_direct"):
        log_post = jnp.asarray([s.log_likelihood + s.log_prior for s in cell.objects])
        mean_post = jnp.exp(logsumexp(log_post) - jnp.log(log_post.shape[0]))
        total += _tight_volume(cell) * float(mean_post)
    return total


def evidence_direct(samples, to_coords: Callable, n: int = 64) -> float:
    """
    Direct evidence integral over the region enclosed by the samples.

    Args:
        samples: Chain or sequence of samples
        to_coords: fn(value) -> coordinate vector
        n: Maximum samples per integration cell

    Returns:
        Evidence estimate
    """
    samples = _require_samples(samples, "evidence_direct")
    unique = remove_duplicate_samples(samples, to_coords)
    logger.debug(f"evidence_direct: {len(unique)} distinct of {len(samples)} samples")
    tree = kd_tree_of_samples(unique, to_coords, leaf_size=n)
    return evidence_direct_tree(tree, n)


# ============================================================================
# TRUNCATED LEBESGUE
# ============================================================================

def collect_samples_up_to_eps(samples, eps: float) -> List[Any]:
    """
    Highest-likelihood samples up to the first large inverse-likelihood gap.

    Samples are sorted by decreasing log-likelihood (ties keep chain
    order). The prefix ends at the first pair of neighbours whose 1/L
    values differ by more than eps; the earlier of the pair is kept.
    """
    samples = list(samples)
    if not samples:
        return []
    ll = _log_likelihoods(samples)
    order = np.argsort(-ll, kind='stable')
    inv_like = np.exp(-ll[order])
    gaps = np.diff(inv_like)
    large = np.flatnonzero(gaps > eps)
    stop = large[0] + 1 if large.size else len(samples)
    return [samples[i] for i in order[:stop]]


def mean_inverse_likelihood(samples) -> float:
    """Mean of 1/L over samples."""
    ll = jnp.asarray(_log_likelihoods(samples))
    return float(jnp.exp(logsumexp(-ll) - jnp.log(ll.shape[0])))


def _remove_duplicate_likelihoods(samples, to_coords):
    # Equal log-likelihoods at distinct points are distinct samples
    ll = _log_likelihoods(samples)[:, None]
    keys = np.hstack([ll, _coords_of_samples(samples, to_coords)])
    _, first = np.unique(keys, axis=0, return_index=True)
    return [samples[i] for i in np.sort(first)]


def evidence_lebesgue(samples, to_coords: Callable, n: int = 64, eps: float = 0.1) -> float:
    """
    Truncated Lebesgue evidence estimate.

    Over the high-likelihood prefix (collect_samples_up_to_eps),
    1/Z ~ mean(1/L) / prior_mass, where prior_mass sums
    volume * exp(median lp) over kD-tree cells of at most n samples.

    Args:
        samples: Chain or sequence of samples
        to_coords: fn(value) -> coordinate vector
        n: Maximum samples per integration cell
        eps: Largest 1/L gap allowed inside the prefix

    Returns:
        Evidence estimate
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if not eps > 0:
        raise ValueError(f"eps must be > 0, got {eps}")
    samples = _require_samples(samples, "evidence_lebesgue")

    prefix = collect_samples_up_to_eps(samples, eps)
    mean_il = mean_inverse_likelihood(prefix)
    prefix = _remove_duplicate_likelihoods(prefix, to_coords)
    logger.debug(f"evidence_lebesgue: prefix of {len(prefix)} distinct samples, mean 1/L = {mean_il:.6g}")

    tree = kd_tree_of_samples(prefix, to_coords, leaf_size=n)
    prior_mass = 0.0
    for cell in _leaf_cells(tree, n, "evidence_lebesgue"):
        median_lp = jnp.median(jnp.asarray([s.log_prior for s in cell.objects]))
        prior_mass += _tight_volume(cell) * float(jnp.exp(median_lp))
    return prior_mass / mean_il


# ============================================================================
# SUMMARY
# ============================================================================

def estimate_evidence(samples: Sequence[Any], to_coords: Callable,
                      config: Dict[str, Any] = None) -> Dict[str, float]:
    """
    Run all three estimators on one chain and log a summary.

    Args:
        samples: Chain or sequence of samples
        to_coords: fn(value) -> coordinate vector
        config: Settings dict; uses 'leaf_size' and 'lebesgue_eps'

    Returns:
        {'harmonic_mean': ..., 'direct': ..., 'lebesgue': ...}
    """
    config = clean_config(config)
    validate_config(config)
    samples = _require_samples(samples, "estimate_evidence")
    n = config['leaf_size']

    results = {
        'harmonic_mean': evidence_harmonic_mean(samples),
        'direct': evidence_direct(samples, to_coords, n),
        'lebesgue': evidence_lebesgue(samples, to_coords, n, config['lebesgue_eps']),
    }

    logger.info(f"Evidence from {len(samples)} samples (cells of <= {n}):")
    for name, value in results.items():
        logger.info(f"  {name:>13}: {value:.6g}")
    return results
