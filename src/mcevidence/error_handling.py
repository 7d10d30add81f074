"""
Error Handling and Validation Utilities

This module provides the package exception for broken internal invariants,
configuration validation, and diagnostic tools for finished chains.
"""

from typing import Any, Dict

import numpy as np

import logging
logger = logging.getLogger('mcevidence')


class InternalError(RuntimeError):
    """An invariant that the package itself guarantees did not hold.

    Raised for programming errors (a proposal mixture whose cumulative
    weights never exceed the uniform draw, a kD-tree node missing where a
    cell must exist). Never raised for bad user input; that is ValueError.
    """


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validates that a run configuration is sensible.

    Args:
        config: Configuration dictionary (usually after clean_config)

    Raises:
        ValueError: If configuration is invalid
    """
    errors = []

    if 'rng_seed' in config and config['rng_seed'] is not None:
        if not isinstance(config['rng_seed'], (int, np.integer)) or config['rng_seed'] < 0:
            errors.append(f"rng_seed must be a non-negative integer or None, got {config['rng_seed']!r}")

    if 'leaf_size' in config:
        if config['leaf_size'] < 1:
            errors.append("leaf_size must be >= 1")

    if 'lebesgue_eps' in config:
        if not config['lebesgue_eps'] > 0:
            errors.append("lebesgue_eps must be > 0")

    for key in ('newton_abs_tol', 'newton_rel_tol'):
        if key in config and config[key] < 0:
            errors.append(f"{key} must be >= 0")

    if config.get('newton_abs_tol', 1.0) == 0 and config.get('newton_rel_tol', 1.0) == 0:
        errors.append("newton_abs_tol and newton_rel_tol cannot both be 0")

    if config.get('newton_max_iter') is not None:
        if config['newton_max_iter'] < 1:
            errors.append("newton_max_iter must be >= 1 or None")

    # Parallel tempering validation
    if 'n_temperatures' in config:
        if config['n_temperatures'] < 1:
            errors.append("n_temperatures must be >= 1")

    if 'beta_min' in config:
        beta = config['beta_min']
        if beta <= 0 or beta > 1:
            errors.append(f"beta_min must be in (0, 1], got {beta}")

    if 'swap_interval' in config:
        if config['swap_interval'] < 1:
            errors.append("swap_interval must be >= 1")

    if errors:
        raise ValueError("Invalid configuration:\n  " + "\n  ".join(errors))


def diagnose_chain(chain, diagnostics: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Analyzes a finished chain to identify common issues.

    Args:
        chain: Chain (or sequence of Samples)
        diagnostics: Existing diagnostics dict to extend; its entries are
            kept and the caller's dict is not modified

    Returns:
        diagnostics: Dictionary with issues, warnings, and info
    """
    diagnostics = dict(diagnostics or {})
    for key in ('issues', 'warnings', 'info'):
        diagnostics[key] = list(diagnostics.get(key, []))

    log_post = np.array([s.log_posterior for s in chain], dtype=float)

    # NaN anywhere means a likelihood or prior misbehaved
    if np.any(np.isnan(log_post)):
        diagnostics['issues'].append(
            "Chain contains NaN log posterior values - likelihood or prior returned NaN"
        )
    elif not np.all(np.isfinite(log_post)):
        diagnostics['issues'].append(
            "Chain contains infinite log posterior values - start outside the support?"
        )

    counters = getattr(chain, 'counters', None)
    if counters is not None and counters.total > 0:
        if counters.accepted == 0:
            diagnostics['warnings'].append(
                f"Chain appears stuck (0 of {counters.total} proposals accepted)"
            )
        elif counters.acceptance_rate < 0.10:
            diagnostics['warnings'].append(
                f"Low acceptance rate ({counters.acceptance_rate:.1%})"
            )
        diagnostics['info'].append(f"Acceptance rate: {counters.acceptance_rate:.1%}")

    # Summary info
    diagnostics['info'].append(f"Total samples: {len(log_post)}")

    return diagnostics


def print_diagnostics(diagnostics: Dict[str, Any]) -> None:
    """Log diagnostics from diagnose_chain."""
    if diagnostics['issues']:
        logger.error("[ERROR] ISSUES:")
        for issue in diagnostics['issues']:
            logger.error(f"  - {issue}")

    if diagnostics['warnings']:
        logger.warning("[WARN] WARNINGS:")
        for warning in diagnostics['warnings']:
            logger.warning(f"  - {warning}")

    if diagnostics['info']:
        logger.info("[INFO] INFO:")
        for info in diagnostics['info']:
            logger.info(f"  - {info}")

    if not diagnostics['issues'] and not diagnostics['warnings']:
        logger.info("[OK] No issues detected")
