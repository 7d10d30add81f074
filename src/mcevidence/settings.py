"""
Run settings and their defaults.

Configuration is a plain dict with lowercase, underscore-separated keys so it
can be written to / read from JSON or YAML without any package objects.
clean_config() fills in defaults; error_handling.validate_config() checks the
values.

To add a new setting:
1. Add its default to CONFIG_DEFAULTS
2. Add a range check to validate_config() if it has one
3. Read it with config['new_setting'] after clean_config()
"""

from typing import Any, Dict


# Default values for each setting
CONFIG_DEFAULTS = {
    'rng_seed': None,             # None draws fresh OS entropy for every run
    'leaf_size': 64,              # Max samples per kD-tree cell in evidence integrals
    'lebesgue_eps': 0.1,          # Max inverse-likelihood gap in the Lebesgue prefix
    'newton_abs_tol': 1e-8,
    'newton_rel_tol': 1e-8,
    'newton_max_iter': None,      # None = iterate until converged
    'n_temperatures': 8,
    'beta_min': 1e-3,
    'swap_interval': 1,           # Transitions between tempering swap rounds
}


def clean_config(config: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Cleans the config dict and sets defaults.

    Args:
        config: Partial configuration, or None for all defaults. Not modified.

    Returns:
        New dict with every key in CONFIG_DEFAULTS present.
    """
    config = dict(config or {})
    for key, default in CONFIG_DEFAULTS.items():
        config.setdefault(key, default)
    return config
