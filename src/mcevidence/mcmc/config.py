"""
Random stream configuration.

Every chain owns its own numpy Generator. Generators are seeded from JAX
PRNG keys split off a single master seed, so a run is reproducible from one
integer and independent chains get independent streams:
- gen_rng_keys: Split a seed into per-chain JAX keys
- make_rng: One Generator from a seed
- make_chain_rngs: One Generator per chain from a single seed
- as_rng: Normalise a seed / Generator / None argument
"""

from typing import Any, List, Optional, Union

import jax
import jax.random as random
import numpy as np

RngLike = Optional[Union[int, np.random.Generator]]


def gen_rng_keys(rng_seed: int, num_keys: int = 1) -> Any:
    """Generate num_keys JAX random keys from seed.

    Returns:
        Array of shape (num_keys, 2) of uint32 key data
    """
    mkey = jax.random.PRNGKey(rng_seed)
    return random.split(mkey, num_keys)


def _rng_from_key(key) -> np.random.Generator:
    return np.random.default_rng(np.asarray(key, dtype=np.uint32).tolist())


def make_rng(rng_seed: Optional[int] = None) -> np.random.Generator:
    """Generator for a single chain; None seeds from OS entropy."""
    if rng_seed is None:
        return np.random.default_rng()
    return _rng_from_key(gen_rng_keys(rng_seed, 1)[0])


def make_chain_rngs(rng_seed: Optional[int], num_chains: int) -> List[np.random.Generator]:
    """
    Independent Generators for num_chains chains.

    Args:
        rng_seed: Master seed, or None for OS entropy
        num_chains: Number of generators

    Returns:
        List of num_chains Generators
    """
    if num_chains < 1:
        raise ValueError(f"num_chains must be >= 1, got {num_chains}")
    if rng_seed is None:
        return [np.random.default_rng(s) for s in np.random.SeedSequence().spawn(num_chains)]
    return [_rng_from_key(k) for k in gen_rng_keys(rng_seed, num_chains)]


def as_rng(rng: RngLike) -> np.random.Generator:
    """Pass Generators through, turn ints and None into a fresh Generator."""
    if isinstance(rng, np.random.Generator):
        return rng
    return make_rng(rng)
