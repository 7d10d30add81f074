"""
JAX Configuration - MUST be imported before any JAX imports.

This module sets environment variables for JAX configuration including:
- 64-bit floats (log-likelihoods and evidence sums need double precision)
- XLA C++ log suppression
"""
import os

# --- PRECISION ---
# Must be set before JAX import; jax reads it once at startup
os.environ.setdefault("JAX_ENABLE_X64", "1")

# Suppress CUDA/XLA C++ warnings (GPU interconnect, NUMA, cuDNN factories)
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

import jax  # noqa: E402

# Covers the case where jax was already imported by the caller
jax.config.update("jax_enable_x64", True)
