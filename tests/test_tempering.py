"""
Tempering Tests

Tests parallel tempering and thermodynamic integration:
- temperature_ladder: geometric spacing, single temperature, validation
- attempt_swaps: DEO parity, swap acceptance, counts
- thermodynamic_integrate: exact on constant and linear <log L>
- run_parallel_tempering: untempered likelihoods, swap bookkeeping,
  log evidence of a Gaussian under a uniform prior

Run with: pytest tests/test_tempering.py -v
"""

import math

import numpy as np
import pytest

from mcevidence.mcmc import (
    attempt_swaps,
    run_parallel_tempering,
    tempered_log_evidence,
    temperature_ladder,
    thermodynamic_integrate,
)
from mcevidence.proposals import uniform_wrapping
from mcevidence.stats import log_gaussian


# ============================================================================
# HELPERS
# ============================================================================

def _gaussian_in_box():
    """N(0, 1) likelihood, uniform prior on [-10, 10]: log Z = log(1/20)."""
    log_prior_density = -math.log(20.0)

    def log_prior(x):
        return log_prior_density if -10.0 <= x <= 10.0 else -math.inf

    return (lambda x: log_gaussian(0.0, 1.0, x)), log_prior


# ============================================================================
# LADDER
# ============================================================================

class TestTemperatureLadder:
    """Geometric inverse-temperature ladders."""

    def test_geometric_spacing(self):
        betas = temperature_ladder(5, 0.01)
        assert len(betas) == 5
        assert betas[0] == pytest.approx(1.0)
        assert betas[-1] == pytest.approx(0.01)
        ratios = betas[1:] / betas[:-1]
        np.testing.assert_allclose(ratios, ratios[0])

    def test_single_temperature(self):
        np.testing.assert_array_equal(temperature_ladder(1, 0.1), [1.0])

    def test_invalid(self):
        with pytest.raises(ValueError, match="n_temperatures"):
            temperature_ladder(0, 0.1)
        with pytest.raises(ValueError, match="beta_min"):
            temperature_ladder(4, 0.0)
        with pytest.raises(ValueError, match="beta_min"):
            temperature_ladder(4, 1.5)


# ============================================================================
# SWAPS
# ============================================================================

class TestAttemptSwaps:
    """One DEO swap round."""

    @staticmethod
    def _states(make_sample, lls):
        return [make_sample(float(i), ll) for i, ll in enumerate(lls)]

    def test_even_parity_pairs(self, make_sample, rng):
        states = self._states(make_sample, [0.0] * 4)
        accepts, attempts = np.zeros(3, dtype=int), np.zeros(3, dtype=int)
        next_parity = attempt_swaps(states, [1.0, 0.5, 0.25, 0.125], 0, rng, accepts, attempts)
        assert next_parity == 1
        np.testing.assert_array_equal(attempts, [1, 0, 1])

    def test_odd_parity_pairs(self, make_sample, rng):
        states = self._states(make_sample, [0.0] * 4)
        accepts, attempts = np.zeros(3, dtype=int), np.zeros(3, dtype=int)
        next_parity = attempt_swaps(states, [1.0, 0.5, 0.25, 0.125], 1, rng, accepts, attempts)
        assert next_parity == 0
        np.testing.assert_array_equal(attempts, [0, 1, 0])

    def test_all_pairs_without_deo(self, make_sample, rng):
        states = self._states(make_sample, [0.0] * 4)
        accepts, attempts = np.zeros(3, dtype=int), np.zeros(3, dtype=int)
        attempt_swaps(states, [1.0, 0.5, 0.25, 0.125], 0, rng, accepts, attempts, use_deo=False)
        np.testing.assert_array_equal(attempts, [1, 1, 1])

    def test_hotter_better_state_always_swaps(self, make_sample, fixed_rng):
        """A higher likelihood in the hot chain gives log alpha > 0."""
        states = self._states(make_sample, [-5.0, -1.0])
        accepts, attempts = np.zeros(1, dtype=int), np.zeros(1, dtype=int)
        attempt_swaps(states, [1.0, 0.5], 0, fixed_rng(0.999), accepts, attempts)
        assert [s.value for s in states] == [1.0, 0.0]
        assert accepts[0] == 1

    def test_swap_acceptance_probability(self, make_sample, fixed_rng):
        """log alpha = (1 - 0.5) * (-3 - (-1)) = -1."""
        accepts, attempts = np.zeros(1, dtype=int), np.zeros(1, dtype=int)
        states = self._states(make_sample, [-1.0, -3.0])
        attempt_swaps(states, [1.0, 0.5], 0, fixed_rng(math.exp(-1.0) * 1.01), accepts, attempts)
        assert accepts[0] == 0
        attempt_swaps(states, [1.0, 0.5], 0, fixed_rng(math.exp(-1.0) * 0.99), accepts, attempts)
        assert accepts[0] == 1
        assert attempts[0] == 2

    def test_nan_likelihood_never_swaps(self, make_sample, fixed_rng):
        states = self._states(make_sample, [math.nan, 0.0])
        accepts, attempts = np.zeros(1, dtype=int), np.zeros(1, dtype=int)
        attempt_swaps(states, [1.0, 0.5], 0, fixed_rng(0.0), accepts, attempts)
        assert accepts[0] == 0


# ============================================================================
# THERMODYNAMIC INTEGRATION
# ============================================================================

class TestThermodynamicIntegration:
    """Trapezoid integration of <log L> over beta."""

    def test_constant_mean(self, make_sample):
        betas = temperature_ladder(6, 0.001)
        chains = [[make_sample(0.0, -2.5)] * 10 for _ in betas]
        assert thermodynamic_integrate(betas, chains) == pytest.approx(-2.5)

    def test_linear_mean_is_exact(self, make_sample):
        """<log L> = a + b beta: trapezoid plus the flat tail are exact."""
        a, b = -4.0, 3.0
        betas = np.array([1.0, 0.6, 0.3, 0.1])
        chains = [[make_sample(0.0, a + b * beta)] * 5 for beta in betas]
        beta_min = betas[-1]
        expected = beta_min * (a + b * beta_min) + (a * (1.0 - beta_min) + 0.5 * b * (1.0 - beta_min ** 2))
        assert thermodynamic_integrate(betas, chains) == pytest.approx(expected)

    def test_burn_in(self, make_sample):
        betas = [1.0, 0.5]
        chains = [[make_sample(0.0, -100.0)] + [make_sample(0.0, -1.0)] * 4 for _ in betas]
        assert thermodynamic_integrate(betas, chains, burn_in=1) == pytest.approx(-1.0)

    def test_length_mismatch(self, make_sample):
        with pytest.raises(ValueError, match="betas"):
            thermodynamic_integrate([1.0, 0.5], [[make_sample(0.0)]])


# ============================================================================
# FULL RUN
# ============================================================================

class TestParallelTempering:
    """Tempered runs of a 1-D Gaussian in a box."""

    def test_samples_keep_untempered_likelihood(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        run = run_parallel_tempering(300, 0.0, ll, lp, propose, ljp, [1.0, 0.3, 0.1], rng=3)

        assert len(run.chains) == 3
        for chain in run.chains:
            assert len(chain) == 300
            for s in chain[::10]:
                assert s.log_likelihood == pytest.approx(ll(s.value))

    def test_deo_swap_bookkeeping(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        n = 201
        run = run_parallel_tempering(n, 0.0, ll, lp, propose, ljp, [1.0, 0.5, 0.25, 0.125], rng=3)

        # Rounds alternate even/odd pairs starting with even
        np.testing.assert_array_equal(run.swap_attempts, [100, 100, 100])
        assert np.all(run.swap_accepts <= run.swap_attempts)
        assert np.all(run.swap_accepts > 0)

    def test_swap_interval(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        run = run_parallel_tempering(101, 0.0, ll, lp, propose, ljp, [1.0, 0.5], swap_interval=10, rng=3)
        assert run.swap_attempts[0] == 5

    def test_single_temperature_no_swaps(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        run = run_parallel_tempering(50, 0.0, ll, lp, propose, ljp, [1.0], rng=3)
        assert len(run.swap_attempts) == 0
        assert run.cold_chain is run.chains[0]

    def test_reproducible(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        a = run_parallel_tempering(100, 0.0, ll, lp, propose, ljp, [1.0, 0.5], rng=9)
        b = run_parallel_tempering(100, 0.0, ll, lp, propose, ljp, [1.0, 0.5], rng=9)
        assert a.cold_chain.values() == b.cold_chain.values()

    def test_invalid_betas(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        with pytest.raises(ValueError, match="betas"):
            run_parallel_tempering(10, 0.0, ll, lp, propose, ljp, [1.0, 0.0], rng=1)
        with pytest.raises(ValueError, match="swap_interval"):
            run_parallel_tempering(10, 0.0, ll, lp, propose, ljp, [1.0], swap_interval=0, rng=1)

    def test_thermodynamic_evidence(self):
        """log Z = log(1/20) for N(0, 1) under a uniform prior on [-10, 10]."""
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        betas = temperature_ladder(16, 1e-3)
        run = run_parallel_tempering(20000, 0.0, ll, lp, propose, ljp, betas, rng=42)

        cold = np.array(run.cold_chain.values()[2000:])
        assert np.std(cold) == pytest.approx(1.0, rel=0.1)
        log_z = thermodynamic_integrate(run.betas, run.chains, burn_in=2000)
        assert log_z == pytest.approx(math.log(1.0 / 20.0), abs=0.3)

    def test_tempered_log_evidence_from_config(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        config = {'n_temperatures': 4, 'beta_min': 0.01, 'swap_interval': 5, 'rng_seed': 7}
        log_z, run = tempered_log_evidence(101, 0.0, ll, lp, propose, ljp, config, burn_in=10)

        np.testing.assert_allclose(run.betas, temperature_ladder(4, 0.01))
        np.testing.assert_array_equal(run.swap_attempts, [10, 10, 10])
        assert log_z == pytest.approx(thermodynamic_integrate(run.betas, run.chains, burn_in=10))

        again, _ = tempered_log_evidence(101, 0.0, ll, lp, propose, ljp, config, burn_in=10)
        assert again == log_z

    def test_tempered_log_evidence_invalid_config(self):
        ll, lp = _gaussian_in_box()
        propose, ljp = uniform_wrapping(-10.0, 10.0, 2.0)
        with pytest.raises(ValueError, match="beta_min"):
            tempered_log_evidence(10, 0.0, ll, lp, propose, ljp, {'beta_min': 0.0})
