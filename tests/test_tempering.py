"""
Tempering Tests - Temperature ladder and replica exchange

Tests:
- build_temperature_ladder: geometric spacing, endpoints, single chain
- swap_log_ratio: exact closed form on known scalars
- attempt_replica_swap: forced accept/reject, cache re-evaluation,
  per-pair counts, uniform pair selection

Run with: pytest tests/test_tempering.py -v
"""

import numpy as np
import jax
import jax.numpy as jnp
import jax.random as random
import pytest

from copmcmc.mcmc.chain import init_chain_states, set_chain_params
from copmcmc.mcmc.tempering import build_temperature_ladder, swap_log_ratio, attempt_replica_swap
from copmcmc.mcmc.types import Priors, RunParams
from copmcmc.model import log_posterior_tempered


# ============================================================================
# LADDER
# ============================================================================

class TestTemperatureLadder:
    def test_single_chain(self):
        np.testing.assert_array_equal(np.asarray(build_temperature_ladder(1, 10.0)), [1.0])

    @pytest.mark.parametrize("n,max_t", [(2, 10.0), (10, 10.0), (15, 50.0)])
    def test_geometric(self, n, max_t):
        ladder = np.asarray(build_temperature_ladder(n, max_t, dtype=jnp.float64))
        assert ladder.shape == (n,)
        np.testing.assert_allclose(ladder[0], 1.0)
        np.testing.assert_allclose(ladder[-1], max_t, rtol=1e-12)
        assert np.all(np.diff(ladder) > 0)
        np.testing.assert_allclose(ladder[1:] / ladder[:-1], max_t ** (1.0 / (n - 1)), rtol=1e-12)

    def test_formula(self):
        ladder = np.asarray(build_temperature_ladder(5, 16.0, dtype=jnp.float64))
        np.testing.assert_allclose(ladder, [16.0 ** (i / 4) for i in range(5)], rtol=1e-14)


# ============================================================================
# SWAP RATIO
# ============================================================================

class TestSwapLogRatio:
    @pytest.mark.parametrize("lp_i,lp_j,t_i,t_j", [
        (-10.0, -12.0, 1.0, 2.0),
        (-50.5, -20.25, 1.0, 1.5),
        (3.0, 3.0, 2.0, 4.0),
        (-1.0, 7.5, 1.2915496650148839, 1.6681005372000588),
    ])
    def test_closed_form(self, lp_i, lp_j, t_i, t_j):
        expected = (lp_i - lp_j) * (1.0 / t_j - 1.0 / t_i)
        assert float(swap_log_ratio(lp_i, lp_j, t_i, t_j)) == expected

    def test_known_value(self):
        assert float(swap_log_ratio(-10.0, -12.0, 1.0, 2.0)) == -1.0


# ============================================================================
# REPLICA EXCHANGE
# ============================================================================

GOOD = jnp.array([0.05, 0.9, 1.5, 2.0])
BAD = jnp.array([0.5, 0.5, -8.0, 15.0])


def _two_chain_states(data, cold_params, hot_params):
    ladder = build_temperature_ladder(2, 2.0, dtype=jnp.float64)
    states = init_chain_states(random.PRNGKey(0), ladder, data, Priors(), RunParams())
    states = set_chain_params(states, 0, cold_params, ladder[0], data, Priors())
    states = set_chain_params(states, 1, hot_params, ladder[1], data, Priors())
    return ladder, states


def _zero_counts(n_pairs):
    return jnp.zeros(n_pairs, dtype=jnp.int32), jnp.zeros(n_pairs, dtype=jnp.int32)


class TestAttemptReplicaSwap:
    def test_forced_accept_exchanges_states(self, synthetic_data):
        # Cold chain holds the worse state: log ratio > 0, always accepted
        ladder, states = _two_chain_states(synthetic_data, BAD, GOOD)
        accepts, attempts = _zero_counts(1)
        new_states, _, accepts, attempts = attempt_replica_swap(
            random.PRNGKey(1), states, ladder, synthetic_data, Priors(), accepts, attempts
        )
        np.testing.assert_array_equal(np.asarray(new_states.params[0]), np.asarray(GOOD))
        np.testing.assert_array_equal(np.asarray(new_states.params[1]), np.asarray(BAD))
        for i in range(2):
            expected = log_posterior_tempered(new_states.params[i], synthetic_data, Priors(), ladder[i])
            np.testing.assert_allclose(float(new_states.log_post[i]), float(expected), rtol=1e-12)
        assert int(accepts[0]) == 1
        assert int(attempts[0]) == 1

    def test_forced_reject_keeps_states(self, synthetic_data):
        ladder, states = _two_chain_states(synthetic_data, GOOD, BAD)
        accepts, attempts = _zero_counts(1)
        new_states, _, accepts, attempts = attempt_replica_swap(
            random.PRNGKey(1), states, ladder, synthetic_data, Priors(), accepts, attempts
        )
        np.testing.assert_array_equal(np.asarray(new_states.params), np.asarray(states.params))
        np.testing.assert_array_equal(np.asarray(new_states.log_post), np.asarray(states.log_post))
        assert int(accepts[0]) == 0
        assert int(attempts[0]) == 1

    def test_step_sizes_stay_with_chain(self, synthetic_data):
        ladder, states = _two_chain_states(synthetic_data, BAD, GOOD)
        states = states._replace(step_sizes=jnp.array([[0.1] * 4, [0.5] * 4]))
        accepts, attempts = _zero_counts(1)
        new_states, _, _, _ = attempt_replica_swap(
            random.PRNGKey(1), states, ladder, synthetic_data, Priors(), accepts, attempts
        )
        np.testing.assert_array_equal(np.asarray(new_states.step_sizes), np.asarray(states.step_sizes))

    def test_uniform_pair_selection(self, synthetic_data):
        ladder = build_temperature_ladder(5, 10.0, dtype=jnp.float64)
        states = init_chain_states(random.PRNGKey(0), ladder, synthetic_data, Priors(), RunParams())
        accepts, attempts = _zero_counts(4)

        swap = jax.jit(lambda k, s, a, t: attempt_replica_swap(k, s, ladder, synthetic_data, Priors(), a, t))
        key = random.PRNGKey(2)
        for _ in range(400):
            states, key, accepts, attempts = swap(key, states, accepts, attempts)

        attempts = np.asarray(attempts)
        assert attempts.sum() == 400
        # Each pair expected 100 times; 5 sd is about 43
        assert np.all(np.abs(attempts - 100) < 45)
        assert np.all(np.asarray(accepts) <= attempts)

        for i in range(5):
            expected = log_posterior_tempered(states.params[i], synthetic_data, Priors(), ladder[i])
            np.testing.assert_allclose(float(states.log_post[i]), float(expected), rtol=1e-10)
