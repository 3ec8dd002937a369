"""
Replicate Run Tests

Run with: pytest tests/test_replicates.py -v
"""

import numpy as np
import pytest

from copmcmc import run_replicates, Priors, Diagnostics


class TestRunReplicates:
    def test_shapes_and_keys(self, small_data):
        result = run_replicates(small_data, Priors(), n_replicates=2, n_iterations=300, num_chains=2)
        assert result['history'].shape == (150, 2, 4)
        assert result['samples'].shape == (300, 4)
        assert result['rhat'].shape == (4,)
        assert np.all(np.isfinite(result['rhat']))
        assert result['ess'].shape == (4,)
        assert len(result['diagnostics']) == 2
        assert all(isinstance(d, Diagnostics) for d in result['diagnostics'])
        assert set(result['summary']) == {'floor', 'ceiling', 'ec50', 'slope'}
        assert result['elapsed'] >= 0

    def test_replicates_differ(self, small_data):
        result = run_replicates(small_data, None, n_replicates=2, n_iterations=100, num_chains=2, warmup=0)
        history = result['history']
        assert not np.array_equal(history[:, 0, :], history[:, 1, :])

    def test_seeded(self, small_data):
        a = run_replicates(small_data, None, 2, 100, num_chains=2, rng_seed=5)
        b = run_replicates(small_data, None, 2, 100, num_chains=2, rng_seed=5)
        np.testing.assert_array_equal(a['history'], b['history'])

    def test_replicate_matches_engine_seed(self, small_data):
        from copmcmc import ParallelTemperingMCMC

        result = run_replicates(small_data, None, 2, 100, num_chains=2, warmup=0, rng_seed=9)
        engine = ParallelTemperingMCMC(small_data, num_chains=2, rng_seed=10)
        engine.run(100)
        np.testing.assert_array_equal(result['history'][:, 1, :], engine.get_samples())

    @pytest.mark.parametrize("kwargs", [
        {'n_replicates': 0, 'n_iterations': 100},
        {'n_replicates': 2, 'n_iterations': 0},
        {'n_replicates': 2, 'n_iterations': 100, 'warmup': 100},
        {'n_replicates': 2, 'n_iterations': 100, 'warmup': -1},
    ])
    def test_invalid_arguments(self, small_data, kwargs):
        with pytest.raises(ValueError):
            run_replicates(small_data, None, **kwargs)
