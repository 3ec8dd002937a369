"""
Pytest configuration and shared fixtures for copmcmc tests.
"""

import pytest
import numpy as np

from copmcmc.mcmc.types import MCMCData, Params, Priors


TRUE_PARAMS = Params(floor=0.05, ceiling=0.9, ec50=1.5, slope=2.0)


def make_synthetic_data(n_obs=200, params=TRUE_PARAMS, seed=0, titre_range=(-1.0, 4.0)):
    """
    Simulate Bernoulli outcomes from a known 4PL curve.

    Titres are uniform over titre_range.

    Returns:
        (titre, outcome) numpy arrays
    """
    rng = np.random.default_rng(seed)
    titre = rng.uniform(titre_range[0], titre_range[1], size=n_obs)
    sigmoid = 1.0 / (1.0 + np.exp(params.slope * (titre - params.ec50)))
    p = params.ceiling * (sigmoid * (1.0 - params.floor) + params.floor)
    outcome = (rng.uniform(size=n_obs) < p).astype(np.int32)
    return titre, outcome


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def true_params():
    return TRUE_PARAMS


@pytest.fixture
def synthetic_data():
    """200 observations from the reference curve."""
    titre, outcome = make_synthetic_data(n_obs=200, seed=0)
    return MCMCData.from_arrays(titre, outcome)


@pytest.fixture
def small_data():
    """A handful of observations for fast engine tests."""
    titre, outcome = make_synthetic_data(n_obs=30, seed=1)
    return MCMCData.from_arrays(titre, outcome)


@pytest.fixture
def default_priors():
    return Priors()


@pytest.fixture
def informative_priors():
    """Priors centred near the reference curve."""
    return Priors(
        floor_alpha=1.0, floor_beta=9.0,
        ceiling_alpha=9.0, ceiling_beta=1.0,
        ec50_mean=1.5, ec50_sd=1.25,
        slope_mean=0.0, slope_sd=2.0,
    )
