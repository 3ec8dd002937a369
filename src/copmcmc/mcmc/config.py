"""
MCMC Configuration and Initialization.

This module sets up the state a sampler run starts from:
- configure_precision: Switch JAX between 32- and 64-bit floats
- float_dtype: Float dtype matching the current precision
- gen_rng_keys: Generate JAX random keys
- priors_as_arrays: Convert prior hyperparameters to traced scalars
- initialize_carry: Temperature ladder, chain states and swap counters
"""

from typing import Any, Tuple

import jax
import jax.numpy as jnp
import jax.random as random

from .chain import init_chain_states
from .tempering import build_temperature_ladder
from .types import Priors, RunParams, SamplerCarry


def configure_precision(use_double: bool) -> None:
    """Enable or disable 64-bit floats for subsequently created arrays."""
    jax.config.update("jax_enable_x64", bool(use_double))


def float_dtype(use_double: bool):
    return jnp.float64 if use_double else jnp.float32


def gen_rng_keys(rng_seed: int) -> Tuple[Any, Any]:
    """Generate JAX random keys from seed.

    Returns:
        (master_key, init_key): Tuple of JAX PRNGKeys
    """
    mkey = jax.random.PRNGKey(rng_seed)
    master_key, init_key = random.split(mkey, 2)
    return master_key, init_key


def priors_as_arrays(priors: Priors, dtype) -> Priors:
    """
    Priors with every field as a 0-d array of the given dtype.

    Keeps the argument signature of the compiled kernel fixed regardless of
    whether the caller passed ints or floats.
    """
    return Priors(*(jnp.asarray(value, dtype=dtype) for value in priors))


def initialize_carry(
    rng_seed: int,
    data,
    priors: Priors,
    num_chains: int,
    max_temperature: float,
    run_params: RunParams,
    dtype,
) -> Tuple[jnp.ndarray, SamplerCarry]:
    """
    Build the temperature ladder and the initial sampler carry.

    Returns:
        (temperatures, carry)
    """
    master_key, init_key = gen_rng_keys(rng_seed)
    temperatures = build_temperature_ladder(num_chains, max_temperature, dtype=dtype)
    states = init_chain_states(init_key, temperatures, data, priors, run_params)

    n_pairs = max(num_chains - 1, 0)
    carry = SamplerCarry(
        states=states,
        key=master_key,
        iteration=jnp.asarray(0, dtype=jnp.int32),
        swap_accepts=jnp.zeros(n_pairs, dtype=jnp.int32),
        swap_attempts=jnp.zeros(n_pairs, dtype=jnp.int32),
    )
    return temperatures, carry
