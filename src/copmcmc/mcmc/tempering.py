"""
MCMC Tempering - Temperature ladder and replica exchange.

Standard replica exchange: chain i always runs at temperature T_i, and an
accepted swap exchanges the PARAMETER STATES of two adjacent chains. Step
sizes and acceptance counters stay with the chain (they belong to the
temperature level, not to the state).

Functions:
- build_temperature_ladder: Geometric ladder from 1 to max_temperature
- swap_log_ratio: Log acceptance ratio of a swap between two chains
- attempt_replica_swap: One swap attempt between a random adjacent pair
"""

import jax.numpy as jnp
import jax.random as random

from .chain import set_chain_params


def build_temperature_ladder(num_chains, max_temperature, dtype=None):
    """
    Geometric temperature ladder T_i = max_temperature ** (i / (num_chains - 1)).

    T_0 = 1 is the cold chain targeting the posterior. With a single chain
    the ladder is [1.0].

    Args:
        num_chains: Number of chains (>= 1)
        max_temperature: Temperature of the hottest chain (> 0)
        dtype: Optional float dtype of the result

    Returns:
        temperatures: (num_chains,) non-decreasing if max_temperature >= 1
    """
    if num_chains == 1:
        return jnp.ones(1, dtype=dtype)

    exponents = jnp.arange(num_chains, dtype=dtype) / (num_chains - 1)
    return jnp.asarray(max_temperature, dtype=dtype) ** exponents


def swap_log_ratio(log_post_i, log_post_j, temperature_i, temperature_j):
    """
    Log acceptance ratio for exchanging the states of chains i and j.

        log_alpha = (log_post_i - log_post_j) * (1 / T_j - 1 / T_i)

    where log_post_k is chain k's cached tempered log posterior of its
    current state at its own temperature T_k.
    """
    return (log_post_i - log_post_j) * (1.0 / temperature_j - 1.0 / temperature_i)


def attempt_replica_swap(key, states, temperatures, data, priors, swap_accepts, swap_attempts):
    """
    Attempt one replica exchange between a uniformly chosen adjacent pair.

    On acceptance the two chains exchange their parameter vectors and each
    chain's cached log posterior is re-evaluated at its own temperature.

    Args:
        key: JAX random key
        states: ChainState with a leading (n_chains,) axis, n_chains >= 2
        temperatures: Temperature ladder (n_chains,)
        data: MCMCData
        priors: Priors
        swap_accepts: Accepted swaps per adjacent pair (n_chains - 1,)
        swap_attempts: Attempted swaps per adjacent pair (n_chains - 1,)

    Returns:
        (states, key, swap_accepts, swap_attempts)
    """
    n_chains = temperatures.shape[0]
    key, pair_key, accept_key = random.split(key, 3)

    i = random.randint(pair_key, (), 0, n_chains - 1)
    j = i + 1

    log_alpha = swap_log_ratio(
        states.log_post[i], states.log_post[j], temperatures[i], temperatures[j]
    )
    log_alpha = jnp.nan_to_num(log_alpha, nan=-jnp.inf)

    log_u = jnp.log(random.uniform(accept_key, dtype=temperatures.dtype))
    accept = log_u < log_alpha

    params_i = states.params[i]
    params_j = states.params[j]
    swapped = set_chain_params(states, i, params_j, temperatures[i], data, priors)
    swapped = set_chain_params(swapped, j, params_i, temperatures[j], data, priors)

    new_states = states._replace(
        params=jnp.where(accept, swapped.params, states.params),
        log_post=jnp.where(accept, swapped.log_post, states.log_post),
    )

    swap_attempts = swap_attempts.at[i].add(1)
    swap_accepts = swap_accepts.at[i].add(accept.astype(swap_accepts.dtype))

    return new_states, key, swap_accepts, swap_attempts
