"""
MCMC Chain - Single-chain Metropolis updates, vectorized over the ladder.

Every chain in the ladder runs the same kernel at its own temperature:
- init_chain_states: Random starting points and cached log posteriors
- chain_step: One Metropolis step of one chain (propose, accept, adapt)
- sweep_chains: One step of every chain, vmapped over the ladder axis
- set_chain_params: Replace a chain's state and re-evaluate its cache

The cached log posterior of a chain is always the tempered log posterior of
its current parameters at its own temperature. Any code that moves a state
between chains must re-evaluate the cache (see set_chain_params).
"""

from functools import partial

import jax
import jax.numpy as jnp
import jax.random as random

from ..model import log_posterior_tempered
from ..proposals import reflective_walk_proposal, adapt_step_sizes
from ..settings import ParamSlot, N_PARAMS, INIT_RANGES
from .types import ChainState


def _tempered_log_post_all(params, temperatures, data, priors):
    """Tempered log posterior of every chain at its own temperature."""
    return jax.vmap(
        lambda p, t: log_posterior_tempered(p, data, priors, t)
    )(params, temperatures)


def init_chain_states(key, temperatures, data, priors, run_params):
    """
    Draw an independent starting point for every chain.

    Starting points are uniform over broad ranges inside each parameter's
    support (INIT_RANGES), not draws from the prior, so chains start in
    different regions of the space.

    Args:
        key: JAX random key
        temperatures: Temperature ladder (n_chains,)
        data: MCMCData
        priors: Priors
        run_params: RunParams (initial step size)

    Returns:
        ChainState with a leading (n_chains,) axis
    """
    n_chains = temperatures.shape[0]
    dtype = temperatures.dtype

    lows = jnp.array([INIT_RANGES[slot][0] for slot in ParamSlot], dtype=dtype)
    highs = jnp.array([INIT_RANGES[slot][1] for slot in ParamSlot], dtype=dtype)
    params = random.uniform(
        key, shape=(n_chains, N_PARAMS), dtype=dtype, minval=lows, maxval=highs
    )

    return ChainState(
        params=params,
        log_post=_tempered_log_post_all(params, temperatures, data, priors),
        step_sizes=jnp.full((n_chains, N_PARAMS), run_params.INITIAL_STEP_SIZE, dtype=dtype),
        accepted=jnp.zeros(n_chains, dtype=jnp.int32),
        total=jnp.zeros(n_chains, dtype=jnp.int32),
    )


def chain_step(key, state, temperature, data, priors, run_params):
    """
    One Metropolis step of a single chain.

    Accept if log(u) < log_post(candidate) - log_post(current). The current
    state (possibly unchanged) is what the caller records in the trace.

    Args:
        key: JAX random key
        state: ChainState of one chain (no leading axis)
        temperature: The chain's temperature
        data: MCMCData
        priors: Priors
        run_params: RunParams (static)

    Returns:
        Updated ChainState of the chain
    """
    proposal_key, accept_key = random.split(key)

    proposal, log_hastings_ratio, _ = reflective_walk_proposal(
        proposal_key, state.params, state.step_sizes, run_params.MAX_REFLECTIONS
    )
    proposal_log_post = log_posterior_tempered(proposal, data, priors, temperature)

    log_alpha = proposal_log_post - state.log_post + log_hastings_ratio
    # -inf - (-inf) is NaN: never accept it
    log_alpha = jnp.nan_to_num(log_alpha, nan=-jnp.inf)

    log_u = jnp.log(random.uniform(accept_key, dtype=state.params.dtype))
    accept = log_u < log_alpha

    new_params = jnp.where(accept, proposal, state.params)
    new_log_post = jnp.where(accept, proposal_log_post, state.log_post)
    new_accepted = state.accepted + accept.astype(jnp.int32)
    new_total = state.total + 1

    acceptance_rate = new_accepted / new_total
    new_step_sizes = adapt_step_sizes(state.step_sizes, new_total, acceptance_rate, run_params)

    return ChainState(
        params=new_params,
        log_post=new_log_post,
        step_sizes=new_step_sizes,
        accepted=new_accepted,
        total=new_total,
    )


def sweep_chains(key, states, temperatures, data, priors, run_params):
    """
    Step every chain of the ladder once.

    Chains only interact through replica exchange, so the sweep is a vmap
    with an independent subkey per chain.
    """
    n_chains = temperatures.shape[0]
    chain_keys = random.split(key, n_chains)
    step = partial(chain_step, data=data, priors=priors, run_params=run_params)
    return jax.vmap(step)(chain_keys, states, temperatures)


def set_chain_params(states, index, params, temperature, data, priors):
    """Set the parameters of chain `index` and re-evaluate its cached log posterior."""
    log_post = log_posterior_tempered(params, data, priors, temperature)
    return states._replace(
        params=states.params.at[index].set(params),
        log_post=states.log_post.at[index].set(log_post),
    )
