"""
MCMC Scan Body.

One iteration of the parallel tempering sampler, written as a
jax.lax.scan body:
1. Sweep: one Metropolis step for every chain (vmapped)
2. Replica exchange between one random adjacent pair, on every
   SWAP_INTERVAL-th global iteration (skipped entirely for a single chain)
3. Emit the parameters of every chain for the trace

Temperature swap logic lives in mcmc.tempering.
"""

import jax
import jax.random as random

from .chain import sweep_chains
from .tempering import attempt_replica_swap
from .types import SamplerCarry


def pt_scan_body(carry, _, data, priors, temperatures, run_params):
    """
    One global iteration of the sampler.

    Args:
        carry: SamplerCarry
        _: Unused scan input
        data: MCMCData
        priors: Priors
        temperatures: Temperature ladder (n_chains,)
        run_params: RunParams (static)

    Returns:
        (new_carry, params): params is the (n_chains, 4) state after this
        iteration, stacked by scan into the chunk's trace
    """
    key, sweep_key = random.split(carry.key)

    states = sweep_chains(sweep_key, carry.states, temperatures, data, priors, run_params)

    swap_accepts = carry.swap_accepts
    swap_attempts = carry.swap_attempts

    # Static: the ladder length is known at trace time
    if temperatures.shape[0] > 1:
        is_swap_iter = (carry.iteration % run_params.SWAP_INTERVAL) == 0

        def do_swap(operand):
            s, k, acc, att = operand
            return attempt_replica_swap(k, s, temperatures, data, priors, acc, att)

        def no_swap(operand):
            return operand

        states, key, swap_accepts, swap_attempts = jax.lax.cond(
            is_swap_iter, do_swap, no_swap, (states, key, swap_accepts, swap_attempts)
        )

    new_carry = SamplerCarry(
        states=states,
        key=key,
        iteration=carry.iteration + 1,
        swap_accepts=swap_accepts,
        swap_attempts=swap_attempts,
    )
    return new_carry, states.params
