"""
Proposal Scale Adaptation

Multiplicative tuning of the per-parameter random walk step sizes toward
the 0.234 acceptance rate of multi-dimensional random-walk Metropolis.

Every ADAPT_INTERVAL steps of a chain, all four step sizes are scaled by
ADAPT_SCALE_UP when the chain's running acceptance rate exceeds
TARGET_ACCEPTANCE, and by ADAPT_SCALE_DOWN otherwise, then clamped to
[MIN_STEP_SIZE, MAX_STEP_SIZE].

Adapting for the whole run is the default. Step sizes settle well before
the usual warmup boundary, but strict ergodicity requires a fixed kernel:
RunParams.ADAPT_UNTIL freezes the scales after a given number of steps.
"""

import jax.numpy as jnp


def adapt_step_sizes(step_sizes, iteration, acceptance_rate, run_params):
    """
    Adapt proposal step sizes.

    Args:
        step_sizes: Current per-parameter step sizes (4,)
        iteration: Number of steps the chain has taken, including this one
        acceptance_rate: Running acceptance rate of the chain
        run_params: RunParams (static)

    Returns:
        Updated step sizes (unchanged unless iteration is a multiple of
        ADAPT_INTERVAL and adaptation has not been frozen)
    """
    is_adapt_iter = (iteration % run_params.ADAPT_INTERVAL) == 0
    if run_params.ADAPT_UNTIL is not None:
        is_adapt_iter = is_adapt_iter & (iteration <= run_params.ADAPT_UNTIL)

    scale = jnp.where(
        acceptance_rate > run_params.TARGET_ACCEPTANCE,
        run_params.ADAPT_SCALE_UP,
        run_params.ADAPT_SCALE_DOWN,
    )
    adapted = jnp.clip(step_sizes * scale, run_params.MIN_STEP_SIZE, run_params.MAX_STEP_SIZE)

    return jnp.where(is_adapt_iter, adapted, step_sizes)
