"""
Reflective Random Walk Proposal for MCMC Sampling

Independent Gaussian random walk on each parameter with its own step size,
folded back into the parameter's support at the boundaries.

Proposal: x' = x + step_sizes * z,  z ~ N(0, I)
then
    floor, ceiling: folded into (0, 1) (x -> -x if x <= 0, x -> 2 - x if x >= 1,
                    repeated until in range)
    slope:          single reflection at zero (x -> -x if x <= 0)
    ec50:           unconstrained, left as is

Hastings ratio: 0 (symmetric proposal, q(x'|x) = q(x|x'))

Reflection keeps the kernel symmetric: the folded density of x' given x is
a sum of Gaussian terms in |x' - x| and its mirrored images, which is
unchanged when x and x' are exchanged. A plain Metropolis ratio is therefore
valid without clamping or rejection at the boundary.

The fold is a bounded while loop (MAX_REFLECTIONS iterations). Each pass
shrinks the distance to the interval by 2, so only steps of order
MAX_REFLECTIONS can exhaust it; in that case the equivalent closed-form
periodic fold is used. A value landing exactly on 0 or 1 is clamped one
machine epsilon inside the interval.
"""

import jax
import jax.numpy as jnp
import jax.random as random

from ..settings import ParamSlot, MAX_REFLECTIONS


def reflect_unit_interval(x, max_reflections=MAX_REFLECTIONS):
    """Fold x back into the open interval (0, 1)."""
    x = jnp.asarray(x)

    def out_of_range(value):
        return (value <= 0.0) | (value >= 1.0)

    def cond_fn(carry):
        value, n = carry
        return out_of_range(value) & (n < max_reflections)

    def body_fn(carry):
        value, n = carry
        value = jnp.where(value <= 0.0, -value, value)
        value = jnp.where(value >= 1.0, 2.0 - value, value)
        return value, n + 1

    folded, _ = jax.lax.while_loop(cond_fn, body_fn, (x, 0))

    # Fallback for pathological step sizes
    periodic = jnp.mod(folded, 2.0)
    periodic = jnp.where(periodic > 1.0, 2.0 - periodic, periodic)
    eps = jnp.finfo(periodic.dtype).eps
    fallback = jnp.clip(periodic, eps, 1.0 - eps)

    return jnp.where(out_of_range(folded), fallback, folded)


def reflect_positive(x):
    """Single reflection at zero."""
    x = jnp.asarray(x)
    return jnp.where(x <= 0.0, -x, x)


def reflective_walk_proposal(key, current, step_sizes, max_reflections=MAX_REFLECTIONS):
    """
    Reflective Gaussian random walk proposal.

    Args:
        key: JAX random key
        current: Current parameter vector (4,) ordered by ParamSlot
        step_sizes: Per-parameter proposal scale (4,)
        max_reflections: Cap on the fold loop for floor and ceiling

    Returns:
        proposal: Proposed parameter vector (4,)
        log_hastings_ratio: 0.0 (symmetric proposal)
        new_key: Updated random key
    """
    new_key, proposal_key = random.split(key)

    noise = random.normal(proposal_key, shape=current.shape, dtype=current.dtype)
    raw = current + step_sizes * noise

    proposal = (
        raw
        .at[ParamSlot.FLOOR].set(reflect_unit_interval(raw[ParamSlot.FLOOR], max_reflections))
        .at[ParamSlot.CEILING].set(reflect_unit_interval(raw[ParamSlot.CEILING], max_reflections))
        .at[ParamSlot.SLOPE].set(reflect_positive(raw[ParamSlot.SLOPE]))
    )

    # Symmetric proposal: q(x'|x) = q(x|x'), so log ratio = 0
    log_hastings_ratio = 0.0

    return proposal, log_hastings_ratio, new_key
