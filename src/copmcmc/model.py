"""
Four-Parameter Logistic Model - Log Densities and Posterior

Model:
    P(infection | titre) = ceiling * (sigmoid(-slope * (titre - ec50)) * (1 - floor) + floor)

    floor   ~ Beta(floor_alpha, floor_beta)              [Prior]
    ceiling ~ Beta(ceiling_alpha, ceiling_beta)          [Prior]
    ec50    ~ Normal(ec50_mean, ec50_sd)                 [Prior]
    slope   ~ Normal(slope_mean, slope_sd), slope > 0    [Prior]
    y_i     ~ Bernoulli(P(infection | titre_i))          [Likelihood]

Every density returns -inf outside its support instead of raising, so an
out-of-support proposal is simply a proposal with zero posterior density and
is rejected by the Metropolis step. Non-finite intermediate values (log(0),
NaN from extreme parameters) are mapped to -inf at the point they appear.

All functions are pure and traceable; parameter vectors are (4,) arrays
ordered by ParamSlot (a Params NamedTuple converts with jnp.asarray).
"""

import jax
import jax.numpy as jnp
from jax.scipy.special import erfc

from .settings import ParamSlot

LOG_SQRT_2PI = 0.5 * jnp.log(2.0 * jnp.pi)


def _neg_inf_like(x):
    return jnp.full_like(x, -jnp.inf)


def _finite_or_neg_inf(x):
    """Map NaN and +/-inf to -inf."""
    return jnp.where(jnp.isfinite(x), x, -jnp.inf)


# ============================================================================
# DISTRIBUTION LOG DENSITIES
# ============================================================================

def log_beta(x, alpha, beta):
    """
    Unnormalized Beta log density.

    The normalizing constant is dropped: it is identical for every state of
    a run and cancels in every Metropolis and swap ratio.
    """
    x = jnp.asarray(x)
    in_support = (x > 0.0) & (x < 1.0)
    safe_x = jnp.where(in_support, x, 0.5)
    lp = (alpha - 1.0) * jnp.log(safe_x) + (beta - 1.0) * jnp.log1p(-safe_x)
    return jnp.where(in_support, lp, -jnp.inf)


def log_normal(x, mean, sd):
    """Fully normalized Normal log density."""
    x = jnp.asarray(x)
    z = (x - mean) / sd
    return -0.5 * z * z - jnp.log(sd) - LOG_SQRT_2PI


def log_truncated_normal(x, mean, sd):
    """
    Normal log density truncated to (0, inf).

    The normalizing mass P(X > 0) = 0.5 * erfc(-mean / (sd * sqrt(2))).
    """
    x = jnp.asarray(x)
    in_support = x > 0.0
    log_mass = jnp.log(0.5 * erfc(-mean / (sd * jnp.sqrt(2.0))))
    lp = log_normal(x, mean, sd) - log_mass
    return jnp.where(in_support, lp, -jnp.inf)


def log_bernoulli(y, p):
    """Bernoulli log mass; -inf when p is not strictly inside (0, 1)."""
    p = jnp.asarray(p)
    in_support = (p > 0.0) & (p < 1.0)
    safe_p = jnp.where(in_support, p, 0.5)
    lp = jnp.where(y == 1, jnp.log(safe_p), jnp.log1p(-safe_p))
    return jnp.where(in_support, lp, -jnp.inf)


# ============================================================================
# RESPONSE CURVE
# ============================================================================

def response_probability(titre, params):
    """
    Infection probability at the given titre(s) under the 4PL curve.

    Strictly inside (0, 1) whenever floor, ceiling are in (0, 1) and slope > 0.

    Args:
        titre: Scalar or array of titres
        params: (4,) parameter vector ordered by ParamSlot

    Returns:
        Array broadcast to the shape of titre
    """
    params = jnp.asarray(params)
    floor = params[ParamSlot.FLOOR]
    ceiling = params[ParamSlot.CEILING]
    ec50 = params[ParamSlot.EC50]
    slope = params[ParamSlot.SLOPE]
    titre = jnp.asarray(titre)
    return ceiling * (jax.nn.sigmoid(-slope * (titre - ec50)) * (1.0 - floor) + floor)


# ============================================================================
# POSTERIOR
# ============================================================================

def log_prior(params, priors):
    """Sum of the four prior log densities; -inf if any term is -inf."""
    params = jnp.asarray(params)
    lp = (
        log_beta(params[ParamSlot.FLOOR], priors.floor_alpha, priors.floor_beta)
        + log_beta(params[ParamSlot.CEILING], priors.ceiling_alpha, priors.ceiling_beta)
        + log_normal(params[ParamSlot.EC50], priors.ec50_mean, priors.ec50_sd)
        + log_truncated_normal(params[ParamSlot.SLOPE], priors.slope_mean, priors.slope_sd)
    )
    return _finite_or_neg_inf(lp)


def log_likelihood(params, data):
    """
    Bernoulli log likelihood summed over all observations.

    A single -inf term makes the sum -inf; the final finiteness check also
    catches NaN so it never reaches the acceptance ratio.
    """
    p = response_probability(data.titre, params)
    ll = jnp.sum(log_bernoulli(data.outcome, p))
    return _finite_or_neg_inf(ll)


def log_posterior_tempered(params, data, priors, temperature):
    """
    Tempered log posterior: log_prior + log_likelihood / temperature.

    The likelihood is only evaluated when the prior is finite. Under vmap the
    cond lowers to a select and both branches run, the result is unchanged.
    """
    params = jnp.asarray(params)
    lp = log_prior(params, priors)

    def with_likelihood(operand):
        theta, prior_lp = operand
        ll = log_likelihood(theta, data)
        return _finite_or_neg_inf(prior_lp + ll / temperature)

    def rejected(operand):
        _, prior_lp = operand
        return _neg_inf_like(prior_lp)

    return jax.lax.cond(jnp.isfinite(lp), with_likelihood, rejected, (params, lp))
