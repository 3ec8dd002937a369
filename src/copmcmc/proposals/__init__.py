"""
Proposal Distributions for MCMC Sampling

The sampler uses one proposal: a per-parameter Gaussian random walk whose
draws are reflected back into the support of the bounded parameters, with
step sizes tuned by multiplicative adaptation.

Proposal functions follow the same return convention:
    (proposal, log_hastings_ratio, new_key)

The reflective walk is symmetric, so its Hastings ratio is always 0.
"""

from .reflective_walk import (
    reflective_walk_proposal,
    reflect_unit_interval,
    reflect_positive,
)
from .adaptation import adapt_step_sizes

__all__ = [
    'reflective_walk_proposal',
    'reflect_unit_interval',
    'reflect_positive',
    'adapt_step_sizes',
]
