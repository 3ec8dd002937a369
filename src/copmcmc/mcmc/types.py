"""
MCMC Data Structures and Type Definitions.

This module contains the core data structures used by the sampler:
- Params: One draw of the four model parameters
- Priors: Hyperparameters of the four prior distributions
- MCMCData: Immutable dataset (titre, outcome) shared by every chain
- ChainState: Per-chain sampler state, stacked along the ladder axis
- SamplerCarry: Full state threaded through the compiled iteration loop
- RunParams: Immutable run parameters for JAX static arguments
- EngineStatus: Lifecycle of a ParallelTemperingMCMC instance
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

import jax
import jax.numpy as jnp
import numpy as np

from ..settings import (
    ParamSlot,
    PARAM_NAMES,
    INITIAL_STEP_SIZE,
    ADAPT_INTERVAL,
    TARGET_ACCEPTANCE,
    ADAPT_SCALE_UP,
    ADAPT_SCALE_DOWN,
    MIN_STEP_SIZE,
    MAX_STEP_SIZE,
    MAX_REFLECTIONS,
    SWAP_INTERVAL,
)


class Params(NamedTuple):
    """One posterior draw (or a chain's current state) of the 4PL model."""
    floor: float
    ceiling: float
    ec50: float
    slope: float

    def to_array(self) -> np.ndarray:
        """Pack into a (4,) array ordered by ParamSlot."""
        return np.array([self.floor, self.ceiling, self.ec50, self.slope], dtype=float)

    @classmethod
    def from_array(cls, values) -> 'Params':
        values = np.asarray(values, dtype=float)
        return cls(*(float(values[slot]) for slot in ParamSlot))

    def to_dict(self) -> dict:
        return dict(zip(PARAM_NAMES, self))


class Priors(NamedTuple):
    """
    Prior hyperparameters.

    floor ~ Beta(floor_alpha, floor_beta)
    ceiling ~ Beta(ceiling_alpha, ceiling_beta)
    ec50 ~ Normal(ec50_mean, ec50_sd)
    slope ~ Normal(slope_mean, slope_sd) truncated to (0, inf)

    NamedTuple so it passes through jit as a pytree of traced scalars.
    """
    floor_alpha: float = 1.0
    floor_beta: float = 1.0
    ceiling_alpha: float = 1.0
    ceiling_beta: float = 1.0
    ec50_mean: float = 0.0
    ec50_sd: float = 1.0
    slope_mean: float = 1.0
    slope_sd: float = 1.0


@dataclass(frozen=True)
class MCMCData:
    """
    Observed dataset: continuous titre paired with a binary outcome.

    Frozen dataclass registered as a JAX pytree so it can be passed to
    compiled kernels as a traced argument. Chains only ever read it.
    """
    titre: jnp.ndarray    # (N,) float
    outcome: jnp.ndarray  # (N,) int, 0 or 1

    @property
    def n_obs(self) -> int:
        return int(self.titre.shape[0])

    @classmethod
    def from_arrays(cls, titre, outcome) -> 'MCMCData':
        """
        Build a dataset from array-likes.

        Raises:
            EngineConfigurationError: If the arrays are empty, not 1-D, or of
                different lengths.
        """
        from ..error_handling import validate_data

        titre_np = np.asarray(titre, dtype=float)
        outcome_np = np.asarray(outcome)
        validate_data(titre_np, outcome_np)
        return cls(
            titre=jnp.asarray(titre_np),
            outcome=jnp.asarray(outcome_np.astype(np.int32)),
        )


def _mcmc_data_flatten(d):
    """Flatten MCMCData for JAX pytree."""
    return (d.titre, d.outcome), None


def _mcmc_data_unflatten(aux_data, children):
    """Unflatten MCMCData from JAX pytree."""
    titre, outcome = children
    return MCMCData(titre=titre, outcome=outcome)


# Register MCMCData as a JAX pytree
jax.tree_util.register_pytree_node(
    MCMCData,
    _mcmc_data_flatten,
    _mcmc_data_unflatten
)


class ChainState(NamedTuple):
    """
    Sampler state of every chain in the ladder.

    Each field carries a leading (n_chains,) axis; slicing one index gives the
    state of a single chain, which is what chain_step operates on under vmap.
    """
    params: jnp.ndarray      # (n_chains, 4) current parameter vector
    log_post: jnp.ndarray    # (n_chains,) cached tempered log posterior of params
    step_sizes: jnp.ndarray  # (n_chains, 4) proposal scale per parameter
    accepted: jnp.ndarray    # (n_chains,) accepted Metropolis moves
    total: jnp.ndarray       # (n_chains,) attempted Metropolis moves


class SamplerCarry(NamedTuple):
    """
    Carry threaded through jax.lax.scan.

    swap_accepts/swap_attempts are per adjacent pair (n_chains - 1,); with a
    single chain they have length 0.
    """
    states: ChainState
    key: jnp.ndarray
    iteration: jnp.ndarray
    swap_accepts: jnp.ndarray
    swap_attempts: jnp.ndarray


@dataclass(frozen=True)
class RunParams:
    """
    Immutable run parameters for JAX static argument compatibility.

    This frozen dataclass is hashable, so it can be passed as a static
    argument to the compiled kernel and used as part of the kernel cache key.
    ADAPT_UNTIL=None keeps adapting step sizes for the whole run; an integer
    freezes them once a chain has taken that many steps.
    """
    SWAP_INTERVAL: int = SWAP_INTERVAL
    ADAPT_INTERVAL: int = ADAPT_INTERVAL
    TARGET_ACCEPTANCE: float = TARGET_ACCEPTANCE
    ADAPT_SCALE_UP: float = ADAPT_SCALE_UP
    ADAPT_SCALE_DOWN: float = ADAPT_SCALE_DOWN
    MIN_STEP_SIZE: float = MIN_STEP_SIZE
    MAX_STEP_SIZE: float = MAX_STEP_SIZE
    INITIAL_STEP_SIZE: float = INITIAL_STEP_SIZE
    MAX_REFLECTIONS: int = MAX_REFLECTIONS
    ADAPT_UNTIL: Optional[int] = None


class EngineStatus(Enum):
    """Lifecycle of an engine: there is no reset short of reconstruction."""
    CONSTRUCTED = 'constructed'
    RUNNING = 'running'
    COMPLETED = 'completed'
