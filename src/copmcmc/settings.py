"""
Sampler settings configuration.

This module defines the canonical ordering of the four model parameters and
the default constants of the adaptive proposal, the replica-exchange schedule
and the diagnostics.

Chain states are stored as JAX arrays of shape (..., N_PARAMS). Every function
in the sampler accesses a parameter by position using the ParamSlot enum, so
the order below is the single source of truth for the layout of traces,
step sizes and summaries.
"""

from enum import IntEnum


class ParamSlot(IntEnum):
    """
    Canonical slot indices for the four-parameter logistic model.

    IntEnum values compile to simple integers - no runtime overhead.
    """
    FLOOR = 0    # Proportion of maximum risk retained at high titre, in (0, 1)
    CEILING = 1  # Maximum infection probability at low titre, in (0, 1)
    EC50 = 2     # Titre at the inflection point, unconstrained
    SLOPE = 3    # Steepness of the curve, in (0, inf)


PARAM_NAMES = tuple(slot.name.lower() for slot in ParamSlot)
N_PARAMS = len(ParamSlot)

# Proposal scale adaptation
INITIAL_STEP_SIZE = 0.1
ADAPT_INTERVAL = 50
TARGET_ACCEPTANCE = 0.234
ADAPT_SCALE_UP = 1.01
ADAPT_SCALE_DOWN = 0.99
MIN_STEP_SIZE = 0.001
MAX_STEP_SIZE = 1.0

# Bound on the reflection loop for the unit-interval parameters
MAX_REFLECTIONS = 64

# Replica exchange
SWAP_INTERVAL = 10
DEFAULT_NUM_CHAINS = 10
DEFAULT_MAX_TEMPERATURE = 10.0

# Diagnostics
MIN_DIAGNOSTIC_SAMPLES = 100
MAX_ACF_LAG = 100
RHAT_THRESHOLD = 1.05
MIN_ESS = 400

# Broad uniform ranges for random starting points (not the prior)
INIT_RANGES = {
    ParamSlot.FLOOR: (0.01, 0.5),
    ParamSlot.CEILING: (0.1, 0.9),
    ParamSlot.EC50: (-2.0, 2.0),
    ParamSlot.SLOPE: (0.1, 3.0),
}
