"""
MCMC Subpackage - Core parallel tempering implementation.

This package contains the core sampling logic:
- engine: Stateful parallel tempering engine (ParallelTemperingMCMC)
- compile: Kernel compilation and caching
- config: Precision, random keys and initial state
- chain: Single-chain Metropolis step, vmapped over the ladder
- tempering: Temperature ladder and replica exchange
- scan: JAX scan body of one global iteration
- diagnostics: R-hat, ESS and summary printers
- types: Core data structures (Params, Priors, MCMCData, RunParams)
"""

# Import types first (needed by other modules)
from .types import (
    Params,
    Priors,
    MCMCData,
    ChainState,
    SamplerCarry,
    RunParams,
    EngineStatus,
)

# Import main entry point
from .engine import ParallelTemperingMCMC

# Import commonly used functions
from .tempering import build_temperature_ladder, swap_log_ratio, attempt_replica_swap
from .chain import init_chain_states, chain_step, sweep_chains, set_chain_params
from .diagnostics import (
    Diagnostics,
    compute_split_rhat,
    compute_ess,
    compute_replicate_rhat,
    print_rhat_summary,
    print_acceptance_summary,
    print_swap_acceptance_summary,
)
from .compile import compile_pt_kernel, DEFAULT_CHUNK_SIZE

__all__ = [
    # Main entry point
    'ParallelTemperingMCMC',
    # Types
    'Params',
    'Priors',
    'MCMCData',
    'ChainState',
    'SamplerCarry',
    'RunParams',
    'EngineStatus',
    # Tempering
    'build_temperature_ladder',
    'swap_log_ratio',
    'attempt_replica_swap',
    # Chain
    'init_chain_states',
    'chain_step',
    'sweep_chains',
    'set_chain_params',
    # Diagnostics
    'Diagnostics',
    'compute_split_rhat',
    'compute_ess',
    'compute_replicate_rhat',
    'print_rhat_summary',
    'print_acceptance_summary',
    'print_swap_acceptance_summary',
    # Compile
    'compile_pt_kernel',
    'DEFAULT_CHUNK_SIZE',
]
