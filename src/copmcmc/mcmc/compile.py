"""
MCMC Kernel Compilation and Caching.

This module handles JAX compilation of the sampler kernel:
- _run_pt_chunk: Module-level chunk runner for cache-stable tracing
- _compute_cache_key: Compute in-memory cache key for compiled kernels
- compile_pt_kernel: Compile (or fetch) the kernel for one chunk length
- _COMPILED_KERNEL_CACHE: In-memory cache for compiled kernels
"""

import time
from functools import partial
from typing import Any, Callable, Dict, Tuple

import jax

from .scan import pt_scan_body
from .types import MCMCData, Priors, RunParams, SamplerCarry

import logging
logger = logging.getLogger('copmcmc')


# --- CONSTANTS ---
DEFAULT_CHUNK_SIZE = 1000

# --- COMPILED FUNCTION CACHE ---
# Cache compiled kernels by configuration (in-memory, within session)
_COMPILED_KERNEL_CACHE = {}


def _compute_cache_key(carry: SamplerCarry, data: MCMCData, run_params: RunParams,
                       n_iterations: int) -> Tuple:
    """
    Compute a cache key for the compiled kernel.

    The key captures everything that affects the compiled function:
    - Number of chains
    - Number of observations (data shape, not values)
    - Float dtype of the chain states
    - RunParams values (static)
    - Chunk length
    """
    return (
        carry.states.params.shape[0],
        data.n_obs,
        str(carry.states.params.dtype),
        run_params,
        n_iterations,
    )


def get_compiled_kernel_cache() -> Dict:
    """Get reference to the compiled kernel cache."""
    return _COMPILED_KERNEL_CACHE


def _run_pt_chunk(carry, data, priors, temperatures, n_iterations, run_params):
    """
    Module-level chunk runner for cache-stable tracing.

    Data, priors and the ladder are explicit traced arguments (not captured
    via closure), so one compiled kernel serves any dataset of the same size.

    Args:
        carry: SamplerCarry
        data: MCMCData (traced)
        priors: Priors (traced)
        temperatures: Temperature ladder (traced)
        n_iterations: Chunk length (static)
        run_params: RunParams frozen dataclass (static)

    Returns:
        final_carry: SamplerCarry after n_iterations
        trace: (n_iterations, n_chains, 4) parameters of every chain
    """
    scan_body = partial(
        pt_scan_body,
        data=data,
        priors=priors,
        temperatures=temperatures,
        run_params=run_params,
    )
    return jax.lax.scan(scan_body, carry, None, length=n_iterations)


def compile_pt_kernel(
    carry: SamplerCarry,
    data: MCMCData,
    priors: Priors,
    temperatures,
    run_params: RunParams,
    n_iterations: int,
) -> Tuple[Callable[..., Any], float]:
    """
    Compile the chunk kernel, using the cache if available.

    Args:
        carry: Example carry for tracing (shapes and dtypes only)
        data: MCMCData
        priors: Priors as arrays of the carry's float dtype
        temperatures: Temperature ladder
        run_params: RunParams
        n_iterations: Chunk length

    Returns:
        Tuple of (compiled_chunk_fn, compile_time); compiled_chunk_fn takes
        (carry, data, priors, temperatures)
    """
    cache_key = _compute_cache_key(carry, data, run_params, n_iterations)
    compiled_chunk = _COMPILED_KERNEL_CACHE.get(cache_key)
    if compiled_chunk is not None:
        logger.debug("Using cached kernel (in-memory)")
        return compiled_chunk, 0.0

    run_chunk_jit = jax.jit(
        _run_pt_chunk,
        static_argnames=('n_iterations', 'run_params')
    )

    logger.info(f"Compiling kernel ({n_iterations} iterations per chunk)...")
    compile_start = time.perf_counter()

    # AOT compilation with explicit arguments
    compiled_chunk = run_chunk_jit.lower(
        carry, data, priors, temperatures,
        n_iterations=n_iterations, run_params=run_params
    ).compile()

    compile_time = time.perf_counter() - compile_start
    logger.info(f"Done ({compile_time:.4f}s)")

    _COMPILED_KERNEL_CACHE[cache_key] = compiled_chunk
    return compiled_chunk, compile_time
