"""
Parallel Tempering Engine - Stateful driver around the compiled kernel.

ParallelTemperingMCMC owns the temperature ladder, the chain states, the
random key and the host-side traces. run() extends the traces by running
the compiled scan in chunks; every query method reads the cold chain
(T = 1) trace and is free of side effects.

Lifecycle: CONSTRUCTED -> RUNNING (inside run) -> COMPLETED. run() may be
called again to keep accumulating iterations; there is no reset short of
constructing a new engine.
"""

import time
from datetime import timedelta
from typing import Optional

import jax
import jax.numpy as jnp
import numpy as np

from ..error_handling import validate_engine_config
from ..settings import DEFAULT_NUM_CHAINS, DEFAULT_MAX_TEMPERATURE
from .compile import compile_pt_kernel, DEFAULT_CHUNK_SIZE
from .config import (
    configure_precision,
    float_dtype,
    gen_rng_keys,
    initialize_carry,
    priors_as_arrays,
)
from .diagnostics import (
    Diagnostics,
    compute_split_rhat,
    compute_ess,
    rates_from_counts,
    print_rhat_summary,
    print_acceptance_summary,
    print_swap_acceptance_summary,
)
from .types import EngineStatus, MCMCData, Priors, RunParams

import logging
logger = logging.getLogger('copmcmc')


class ParallelTemperingMCMC:
    """
    Parallel tempering Metropolis sampler for the four-parameter logistic model.

    Args:
        data: MCMCData (titre, outcome)
        priors: Priors; defaults to Priors()
        num_chains: Chains in the ladder (>= 1); one chain disables swaps
        max_temperature: Temperature of the hottest chain
        rng_seed: Seed of the engine's random key; None draws one from numpy
        adapt_until: Freeze step sizes after this many steps per chain;
            None adapts for the whole run
        use_double: Run in 64-bit floats
        chunk_size: Iterations per compiled chunk

    Raises:
        EngineConfigurationError: If the dataset, priors or settings are invalid
    """

    def __init__(
        self,
        data: MCMCData,
        priors: Optional[Priors] = None,
        num_chains: int = DEFAULT_NUM_CHAINS,
        max_temperature: float = DEFAULT_MAX_TEMPERATURE,
        rng_seed: Optional[int] = None,
        adapt_until: Optional[int] = None,
        use_double: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        priors = Priors() if priors is None else Priors(*priors)
        validate_engine_config(data, priors, num_chains, max_temperature, chunk_size, adapt_until)

        self.num_chains = int(num_chains)
        self.max_temperature = float(max_temperature)
        self.use_double = bool(use_double)
        self.chunk_size = int(chunk_size)
        self.priors = priors
        self.run_params = RunParams(ADAPT_UNTIL=None if adapt_until is None else int(adapt_until))

        if rng_seed is None:
            rng_seed = int(np.random.SeedSequence().generate_state(1)[0])
        self.rng_seed = int(rng_seed)

        configure_precision(self.use_double)
        self._dtype = float_dtype(self.use_double)
        self._data = MCMCData(
            titre=jnp.asarray(data.titre, dtype=self._dtype),
            outcome=jnp.asarray(data.outcome, dtype=jnp.int32),
        )
        self._priors = priors_as_arrays(priors, self._dtype)

        temperatures, self._carry = initialize_carry(
            self.rng_seed, self._data, self._priors, self.num_chains,
            self.max_temperature, self.run_params, self._dtype,
        )
        self._temperatures = temperatures
        self._trace_chunks = []
        self._trace_cache = None
        self._status = EngineStatus.CONSTRUCTED

        logger.info(
            f"Parallel tempering: {self.num_chains} chains, "
            f"{self._data.n_obs} observations, seed {self.rng_seed}"
        )
        logger.info(f"  Temperature ladder: {[f'{t:.3f}' for t in self.temperatures.tolist()]}")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def iteration(self) -> int:
        """Number of iterations run so far."""
        return int(self._carry.iteration)

    @property
    def temperatures(self) -> np.ndarray:
        return np.asarray(self._temperatures)

    @property
    def data(self) -> MCMCData:
        return self._data

    def set_random_seed(self, seed: int) -> None:
        """
        Replace the engine's random key.

        Chain states and traces are kept; only the random stream of
        subsequent iterations changes.
        """
        self.rng_seed = int(seed)
        master_key, _ = gen_rng_keys(self.rng_seed)
        self._carry = self._carry._replace(key=master_key)

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def run(self, n_iterations: int) -> None:
        """
        Run every chain for n_iterations more iterations (blocking).

        Raises:
            ValueError: If n_iterations is negative
        """
        if n_iterations < 0:
            raise ValueError(f"n_iterations must be >= 0, got {n_iterations}")
        if n_iterations == 0:
            return

        configure_precision(self.use_double)
        self._status = EngineStatus.RUNNING
        logger.info(f"--- MCMC RUN: {n_iterations} iterations from iteration {self.iteration} ---")

        start_run_time = time.perf_counter()
        try:
            remaining = int(n_iterations)
            while remaining > 0:
                length = min(self.chunk_size, remaining)
                compiled_chunk, _ = compile_pt_kernel(
                    self._carry, self._data, self._priors, self._temperatures,
                    self.run_params, length,
                )
                self._carry, trace = compiled_chunk(
                    self._carry, self._data, self._priors, self._temperatures
                )
                self._trace_chunks.append(np.asarray(jax.device_get(trace)))
                self._trace_cache = None
                remaining -= length
        finally:
            self._status = EngineStatus.COMPLETED

        wall_time = time.perf_counter() - start_run_time
        logger.info(f"  Total Wall Time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")

    # ------------------------------------------------------------------
    # Traces
    # ------------------------------------------------------------------

    def _full_trace(self) -> np.ndarray:
        """All recorded iterations, (n_iterations, n_chains, 4)."""
        if self._trace_cache is None:
            if self._trace_chunks:
                self._trace_cache = np.concatenate(self._trace_chunks, axis=0)
            else:
                self._trace_cache = np.zeros((0, self.num_chains, 4))
            self._trace_chunks = [self._trace_cache] if self._trace_chunks else []
        return self._trace_cache

    def get_chain_trace(self, index: int) -> np.ndarray:
        """Trace of chain `index` of the ladder, (n_iterations, 4)."""
        if not -self.num_chains <= index < self.num_chains:
            raise IndexError(f"chain index {index} out of range for {self.num_chains} chains")
        return self._full_trace()[:, index, :].copy()

    def get_samples(self) -> np.ndarray:
        """Cold-chain trace in iteration order, (n_iterations, 4)."""
        return self.get_chain_trace(0)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def compute_rhat(self, warmup: int = 0) -> np.ndarray:
        """Split-chain R-hat per parameter of the cold chain."""
        return compute_split_rhat(self._full_trace()[:, 0, :], warmup)

    def compute_ess(self, warmup: int = 0) -> np.ndarray:
        """Effective sample size per parameter of the cold chain."""
        return compute_ess(self._full_trace()[:, 0, :], warmup)

    def get_swap_rate(self) -> float:
        """Overall replica exchange acceptance rate; 0.0 before any attempt."""
        accepts, attempts = self.get_swap_counts()
        if attempts.sum() == 0:
            return 0.0
        return float(accepts.sum() / attempts.sum())

    def get_swap_rates(self) -> np.ndarray:
        """Acceptance rate per adjacent pair, (n_chains - 1,)."""
        return rates_from_counts(*self.get_swap_counts())

    def get_swap_counts(self):
        """(accepted, attempted) swaps per adjacent pair."""
        return (
            np.asarray(jax.device_get(self._carry.swap_accepts)),
            np.asarray(jax.device_get(self._carry.swap_attempts)),
        )

    def get_acceptance_rates(self) -> np.ndarray:
        """Metropolis acceptance rate per chain, (n_chains,)."""
        states = self._carry.states
        return rates_from_counts(jax.device_get(states.accepted), jax.device_get(states.total))

    def get_step_sizes(self) -> np.ndarray:
        """Current proposal step sizes, (n_chains, 4)."""
        return np.array(jax.device_get(self._carry.states.step_sizes))

    def get_diagnostics(self, warmup: int = 0) -> Diagnostics:
        return Diagnostics(
            rhat=self.compute_rhat(warmup),
            ess=self.compute_ess(warmup),
            swap_rate=self.get_swap_rate(),
            swap_rates=self.get_swap_rates(),
            acceptance_rates=self.get_acceptance_rates(),
            n_samples=max(self.iteration - warmup, 0),
            warmup=warmup,
        )

    def print_summary(self, warmup: int = 0) -> None:
        """Print R-hat/ESS, acceptance and swap tables."""
        diagnostics = self.get_diagnostics(warmup)
        print_rhat_summary(diagnostics.rhat, diagnostics.ess)
        print_acceptance_summary(self.temperatures, diagnostics.acceptance_rates)
        print_swap_acceptance_summary(self.temperatures, *self.get_swap_counts())
