"""
MCMC Diagnostics.

Convergence diagnostics computed host-side on traces:
- compute_split_rhat: Gelman-Rubin R-hat from one trace split in two halves
- compute_ess: Effective sample size with autocorrelation truncation
- compute_replicate_rhat: Gelman-Rubin R-hat across independent replicates
- Diagnostics: Record bundling R-hat, ESS and rate statistics
- print_rhat_summary: Print R-hat/ESS per parameter with convergence check
- print_acceptance_summary: Print per-chain Metropolis acceptance rates
- print_swap_acceptance_summary: Print replica exchange rates per pair

Traces are (n_samples, 4) arrays ordered by ParamSlot. Fewer than
MIN_DIAGNOSTIC_SAMPLES post-warmup samples give the fallback values
R-hat = 1.0 and ESS = 0.0. A parameter with zero variance gives NaN.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

import numpy as np

from ..settings import (
    PARAM_NAMES,
    N_PARAMS,
    MIN_DIAGNOSTIC_SAMPLES,
    MAX_ACF_LAG,
    RHAT_THRESHOLD,
    MIN_ESS,
)


def _post_warmup(samples: np.ndarray, warmup: int) -> np.ndarray:
    samples = np.asarray(samples, dtype=float)
    if samples.ndim != 2:
        raise ValueError(f"samples must be (n_samples, n_params), got shape {samples.shape}")
    if warmup < 0:
        raise ValueError(f"warmup must be >= 0, got {warmup}")
    return samples[warmup:]


def compute_split_rhat(samples: np.ndarray, warmup: int = 0) -> np.ndarray:
    """
    Split-chain Gelman-Rubin R-hat.

    The post-warmup trace is split into two contiguous halves (the second
    takes the extra draw when the length is odd), treated as two chains:

        W = mean of the two halves' sample variances
        B = n * sum over halves of (half mean - overall mean)^2
        R-hat = sqrt(((n - 1) / n * W + B / n) / W)

    with n the length of the first half.

    Args:
        samples: Trace (n_samples, n_params)
        warmup: Number of leading draws to discard

    Returns:
        rhat: (n_params,) array
    """
    x = _post_warmup(samples, warmup)
    n_total, n_params = x.shape
    if n_total < MIN_DIAGNOSTIC_SAMPLES:
        return np.ones(n_params)

    half = n_total // 2
    first, second = x[:half], x[half:]

    mean1 = first.mean(axis=0)
    mean2 = second.mean(axis=0)
    overall = (mean1 + mean2) / 2.0

    W = (first.var(axis=0, ddof=1) + second.var(axis=0, ddof=1)) / 2.0
    B = half * ((mean1 - overall) ** 2 + (mean2 - overall) ** 2)
    var_plus = ((half - 1.0) / half) * W + B / half

    with np.errstate(divide='ignore', invalid='ignore'):
        rhat = np.sqrt(var_plus / W)
    return np.where(W > 0, rhat, np.nan)


def _ess_1d(x: np.ndarray) -> float:
    n = x.shape[0]
    mean = x.mean()
    var = x.var(ddof=1)
    if not var > 0:
        return float('nan')

    centered = x - mean
    acf_sum = 0.0
    for lag in range(1, min(MAX_ACF_LAG, n // 2)):
        acf = np.dot(centered[lag:], centered[:-lag]) / ((n - lag) * var)
        acf_sum += acf
        # Truncate at the first negative autocorrelation (included in the sum)
        if acf < 0.0:
            break

    return n / (1.0 + 2.0 * acf_sum)


def compute_ess(samples: np.ndarray, warmup: int = 0) -> np.ndarray:
    """
    Effective sample size per parameter.

        ESS = n / (1 + 2 * sum(acf))

    summing lag 1, 2, ... autocorrelations up to lag min(100, n / 2) and
    stopping after the first negative one.

    Args:
        samples: Trace (n_samples, n_params)
        warmup: Number of leading draws to discard

    Returns:
        ess: (n_params,) array
    """
    x = _post_warmup(samples, warmup)
    n_total, n_params = x.shape
    if n_total < MIN_DIAGNOSTIC_SAMPLES:
        return np.zeros(n_params)
    return np.array([_ess_1d(x[:, p]) for p in range(n_params)])


def compute_replicate_rhat(history: np.ndarray) -> np.ndarray:
    """
    Classic Gelman-Rubin R-hat across independent replicates.

        B = n * var(replicate means, ddof=1)
        W = mean of the replicates' sample variances
        R-hat = sqrt(((n - 1) * W + B) / n / W)

    Args:
        history: Draws (n_samples, n_replicates, n_params)

    Returns:
        rhat: (n_params,) array. With a single replicate the split-chain
        R-hat of that replicate is returned.
    """
    history = np.asarray(history, dtype=float)
    if history.ndim != 3:
        raise ValueError(
            f"history must be (n_samples, n_replicates, n_params), got shape {history.shape}"
        )
    n_samples, n_replicates, n_params = history.shape
    if n_replicates == 1:
        return compute_split_rhat(history[:, 0, :])
    if n_samples < 2:
        return np.ones(n_params)

    replicate_means = history.mean(axis=0)  # (n_replicates, n_params)
    B = n_samples * replicate_means.var(axis=0, ddof=1)
    W = history.var(axis=0, ddof=1).mean(axis=0)

    with np.errstate(divide='ignore', invalid='ignore'):
        rhat = np.sqrt(((n_samples - 1) * W + B) / n_samples / W)
    return np.where(W > 0, rhat, np.nan)


def rates_from_counts(accepts: np.ndarray, attempts: np.ndarray) -> np.ndarray:
    """Elementwise accepts / attempts, 0.0 where nothing was attempted."""
    accepts = np.asarray(accepts, dtype=float)
    attempts = np.asarray(attempts, dtype=float)
    return np.divide(accepts, attempts, out=np.zeros_like(accepts), where=attempts > 0)


@dataclass(frozen=True)
class Diagnostics:
    """Convergence and mixing statistics of one engine at one point in time."""
    rhat: np.ndarray              # (4,) split-chain R-hat of the cold chain
    ess: np.ndarray               # (4,) ESS of the cold chain
    swap_rate: float              # overall replica exchange acceptance rate
    swap_rates: np.ndarray        # (n_chains - 1,) per adjacent pair
    acceptance_rates: np.ndarray  # (n_chains,) Metropolis acceptance per chain
    n_samples: int                # post-warmup draws the statistics use
    warmup: int

    def converged(self, rhat_threshold: float = RHAT_THRESHOLD, min_ess: float = MIN_ESS) -> bool:
        """True if every parameter has R-hat below threshold and ESS above minimum."""
        rhat = np.asarray(self.rhat)
        ess = np.asarray(self.ess)
        return bool(np.all(rhat < rhat_threshold) and np.all(ess > min_ess))

    def to_dict(self) -> Dict[str, Any]:
        """Plain-Python representation (lists and floats)."""
        out = asdict(self)
        out['rhat'] = dict(zip(PARAM_NAMES, np.asarray(self.rhat).tolist()))
        out['ess'] = dict(zip(PARAM_NAMES, np.asarray(self.ess).tolist()))
        out['swap_rates'] = np.asarray(self.swap_rates).tolist()
        out['acceptance_rates'] = np.asarray(self.acceptance_rates).tolist()
        return out


def print_rhat_summary(rhat: np.ndarray, ess: Optional[np.ndarray] = None,
                       threshold: float = RHAT_THRESHOLD) -> None:
    """
    Print R-hat (and optionally ESS) per parameter with a convergence check.

    Args:
        rhat: (4,) R-hat values
        ess: Optional (4,) ESS values
        threshold: R-hat convergence threshold
    """
    rhat = np.asarray(rhat, dtype=float)
    print(f"\n--- Split-chain R-hat ({N_PARAMS} params) ---")
    for i, name in enumerate(PARAM_NAMES):
        line = f"  {name:<8} R-hat: {rhat[i]:.4f}"
        if ess is not None:
            line += f"  ESS: {ess[i]:.1f}"
        print(line)

    n_nan = np.sum(~np.isfinite(rhat))
    if n_nan > 0:
        print(f"  WARNING: {n_nan} params have NaN/Inf R-hat (stuck chain)")

    if np.all(rhat < threshold):
        print(f"  Converged (max < {threshold:.4f})")
    else:
        print(f"  Not Converged (max = {np.nanmax(rhat):.4f} >= {threshold:.4f})")


def print_acceptance_summary(temperatures: np.ndarray, acceptance_rates: np.ndarray) -> None:
    """
    Print summary statistics for Metropolis acceptance rates.

    Args:
        temperatures: Temperature ladder (n_chains,)
        acceptance_rates: Acceptance rate per chain (n_chains,)
    """
    acceptance_rates = np.asarray(acceptance_rates, dtype=float)
    print(f"\n--- Metropolis Acceptance Rates ({len(acceptance_rates)} chains) ---")
    print(f"  Mean: {np.mean(acceptance_rates):.1%}  Median: {np.median(acceptance_rates):.1%}  "
          f"Min: {np.min(acceptance_rates):.1%}  Max: {np.max(acceptance_rates):.1%}")
    for t, rate in zip(temperatures, acceptance_rates):
        print(f"  T={t:.3f}: {rate:.1%}")

    low_rate_mask = acceptance_rates < 0.10
    if np.any(low_rate_mask):
        print(f"  WARNING: {np.sum(low_rate_mask)} chain(s) have acceptance rate < 10%")


def print_swap_acceptance_summary(
    temperatures: np.ndarray,
    swap_accepts: np.ndarray,
    swap_attempts: np.ndarray
) -> None:
    """
    Print summary statistics for replica exchange acceptance rates.

    Args:
        temperatures: Temperature ladder (n_chains,)
        swap_accepts: Number of accepted swaps per adjacent pair
        swap_attempts: Number of attempted swaps per adjacent pair
    """
    n_chains = len(temperatures)
    if n_chains <= 1:
        return

    print(f"\n--- Parallel Tempering Swap Rates ({n_chains} temperatures) ---")
    print(f"  Temperature ladder: {', '.join(f'{t:.3f}' for t in temperatures)}")

    swap_rates = rates_from_counts(swap_accepts, swap_attempts)
    for i, rate in enumerate(swap_rates):
        print(f"  Pair ({temperatures[i]:.3f} <-> {temperatures[i + 1]:.3f}): "
              f"{rate:.1%} ({swap_accepts[i]}/{swap_attempts[i]})")

    total_attempts = np.sum(swap_attempts)
    overall = np.sum(swap_accepts) / total_attempts if total_attempts > 0 else 0.0
    print(f"  Overall swap rate: {overall:.1%}")

    low_swap_mask = (swap_rates < 0.10) & (np.asarray(swap_attempts) > 0)
    if np.any(low_swap_mask):
        print("  WARNING: Some swap rates are < 10% - consider adjusting temperature spacing")
