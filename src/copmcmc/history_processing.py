"""
History processing utilities for sampler output.

This module provides functions for:
- Summarizing posterior draws (mean, sd, 95% interval per parameter)
- Building a titre grid over the observed range
- Evaluating risk and protection curves at a parameter vector
- Pointwise credible bands of the risk curve over posterior draws

Samples are (n_samples, 4) arrays ordered by ParamSlot, as returned by
ParallelTemperingMCMC.get_samples() (after dropping warmup).
"""

import jax
import jax.numpy as jnp
import numpy as np

from .model import response_probability
from .mcmc.types import Params
from .settings import PARAM_NAMES


def _as_samples(samples) -> np.ndarray:
    samples = np.asarray(samples, dtype=float)
    if samples.ndim != 2 or samples.shape[1] != len(PARAM_NAMES):
        raise ValueError(f"samples must be (n_samples, {len(PARAM_NAMES)}), got shape {samples.shape}")
    if samples.shape[0] == 0:
        raise ValueError("samples is empty")
    return samples


def _sorted_quantile(sorted_values: np.ndarray, q: float) -> float:
    """Sorted value at index floor(n * q), clipped to the last index."""
    n = sorted_values.shape[0]
    idx = min(int(np.floor(n * q)), n - 1)
    return float(sorted_values[idx])


def summarize_posterior(samples) -> dict:
    """
    Per-parameter posterior summary.

    Args:
        samples: Posterior draws (n_samples, 4)

    Returns:
        Dict keyed by parameter name with 'mean', 'sd' (population), 'q025'
        and 'q975'
    """
    samples = _as_samples(samples)
    summary = {}
    for i, name in enumerate(PARAM_NAMES):
        column = np.sort(samples[:, i])
        summary[name] = {
            'mean': float(np.mean(column)),
            'sd': float(np.std(column)),
            'q025': _sorted_quantile(column, 0.025),
            'q975': _sorted_quantile(column, 0.975),
        }
    return summary


def posterior_mean_params(samples) -> Params:
    """Posterior mean of each parameter as a Params record."""
    return Params.from_array(_as_samples(samples).mean(axis=0))


def titre_grid(titre, n_points: int = 100) -> np.ndarray:
    """Evenly spaced grid of n_points titres over the observed range."""
    titre = np.asarray(titre, dtype=float)
    if titre.size == 0:
        raise ValueError("titre is empty")
    if n_points < 2:
        raise ValueError(f"n_points must be >= 2, got {n_points}")
    return np.linspace(np.min(titre), np.max(titre), n_points)


def risk_curve(grid, params) -> np.ndarray:
    """Infection probability along the grid."""
    return np.asarray(response_probability(jnp.asarray(grid), jnp.asarray(params)))


def protection_curve(grid, params) -> np.ndarray:
    """Protection probability (1 - infection probability) along the grid."""
    return 1.0 - risk_curve(grid, params)


def posterior_risk_band(grid, samples, lower: float = 0.025, upper: float = 0.975) -> dict:
    """
    Pointwise posterior mean and credible band of the risk curve.

    Args:
        grid: Titres (n_grid,)
        samples: Posterior draws (n_samples, 4)
        lower: Lower quantile of the band
        upper: Upper quantile of the band

    Returns:
        Dict with 'grid', 'mean', 'lower', 'upper', each (n_grid,)
    """
    if not 0.0 <= lower < upper <= 1.0:
        raise ValueError(f"need 0 <= lower < upper <= 1, got lower={lower}, upper={upper}")
    samples = _as_samples(samples)
    grid = np.asarray(grid, dtype=float)

    curves = jax.vmap(lambda p: response_probability(jnp.asarray(grid), p))(jnp.asarray(samples))
    curves = np.asarray(curves)  # (n_samples, n_grid)

    return {
        'grid': grid,
        'mean': curves.mean(axis=0),
        'lower': np.quantile(curves, lower, axis=0),
        'upper': np.quantile(curves, upper, axis=0),
    }
