"""
Error Handling and Validation Utilities for the Sampler

This module provides construction-time validation and post-run diagnostic
tools. Every validator collects all problems before raising, so a caller
sees the full list in one EngineConfigurationError.
"""

from typing import Any, Dict, Optional

import numpy as np

from .settings import PARAM_NAMES, RHAT_THRESHOLD, MIN_ESS

import logging
logger = logging.getLogger('copmcmc')


class EngineConfigurationError(ValueError):
    """Invalid dataset, priors or engine settings, raised before any sampling."""


def _raise_if_errors(errors, what: str) -> None:
    if errors:
        raise EngineConfigurationError(f"Invalid {what}:\n  " + "\n  ".join(errors))


def data_errors(titre: np.ndarray, outcome: np.ndarray) -> list:
    """List the problems with a (titre, outcome) pair; empty if valid."""
    errors = []

    if titre.ndim != 1:
        errors.append(f"titre must be 1-D, got shape {titre.shape}")
    if outcome.ndim != 1:
        errors.append(f"outcome must be 1-D, got shape {outcome.shape}")

    if titre.size == 0 or outcome.size == 0:
        errors.append("dataset is empty: at least one observation is required")
    elif titre.shape[0] != outcome.shape[0]:
        errors.append(
            f"titre and outcome lengths differ ({titre.shape[0]} vs {outcome.shape[0]})"
        )

    if titre.size and not np.all(np.isfinite(titre)):
        errors.append("titre contains NaN or Inf values")
    if outcome.size and not np.all(np.isin(outcome, (0, 1))):
        errors.append("outcome must contain only 0 and 1")

    return errors


def validate_data(titre, outcome) -> None:
    """
    Validates a dataset.

    Raises:
        EngineConfigurationError: If the dataset is invalid
    """
    _raise_if_errors(data_errors(np.asarray(titre, dtype=float), np.asarray(outcome)), "dataset")


def prior_errors(priors) -> list:
    """List the problems with a Priors record; empty if valid."""
    errors = []
    for name, value in priors._asdict().items():
        if not np.isfinite(value):
            errors.append(f"prior {name} must be finite, got {value}")

    positive_fields = ('floor_alpha', 'floor_beta', 'ceiling_alpha', 'ceiling_beta',
                       'ec50_sd', 'slope_sd')
    for name in positive_fields:
        value = getattr(priors, name)
        if np.isfinite(value) and value <= 0:
            errors.append(f"prior {name} must be > 0, got {value}")
    return errors


def validate_priors(priors) -> None:
    """
    Validates prior hyperparameters.

    Raises:
        EngineConfigurationError: If any shape or scale is non-positive
    """
    _raise_if_errors(prior_errors(priors), "priors")


def validate_engine_config(
    data,
    priors,
    num_chains: int,
    max_temperature: float,
    chunk_size: int,
    adapt_until: Optional[int],
) -> None:
    """
    Validates everything an engine needs before it initializes any chain.

    Args:
        data: MCMCData
        priors: Priors
        num_chains: Number of chains in the ladder
        max_temperature: Temperature of the hottest chain
        chunk_size: Iterations per compiled chunk
        adapt_until: Step count after which step sizes freeze, or None

    Raises:
        EngineConfigurationError: Listing every problem found
    """
    errors = data_errors(np.asarray(data.titre), np.asarray(data.outcome))
    errors.extend(prior_errors(priors))

    if not isinstance(num_chains, (int, np.integer)) or num_chains < 1:
        errors.append(f"num_chains must be an integer >= 1, got {num_chains}")

    if not np.isfinite(max_temperature) or max_temperature <= 0:
        errors.append(f"max_temperature must be > 0, got {max_temperature}")

    if not isinstance(chunk_size, (int, np.integer)) or chunk_size < 1:
        errors.append(f"chunk_size must be an integer >= 1, got {chunk_size}")

    if adapt_until is not None and adapt_until < 0:
        errors.append(f"adapt_until must be >= 0 or None, got {adapt_until}")

    _raise_if_errors(errors, "engine configuration")


def diagnose_sampler_issues(samples: np.ndarray, diagnostics) -> Dict[str, Any]:
    """
    Analyzes a cold-chain trace and its diagnostics to identify common issues.

    Non-convergence is reported as warnings, never raised.

    Args:
        samples: Post-warmup cold-chain trace (n_samples, 4)
        diagnostics: Diagnostics record for the same trace

    Returns:
        Dictionary with issues, warnings, and info lists
    """
    report = {
        'issues': [],
        'warnings': [],
        'info': []
    }
    samples = np.asarray(samples)

    # Check for NaN/Inf in the trace
    if not np.all(np.isfinite(samples)):
        report['issues'].append(
            "Trace contains NaN or Inf values - sampler became unstable"
        )

    # Check for stuck parameters (variance near zero)
    if samples.shape[0] > 1:
        stuck = np.var(samples, axis=0) < 1e-10
        for name in np.asarray(PARAM_NAMES)[stuck]:
            report['warnings'].append(f"{name} appears stuck (near-zero variance)")

    rhat = np.asarray(diagnostics.rhat, dtype=float)
    ess = np.asarray(diagnostics.ess, dtype=float)
    if diagnostics.n_samples < 100:
        report['warnings'].append(
            f"Only {diagnostics.n_samples} post-warmup samples - R-hat and ESS are not meaningful yet"
        )
    else:
        for name, r, e in zip(PARAM_NAMES, rhat, ess):
            if not np.isfinite(r):
                report['warnings'].append(f"{name} R-hat is not finite")
            elif r >= RHAT_THRESHOLD:
                report['warnings'].append(f"{name} R-hat {r:.3f} >= {RHAT_THRESHOLD}")
            if np.isfinite(e) and e <= MIN_ESS:
                report['warnings'].append(f"{name} ESS {e:.0f} <= {MIN_ESS}")

    acceptance = np.asarray(diagnostics.acceptance_rates, dtype=float)
    if acceptance.size and (np.any(acceptance < 0.05) or np.any(acceptance > 0.8)):
        report['warnings'].append(
            f"Acceptance rates outside [5%, 80%]: min {acceptance.min():.1%}, max {acceptance.max():.1%}"
        )

    if len(diagnostics.swap_rates) > 0:
        if diagnostics.swap_rate < 0.05:
            report['warnings'].append(
                f"Swap rate {diagnostics.swap_rate:.1%} is low - chains barely exchange states"
            )
        elif diagnostics.swap_rate > 0.9:
            report['warnings'].append(
                f"Swap rate {diagnostics.swap_rate:.1%} is high - ladder may be too narrow"
            )

    # Summary info
    report['info'].append(f"Post-warmup samples: {diagnostics.n_samples}")
    report['info'].append(f"Number of chains: {acceptance.size}")
    report['info'].append(f"Swap rate: {diagnostics.swap_rate:.1%}")

    return report


def print_diagnostics(report: Dict[str, Any]) -> None:
    """Pretty-print diagnostics from diagnose_sampler_issues."""
    if report['issues']:
        logger.error("[ERROR] ISSUES:")
        for issue in report['issues']:
            logger.error(f"  - {issue}")

    if report['warnings']:
        logger.warning("[WARN] WARNINGS:")
        for warning in report['warnings']:
            logger.warning(f"  - {warning}")

    if report['info']:
        logger.info("[INFO] INFO:")
        for info in report['info']:
            logger.info(f"  - {info}")

    if not report['issues'] and not report['warnings']:
        logger.info("[OK] No issues detected")
