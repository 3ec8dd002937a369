"""
Model comparison metrics for fitted curves.

Scores a fitted parameter vector (typically the posterior mean) against its
dataset:
- pointwise_log_likelihood / compute_elpd: Expected log predictive density
  with its standard error
- protection_auc / bootstrap_auc_interval: ROC AUC of the protection
  probability for predicting non-infection, with a bootstrap interval
- compare_biomarkers: All of the above for several biomarkers at once
"""

from typing import Dict, Mapping, Tuple

import numpy as np

from .history_processing import risk_curve

# Probability clipping for the pointwise log likelihood
PROB_CLIP = 1e-4
N_ROC_THRESHOLDS = 100


def pointwise_log_likelihood(data, params) -> np.ndarray:
    """Bernoulli log likelihood of each observation, probability clipped to [1e-4, 1 - 1e-4]."""
    titre = np.asarray(data.titre, dtype=float)
    outcome = np.asarray(data.outcome)
    p = np.clip(risk_curve(titre, params), PROB_CLIP, 1.0 - PROB_CLIP)
    return np.where(outcome == 1, np.log(p), np.log1p(-p))


def compute_elpd(data, params) -> Tuple[float, float]:
    """
    Expected log predictive density and its standard error.

        elpd = sum(pointwise)
        se = sd(pointwise, ddof=1) * sqrt(N)

    The standard error is NaN for a single observation.
    """
    pointwise = pointwise_log_likelihood(data, params)
    n = pointwise.shape[0]
    elpd = float(np.sum(pointwise))
    se = float(np.std(pointwise, ddof=1) * np.sqrt(n)) if n > 1 else float('nan')
    return elpd, se


def protection_auc(protection_probs, outcome) -> float:
    """
    ROC AUC of protection probabilities for predicting non-infection.

    An observation is predicted protected when its protection probability is
    at least the threshold. The curve is traced at 100 evenly spaced
    thresholds on [0, 1], sorted by false-positive rate (then true-positive
    rate) and integrated with the trapezoidal rule.
    """
    probs = np.asarray(protection_probs, dtype=float)
    protected = np.asarray(outcome) == 0

    thresholds = np.linspace(0.0, 1.0, N_ROC_THRESHOLDS)
    predicted = probs[None, :] >= thresholds[:, None]  # (n_thresholds, N)

    tp = np.sum(predicted & protected, axis=1)
    fp = np.sum(predicted & ~protected, axis=1)
    fn = np.sum(~predicted & protected, axis=1)
    tn = np.sum(~predicted & ~protected, axis=1)

    tpr = np.divide(tp, tp + fn, out=np.zeros(len(thresholds)), where=(tp + fn) > 0)
    fpr = np.divide(fp, fp + tn, out=np.zeros(len(thresholds)), where=(fp + tn) > 0)

    # Within a run of equal FPR the curve climbs in TPR
    order = np.lexsort((tpr, fpr))
    fpr, tpr = fpr[order], tpr[order]
    return float(np.sum(np.diff(fpr) * (tpr[1:] + tpr[:-1]) / 2.0))


def bootstrap_auc_interval(protection_probs, outcome, n_boot: int = 100,
                           seed: int = 0) -> Tuple[float, float]:
    """
    Percentile (2.5%, 97.5%) interval of bootstrap-resampled AUCs.

    Quantiles are the sorted AUC at index floor(n_boot * q).
    """
    if n_boot < 1:
        raise ValueError(f"n_boot must be >= 1, got {n_boot}")
    probs = np.asarray(protection_probs, dtype=float)
    outcome = np.asarray(outcome)
    n = probs.shape[0]

    rng = np.random.default_rng(seed)
    aucs = np.empty(n_boot)
    for b in range(n_boot):
        idx = rng.integers(0, n, size=n)
        aucs[b] = protection_auc(probs[idx], outcome[idx])
    aucs.sort()

    lo = aucs[min(int(np.floor(0.025 * n_boot)), n_boot - 1)]
    hi = aucs[min(int(np.floor(0.975 * n_boot)), n_boot - 1)]
    return float(lo), float(hi)


def compare_biomarkers(fits: Mapping[str, tuple], n_boot: int = 100, seed: int = 0) -> Dict[str, dict]:
    """
    Score several biomarker fits side by side.

    Args:
        fits: Mapping of biomarker name to (data, params)
        n_boot: Bootstrap resamples for the AUC interval
        seed: Bootstrap seed

    Returns:
        Dict keyed by biomarker with 'elpd', 'elpd_se', 'auc' and 'auc_ci'
    """
    metrics = {}
    for name, (data, params) in fits.items():
        elpd, se = compute_elpd(data, params)
        protection = 1.0 - risk_curve(np.asarray(data.titre, dtype=float), params)
        metrics[name] = {
            'elpd': elpd,
            'elpd_se': se,
            'auc': protection_auc(protection, data.outcome),
            'auc_ci': bootstrap_auc_interval(protection, data.outcome, n_boot=n_boot, seed=seed),
        }
    return metrics
