"""
Prior configuration utilities.

This module provides the data-driven default priors used when a caller has
no prior knowledge, and functions for saving and loading the eight prior
hyperparameters to/from JSON files so a fit can be reproduced (or plotted)
without recomputing them.
"""

import json
from pathlib import Path

import numpy as np

from .mcmc.types import Priors


def default_priors(titre) -> Priors:
    """
    Weakly informative priors centred on the observed titre range.

        floor   ~ Beta(1, 9)          (mostly near zero)
        ceiling ~ Beta(9, 1)          (mostly near one)
        ec50    ~ Normal(midpoint, range / 4)
        slope   ~ Normal(0, 2) truncated to (0, inf)

    A titre range of zero falls back to an ec50 sd of 1.0.
    """
    titre = np.asarray(titre, dtype=float)
    if titre.size == 0:
        raise ValueError("titre is empty: cannot derive default priors")

    lo, hi = float(np.min(titre)), float(np.max(titre))
    titre_range = hi - lo
    ec50_sd = titre_range / 4.0 if titre_range > 0 else 1.0

    return Priors(
        floor_alpha=1.0,
        floor_beta=9.0,
        ceiling_alpha=9.0,
        ceiling_beta=1.0,
        ec50_mean=(lo + hi) / 2.0,
        ec50_sd=ec50_sd,
        slope_mean=0.0,
        slope_sd=2.0,
    )


def save_prior_config(path, priors: Priors) -> str:
    """
    Save prior hyperparameters to JSON.

    Args:
        path: Destination file
        priors: Priors record

    Returns:
        Path to saved config file
    """
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    serializable_config = {name: float(value) for name, value in priors._asdict().items()}

    with open(config_path, 'w') as f:
        json.dump(serializable_config, f, indent=2)

    return str(config_path)


def load_prior_config(path):
    """
    Load prior hyperparameters from JSON.

    Args:
        path: Config file written by save_prior_config

    Returns:
        Priors, or None if file doesn't exist. Missing keys take the Priors
        defaults.
    """
    config_path = Path(path)

    if not config_path.exists():
        return None

    with open(config_path, 'r') as f:
        config = json.load(f)

    unknown = set(config) - set(Priors._fields)
    if unknown:
        raise ValueError(f"Unknown prior fields in {config_path}: {sorted(unknown)}")
    return Priors(**{name: float(value) for name, value in config.items()})
