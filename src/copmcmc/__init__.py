"""
copmcmc - Parallel Tempering MCMC for Correlates of Protection

Fits a four-parameter logistic curve of infection probability against a
biomarker titre with a parallel tempering Metropolis sampler.

Public API:
    Engine:
        ParallelTemperingMCMC - Tempered ladder of chains, run/sample/diagnose
        EngineStatus - Lifecycle enum (CONSTRUCTED, RUNNING, COMPLETED)

    Types:
        Params - One draw of (floor, ceiling, ec50, slope)
        Priors - Eight prior hyperparameters
        MCMCData - Validated (titre, outcome) dataset
        RunParams - Static sampler constants
        ParamSlot - IntEnum of parameter positions

    Model:
        response_probability - 4PL infection probability
        log_posterior_tempered - Tempered log posterior

    Diagnostics:
        compute_split_rhat, compute_ess, compute_replicate_rhat
        Diagnostics - Record returned by ParallelTemperingMCMC.get_diagnostics
        diagnose_sampler_issues, print_diagnostics

    Replicates & Summaries:
        run_replicates - Independent engines combined with multi-chain R-hat
        summarize_posterior, posterior_mean_params, titre_grid,
        risk_curve, protection_curve, posterior_risk_band

    Model Comparison:
        compute_elpd, protection_auc, bootstrap_auc_interval, compare_biomarkers

    Priors:
        default_priors, save_prior_config, load_prior_config

Example:
    from copmcmc import MCMCData, Priors, ParallelTemperingMCMC

    data = MCMCData.from_arrays(titre, outcome)
    engine = ParallelTemperingMCMC(data, Priors(), num_chains=10, rng_seed=1)
    engine.run(10000)
    samples = engine.get_samples()[5000:]
    print(engine.compute_rhat(warmup=5000), engine.get_swap_rate())
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

from .settings import ParamSlot, PARAM_NAMES
from .error_handling import (
    EngineConfigurationError,
    diagnose_sampler_issues,
    print_diagnostics,
)
from .model import response_probability, log_posterior_tempered
from .mcmc import (
    ParallelTemperingMCMC,
    EngineStatus,
    Params,
    Priors,
    MCMCData,
    RunParams,
    Diagnostics,
    compute_split_rhat,
    compute_ess,
    compute_replicate_rhat,
)
from .prior_config import default_priors, save_prior_config, load_prior_config
from .history_processing import (
    summarize_posterior,
    posterior_mean_params,
    titre_grid,
    risk_curve,
    protection_curve,
    posterior_risk_band,
)
from .model_comparison import (
    pointwise_log_likelihood,
    compute_elpd,
    protection_auc,
    bootstrap_auc_interval,
    compare_biomarkers,
)
from .replicates import run_replicates

__version__ = "0.1.0"
