from mcasymptotics.asymptotics import (
    asymptotic_covariance,
    lln_paths,
    running_mean,
    second_moment_matrix,
    standardized_means,
)
from mcasymptotics.config import SimulationConfig, default_config
from mcasymptotics.dgp import (
    Bernoulli,
    Constant,
    Distribution,
    Exponential,
    FromCallable,
    Normal,
    Uniform,
    get_distribution,
    list_distributions,
    register_distribution,
)
from mcasymptotics.exceptions import SingularDesignMatrix
from mcasymptotics.models.ols import OLS
from mcasymptotics.results import FittedModel, ReplicationResult
from mcasymptotics.sample import Sample
from mcasymptotics.simulation import MonteCarloOLS, draw_sample, fit_ols, run

__all__ = [
    "OLS",
    "MonteCarloOLS",
    "draw_sample",
    "fit_ols",
    "run",
    "Sample",
    "FittedModel",
    "ReplicationResult",
    "SingularDesignMatrix",
    "SimulationConfig",
    "default_config",
    "Distribution",
    "Normal",
    "Bernoulli",
    "Exponential",
    "Uniform",
    "Constant",
    "FromCallable",
    "register_distribution",
    "get_distribution",
    "list_distributions",
    "running_mean",
    "lln_paths",
    "standardized_means",
    "second_moment_matrix",
    "asymptotic_covariance",
]
