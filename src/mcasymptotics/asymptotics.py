# src/mcasymptotics/asymptotics.py
"""Law of Large Numbers and Central Limit Theorem by simulation.

Population moments come from the analytic mean/variance of each Distribution;
the OLS limit sqrt(n)(beta_hat - beta) -> N(0, sigma^2 Q^{-1}) uses
Q = E[x x'] with an intercept and mutually independent regressor columns.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence

import torch

from mcasymptotics.dgp import Distribution
from mcasymptotics.linalg import safe_cholesky
from mcasymptotics.typing import DEFAULT_DTYPE


def running_mean(draws: torch.Tensor) -> torch.Tensor:
    """Cumulative means along the last axis: out[..., t] = mean(draws[..., :t+1])."""
    n = draws.shape[-1]
    counts = torch.arange(1, n + 1, dtype=draws.dtype, device=draws.device)
    return torch.cumsum(draws, dim=-1) / counts


def lln_paths(
    dist: Distribution,
    n: int,
    R: int = 1,
    *,
    generator: Optional[torch.Generator] = None,
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> torch.Tensor:
    """R running-mean paths of length n, shape (R,n). Each path tends to dist.mean."""
    draws = dist.sample((int(R), int(n)), generator=generator, dtype=dtype)
    return running_mean(draws)


def standardized_means(
    dist: Distribution,
    n: int,
    R: int,
    *,
    generator: Optional[torch.Generator] = None,
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> torch.Tensor:
    """
    sqrt(n) (xbar - mu) / sigma for R independent samples of size n, shape (R,).

    Approximately N(0,1) for large n.
    """
    if not dist.variance > 0:
        raise ValueError(f"Distribution must have positive finite variance. Got {dist.variance}")
    draws = dist.sample((int(R), int(n)), generator=generator, dtype=dtype)
    xbar = draws.mean(dim=-1)
    return math.sqrt(n) * (xbar - dist.mean) / math.sqrt(dist.variance)


def second_moment_matrix(
    regressors: Sequence[Distribution],
    *,
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> torch.Tensor:
    """
    Q = E[x x'] for x = (1, x_1, ..., x_{k-1}) with independent columns, (k,k).

    Off-diagonal: E[x_i] E[x_j]; diagonal: E[x_i^2].
    """
    mu = torch.tensor([1.0] + [d.mean for d in regressors], dtype=dtype)
    var = torch.tensor([0.0] + [d.variance for d in regressors], dtype=dtype)
    if not torch.isfinite(mu).all() or not torch.isfinite(var).all():
        raise ValueError("All regressor distributions need a known mean and variance.")
    return torch.outer(mu, mu) + torch.diag(var)


def asymptotic_covariance(
    regressors: Sequence[Distribution],
    error: Distribution,
    *,
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> torch.Tensor:
    """
    Limit covariance of sqrt(n)(beta_hat - beta): sigma^2 Q^{-1}, (k,k).

    Raises SingularDesignMatrix if Q is singular (e.g. a constant regressor).
    """
    Q = second_moment_matrix(regressors, dtype=dtype)
    sigma2 = float(error.variance)
    if not math.isfinite(sigma2):
        raise ValueError("Error distribution needs a known variance.")
    L = safe_cholesky(Q)
    Q_inv = torch.cholesky_solve(torch.eye(Q.shape[0], dtype=dtype), L)
    return sigma2 * Q_inv
