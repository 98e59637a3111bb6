# src/mcasymptotics/simulation.py
"""Repeated-sampling Monte Carlo for OLS.

For a fixed true beta and fixed marginal distributions of the regressors and
the error, draw R independent samples of size n, fit OLS to each and collect
(beta_hat_r, se_r). All replications are drawn and fitted in one batch along
the replication axis.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import torch

from mcasymptotics.dgp import Distribution, as_distribution
from mcasymptotics.exceptions import ShapeError
from mcasymptotics.linalg import SolveMethod
from mcasymptotics.models.ols import OLS
from mcasymptotics.models.ols import fit_ols as _fit_ols
from mcasymptotics.results import FittedModel, ReplicationResult
from mcasymptotics.sample import Sample
from mcasymptotics.typing import DEFAULT_DTYPE, Device, as_beta

logger = logging.getLogger("mcasymptotics")


class MonteCarloOLS:
    """
    Monte Carlo OLS simulator.

    Parameters
    ----------
    beta : true parameter vector (k,), intercept first
    regressors : k-1 distributions (or zero-argument callables), one per slope
    error : distribution of the additive error term
    seed : seed of the torch.Generator; run() reseeds from it on every call
    solve_method : 'cholesky' (default) or 'qr'
    """

    def __init__(
        self,
        beta: Any,
        regressors: Sequence[Any],
        error: Any,
        *,
        seed: Optional[int] = None,
        solve_method: SolveMethod = "cholesky",
        param_names: Optional[Sequence[str]] = None,
        dtype: torch.dtype = DEFAULT_DTYPE,
        device: Optional[Device] = None,
    ) -> None:
        self.beta = as_beta(beta).to(dtype=dtype, device=device)
        self.regressors: tuple[Distribution, ...] = tuple(as_distribution(d) for d in regressors)
        self.error = as_distribution(error)
        self.seed = seed
        self.solve_method = solve_method
        self.dtype = dtype
        self.device = device

        if len(self.regressors) != self.k - 1:
            raise ShapeError(
                f"Need k-1={self.k - 1} regressor distributions for beta of length k={self.k}. "
                f"Got {len(self.regressors)}."
            )
        if param_names is not None and len(param_names) != self.k:
            raise ShapeError(f"param_names must have length k={self.k}. Got {len(param_names)}.")
        self.param_names = list(param_names) if param_names is not None else None

        self.generator = self._new_generator()

    @property
    def k(self) -> int:
        return int(self.beta.shape[0])

    def _new_generator(self) -> torch.Generator:
        g = torch.Generator(device=self.device if self.device is not None else "cpu")
        if self.seed is not None:
            g.manual_seed(int(self.seed))
        else:
            g.seed()
        return g

    def reset(self) -> None:
        """Restart the random stream from seed."""
        self.generator = self._new_generator()

    def _draw(self, n: int, R: int) -> tuple[torch.Tensor, torch.Tensor]:
        # each regressor column over all (R,n) cells, then the error
        if int(n) <= 0 or int(R) <= 0:
            raise ValueError(f"n and R must be positive. Got n={n}, R={R}")
        shape = (int(R), int(n))
        opts = dict(generator=self.generator, dtype=self.dtype, device=self.device)

        cols = [torch.ones(shape, dtype=self.dtype, device=self.device)]
        cols += [d.sample(shape, **opts) for d in self.regressors]
        X = torch.stack(cols, dim=2)  # (R,n,k)
        u = self.error.sample(shape, **opts)
        return X, u

    def draw_samples(self, n: int, R: int) -> tuple[torch.Tensor, torch.Tensor]:
        """
        Draw R independent samples of size n.

        Returns X (R,n,k) with the intercept first and y (R,n).
        """
        X, u = self._draw(n, R)
        y = torch.einsum("rnk,k->rn", X, self.beta) + u
        return X, y

    def draw_sample(self, n: int) -> Sample:
        """Draw one sample of n observations: y_i = x_i' beta + u_i."""
        X, u = self._draw(n, 1)
        X, u = X[0], u[0]
        return Sample(X=X, y=X @ self.beta + u, u=u)

    def fit_ols(self, sample: Sample) -> FittedModel:
        return _fit_ols(sample, solve_method=self.solve_method)

    def run(self, n: int, R: int) -> ReplicationResult:
        """
        Draw and fit R independent replications of size n.

        Raises SingularDesignMatrix (aborting the run) if any replication's
        design is singular.
        """
        self.reset()
        logger.debug(
            "Monte Carlo OLS run: n=%d R=%d k=%d seed=%s solve_method=%s",
            n, R, self.k, self.seed, self.solve_method,
        )
        X, y = self.draw_samples(n, R)
        res = OLS(
            X,
            y,
            solve_method=self.solve_method,
            beta_true=self.beta,
            param_names=self.param_names,
        )
        logger.debug("Monte Carlo OLS run finished: %d replications fitted", res.R)
        return res


def draw_sample(
    n: int,
    regressor_generators: Sequence[Any],
    error_generator: Any,
    *,
    beta: Any,
    generator: Optional[torch.Generator] = None,
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> Sample:
    """Draw one sample of size n from y = x'beta + u."""
    sim = MonteCarloOLS(beta, regressor_generators, error_generator, dtype=dtype)
    if generator is not None:
        sim.generator = generator
    return sim.draw_sample(n)


def fit_ols(sample: Sample, *, solve_method: SolveMethod = "cholesky") -> FittedModel:
    return _fit_ols(sample, solve_method=solve_method)


def run(
    n: int,
    R: int,
    beta: Any,
    regressor_generators: Sequence[Any],
    error_generator: Any,
    *,
    seed: Optional[int] = None,
    solve_method: SolveMethod = "cholesky",
    dtype: torch.dtype = DEFAULT_DTYPE,
) -> ReplicationResult:
    """Run R replications of draw_sample + fit_ols."""
    sim = MonteCarloOLS(
        beta,
        regressor_generators,
        error_generator,
        seed=seed,
        solve_method=solve_method,
        dtype=dtype,
    )
    return sim.run(n, R)
