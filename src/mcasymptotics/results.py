# src/mcasymptotics/results.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional, Sequence

import numpy as np
import scipy.stats as st
import torch

from mcasymptotics.exceptions import ShapeError
from mcasymptotics.typing import as_beta


def _to_numpy(x: torch.Tensor) -> np.ndarray:
    """Detach tensor and move to CPU NumPy array (required for SciPy)."""
    return x.detach().cpu().numpy()


def _from_numpy(x: np.ndarray, ref: torch.Tensor) -> torch.Tensor:
    """Create a tensor on the same device and dtype as `ref`."""
    return torch.as_tensor(x, device=ref.device, dtype=ref.dtype)


def _fmt(x: float, digits: int = 3) -> str:
    return f"{x:.{digits}f}"


def _two_sided_pvalues(stat: torch.Tensor, *, use_t: bool, df_resid: int) -> torch.Tensor:
    """
    Two-sided p-values for a statistic tensor.

    - use_t=True : Student-t(df_resid)
    - use_t=False: Normal(0,1)
    """
    s = torch.abs(stat)
    s_np = _to_numpy(s)
    if use_t:
        p_np = 2.0 * st.t.sf(s_np, df=df_resid)
    else:
        p_np = 2.0 * st.norm.sf(s_np)
    return _from_numpy(p_np, ref=s)


def _critical_value(alpha: float, *, use_t: bool, df_resid: int) -> float:
    q = 1.0 - alpha / 2.0
    if use_t:
        return float(st.t.ppf(q, df=df_resid))
    return float(st.norm.ppf(q))


@dataclass(frozen=True)
class FittedModel:
    """OLS fit of a single sample."""

    params: torch.Tensor   # (k,)
    vcov: torch.Tensor     # (k,k)
    sigma2: torch.Tensor   # ()
    nobs: int
    df_resid: int
    use_t: bool = False

    @property
    def k(self) -> int:
        return int(self.params.shape[0])

    @property
    def stderr(self) -> torch.Tensor:
        return torch.sqrt(torch.diagonal(self.vcov, dim1=-2, dim2=-1))

    @property
    def statvalues(self) -> torch.Tensor:
        """z-stats (or t-stats if use_t) for H0: beta_i = 0."""
        return self.params / self.stderr

    @property
    def pvalues(self) -> torch.Tensor:
        return _two_sided_pvalues(self.statvalues, use_t=self.use_t, df_resid=self.df_resid)

    def conf_int(self, alpha: float = 0.05, use_t: Optional[bool] = None) -> torch.Tensor:
        """Wald intervals, shape (k,2)."""
        if use_t is None:
            use_t = self.use_t
        crit = _critical_value(alpha, use_t=use_t, df_resid=self.df_resid)
        half = crit * self.stderr
        return torch.stack([self.params - half, self.params + half], dim=-1)


@dataclass(frozen=True)
class ReplicationResult:
    """
    Coefficient estimates and standard errors across R Monte Carlo replications.

    Inference defaults to the normal approximation (use_t=False), i.e.
    z = beta_hat / se(beta_hat) against N(0,1).
    """

    params: torch.Tensor         # (R,k)
    vcov: torch.Tensor           # (R,k,k)
    sigma2: torch.Tensor         # (R,)
    _nobs: int
    df_resid: int

    use_t: bool = False
    solve_method: str = "cholesky"
    param_names: Optional[list[str]] = None

    # Monte Carlo truth (optional)
    beta_true: Optional[torch.Tensor] = None

    @property
    def nobs(self) -> int:
        return int(self._nobs)

    @property
    def R(self) -> int:
        return int(self.params.shape[0])

    @property
    def k(self) -> int:
        return int(self.params.shape[1])

    def __len__(self) -> int:
        return self.R

    def __getitem__(self, r: int) -> FittedModel:
        if not -self.R <= r < self.R:
            raise IndexError(f"replication index {r} out of range for R={self.R}")
        return FittedModel(
            params=self.params[r],
            vcov=self.vcov[r],
            sigma2=self.sigma2[r],
            nobs=self.nobs,
            df_resid=self.df_resid,
            use_t=self.use_t,
        )

    def __iter__(self) -> Iterator[FittedModel]:
        for r in range(self.R):
            yield self[r]

    def pairs(self) -> Iterator[tuple[torch.Tensor, torch.Tensor]]:
        """Yield (beta_hat_r, se_r) for r = 0..R-1."""
        se = self.stderr
        for r in range(self.R):
            yield self.params[r], se[r]

    def names(self) -> list[str]:
        if self.param_names is not None:
            return list(self.param_names)
        return [f"beta[{j}]" for j in range(self.k)]

    def _truth(self) -> Optional[torch.Tensor]:
        if self.beta_true is None:
            return None
        return as_beta(self.beta_true, k=self.k, ref=self.params)

    # --------------------------
    # Per-replication inference
    # --------------------------
    @property
    def stderr(self) -> torch.Tensor:
        return torch.sqrt(torch.diagonal(self.vcov, dim1=-2, dim2=-1))

    @property
    def statvalues(self) -> torch.Tensor:
        """z-stats (or t-stats if use_t) for H0: beta_i = 0, shape (R,k)."""
        return self.params / self.stderr

    @property
    def pvalues(self) -> torch.Tensor:
        return _two_sided_pvalues(self.statvalues, use_t=self.use_t, df_resid=self.df_resid)

    def conf_int(self, alpha: float = 0.05, use_t: Optional[bool] = None) -> torch.Tensor:
        """
        Wald confidence intervals per replication.

        Output shape: (R, k, 2) where [:,:,0]=lower and [:,:,1]=upper.
        """
        if use_t is None:
            use_t = self.use_t
        crit = _critical_value(alpha, use_t=use_t, df_resid=self.df_resid)
        crit_t = torch.as_tensor(crit, device=self.params.device, dtype=self.params.dtype)
        half = crit_t * self.stderr
        return torch.stack([self.params - half, self.params + half], dim=-1)

    # --------------------------
    # Monte Carlo moments
    # --------------------------
    @property
    def mc_mean(self) -> torch.Tensor:
        return self.params.mean(dim=0)

    @property
    def mc_sd(self) -> torch.Tensor:
        return self.params.std(dim=0)

    def mc_bias(self) -> Optional[torch.Tensor]:
        """Monte Carlo bias: E[beta_hat] - beta_true, shape (k,)."""
        bt = self._truth()
        if bt is None:
            return None
        return self.mc_mean - bt

    def mc_rmse(self) -> Optional[torch.Tensor]:
        """Monte Carlo RMSE: sqrt(E[(beta_hat - beta_true)^2]), shape (k,)."""
        bt = self._truth()
        if bt is None:
            return None
        err = self.params - bt.view(1, -1)
        return torch.sqrt((err * err).mean(dim=0))

    def coverage(self, alpha: float = 0.05, use_t: Optional[bool] = None) -> Optional[torch.Tensor]:
        """Share of Wald intervals containing beta_true, shape (k,)."""
        bt = self._truth()
        if bt is None:
            return None
        ci = self.conf_int(alpha=alpha, use_t=use_t)
        inside = (bt.view(1, -1) >= ci[:, :, 0]) & (bt.view(1, -1) <= ci[:, :, 1])
        return inside.to(self.params.dtype).mean(dim=0)

    def scaled_errors(self) -> Optional[torch.Tensor]:
        """sqrt(n) (beta_hat - beta_true), shape (R,k)."""
        bt = self._truth()
        if bt is None:
            return None
        return (self.params - bt.view(1, -1)) * float(np.sqrt(self.nobs))

    def scaled_covariance(self) -> Optional[torch.Tensor]:
        """Sample covariance of sqrt(n)(beta_hat - beta_true) across replications, (k,k)."""
        z = self.scaled_errors()
        if z is None:
            return None
        zc = z - z.mean(dim=0, keepdim=True)
        return (zc.transpose(0, 1) @ zc) / float(self.R - 1)

    # --------------------------
    # Size/Power: componentwise
    # --------------------------
    def stat_beta0(self, beta0) -> torch.Tensor:
        """Per-replication statistic for H0: beta = beta0 (componentwise), (R,k)."""
        b0 = as_beta(beta0, k=self.k, ref=self.params)
        return (self.params - b0.view(1, -1)) / self.stderr

    def pvalues_beta0(self, beta0, use_t: Optional[bool] = None) -> torch.Tensor:
        if use_t is None:
            use_t = self.use_t
        return _two_sided_pvalues(self.stat_beta0(beta0), use_t=use_t, df_resid=self.df_resid)

    def reject_beta0(self, beta0, alpha: float = 0.05, use_t: Optional[bool] = None) -> torch.Tensor:
        """Rejection indicators for H0: beta = beta0. Returns (R,k) bool."""
        return self.pvalues_beta0(beta0, use_t=use_t) < alpha

    def rejection_rate_beta0(self, beta0, alpha: float = 0.05, use_t: Optional[bool] = None) -> torch.Tensor:
        """Rejection rates across replications for H0: beta = beta0. Returns (k,)."""
        return self.reject_beta0(beta0, alpha=alpha, use_t=use_t).to(self.params.dtype).mean(dim=0)

    def rejection_rate(self, alpha: float = 0.05, use_t: Optional[bool] = None) -> torch.Tensor:
        """Rejection rates for H0: beta_i = 0. Returns (k,)."""
        return self.rejection_rate_beta0(torch.zeros(self.k), alpha=alpha, use_t=use_t)

    # --------------------------
    # Export
    # --------------------------
    def to_frame(self):
        """Long pandas DataFrame: one row per (replication, parameter)."""
        import pandas as pd

        R, k = self.params.shape
        names = self.names()
        return pd.DataFrame(
            {
                "replication": np.repeat(np.arange(R), k),
                "param": np.tile(np.asarray(names, dtype=object), R),
                "coef": _to_numpy(self.params).reshape(-1),
                "stderr": _to_numpy(self.stderr).reshape(-1),
            }
        )

    def summary(
        self,
        param_names: Optional[Sequence[str]] = None,
        digits: int = 4,
        alpha: float = 0.05,
    ) -> str:
        """
        Monte Carlo summary table.

        Coef table aggregates across replications:
          - coef     : mean(params)
          - MC sd    : std(params)
          - std err  : mean(stderr)
          - Rej@alpha: rejection frequency for H0: beta=0

        If beta_true is set, adds Bias, RMSE and Coverage@{1-alpha}.
        """
        width = 78
        line = "=" * width
        dash = "-" * width

        names = list(param_names) if param_names is not None else self.names()
        if len(names) != self.k:
            raise ShapeError(f"param_names must have length k={self.k}. Got {len(names)}.")
        now = datetime.now().strftime("%a, %d %b %Y  %H:%M:%S")
        test_label = "t-test" if self.use_t else "z-test"

        out: list[str] = []
        out.append("OLS Monte Carlo Results".center(width))
        out.append(line)
        out.append(f"{'MC Replications:':<25}{self.R:<14}{'No. Observations:':<25}{self.nobs}")
        out.append(f"{'Df Residuals:':<25}{self.df_resid:<14}{'Solver:':<25}{self.solve_method}")
        out.append(f"{'Date:':<25}{now[:16]}")
        out.append(line)

        name_w, num_w = 14, 12
        b_mean = self.mc_mean
        b_sd = self.mc_sd
        se_mean = self.stderr.mean(dim=0)
        rej = self.rejection_rate(alpha=alpha)

        out.append(
            f"{'':<{name_w}}{'coef':>{num_w}}{'MC sd':>{num_w}}"
            f"{'std err':>{num_w}}{f'Rej@{alpha:.2f}':>{num_w}}"
        )
        out.append(dash)
        for j, name in enumerate(names):
            out.append(
                f"{name[:name_w]:<{name_w}}"
                f"{_fmt(float(b_mean[j]), digits):>{num_w}}"
                f"{_fmt(float(b_sd[j]), digits):>{num_w}}"
                f"{_fmt(float(se_mean[j]), digits):>{num_w}}"
                f"{_fmt(float(rej[j]), digits):>{num_w}}"
            )
        out.append(line)
        out.append(f"'Rej@alpha' = rejection frequency for H0: beta=0 using two-sided {test_label}.")

        bias = self.mc_bias()
        rmse = self.mc_rmse()
        cov = self.coverage(alpha=alpha)
        if bias is not None and rmse is not None and cov is not None:
            level = 1.0 - alpha
            out.append("")
            out.append("Monte Carlo performance relative to beta_true".center(width))
            out.append(dash)
            out.append(f"{'':<{name_w}}{'Bias':>{num_w}}{'RMSE':>{num_w}}{f'Cover@{level:.2f}':>{num_w}}")
            out.append(dash)
            for j, name in enumerate(names):
                out.append(
                    f"{name[:name_w]:<{name_w}}"
                    f"{_fmt(float(bias[j]), digits):>{num_w}}"
                    f"{_fmt(float(rmse[j]), digits):>{num_w}}"
                    f"{_fmt(float(cov[j]), digits):>{num_w}}"
                )
            out.append(line)

        return "\n".join(out)
