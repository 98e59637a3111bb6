# src/mcasymptotics/models/ols.py
from __future__ import annotations

import warnings
from typing import Any, Optional, Sequence

import torch

from mcasymptotics.linalg import SolveMethod, check_full_column_rank, solve_ls
from mcasymptotics.results import FittedModel, ReplicationResult
from mcasymptotics.sample import Sample
from mcasymptotics.typing import DEFAULT_DTYPE, Device, as_batched_xy


def _fit_batched(
    X: torch.Tensor,
    y: torch.Tensor,
    *,
    solve_method: SolveMethod,
) -> tuple[torch.Tensor, torch.Tensor, torch.Tensor, int]:
    """Homoskedastic OLS for each replication.

    Inputs
    - X: (R,n,k)
    - y: (R,n)

    Returns
    - beta:     (R,k)
    - vcov:     (R,k,k) = s^2 (X'X)^{-1}
    - sigma2:   (R,)    = u'u / (n-k)
    - df_resid: n - k
    """
    R, n, k = X.shape
    check_full_column_rank(X)

    beta, XtX_inv = solve_ls(X, y, method=solve_method)

    fitted = (X @ beta.unsqueeze(-1)).squeeze(-1)  # (R,n)
    resid = y - fitted                             # (R,n)
    ssr = (resid * resid).sum(dim=1)               # (R,)

    df_resid = n - k
    if df_resid == 0:
        warnings.warn(
            f"n == k == {k}: the fit is exact and standard errors are undefined (NaN).",
            RuntimeWarning,
            stacklevel=3,
        )
        sigma2 = torch.full_like(ssr, float("nan"))
    else:
        sigma2 = ssr / float(df_resid)

    vcov = XtX_inv * sigma2.view(R, 1, 1)
    return beta, vcov, sigma2, df_resid


def OLS(
    X,
    y,
    *,
    solve_method: SolveMethod = "cholesky",
    use_t: bool = False,
    beta_true: Optional[Any] = None,
    param_names: Optional[Sequence[str]] = None,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Device] = None,
) -> ReplicationResult:
    """Batched OLS over Monte Carlo replications.

    Inputs
    - X: (R,n,k) or (n,k) or pandas.DataFrame (single sample); include the
      intercept column yourself
    - y: (R,n) or (n,) or pandas.Series / 1-col DataFrame

    Raises SingularDesignMatrix if any replication has n < k or a
    rank-deficient design.
    """
    X, y, names = as_batched_xy(X, y, dtype=dtype, device=device)
    if not X.is_floating_point():
        X = X.to(dtype=DEFAULT_DTYPE)
    if y.dtype != X.dtype:
        y = y.to(dtype=X.dtype)

    beta, vcov, sigma2, df_resid = _fit_batched(X, y, solve_method=solve_method)

    return ReplicationResult(
        params=beta,
        vcov=vcov,
        sigma2=sigma2,
        _nobs=int(X.shape[1]),
        df_resid=df_resid,
        use_t=use_t,
        solve_method=solve_method,
        param_names=list(param_names) if param_names is not None else names,
        beta_true=beta_true,
    )


def fit_ols(sample: Sample, *, solve_method: SolveMethod = "cholesky", use_t: bool = False) -> FittedModel:
    """
    Fit OLS to one sample: beta_hat = (X'X)^{-1} X'y with classic standard errors.

    Raises SingularDesignMatrix when X'X is not invertible.
    """
    beta, vcov, sigma2, df_resid = _fit_batched(
        sample.X.unsqueeze(0), sample.y.unsqueeze(0), solve_method=solve_method
    )
    return FittedModel(
        params=beta[0],
        vcov=vcov[0],
        sigma2=sigma2[0],
        nobs=sample.nobs,
        df_resid=df_resid,
        use_t=use_t,
    )
