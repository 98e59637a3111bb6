from __future__ import annotations

from typing import Literal, Tuple

import torch

from mcasymptotics.exceptions import NotSupportedError, ShapeError
from mcasymptotics.linalg.chol import chol_solve, safe_cholesky

SolveMethod = Literal["cholesky", "qr"]


def _batched_eye(k: int, R: int, ref: torch.Tensor) -> torch.Tensor:
    return torch.eye(k, device=ref.device, dtype=ref.dtype).expand(R, k, k)


def solve_ls(
    X: torch.Tensor,
    y: torch.Tensor,
    *,
    method: SolveMethod = "cholesky",
) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Solve least squares for each replication:

      beta = argmin ||y - X beta||_2

    No explicit matrix inverse is formed; (X'X)^{-1} comes from the
    triangular factor (Cholesky of X'X, or R from the QR of X).

    Inputs
    ------
    X : (R,n,k), full column rank (see check_full_column_rank)
    y : (R,n)

    Returns
    -------
    beta    : (R,k)
    XtX_inv : (R,k,k)
    """
    if X.ndim != 3:
        raise ShapeError(f"X must be (R,n,k). Got {tuple(X.shape)}")
    if y.ndim != 2:
        raise ShapeError(f"y must be (R,n). Got {tuple(y.shape)}")
    if X.shape[0] != y.shape[0] or X.shape[1] != y.shape[1]:
        raise ShapeError(f"Batch/obs dims mismatch: X {tuple(X.shape)}, y {tuple(y.shape)}")

    R, _, k = X.shape
    eye = _batched_eye(k, R, X)

    if method == "qr":
        # X = Q Rm, beta = Rm^{-1} Q'y, (X'X)^{-1} = Rm^{-1} Rm^{-T}
        Q, Rm = torch.linalg.qr(X, mode="reduced")  # Q:(R,n,k), Rm:(R,k,k)
        Qt_y = torch.einsum("rnk,rn->rk", Q, y)
        beta = torch.linalg.solve_triangular(Rm, Qt_y.unsqueeze(-1), upper=True).squeeze(-1)
        invR = torch.linalg.solve_triangular(Rm, eye, upper=True)
        XtX_inv = invR @ invR.transpose(-1, -2)
        return beta, XtX_inv

    if method == "cholesky":
        Xt = X.transpose(1, 2)       # (R,k,n)
        XtX = Xt @ X                 # (R,k,k)
        Xty = Xt @ y.unsqueeze(-1)   # (R,k,1)
        L = safe_cholesky(XtX)
        beta = chol_solve(Xty, L).squeeze(-1)
        XtX_inv = chol_solve(eye, L)
        return beta, XtX_inv

    raise NotSupportedError(f"Unknown solve method {method!r}. Use 'cholesky' or 'qr'.")
