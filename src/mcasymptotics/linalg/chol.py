from __future__ import annotations

from typing import Optional

import torch

from mcasymptotics.exceptions import ShapeError, SingularDesignMatrix


def _format_reps(idx: torch.Tensor, limit: int = 10) -> str:
    reps = idx.flatten().tolist()
    head = ", ".join(str(r) for r in reps[:limit])
    return head + (", ..." if len(reps) > limit else "")


def check_full_column_rank(X: torch.Tensor, *, rtol: Optional[float] = None) -> None:
    """
    Raise SingularDesignMatrix unless every replication of X (R,n,k) has rank k.

    The rank is computed in float64 whatever X's dtype; singular values
    below rtol * sigma_max count as zero, default 10 * max(n,k) * eps(float64).
    """
    if X.ndim != 3:
        raise ShapeError(f"X must be (R,n,k). Got {tuple(X.shape)}")

    _, n, k = X.shape
    if n < k:
        raise SingularDesignMatrix(f"X'X is singular: n={n} observations < k={k} parameters.")

    if rtol is None:
        rtol = 10.0 * max(n, k) * torch.finfo(torch.float64).eps

    rank = torch.linalg.matrix_rank(X.to(dtype=torch.float64), rtol=rtol)  # (R,)
    bad = torch.nonzero(rank < k)
    if bad.numel() > 0:
        raise SingularDesignMatrix(
            f"Design matrix is rank-deficient (rank < k={k}) in replication(s) {_format_reps(bad)}."
        )


def safe_cholesky(A: torch.Tensor) -> torch.Tensor:
    """
    Batched Cholesky of SPD matrices A (...,k,k); lower factor L with A = L L'.
    """
    if A.ndim < 2 or A.shape[-1] != A.shape[-2]:
        raise ShapeError(f"A must be (...,k,k). Got {tuple(A.shape)}")

    A0 = 0.5 * (A + A.transpose(-1, -2))
    L, info = torch.linalg.cholesky_ex(A0)
    if torch.any(info != 0):
        if info.ndim == 0:
            raise SingularDesignMatrix("Cholesky factorization failed: matrix is not positive definite.")
        bad = torch.nonzero(info.reshape(info.shape[0], -1).any(dim=1))
        raise SingularDesignMatrix(
            f"Cholesky factorization of X'X failed in replication(s) {_format_reps(bad)}."
        )
    return L


def chol_solve(B: torch.Tensor, L: torch.Tensor) -> torch.Tensor:
    return torch.cholesky_solve(B, L)
