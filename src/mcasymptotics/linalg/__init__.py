"""
mcasymptotics.linalg

Batched linear algebra for Monte Carlo least squares.

Conventions
-----------
- Replication axis: R
- Observation axis: n
- Parameter axis: k

Shapes
------
- X: (R, n, k)
- y: (R, n)
"""
from .chol import check_full_column_rank, chol_solve, safe_cholesky
from .solve import SolveMethod, solve_ls

__all__ = [
    "SolveMethod",
    "solve_ls",
    "safe_cholesky",
    "chol_solve",
    "check_full_column_rank",
]
