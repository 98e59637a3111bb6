# src/mcasymptotics/typing.py
from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from mcasymptotics.exceptions import ShapeError

ArrayLike = Union[torch.Tensor, np.ndarray, Sequence[Any]]
Device = Union[str, torch.device]

DEFAULT_DTYPE = torch.float64


def _is_pandas_df(x: Any) -> bool:
    try:
        import pandas as pd  # type: ignore
        return isinstance(x, pd.DataFrame)
    except ImportError:
        return False


def _is_pandas_series(x: Any) -> bool:
    try:
        import pandas as pd  # type: ignore
        return isinstance(x, pd.Series)
    except ImportError:
        return False


def as_torch(
    x: Any,
    *,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Device] = None,
) -> torch.Tensor:
    """
    Convert common array-likes to torch.Tensor.

    Supports:
    - torch.Tensor
    - numpy.ndarray
    - Python lists/tuples (nested) and scalars
    - pandas.DataFrame / pandas.Series (if pandas installed)
    """
    if _is_pandas_df(x) or _is_pandas_series(x):
        x = x.to_numpy()  # type: ignore[attr-defined]

    t = x if isinstance(x, torch.Tensor) else torch.as_tensor(x)
    if dtype is not None:
        t = t.to(dtype=dtype)
    if device is not None:
        t = t.to(device=device)
    return t


def as_beta(beta: Any, *, k: Optional[int] = None, ref: Optional[torch.Tensor] = None) -> torch.Tensor:
    """
    Coerce a parameter vector to shape (k,).
    Accepts shapes: (k,), (1,k), (k,1). Rejects anything else.

    If ref is given, the result lives on ref's device/dtype.
    """
    bt = as_torch(beta)
    if ref is not None:
        bt = bt.to(device=ref.device, dtype=ref.dtype)
    elif not bt.is_floating_point():
        bt = bt.to(dtype=DEFAULT_DTYPE)

    if bt.ndim == 2 and 1 in bt.shape:
        bt = bt.reshape(-1)
    if bt.ndim != 1:
        raise ShapeError(f"beta must have shape (k,), (1,k), or (k,1). Got {tuple(bt.shape)}")
    if k is not None and bt.shape[0] != k:
        raise ShapeError(f"beta must have length k={k}. Got {int(bt.shape[0])}")
    return bt


def as_batched_xy(
    X: Any,
    y: Any,
    *,
    dtype: Optional[torch.dtype] = None,
    device: Optional[Device] = None,
) -> Tuple[torch.Tensor, torch.Tensor, Optional[list[str]]]:
    """
    Standardize inputs to:
      X: (R,n,k)
      y: (R,n)

    Accept:
      X: (n,k) or (R,n,k)
      y: (n,) or (R,n)

    If X is a pandas.DataFrame (single sample), param_names = list(X.columns).
    """
    param_names: Optional[list[str]] = None

    if _is_pandas_df(X):
        param_names = [str(c) for c in X.columns]  # type: ignore[attr-defined]
        X = X.to_numpy()  # type: ignore[attr-defined]

    if _is_pandas_df(y):
        y_np = y.to_numpy()  # type: ignore[attr-defined]
        if y_np.ndim != 2 or y_np.shape[1] != 1:
            raise ShapeError("If y is a DataFrame, it must have exactly one column.")
        y = y_np[:, 0]

    Xt = as_torch(X, dtype=dtype, device=device)
    yt = as_torch(y, dtype=dtype, device=device)

    if Xt.ndim == 2:
        Xt = Xt.unsqueeze(0)
    if yt.ndim == 1:
        yt = yt.unsqueeze(0)

    if Xt.ndim != 3:
        raise ShapeError(f"X must be (R,n,k) or (n,k). Got {tuple(Xt.shape)}")
    if yt.ndim != 2:
        raise ShapeError(f"y must be (R,n) or (n,). Got {tuple(yt.shape)}")
    if Xt.shape[0] != yt.shape[0] or Xt.shape[1] != yt.shape[1]:
        raise ShapeError(f"Batch/obs dims mismatch: X {tuple(Xt.shape)}, y {tuple(yt.shape)}")

    return Xt, yt, param_names
