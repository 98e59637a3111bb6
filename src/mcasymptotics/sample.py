# src/mcasymptotics/sample.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import torch

from mcasymptotics.exceptions import ShapeError
from mcasymptotics.typing import DEFAULT_DTYPE, Device, as_torch


@dataclass(frozen=True)
class Sample:
    """
    One simulated sample of n observations.

    X : (n,k) design with the intercept column of ones first
    y : (n,)  response
    u : (n,)  additive errors, if known
    """

    X: torch.Tensor
    y: torch.Tensor
    u: Optional[torch.Tensor] = None

    def __post_init__(self) -> None:
        if self.X.ndim != 2:
            raise ShapeError(f"X must be (n,k). Got {tuple(self.X.shape)}")
        if self.y.ndim != 1 or self.y.shape[0] != self.X.shape[0]:
            raise ShapeError(f"y must be (n,) with n={self.X.shape[0]}. Got {tuple(self.y.shape)}")
        if self.u is not None and tuple(self.u.shape) != tuple(self.y.shape):
            raise ShapeError(f"u must match y {tuple(self.y.shape)}. Got {tuple(self.u.shape)}")

    @property
    def nobs(self) -> int:
        return int(self.X.shape[0])

    @property
    def k(self) -> int:
        return int(self.X.shape[1])

    @classmethod
    def from_arrays(
        cls,
        X: Any,
        y: Any,
        *,
        add_const: bool = False,
        dtype: torch.dtype = DEFAULT_DTYPE,
        device: Optional[Device] = None,
    ) -> "Sample":
        """
        Build a Sample from array-likes (torch, numpy, lists, pandas).

        X may be (n,) for a single regressor. With add_const=True a column
        of ones is prepended.
        """
        Xt = as_torch(X, dtype=dtype, device=device)
        yt = as_torch(y, dtype=dtype, device=device)
        if Xt.ndim == 1:
            Xt = Xt.unsqueeze(-1)
        if yt.ndim == 2 and yt.shape[1] == 1:
            yt = yt[:, 0]
        if add_const:
            ones = torch.ones((Xt.shape[0], 1), dtype=Xt.dtype, device=Xt.device)
            Xt = torch.cat([ones, Xt], dim=1)
        return cls(X=Xt, y=yt)
