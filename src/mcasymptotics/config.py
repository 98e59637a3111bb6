# src/mcasymptotics/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import torch

from mcasymptotics.dgp import (
    Bernoulli,
    Distribution,
    Exponential,
    Normal,
    Uniform,
    get_distribution,
)
from mcasymptotics.exceptions import NotSupportedError, ShapeError
from mcasymptotics.simulation import MonteCarloOLS
from mcasymptotics.typing import DEFAULT_DTYPE

_SOLVE_METHODS = ("cholesky", "qr")
_DTYPES = {"float32": torch.float32, "float64": torch.float64}


def _as_dist(spec: Any) -> Distribution:
    """Distribution from an instance or {'dist': name, **params}."""
    if isinstance(spec, Distribution):
        return spec
    if isinstance(spec, Mapping):
        params = dict(spec)
        name = params.pop("dist", None)
        if name is None:
            raise ValueError(f"Distribution mapping needs a 'dist' key. Got {dict(spec)!r}")
        return get_distribution(name, **params)
    raise TypeError(f"Expected a Distribution or a mapping. Got {type(spec).__name__}")


@dataclass(frozen=True)
class SimulationConfig:
    """Everything needed to reproduce one Monte Carlo OLS run."""

    n: int
    R: int
    beta: tuple[float, ...]
    regressors: tuple[Distribution, ...]
    error: Distribution
    seed: Optional[int] = None
    solve_method: str = "cholesky"
    dtype: torch.dtype = DEFAULT_DTYPE
    param_names: Optional[tuple[str, ...]] = field(default=None)

    def __post_init__(self) -> None:
        if int(self.n) <= 0:
            raise ValueError(f"n must be positive. Got {self.n}")
        if int(self.R) <= 0:
            raise ValueError(f"R must be positive. Got {self.R}")
        if len(self.regressors) != len(self.beta) - 1:
            raise ShapeError(
                f"beta has k={len(self.beta)} entries, so k-1={len(self.beta) - 1} regressors "
                f"are needed. Got {len(self.regressors)}."
            )
        if self.solve_method not in _SOLVE_METHODS:
            raise NotSupportedError(
                f"Unknown solve method {self.solve_method!r}. Use one of {', '.join(_SOLVE_METHODS)}."
            )

    @property
    def k(self) -> int:
        return len(self.beta)

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "SimulationConfig":
        """
        Build from a plain mapping, e.g. parsed JSON/TOML:

            {"n": 100, "R": 50, "beta": [2, -3],
             "regressors": [{"dist": "normal", "loc": -1, "scale": 1}],
             "error": {"dist": "uniform", "low": -1, "high": 1},
             "seed": 1809, "dtype": "float64"}
        """
        dtype = cfg.get("dtype", DEFAULT_DTYPE)
        if isinstance(dtype, str):
            if dtype not in _DTYPES:
                raise NotSupportedError(f"Unknown dtype {dtype!r}. Use one of {', '.join(_DTYPES)}.")
            dtype = _DTYPES[dtype]
        names = cfg.get("param_names")
        return cls(
            n=int(cfg["n"]),
            R=int(cfg["R"]),
            beta=tuple(float(b) for b in cfg["beta"]),
            regressors=tuple(_as_dist(d) for d in cfg["regressors"]),
            error=_as_dist(cfg["error"]),
            seed=cfg.get("seed"),
            solve_method=str(cfg.get("solve_method", "cholesky")),
            dtype=dtype,
            param_names=tuple(names) if names is not None else None,
        )

    def build(self) -> MonteCarloOLS:
        return MonteCarloOLS(
            self.beta,
            self.regressors,
            self.error,
            seed=self.seed,
            solve_method=self.solve_method,  # type: ignore[arg-type]
            param_names=self.param_names,
            dtype=self.dtype,
        )


def default_config() -> SimulationConfig:
    """Reference design: y = 2 - 3 x1 + x2 + 0.5 x3 + u."""
    return SimulationConfig(
        n=100,
        R=50,
        beta=(2.0, -3.0, 1.0, 0.5),
        regressors=(Normal(-1.0, 1.0), Bernoulli(0.3), Exponential(1.0)),
        error=Uniform(-1.0, 1.0),
        seed=1809,
        param_names=("const", "x1", "x2", "x3"),
    )
