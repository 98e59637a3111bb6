# src/mcasymptotics/dgp.py
"""Marginal distributions used to generate regressors and errors.

Every distribution draws a whole block of values at once from an explicit
torch.Generator, and exposes its analytic mean and variance so that the
population moments of the design (Q = E[xx']) and the error variance are
known in closed form.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import torch

from mcasymptotics.exceptions import NotSupportedError
from mcasymptotics.typing import DEFAULT_DTYPE, Device

Shape = Sequence[int]


class Distribution(ABC):
    """A fixed marginal distribution for one regressor column or the error term."""

    name: str = "distribution"

    @abstractmethod
    def sample(
        self,
        shape: Shape,
        *,
        generator: Optional[torch.Generator] = None,
        dtype: torch.dtype = DEFAULT_DTYPE,
        device: Optional[Device] = None,
    ) -> torch.Tensor:
        """Draw i.i.d. values with the given shape."""

    @property
    @abstractmethod
    def mean(self) -> float:
        ...

    @property
    @abstractmethod
    def variance(self) -> float:
        ...

    @property
    def second_moment(self) -> float:
        return self.variance + self.mean ** 2

    def __call__(self, generator: Optional[torch.Generator] = None) -> float:
        """Draw a single value."""
        return float(self.sample((1,), generator=generator).item())


@dataclass(frozen=True)
class Normal(Distribution):
    loc: float = 0.0
    scale: float = 1.0
    name = "normal"

    def __post_init__(self) -> None:
        if not self.scale > 0:
            raise ValueError(f"scale must be > 0. Got {self.scale}")

    def sample(self, shape, *, generator=None, dtype=DEFAULT_DTYPE, device=None):
        z = torch.randn(tuple(shape), generator=generator, dtype=dtype, device=device)
        return self.loc + self.scale * z

    @property
    def mean(self) -> float:
        return float(self.loc)

    @property
    def variance(self) -> float:
        return float(self.scale) ** 2


@dataclass(frozen=True)
class Bernoulli(Distribution):
    p: float = 0.5
    name = "bernoulli"

    def __post_init__(self) -> None:
        if not 0.0 <= self.p <= 1.0:
            raise ValueError(f"p must be in [0,1]. Got {self.p}")

    def sample(self, shape, *, generator=None, dtype=DEFAULT_DTYPE, device=None):
        probs = torch.full(tuple(shape), float(self.p), dtype=dtype, device=device)
        return torch.bernoulli(probs, generator=generator)

    @property
    def mean(self) -> float:
        return float(self.p)

    @property
    def variance(self) -> float:
        return float(self.p) * (1.0 - float(self.p))


@dataclass(frozen=True)
class Exponential(Distribution):
    rate: float = 1.0
    name = "exponential"

    def __post_init__(self) -> None:
        if not self.rate > 0:
            raise ValueError(f"rate must be > 0. Got {self.rate}")

    def sample(self, shape, *, generator=None, dtype=DEFAULT_DTYPE, device=None):
        out = torch.empty(tuple(shape), dtype=dtype, device=device)
        return out.exponential_(float(self.rate), generator=generator)

    @property
    def mean(self) -> float:
        return 1.0 / float(self.rate)

    @property
    def variance(self) -> float:
        return 1.0 / float(self.rate) ** 2


@dataclass(frozen=True)
class Uniform(Distribution):
    low: float = 0.0
    high: float = 1.0
    name = "uniform"

    def __post_init__(self) -> None:
        if not self.high > self.low:
            raise ValueError(f"high must be > low. Got low={self.low}, high={self.high}")

    def sample(self, shape, *, generator=None, dtype=DEFAULT_DTYPE, device=None):
        u = torch.rand(tuple(shape), generator=generator, dtype=dtype, device=device)
        return self.low + (self.high - self.low) * u

    @property
    def mean(self) -> float:
        return 0.5 * (float(self.low) + float(self.high))

    @property
    def variance(self) -> float:
        return (float(self.high) - float(self.low)) ** 2 / 12.0


@dataclass(frozen=True)
class Constant(Distribution):
    """Degenerate distribution; Constant(0.0) as the error gives noiseless data."""

    value: float = 0.0
    name = "constant"

    def sample(self, shape, *, generator=None, dtype=DEFAULT_DTYPE, device=None):
        return torch.full(tuple(shape), float(self.value), dtype=dtype, device=device)

    @property
    def mean(self) -> float:
        return float(self.value)

    @property
    def variance(self) -> float:
        return 0.0


class FromCallable(Distribution):
    """
    Wrap a zero-argument function returning one real number per call.

    The function owns its randomness (seed it externally); the torch
    generator passed to sample() is ignored. Draws fill the output in
    row-major order. mean/variance are NaN unless supplied.
    """

    name = "callable"

    def __init__(
        self,
        fn: Callable[[], float],
        *,
        mean: Optional[float] = None,
        variance: Optional[float] = None,
    ) -> None:
        if not callable(fn):
            raise TypeError("fn must be callable")
        self.fn = fn
        self._mean = mean
        self._variance = variance

    def sample(self, shape, *, generator=None, dtype=DEFAULT_DTYPE, device=None):
        size = math.prod(tuple(shape))
        out = torch.tensor([float(self.fn()) for _ in range(size)], dtype=dtype).reshape(tuple(shape))
        if device is not None:
            out = out.to(device=device)
        return out

    @property
    def mean(self) -> float:
        return float("nan") if self._mean is None else float(self._mean)

    @property
    def variance(self) -> float:
        return float("nan") if self._variance is None else float(self._variance)

    def __repr__(self) -> str:
        return f"FromCallable({self.fn!r})"


def as_distribution(obj: Any) -> Distribution:
    """Accept a Distribution or a plain zero-argument callable."""
    if isinstance(obj, Distribution):
        return obj
    if callable(obj):
        return FromCallable(obj)
    raise TypeError(f"Expected a Distribution or a callable. Got {type(obj).__name__}")


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

_REGISTRY: dict[str, Callable[..., Distribution]] = {}


def register_distribution(name: str, factory: Callable[..., Distribution]) -> None:
    key = str(name).strip().lower()
    if not key:
        raise ValueError("Distribution name must be non-empty")
    _REGISTRY[key] = factory


def list_distributions() -> list[str]:
    return sorted(_REGISTRY.keys())


def get_distribution(name: str, **params: Any) -> Distribution:
    key = str(name).strip().lower()
    if key not in _REGISTRY:
        raise NotSupportedError(
            f"Unknown distribution {name!r}. Available: {', '.join(list_distributions())}"
        )
    return _REGISTRY[key](**params)


register_distribution("normal", Normal)
register_distribution("bernoulli", Bernoulli)
register_distribution("exponential", Exponential)
register_distribution("uniform", Uniform)
register_distribution("constant", Constant)
