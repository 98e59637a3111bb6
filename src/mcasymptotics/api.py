# src/mcasymptotics/api.py
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from mcasymptotics.models.ols import OLS
from mcasymptotics.simulation import MonteCarloOLS, run

__all__ = ["OLS", "MonteCarloOLS", "run", "__version__"]

try:
    __version__ = version("mcasymptotics")
except PackageNotFoundError:  # editable/local
    __version__ = "0.0.0"
