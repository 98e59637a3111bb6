# src/mcasymptotics/plotting.py
from __future__ import annotations

from typing import Optional

import numpy as np
import scipy.stats as st
import torch

from mcasymptotics.results import ReplicationResult


def _latex_rc(use_tex: bool = False) -> dict:
    return {
        "font.family": "serif",
        "mathtext.fontset": "cm",
        "axes.spines.top": False,
        "axes.spines.right": False,
        "font.size": 12,
        "axes.labelsize": 12,
        "axes.titlesize": 14,
        "legend.fontsize": 10,
        "figure.dpi": 175,
        "axes.grid": True,
        "grid.alpha": 0.3,
        "text.usetex": bool(use_tex),
    }


def apply_latex_style(*, use_tex: bool = False) -> None:
    """
    Apply a LaTeX-like matplotlib style globally.

    - use_tex=False uses mathtext + serif fonts (no LaTeX installation required).
    - use_tex=True enables full LaTeX rendering (requires a LaTeX installation).

    The plot_* functions use the same style through rc_context and leave
    mpl.rcParams untouched.
    """
    import matplotlib as mpl

    mpl.rcParams.update(_latex_rc(use_tex))


def _style(latex: bool):
    import matplotlib as mpl

    return mpl.rc_context(_latex_rc() if latex else {})


def _finish(fig, ax, *, show: bool, return_fig: bool):
    import matplotlib.pyplot as plt

    if show:
        plt.show()
    if return_fig:
        return fig, ax
    if not show:
        plt.close(fig)
    return None


def _new_axes():
    import matplotlib.pyplot as plt

    return plt.subplots(figsize=(6.2, 3.8), constrained_layout=True)


def plot_running_mean(
    paths: torch.Tensor,
    *,
    mu: Optional[float] = None,
    show: bool = True,
    return_fig: bool = False,
    latex: bool = True,
):
    """LLN: running-mean paths (R,n) or (n,) against the population mean."""
    with _style(latex):
        fig, ax = _new_axes()
        p = paths.detach().cpu().numpy()
        if p.ndim == 1:
            p = p[None, :]
        t = np.arange(1, p.shape[1] + 1)
        for row in p:
            ax.plot(t, row, linewidth=0.8, alpha=0.7)
        if mu is not None:
            ax.axhline(float(mu), linestyle="--", color="black", label=r"$\mu$")
            ax.legend()
        ax.set_xscale("log")
        ax.set_title("Law of Large Numbers: running sample mean")
        ax.set_xlabel("n")
        ax.set_ylabel(r"$\bar{x}_n$")
        return _finish(fig, ax, show=show, return_fig=return_fig)


def plot_standardized_hist(
    z: torch.Tensor,
    *,
    bins: int = 40,
    show: bool = True,
    return_fig: bool = False,
    latex: bool = True,
):
    """CLT: histogram of standardized means with the N(0,1) density."""
    with _style(latex):
        fig, ax = _new_axes()
        data = z.detach().cpu().numpy().reshape(-1)
        ax.hist(data, bins=bins, density=True, alpha=0.6)
        grid = np.linspace(min(data.min(), -4.0), max(data.max(), 4.0), 400)
        ax.plot(grid, st.norm.pdf(grid), linestyle="--", color="black", label=r"$N(0,1)$")
        ax.legend()
        ax.set_title("Central Limit Theorem: standardized sample means")
        ax.set_xlabel(r"$\sqrt{n}(\bar{x}_n - \mu)/\sigma$")
        ax.set_ylabel("Density")
        return _finish(fig, ax, show=show, return_fig=return_fig)


def plot_scaled_params(
    res: ReplicationResult,
    *,
    j: int = 0,
    avar: Optional[torch.Tensor] = None,
    bins: int = 30,
    show: bool = True,
    return_fig: bool = False,
    latex: bool = True,
):
    """
    Histogram of sqrt(n)(beta_hat_j - beta_j) across replications.

    If avar (k,k), e.g. asymptotic_covariance(...), is given, overlays the
    N(0, avar[j,j]) density.
    """
    z = res.scaled_errors()
    if z is None:
        raise ValueError("Result has no beta_true; cannot center the estimates.")
    if not (0 <= j < res.k):
        raise ValueError(f"j must be in [0,{res.k - 1}]. Got {j}.")

    name = res.names()[j]
    with _style(latex):
        fig, ax = _new_axes()
        data = z[:, j].detach().cpu().numpy()
        ax.hist(data, bins=bins, density=True, alpha=0.6)
        if avar is not None:
            sd = float(np.sqrt(float(avar[j, j])))
            grid = np.linspace(data.min() - sd, data.max() + sd, 400)
            ax.plot(grid, st.norm.pdf(grid, scale=sd), linestyle="--", color="black", label="asymptotic")
            ax.legend()
        ax.set_title(f"Sampling distribution of {name} (n={res.nobs}, R={res.R})")
        ax.set_xlabel(r"$\sqrt{n}(\hat\beta - \beta)$")
        ax.set_ylabel("Density")
        return _finish(fig, ax, show=show, return_fig=return_fig)
