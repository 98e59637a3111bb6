"""
Law of Large Numbers and Central Limit Theorem, then the OLS limit.

- Running means of Exponential(1) draws settle at 1 (LLN)
- Standardized means of Bernoulli(0.3) draws look N(0,1) (CLT)
- sqrt(n)(beta_hat - beta) is close to N(0, sigma^2 Q^{-1}) for large n
"""

import torch

from mcasymptotics import (
    Bernoulli,
    Exponential,
    asymptotic_covariance,
    default_config,
    lln_paths,
    standardized_means,
)
from mcasymptotics.plotting import plot_running_mean, plot_scaled_params, plot_standardized_hist


def main() -> None:
    g = torch.Generator().manual_seed(1809)

    paths = lln_paths(Exponential(1.0), 10_000, R=10, generator=g)
    plot_running_mean(paths, mu=1.0)

    z = standardized_means(Bernoulli(0.3), 500, 10_000, generator=g)
    plot_standardized_hist(z)

    cfg = default_config()
    res = cfg.build().run(1000, 2000)
    V = asymptotic_covariance(cfg.regressors, cfg.error)

    print("Asymptotic covariance sigma^2 Q^{-1}:")
    print(V)
    print("Monte Carlo covariance of sqrt(n)(beta_hat - beta):")
    print(res.scaled_covariance())

    for j in range(res.k):
        plot_scaled_params(res, j=j, avar=V)


if __name__ == "__main__":
    main()
