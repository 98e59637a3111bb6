import pytest
import torch

from conftest import make_design
from mcasymptotics import OLS, asymptotic_covariance, default_config, run
from mcasymptotics.exceptions import ShapeError


def test_reference_scenario_reproduces_bit_for_bit(reference_design):
    beta, regressors, error = reference_design
    cfg = default_config()

    a = run(100, 50, beta, regressors, error, seed=1809)
    b = cfg.build().run(cfg.n, cfg.R)

    assert a.params.shape == (50, 4)
    assert torch.equal(a.params, b.params)
    assert torch.equal(a.stderr, b.stderr)
    assert torch.isfinite(a.stderr).all()
    assert torch.all(a.stderr > 0)


def test_reference_scenario_golden_values():
    # torch CPU generator, draw order x1, x2, x3 over (R,n), then u
    cfg = default_config()
    res = cfg.build().run(cfg.n, cfg.R)

    params0 = torch.tensor(
        [2.039840272690552, -3.033502618316041, 1.0671898955205337, 0.4033538549451669],
        dtype=torch.float64,
    )
    stderr0 = torch.tensor(
        [0.10932434547802981, 0.05626919847627934, 0.12375743374600215, 0.0684735335739456],
        dtype=torch.float64,
    )
    assert torch.allclose(res.params[0], params0, rtol=1e-10, atol=0.0)
    assert torch.allclose(res.stderr[0], stderr0, rtol=1e-10, atol=0.0)


def test_lln_mean_of_estimates_converges_to_beta(reference_design):
    beta, regressors, error = reference_design
    res = run(100, 10_000, beta, regressors, error, seed=1809)

    assert torch.allclose(res.mc_mean, beta, atol=0.02)
    assert torch.all(res.mc_bias().abs() < 0.02)
    # Monte Carlo error of the mean shrinks like 1/sqrt(R)
    mc_se = res.mc_sd / (res.R ** 0.5)
    assert torch.all(res.mc_bias().abs() < 5.0 * mc_se)


def test_clt_scaled_covariance_approaches_asymptotic(reference_design):
    beta, regressors, error = reference_design
    res = run(500, 2000, beta, regressors, error, seed=2024)

    V = asymptotic_covariance(regressors, error)
    S = res.scaled_covariance()

    assert S.shape == (4, 4)
    rel = torch.abs(torch.diagonal(S) - torch.diagonal(V)) / torch.diagonal(V)
    assert torch.all(rel < 0.15)


def test_mean_stderr_matches_mc_sd(reference_design):
    beta, regressors, error = reference_design
    res = run(200, 2000, beta, regressors, error, seed=5)
    ratio = res.stderr.mean(dim=0) / res.mc_sd
    assert torch.all((ratio > 0.9) & (ratio < 1.1))


def test_coverage_near_nominal(reference_design):
    beta, regressors, error = reference_design
    res = run(100, 2000, beta, regressors, error, seed=77)
    cov = res.coverage(alpha=0.05)
    assert cov.shape == (4,)
    assert torch.all((cov > 0.92) & (cov < 0.98))


def test_rejection_rate_near_one_for_large_coefficients(reference_design):
    beta, regressors, error = reference_design
    res = run(100, 200, beta, regressors, error, seed=1809)
    rej = res.rejection_rate(alpha=0.05)
    assert torch.all(rej > 0.99)


def test_size_of_test_at_true_value(reference_design):
    beta, regressors, error = reference_design
    res = run(100, 4000, beta, regressors, error, seed=31)
    size = res.rejection_rate_beta0(beta, alpha=0.05)
    assert torch.all((size > 0.02) & (size < 0.08))


def test_rejection_rate_low_for_zero_coefficient():
    X, beta, y = make_design(500, 60, 3, seed=17, noise=1.0)
    beta0 = beta.clone()
    beta0[2] = 0.0
    # same noise, but x2 has no effect
    y0 = (X @ beta0.view(1, 3, 1)).squeeze(-1) + (y - (X @ beta.view(1, 3, 1)).squeeze(-1))
    res = OLS(X, y0, beta_true=beta0)
    assert res.rejection_rate(alpha=0.05)[2].item() < 0.1


def test_conf_int_shape_and_z_default():
    X, beta, y = make_design(20, 40, 3)
    res = OLS(X, y, beta_true=beta)
    ci = res.conf_int(alpha=0.05)
    assert ci.shape == (20, 3, 2)
    half = (ci[:, :, 1] - ci[:, :, 0]) / 2.0
    assert torch.allclose(half, 1.959963984540054 * res.stderr, rtol=1e-9)

    ci_t = res.conf_int(alpha=0.05, use_t=True)
    assert torch.all(ci_t[:, :, 1] - ci_t[:, :, 0] > ci[:, :, 1] - ci[:, :, 0])


def test_pvalues_consistent_with_rejections():
    X, beta, y = make_design(30, 40, 3, noise=1.0)
    res = OLS(X, y, beta_true=beta)
    p = res.pvalues
    assert p.shape == (30, 3)
    assert torch.all((p >= 0) & (p <= 1))
    assert torch.equal(res.reject_beta0(torch.zeros(3), alpha=0.05), p < 0.05)


def test_truth_dependent_diagnostics_are_none_without_beta_true():
    X, _, y = make_design(5, 30, 3)
    res = OLS(X, y)
    assert res.mc_bias() is None
    assert res.mc_rmse() is None
    assert res.coverage() is None
    assert res.scaled_errors() is None


def test_rmse_at_least_abs_bias():
    X, beta, y = make_design(50, 30, 3, noise=0.5)
    res = OLS(X, y, beta_true=beta)
    assert torch.all(res.mc_rmse() >= res.mc_bias().abs() - 1e-12)


def test_summary_mentions_parameters():
    cfg = default_config()
    res = cfg.build().run(cfg.n, cfg.R)
    text = res.summary()
    assert "OLS Monte Carlo Results" in text
    for name in ("const", "x1", "x2", "x3"):
        assert name in text
    assert "Cover@0.95" in text


def test_beta_true_of_wrong_length_raises():
    X, _, y = make_design(5, 30, 3)
    res = OLS(X, y, beta_true=[1.0, 2.0])
    with pytest.raises(ValueError):
        res.mc_bias()


def test_summary_rejects_wrong_number_of_names():
    X, _, y = make_design(5, 30, 3)
    res = OLS(X, y)
    with pytest.raises(ShapeError):
        res.summary(param_names=["a", "b", "c", "d"])
