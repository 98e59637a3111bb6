import random

import pytest
import torch

from mcasymptotics import (
    Constant,
    MonteCarloOLS,
    Normal,
    SingularDesignMatrix,
    Uniform,
    default_config,
    draw_sample,
    fit_ols,
    run,
)
from mcasymptotics.exceptions import ShapeError


def test_draw_sample_shapes_and_response(reference_design):
    beta, regressors, error = reference_design
    sim = MonteCarloOLS(beta, regressors, error, seed=1)

    s = sim.draw_sample(25)
    assert s.X.shape == (25, 4)
    assert s.y.shape == (25,)
    assert torch.all(s.X[:, 0] == 1.0)
    assert torch.allclose(s.y, s.X @ beta + s.u, atol=1e-12)
    # x2 ~ Bernoulli
    assert set(s.X[:, 2].tolist()) <= {0.0, 1.0}
    # x3 ~ Exponential, u ~ Uniform(-1,1)
    assert torch.all(s.X[:, 3] >= 0.0)
    assert torch.all(s.u.abs() <= 1.0)


def test_draw_samples_batched_shapes(reference_design):
    beta, regressors, error = reference_design
    sim = MonteCarloOLS(beta, regressors, error, seed=2)
    X, y = sim.draw_samples(30, 7)
    assert X.shape == (7, 30, 4)
    assert y.shape == (7, 30)


def test_replications_are_distinct(reference_design):
    beta, regressors, error = reference_design
    res = MonteCarloOLS(beta, regressors, error, seed=3).run(40, 5)
    assert not torch.equal(res.params[0], res.params[1])


def test_wrong_number_of_regressors_raises(reference_design):
    beta, regressors, error = reference_design
    with pytest.raises(ShapeError):
        MonteCarloOLS(beta, regressors[:2], error)


def test_non_positive_sizes_raise(reference_design):
    beta, regressors, error = reference_design
    sim = MonteCarloOLS(beta, regressors, error, seed=0)
    with pytest.raises(ValueError):
        sim.run(0, 10)
    with pytest.raises(ValueError):
        sim.run(10, 0)


def test_zero_error_reproduces_beta_exactly(reference_design):
    beta, regressors, _ = reference_design
    res = run(50, 20, beta, regressors, Constant(0.0), seed=11)
    assert torch.allclose(res.params, beta.expand(20, 4), atol=1e-9)

    sim = MonteCarloOLS(beta, regressors, Constant(0.0), seed=11)
    fm = sim.fit_ols(sim.draw_sample(30))
    assert torch.allclose(fm.params, beta, atol=1e-8)


def test_run_is_deterministic_for_fixed_seed():
    cfg = default_config()
    sim = cfg.build()

    first = sim.run(cfg.n, cfg.R)
    second = sim.run(cfg.n, cfg.R)
    third = cfg.build().run(cfg.n, cfg.R)

    assert torch.equal(first.params, second.params)
    assert torch.equal(first.stderr, second.stderr)
    assert torch.equal(first.params, third.params)
    assert torch.equal(first.stderr, third.stderr)


def test_module_level_run_matches_simulator(reference_design):
    beta, regressors, error = reference_design
    a = run(100, 50, beta, regressors, error, seed=1809)
    b = MonteCarloOLS(beta, regressors, error, seed=1809).run(100, 50)
    assert torch.equal(a.params, b.params)
    assert len(a) == 50
    assert a.k == 4


def test_different_seeds_differ(reference_design):
    beta, regressors, error = reference_design
    a = run(50, 10, beta, regressors, error, seed=1)
    b = run(50, 10, beta, regressors, error, seed=2)
    assert not torch.equal(a.params, b.params)


def test_pairs_cover_every_replication(reference_design):
    beta, regressors, error = reference_design
    res = run(60, 8, beta, regressors, error, seed=4)
    pairs = list(res.pairs())
    assert len(pairs) == 8
    b3, se3 = pairs[3]
    assert torch.equal(b3, res.params[3])
    assert torch.equal(se3, res.stderr[3])
    assert torch.equal(res[3].params, res.params[3])
    with pytest.raises(IndexError):
        res[8]


def test_collinear_regressor_aborts_run():
    # a constant regressor duplicates the intercept
    with pytest.raises(SingularDesignMatrix):
        run(30, 5, [1.0, 2.0, 0.5], [Normal(), Constant(3.0)], Uniform(-1.0, 1.0), seed=0)


def test_n_less_than_k_aborts_run(reference_design):
    beta, regressors, error = reference_design
    with pytest.raises(SingularDesignMatrix):
        run(3, 5, beta, regressors, error, seed=0)


def test_module_level_draw_sample_and_fit():
    g = torch.Generator().manual_seed(21)
    s = draw_sample(40, [Normal(0.0, 2.0)], Uniform(-0.5, 0.5), beta=[1.0, -1.0], generator=g)
    fm = fit_ols(s)
    assert fm.k == 2
    assert torch.all(torch.abs(fm.params - torch.tensor([1.0, -1.0], dtype=torch.float64)) < 0.5)


def test_plain_callables_as_generators():
    rng = random.Random(7)
    s = draw_sample(
        30,
        [lambda: rng.gauss(0.0, 1.0), lambda: rng.expovariate(1.0)],
        lambda: 0.0,
        beta=[0.5, 1.0, -2.0],
    )
    assert s.X.shape == (30, 3)
    fm = fit_ols(s)
    assert torch.allclose(fm.params, torch.tensor([0.5, 1.0, -2.0], dtype=torch.float64), atol=1e-9)


def test_qr_solver_matches_cholesky(reference_design):
    beta, regressors, error = reference_design
    a = run(80, 10, beta, regressors, error, seed=8, solve_method="cholesky")
    b = run(80, 10, beta, regressors, error, seed=8, solve_method="qr")
    assert torch.allclose(a.params, b.params, atol=1e-10)
    assert torch.allclose(a.stderr, b.stderr, atol=1e-10)
