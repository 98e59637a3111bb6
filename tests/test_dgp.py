import pytest
import torch

import mcasymptotics.dgp as dgp
from mcasymptotics.dgp import (
    Bernoulli,
    Constant,
    Exponential,
    FromCallable,
    Normal,
    Uniform,
    as_distribution,
    get_distribution,
    list_distributions,
    register_distribution,
)
from mcasymptotics.exceptions import NotSupportedError


@pytest.mark.parametrize(
    "dist",
    [Normal(-1.0, 1.0), Bernoulli(0.3), Exponential(1.0), Uniform(-1.0, 1.0)],
)
def test_sample_moments_match_analytic(dist):
    g = torch.Generator().manual_seed(99)
    x = dist.sample((200_000,), generator=g)
    assert x.dtype == torch.float64
    assert abs(x.mean().item() - dist.mean) < 0.01
    assert abs(x.var().item() - dist.variance) < 0.03


def test_same_seed_same_draws():
    a = Exponential(2.0).sample((3, 5), generator=torch.Generator().manual_seed(1))
    b = Exponential(2.0).sample((3, 5), generator=torch.Generator().manual_seed(1))
    assert torch.equal(a, b)


def test_constant_has_zero_variance():
    c = Constant(2.5)
    x = c.sample((4,))
    assert torch.all(x == 2.5)
    assert c.variance == 0.0
    assert c.second_moment == 6.25


def test_invalid_parameters_raise():
    with pytest.raises(ValueError):
        Normal(0.0, 0.0)
    with pytest.raises(ValueError):
        Bernoulli(1.5)
    with pytest.raises(ValueError):
        Exponential(-1.0)
    with pytest.raises(ValueError):
        Uniform(1.0, 1.0)


def test_from_callable_calls_once_per_draw():
    calls = []

    def fn():
        calls.append(1)
        return float(len(calls))

    d = FromCallable(fn)
    x = d.sample((2, 3))
    assert len(calls) == 6
    assert x.tolist() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
    assert d.mean != d.mean  # NaN without supplied moments


def test_as_distribution_wraps_callables():
    assert isinstance(as_distribution(lambda: 1.0), FromCallable)
    n = Normal()
    assert as_distribution(n) is n
    with pytest.raises(TypeError):
        as_distribution(3.0)


def test_single_draw_via_call():
    v = Uniform(0.0, 1.0)(torch.Generator().manual_seed(0))
    assert isinstance(v, float)
    assert 0.0 <= v < 1.0


def test_registry_has_builtin_distributions():
    names = list_distributions()
    for name in ("normal", "bernoulli", "exponential", "uniform", "constant"):
        assert name in names


def test_get_distribution_builds_instances():
    d = get_distribution("Normal", loc=-1.0, scale=2.0)
    assert d == Normal(-1.0, 2.0)


def test_get_distribution_unknown_raises():
    with pytest.raises(NotSupportedError):
        get_distribution("does_not_exist")


def test_register_custom_distribution(monkeypatch):
    with monkeypatch.context() as m:
        m.setattr(dgp, "_REGISTRY", dict(dgp._REGISTRY))
        register_distribution("unit_uniform", lambda: Uniform(0.0, 1.0))
        assert get_distribution("unit_uniform") == Uniform(0.0, 1.0)
        assert "unit_uniform" in list_distributions()
    assert "unit_uniform" not in list_distributions()
    with pytest.raises(ValueError):
        register_distribution("  ", Normal)
