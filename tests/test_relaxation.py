import warnings

import numpy as np
import pytest

from generators import geodesics, sine_based
from relaxation import balance_step, relax, rms_displacement
from utils import ConvergenceWarning, EX, EY, EZ


def _relax(seed, **kwargs):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ConvergenceWarning)
        return relax(seed, **kwargs)


def test_balance_step_returns_new_snapshot():
    seed = sine_based(4)
    before = seed.points.copy()
    step = balance_step(seed)
    assert step is not seed
    np.testing.assert_array_equal(seed.points, before)
    np.testing.assert_allclose(np.linalg.norm(step.points, axis=1), 1.0, atol=1e-12)


def test_corners_stay_fixed():
    t, _ = _relax(sine_based(5), max_iter=10)
    np.testing.assert_allclose(t[0, 0], EX, atol=1e-12)
    np.testing.assert_allclose(t[0, 5], EZ, atol=1e-12)
    np.testing.assert_allclose(t[5, 0], EY, atol=1e-12)


def test_edge_vertices_stay_on_their_great_circle():
    t, _ = _relax(geodesics(6), max_iter=20)
    np.testing.assert_allclose(t.row(0)[:, 1], 0.0, atol=1e-12)
    np.testing.assert_allclose([t[i, 0][2] for i in range(7)], 0.0, atol=1e-12)
    np.testing.assert_allclose([t[i, 6 - i][0] for i in range(7)], 0.0, atol=1e-12)


def test_seed_is_not_modified():
    seed = sine_based(6)
    before = seed.points.copy()
    _relax(seed)
    np.testing.assert_array_equal(seed.points, before)


@pytest.mark.parametrize("n", [2, 4, 6])
def test_converges_for_small_orders(n):
    t, info = relax(sine_based(n))
    assert info['converged']
    assert info['rms_history'][-1] < 1e-8
    assert info['iterations'] == len(info['rms_history']) <= 100
    np.testing.assert_allclose(np.linalg.norm(t.points, axis=1), 1.0, atol=1e-12)


@pytest.mark.parametrize("n", [3, 5, 8])
def test_rms_non_increasing_after_first_pass(n):
    _, info = _relax(sine_based(n))
    history = info['rms_history']
    for before, after in zip(history[1:], history[2:]):
        assert after <= before * (1 + 1e-6) + 1e-15


def test_terminates_within_budget_at_max_order():
    _, info = _relax(sine_based(40))
    assert info['iterations'] <= 100


def test_exhausted_budget_warns():
    with pytest.warns(ConvergenceWarning):
        t, info = relax(sine_based(10), max_iter=1)
    assert not info['converged']
    assert info['iterations'] == 1
    assert t.n == 10


def test_zero_budget_returns_seed():
    seed = sine_based(3)
    with pytest.warns(ConvergenceWarning):
        t, info = relax(seed, max_iter=0)
    assert t is seed
    assert info['rms_history'] == []


def test_order_zero():
    t, info = relax(sine_based(0))
    assert info['converged']
    np.testing.assert_allclose(t[0, 0], EX)


def test_rms_displacement():
    a = sine_based(2)
    b = a.map(lambda p: p + np.array([0.0, 0.0, 0.5]))
    assert rms_displacement(a, a) == 0.0
    assert rms_displacement(a, b) == pytest.approx(0.5)


def test_verbose(capsys):
    relax(sine_based(2), verbose=True)
    assert "pass   1" in capsys.readouterr().out
