"""Tests for the twobody.orbits module."""

import math

import jax
import jax.numpy as jnp
import pytest

from twobody.orbits import (
    KeplerPropagator,
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_true_to_eccentric,
    kepler_elements_from_state,
    kepler_position,
)
from twobody.vector import FixedVector

_POSITION_TOL = 1e-6
_ANOMALY_TOL = 1e-10

# Relative orbit of the m1 = m2 = 5, g = 0.1 scenario
_R = [1.0, 1.0]
_V = [-1.0, 0.0]
_MU = 1.0


def _xyz(position):
    return [float(x) for x in position[1:4]]


# ──────────────────────────────────────────────
# Anomaly conversions
# ──────────────────────────────────────────────

class TestAnomalies:
    def test_eccentric_to_mean(self):
        M = anomaly_eccentric_to_mean(math.pi / 2.0, 0.1)
        assert float(M) == pytest.approx(math.pi / 2.0 - 0.1)

    @pytest.mark.parametrize("e", [0.0, 0.1, 0.5, 0.9])
    def test_mean_to_eccentric_solves_kepler(self, e):
        for M in (0.1, 1.0, 2.5, -1.2, 7.0):
            E = anomaly_mean_to_eccentric(M, e)
            assert float(E - e * jnp.sin(E)) == pytest.approx(M, abs=1e-8)

    @pytest.mark.parametrize("e", [0.95, 0.99, 0.992042, 0.999])
    def test_mean_to_eccentric_high_eccentricity(self, e):
        for M in (0.0478, 0.001, 3.0, -0.02, 6.3, 13.0):
            E = anomaly_mean_to_eccentric(M, e)
            assert float(E - e * jnp.sin(E)) == pytest.approx(M, abs=1e-8)

    def test_high_eccentricity_stays_on_revolution(self):
        M = 4.0 * math.pi + 0.05
        E = anomaly_mean_to_eccentric(M, 0.99)
        assert 4.0 * math.pi <= float(E) < 6.0 * math.pi

    def test_mean_to_eccentric_is_not_wrapped(self):
        E = anomaly_mean_to_eccentric(2.0 * math.pi + 1.0, 0.0)
        assert float(E) == pytest.approx(2.0 * math.pi + 1.0)

    def test_iteration_budget_returns_last_iterate(self):
        e, M = 0.9, 0.3
        E1 = anomaly_mean_to_eccentric(M, e, max_iter=1)
        E = anomaly_mean_to_eccentric(M, e)
        assert math.isfinite(float(E1))
        assert abs(float(E1 - e * jnp.sin(E1)) - M) > abs(float(E - e * jnp.sin(E)) - M)

    @pytest.mark.parametrize("nu", [0.3, 1.5, 2.9, -2.0])
    def test_true_eccentric_roundtrip(self, nu):
        e = 0.4
        E = anomaly_true_to_eccentric(nu, e)
        assert float(anomaly_eccentric_to_true(E, e)) == pytest.approx(nu, abs=_ANOMALY_TOL)

    def test_eccentric_to_true_is_quadrant_safe(self):
        nu = anomaly_eccentric_to_true(-2.5, 0.3)
        assert float(nu) < -2.5


# ──────────────────────────────────────────────
# Orbital elements
# ──────────────────────────────────────────────

class TestElements:
    def test_scenario_elements(self):
        el = kepler_elements_from_state(_R, _V, _MU)
        assert float(el.a) == pytest.approx(1.0 / (math.sqrt(2.0) - 1.0))
        assert float(el.e) == pytest.approx(math.sqrt(0.5 + (1.0 - math.sqrt(0.5)) ** 2))
        assert float(el.i) == pytest.approx(0.0)
        assert float(el.omega) == 0.0
        assert float(el.mu) == _MU

    def test_accepts_fixed_vectors(self):
        el = kepler_elements_from_state(FixedVector(_R), FixedVector(_V), _MU)
        assert float(el.e) < 1.0

    def test_hyperbolic_orbit_raises(self):
        with pytest.raises(ValueError, match="elliptical"):
            kepler_elements_from_state([1.0, 0.0], [0.0, 2.0], 1.0)

    def test_parabolic_orbit_raises(self):
        with pytest.raises(ValueError, match="elliptical"):
            kepler_elements_from_state([1.0, 0.0], [0.0, math.sqrt(2.0) + 1e-9], 1.0)

    def test_wrong_length_raises(self):
        with pytest.raises(ValueError, match="2- or 3-component"):
            kepler_elements_from_state([1.0, 0.0, 0.0, 0.0], [0.0, 1.0, 0.0, 0.0], 1.0)

    def test_circular_orbit_has_zero_periapsis_argument(self):
        el = kepler_elements_from_state([1.0, 0.0, 0.0], [0.0, 1.0, 0.0], 1.0)
        assert float(el.e) == pytest.approx(0.0, abs=1e-12)
        assert float(el.w) == 0.0
        assert float(el.a) == pytest.approx(1.0)


# ──────────────────────────────────────────────
# Analytic positions
# ──────────────────────────────────────────────

class TestKeplerPosition:
    @pytest.mark.parametrize(
        "r, v, mu",
        [
            (_R, _V, _MU),
            ([1.0, 0.2, 0.3], [0.1, 0.9, 0.4], 1.0),
            ([1.0, 0.0, 0.0], [0.0, -1.1, 0.0], 1.0),
            ([-0.5, 2.0, -0.7], [-0.3, -0.4, 0.2], 2.0),
            ([1.0, 0.0, 0.0], [0.0, 0.6, 0.8], 1.0),
            ([1.0, 0.0, 0.0], [0.01, 0.1, 0.05], 1.0),
        ],
    )
    def test_roundtrip_at_epoch(self, r, v, mu):
        el = kepler_elements_from_state(r, v, mu)
        position = kepler_position(el, 3.0, 3.0)
        expected = list(r) + [0.0] * (3 - len(r))
        assert _xyz(position) == pytest.approx(expected, abs=_POSITION_TOL)
        radius = math.sqrt(sum(x * x for x in _xyz(position)))
        assert radius == pytest.approx(math.sqrt(sum(x * x for x in r)), abs=_POSITION_TOL)

    def test_random_elliptical_states_roundtrip(self):
        n = 100
        keys = jax.random.split(jax.random.PRNGKey(2024), 4)
        r_dir = jax.random.normal(keys[0], (n, 3))
        v_dir = jax.random.normal(keys[1], (n, 3))
        radius = jax.random.uniform(keys[2], (n,), minval=0.5, maxval=2.0)
        # Fraction of escape speed; below 1 keeps every orbit elliptical
        frac = jax.random.uniform(keys[3], (n,), minval=0.1, maxval=0.85)

        for k in range(n):
            r = radius[k] * r_dir[k] / jnp.linalg.norm(r_dir[k])
            speed = frac[k] * jnp.sqrt(2.0 / radius[k])
            v = speed * v_dir[k] / jnp.linalg.norm(v_dir[k])
            el = kepler_elements_from_state(r, v, 1.0)
            position = kepler_position(el, 1.5, 1.5)
            assert _xyz(position) == pytest.approx(
                [float(x) for x in r], abs=_POSITION_TOL
            ), f"state {k}: e={float(el.e):.6f}"

    def test_shape_and_placeholder(self):
        el = kepler_elements_from_state(_R, _V, _MU)
        position = kepler_position(el, 0.0, 1.25)
        assert len(position) == 5
        assert float(position[0]) == 1.25
        assert float(position[4]) == 0.0

    def test_circular_equatorial_quarter_period(self):
        el = kepler_elements_from_state([1.0, 0.0, 0.0], [0.0, 1.0, 0.0], 1.0)
        position = kepler_position(el, 0.0, math.pi / 2.0)
        assert _xyz(position) == pytest.approx([0.0, 1.0, 0.0], abs=_POSITION_TOL)

    def test_circular_inclined_quarter_period(self):
        el = kepler_elements_from_state([1.0, 0.0, 0.0], [0.0, 0.6, 0.8], 1.0)
        position = kepler_position(el, 0.0, math.pi / 2.0)
        assert _xyz(position) == pytest.approx([0.0, 0.6, 0.8], abs=_POSITION_TOL)

    def test_full_period_returns_to_start(self):
        el = kepler_elements_from_state(_R, _V, _MU)
        period = 2.0 * math.pi * math.sqrt(float(el.a) ** 3 / _MU)
        position = kepler_position(el, 0.0, period)
        assert _xyz(position) == pytest.approx([1.0, 1.0, 0.0], abs=_POSITION_TOL)


class TestKeplerPropagator:
    def test_steps_from_first_increment(self):
        prop = KeplerPropagator(_R, _V, _MU, 0.5)
        times = [float(next(prop)[0]) for _ in range(3)]
        assert times == pytest.approx([0.5, 1.0, 1.5])

    def test_reanchoring(self):
        prop = KeplerPropagator(_R, _V, _MU, 0.1)
        prop.set_init_time(5.0)
        prop.set_current_time(5.0)
        position = next(prop)
        assert float(position[0]) == 5.0
        assert _xyz(position) == pytest.approx([1.0, 1.0, 0.0], abs=_POSITION_TOL)
        assert prop.t == pytest.approx(5.1)

    def test_position_at_leaves_clock(self):
        prop = KeplerPropagator(_R, _V, _MU, 0.1)
        prop.position_at(3.0)
        assert prop.t == pytest.approx(0.1)

    def test_iterator_matches_position_at(self):
        prop = KeplerPropagator(_R, _V, _MU, 0.25)
        expected = prop.position_at(0.25)
        assert _xyz(next(prop)) == pytest.approx(_xyz(expected))
