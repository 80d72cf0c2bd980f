"""Analytic (Keplerian) propagation of the relative two-body orbit.

Classical orbital elements are derived once from an instantaneous relative
position, velocity and gravitational parameter.  The position at any time
then follows in closed form by solving Kepler's equation, which makes the
propagator a reference for measuring the drift of the numerical
integrators.

Only elliptical orbits (``0 <= e < 1``) are supported.  Degenerate
geometries are handled with the usual conventions:

- equatorial orbits (inclination within ``DEGENERACY_EPS`` of 0 or pi) have
  a longitude of ascending node of zero and measure the argument of
  periapsis from the x axis;
- circular orbits (``e < DEGENERACY_EPS``) have an argument of periapsis of
  zero and measure the true anomaly from the ascending node (or from the
  x axis when also equatorial).

References:
    1. R. Schwarz, *Keplerian Orbit Elements -> Cartesian State Vectors*
       and *Cartesian State Vectors -> Keplerian Orbit Elements*, 2017.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from twobody.config import get_dtype
from twobody.orbits.keplerian import (
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_true_to_eccentric,
)
from twobody.vector import FixedVector

logger = logging.getLogger(__name__)

DEGENERACY_EPS = 1e-4
"""Threshold below which inclination (from 0 or pi) and eccentricity count as zero."""


class KeplerElements(NamedTuple):
    """Classical orbital elements of an elliptical orbit.

    Attributes:
        a: Semi-major axis.
        e: Eccentricity.
        w: Argument of periapsis. Units: *rad*
        omega: Longitude of the ascending node. Units: *rad*
        i: Inclination. Units: *rad*
        mean_anomaly: Mean anomaly at the epoch. Units: *rad*
        mu: Gravitational parameter.
    """

    a: Array
    e: Array
    w: Array
    omega: Array
    i: Array
    mean_anomaly: Array
    mu: Array


def _as_vector3(x: FixedVector | ArrayLike) -> Array:
    data = x.data if isinstance(x, FixedVector) else jnp.asarray(x, dtype=get_dtype())
    if data.shape == (2,):
        return jnp.concatenate([data, jnp.zeros(1, dtype=data.dtype)])
    if data.shape != (3,):
        raise ValueError(f"Expected a 2- or 3-component vector, got shape {data.shape}")
    return data


def _unit_angle(v1: Array, v2: Array) -> Array:
    """Angle between two vectors, with the cosine clipped against rounding."""
    cos = jnp.dot(v1, v2) / (jnp.linalg.norm(v1) * jnp.linalg.norm(v2))
    return jnp.arccos(jnp.clip(cos, -1.0, 1.0))


def kepler_elements_from_state(
    r: FixedVector | ArrayLike,
    v: FixedVector | ArrayLike,
    mu: float,
) -> KeplerElements:
    """Derive classical orbital elements from a relative state.

    Two-component inputs are treated as lying in the z = 0 plane.

    Args:
        r: Relative position.
        v: Relative velocity.
        mu: Gravitational parameter ``G * (m1 + m2)``.

    Returns:
        KeplerElements: Elements at the epoch of the given state.

    Raises:
        ValueError: If the orbit is not elliptical (``e >= 1``) or the
            vectors have the wrong length.

    Examples:
        ```python
        from twobody.orbits import kepler_elements_from_state
        el = kepler_elements_from_state([1.0, 1.0], [-1.0, 0.0], 1.0)
        float(el.e)  # ~0.765
        ```
    """
    r = _as_vector3(r)
    v = _as_vector3(v)
    mu = jnp.asarray(mu, dtype=get_dtype())
    two_pi = 2.0 * jnp.pi

    r_mag = jnp.linalg.norm(r)

    # Angular momentum, eccentricity vector and node vector
    h = jnp.cross(r, v)
    e_vec = jnp.cross(v, h) / mu - r / r_mag
    n = jnp.array([-h[1], h[0], 0.0], dtype=r.dtype)

    e = jnp.linalg.norm(e_vec)
    if not float(e) < 1.0:
        raise ValueError(f"Only elliptical orbits are supported, got eccentricity {float(e):g}")

    i = jnp.arccos(h[2] / jnp.linalg.norm(h))

    retrograde = jnp.abs(i - jnp.pi) < DEGENERACY_EPS
    equatorial = (jnp.abs(i) < DEGENERACY_EPS) | retrograde
    circular = e < DEGENERACY_EPS

    # True anomaly
    nu_ecc = _unit_angle(e_vec, r)
    nu_ecc = jnp.where(jnp.dot(r, v) >= 0.0, nu_ecc, two_pi - nu_ecc)
    theta = jnp.arctan2(r[1], r[0])
    u = _unit_angle(n, r)
    nu_circ = jnp.where(
        equatorial,
        jnp.where(retrograde, -theta, theta),
        jnp.where(r[2] < 0.0, two_pi - u, u),
    )
    nu = jnp.where(circular, nu_circ, nu_ecc)

    E = anomaly_true_to_eccentric(nu, e)

    # Longitude of the ascending node
    node = _unit_angle(n, jnp.array([1.0, 0.0, 0.0], dtype=r.dtype))
    node = jnp.where(n[1] < 0.0, two_pi - node, node)
    omega = jnp.where(equatorial, 0.0, node)

    # Argument of periapsis
    w = jnp.where(equatorial, jnp.arctan2(e_vec[1], e_vec[0]), _unit_angle(n, e_vec))
    flip = jnp.where(equatorial, retrograde, e_vec[2] < 0.0)
    w = jnp.where(flip, two_pi - w, w)
    w = jnp.where(circular, 0.0, w)

    M = anomaly_eccentric_to_mean(E, e)

    # Vis-viva
    a = 1.0 / (2.0 / r_mag - jnp.dot(v, v) / mu)

    elements = KeplerElements(a=a, e=e, w=w, omega=omega, i=i, mean_anomaly=M, mu=mu)
    logger.debug(
        "Kepler elements: a=%g e=%g i=%g omega=%g w=%g M=%g",
        float(a),
        float(e),
        float(i),
        float(omega),
        float(w),
        float(M),
    )
    return elements


def kepler_position(elements: KeplerElements, t0: ArrayLike, t: ArrayLike) -> FixedVector:
    """Analytic position at time ``t`` of an orbit whose epoch is ``t0``.

    Args:
        elements: Orbital elements at ``t0``.
        t0: Epoch of ``elements``.
        t: Requested time.

    Returns:
        FixedVector: ``[t, x, y, z, 0]``.  The last component is an unused
        placeholder.
    """
    dtype = get_dtype()
    t0 = jnp.asarray(t0, dtype=dtype)
    t = jnp.asarray(t, dtype=dtype)
    a, e, w, omega, i = elements.a, elements.e, elements.w, elements.omega, elements.i

    # Mean anomaly at t
    Mt = elements.mean_anomaly + (t - t0) * jnp.sqrt(elements.mu / a**3)

    E = anomaly_mean_to_eccentric(Mt, e)
    nu = anomaly_eccentric_to_true(E, e)

    # Position in the orbital plane
    rc = a * (1.0 - e * jnp.cos(E))
    ox = rc * jnp.cos(nu)
    oy = rc * jnp.sin(nu)

    # 3-1-3 rotation by (w, i, omega)
    cos_w, sin_w = jnp.cos(w), jnp.sin(w)
    cos_O, sin_O = jnp.cos(omega), jnp.sin(omega)
    cos_i, sin_i = jnp.cos(i), jnp.sin(i)

    x = ox * (cos_w * cos_O - sin_w * cos_i * sin_O) - oy * (sin_w * cos_O + cos_w * cos_i * sin_O)
    y = ox * (cos_w * sin_O + sin_w * cos_i * cos_O) + oy * (cos_w * cos_i * cos_O - sin_w * sin_O)
    z = ox * (sin_w * sin_i) + oy * (cos_w * sin_i)

    return FixedVector._from_internal(jnp.stack([t, x, y, z, jnp.zeros_like(t)]))


_kepler_position = jax.jit(kepler_position)


class KeplerPropagator:
    """Iterator over analytic positions at evenly spaced times.

    The epoch ``t0`` starts at 0 and the current time ``t`` at ``step``.
    Each ``next()`` returns the position at ``t`` and then advances ``t``
    by ``step``.  Both times can be re-anchored to compare against a
    numerically propagated state at the same instant.

    Args:
        r: Relative position at the epoch.
        v: Relative velocity at the epoch.
        mu: Gravitational parameter.
        step: Time increment between successive positions.

    Examples:
        ```python
        prop = KeplerPropagator([1.0, 1.0], [-1.0, 0.0], 1.0, 0.001)
        prop.set_current_time(2.0)
        next(prop)  # [2.0, x, y, 0.0, 0.0]
        ```
    """

    def __init__(
        self,
        r: FixedVector | ArrayLike,
        v: FixedVector | ArrayLike,
        mu: float,
        step: float,
    ) -> None:
        self.elements = kepler_elements_from_state(r, v, mu)
        self.t0 = 0.0
        self.t = 0.0 + step
        self.step = step

    def set_init_time(self, t: float) -> None:
        """Set the epoch the elements refer to."""
        self.t0 = t

    def set_current_time(self, t: float) -> None:
        """Set the time of the next returned position."""
        self.t = t

    def position_at(self, t: float) -> FixedVector:
        """Position at ``t`` without touching the iterator clock."""
        return _kepler_position(self.elements, self.t0, t)

    def __iter__(self):
        return self

    def __next__(self) -> FixedVector:
        position = self.position_at(self.t)
        self.t += self.step
        return position
