"""Anomaly conversions for elliptical orbits.

Converts between mean, eccentric, and true anomalies.  All functions use
JAX operations and are compatible with ``jax.jit`` and ``jax.vmap``.
Inputs are coerced to the configured float dtype (see
:func:`twobody.config.set_dtype`).  Angles are in radians.

The mean-to-eccentric conversion solves Kepler's equation with a
Newton-Raphson iteration implemented with ``jax.lax.while_loop``.  It stops
after ``max_iter`` iterations even when the residual is still above
``tol``; the last iterate is returned without error.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from twobody.config import get_dtype

KEPLER_MAX_ITER = 30
"""Newton iteration budget for Kepler's equation."""

KEPLER_TOL = 1e-8
"""Residual below which the Newton iteration stops."""


def anomaly_eccentric_to_mean(anm_ecc: ArrayLike, e: ArrayLike) -> Array:
    """Convert eccentric anomaly to mean anomaly.

    Applies Kepler's equation: ``M = E - e * sin(E)``.

    Args:
        anm_ecc: Eccentric anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.

    Returns:
        Mean anomaly. Units: *rad*

    Examples:
        ```python
        from twobody.orbits import anomaly_eccentric_to_mean
        M = anomaly_eccentric_to_mean(1.5707963, 0.1)
        ```
    """
    E = jnp.asarray(anm_ecc, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return E - e * jnp.sin(E)


def anomaly_mean_to_eccentric(
    anm_mean: ArrayLike,
    e: ArrayLike,
    max_iter: int = KEPLER_MAX_ITER,
    tol: float = KEPLER_TOL,
) -> Array:
    """Convert mean anomaly to eccentric anomaly.

    Solves Kepler's equation ``M = E - e * sin(E)`` for ``E`` by Newton's
    method, starting from ``E = M`` when ``e < 0.8`` and from ``E = pi`` of
    the same revolution otherwise.  Iteration stops once
    ``|E - e sin(E) - M| < tol`` or after ``max_iter`` iterations.  The mean
    anomaly is not wrapped, so the result stays continuous in ``M``.

    Args:
        anm_mean: Mean anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.
        max_iter: Iteration budget.
        tol: Residual tolerance.

    Returns:
        Eccentric anomaly. Units: *rad*

    Examples:
        ```python
        from twobody.orbits import anomaly_mean_to_eccentric
        E = anomaly_mean_to_eccentric(1.4707, 0.1)
        ```
    """
    M = jnp.asarray(anm_mean, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())

    def residual(E):
        return E - e * jnp.sin(E) - M

    def cond_fn(carry):
        i, E = carry
        return (i < max_iter) & (jnp.abs(residual(E)) >= tol)

    def body_fn(carry):
        i, E = carry
        return i + 1, E - residual(E) / (1.0 - e * jnp.cos(E))

    # Initial guess: M for low eccentricity, pi (of the same revolution) for high
    two_pi = 2.0 * jnp.pi
    E0 = jnp.where(e < 0.8, M, jnp.pi + (M - M % two_pi))

    _, E = jax.lax.while_loop(cond_fn, body_fn, (jnp.asarray(0, dtype=jnp.int32), E0))
    return E


def anomaly_true_to_eccentric(anm_true: ArrayLike, e: ArrayLike) -> Array:
    """Convert true anomaly to eccentric anomaly.

    Uses the half-angle relation
    ``E = 2 * atan(tan(nu / 2) / sqrt((1 + e) / (1 - e)))``, which returns
    ``E`` in ``(-pi, pi)``.

    Args:
        anm_true: True anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.

    Returns:
        Eccentric anomaly. Units: *rad*
    """
    nu = jnp.asarray(anm_true, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return 2.0 * jnp.arctan(jnp.tan(nu / 2.0) / jnp.sqrt((1.0 + e) / (1.0 - e)))


def anomaly_eccentric_to_true(anm_ecc: ArrayLike, e: ArrayLike) -> Array:
    """Convert eccentric anomaly to true anomaly.

    Uses the quadrant-safe form
    ``nu = 2 * atan2(sqrt(1 + e) * sin(E / 2), sqrt(1 - e) * cos(E / 2))``.

    Args:
        anm_ecc: Eccentric anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.

    Returns:
        True anomaly. Units: *rad*
    """
    E = jnp.asarray(anm_ecc, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return 2.0 * jnp.arctan2(
        jnp.sqrt(1.0 + e) * jnp.sin(E / 2.0),
        jnp.sqrt(1.0 - e) * jnp.cos(E / 2.0),
    )
