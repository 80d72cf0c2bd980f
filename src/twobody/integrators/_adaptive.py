"""Adaptive step-size control utilities for embedded Runge-Kutta methods.

The controller works on the magnitude of the difference between the two
embedded solutions:

1. Zero the reserved time component of both solutions and take the
   Euclidean norm of their difference as the local error estimate ``r``.
2. Accept the step if ``r <= tolerance``.
3. Rescale the step by ``sigma = S * (tolerance / r) ** p``, clamped to
   ``[min_scale_factor, max_scale_factor]``.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from twobody.config import get_dtype
from twobody.vector import FixedVector, magnitude


def compute_error_estimate(high: FixedVector, low: FixedVector) -> Array:
    """Local error estimate between two embedded solutions.

    The time component (index 0) is excluded from the comparison.

    Args:
        high: Higher-order solution.
        low: Lower-order solution.

    Returns:
        jax.Array: Scalar ``|high - low|`` over components ``1..N-1``.
    """
    diff = high - low
    diff[0] = 0.0
    return magnitude(diff)


def compute_scale_factor(
    error: ArrayLike,
    tolerance: float,
    safety_factor: float,
    exponent: float,
    min_scale_factor: float,
    max_scale_factor: float,
) -> Array:
    """Step-size control factor ``sigma`` for the next attempt or step.

    Args:
        error: Local error estimate from :func:`compute_error_estimate`.
        tolerance: Target local error.
        safety_factor: Multiplier applied to the optimal factor.
        exponent: Exponent applied to ``tolerance / error``.
        min_scale_factor: Lower clamp.
        max_scale_factor: Upper clamp, also used for a zero error.

    Returns:
        jax.Array: Scalar factor to multiply the step size by.
    """
    error = jnp.asarray(error, dtype=get_dtype())
    safe_error = jnp.where(error > 0.0, error, 1.0)
    raw = safety_factor * jnp.power(tolerance / safe_error, exponent)
    sigma = jnp.where(error > 0.0, raw, max_scale_factor)
    return jnp.clip(sigma, min_scale_factor, max_scale_factor)
