"""Two-step Adams-Bashforth integrator (AB2).

.. math::

    y_{n+1} = y_n + \\frac{3}{2} h f(y_n) - \\frac{1}{2} h f(y_{n-1})

The method needs two seed states; the usual choice is the initial state and
one RK4 step from it (see :func:`~twobody.integrators.rk4.seed_from_rk4`).
The time component of the new state is set to ``t_n + h`` directly instead
of being taken from the blend, so rounding in the reserved slot does not
accumulate.
"""

from __future__ import annotations

import jax.numpy as jnp

from twobody.config import get_dtype
from twobody.integrators._base import TwoStepIntegrator
from twobody.integrators._types import StepResult
from twobody.soe import DerivativeFunction, call_soe
from twobody.vector import FixedVector


def ab2_step(
    soe: DerivativeFunction,
    prev: FixedVector,
    current: FixedVector,
    h,
) -> StepResult:
    """Perform a single AB2 integration step.

    Args:
        soe: Derivative function.
        prev: State one step before ``current``.
        current: Current state; component 0 is the current time.
        h: Timestep.

    Returns:
        StepResult: State at ``current[0] + h`` with fixed-step metadata.
    """
    dtype = get_dtype()
    h = jnp.asarray(h, dtype=dtype)

    f_current = call_soe(soe, current) * h
    f_prev = call_soe(soe, prev) * h

    state_new = current + f_current * 3.0 / 2.0 - f_prev / 2.0
    state_new[0] = current[0] + h

    return StepResult(
        state=state_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
        accepted=jnp.asarray(True),
        attempts=jnp.asarray(1, dtype=jnp.int32),
    )


class Ab2(TwoStepIntegrator):
    """Unbounded sequence of AB2 steps from two seed states."""

    step_fn = staticmethod(ab2_step)
