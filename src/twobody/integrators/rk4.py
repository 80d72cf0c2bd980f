"""Classic 4th-order Runge-Kutta integrator (RK4).

Implements the standard four-stage, 4th-order explicit Runge-Kutta method
for numerical integration of ordinary differential equations. This is a
fixed-step method with no adaptive step-size control.

The Butcher tableau for RK4 is:

.. math::

    \\begin{array}{c|cccc}
    0   &     &     &     &   \\\\
    1/2 & 1/2 &     &     &   \\\\
    1/2 &  0  & 1/2 &     &   \\\\
    1   &  0  &  0  &  1  &   \\\\
    \\hline
        & 1/6 & 1/3 & 1/3 & 1/6
    \\end{array}

Time is carried in component 0 of the state, so the stage times are not
passed separately: the forced unit rate in that slot advances them.
"""

from __future__ import annotations

import jax.numpy as jnp

from twobody.config import get_dtype
from twobody.integrators._base import OneStepIntegrator
from twobody.integrators._types import StepResult
from twobody.soe import DerivativeFunction, call_soe
from twobody.vector import FixedVector


def rk4_step(soe: DerivativeFunction, state: FixedVector, h) -> StepResult:
    """Perform a single RK4 integration step.

    Advances the state from time ``t`` to ``t + h``. Compatible with
    ``jax.jit``.

    Args:
        soe: Derivative function.
        state: Current state; component 0 is the current time.
        h: Timestep. May be negative for backward integration.

    Returns:
        StepResult: Named tuple with fields:
            - ``state``: State at ``t + h``.
            - ``dt_used``: Always equals ``h``.
            - ``error_estimate``: Always 0.0.
            - ``dt_next``: Always equals ``h``.

    Examples:
        ```python
        from twobody.integrators import rk4_step
        from twobody.soe import Soe2
        from twobody.vector import FixedVector
        harmonic = Soe2(lambda s: s[2:3], lambda s: -s[1:2], 3)
        result = rk4_step(harmonic, FixedVector([0.0, 1.0, 0.0]), 0.01)
        result.state  # ~[0.01, cos(0.01), -sin(0.01)]
        ```
    """
    dtype = get_dtype()
    h = jnp.asarray(h, dtype=dtype)

    k1 = call_soe(soe, state)
    k2 = call_soe(soe, state + k1 * h / 2.0)
    k3 = call_soe(soe, state + k2 * h / 2.0)
    k4 = call_soe(soe, state + k3 * h)

    state_new = state + (k1 + k2 * 2.0 + k3 * 2.0 + k4) * h / 6.0

    return StepResult(
        state=state_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
        accepted=jnp.asarray(True),
        attempts=jnp.asarray(1, dtype=jnp.int32),
    )


def seed_from_rk4(soe: DerivativeFunction, state: FixedVector, h) -> FixedVector:
    """Second seed state for a two-step method: one RK4 step from ``state``.

    Args:
        soe: Derivative function.
        state: First seed state.
        h: Timestep.

    Returns:
        FixedVector: State at ``t + h``.
    """
    return rk4_step(soe, state, h).state


class Rk4(OneStepIntegrator):
    """Unbounded sequence of classic RK4 steps.

    Examples:
        ```python
        from itertools import islice
        states = list(islice(Rk4(init, soe, 0.001), 2000))
        ```
    """

    step_fn = staticmethod(rk4_step)
