"""Two-step Adams-Bashforth-Moulton predictor-corrector (AM2).

The AB2 formula predicts a trial state :math:`\\tilde{y}`; the derivative
there drives the corrector:

.. math::

    y_{n+1} = y_n + \\frac{5}{12} h f(\\tilde{y})
        + \\frac{2}{3} h f(y_n) - \\frac{1}{12} h f(y_{n-1})

As in AB2, the time component of the new state is set to ``t_n + h``.
"""

from __future__ import annotations

import jax.numpy as jnp

from twobody.config import get_dtype
from twobody.integrators._base import TwoStepIntegrator
from twobody.integrators._types import StepResult
from twobody.soe import DerivativeFunction, call_soe
from twobody.vector import FixedVector


def am2_step(
    soe: DerivativeFunction,
    prev: FixedVector,
    current: FixedVector,
    h,
) -> StepResult:
    """Perform a single AM2 predictor-corrector step.

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

    predicted = current + f_current * 3.0 / 2.0 - f_prev / 2.0
    f_predicted = call_soe(soe, predicted) * h

    state_new = current + f_predicted * 5.0 / 12.0 + f_current * 2.0 / 3.0 - f_prev / 12.0
    state_new[0] = current[0] + h

    return StepResult(
        state=state_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
        accepted=jnp.asarray(True),
        attempts=jnp.asarray(1, dtype=jnp.int32),
    )


class Am2(TwoStepIntegrator):
    """Unbounded sequence of AM2 steps from two seed states."""

    step_fn = staticmethod(am2_step)
