"""Heun's predictor-corrector method (improved Euler).

An explicit Euler step predicts a trial state; the derivative at the trial
state corrects it by averaging the two slopes:

.. math::

    \\tilde{y} = y_n + h f(y_n), \\qquad
    y_{n+1} = y_n + \\frac{h}{2} \\left( f(y_n) + f(\\tilde{y}) \\right)

The method is second-order accurate, fixed-step, and never rejects a step.
"""

from __future__ import annotations

import jax.numpy as jnp

from twobody.config import get_dtype
from twobody.integrators._base import OneStepIntegrator
from twobody.integrators._types import StepResult
from twobody.soe import DerivativeFunction, call_soe
from twobody.vector import FixedVector


def heun_step(soe: DerivativeFunction, state: FixedVector, h) -> StepResult:
    """Perform a single Heun integration step.

    Args:
        soe: Derivative function.
        state: Current state; component 0 is the current time.
        h: Timestep. May be negative for backward integration.

    Returns:
        StepResult: State at ``t + h`` with fixed-step metadata.

    Examples:
        ```python
        from twobody.integrators import heun_step
        result = heun_step(soe, FixedVector([0.0, 1.0, 0.0]), 0.01)
        ```
    """
    dtype = get_dtype()
    h = jnp.asarray(h, dtype=dtype)

    derivative = call_soe(soe, state)
    trial = state + derivative * h
    prediction = call_soe(soe, trial)

    state_new = state + (derivative + prediction) * h / 2.0

    return StepResult(
        state=state_new,
        dt_used=h,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=h,
        accepted=jnp.asarray(True),
        attempts=jnp.asarray(1, dtype=jnp.int32),
    )


class Euler(OneStepIntegrator):
    """Unbounded sequence of Heun steps.

    Examples:
        ```python
        from itertools import islice
        states = list(islice(Euler(init, soe, 0.001), 100))
        ```
    """

    step_fn = staticmethod(heun_step)
