"""Runge-Kutta-Fehlberg 4(5) adaptive integrator (RKF45).

Implements the Fehlberg embedded Runge-Kutta method.  Six stages produce a
4th-order solution, which is propagated, and a 5th-order solution, which is
only used to estimate the local error.

Adaptive step-size control rescales the timestep after every attempt.
Attempts whose error estimate exceeds the tolerance are rejected and
retried from the same state with the smaller step, inside a bounded
``jax.lax.while_loop``.

The Butcher tableau coefficients are taken from the standard Fehlberg
formulation:

- Nodes (c): [0, 1/4, 3/8, 12/13, 1, 1/2]
- 4th-order weights (b_low): [25/216, 0, 1408/2565, 2197/4104, -1/5, 0]
- 5th-order weights (b_high): [16/135, 0, 6656/12825, 28561/56430, -9/50, 2/55]

The time component of each stage state is set explicitly to ``t + c * h``
rather than taken from the weighted sum of the stage slopes.
"""

from __future__ import annotations

import functools
import logging

import jax
import jax.numpy as jnp

from twobody.config import get_dtype
from twobody.integrators._adaptive import compute_error_estimate, compute_scale_factor
from twobody.integrators._types import AdaptiveConfig, StepResult, StepSizeError
from twobody.soe import DerivativeFunction, call_soe
from twobody.vector import FixedVector

logger = logging.getLogger(__name__)

# Nodes
_C = (0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0)

# Coupling coefficients (lower-triangular rows)
_A1 = (1.0 / 4.0,)
_A2 = (3.0 / 32.0, 9.0 / 32.0)
_A3 = (1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0)
_A4 = (439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0)
_A5 = (-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0)

# 4th-order weights (propagated solution)
_B_LOW = (25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0, -1.0 / 5.0, 0.0)

# 5th-order weights (error estimation)
_B_HIGH = (16.0 / 135.0, 0.0, 6656.0 / 12825.0, 28561.0 / 56430.0, -9.0 / 50.0, 2.0 / 55.0)


def _attempt_step(soe: DerivativeFunction, state: FixedVector, h):
    """Compute one RKF45 trial step with step size h.

    Returns the 4th-order state (time component set to ``t + h``) and the
    local error estimate.
    """
    t = state[0]

    def stage(params: FixedVector, c: float) -> FixedVector:
        params[0] = t + c * h
        return call_soe(soe, params) * h

    k1 = call_soe(soe, state) * h
    k2 = stage(state + k1 * _A1[0], _C[1])
    k3 = stage(state + k1 * _A2[0] + k2 * _A2[1], _C[2])
    k4 = stage(state + k1 * _A3[0] + k2 * _A3[1] + k3 * _A3[2], _C[3])
    k5 = stage(state + k1 * _A4[0] + k2 * _A4[1] + k3 * _A4[2] + k4 * _A4[3], _C[4])
    k6 = stage(
        state + k1 * _A5[0] + k2 * _A5[1] + k3 * _A5[2] + k4 * _A5[3] + k5 * _A5[4],
        _C[5],
    )

    low = state + k1 * _B_LOW[0] + k3 * _B_LOW[2] + k4 * _B_LOW[3] + k5 * _B_LOW[4]
    high = (
        state
        + k1 * _B_HIGH[0]
        + k3 * _B_HIGH[2]
        + k4 * _B_HIGH[3]
        + k5 * _B_HIGH[4]
        + k6 * _B_HIGH[5]
    )

    error = compute_error_estimate(high, low)
    low[0] = t + h
    return low, error


def rkf45_step(
    soe: DerivativeFunction,
    state: FixedVector,
    h,
    config: AdaptiveConfig | None = None,
) -> StepResult:
    """Perform a single adaptive RKF45 integration step.

    Attempts a step of size ``h``.  While the error estimate exceeds
    ``config.tolerance`` the step size is multiplied by the control factor
    and the step is retried from the same state, up to
    ``config.max_step_attempts`` attempts in total.

    Compatible with ``jax.jit``.  Not compatible with reverse-mode
    ``jax.grad`` due to the internal ``lax.while_loop``.

    Args:
        soe: Derivative function.
        state: Current state; component 0 is the current time.
        h: Requested timestep. May be negative for backward integration.
        config: Adaptive step-size configuration. Uses default
            :class:`AdaptiveConfig` if ``None``.

    Returns:
        StepResult: Named tuple with fields:
            - ``state``: 4th-order state at ``t + dt_used`` from the last
              attempt.
            - ``dt_used``: Step size of the last attempt.
            - ``error_estimate``: Error estimate of the last attempt.
            - ``dt_next``: ``dt_used`` rescaled by the control factor.
            - ``accepted``: ``False`` if the attempt budget ran out.
            - ``attempts``: Number of attempts made.
    """
    if config is None:
        config = AdaptiveConfig()

    dtype = get_dtype()
    h = jnp.asarray(h, dtype=dtype)

    def scale(error):
        return compute_scale_factor(
            error,
            config.tolerance,
            config.safety_factor,
            config.exponent,
            config.min_scale_factor,
            config.max_scale_factor,
        )

    # Carry: (h, attempts, accepted, state_out, error_out, h_used)
    def cond_fn(carry):
        _h, attempts, accepted, _state_out, _error_out, _h_used = carry
        return (~accepted) & (attempts < config.max_step_attempts)

    def body_fn(carry):
        h_try, attempts, _accepted, _state_out, _error_out, _h_used = carry
        state_new, error = _attempt_step(soe, state, h_try)
        step_accepted = error <= config.tolerance
        return (h_try * scale(error), attempts + 1, step_accepted, state_new, error, h_try)

    init_carry = (
        h,
        jnp.asarray(0, dtype=jnp.int32),
        jnp.asarray(False),
        state,
        jnp.asarray(jnp.inf, dtype=dtype),
        h,
    )

    h_next, attempts, accepted, state_out, error_out, h_used = jax.lax.while_loop(
        cond_fn, body_fn, init_carry
    )

    return StepResult(
        state=state_out,
        dt_used=h_used,
        error_estimate=error_out,
        dt_next=h_next,
        accepted=accepted,
        attempts=attempts,
    )


class Rk45:
    """Adaptive RKF45 sequence that ends once time exceeds ``max_time``.

    Each ``next()`` returns the next accepted state and rescales the step
    size for the following call.  Once the time component of the current
    state exceeds ``config.max_time`` the iterator is exhausted for good.

    The step-size factor ``0.84 * (tolerance / r) ** 0.25`` is clamped to
    ``[config.min_scale_factor, config.max_scale_factor]``, ``[0.1, 4.0]``
    by default.  Passing ``min_scale_factor=0.0`` and
    ``max_scale_factor=float("inf")`` reproduces the unclamped law; a zero
    error estimate then requests an infinite step.

    Args:
        init: Initial state; component 0 is the start time.
        soe: Derivative function.
        h: Initial step size.
        config: Adaptive configuration (tolerance, max time, control law).

    Raises:
        StepSizeError: From ``next()`` when no attempt within
            ``config.max_step_attempts`` meets the tolerance.

    Examples:
        ```python
        config = AdaptiveConfig(tolerance=1e-7, max_time=100.0)
        for state in Rk45(init, soe, 0.001, config):
            ...
        ```
    """

    def __init__(
        self,
        init: FixedVector,
        soe: DerivativeFunction,
        h: float,
        config: AdaptiveConfig | None = None,
    ) -> None:
        if config is None:
            config = AdaptiveConfig()
        self.state = init
        self.soe = soe
        self.h = jnp.asarray(h, dtype=get_dtype())
        self.config = config
        self._done = False
        self._step = jax.jit(functools.partial(rkf45_step, soe, config=config))
        logger.debug(
            "Created Rk45 with h=%g, tolerance=%g, max_time=%g",
            h,
            config.tolerance,
            config.max_time,
        )

    def __iter__(self):
        return self

    def __next__(self) -> FixedVector:
        if self._done:
            raise StopIteration
        t = float(self.state[0])
        if t > self.config.max_time:
            self._done = True
            logger.info("RK45 reached t=%g beyond max_time=%g", t, self.config.max_time)
            raise StopIteration

        result = self._step(self.state, self.h)
        attempts = int(result.attempts)
        if not bool(result.accepted):
            raise StepSizeError(t, float(result.dt_used), float(result.error_estimate), attempts)
        if attempts > 1:
            logger.debug("RK45 step at t=%g rejected %d time(s)", t, attempts - 1)

        self.state = result.state
        self.h = result.dt_next
        return result.state
