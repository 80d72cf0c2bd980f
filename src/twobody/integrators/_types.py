"""Type definitions for numerical integrators.

Provides the core data types used across all integrator implementations:

- :class:`StepResult`: Output of every step function, containing the new state,
  actual timestep used, error estimate, and suggested next timestep.
- :class:`AdaptiveConfig`: Configuration for adaptive step-size control in
  the RKF45 integrator.
- :class:`StepSizeError`: Raised when the adaptive controller cannot find an
  acceptable step within its retry budget.

Both named tuples are pytrees, so they pass through ``jax.jit`` and
``jax.lax`` control flow primitives unchanged.
"""

from __future__ import annotations

from typing import NamedTuple

from jax import Array

from twobody.vector import FixedVector


class StepResult(NamedTuple):
    """Result of a single integrator step.

    For fixed-step and multistep methods ``error_estimate`` is always 0.0,
    ``dt_next`` equals ``dt_used``, ``accepted`` is ``True`` and
    ``attempts`` is 1.

    Attributes:
        state: State vector after the step; component 0 is the new time.
        dt_used: Timestep of the final attempt.
        error_estimate: Local error estimate of the final attempt.
        dt_next: Suggested timestep for the next step.
        accepted: Whether the final attempt met the tolerance.
        attempts: Number of attempts made, including the final one.
    """

    state: FixedVector
    dt_used: Array
    error_estimate: Array
    dt_next: Array
    accepted: Array
    attempts: Array


class AdaptiveConfig(NamedTuple):
    """Configuration for adaptive step-size control.

    The step-size control factor is
    ``sigma = safety_factor * (tolerance / r) ** exponent`` where ``r`` is
    the local error estimate.  The defaults select the conservative
    variant (0.84, 1/4); ``safety_factor=0.9, exponent=0.2`` selects the
    more aggressive 1/5 law.

    Attributes:
        tolerance: Largest accepted local error estimate.
        max_time: The sequence ends once the time component of the current
            state exceeds this value.
        safety_factor: Multiplier applied to the optimal scale factor.
        exponent: Exponent applied to ``tolerance / r``.
        min_scale_factor: Smallest allowed ratio ``h_next / h``.
        max_scale_factor: Largest allowed ratio ``h_next / h``; also used
            when the error estimate is exactly zero.
        max_step_attempts: Attempts per step before giving up with
            :class:`StepSizeError`.
    """

    tolerance: float = 1e-7
    max_time: float = float("inf")
    safety_factor: float = 0.84
    exponent: float = 0.25
    min_scale_factor: float = 0.1
    max_scale_factor: float = 4.0
    max_step_attempts: int = 50


class StepSizeError(RuntimeError):
    """The adaptive integrator failed to converge at a step.

    Args:
        t: Time of the state the step started from.
        h: Step size of the last rejected attempt.
        error: Local error estimate of the last rejected attempt.
        attempts: Number of attempts made.
    """

    def __init__(self, t: float, h: float, error: float, attempts: int) -> None:
        super().__init__(
            f"Adaptive step from t={t:g} rejected {attempts} times "
            f"(last h={h:g}, error estimate={error:g})"
        )
        self.t = t
        self.h = h
        self.error = error
        self.attempts = attempts
