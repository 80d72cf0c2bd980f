"""Numerical ODE integrators over fixed-length state vectors.

Provides fixed-step, multistep and adaptive methods, all implemented in JAX
for compatibility with ``jax.jit``.  Component 0 of every state is the
current time.

Available integrators:

- :func:`heun_step` / :class:`Euler` -- Heun's predictor-corrector (fixed step)
- :func:`rk4_step` / :class:`Rk4` -- Classic 4th-order Runge-Kutta (fixed step)
- :func:`rkf45_step` / :class:`Rk45` -- Runge-Kutta-Fehlberg 4(5) (adaptive step)
- :func:`ab2_step` / :class:`Ab2` -- Two-step Adams-Bashforth
- :func:`am2_step` / :class:`Am2` -- Two-step Adams-Bashforth-Moulton

One-step functions share a common interface::

    result = step_fn(soe, state, h)

and multistep functions take the previous state as well::

    result = step_fn(soe, prev, state, h)

where ``soe(state) -> derivative`` defines the ODE right-hand side, and the
result is a :class:`StepResult` named tuple.  The classes wrap the step
functions as Python iterators.
"""

from twobody.integrators._types import AdaptiveConfig, StepResult, StepSizeError
from twobody.integrators.ab2 import Ab2, ab2_step
from twobody.integrators.am2 import Am2, am2_step
from twobody.integrators.euler import Euler, heun_step
from twobody.integrators.rk4 import Rk4, rk4_step, seed_from_rk4
from twobody.integrators.rkf45 import Rk45, rkf45_step

__all__ = [
    "AdaptiveConfig",
    "StepResult",
    "StepSizeError",
    "heun_step",
    "rk4_step",
    "rkf45_step",
    "ab2_step",
    "am2_step",
    "seed_from_rk4",
    "Euler",
    "Rk4",
    "Rk45",
    "Ab2",
    "Am2",
]
