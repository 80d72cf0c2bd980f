"""Iterator wrappers shared by the stepping methods.

Each integrator object owns its current state and step size, jit-compiles
its step function once, and yields one new state per ``next()`` call.
Fixed-step and multistep sequences are unbounded; the caller decides when
to stop (e.g. with ``itertools.islice``).
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable

import jax
import jax.numpy as jnp

from twobody.config import get_dtype
from twobody.integrators._types import StepResult
from twobody.soe import DerivativeFunction
from twobody.vector import FixedVector

logger = logging.getLogger(__name__)


class OneStepIntegrator:
    """Unbounded sequence driven by a one-step method.

    Subclasses set ``step_fn`` to a function
    ``step_fn(soe, state, h) -> StepResult``.

    Args:
        init: Initial state; component 0 is the start time.
        soe: Derivative function.
        h: Step size. Its sign sets the direction of time.
    """

    step_fn: Callable[..., StepResult]

    def __init__(self, init: FixedVector, soe: DerivativeFunction, h: float) -> None:
        self.state = init
        self.soe = soe
        self.h = jnp.asarray(h, dtype=get_dtype())
        self._step = jax.jit(functools.partial(type(self).step_fn, soe))
        logger.debug("Created %s with h=%g, dim=%d", type(self).__name__, h, len(init))

    def __iter__(self):
        return self

    def __next__(self) -> FixedVector:
        result = self._step(self.state, self.h)
        self.state = result.state
        return result.state


class TwoStepIntegrator:
    """Unbounded sequence driven by a two-step (multistep) method.

    Subclasses set ``step_fn`` to a function
    ``step_fn(soe, prev, current, h) -> StepResult``.

    Args:
        init1: First seed state.
        init2: Second seed state, one step after ``init1``.
        soe: Derivative function.
        h: Step size. Its sign sets the direction of time.
    """

    step_fn: Callable[..., StepResult]

    def __init__(
        self,
        init1: FixedVector,
        init2: FixedVector,
        soe: DerivativeFunction,
        h: float,
    ) -> None:
        if len(init1) != len(init2):
            raise ValueError(f"Seed states differ in length: {len(init1)} != {len(init2)}")
        self.prev = init1
        self.state = init2
        self.soe = soe
        self.h = jnp.asarray(h, dtype=get_dtype())
        self._step = jax.jit(functools.partial(type(self).step_fn, soe))
        logger.debug("Created %s with h=%g, dim=%d", type(self).__name__, h, len(init1))

    def __iter__(self):
        return self

    def __next__(self) -> FixedVector:
        result = self._step(self.prev, self.state, self.h)
        self.prev = self.state
        self.state = result.state
        return result.state
