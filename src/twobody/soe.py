"""Systems of equations (derivative functions).

A derivative function maps a state vector to its time-derivative vector of
the same length.  By convention the first component of every state carries
the current time; the value a derivative function writes there is
meaningless and is overwritten with ``1.0`` by :func:`call_soe` before any
integrator uses it, so that integrating the time slot advances it by ``h``
per step.

Composite functions are built from sub-functions that each map the full
state to a partial output; their outputs are joined with
:meth:`FixedVector.concat`, which left-pads the result with zeros up to the
state length.  For the two-body problem the first sub-function returns the
velocity (the derivative of position) and the second returns the
gravitational acceleration (the derivative of velocity).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from twobody.vector import FixedVector

SubFunction = Callable[[FixedVector], FixedVector]


class DerivativeFunction(Protocol):
    """Anything callable as ``f(state) -> derivative``."""

    def __call__(self, state: FixedVector) -> FixedVector: ...


class Soe2:
    """System of equations composed of two sub-functions.

    Args:
        f1: Sub-function producing the leading part of the derivative.
        f2: Sub-function producing the trailing part of the derivative.
        dim: Length of the state (and of the returned derivative).

    Examples:
        ```python
        from twobody.soe import Soe2
        from twobody.vector import FixedVector
        # state [t, x, v]: x' = v, v' = -x
        soe = Soe2(lambda s: s[2:3], lambda s: -s[1:2], 3)
        soe(FixedVector([0.0, 1.0, 0.0]))  # [0, 0, -1]
        ```
    """

    def __init__(self, f1: SubFunction, f2: SubFunction, dim: int) -> None:
        self.f1 = f1
        self.f2 = f2
        self.dim = dim

    def __call__(self, state: FixedVector) -> FixedVector:
        return FixedVector.concat(self.f1(state), self.f2(state), self.dim)


class SimpleSoe:
    """System of equations with a single sub-function.

    The sub-function output is left-padded with zeros to the state length.

    Args:
        f1: Sub-function producing the derivative components.
        dim: Length of the state (and of the returned derivative).

    Examples:
        ```python
        # y' = x * y over the state [x, y]
        soe = SimpleSoe(lambda s: FixedVector.from_array(s.data[:1] * s.data[1:2]), 2)
        ```
    """

    def __init__(self, f1: SubFunction, dim: int) -> None:
        self.f1 = f1
        self.dim = dim

    def __call__(self, state: FixedVector) -> FixedVector:
        return FixedVector.concat(self.f1(state), FixedVector.zeros(0), self.dim)


def call_soe(soe: DerivativeFunction, state: FixedVector) -> FixedVector:
    """Evaluate ``soe`` at ``state`` with the time-slot rate forced to 1.0.

    Args:
        soe: Derivative function.
        state: State vector whose first component is the current time.

    Returns:
        FixedVector: Derivative with component 0 set to ``1.0``.  The
        result is detached from ``state`` even when ``soe`` returns a slice
        of it.
    """
    result = soe(state).copy()
    result[0] = 1.0
    return result
