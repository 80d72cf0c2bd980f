"""Two-body gravitational system in relative coordinates.

The motion of two point masses splits into the uniform motion of their
center of mass, ``R(t) = A * t + B``, and the motion of the relative vector
``r = p2 - p1``.  :class:`TwoBodySystem` builds the initial relative state
``[0, r..., r_dot...]`` and the derivative function of the relative problem;
:class:`TwoBodyReader` maps integrated relative states back to the absolute
body positions.

The relative acceleration is ``-G * (m1 + m2) * r / |r|^3``.  A collision
(``r -> 0``) produces inf/NaN, which propagates to the caller untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from twobody.integrators import (
    Ab2,
    AdaptiveConfig,
    Am2,
    Euler,
    Rk4,
    Rk45,
)
from twobody.orbits import KeplerPropagator
from twobody.soe import Soe2
from twobody.vector import FixedVector

logger = logging.getLogger(__name__)


def accel_point_mass(r: ArrayLike, gm: float) -> Array:
    """Acceleration ``-gm * r / |r|^3`` towards the origin.

    Args:
        r: Relative position, any length.
        gm: Gravitational parameter.

    Returns:
        Acceleration vector with the shape of ``r``.
    """
    r = jnp.asarray(r)
    sum_sq = jnp.sum(r * r)
    return -gm * r / (sum_sq * jnp.sqrt(sum_sq))


@dataclass(frozen=True)
class Body:
    """A point mass with its initial position and velocity.

    Args:
        mass: Mass, must be positive.
        position: Initial position (2 or 3 components).
        velocity: Initial velocity (same length as ``position``).
    """

    mass: float
    position: FixedVector
    velocity: FixedVector

    def __post_init__(self) -> None:
        if not isinstance(self.position, FixedVector):
            object.__setattr__(self, "position", FixedVector(self.position))
        if not isinstance(self.velocity, FixedVector):
            object.__setattr__(self, "velocity", FixedVector(self.velocity))

    @property
    def dim(self) -> int:
        return len(self.position)


@dataclass(frozen=True)
class Position:
    """Absolute positions of both bodies at one instant."""

    body1: FixedVector
    body2: FixedVector

    def __str__(self) -> str:
        return f"{self.body1},{self.body2}"


@dataclass(frozen=True)
class TwoBodyReader:
    """Maps relative states back to absolute body positions.

    Args:
        a: Center-of-mass velocity ``A``.
        b: Center-of-mass position at ``t = 0``, ``B``.
        m1: Mass of the first body.
        m2: Mass of the second body.
    """

    a: FixedVector
    b: FixedVector
    m1: float
    m2: float

    def get(self, state: FixedVector) -> Position:
        """Absolute positions for a relative state ``[t, r..., r_dot...]``.

        ``body1 = (A t + B) - r m2 / (m1 + m2)`` and
        ``body2 = (A t + B) + r m1 / (m1 + m2)``.
        """
        n = len(self.a)
        t = state[0]
        r = state[1 : n + 1]
        total = self.m1 + self.m2
        center = self.a * t + self.b
        return Position(
            body1=center - r * (self.m2 / total),
            body2=center + r * (self.m1 / total),
        )


class TwoBodySystem:
    """Two bodies interacting through Newtonian gravity.

    Args:
        body1: First body.
        body2: Second body.
        g: Gravitational constant.

    Raises:
        ValueError: If a mass is not positive, or the bodies do not share a
            dimension of 2 or 3.

    Examples:
        ```python
        from itertools import islice
        from twobody.system import Body, TwoBodySystem
        system = TwoBodySystem(
            Body(5.0, [0.0, 0.0], [0.5, 0.0]),
            Body(5.0, [1.0, 1.0], [-0.5, 0.0]),
            0.1,
        )
        reader = system.build_reader()
        for state in islice(system.construct_rk4(0.001), 10):
            print(reader.get(state))
        ```
    """

    def __init__(self, body1: Body, body2: Body, g: float) -> None:
        for name, body in (("body1", body1), ("body2", body2)):
            if not body.mass > 0.0:
                raise ValueError(f"{name} mass must be positive, got {body.mass}")
            if body.dim not in (2, 3) or len(body.velocity) != body.dim:
                raise ValueError(
                    f"{name} position and velocity must both have 2 or 3 components, "
                    f"got {body.dim} and {len(body.velocity)}"
                )
        if body1.dim != body2.dim:
            raise ValueError(f"Bodies differ in dimension: {body1.dim} != {body2.dim}")
        self.body1 = body1
        self.body2 = body2
        self.g = g

    @property
    def dim(self) -> int:
        """Spatial dimension ``N`` (2 or 3)."""
        return self.body1.dim

    @property
    def state_dim(self) -> int:
        """Length of the state vector, ``2 N + 1``."""
        return 2 * self.dim + 1

    @property
    def total_mass(self) -> float:
        return self.body1.mass + self.body2.mass

    @property
    def gravitational_parameter(self) -> float:
        """``G * (m1 + m2)``."""
        return self.g * self.total_mass

    def initial_state(self) -> FixedVector:
        """Initial vector ``[0, dr..., dv...]`` with ``d = body2 - body1``."""
        return FixedVector.concat(
            self.body2.position - self.body1.position,
            self.body2.velocity - self.body1.velocity,
            self.state_dim,
        )

    def derivative_function(self) -> Soe2:
        """System of equations of the relative problem.

        The first part returns the velocity components of the state, the
        second the gravitational acceleration of the relative position.
        """
        n = self.dim
        gm = self.gravitational_parameter

        def velocity(state: FixedVector) -> FixedVector:
            return state[n + 1 : 2 * n + 1]

        def acceleration(state: FixedVector) -> FixedVector:
            return FixedVector._from_internal(accel_point_mass(state.data[1 : n + 1], gm))

        return Soe2(velocity, acceleration, self.state_dim)

    def center_of_mass_motion(self) -> tuple[FixedVector, FixedVector]:
        """Center-of-mass motion ``R(t) = A t + B``.

        Returns:
            ``(A, B)``: center-of-mass velocity and initial position.
        """
        m1, m2 = self.body1.mass, self.body2.mass
        total = self.total_mass
        a = (self.body1.velocity * m1 + self.body2.velocity * m2) / total
        b = (self.body1.position * m1 + self.body2.position * m2) / total
        return a, b

    def build_reader(self) -> TwoBodyReader:
        a, b = self.center_of_mass_motion()
        return TwoBodyReader(a=a, b=b, m1=self.body1.mass, m2=self.body2.mass)

    # Solvers

    def construct_euler(self, h: float) -> Euler:
        return Euler(self.initial_state(), self.derivative_function(), h)

    def construct_rk4(self, h: float) -> Rk4:
        return Rk4(self.initial_state(), self.derivative_function(), h)

    def construct_rk45(self, h: float, tolerance: float, max_time: float) -> Rk45:
        config = AdaptiveConfig(tolerance=tolerance, max_time=max_time)
        return Rk45(self.initial_state(), self.derivative_function(), h, config)

    def construct_ab2(self, h: float, second: FixedVector) -> Ab2:
        """AB2 seeded with the initial state and ``second``."""
        return Ab2(self.initial_state(), second, self.derivative_function(), h)

    def construct_am2(self, h: float, second: FixedVector) -> Am2:
        """AM2 seeded with the initial state and ``second``."""
        return Am2(self.initial_state(), second, self.derivative_function(), h)

    def kepler_propagator(self, step: float) -> KeplerPropagator:
        """Analytic propagator of the relative orbit with epoch ``t = 0``.

        Raises:
            ValueError: If the relative orbit is not elliptical.
        """
        state = self.initial_state()
        n = self.dim
        logger.debug("Building Kepler propagator with mu=%g", self.gravitational_parameter)
        return KeplerPropagator(
            state[1 : n + 1], state[n + 1 : 2 * n + 1], self.gravitational_parameter, step
        )
