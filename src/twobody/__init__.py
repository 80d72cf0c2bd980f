"""
twobody is a small two-body orbit propagation library implemented in JAX:
fixed-step, multistep and adaptive integrators over fixed-length state
vectors, with an analytic Kepler propagator as a drift reference.
"""

from .config import set_dtype, get_dtype
from .vector import FixedVector, magnitude
from .soe import DerivativeFunction, Soe2, SimpleSoe, call_soe

from .integrators import (
    StepResult,
    AdaptiveConfig,
    StepSizeError,
    heun_step,
    rk4_step,
    rkf45_step,
    ab2_step,
    am2_step,
    seed_from_rk4,
    Euler,
    Rk4,
    Rk45,
    Ab2,
    Am2,
)

from .orbits import (
    anomaly_eccentric_to_mean,
    anomaly_mean_to_eccentric,
    anomaly_true_to_eccentric,
    anomaly_eccentric_to_true,
    KeplerElements,
    KeplerPropagator,
    kepler_elements_from_state,
    kepler_position,
)

from .system import (
    Body,
    Position,
    TwoBodyReader,
    TwoBodySystem,
    accel_point_mass,
)

__all__ = [
    # Config
    "set_dtype",
    "get_dtype",
    # Vectors
    "FixedVector",
    "magnitude",
    # Systems of equations
    "DerivativeFunction",
    "Soe2",
    "SimpleSoe",
    "call_soe",
    # Integrators
    "StepResult",
    "AdaptiveConfig",
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
    # Orbits
    "anomaly_eccentric_to_mean",
    "anomaly_mean_to_eccentric",
    "anomaly_true_to_eccentric",
    "anomaly_eccentric_to_true",
    "KeplerElements",
    "KeplerPropagator",
    "kepler_elements_from_state",
    "kepler_position",
    # Two-body system
    "Body",
    "Position",
    "TwoBodyReader",
    "TwoBodySystem",
    "accel_point_mass",
]
