"""Keplerian orbital mechanics.

This sub-module provides:

- **Anomaly conversions**: converting between mean, eccentric, and true
  anomalies, including a JAX-traceable Kepler equation solver.
- **Analytic propagation**: orbital elements from a relative state and the
  closed-form position at any time, used as a drift reference for the
  numerical integrators.
"""

from .keplerian import (
    KEPLER_MAX_ITER,
    KEPLER_TOL,
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_true_to_eccentric,
)
from .propagator import (
    DEGENERACY_EPS,
    KeplerElements,
    KeplerPropagator,
    kepler_elements_from_state,
    kepler_position,
)

__all__ = [
    "KEPLER_MAX_ITER",
    "KEPLER_TOL",
    "DEGENERACY_EPS",
    "anomaly_eccentric_to_mean",
    "anomaly_mean_to_eccentric",
    "anomaly_true_to_eccentric",
    "anomaly_eccentric_to_true",
    "KeplerElements",
    "KeplerPropagator",
    "kepler_elements_from_state",
    "kepler_position",
]
