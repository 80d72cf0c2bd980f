"""Module-wide floating-point precision configuration.

State vectors are double precision by default: orbit propagation is
numerically sensitive and the integrators are compared against the analytic
Kepler solution at tight tolerances, so JAX's 64-bit mode
(``jax_enable_x64``) is switched on when this module is imported.

Single precision can be selected with ``set_dtype(jnp.float32)`` for quick
runs.  Positions then agree with the Kepler orbit to roughly 1e-4 rather
than 1e-6, and adaptive tolerances below about 1e-6 cannot be met.

Call ``set_dtype`` **before** any JIT compilation.  Under JIT,
``get_dtype()`` runs during tracing and its result is baked into the
compiled program; integrator objects jit their step function on first use.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_SUPPORTED = {
    jnp.float32: "jnp.float32",
    jnp.float64: "jnp.float64",
}

jax.config.update("jax_enable_x64", True)

_dtype = jnp.float64


def set_dtype(dtype) -> None:
    """Select the float dtype of newly created vectors and arrays.

    Selecting ``jnp.float64`` also makes sure JAX's 64-bit mode is on.

    Args:
        dtype: ``jnp.float64`` (default) or ``jnp.float32``.

    Raises:
        ValueError: If *dtype* is not one of the supported float types.
    """
    global _dtype
    if dtype not in _SUPPORTED:
        names = ", ".join(_SUPPORTED.values())
        raise ValueError(f"Unsupported dtype {dtype!r}; expected one of {names}")
    if dtype == jnp.float64 and not jax.config.jax_enable_x64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the active float dtype (``jnp.float64`` unless changed)."""
    return _dtype
