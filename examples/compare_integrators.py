# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "twobody"]
#
# [tool.uv.sources]
# twobody = { path = ".." }
# ///
"""Compare the drift of every integrator against the analytic Kepler orbit.

Builds the reference two-body scenario (m1 = m2 = 5 at (0, 0) and (1, 1),
velocities (0.5, 0) and (-0.5, 0), g = 0.1), propagates it with each
integrator up to the same final time, and reports the distance between the
numerical and analytic relative positions together with the wall time.

Requires twobody to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/compare_integrators.py [OPTIONS]

Examples:
    # Two time units at h = 0.001
    uv run examples/compare_integrators.py

    # One full orbit with a coarser step
    uv run examples/compare_integrators.py --duration 23.6 --h 0.01
"""

import time
from itertools import islice
from typing import Annotated

import jax.numpy as jnp
import typer

from twobody import Body, TwoBodySystem, set_dtype

set_dtype(jnp.float64)


def _drift(system: TwoBodySystem, state) -> float:
    n = system.dim
    analytic = system.kepler_propagator(0.0).position_at(float(state[0]))
    return float(jnp.linalg.norm(state.data[1 : n + 1] - analytic.data[1 : n + 1]))


def main(
    duration: Annotated[float, typer.Option(help="Final time of the comparison")] = 2.0,
    h: Annotated[float, typer.Option(help="Step size (initial step size for rk45)")] = 0.001,
    tolerance: Annotated[float, typer.Option(help="RKF45 local error tolerance")] = 1e-9,
) -> None:
    system = TwoBodySystem(
        Body(5.0, [0.0, 0.0], [0.5, 0.0]),
        Body(5.0, [1.0, 1.0], [-0.5, 0.0]),
        0.1,
    )
    steps = max(int(round(duration / h)), 2)
    el = system.kepler_propagator(h).elements
    print(f"Orbit: a={float(el.a):.6f} e={float(el.e):.6f}")
    print(f"Duration: {duration}  Step: {h}  Fixed steps: {steps}")

    # ── Fixed-step methods ───────────────────────────────────────────────
    second = next(system.construct_rk4(h))
    solvers = {
        "euler": system.construct_euler(h),
        "rk4": system.construct_rk4(h),
        "ab2": system.construct_ab2(h, second),
        "am2": system.construct_am2(h, second),
    }
    print(f"\n{'method':<8}{'steps':>10}{'t_final':>12}{'drift':>14}{'time [s]':>12}")
    for name, solver in solvers.items():
        # Multistep sequences start one step later
        n = steps - 1 if name in ("ab2", "am2") else steps
        t0 = time.perf_counter()
        state = None
        for state in islice(solver, n):
            pass
        elapsed = time.perf_counter() - t0
        print(f"{name:<8}{n:>10}{float(state[0]):>12.4f}{_drift(system, state):>14.3e}{elapsed:>12.2f}")

    # ── Adaptive method ──────────────────────────────────────────────────
    t0 = time.perf_counter()
    count = 0
    state = None
    for state in system.construct_rk45(h, tolerance, duration):
        count += 1
    elapsed = time.perf_counter() - t0
    print(f"{'rk45':<8}{count:>10}{float(state[0]):>12.4f}{_drift(system, state):>14.3e}{elapsed:>12.2f}")


if __name__ == "__main__":
    typer.run(main)
