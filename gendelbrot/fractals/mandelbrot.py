from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numba import njit

# Squared escape radius (|z| >= 2)
ESCAPE_RADIUS_SQ = 4.0


def escape_test(cr, ci, iteration_cap):
    """
    Escape-time membership test for c = cr + ci*i.

    Iterates z <- z^2 + c starting from z = c, checking |z|^2 against the
    squared escape radius before every step. Returns False as soon as the
    orbit escapes, True if it survives iteration_cap steps.

    Kept free of numpy/Python-object calls so the same source compiles with
    numba.njit for the CPU and numba.cuda.jit(device=True) for CUDA. All
    arithmetic stays in the type of cr/ci.
    """
    zr = cr
    zi = ci
    for _ in range(iteration_cap):
        if zr * zr + zi * zi >= ESCAPE_RADIUS_SQ:
            return False
        zr, zi = zr * zr - zi * zi + cr, (zr + zr) * zi + ci
    return True


# CPU form; nogil so worker threads run it in parallel
escape_test_cpu = njit(nogil=True)(escape_test)


@dataclass(frozen=True)
class ComplexPoint:
    """
    A point in the complex plane. Iteration returns new points; the
    origin of an orbit never changes.
    """
    real: float
    imaginary: float

    def squared_magnitude(self) -> float:
        return self.real * self.real + self.imaginary * self.imaginary

    def has_escaped(self) -> bool:
        return self.squared_magnitude() >= ESCAPE_RADIUS_SQ

    def iterate(self, origin: "ComplexPoint") -> "ComplexPoint":
        """One step of z^2 + origin."""
        return ComplexPoint(
            self.real * self.real - self.imaginary * self.imaginary + origin.real,
            (self.real + self.real) * self.imaginary + origin.imaginary,
        )

    def is_stable(self, iteration_cap: int, precision: Any = np.float32) -> bool:
        return is_stable(self, iteration_cap, precision)


def is_stable(point: ComplexPoint, iteration_cap: int, precision: Any = np.float32) -> bool:
    """
    Classify a point as stable (member of the set) or escaped, computing in
    the given precision exactly as the render kernels do.
    """
    cast = np.dtype(precision).type
    return bool(escape_test_cpu(cast(point.real), cast(point.imaginary), int(iteration_cap)))
