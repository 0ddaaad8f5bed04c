"""
Complex arithmetic kernel.

Scalars are plain Python ``complex`` values; the grid variant of Horner's
method works on numpy arrays so the rasterizer can evaluate a whole frame
at once.

No rounding happens here. Snapping near-zero components is the caller's job
and goes through ``snap_near_zero`` with an explicit epsilon.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

ZERO_EPS = 1e-10


def add(a: complex, b: complex) -> complex:
    return complex(a.real + b.real, a.imag + b.imag)


def subtract(a: complex, b: complex) -> complex:
    return complex(a.real - b.real, a.imag - b.imag)


def multiply(a: complex, b: complex) -> complex:
    return complex(
        a.real * b.real - a.imag * b.imag,
        a.real * b.imag + a.imag * b.real,
    )


def divide(a: complex, b: complex) -> complex:
    """
    a / b computed from the conjugate form.

    Raises ZeroDivisionError when |b|^2 == 0.
    """
    denom = b.real * b.real + b.imag * b.imag
    if denom == 0:
        raise ZeroDivisionError("complex division by zero")
    return complex(
        (a.real * b.real + a.imag * b.imag) / denom,
        (a.imag * b.real - a.real * b.imag) / denom,
    )


def magnitude(z: complex) -> float:
    return math.sqrt(z.real * z.real + z.imag * z.imag)


def argument(z: complex) -> float:
    """Phase angle atan2(im, re), in (-pi, pi]."""
    return math.atan2(z.imag, z.real)


def evaluate_polynomial(coeffs: Sequence[complex], z: complex) -> complex:
    """
    Evaluate a0 + a1*z + ... + an*z^n with Horner's method.

    Coefficients are in ascending order (index 0 = constant term).
    """
    result = 0j
    for c in reversed(coeffs):
        result = add(multiply(result, z), complex(c))
    return result


def evaluate_polynomial_grid(coeffs: Sequence[complex], z: np.ndarray) -> np.ndarray:
    """Vectorised Horner over an array of evaluation points."""
    z = np.asarray(z, dtype=np.complex128)
    w = np.zeros_like(z)
    for c in reversed(coeffs):
        w = w * z + complex(c)
    return w


def approx_equal(a: complex, b: complex, eps: float = ZERO_EPS) -> bool:
    return abs(a.real - b.real) < eps and abs(a.imag - b.imag) < eps


def is_near_zero(z: complex, eps: float = ZERO_EPS) -> bool:
    return abs(z.real) < eps and abs(z.imag) < eps


def snap_near_zero(z: complex, eps: float = ZERO_EPS) -> complex:
    """Set each component with magnitude below eps to exactly 0."""
    re = 0.0 if abs(z.real) < eps else z.real
    im = 0.0 if abs(z.imag) < eps else z.imag
    return complex(re, im)
