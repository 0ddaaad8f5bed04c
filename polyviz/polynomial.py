"""
Polynomials over the complex numbers: roots <-> coefficients and root finding.

Coefficients are stored in ascending order:
    [a0, a1, ..., an]  ->  a0 + a1*z + ... + an*z^n

Root finding:
- real coefficients and degree <= 3 -> closed-form formulas
  (linear / quadratic / Cardano)
- everything else, or when the closed form declines -> Durand-Kerner

Main entrypoints:
    find_roots(poly) -> RootSet
    roots_to_coefficients(roots, leading) -> list[complex]
"""

from __future__ import annotations

import cmath
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple

from polyviz.complex_ops import (
    ZERO_EPS,
    add,
    divide,
    evaluate_polynomial,
    is_near_zero,
    magnitude,
    multiply,
    snap_near_zero,
    subtract,
)

logger = logging.getLogger(__name__)

# Durand-Kerner settings
DK_SEED = complex(0.4, 0.9)
MAX_ITERATIONS = 1000
TOLERANCE = 1e-12

# coefficient extraction
MAX_DEGREE = 4
TRUNCATION_EPS = 1e-6

CLOSED_FORM = "closed-form"
DURAND_KERNER = "durand-kerner"


class InvalidDegreeError(ValueError):
    """Raised when a polynomial has no roots to find (degree < 1)."""


class UnsupportedDegreeError(ValueError):
    """Raised when an expression's degree exceeds the supported maximum."""


# -----------------------------
# Types
# -----------------------------

@dataclass
class Polynomial:
    coefficients: List[complex]
    variable: str = "z"

    def __post_init__(self):
        self.coefficients = [complex(c) for c in self.coefficients]

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    @property
    def leading(self) -> complex:
        return self.coefficients[-1]

    @classmethod
    def from_roots(cls, roots: Sequence[complex], leading: complex = 1 + 0j, variable: str = "z") -> "Polynomial":
        return cls(roots_to_coefficients(roots, leading), variable)

    def evaluate(self, z: complex) -> complex:
        return evaluate_polynomial(self.coefficients, complex(z))

    def trimmed(self, min_length: int = 1) -> "Polynomial":
        return Polynomial(trim_coefficients(self.coefficients, min_length), self.variable)

    def __str__(self) -> str:
        return format_polynomial(self)


@dataclass
class RootSet:
    roots: List[complex]
    converged: bool
    method: str = DURAND_KERNER
    iterations: int = 0

    def __len__(self) -> int:
        return len(self.roots)

    def __iter__(self):
        return iter(self.roots)


@dataclass(frozen=True)
class ClosedFormResult:
    """Tagged result of the closed-form solver. ok=False means: fall back."""
    ok: bool
    roots: Tuple[complex, ...] = field(default_factory=tuple)


FALLBACK = ClosedFormResult(ok=False)


# -----------------------------
# Coefficient utilities
# -----------------------------

def trim_coefficients(coeffs: Sequence[complex], min_length: int = 1) -> List[complex]:
    """
    Drop trailing coefficients whose real and imaginary parts are both below 1e-10.

    Never shrinks below min_length entries (interactive editing uses 2).
    """
    out = [complex(c) for c in coeffs]
    while len(out) > min_length and is_near_zero(out[-1]):
        out.pop()
    return out


def roots_to_coefficients(roots: Sequence[complex], leading: complex = 1 + 0j) -> List[complex]:
    """
    Expand leading * (z - r1)(z - r2)...(z - rn) into ascending coefficients.

    Roots are applied in the given order. Each step multiplies [c0..c_{n-1}]
    by (z - r):
        new[0] = -r*c0
        new[i] = c[i-1] - r*c[i]
        new[n] = c[n-1]
    """
    coeffs = [complex(leading)]
    for root in roots:
        neg_root = -complex(root)
        expanded = [multiply(neg_root, coeffs[0])]
        for i in range(1, len(coeffs)):
            expanded.append(add(coeffs[i - 1], multiply(neg_root, coeffs[i])))
        expanded.append(coeffs[-1])
        coeffs = expanded
    return coeffs


def coefficients_from_expression(
    expr,
    variable: str,
    derivative: Callable,
    evaluate_at: Callable[..., complex],
    max_degree: int = MAX_DEGREE,
) -> Polynomial:
    """
    Extract polynomial coefficients from a symbolic expression.

    a_n = f^(n)(0) / n!, using the injected collaborators
        derivative(expr, variable) -> expr
        evaluate_at(expr, {variable: value}) -> number
    The (max_degree + 1)-th coefficient must vanish, otherwise the expression
    is rejected with UnsupportedDegreeError.
    """
    coefficients: List[complex] = []
    current = expr
    factorial = 1

    for n in range(max_degree + 2):
        if n > 0:
            factorial *= n
        c = complex(evaluate_at(current, {variable: 0})) / factorial

        if n <= max_degree:
            coefficients.append(c)
            current = derivative(current, variable)
        elif abs(c.real) > TRUNCATION_EPS or abs(c.imag) > TRUNCATION_EPS:
            raise UnsupportedDegreeError(f"Maximum supported degree is {max_degree}")

    coefficients = trim_coefficients(coefficients)
    if len(coefficients) - 1 == 0:
        raise InvalidDegreeError("Expression is a constant, not a polynomial")

    return Polynomial([snap_near_zero(c) for c in coefficients], variable)


# -----------------------------
# Closed-form solver
# -----------------------------

def _solve_linear(a0: float, a1: float) -> List[complex]:
    return [complex(-a0 / a1)]


def _solve_quadratic(a0: float, a1: float, a2: float) -> List[complex]:
    s = cmath.sqrt(a1 * a1 - 4.0 * a2 * a0)
    # pick the sign that avoids cancellation in -(a1 +/- s)
    q = -0.5 * (a1 + s) if a1 >= 0 else -0.5 * (a1 - s)
    if q == 0:
        return [0j, 0j]
    return [q / a2, a0 / q]


def _solve_cubic(a0: float, a1: float, a2: float, a3: float) -> List[complex]:
    b, c, d = a2 / a3, a1 / a3, a0 / a3

    # depressed cubic t^3 + p t + q with z = t - b/3
    p = c - b * b / 3.0
    q = 2.0 * b * b * b / 27.0 - b * c / 3.0 + d
    shift = -b / 3.0

    if p == 0 and q == 0:
        return [complex(shift)] * 3

    s = cmath.sqrt(q * q / 4.0 + p * p * p / 27.0)
    u = -q / 2.0 + s
    v = -q / 2.0 - s
    big = u if abs(u) >= abs(v) else v
    C = big ** (1.0 / 3.0)

    omega = complex(-0.5, math.sqrt(3.0) / 2.0)
    roots = []
    for k in range(3):
        Ck = C * omega ** k
        roots.append(Ck - p / (3.0 * Ck) + shift)
    return roots


def solve_closed_form(real_coeffs: Sequence[float]) -> ClosedFormResult:
    """
    Closed-form roots for real coefficients of degree 1..3.

    Returns FALLBACK when the input is outside what the formulas cover
    (zero leading term, unsupported degree, arithmetic failure or
    non-finite output).
    """
    coeffs = [float(c) for c in real_coeffs]
    degree = len(coeffs) - 1
    if degree < 1 or degree > 3 or coeffs[-1] == 0:
        return FALLBACK
    if not all(math.isfinite(c) for c in coeffs):
        return FALLBACK

    try:
        if degree == 1:
            roots = _solve_linear(*coeffs)
        elif degree == 2:
            roots = _solve_quadratic(*coeffs)
        else:
            roots = _solve_cubic(*coeffs)
    except ArithmeticError as e:
        # overflow or a zero divisor inside the formulas
        logger.debug("closed form failed for degree %d: %s", degree, e)
        return FALLBACK

    if len(roots) != degree or not all(cmath.isfinite(r) for r in roots):
        return FALLBACK

    return ClosedFormResult(ok=True, roots=tuple(snap_near_zero(r) for r in roots))


# -----------------------------
# Durand-Kerner
# -----------------------------

def _correction(f_val: complex, denom: complex) -> complex:
    try:
        return divide(f_val, denom)
    except ZeroDivisionError:
        # collided guesses; propagate as NaN instead of failing the whole solve
        return complex(math.nan, math.nan)


def durand_kerner(
    coefficients: Sequence[complex],
    max_iter: int = MAX_ITERATIONS,
    tol: float = TOLERANCE,
    seed: complex = DK_SEED,
) -> RootSet:
    """
    Durand-Kerner simultaneous iteration.

    Initial guesses are seed^k for k = 0..n-1. Stops once the largest
    correction of a sweep drops below tol; otherwise returns the current
    estimates with converged=False.
    """
    coeffs = [complex(c) for c in coefficients]
    degree = len(coeffs) - 1
    if degree < 1:
        raise InvalidDegreeError(f"Cannot find roots of a degree {degree} polynomial")

    lead = coeffs[-1]
    monic = [divide(c, lead) for c in coeffs]

    roots = [1 + 0j]
    for k in range(1, degree):
        roots.append(multiply(roots[k - 1], seed))

    converged = False
    iterations = 0
    for iteration in range(max_iter):
        max_delta = 0.0

        for k in range(degree):
            f_val = evaluate_polynomial(monic, roots[k])

            denom = 1 + 0j
            for j in range(degree):
                if j != k:
                    denom = multiply(denom, subtract(roots[k], roots[j]))

            delta = _correction(f_val, denom)
            roots[k] = subtract(roots[k], delta)

            step = magnitude(delta)
            if math.isnan(step) or step > max_delta:
                max_delta = step

        iterations = iteration + 1
        if max_delta < tol:
            converged = True
            break

    roots = [snap_near_zero(r) for r in roots]

    if converged:
        logger.debug("Durand-Kerner converged in %d iterations (degree %d)", iterations, degree)
    else:
        logger.warning("Durand-Kerner did not converge after %d iterations (degree %d)", iterations, degree)

    return RootSet(roots=roots, converged=converged, method=DURAND_KERNER, iterations=iterations)


def find_roots(poly) -> RootSet:
    """
    Find all roots of a polynomial (Polynomial or ascending coefficient list).

    Raises InvalidDegreeError for constants. Never raises for degree >= 1;
    non-convergence is reported through RootSet.converged.
    """
    coefficients = poly.coefficients if isinstance(poly, Polynomial) else poly
    coeffs = trim_coefficients(coefficients)
    degree = len(coeffs) - 1
    if degree < 1:
        raise InvalidDegreeError("Root finding needs a polynomial of degree >= 1")

    all_real = all(abs(c.imag) < ZERO_EPS for c in coeffs)
    if all_real and degree <= 3:
        result = solve_closed_form([c.real for c in coeffs])
        if result.ok:
            return RootSet(roots=list(result.roots), converged=True, method=CLOSED_FORM)
        logger.debug("closed form declined degree %d input, using Durand-Kerner", degree)

    return durand_kerner(coeffs)


# -----------------------------
# Formatting
# -----------------------------

def _fmt(x: float, precision: int = 3) -> str:
    s = f"{x + 0.0:.{precision}f}".rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s


def format_complex(z: complex, precision: int = 3) -> str:
    """Short cartesian form: '2', 'i', '−i', '1 + 2i', '0.5 − i'."""
    re = round(z.real, precision)
    im = round(z.imag, precision)

    if im == 0:
        return _fmt(re, precision)
    if re == 0:
        if im == 1:
            return "i"
        if im == -1:
            return "−i"
        return f"−{_fmt(abs(im), precision)}i" if im < 0 else f"{_fmt(im, precision)}i"

    sign = " + " if im > 0 else " − "
    im_part = "i" if abs(im) == 1 else f"{_fmt(abs(im), precision)}i"
    return f"{_fmt(re, precision)}{sign}{im_part}"


def _fmt_coeff(x: float) -> str:
    # six significant digits, printed positionally (1234567 -> 1234570)
    v = float(f"{x:.6g}")
    if v.is_integer():
        return str(int(v))
    return repr(v)



def _power(variable: str, i: int) -> str:
    return variable if i == 1 else f"{variable}^{i}"


def format_polynomial(poly: Polynomial) -> str:
    """Plain-text standard form, highest power first, e.g. '2 * z^2 - i * z + 1'."""
    var = poly.variable
    parts: List[str] = []

    for i in range(poly.degree, -1, -1):
        c = poly.coefficients[i]
        re = round(c.real, 6)
        im = round(c.imag, 6)
        if re == 0 and im == 0:
            continue

        if im == 0:
            sign = "-" if re < 0 else "+"
            mag = abs(re)
            if i == 0:
                term = _fmt_coeff(mag)
            else:
                term = _power(var, i) if mag == 1 else f"{_fmt_coeff(mag)} * {_power(var, i)}"
        elif re == 0:
            sign = "-" if im < 0 else "+"
            mag = abs(im)
            unit = "i" if mag == 1 else f"{_fmt_coeff(mag)}i"
            term = unit if i == 0 else f"{unit} * {_power(var, i)}"
        else:
            sign = "+"
            term = f"({format_complex(c)})" if i == 0 else f"({format_complex(c)}) * {_power(var, i)}"

        if not parts:
            parts.append(f"-{term}" if sign == "-" else term)
        else:
            parts.append(f"{sign} {term}")

    return " ".join(parts) if parts else "0"
