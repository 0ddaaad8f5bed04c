import cmath
import numpy as np
import pytest
from pathlib import Path
import sys

# Add repo root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from polyviz.complex_ops import evaluate_polynomial
from polyviz.polynomial import (
    CLOSED_FORM, DURAND_KERNER, FALLBACK,
    InvalidDegreeError, UnsupportedDegreeError,
    Polynomial, RootSet,
    coefficients_from_expression, durand_kerner, find_roots,
    format_complex, format_polynomial, roots_to_coefficients,
    solve_closed_form, trim_coefficients,
)


def assert_roots_match(found, expected, tol=1e-6):
    """Match each expected root to a distinct nearest found root."""
    found = list(found)
    assert len(found) == len(expected)
    for r in expected:
        dists = [abs(f - r) for f in found]
        i = int(np.argmin(dists))
        assert dists[i] < tol, f"root {r} not found in {found}"
        found.pop(i)


# -----------------------------
# roots <-> coefficients
# -----------------------------

def test_roots_to_coefficients_plus_minus_one():
    coeffs = roots_to_coefficients([1 + 0j, -1 + 0j], 1 + 0j)
    np.testing.assert_allclose(coeffs, [-1, 0, 1])


def test_roots_to_coefficients_empty_keeps_leading():
    lead = 2.5 - 0.5j
    assert roots_to_coefficients([], lead) == [lead]


def test_roots_to_coefficients_scaled_and_complex():
    # 2 (z - i)(z + i) = 2z^2 + 2
    coeffs = roots_to_coefficients([1j, -1j], 2)
    np.testing.assert_allclose(coeffs, [2, 0, 2], atol=1e-15)


def test_roots_to_coefficients_leading_is_carried():
    lead = 0.3 + 0.7j
    coeffs = roots_to_coefficients([1, 2 + 1j, -3], lead)
    assert len(coeffs) == 4
    assert coeffs[-1] == lead


def test_trim_coefficients():
    assert trim_coefficients([1, 2, 1e-12, 0]) == [1, 2]
    assert trim_coefficients([5, 0, 0]) == [5]
    assert trim_coefficients([5, 0, 0], min_length=2) == [5, 0]
    # a tiny real part with a real imaginary part is kept
    assert len(trim_coefficients([1, 1e-12 + 1e-3j])) == 2


def test_polynomial_type():
    poly = Polynomial([-1, 0, 0, 1])
    assert poly.degree == 3
    assert poly.variable == "z"
    assert all(isinstance(c, complex) for c in poly.coefficients)
    assert poly.evaluate(1) == 0

    from_roots = Polynomial.from_roots([1, -1], variable="w")
    np.testing.assert_allclose(from_roots.coefficients, [-1, 0, 1])
    assert from_roots.variable == "w"


# -----------------------------
# closed form
# -----------------------------

def test_closed_form_quadratic_imaginary_roots():
    result = solve_closed_form([1.0, 0.0, 1.0])
    assert result.ok
    assert_roots_match(result.roots, [1j, -1j], tol=1e-12)


def test_closed_form_double_root_has_multiplicity():
    result = solve_closed_form([1.0, -2.0, 1.0])
    assert result.ok
    assert len(result.roots) == 2
    np.testing.assert_allclose(result.roots, [1, 1])


def test_closed_form_cubic_triple_root():
    # (z - 1)^3
    result = solve_closed_form([-1.0, 3.0, -3.0, 1.0])
    assert result.ok
    np.testing.assert_allclose(result.roots, [1, 1, 1], atol=1e-12)


@pytest.mark.parametrize("coeffs", [
    [1.0, 0.0],                 # leading coefficient zero
    [1.0, 2.0, 3.0, 4.0, 5.0],  # degree 4
    [3.0],                      # constant
    [float("nan"), 1.0],
])
def test_closed_form_falls_back(coeffs):
    assert solve_closed_form(coeffs) == FALLBACK
    assert not FALLBACK.ok


# -----------------------------
# Durand-Kerner
# -----------------------------

def test_durand_kerner_cube_roots_of_unity():
    result = durand_kerner([-1, 0, 0, 1])
    assert result.converged
    assert result.method == DURAND_KERNER
    expected = [cmath.exp(2j * cmath.pi * k / 3) for k in range(3)]
    assert_roots_match(result.roots, expected, tol=1e-9)


def test_durand_kerner_non_convergence_is_not_fatal():
    result = durand_kerner([24, -50, 35, -10, 1], max_iter=2)
    assert not result.converged
    assert result.iterations == 2
    assert len(result.roots) == 4


def test_durand_kerner_degenerate_seed_gives_nan():
    # seed 1 makes every initial guess identical, so the first denominator is 0
    result = durand_kerner([-1, 0, 1], seed=1 + 0j)
    assert not result.converged
    assert any(cmath.isnan(r) for r in result.roots)


def test_durand_kerner_rejects_constant():
    with pytest.raises(InvalidDegreeError):
        durand_kerner([4])


def test_durand_kerner_snaps_near_zero_components():
    result = durand_kerner([-4, 0, 1])  # z^2 - 4
    assert result.converged
    for r in result.roots:
        assert r.imag == 0.0


# -----------------------------
# find_roots
# -----------------------------

def test_find_roots_z_cubed_minus_one():
    result = find_roots(Polynomial([-1, 0, 0, 1]))
    assert result.converged
    assert_roots_match(result.roots, [1, -0.5 + 0.8660254037844386j, -0.5 - 0.8660254037844386j])


def test_find_roots_z_squared_plus_one_uses_closed_form():
    result = find_roots(Polynomial([1, 0, 1]))
    assert result.method == CLOSED_FORM
    assert result.converged
    assert_roots_match(result.roots, [1j, -1j])


def test_find_roots_dispatch():
    assert find_roots([2, 1]).method == CLOSED_FORM
    assert find_roots([1j, 0, 1]).method == DURAND_KERNER
    assert find_roots([24, -50, 35, -10, 1]).method == DURAND_KERNER


def test_closed_form_overflow_falls_back():
    # p^3 overflows inside Cardano's formula
    assert solve_closed_form([1.0, 1e110, 0.0, 1.0]) == FALLBACK


def test_find_roots_uses_durand_kerner_when_closed_form_declines():
    result = find_roots([1.0, 1e110, 0.0, 1.0])
    assert result.method == DURAND_KERNER
    assert len(result.roots) == 3


def test_find_roots_trims_trailing_zeros():
    result = find_roots([-1, 1, 0, 1e-12])
    assert len(result.roots) == 1
    np.testing.assert_allclose(result.roots[0], 1)


@pytest.mark.parametrize("coeffs", [[5], [5, 0], [], [3, 1e-11j]])
def test_find_roots_rejects_degree_zero(coeffs):
    with pytest.raises(InvalidDegreeError):
        find_roots(coeffs)


@pytest.mark.parametrize("roots, leading", [
    ([2.0], 1),
    ([1j, -1j], 1),
    ([1, -1], 3 - 2j),
    ([1, 2, 3], 1),
    ([0.5 + 0.5j, -1, 2j], -2),
    ([1, -1, 1j, -1j], 1),
    ([0.3 + 0.2j, -1.2, 1.5 - 0.7j, 0.1j], 0.5 + 1j),
    ([1, 2, 3, 4], 1),
])
def test_round_trip(roots, leading):
    coeffs = roots_to_coefficients(roots, leading)
    result = find_roots(Polynomial(coeffs))
    assert result.converged
    assert_roots_match(result.roots, roots)


def test_round_trip_random_separated_roots():
    rng = np.random.default_rng(7)
    for degree in range(1, 5):
        for _ in range(10):
            while True:
                roots = list(rng.uniform(-2, 2, degree) + 1j * rng.uniform(-2, 2, degree))
                gaps = [abs(a - b) for i, a in enumerate(roots) for b in roots[i + 1:]]
                if not gaps or min(gaps) > 0.2:
                    break
            coeffs = roots_to_coefficients(roots, 1.5 - 0.5j)
            result = find_roots(coeffs)
            assert result.converged
            assert_roots_match(result.roots, roots)


@pytest.mark.parametrize("coeffs", [
    [2, -3],
    [6, -5, 1],
    [1, 0, 1],
    [1, 2, 5],
    [-6, 11, -6, 1],
    [-1, 0, 0, 1],
    [1, 2, 3, 4],
    [-2, -1, 0, 1],
])
def test_closed_form_agrees_with_durand_kerner(coeffs):
    closed = solve_closed_form(coeffs)
    iterative = durand_kerner(coeffs)
    assert closed.ok
    assert iterative.converged
    assert_roots_match(closed.roots, iterative.roots)


@pytest.mark.parametrize("coeffs", [
    [-1, 0, 0, 1],
    [1, 1j, 0, 2, 1],
    [24, -50, 35, -10, 1],
    [3 - 1j, 0, 0, 0, 1],
])
def test_roots_are_valid(coeffs):
    result = find_roots(coeffs)
    for r in result.roots:
        assert abs(evaluate_polynomial(coeffs, r)) < 1e-6


def test_root_set_behaves_like_a_sequence():
    rs = RootSet(roots=[1, 2], converged=True)
    assert len(rs) == 2
    assert list(rs) == [1, 2]


# -----------------------------
# coefficient extraction
# -----------------------------

def _derivative(expr, variable):
    """Derivative of an ascending coefficient list, standing in for a CAS."""
    return [i * c for i, c in enumerate(expr)][1:]


def _evaluate_at(expr, bindings):
    return expr[0] if expr else 0


def test_coefficients_from_expression():
    poly = coefficients_from_expression([-1, 0, 0, 1], "w", _derivative, _evaluate_at)
    assert poly.variable == "w"
    np.testing.assert_allclose(poly.coefficients, [-1, 0, 0, 1])


def test_coefficients_from_expression_trims_and_snaps():
    poly = coefficients_from_expression([1 + 1e-12j, 2, 0, 0, 0], "z", _derivative, _evaluate_at)
    assert poly.coefficients == [1 + 0j, 2 + 0j]


def test_coefficients_from_expression_rejects_high_degree():
    with pytest.raises(UnsupportedDegreeError):
        coefficients_from_expression([0, 0, 0, 0, 0, 1], "z", _derivative, _evaluate_at)


def test_coefficients_from_expression_rejects_constant():
    with pytest.raises(InvalidDegreeError):
        coefficients_from_expression([7], "z", _derivative, _evaluate_at)


# -----------------------------
# formatting
# -----------------------------

def test_format_polynomial():
    assert format_polynomial(Polynomial([-1, 0, 0, 1])) == "z^3 - 1"
    assert format_polynomial(Polynomial([1j, -2])) == "-2 * z + i"
    assert format_polynomial(Polynomial([0, 1 + 2j])) == "(1 + 2i) * z"
    assert format_polynomial(Polynomial([0.5, 0, -1.25], "w")) == "-1.25 * w^2 + 0.5"
    assert format_polynomial(Polynomial([0, 0])) == "0"
    assert str(Polynomial([1, 1])) == "z + 1"
    assert format_polynomial(Polynomial([0, 1234567])) == "1234570 * z"
    assert format_polynomial(Polynomial([2.5e-3j, 1])) == "z + 0.0025i"


def test_format_complex():
    assert format_complex(2 + 0j) == "2"
    assert format_complex(1j) == "i"
    assert format_complex(-1j) == "−i"
    assert format_complex(-2.5j) == "−2.5i"
    assert format_complex(1 + 2j) == "1 + 2i"
    assert format_complex(0.5 - 1j) == "0.5 − i"
    assert format_complex(-0.0 + 0j) == "0"
