# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import pytest

from chipproof.bls12381 import curve_order
from chipproof.domain import EvaluationDomain


def evaluate(coeffs, x):
    acc = 0
    for c in reversed(coeffs):
        acc = (acc * x + c) % curve_order
    return acc


def test_domain_size_rounds_up():
    assert EvaluationDomain(5).size == 8
    assert EvaluationDomain(8).size == 8
    assert EvaluationDomain(1255).size == 2048


def test_omega_is_primitive():
    d = EvaluationDomain(16)
    assert pow(d.omega, 16, curve_order) == 1
    assert pow(d.omega, 8, curve_order) != 1


def test_fft_evaluates_on_the_domain():
    d = EvaluationDomain(8)
    coeffs = [3, 1, 4, 1, 5, 9, 2, 6]
    evals = d.fft(coeffs)
    for i, y in enumerate(evals):
        assert y == evaluate(coeffs, pow(d.omega, i, curve_order))
    assert d.ifft(evals) == coeffs


def test_coset_fft_round_trip():
    d = EvaluationDomain(8)
    coeffs = [5, 0, 7, 11]
    evals = d.coset_fft(coeffs)
    assert evals[1] == evaluate(coeffs, d.coset * d.omega % curve_order)
    assert d.icoset_fft(evals) == coeffs + [0] * 4


def test_lagrange_coefficients_interpolate():
    d = EvaluationDomain(8)
    coeffs = [2, 7, 1, 8, 2, 8, 1, 8]
    evals = d.fft(coeffs)
    tau = 123456789
    lagrange = d.lagrange_coefficients(tau)
    assert sum(l * y for l, y in zip(lagrange, evals)) % curve_order == evaluate(
        coeffs, tau
    )


def test_vanishing_polynomial():
    d = EvaluationDomain(4)
    assert d.z(d.omega) == 0
    assert d.z(d.coset) * d.z_on_coset_inv() % curve_order == 1
    with pytest.raises(ValueError):
        d.lagrange_coefficients(1)


if __name__ == "__main__":
    pytest.main()
