# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
Radix-2 evaluation domains over the BLS12-381 scalar field.

A domain of size n is the subgroup generated by a primitive n-th root of
unity w. Polynomials move between coefficient form and evaluations on
{w^i} with `fft` / `ifft`, and on the coset {g * w^i} with `coset_fft` /
`icoset_fft`, where g is the field's multiplicative generator.
"""

from py_ecc.optimized_bls12_381 import curve_order

from chipproof.constants import FR_GENERATOR, FR_TWO_ADICITY


def _fft(values: list[int], omega: int) -> list[int]:
    n = len(values)
    out = list(values)

    # bit-reversal permutation
    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j |= bit
        if i < j:
            out[i], out[j] = out[j], out[i]

    size = 2
    while size <= n:
        half = size // 2
        w_step = pow(omega, n // size, curve_order)
        twiddles = [1] * half
        for k in range(1, half):
            twiddles[k] = twiddles[k - 1] * w_step % curve_order
        for start in range(0, n, size):
            for k in range(half):
                u = out[start + k]
                v = out[start + k + half] * twiddles[k] % curve_order
                out[start + k] = (u + v) % curve_order
                out[start + k + half] = (u - v) % curve_order
        size *= 2
    return out


class EvaluationDomain:
    """Multiplicative subgroup of size 2^k used for the QAP."""

    def __init__(self, min_size: int):
        size, exp = 1, 0
        while size < min_size:
            size *= 2
            exp += 1
        if exp > FR_TWO_ADICITY:
            raise ValueError(f"domain of size {min_size} exceeds the field's 2-adicity")
        self.size = size
        self.omega = pow(FR_GENERATOR, (curve_order - 1) // size, curve_order)
        self.omega_inv = pow(self.omega, -1, curve_order)
        self.size_inv = pow(size, -1, curve_order)
        self.coset = FR_GENERATOR
        self.coset_inv = pow(FR_GENERATOR, -1, curve_order)

    def _pad(self, values: list[int]) -> list[int]:
        if len(values) > self.size:
            raise ValueError(f"{len(values)} values do not fit a domain of size {self.size}")
        return list(values) + [0] * (self.size - len(values))

    def fft(self, coeffs: list[int]) -> list[int]:
        return _fft(self._pad(coeffs), self.omega)

    def ifft(self, evals: list[int]) -> list[int]:
        out = _fft(self._pad(evals), self.omega_inv)
        return [v * self.size_inv % curve_order for v in out]

    def coset_fft(self, coeffs: list[int]) -> list[int]:
        return self.fft(self._distribute(self._pad(coeffs), self.coset))

    def icoset_fft(self, evals: list[int]) -> list[int]:
        return self._distribute(self.ifft(evals), self.coset_inv)

    @staticmethod
    def _distribute(coeffs: list[int], g: int) -> list[int]:
        out, power = [], 1
        for c in coeffs:
            out.append(c * power % curve_order)
            power = power * g % curve_order
        return out

    def z(self, tau: int) -> int:
        """Evaluate the vanishing polynomial x^n - 1 at tau."""
        return (pow(tau, self.size, curve_order) - 1) % curve_order

    def z_on_coset_inv(self) -> int:
        """Inverse of Z(g * w^i), which is the same for every i."""
        return pow(self.z(self.coset), -1, curve_order)

    def lagrange_coefficients(self, tau: int) -> list[int]:
        """
        Evaluate every Lagrange basis polynomial of the domain at tau.

        L_i(tau) = w^i * (tau^n - 1) / (n * (tau - w^i))

        Args:
            tau: A point outside the domain.

        Returns:
            A list of n scalars.
        """
        z = self.z(tau)
        if z == 0:
            raise ValueError("tau lies in the evaluation domain")
        scale = z * self.size_inv % curve_order
        coeffs, w = [], 1
        for _ in range(self.size):
            coeffs.append(scale * w * pow(tau - w, -1, curve_order) % curve_order)
            w = w * self.omega % curve_order
        return coeffs
