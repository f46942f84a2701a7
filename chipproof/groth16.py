# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
Groth16 over BLS12-381 for the identity circuit.

`setup` runs the one-time trusted setup and must not be repeated per
request: every setup yields an unrelated verifying key, so proofs made with
one set of parameters never verify under another. `prove` draws fresh
blinding scalars for every call, so two proofs of the same witness differ.
"""

import time
from dataclasses import dataclass, fields

from py_ecc.optimized_bls12_381 import (
    add,
    final_exponentiate,
    is_inf,
    multiply,
    pairing,
)

from chipproof.bls12381 import (
    FixedBase,
    curve_order,
    g1_generator,
    g2_generator,
    multiexp,
    points_equal,
    rng,
)
from chipproof.circuit import IdentityCircuit
from chipproof.commitment import Commitment
from chipproof.domain import EvaluationDomain
from chipproof.errors import (
    InvalidEncoding,
    SetupFailure,
    UnsatisfiableCircuit,
)
from chipproof.logger import get_logger
from chipproof.r1cs import ConstraintSystem, Variable

logger = get_logger(__name__)


class _PointRecord:
    """Equality over the curve points of a dataclass, ignoring projective scaling."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        for f in fields(self):  # type: ignore[arg-type]
            mine, theirs = getattr(self, f.name), getattr(other, f.name)
            if isinstance(mine, (int, _PointRecord)):
                same = mine == theirs
            elif f.name.endswith(("_query", "ic")):
                same = len(mine) == len(theirs) and all(
                    points_equal(x, y) for x, y in zip(mine, theirs)
                )
            else:
                same = points_equal(mine, theirs)
            if not same:
                return False
        return True

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True, eq=False)
class VerifyingKey(_PointRecord):
    alpha_g1: tuple
    beta_g1: tuple
    beta_g2: tuple
    gamma_g2: tuple
    delta_g1: tuple
    delta_g2: tuple
    # ic[0] belongs to the constant-one input, ic[i] to commitment scalar i - 1
    ic: tuple[tuple, ...]

    @property
    def input_count(self) -> int:
        return len(self.ic) - 1


@dataclass(frozen=True, eq=False)
class ProvingKey(_PointRecord):
    domain_size: int
    a_query: tuple[tuple, ...]
    b_g1_query: tuple[tuple, ...]
    b_g2_query: tuple[tuple, ...]
    h_query: tuple[tuple, ...]
    l_query: tuple[tuple, ...]


@dataclass(frozen=True, eq=False)
class ProvingParameters(_PointRecord):
    proving_key: ProvingKey
    verifying_key: VerifyingKey


@dataclass(frozen=True, eq=False)
class Proof(_PointRecord):
    a: tuple
    b: tuple
    c: tuple


def synthesize(circuit: IdentityCircuit) -> ConstraintSystem:
    """
    Synthesize a circuit and append one input-consistency row per input.

    The extra rows (x_i * 0 = 0) make the input polynomials linearly
    independent, which the security proof requires.
    """
    cs = ConstraintSystem()
    circuit.synthesize(cs)
    for i in range(cs.num_inputs):
        cs.enforce(Variable(i, True), 0, 0)
    return cs


def _qap_at(cs: ConstraintSystem, domain: EvaluationDomain, tau: int):
    """Evaluate the u, v, w polynomials of every variable at tau."""
    lagrange = domain.lagrange_coefficients(tau)
    width = cs.num_inputs + cs.num_aux
    u, v, w = [0] * width, [0] * width, [0] * width

    def column(var: Variable) -> int:
        return var.index if var.is_input else cs.num_inputs + var.index

    for row, (a, b, c) in enumerate(cs.constraints):
        at = lagrange[row]
        for target, lc in ((u, a), (v, b), (w, c)):
            for var, coeff in lc.terms.items():
                target[column(var)] += coeff * at
    return (
        [x % curve_order for x in u],
        [x % curve_order for x in v],
        [x % curve_order for x in w],
    )


def _generate_parameters(circuit: IdentityCircuit) -> ProvingParameters:
    cs = synthesize(circuit)
    domain = EvaluationDomain(cs.num_constraints)
    logger.info(
        "setup_started",
        constraints=cs.num_constraints,
        inputs=cs.num_inputs,
        aux=cs.num_aux,
        domain_size=domain.size,
    )

    tau = rng()
    while domain.z(tau) == 0:
        tau = rng()
    alpha, beta, gamma, delta = rng(), rng(), rng(), rng()
    gamma_inv = pow(gamma, -1, curve_order)
    delta_inv = pow(delta, -1, curve_order)

    u, v, w = _qap_at(cs, domain, tau)
    k = [(beta * u[i] + alpha * v[i] + w[i]) % curve_order for i in range(len(u))]
    ic = [x * gamma_inv % curve_order for x in k[: cs.num_inputs]]
    l = [x * delta_inv % curve_order for x in k[cs.num_inputs :]]

    zt = domain.z(tau) * delta_inv % curve_order
    h, power = [], 1
    for _ in range(domain.size - 1):
        h.append(power * zt % curve_order)
        power = power * tau % curve_order

    # 22 rows of 4095 points per base
    g1 = FixedBase(g1_generator, window=12)
    g2 = FixedBase(g2_generator, window=12)

    vk = VerifyingKey(
        alpha_g1=g1.mul(alpha),
        beta_g1=g1.mul(beta),
        beta_g2=g2.mul(beta),
        gamma_g2=g2.mul(gamma),
        delta_g1=g1.mul(delta),
        delta_g2=g2.mul(delta),
        ic=tuple(g1.batch(ic)),
    )
    pk = ProvingKey(
        domain_size=domain.size,
        a_query=tuple(g1.batch(u)),
        b_g1_query=tuple(g1.batch(v)),
        b_g2_query=tuple(g2.batch(v)),
        h_query=tuple(g1.batch(h)),
        l_query=tuple(g1.batch(l)),
    )
    return ProvingParameters(proving_key=pk, verifying_key=vk)


def setup(circuit: IdentityCircuit | None = None) -> ProvingParameters:
    """
    Run the trusted setup for the identity circuit.

    The toxic waste (tau, alpha, beta, gamma, delta) only lives in this call.
    Call this once per deployment and persist the result; see
    `chipproof.codec.serialize_parameters`.

    Args:
        circuit: A circuit without a witness. Defaults to `IdentityCircuit()`.

    Returns:
        The proving parameters.

    Raises:
        SetupFailure: If anything goes wrong; the service cannot start.
    """
    circuit = circuit if circuit is not None else IdentityCircuit()
    started = time.perf_counter()
    try:
        params = _generate_parameters(circuit)
    except Exception as e:
        logger.error("setup_failed", error=str(e))
        raise SetupFailure(f"parameter generation failed: {e}") from e
    logger.info("setup_complete", elapsed_s=round(time.perf_counter() - started, 3))
    return params


def _check_shape(cs: ConstraintSystem, params: ProvingParameters) -> None:
    pk, vk = params.proving_key, params.verifying_key
    if (
        len(vk.ic) != cs.num_inputs
        or len(pk.l_query) != cs.num_aux
        or len(pk.a_query) != cs.num_inputs + cs.num_aux
        or pk.domain_size != EvaluationDomain(cs.num_constraints).size
    ):
        raise SetupFailure("proving parameters were generated for a different circuit")


def prove(
    witness: bytes,
    params: ProvingParameters,
    commitment: Commitment | None = None,
) -> Proof:
    """
    Create a Groth16 proof that `witness` opens a commitment.

    Args:
        witness: The 80-byte witness.
        params: The deployment's proving parameters.
        commitment: When given, the public inputs are pinned to it and a
            witness that does not match makes the circuit unsatisfiable.

    Returns:
        A fresh, randomized proof.

    Raises:
        InvalidEncoding: If the witness or commitment is malformed.
        UnsatisfiableCircuit: If the witness does not satisfy the circuit.
        SetupFailure: If the parameters belong to another circuit.
    """
    started = time.perf_counter()
    cs = synthesize(IdentityCircuit(witness, commitment))
    failed = cs.which_is_unsatisfied()
    if failed is not None:
        raise UnsatisfiableCircuit(f"constraint {failed} is not satisfied")
    _check_shape(cs, params)

    pk, vk = params.proving_key, params.verifying_key
    inputs, aux = cs.assignment()
    assignment = inputs + aux

    domain = EvaluationDomain(pk.domain_size)
    a_evals, b_evals, c_evals = [], [], []
    for a, b, c in cs.constraints:
        a_evals.append(a.evaluate(inputs, aux))
        b_evals.append(b.evaluate(inputs, aux))
        c_evals.append(c.evaluate(inputs, aux))
    a_coset = domain.coset_fft(domain.ifft(a_evals))
    b_coset = domain.coset_fft(domain.ifft(b_evals))
    c_coset = domain.coset_fft(domain.ifft(c_evals))
    z_inv = domain.z_on_coset_inv()
    h = domain.icoset_fft(
        [
            (x * y - z) * z_inv % curve_order
            for x, y, z in zip(a_coset, b_coset, c_coset)
        ]
    )
    # deg(h) <= n - 2 whenever the constraints hold
    if h[-1] != 0:
        raise UnsatisfiableCircuit("quotient polynomial has unexpected degree")

    r, s = rng(), rng()
    proof_a = add(
        add(vk.alpha_g1, multiexp(list(pk.a_query), assignment)),
        multiply(vk.delta_g1, r),
    )
    proof_b = add(
        add(vk.beta_g2, multiexp(list(pk.b_g2_query), assignment)),
        multiply(vk.delta_g2, s),
    )
    b_g1 = add(
        add(vk.beta_g1, multiexp(list(pk.b_g1_query), assignment)),
        multiply(vk.delta_g1, s),
    )
    proof_c = add(
        multiexp(list(pk.l_query), aux),
        multiexp(list(pk.h_query), h[:-1]),
    )
    proof_c = add(proof_c, multiply(proof_a, s))
    proof_c = add(proof_c, multiply(b_g1, r))
    proof_c = add(proof_c, multiply(vk.delta_g1, (-r * s) % curve_order))

    logger.info(
        "proof_generated",
        constraints=cs.num_constraints,
        elapsed_s=round(time.perf_counter() - started, 3),
    )
    return Proof(a=proof_a, b=proof_b, c=proof_c)


def verify(
    proof: Proof,
    params: ProvingParameters | VerifyingKey,
    commitment: Commitment,
) -> bool:
    """
    Check a proof against a commitment with the Groth16 pairing equation

        e(A, B) == e(alpha, beta) * e(sum x_i * IC_i, gamma) * e(C, delta)

    Args:
        proof: The proof to check.
        params: The proving parameters or just their verifying key.
        commitment: The commitment issued at enrollment.

    Returns:
        True if the proof is valid for this commitment and key, else False.

    Raises:
        InvalidEncoding: If the commitment has the wrong number of scalars or
            a scalar outside the field.
    """
    vk = params.verifying_key if isinstance(params, ProvingParameters) else params
    commitment = tuple(commitment)
    if len(commitment) != vk.input_count:
        raise InvalidEncoding(
            f"commitment must have {vk.input_count} scalars, got {len(commitment)}"
        )
    for x in commitment:
        if isinstance(x, bool) or not isinstance(x, int) or not 0 <= x < curve_order:
            raise InvalidEncoding("commitment scalar is outside the scalar field")

    if is_inf(proof.a) or is_inf(proof.b):
        return False

    vk_x = add(vk.ic[0], multiexp(list(vk.ic[1:]), list(commitment)))

    left = pairing(proof.b, proof.a, final_exponentiate=False)
    right = pairing(vk.beta_g2, vk.alpha_g1, final_exponentiate=False)
    right *= pairing(vk.gamma_g2, vk_x, final_exponentiate=False)
    right *= pairing(vk.delta_g2, proof.c, final_exponentiate=False)

    valid = final_exponentiate(left) == final_exponentiate(right)
    logger.debug("proof_verified", valid=valid)
    return valid


__all__ = [
    "Proof",
    "ProvingKey",
    "ProvingParameters",
    "VerifyingKey",
    "prove",
    "setup",
    "synthesize",
    "verify",
]
