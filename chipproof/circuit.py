# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
The identity circuit.

Proves knowledge of an 80-byte witness whose SHA-256 digest, expanded into
little-endian bits and packed into scalars, equals the public commitment.

Constraint layout:
  - booleanity b * b = b for each of the 640 witness bits;
  - two SHA-256 compressions over the padded witness (`chipproof.sha256`);
  - input_k * 1 = sum over group k of d_i * 2^(i - 254k), where d_i are the
    digest bits.

Every digest bit is a boolean wire and a group holds at most 254 of them,
so each packed sum is below 2^254 < r. An input therefore has exactly one
bit pattern behind it.
"""

from py_ecc.optimized_bls12_381 import curve_order

from chipproof.commitment import Commitment, bytes_to_bits_le, pack_bits
from chipproof.constants import (
    CIRCUIT_VERSION,
    COMMITMENT_SCALARS,
    SCALAR_CAPACITY,
    WITNESS_SIZE,
)
from chipproof.errors import InvalidEncoding
from chipproof.r1cs import ONE, ConstraintSystem, LinearCombination
from chipproof.sha256 import Bit, sha256


class IdentityCircuit:
    """
    Circuit instance for one synthesis.

    Without a witness it only describes the shape of the constraint system,
    which is what parameter generation needs. With a witness it also fills
    in the assignment. When a commitment is supplied the public inputs are
    pinned to it; otherwise they are derived from the witness.
    """

    version = CIRCUIT_VERSION
    input_count = COMMITMENT_SCALARS

    def __init__(
        self, witness: bytes | None = None, commitment: Commitment | None = None
    ):
        if witness is not None and (
            not isinstance(witness, (bytes, bytearray)) or len(witness) != WITNESS_SIZE
        ):
            raise InvalidEncoding(f"witness must be {WITNESS_SIZE} bytes")
        if commitment is not None and len(commitment) != self.input_count:
            raise InvalidEncoding(
                f"commitment must have {self.input_count} scalars, got {len(commitment)}"
            )
        if commitment is not None and any(
            isinstance(x, bool) or not isinstance(x, int) or not 0 <= x < curve_order
            for x in commitment
        ):
            raise InvalidEncoding("commitment scalar is outside the scalar field")
        self.witness = witness
        self.commitment = commitment

    def synthesize(self, cs: ConstraintSystem) -> list[Bit]:
        """
        Add the circuit's variables and constraints to `cs`.

        Returns:
            The digest bits, in commitment order.
        """
        if self.witness is None:
            values: list[int | None] = [None] * (8 * WITNESS_SIZE)
        else:
            values = list(bytes_to_bits_le(bytes(self.witness)))
        digest_bits = sha256(cs, [Bit.alloc(cs, v) for v in values])

        if self.commitment is not None:
            public: list[int | None] = list(self.commitment)
        elif self.witness is not None:
            public = list(pack_bits([bit.value for bit in digest_bits]))
        else:
            public = [None] * self.input_count

        for k, value in enumerate(public):
            group = digest_bits[k * SCALAR_CAPACITY : (k + 1) * SCALAR_CAPACITY]
            packed = LinearCombination.weighted_sum(
                (bit.term(), 1 << i) for i, bit in enumerate(group)
            )
            cs.enforce(cs.alloc_input(value), ONE, packed)
        return digest_bits
