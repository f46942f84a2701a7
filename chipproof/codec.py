# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# codec.py

"""
Canonical byte layouts for the artifacts handed to the anchoring service.

Curve points on the wire use the 48-byte (G1) / 96-byte (G2) compressed
encoding. The local parameters file stores its proving-key queries
uncompressed (`encode_affine`).

  proof:          A (G1) || B (G2) || C (G1)                        192 bytes
  verifying key:  alpha_g1 || beta_g1 || beta_g2 || gamma_g2 ||
                  delta_g1 || delta_g2 || ic[0] || ... || ic[N]     432 + 48 (N + 1)
  commitment:     N scalars, 32 bytes little-endian each

Any change to widths, ordering or the public-input count is a new
`CIRCUIT_VERSION`.
"""

import cbor2

from chipproof.bls12381 import (
    compress,
    curve_order,
    decode_affine,
    encode_affine,
    uncompress,
)
from chipproof.constants import (
    CIRCUIT_VERSION,
    COMMITMENT_SCALARS,
    G1_AFFINE_SIZE,
    G1_SIZE,
    G2_AFFINE_SIZE,
    G2_SIZE,
    PROOF_SIZE,
    SCALAR_SIZE,
    VK_HEADER_SIZE,
)
from chipproof.commitment import Commitment
from chipproof.errors import InvalidEncoding, SetupFailure
from chipproof.groth16 import Proof, ProvingKey, ProvingParameters, VerifyingKey


def _split(data: bytes, width: int) -> list[bytes]:
    if len(data) % width:
        raise InvalidEncoding(f"{len(data)} bytes is not a multiple of {width}")
    return [data[i : i + width] for i in range(0, len(data), width)]


def _expect_length(data: bytes, expected: int, what: str) -> bytes:
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidEncoding(f"{what} must be bytes, got {type(data).__name__}")
    if len(data) != expected:
        raise InvalidEncoding(f"{what} must be {expected} bytes, got {len(data)}")
    return bytes(data)


def serialize_proof(proof: Proof) -> bytes:
    """
    Serialize a proof as A || B || C.

    Args:
        proof: The Groth16 proof.

    Returns:
        192 bytes.
    """
    return compress(proof.a) + compress(proof.b) + compress(proof.c)


def deserialize_proof(data: bytes) -> Proof:
    """
    Inverse of `serialize_proof`.

    Raises:
        InvalidEncoding: If the input is not exactly 192 bytes.
        MalformedCurvePoint: If any point is invalid.
    """
    data = _expect_length(data, PROOF_SIZE, "proof")
    return Proof(
        a=uncompress(data[:G1_SIZE]),
        b=uncompress(data[G1_SIZE : G1_SIZE + G2_SIZE]),
        c=uncompress(data[G1_SIZE + G2_SIZE :]),
    )


def serialize_verifying_key(vk: VerifyingKey) -> bytes:
    """
    Serialize a verifying key in the fixed field order followed by its
    input-commitment vector.

    Args:
        vk: The verifying key.

    Returns:
        432 + 48 * len(vk.ic) bytes.
    """
    out = b"".join(
        compress(p)
        for p in (
            vk.alpha_g1,
            vk.beta_g1,
            vk.beta_g2,
            vk.gamma_g2,
            vk.delta_g1,
            vk.delta_g2,
        )
    )
    return out + b"".join(compress(p) for p in vk.ic)


def deserialize_verifying_key(
    data: bytes, input_count: int = COMMITMENT_SCALARS
) -> VerifyingKey:
    """
    Inverse of `serialize_verifying_key`.

    Args:
        data: The serialized key.
        input_count: Number of commitment scalars the key is declared for;
            the input-commitment vector then holds input_count + 1 points.

    Returns:
        The verifying key.

    Raises:
        InvalidEncoding: If the length does not match input_count.
        MalformedCurvePoint: If any point is invalid.
    """
    data = _expect_length(
        data, VK_HEADER_SIZE + G1_SIZE * (input_count + 1), "verifying key"
    )
    header = {}
    cursor = 0
    for name, width in (
        ("alpha_g1", G1_SIZE),
        ("beta_g1", G1_SIZE),
        ("beta_g2", G2_SIZE),
        ("gamma_g2", G2_SIZE),
        ("delta_g1", G1_SIZE),
        ("delta_g2", G2_SIZE),
    ):
        header[name] = uncompress(data[cursor : cursor + width])
        cursor += width
    ic = tuple(uncompress(chunk) for chunk in _split(data[cursor:], G1_SIZE))
    return VerifyingKey(ic=ic, **header)


def serialize_commitment(commitment: Commitment) -> bytes:
    """
    Serialize commitment scalars as 32-byte little-endian integers.

    Raises:
        InvalidEncoding: If a scalar is outside the scalar field.
    """
    out = b""
    for x in commitment:
        if isinstance(x, bool) or not isinstance(x, int) or not 0 <= x < curve_order:
            raise InvalidEncoding("commitment scalar is outside the scalar field")
        out += x.to_bytes(SCALAR_SIZE, "little")
    return out


def deserialize_commitment(
    data: bytes, count: int = COMMITMENT_SCALARS
) -> Commitment:
    """
    Inverse of `serialize_commitment`.

    Raises:
        InvalidEncoding: On a length mismatch or a non-canonical scalar.
    """
    data = _expect_length(data, SCALAR_SIZE * count, "commitment")
    scalars = tuple(int.from_bytes(c, "little") for c in _split(data, SCALAR_SIZE))
    if any(x >= curve_order for x in scalars):
        raise InvalidEncoding("commitment scalar is outside the scalar field")
    return scalars


def serialize_parameters(params: ProvingParameters) -> bytes:
    """
    Serialize the full proving parameters as a canonical CBOR map.

    The map is keyed by small integers:
        0 => circuit version, 1 => verifying key, 2 => domain size,
        3..7 => a, b_g1, b_g2, h and l queries as concatenated points

    The verifying key uses the compressed wire layout. The query points are
    stored uncompressed so that loading them needs no square roots.

    Args:
        params: The output of the one-time setup.

    Returns:
        Canonical CBOR bytes.
    """
    pk = params.proving_key
    m = {
        0: CIRCUIT_VERSION,
        1: serialize_verifying_key(params.verifying_key),
        2: pk.domain_size,
        3: b"".join(encode_affine(p) for p in pk.a_query),
        4: b"".join(encode_affine(p) for p in pk.b_g1_query),
        5: b"".join(encode_affine(p) for p in pk.b_g2_query),
        6: b"".join(encode_affine(p) for p in pk.h_query),
        7: b"".join(encode_affine(p) for p in pk.l_query),
    }
    return cbor2.dumps(m, canonical=True)


def deserialize_parameters(data: bytes) -> ProvingParameters:
    """
    Inverse of `serialize_parameters`.

    Proving-key points are checked for being on the curve but not for
    subgroup membership; the file is produced locally by `setup`.

    Raises:
        SetupFailure: If the parameters belong to another circuit version.
        InvalidEncoding: If the structure or any length is wrong, or the
            bytes are not the canonical encoding of the map.
        MalformedCurvePoint: If any point is invalid.
    """
    try:
        m = cbor2.loads(data)
    except cbor2.CBORDecodeError as e:
        raise InvalidEncoding(f"parameters are not valid CBOR: {e}") from e
    if not isinstance(m, dict) or set(m) != set(range(8)):
        raise InvalidEncoding("parameters must be a CBOR map with keys 0..7")
    # loads stops after the first item and ignores anything that follows
    if cbor2.dumps(m, canonical=True) != bytes(data):
        raise InvalidEncoding("parameters are not canonically encoded")
    if m[0] != CIRCUIT_VERSION:
        raise SetupFailure(f"parameters were generated for circuit {m[0]!r}")

    vk_bytes = m[1]
    if not isinstance(vk_bytes, bytes) or len(vk_bytes) < VK_HEADER_SIZE + G1_SIZE:
        raise InvalidEncoding("verifying key is truncated")
    vk = deserialize_verifying_key(
        vk_bytes, (len(vk_bytes) - VK_HEADER_SIZE) // G1_SIZE - 1
    )

    def points(key: int, width: int) -> tuple:
        if not isinstance(m[key], bytes):
            raise InvalidEncoding(f"field {key} must be bytes")
        return tuple(decode_affine(c) for c in _split(m[key], width))

    pk = ProvingKey(
        domain_size=m[2],
        a_query=points(3, G1_AFFINE_SIZE),
        b_g1_query=points(4, G1_AFFINE_SIZE),
        b_g2_query=points(5, G2_AFFINE_SIZE),
        h_query=points(6, G1_AFFINE_SIZE),
        l_query=points(7, G1_AFFINE_SIZE),
    )
    width = len(pk.a_query)
    if (
        not isinstance(pk.domain_size, int)
        or len(pk.b_g1_query) != width
        or len(pk.b_g2_query) != width
        or len(pk.h_query) != pk.domain_size - 1
        or len(vk.ic) + len(pk.l_query) != width
    ):
        raise InvalidEncoding("proving key queries have inconsistent sizes")
    return ProvingParameters(proving_key=pk, verifying_key=vk)
