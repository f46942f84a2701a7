# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# chipproof/payload.py

"""
Versioned envelopes handed to the anchoring service.

Both envelopes are canonical CBOR maps (RFC 8949 §4.2) with integer keys
and byte string values:

    enrollment:      { 0 => commitment, 2 => version }
    authentication:  { 0 => proof, 1 => verifying key, 2 => version }

`version` is the circuit version; the anchor must refuse envelopes whose
version it does not know.
"""

import cbor2

from chipproof.codec import (
    deserialize_commitment,
    deserialize_proof,
    deserialize_verifying_key,
    serialize_commitment,
    serialize_proof,
    serialize_verifying_key,
)
from chipproof.commitment import Commitment
from chipproof.constants import CIRCUIT_VERSION
from chipproof.errors import InvalidEncoding
from chipproof.groth16 import Proof, VerifyingKey


def build_payload(fields: dict[int, bytes]) -> bytes:
    """
    Build a canonical CBOR envelope carrying the circuit version.

    Args:
        fields: Payload fields; key 2 is reserved for the version.

    Returns:
        Canonical CBOR-encoded bytes.

    Raises:
        ValueError: If fields contains the reserved key 2.
    """
    if 2 in fields:
        raise ValueError("Key 2 is reserved for the circuit version")
    m: dict[int, bytes] = dict(fields)
    m[2] = CIRCUIT_VERSION
    return cbor2.dumps(m, canonical=True)


def parse_payload(data: bytes, required: tuple[int, ...]) -> dict[int, bytes]:
    """
    Parse a CBOR envelope and check its shape and version.

    Args:
        data: Raw CBOR bytes to decode.
        required: Keys that must be present besides the version.

    Returns:
        Dict mapping integer keys to byte string values.

    Raises:
        InvalidEncoding: If the CBOR structure or version is wrong, or the
            bytes are not the canonical encoding of the map.
    """
    try:
        m = cbor2.loads(data)
    except cbor2.CBORDecodeError as e:
        raise InvalidEncoding(f"envelope is not valid CBOR: {e}") from e
    if not isinstance(m, dict):
        raise InvalidEncoding(f"Expected CBOR map, got {type(m).__name__}")
    for k, v in m.items():
        if not isinstance(k, int):
            raise InvalidEncoding(f"All keys must be int, got {type(k).__name__}")
        if not isinstance(v, bytes):
            raise InvalidEncoding(
                f"All values must be bytes, got {type(v).__name__} for key {k}"
            )
    # loads stops after the first item and ignores anything that follows
    if cbor2.dumps(m, canonical=True) != bytes(data):
        raise InvalidEncoding("Envelope is not canonically encoded")
    if m.get(2) != CIRCUIT_VERSION:
        raise InvalidEncoding(f"Unsupported circuit version {m.get(2)!r}")
    for k in required:
        if k not in m:
            raise InvalidEncoding(f"Missing required field {k}")
    return m


def enrollment_payload(commitment: Commitment) -> bytes:
    return build_payload({0: serialize_commitment(commitment)})


def parse_enrollment(data: bytes) -> Commitment:
    m = parse_payload(data, required=(0,))
    return deserialize_commitment(m[0])


def authentication_payload(proof: Proof, vk: VerifyingKey) -> bytes:
    return build_payload({0: serialize_proof(proof), 1: serialize_verifying_key(vk)})


def parse_authentication(data: bytes) -> tuple[Proof, VerifyingKey]:
    """
    Decode an authentication envelope into a proof and verifying key.

    Raises:
        InvalidEncoding: If the envelope or a length is malformed.
        MalformedCurvePoint: If a point is invalid.
    """
    m = parse_payload(data, required=(0, 1))
    return deserialize_proof(m[0]), deserialize_verifying_key(m[1])
