# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from chipproof.constants import SCALAR_CAPACITY, WITNESS_SIZE
from chipproof.errors import InvalidEncoding
from chipproof.hashing import digest

Commitment = tuple[int, ...]


def bytes_to_bits_le(data: bytes) -> list[int]:
    """
    Expand bytes into bits, least-significant bit of each byte first.

    Byte order is preserved, so bit 8*i + j is bit j of data[i].
    """
    return [(byte >> j) & 1 for byte in data for j in range(8)]


def pack_bits(bits: list[int]) -> Commitment:
    """
    Pack bits into scalars, `SCALAR_CAPACITY` bits at a time.

    Inside a group, bit i carries weight 2^i. The last group may be shorter.

    Args:
        bits: A list of 0/1 values.

    Returns:
        The packed scalars, in order.
    """
    scalars = []
    for start in range(0, len(bits), SCALAR_CAPACITY):
        acc = 0
        for i, bit in enumerate(bits[start : start + SCALAR_CAPACITY]):
            acc += bit << i
        scalars.append(acc)
    return tuple(scalars)


def commit(witness: bytes) -> Commitment:
    """
    Derive the public commitment of a witness.

    The witness is hashed with SHA-256, the digest is expanded into
    little-endian bits and those bits are packed into scalars of the
    BLS12-381 scalar field, 254 bits per scalar. The result is
    deterministic for a given witness.

    Args:
        witness: The 80-byte witness from `chipproof.witness.pack`.

    Returns:
        The commitment as a tuple of scalars.

    Raises:
        InvalidEncoding: If the witness is not 80 bytes.
    """
    if not isinstance(witness, (bytes, bytearray)) or len(witness) != WITNESS_SIZE:
        raise InvalidEncoding(f"witness must be {WITNESS_SIZE} bytes")
    return pack_bits(bytes_to_bits_le(digest(bytes(witness))))
