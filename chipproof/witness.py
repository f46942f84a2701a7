# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import string

from chipproof.constants import (
    HASH_HEX_LENGTH,
    HASH_SLOT_SIZE,
    IDENTIFIER_SIZE,
)
from chipproof.errors import InvalidEncoding

_HEX_DIGITS = frozenset(string.hexdigits)


def hash_to_slot(hash_hex: str) -> bytes:
    """
    Decode a 64-character hex hash into the 64-byte hash slot of a witness.

    The 64 hex characters decode to 32 raw bytes which fill the start of the
    slot; the remaining 32 bytes stay zero.

    Args:
        hash_hex: Exactly 64 hexadecimal characters, either case, no prefix.

    Returns:
        The 64-byte hash slot.

    Raises:
        InvalidEncoding: If the value is not a string of 64 hex characters.
    """
    if not isinstance(hash_hex, str):
        raise InvalidEncoding(f"hash must be a string, got {type(hash_hex).__name__}")
    if len(hash_hex) != HASH_HEX_LENGTH:
        raise InvalidEncoding(
            f"Expected {HASH_HEX_LENGTH} characters, got {len(hash_hex)}"
        )
    # bytes.fromhex skips whitespace, so check the alphabet first
    if not _HEX_DIGITS.issuperset(hash_hex):
        raise InvalidEncoding("Invalid hash digit")
    return bytes.fromhex(hash_hex).ljust(HASH_SLOT_SIZE, b"\x00")


def identifier_to_bytes(identifier: int) -> bytes:
    """
    Serialize a u128 identifier as 16 big-endian bytes.

    Raises:
        InvalidEncoding: If the identifier is not an int in [0, 2**128).
    """
    if isinstance(identifier, bool) or not isinstance(identifier, int):
        raise InvalidEncoding(
            f"identifier must be an int, got {type(identifier).__name__}"
        )
    if not 0 <= identifier < 1 << (8 * IDENTIFIER_SIZE):
        raise InvalidEncoding("identifier does not fit in an unsigned 128-bit integer")
    return identifier.to_bytes(IDENTIFIER_SIZE, "big")


def pack(hash_hex: str, identifier: int) -> bytes:
    """
    Build the 80-byte private witness from enrollment/authentication input.

    Layout:
        hash slot (64 bytes) || identifier (16 bytes, big-endian)

    Args:
        hash_hex: The 64-character hex hash of the identifying data.
        identifier: The microchip identifier, an unsigned 128-bit integer.

    Returns:
        The witness bytes. They must never be logged or transmitted.

    Raises:
        InvalidEncoding: If either input is malformed.
    """
    return hash_to_slot(hash_hex) + identifier_to_bytes(identifier)
