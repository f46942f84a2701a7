# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import secrets

from eth_typing import BLSPubkey, BLSSignature
from py_ecc.bls.g2_primitives import (
    G1_to_pubkey,
    G2_to_signature,
    pubkey_to_G1,
    signature_to_G2,
)
from py_ecc.fields import optimized_bls12_381_FQ as FQ
from py_ecc.fields import optimized_bls12_381_FQ2 as FQ2
from py_ecc.optimized_bls12_381 import (
    G1,
    G2,
    Z1,
    Z2,
    add,
    b,
    b2,
    curve_order,
    double,
    eq,
    field_modulus,
    is_inf,
    is_on_curve,
    multiply,
    normalize,
)

from chipproof.constants import G1_AFFINE_SIZE, G1_SIZE, G2_AFFINE_SIZE, G2_SIZE
from chipproof.errors import InvalidEncoding, MalformedCurvePoint


def rng() -> int:
    """
    Generates a random non-zero scalar using the secrets module.

    Every call reads the operating system's CSPRNG directly, so concurrent
    callers never share generator state.

    Returns:
        int: A random number in [1, curve_order - 1].
    """
    return secrets.randbelow(curve_order - 1) + 1


def is_g1(element: tuple) -> bool:
    return isinstance(element[2], FQ)


def identity_like(element: tuple) -> tuple:
    """Return the point at infinity of the group `element` belongs to."""
    return Z1 if is_g1(element) else Z2


def in_subgroup(element: tuple) -> bool:
    """Check that a point on the curve lies in the prime-order subgroup."""
    return is_inf(multiply(element, curve_order))


def points_equal(left: tuple, right: tuple) -> bool:
    return eq(left, right)


def compress(element: tuple) -> bytes:
    """
    Compresses a BLS12-381 point to its 48-byte (G1) or 96-byte (G2) encoding.

    Args:
        element (tuple): The point to be compressed.

    Returns:
        bytes: The compressed point.
    """
    if is_g1(element):
        return bytes(G1_to_pubkey(element))
    return bytes(G2_to_signature(element))


def uncompress(element: bytes, check_subgroup: bool = True) -> tuple:
    """
    Uncompresses a G1 or G2 point, chosen by the length of the input.

    The encoding must be canonical, the point must be on the curve and,
    unless `check_subgroup` is False, in the prime-order subgroup. Skip the
    subgroup check only for locally produced data such as our own proving key.

    Args:
        element (bytes): 48 bytes for G1, 96 bytes for G2.
        check_subgroup (bool): Whether to run the subgroup check.

    Returns:
        tuple: The uncompressed point.

    Raises:
        InvalidEncoding: If the length is neither 48 nor 96.
        MalformedCurvePoint: If the bytes are not a valid point.
    """
    element = bytes(element)
    try:
        if len(element) == G1_SIZE:
            point = pubkey_to_G1(BLSPubkey(element))
            on_curve = is_on_curve(point, b)
        elif len(element) == G2_SIZE:
            point = signature_to_G2(BLSSignature(element))
            on_curve = is_on_curve(point, b2)
        else:
            raise InvalidEncoding(
                f"compressed point must be {G1_SIZE} or {G2_SIZE} bytes, got {len(element)}"
            )
    except ValueError as e:
        if isinstance(e, InvalidEncoding):
            raise
        raise MalformedCurvePoint(f"invalid compressed point: {e}") from e

    if not on_curve:
        raise MalformedCurvePoint("point is not on the curve")
    if compress(point) != element:
        raise MalformedCurvePoint("non-canonical point encoding")
    if check_subgroup and not in_subgroup(point):
        raise MalformedCurvePoint("point is not in the prime-order subgroup")
    return point


def encode_affine(element: tuple) -> bytes:
    """
    Uncompressed encoding: x || y, 48 big-endian bytes per base field element.

    G2 coordinates are written imaginary part first. The point at infinity is
    all zero bytes, which is not a point on either curve.

    Args:
        element (tuple): The point to encode.

    Returns:
        bytes: 96 bytes for G1, 192 bytes for G2.
    """
    if is_g1(element):
        if is_inf(element):
            return bytes(G1_AFFINE_SIZE)
        x, y = normalize(element)
        coords = [int(x), int(y)]
    else:
        if is_inf(element):
            return bytes(G2_AFFINE_SIZE)
        x, y = normalize(element)
        coords = [x.coeffs[1], x.coeffs[0], y.coeffs[1], y.coeffs[0]]
    return b"".join(int(c).to_bytes(G1_SIZE, "big") for c in coords)


def decode_affine(element: bytes) -> tuple:
    """
    Inverse of `encode_affine`, chosen by the length of the input.

    Coordinates must be reduced and the point must be on the curve. There is
    no subgroup check; this encoding is only read back from our own
    parameters file.

    Raises:
        InvalidEncoding: If the length is neither 96 nor 192.
        MalformedCurvePoint: If the bytes are not a point on the curve.
    """
    element = bytes(element)
    if len(element) not in (G1_AFFINE_SIZE, G2_AFFINE_SIZE):
        raise InvalidEncoding(
            f"affine point must be {G1_AFFINE_SIZE} or {G2_AFFINE_SIZE} bytes, "
            f"got {len(element)}"
        )
    coords = [
        int.from_bytes(element[i : i + G1_SIZE], "big")
        for i in range(0, len(element), G1_SIZE)
    ]
    if any(c >= field_modulus for c in coords):
        raise MalformedCurvePoint("coordinate is not below the field modulus")

    if len(element) == G1_AFFINE_SIZE:
        if not any(coords):
            return Z1
        point = (FQ(coords[0]), FQ(coords[1]), FQ.one())
        on_curve = is_on_curve(point, b)
    else:
        if not any(coords):
            return Z2
        x1, x0, y1, y0 = coords
        point = (FQ2([x0, x1]), FQ2([y0, y1]), FQ2.one())
        on_curve = is_on_curve(point, b2)
    if not on_curve:
        raise MalformedCurvePoint("point is not on the curve")
    return point


class FixedBase:
    """
    Windowed table for repeated multiplication of one base point.

    Row i holds d * 2^(w*i) * base for d in 1..2^w - 1, so a scalar
    multiplication costs one addition per non-zero window.
    """

    def __init__(self, base: tuple, window: int = 8, bits: int = 255):
        self.window = window
        self.mask = (1 << window) - 1
        self.zero = identity_like(base)
        self.table: list[list[tuple]] = []
        current = base
        for _ in range((bits + window - 1) // window):
            row = [current]
            for _ in range(self.mask - 1):
                row.append(add(row[-1], current))
            self.table.append(row)
            current = add(row[-1], current)

    def mul(self, scalar: int) -> tuple:
        scalar %= curve_order
        acc = self.zero
        row = 0
        while scalar:
            digit = scalar & self.mask
            if digit:
                acc = add(acc, self.table[row][digit - 1])
            scalar >>= self.window
            row += 1
        return acc

    def batch(self, scalars: list[int]) -> list[tuple]:
        return [self.mul(s) for s in scalars]


def multiexp(points: list[tuple], scalars: list[int]) -> tuple:
    """
    Compute sum(s_i * P_i) with the bucket method.

    Zero scalars and points at infinity are skipped and unit scalars are
    added directly, which matters for circuits with many boolean wires.

    Args:
        points: Points of a single group.
        scalars: One scalar per point.

    Returns:
        The resulting point.
    """
    if len(points) != len(scalars):
        raise ValueError(
            f"multiexp length mismatch: {len(points)} points vs {len(scalars)} scalars"
        )
    if not points:
        raise ValueError("multiexp needs at least one point")

    zero = identity_like(points[0])
    ones = zero
    pairs = []
    for point, scalar in zip(points, scalars):
        scalar %= curve_order
        if scalar == 0 or is_inf(point):
            continue
        if scalar == 1:
            ones = add(ones, point)
        else:
            pairs.append((point, scalar))
    if not pairs:
        return ones

    c = max(2, len(pairs).bit_length() - 3)
    mask = (1 << c) - 1
    windows = (max(s.bit_length() for _, s in pairs) + c - 1) // c

    acc = zero
    for w in reversed(range(windows)):
        if not is_inf(acc):
            for _ in range(c):
                acc = double(acc)
        buckets: list[tuple | None] = [None] * mask
        shift = w * c
        for point, scalar in pairs:
            digit = (scalar >> shift) & mask
            if digit:
                bucket = buckets[digit - 1]
                buckets[digit - 1] = point if bucket is None else add(bucket, point)
        running = zero
        total = zero
        for bucket in reversed(buckets):
            if bucket is not None:
                running = add(running, bucket)
            total = add(total, running)
        acc = add(acc, total)
    return add(acc, ones)


# generators and identity elements
g1_generator = G1
g2_generator = G2
g1_identity = Z1
g2_identity = Z2

# curve order
curve_order = curve_order
