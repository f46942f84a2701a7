# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# tests/test_sha256.py

import hashlib
from itertools import product

import pytest

from chipproof.commitment import bytes_to_bits_le
from chipproof.r1cs import ConstraintSystem
from chipproof.sha256 import (
    Bit,
    add_words,
    bits_from_words,
    ch,
    constant_word,
    maj,
    rotr,
    sha256,
    shr,
    word_value,
    words_from_bits,
    xor,
)


def make_bit(cs, value, wire):
    return Bit.alloc(cs, value) if wire else Bit.constant(value)


def evaluate(cs, bit):
    return bit.term().evaluate(cs.inputs, cs.aux)


def alloc_word(cs, value):
    return [Bit.alloc(cs, (value >> i) & 1) for i in range(32)]


@pytest.mark.parametrize("a, b", product([0, 1], repeat=2))
@pytest.mark.parametrize("wires", product([False, True], repeat=2))
def test_xor(a, b, wires):
    cs = ConstraintSystem()
    out = xor(cs, make_bit(cs, a, wires[0]), make_bit(cs, b, wires[1]))
    assert out.value == a ^ b
    assert evaluate(cs, out) == a ^ b
    assert cs.is_satisfied()


@pytest.mark.parametrize("e, f, g", product([0, 1], repeat=3))
@pytest.mark.parametrize("wires", product([False, True], repeat=3))
def test_ch(e, f, g, wires):
    cs = ConstraintSystem()
    bits = [make_bit(cs, v, w) for v, w in zip((e, f, g), wires)]
    out = ch(cs, *bits)
    expected = (e & f) ^ ((1 - e) & g)
    assert out.value == expected
    assert evaluate(cs, out) == expected
    assert cs.is_satisfied()


@pytest.mark.parametrize("a, b, c", product([0, 1], repeat=3))
@pytest.mark.parametrize("wires", product([False, True], repeat=3))
def test_maj(a, b, c, wires):
    cs = ConstraintSystem()
    bits = [make_bit(cs, v, w) for v, w in zip((a, b, c), wires)]
    out = maj(cs, *bits)
    expected = (a & b) ^ (a & c) ^ (b & c)
    assert out.value == expected
    assert evaluate(cs, out) == expected
    assert cs.is_satisfied()


def test_constants_fold_without_constraints():
    cs = ConstraintSystem()
    one, zero = Bit.constant(1), Bit.constant(0)
    assert xor(cs, one, zero).value == 1
    assert ch(cs, one, zero, one).value == 0
    assert maj(cs, one, zero, one).value == 1
    assert word_value(add_words(cs, constant_word(2**32 - 1), constant_word(2))) == 1
    assert cs.num_constraints == 0
    assert cs.num_aux == 0


def test_inverted_wire():
    cs = ConstraintSystem()
    bit = Bit.alloc(cs, 1)
    assert (~bit).value == 0
    assert evaluate(cs, ~bit) == 0
    assert (~Bit.constant(0)).value == 1


def test_rotations_and_shifts():
    x = 0x80000001
    assert word_value(rotr(constant_word(x), 1)) == 0xC0000000
    assert word_value(rotr(constant_word(x), 4)) == 0x18000000
    assert word_value(shr(constant_word(x), 1)) == 0x40000000
    assert word_value(shr(constant_word(x), 31)) == 1


def test_add_words_wraps():
    cs = ConstraintSystem()
    values = [0xFFFFFFFF, 0x12345678, 0x9ABCDEF0]
    out = add_words(cs, *(alloc_word(cs, v) for v in values), constant_word(5))
    assert word_value(out) == (sum(values) + 5) % 2**32
    assert [evaluate(cs, bit) for bit in out] == [bit.value for bit in out]
    assert cs.is_satisfied()


def test_add_words_rejects_a_wrong_sum():
    cs = ConstraintSystem()
    out = add_words(cs, alloc_word(cs, 7), alloc_word(cs, 9))
    assert cs.is_satisfied()
    (var,) = out[0].lc.terms
    cs.aux[var.index] ^= 1
    assert not cs.is_satisfied()


def test_word_layout_is_big_endian():
    data = bytes.fromhex("0102030480000000")
    bits = [Bit.constant(b) for b in bytes_to_bits_le(data)]
    words = words_from_bits(bits)
    assert [word_value(w) for w in words] == [0x01020304, 0x80000000]
    assert [bit.value for bit in bits_from_words(words)] == bytes_to_bits_le(data)


@pytest.mark.parametrize("message", [b"abc", bytes(range(80))])
def test_gadget_matches_hashlib(message):
    cs = ConstraintSystem()
    bits = [Bit.alloc(cs, b) for b in bytes_to_bits_le(message)]
    out = sha256(cs, bits)
    assert [bit.value for bit in out] == bytes_to_bits_le(
        hashlib.sha256(message).digest()
    )
    assert cs.is_satisfied()


def test_shape_does_not_depend_on_values():
    empty, full = ConstraintSystem(), ConstraintSystem()
    sha256(empty, [Bit.alloc(empty, None) for _ in range(24)])
    sha256(full, [Bit.alloc(full, b) for b in bytes_to_bits_le(b"abc")])
    assert not empty.has_assignment()
    assert empty.num_constraints == full.num_constraints
    assert empty.num_aux == full.num_aux


def test_partial_bytes_are_rejected():
    cs = ConstraintSystem()
    with pytest.raises(ValueError):
        sha256(cs, [Bit.constant(0)] * 7)


if __name__ == "__main__":
    pytest.main()
