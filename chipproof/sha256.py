# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
SHA-256 as rank-1 constraints.

Every wire is a `Bit`, either a constant or a linear combination that is
known to be 0 or 1. A word is a list of 32 bits, least significant first,
so rotations and shifts only reorder wires. Operations whose operands are
constant fold away at synthesis time; otherwise they cost

  - xor: 1 constraint per bit;
  - ch: 1 constraint per bit;
  - maj: 2 constraints per bit;
  - addition mod 2^32: one booleanity constraint per bit of the full sum,
    carries included, plus one constraint tying the sum to those bits.

Bit sequences outside this module use the byte order of the data and the
least significant bit of each byte first, like `bytes_to_bits_le`.
"""

from chipproof.commitment import bytes_to_bits_le
from chipproof.constants import SHA256_WORD_BITS
from chipproof.hashing import INITIAL_STATE, ROUND_CONSTANTS, padding
from chipproof.r1cs import ONE, ConstraintSystem, LinearCombination

Value = int | None


class Bit:
    """A boolean wire, or a constant when `lc` is None."""

    __slots__ = ("lc", "value")

    def __init__(self, lc: LinearCombination | None, value: Value):
        self.lc = lc
        self.value = value

    @classmethod
    def constant(cls, value: int) -> "Bit":
        return cls(None, value & 1)

    @classmethod
    def alloc(cls, cs: ConstraintSystem, value: Value) -> "Bit":
        """Allocate a private variable and constrain it to 0 or 1."""
        var = cs.alloc(value)
        cs.enforce(var, var, var)
        return cls(LinearCombination.of(var), value)

    @property
    def is_constant(self) -> bool:
        return self.lc is None

    def term(self) -> LinearCombination:
        if self.lc is None:
            return LinearCombination.of(self.value)
        return self.lc

    def __invert__(self) -> "Bit":
        if self.lc is None:
            return Bit.constant(1 - self.value)
        return Bit(1 - self.lc, None if self.value is None else 1 - self.value)

    def __repr__(self) -> str:
        kind = "constant" if self.lc is None else "wire"
        return f"Bit({kind}, {self.value!r})"


Word = list[Bit]


def _known(*bits: Bit) -> bool:
    return all(bit.value is not None for bit in bits)


def _alloc(cs: ConstraintSystem, value: Value) -> LinearCombination:
    return LinearCombination.of(cs.alloc(value))


def xor(cs: ConstraintSystem, a: Bit, b: Bit) -> Bit:
    if a.is_constant:
        return ~b if a.value else b
    if b.is_constant:
        return ~a if b.value else a
    value = a.value ^ b.value if _known(a, b) else None
    out = _alloc(cs, value)
    # 2a * b = a + b - (a xor b)
    cs.enforce(a.lc * 2, b.lc, a.lc + b.lc - out)
    return Bit(out, value)


def ch(cs: ConstraintSystem, e: Bit, f: Bit, g: Bit) -> Bit:
    """Choose: f where e is set, g elsewhere."""
    if e.is_constant:
        return f if e.value else g
    if f.is_constant and g.is_constant:
        if f.value == g.value:
            return f
        return e if f.value else ~e
    value = (f.value if e.value else g.value) if _known(e, f, g) else None
    out = _alloc(cs, value)
    # e * (f - g) = out - g
    cs.enforce(e.lc, f.term() - g.term(), out - g.term())
    return Bit(out, value)


def maj(cs: ConstraintSystem, a: Bit, b: Bit, c: Bit) -> Bit:
    """Majority of three bits."""
    # constants first
    x, y, z = sorted((a, b, c), key=lambda bit: not bit.is_constant)
    if z.is_constant:
        return Bit.constant(int(x.value + y.value + z.value >= 2))
    if y.is_constant:
        return x if x.value == y.value else z

    value = int(x.value + y.value + z.value >= 2) if _known(x, y, z) else None
    if x.is_constant:
        out = _alloc(cs, value)
        if x.value:
            # y or z
            cs.enforce(y.lc, z.lc, y.lc + z.lc - out)
        else:
            cs.enforce(y.lc, z.lc, out)
        return Bit(out, value)

    yz = _alloc(cs, y.value & z.value if _known(y, z) else None)
    cs.enforce(y.lc, z.lc, yz)
    out = _alloc(cs, value)
    # x * (y + z - 2yz) = out - yz
    cs.enforce(x.lc, y.lc + z.lc - yz * 2, out - yz)
    return Bit(out, value)


def constant_word(value: int) -> Word:
    return [Bit.constant(value >> i) for i in range(SHA256_WORD_BITS)]


def word_value(word: Word) -> Value:
    if not _known(*word):
        return None
    return sum(bit.value << i for i, bit in enumerate(word))


def rotr(word: Word, n: int) -> Word:
    return [word[(i + n) % SHA256_WORD_BITS] for i in range(SHA256_WORD_BITS)]


def shr(word: Word, n: int) -> Word:
    return [
        word[i + n] if i + n < SHA256_WORD_BITS else Bit.constant(0)
        for i in range(SHA256_WORD_BITS)
    ]


def xor_words(cs: ConstraintSystem, first: Word, *rest: Word) -> Word:
    out = first
    for word in rest:
        out = [xor(cs, a, b) for a, b in zip(out, word)]
    return out


def add_words(cs: ConstraintSystem, *words: Word) -> Word:
    """
    Add words modulo 2^32.

    The exact integer sum is decomposed into fresh boolean wires and the low
    32 of them are the result. The sum stays far below the field order, so
    the decomposition is unique.
    """
    bound = 0
    total: Value = 0
    items = []
    for word in words:
        for i, bit in enumerate(word):
            bound += (bit.value if bit.is_constant else 1) << i
            items.append((bit.term(), 1 << i))
        value = word_value(word)
        total = None if total is None or value is None else total + value

    if all(bit.is_constant for word in words for bit in word):
        return constant_word(total)  # type: ignore[arg-type]

    result = [
        Bit.alloc(cs, None if total is None else (total >> i) & 1)
        for i in range(bound.bit_length())
    ]
    cs.enforce(
        LinearCombination.weighted_sum(items),
        ONE,
        LinearCombination.weighted_sum((bit.lc, 1 << i) for i, bit in enumerate(result)),
    )
    result += [Bit.constant(0)] * (SHA256_WORD_BITS - len(result))
    return result[:SHA256_WORD_BITS]


def words_from_bits(bits: list[Bit]) -> list[Word]:
    """Read big-endian 32-bit words out of byte-ordered bits."""
    return [
        [bits[8 * (start + 3 - i // 8) + i % 8] for i in range(SHA256_WORD_BITS)]
        for start in range(0, len(bits) // 8, 4)
    ]


def bits_from_words(words: list[Word]) -> list[Bit]:
    """Inverse of `words_from_bits`."""
    bits = []
    for word in words:
        for byte in range(4):
            bits.extend(word[8 * (3 - byte) + k] for k in range(8))
    return bits


def compress(cs: ConstraintSystem, state: list[Word], block: list[Word]) -> list[Word]:
    """
    Constrain one SHA-256 compression.

    Args:
        cs: The constraint system to extend.
        state: The eight chaining words.
        block: The sixteen message words of one block.

    Returns:
        The next eight chaining words.
    """
    w = list(block)
    for t in range(16, 64):
        s0 = xor_words(cs, rotr(w[t - 15], 7), rotr(w[t - 15], 18), shr(w[t - 15], 3))
        s1 = xor_words(cs, rotr(w[t - 2], 17), rotr(w[t - 2], 19), shr(w[t - 2], 10))
        w.append(add_words(cs, w[t - 16], s0, w[t - 7], s1))

    a, b, c, d, e, f, g, h = state
    for t in range(64):
        s1 = xor_words(cs, rotr(e, 6), rotr(e, 11), rotr(e, 25))
        choice = [ch(cs, x, y, z) for x, y, z in zip(e, f, g)]
        s0 = xor_words(cs, rotr(a, 2), rotr(a, 13), rotr(a, 22))
        majority = [maj(cs, x, y, z) for x, y, z in zip(a, b, c)]
        k = constant_word(ROUND_CONSTANTS[t])
        # e' = d + t1 and a' = t1 + t2, each as a single sum
        new_e = add_words(cs, d, h, s1, choice, k, w[t])
        new_a = add_words(cs, h, s1, choice, k, w[t], s0, majority)
        h, g, f, e, d, c, b, a = g, f, e, new_e, c, b, a, new_a

    return [add_words(cs, x, y) for x, y in zip(state, (a, b, c, d, e, f, g, h))]


def sha256(cs: ConstraintSystem, message: list[Bit]) -> list[Bit]:
    """
    Constrain the SHA-256 digest of a message.

    The message length is fixed by the circuit, so padding is constant.

    Args:
        cs: The constraint system to extend.
        message: Message bits, a whole number of bytes.

    Returns:
        The 256 digest bits in the same order as the message bits.

    Raises:
        ValueError: If the message is not a whole number of bytes.
    """
    if len(message) % 8:
        raise ValueError(f"message of {len(message)} bits is not whole bytes")
    tail = [Bit.constant(b) for b in bytes_to_bits_le(padding(len(message) // 8))]
    words = words_from_bits(list(message) + tail)
    state = [constant_word(x) for x in INITIAL_STATE]
    for start in range(0, len(words), 16):
        state = compress(cs, state, words[start : start + 16])
    return bits_from_words(state)
