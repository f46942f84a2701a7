# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import hashlib

import pytest

from chipproof.codec import serialize_commitment
from chipproof.commitment import bytes_to_bits_le, commit, pack_bits
from chipproof.errors import InvalidEncoding
from chipproof.witness import pack

WORKED_WITNESS = bytes.fromhex(
    "aa" * 32 + "00" * 32 + "000000018ee90ff6c373e0ee4e3f0ad2"
)
WORKED_DIGEST = "5c6dfcade2339f2193bc6f65ea6324de989e934c02e069fbb1597be1be4651bc"
WORKED_COMMITMENT = (
    27282373795623183556442961340833882445799126473087486527712109311131423370588,
    2,
)


def test_bits_are_lsb_first():
    assert bytes_to_bits_le(b"\x01\x80") == [1, 0, 0, 0, 0, 0, 0, 0] + [0] * 7 + [1]


def test_pack_bits_groups_of_254():
    bits = [1] * 256
    assert pack_bits(bits) == (2**254 - 1, 3)


def test_commitment_splits_the_digest():
    witness = pack("a" * 64, 123456789012345678901234567890)
    d = int.from_bytes(hashlib.sha256(witness).digest(), "little")
    first, second = commit(witness)
    assert first == d % 2**254
    assert second == d >> 254


def test_worked_example_known_answer():
    witness = pack("a" * 64, 123456789012345678901234567890)
    assert witness == WORKED_WITNESS
    assert hashlib.sha256(witness).hexdigest() == WORKED_DIGEST
    assert commit(witness) == WORKED_COMMITMENT
    assert serialize_commitment(commit(witness)).hex() == (
        "5c6dfcade2339f2193bc6f65ea6324de989e934c02e069fbb1597be1be46513c"
        + "02"
        + "00" * 31
    )


def test_commitment_is_deterministic():
    witness = pack("0" * 64, 1)
    assert commit(witness) == commit(witness)
    assert commit(witness) != commit(pack("0" * 64, 2))


@pytest.mark.parametrize("witness", [b"", bytes(79), bytes(81), "a" * 80])
def test_bad_witness_length(witness):
    with pytest.raises(InvalidEncoding):
        commit(witness)


if __name__ == "__main__":
    pytest.main()
