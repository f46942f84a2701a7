# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# tests/conftest.py

import pytest

from chipproof import groth16
from chipproof.commitment import commit
from chipproof.witness import pack

HASH_HEX = "a" * 64
IDENTIFIER = 123456789012345678901234567890


@pytest.fixture(scope="session")
def params() -> groth16.ProvingParameters:
    """One trusted setup shared by the whole run."""
    return groth16.setup()


@pytest.fixture(scope="session")
def witness() -> bytes:
    return pack(HASH_HEX, IDENTIFIER)


@pytest.fixture(scope="session")
def commitment(witness):
    return commit(witness)


@pytest.fixture(scope="session")
def proof(params, witness) -> groth16.Proof:
    return groth16.prove(witness, params)
