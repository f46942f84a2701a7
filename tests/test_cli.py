# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import json
import logging

import cbor2
import pytest
import structlog

from chipproof.cli import main
from chipproof.codec import serialize_commitment
from chipproof.files import save_parameters
from chipproof.payload import parse_authentication

HASH_HEX = "a" * 64
IDENTIFIER = "123456789012345678901234567890"


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def test_usage(capsys):
    assert main([]) == 1
    assert main(["enroll", HASH_HEX]) == 1
    assert main(["frobnicate"]) == 1
    assert "Usage" in capsys.readouterr().err


def test_enroll(capsys, commitment):
    assert main(["enroll", HASH_HEX, IDENTIFIER]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["commitment"] == [str(x) for x in commitment]
    assert result["commitment_bytes"] == serialize_commitment(commitment).hex()
    assert cbor2.loads(bytes.fromhex(result["envelope"]))[0] == serialize_commitment(
        commitment
    )


def test_enroll_bad_input(capsys):
    assert main(["enroll", "nothex", IDENTIFIER]) == 1
    assert main(["enroll", HASH_HEX, "twelve"]) == 1
    assert "Error" in capsys.readouterr().err


def test_authenticate(tmp_path, capsys, params):
    params_path = tmp_path / "parameters.cbor"
    save_parameters(params_path, params)
    capsys.readouterr()  # drain setup log output before the CLI's JSON
    out = tmp_path / "auth.cbor"

    assert main(["authenticate", str(params_path), HASH_HEX, IDENTIFIER, str(out)]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["verified"] is True
    assert result["envelope"] == str(out)
    _, vk = parse_authentication(out.read_bytes())
    assert vk == params.verifying_key


def test_authenticate_without_parameters(tmp_path, capsys):
    missing = str(tmp_path / "missing.cbor")
    assert main(["authenticate", missing, HASH_HEX, IDENTIFIER]) == 1


if __name__ == "__main__":
    pytest.main()
