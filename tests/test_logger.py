# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import json
import logging

import pytest
import structlog

from chipproof.logger import _censor_secrets, get_logger, setup_logging


def test_witness_material_is_censored():
    event = {"event": "x", "hash_hex": "aa", "identifier": 1, "identity_key": "rex"}
    out = _censor_secrets(None, "info", event)
    assert out["hash_hex"] == "***REDACTED***"
    assert out["identifier"] == "***REDACTED***"
    assert out["identity_key"] == "rex"


def test_json_logs(capsys):
    setup_logging("INFO", json_logs=True)
    try:
        get_logger("chipproof.test").info("hello", witness=b"secret", scalars=2)
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "hello"
        assert record["service"] == "chipproof"
        assert record["witness"] == "***REDACTED***"
        assert record["scalars"] == 2
    finally:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()


if __name__ == "__main__":
    pytest.main()
