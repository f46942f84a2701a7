# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from pathlib import Path

import pytest
from pydantic import ValidationError

from chipproof.config import Settings


def test_defaults(monkeypatch):
    for name in ("PARAMS_PATH", "WORKERS", "PROVE_TIMEOUT_S", "LOG_LEVEL", "JSON_LOGS"):
        monkeypatch.delenv(f"CHIPPROOF_{name}", raising=False)
    settings = Settings(_env_file=None)
    assert settings.params_path == Path("data/parameters.cbor")
    assert settings.workers == 2
    assert settings.prove_timeout_s is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CHIPPROOF_WORKERS", "4")
    monkeypatch.setenv("CHIPPROOF_PROVE_TIMEOUT_S", "2.5")
    monkeypatch.setenv("CHIPPROOF_JSON_LOGS", "true")
    settings = Settings(_env_file=None)
    assert settings.workers == 4
    assert settings.prove_timeout_s == 2.5
    assert settings.json_logs is True


def test_invalid_workers():
    with pytest.raises(ValidationError):
        Settings(workers=0, _env_file=None)


if __name__ == "__main__":
    pytest.main()
