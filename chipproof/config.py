# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
Runtime settings, loaded from `CHIPPROOF_*` environment variables.

Protocol constants that affect commitments or wire formats live in
`chipproof.constants` instead; changing them is a new circuit version.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHIPPROOF_",
        env_file=".env",
        extra="ignore",
    )

    params_path: Path = Path("data/parameters.cbor")
    workers: int = Field(default=2, ge=1)
    prove_timeout_s: float | None = Field(default=None, gt=0)
    log_level: str = "INFO"
    json_logs: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
