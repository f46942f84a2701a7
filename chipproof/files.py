# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from pathlib import Path

from chipproof.codec import deserialize_parameters, serialize_parameters
from chipproof.errors import ChipProofError, SetupFailure
from chipproof.groth16 import ProvingParameters
from chipproof.logger import get_logger

logger = get_logger(__name__)


def save_bytes(path: str | Path, data: bytes) -> None:
    """
    Write bytes to a file, creating parent directories if needed.

    Args:
        path: Destination file path (string or `Path`).
        data: Content to write.

    Side effects:
        - Creates `path.parent` directories if they do not exist.
        - Overwrites the file if it already exists.

    Raises:
        OSError: If the file cannot be created or written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        f.write(data)


def save_parameters(path: str | Path, params: ProvingParameters) -> None:
    """Persist the output of the one-time setup."""
    save_bytes(path, serialize_parameters(params))
    logger.info("parameters_saved", path=str(path))


def load_parameters(path: str | Path) -> ProvingParameters:
    """
    Load the deployment's proving parameters.

    This is meant to run once at startup; the result is shared read-only by
    every prove and verify call.

    Args:
        path: Path written by `save_parameters`.

    Returns:
        The proving parameters.

    Raises:
        SetupFailure: If the file is missing, unreadable or invalid.
    """
    path = Path(path)
    try:
        with path.open("rb") as f:
            params = deserialize_parameters(f.read())
    except SetupFailure:
        raise
    except (OSError, ChipProofError) as e:
        raise SetupFailure(f"cannot load parameters from {path}: {e}") from e
    logger.info(
        "parameters_loaded",
        path=str(path),
        domain_size=params.proving_key.domain_size,
    )
    return params
