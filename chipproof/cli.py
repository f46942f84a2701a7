# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# cli.py

"""
Command line entry points.

    python -m chipproof.cli setup <params.cbor>
    python -m chipproof.cli enroll <hash_hex> <identifier>
    python -m chipproof.cli authenticate <params.cbor> <hash_hex> <identifier> [out]

`enroll` prints the commitment and its enrollment envelope. `authenticate`
writes the authentication envelope to `out` (or prints it as hex) after
checking it locally against the commitment.
"""

import json
import sys

from chipproof import groth16
from chipproof.codec import serialize_commitment, serialize_proof, serialize_verifying_key
from chipproof.commitment import commit
from chipproof.config import get_settings
from chipproof.errors import ChipProofError, InvalidEncoding
from chipproof.files import load_parameters, save_bytes, save_parameters
from chipproof.logger import setup_logging
from chipproof.payload import authentication_payload, enrollment_payload
from chipproof.service import IdentityService, MemoryAnchor
from chipproof.witness import pack

USAGE = """Usage:
  python -m chipproof.cli setup <params.cbor>
  python -m chipproof.cli enroll <hash_hex> <identifier>
  python -m chipproof.cli authenticate <params.cbor> <hash_hex> <identifier> [out]"""


def _parse_identifier(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidEncoding(f"identifier must be an integer, got {value!r}") from None


def cmd_setup(params_path: str) -> dict:
    params = groth16.setup()
    save_parameters(params_path, params)
    return {
        "params": params_path,
        "verifying_key": serialize_verifying_key(params.verifying_key).hex(),
    }


def cmd_enroll(hash_hex: str, identifier: str) -> dict:
    commitment = commit(pack(hash_hex, _parse_identifier(identifier)))
    return {
        "commitment": [str(x) for x in commitment],
        "commitment_bytes": serialize_commitment(commitment).hex(),
        "envelope": enrollment_payload(commitment).hex(),
    }


def cmd_authenticate(
    params_path: str, hash_hex: str, identifier: str, out: str | None = None
) -> dict:
    params = load_parameters(params_path)
    anchor = MemoryAnchor(params.verifying_key)
    number = _parse_identifier(identifier)
    with IdentityService(params, anchor) as service:
        service.enroll("cli", hash_hex, number)
        proof, vk = service.prove(hash_hex, number)
        envelope = authentication_payload(proof, vk)
        accepted = anchor.submit_proof("cli", envelope)

    result = {"proof": serialize_proof(proof).hex(), "verified": accepted}
    if out is not None:
        save_bytes(out, envelope)
        result["envelope"] = out
    else:
        result["envelope"] = envelope.hex()
    return result


def main(argv: list[str] | None = None) -> int:
    """CLI: dispatch on the first argument and print the result as JSON."""
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    setup_logging(settings.log_level, settings.json_logs)

    commands = {
        "setup": (cmd_setup, 1, 1),
        "enroll": (cmd_enroll, 2, 2),
        "authenticate": (cmd_authenticate, 3, 4),
    }
    if not argv or argv[0] not in commands:
        print(USAGE, file=sys.stderr)
        return 1
    fn, least, most = commands[argv[0]]
    args = argv[1:]
    if not least <= len(args) <= most:
        print(USAGE, file=sys.stderr)
        return 1

    try:
        result = fn(*args)
    except ChipProofError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    json.dump(result, sys.stdout, indent=4)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
