# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
Exceptions raised by the commitment-and-proof core.

Only `SetupFailure` is fatal; the rest are per-request errors. A proof that
simply fails to verify is not an error, `verify` returns False for it.
"""


class ChipProofError(Exception):
    """Base class for every error raised by chipproof."""


class InvalidEncoding(ChipProofError, ValueError):
    """Malformed enrollment or authentication input, or wrong-length wire data."""


class UnsatisfiableCircuit(ChipProofError):
    """The witness does not satisfy the identity circuit for the claimed commitment."""


class MalformedCurvePoint(ChipProofError, ValueError):
    """Bytes that do not decode to a valid point in the prime-order subgroup."""


class SetupFailure(ChipProofError):
    """Parameter generation or loading failed; the service cannot start."""
