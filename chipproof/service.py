# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# chipproof/service.py

"""
Enrollment and authentication flows.

Enrollment packs the witness, derives the commitment and hands it to the
anchor. Authentication packs the same witness, proves knowledge of it and
hands the proof with the verifying key to the anchor, which checks it
against the commitment stored at enrollment.

The anchor is an external collaborator; `MemoryAnchor` is the in-process
stand-in used by the tests and the CLI.
"""

import asyncio
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Protocol

from chipproof import groth16, payload
from chipproof.commitment import Commitment, commit
from chipproof.config import Settings, get_settings
from chipproof.errors import ChipProofError
from chipproof.groth16 import Proof, ProvingParameters, VerifyingKey
from chipproof.logger import get_logger
from chipproof.witness import pack

logger = get_logger(__name__)


class Anchor(Protocol):
    """The external service that records commitments and checks proofs."""

    def store_commitment(self, identity_key: str, envelope: bytes) -> None: ...

    def submit_proof(self, identity_key: str, envelope: bytes) -> bool: ...


class MemoryAnchor:
    """
    In-memory anchor.

    Commitments are kept in a dict keyed by identity; a submitted proof is
    accepted only when it verifies against the stored commitment under the
    verifying key the anchor trusts.
    """

    def __init__(self, verifying_key: VerifyingKey):
        self.verifying_key = verifying_key
        self.commitments: dict[str, Commitment] = {}

    def store_commitment(self, identity_key: str, envelope: bytes) -> None:
        """
        Record the commitment for an identity.

        Raises:
            InvalidEncoding: If the envelope is malformed.
            ValueError: If the identity is already enrolled.
        """
        commitment = payload.parse_enrollment(envelope)
        if identity_key in self.commitments:
            raise ValueError(f"identity {identity_key!r} is already enrolled")
        self.commitments[identity_key] = commitment
        logger.info("commitment_stored", identity_key=identity_key)

    def submit_proof(self, identity_key: str, envelope: bytes) -> bool:
        commitment = self.commitments.get(identity_key)
        if commitment is None:
            logger.warning("unknown_identity", identity_key=identity_key)
            return False
        try:
            proof, vk = payload.parse_authentication(envelope)
        except ChipProofError as e:
            logger.warning("envelope_rejected", identity_key=identity_key, error=str(e))
            return False
        if vk != self.verifying_key:
            logger.warning("untrusted_verifying_key", identity_key=identity_key)
            return False
        valid = groth16.verify(proof, vk, commitment)
        logger.info("proof_checked", identity_key=identity_key, valid=valid)
        return valid


class IdentityService:
    """
    Runs the enrollment and authentication flows.

    The proving parameters are created once per deployment and shared
    read-only. Work runs on a bounded executor. In the async flows only the
    prove step is bounded by `Settings.prove_timeout_s`; late proofs are
    dropped.
    """

    def __init__(
        self,
        params: ProvingParameters,
        anchor: Anchor,
        executor: Executor | None = None,
        settings: Settings | None = None,
    ):
        self.params = params
        self.anchor = anchor
        self.settings = settings or get_settings()
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.workers, thread_name_prefix="chipproof"
        )

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "IdentityService":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def commitment_for(self, hash_hex: str, identifier: int) -> Commitment:
        return commit(pack(hash_hex, identifier))

    def prove(self, hash_hex: str, identifier: int) -> tuple[Proof, VerifyingKey]:
        """
        Prove knowledge of the witness behind an identity's commitment.

        Raises:
            InvalidEncoding: If the inputs cannot be packed.
            UnsatisfiableCircuit: If the circuit cannot be satisfied.
        """
        proof = groth16.prove(pack(hash_hex, identifier), self.params)
        return proof, self.params.verifying_key

    def enroll(self, identity_key: str, hash_hex: str, identifier: int) -> Commitment:
        """
        Derive the commitment for an identity and hand it to the anchor.

        Args:
            identity_key: Public key the anchor files the commitment under.
            hash_hex: 64-character hex hash of the identity record.
            identifier: The chip identifier, 0 <= identifier < 2^128.

        Returns:
            The commitment that was anchored.
        """
        commitment = self.commitment_for(hash_hex, identifier)
        self.anchor.store_commitment(identity_key, payload.enrollment_payload(commitment))
        logger.info("identity_enrolled", identity_key=identity_key)
        return commitment

    def authenticate(self, identity_key: str, hash_hex: str, identifier: int) -> bool:
        """
        Prove the identity and submit the proof to the anchor.

        Returns:
            The anchor's verdict.
        """
        proof, vk = self.prove(hash_hex, identifier)
        accepted = self.anchor.submit_proof(
            identity_key, payload.authentication_payload(proof, vk)
        )
        logger.info("identity_authenticated", identity_key=identity_key, accepted=accepted)
        return accepted

    async def _prove_in_pool(self, hash_hex: str, identifier: int):
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self.executor, self.prove, hash_hex, identifier)
        timeout = self.settings.prove_timeout_s
        if timeout is None:
            return await future
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning("prove_timed_out", timeout_s=timeout)
            raise

    async def enroll_async(
        self, identity_key: str, hash_hex: str, identifier: int
    ) -> Commitment:
        """Enroll on the worker pool. No deadline applies, nothing is proved."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, self.enroll, identity_key, hash_hex, identifier
        )

    async def authenticate_async(
        self, identity_key: str, hash_hex: str, identifier: int
    ) -> bool:
        """
        Prove on the worker pool, then submit to the anchor.

        Raises:
            asyncio.TimeoutError: If `prove_timeout_s` elapses before the
                proof is ready; nothing is submitted and the late proof is
                discarded.
        """
        proof, vk = await self._prove_in_pool(hash_hex, identifier)
        loop = asyncio.get_running_loop()
        accepted = await loop.run_in_executor(
            self.executor,
            self.anchor.submit_proof,
            identity_key,
            payload.authentication_payload(proof, vk),
        )
        logger.info("identity_authenticated", identity_key=identity_key, accepted=accepted)
        return accepted
