# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# tests/test_service.py

import asyncio
import time

import pytest

from chipproof import groth16
from chipproof import service as service_module
from chipproof.config import Settings
from chipproof.errors import InvalidEncoding
from chipproof.payload import authentication_payload, enrollment_payload
from chipproof.service import IdentityService, MemoryAnchor

HASH_HEX = "a" * 64
IDENTIFIER = 123456789012345678901234567890


@pytest.fixture()
def anchor(params) -> MemoryAnchor:
    return MemoryAnchor(params.verifying_key)


@pytest.fixture()
def service(params, anchor):
    with IdentityService(params, anchor, settings=Settings(workers=1)) as svc:
        yield svc


class TestMemoryAnchor:
    def test_accepts_matching_proof(self, anchor, params, proof, commitment):
        anchor.store_commitment("rex", enrollment_payload(commitment))
        envelope = authentication_payload(proof, params.verifying_key)
        assert anchor.submit_proof("rex", envelope)

    def test_unknown_identity(self, anchor, params, proof):
        envelope = authentication_payload(proof, params.verifying_key)
        assert not anchor.submit_proof("nobody", envelope)

    def test_double_enrollment(self, anchor, commitment):
        anchor.store_commitment("rex", enrollment_payload(commitment))
        with pytest.raises(ValueError):
            anchor.store_commitment("rex", enrollment_payload(commitment))

    def test_malformed_envelopes(self, anchor, commitment):
        with pytest.raises(InvalidEncoding):
            anchor.store_commitment("rex", b"\x00")
        anchor.store_commitment("rex", enrollment_payload(commitment))
        assert not anchor.submit_proof("rex", b"\xa0")

    def test_untrusted_verifying_key(self, anchor, params, proof, commitment):
        anchor.store_commitment("rex", enrollment_payload(commitment))
        vk = params.verifying_key
        forged = groth16.VerifyingKey(
            alpha_g1=vk.beta_g1,
            beta_g1=vk.beta_g1,
            beta_g2=vk.beta_g2,
            gamma_g2=vk.gamma_g2,
            delta_g1=vk.delta_g1,
            delta_g2=vk.delta_g2,
            ic=vk.ic,
        )
        assert not anchor.submit_proof("rex", authentication_payload(proof, forged))


class TestIdentityService:
    def test_enroll_then_authenticate(self, service, anchor, commitment):
        assert service.enroll("rex", HASH_HEX, IDENTIFIER) == commitment
        assert anchor.commitments["rex"] == commitment
        assert service.authenticate("rex", HASH_HEX, IDENTIFIER)

    def test_wrong_identifier_is_rejected_by_the_anchor(self, service):
        service.enroll("rex", HASH_HEX, IDENTIFIER)
        assert not service.authenticate("rex", HASH_HEX, IDENTIFIER + 1)

    def test_bad_input(self, service):
        with pytest.raises(InvalidEncoding):
            service.enroll("rex", "xyz", IDENTIFIER)


class TestAsync:
    @pytest.mark.asyncio
    async def test_async_flow(self, service):
        commitment = await service.enroll_async("rex", HASH_HEX, IDENTIFIER)
        assert service.anchor.commitments["rex"] == commitment
        assert await service.authenticate_async("rex", HASH_HEX, IDENTIFIER)

    @pytest.mark.asyncio
    async def test_timeout_discards_result(self, params, anchor, proof, monkeypatch):
        def slow_prove(witness, parameters):
            time.sleep(0.5)
            return proof

        monkeypatch.setattr(groth16, "prove", slow_prove)
        settings = Settings(workers=1, prove_timeout_s=0.05)
        with IdentityService(params, anchor, settings=settings) as svc:
            svc.enroll("rex", HASH_HEX, IDENTIFIER)
            with pytest.raises(asyncio.TimeoutError):
                await svc.authenticate_async("rex", HASH_HEX, IDENTIFIER)

            # the pool is still usable once the slow call drains
            await asyncio.sleep(0.6)
            monkeypatch.setattr(groth16, "prove", lambda witness, parameters: proof)
            assert await svc.authenticate_async("rex", HASH_HEX, IDENTIFIER)

    @pytest.mark.asyncio
    async def test_enrollment_has_no_deadline(self, params, anchor, monkeypatch):
        real_commit = service_module.commit

        def slow_commit(witness):
            time.sleep(0.3)
            return real_commit(witness)

        monkeypatch.setattr(service_module, "commit", slow_commit)
        settings = Settings(workers=1, prove_timeout_s=0.05)
        with IdentityService(params, anchor, settings=settings) as svc:
            commitment = await svc.enroll_async("rex", HASH_HEX, IDENTIFIER)
        assert anchor.commitments["rex"] == commitment


if __name__ == "__main__":
    pytest.main()
