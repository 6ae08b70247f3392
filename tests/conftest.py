"""Shared in-memory collaborators for guardian tests."""

from __future__ import annotations

import base64
from dataclasses import replace
from typing import Any, Dict, List

import pytest
from web3.exceptions import ContractLogicError

from capsule_seal import encrypt_payload
from models import Capsule
from services.errors import StorageFetchFailure

CHAIN_TIME = 1_700_000_000
CREATOR = "0x1234567890abcdef1234567890abcdef12345678"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PAYLOAD_TEXT = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def make_capsule(capsule_id: int, *, unlock_offset: int = -60, unlocked: bool = False) -> Capsule:
    return Capsule(
        capsule_id=capsule_id,
        creator_address=CREATOR,
        content_id=f"cid-{capsule_id}",
        unlock_timestamp=CHAIN_TIME + unlock_offset,
        created_at_timestamp=CHAIN_TIME - 86400 * 30,
        unlocked=unlocked,
    )


class FakeLedger:
    """Behaves like the capsule contract for a fixed set of capsules."""

    def __init__(self, capsules: Dict[int, Capsule], passwords: Dict[int, str], *, count: int | None = None) -> None:
        self.capsules = dict(capsules)
        self.passwords = dict(passwords)
        self.count = count if count is not None else max(self.capsules) + 1
        self.chain_time = CHAIN_TIME
        self.unlock_calls: List[tuple[int, str]] = []
        self.reads: List[int] = []

    def get_capsule_count(self) -> int:
        return self.count

    def get_capsule(self, capsule_id: int) -> Capsule:
        self.reads.append(capsule_id)
        return self.capsules[capsule_id]

    def get_chain_time(self) -> int:
        return self.chain_time

    def unlock(self, capsule_id: int, password: str) -> Dict[str, Any]:
        self.unlock_calls.append((capsule_id, password))
        capsule = self.capsules[capsule_id]
        if capsule.unlocked:
            raise ContractLogicError("execution reverted: Already Unlocked")
        if self.chain_time < capsule.unlock_timestamp:
            raise ContractLogicError("execution reverted: Too early")
        if password != self.passwords.get(capsule_id):
            raise ContractLogicError("execution reverted: Bad Pass")
        self.capsules[capsule_id] = replace(capsule, unlocked=True)
        return {"status": 1, "transactionHash": b"\x01" * 32}


class FakeStorage:
    def __init__(self, blobs: Dict[str, bytes]) -> None:
        self.blobs = dict(blobs)
        self.fetches: List[str] = []

    def fetch(self, content_id: str) -> bytes:
        self.fetches.append(content_id)
        if content_id not in self.blobs:
            raise StorageFetchFailure(content_id, status=404)
        return self.blobs[content_id]


@pytest.fixture
def ledger() -> FakeLedger:
    capsules = {
        0: make_capsule(0, unlocked=True),
        1: make_capsule(1, unlock_offset=90000),
        5: make_capsule(5),
        9: make_capsule(9),
    }
    return FakeLedger(capsules, {1: "later", 5: "open sesame", 9: "nine"}, count=10)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage(
        {
            "cid-5": encrypt_payload(PAYLOAD_TEXT, "open sesame").encode("ascii"),
            "cid-9": encrypt_payload("plain words", "nine").encode("ascii"),
        }
    )
