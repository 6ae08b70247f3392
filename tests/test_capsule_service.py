"""Tests for :mod:`services.capsule_service`."""

from __future__ import annotations

import pytest

from conftest import CREATOR, FakeLedger, make_capsule
from services.capsule_service import format_timestamp, lookup_capsule, shorten_address
from services.errors import CapsuleNotFound, WalletNotConnected


def test_lookup_rejects_ids_at_or_beyond_count(ledger: FakeLedger) -> None:
    for capsule_id in (10, 11, 500):
        with pytest.raises(CapsuleNotFound) as excinfo:
            lookup_capsule(capsule_id, ledger)
        assert excinfo.value.total == 10
        assert excinfo.value.max_id == 9
    assert ledger.reads == []


def test_lookup_succeeds_for_highest_valid_id(ledger: FakeLedger) -> None:
    view = lookup_capsule(9, ledger)
    assert view.capsule_id == 9
    assert view.short_creator == "0x1234…5678"
    assert view.created_at_label.endswith("UTC")


def test_lookup_without_ledger_signals_missing_wallet() -> None:
    with pytest.raises(WalletNotConnected):
        lookup_capsule(1, None)


def test_lookup_projects_raw_contract_tuples() -> None:
    class TupleLedger:
        def get_capsule_count(self) -> int:
            return 1

        def get_capsule(self, capsule_id: int):
            return (CREATOR, "bafy-cid", 200, 100, b"\x00" * 32, True)

    view = lookup_capsule(0, TupleLedger())
    assert view.capsule.content_id == "bafy-cid"
    assert view.capsule.unlock_timestamp == 200
    assert view.capsule.unlocked is True


def test_lookup_of_unlocked_capsule_stays_unlocked(ledger: FakeLedger) -> None:
    ledger.capsules[5] = make_capsule(5, unlocked=True)
    assert lookup_capsule(5, ledger).capsule.unlocked
    assert lookup_capsule(5, ledger).capsule.unlocked


def test_display_helpers() -> None:
    assert shorten_address("0xabc") == "0xabc"
    assert format_timestamp(0) == "Jan 01, 1970, 12:00 AM UTC"
    assert format_timestamp(2**64 - 1) == "the far future"
