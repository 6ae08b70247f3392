"""Read-only capsule lookups against the ledger."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from models import Capsule, CapsuleView
from services.errors import CapsuleNotFound, WalletNotConnected


logger = logging.getLogger(__name__)

FAR_FUTURE_LABEL = "the far future"


def shorten_address(address: str) -> str:
    """Return ``0xAbCd…1234`` style display text for an address."""

    text = (address or "").strip()
    if len(text) <= 10:
        return text
    return f"{text[:6]}…{text[-4:]}"


def format_timestamp(unix_timestamp: int) -> str:
    """Format a ledger timestamp like ``Oct 19, 2026, 03:04 PM UTC``."""

    try:
        moment = datetime.fromtimestamp(int(unix_timestamp), tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        # uint64 timestamps can exceed what datetime represents.
        return FAR_FUTURE_LABEL
    return moment.strftime("%b %d, %Y, %I:%M %p UTC")


def lookup_capsule(capsule_id: int, ledger: Any) -> CapsuleView:
    """Read one capsule by id, bounds-checked against the recorded count."""

    if ledger is None:
        raise WalletNotConnected()
    if capsule_id < 0:
        raise CapsuleNotFound(capsule_id, 0)
    total = int(ledger.get_capsule_count())
    if capsule_id >= total:
        logger.debug("Capsule %s out of range (count=%s)", capsule_id, total)
        raise CapsuleNotFound(capsule_id, total)
    capsule = ledger.get_capsule(capsule_id)
    if not isinstance(capsule, Capsule):
        capsule = Capsule.from_record(capsule_id, capsule)
    logger.debug("Capsule %s read: unlocked=%s unlock_at=%s", capsule_id, capsule.unlocked, capsule.unlock_timestamp)
    return CapsuleView(
        capsule=capsule,
        short_creator=shorten_address(capsule.creator_address),
        created_at_label=format_timestamp(capsule.created_at_timestamp),
        unlock_at_label=format_timestamp(capsule.unlock_timestamp),
    )


__all__ = ["format_timestamp", "lookup_capsule", "shorten_address"]
