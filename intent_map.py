"""Intent parsing helpers for guardian turns.

Patterns are tried in priority order: a keyword-prefixed number first
("capsule 7", "vault #3", "#12"), then a bare number that makes up the whole
trimmed input ("42"). The first match wins.
"""

from __future__ import annotations

import re
from typing import Pattern, Sequence, Tuple

CAPSULE_KEYWORDS: Tuple[str, ...] = ("capsule", "vault")

_ID_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"(?:capsule|vault|id|epoch|#)\s*#?(\d+)", re.IGNORECASE),
    re.compile(r"^(\d+)$"),
)


def extract_capsule_id(text: str | None) -> int | None:
    """Return the capsule id mentioned in ``text`` or ``None``."""

    cleaned = (text or "").strip()
    if not cleaned:
        return None
    for pattern in _ID_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            return int(match.group(1))
    return None


def mentions_capsule_keyword(text: str | None) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in CAPSULE_KEYWORDS)


def wants_new_capsule(text: str | None) -> bool:
    """Return ``True`` when a password-turn input is really a new lookup.

    Both a capsule keyword and an extractable id are required, so a password
    that merely contains the word "vault" is still treated as a password.
    """

    return mentions_capsule_keyword(text) and extract_capsule_id(text) is not None


__all__ = [
    "CAPSULE_KEYWORDS",
    "extract_capsule_id",
    "mentions_capsule_keyword",
    "wants_new_capsule",
]
