"""Shared dataclasses for the capsule guardian and its ledger projections."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence


class GuardianMode(str, Enum):
    """Conversation modes of the guardian state machine."""

    GREETING = "GREETING"
    AWAITING_ID = "AWAITING_ID"
    AWAITING_PASSWORD = "AWAITING_PASSWORD"


class MessageRole(str, Enum):
    USER = "user"
    GUARDIAN = "guardian"
    THINKING = "thinking"


class RevertKind(str, Enum):
    """Categories a ledger revert reason is sorted into."""

    WRONG_PASSWORD = "WrongPassword"
    TOO_EARLY = "TooEarly"
    ALREADY_UNLOCKED = "AlreadyUnlocked"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Capsule:
    """Read-only projection of a capsule record stored on the ledger."""

    capsule_id: int
    creator_address: str
    content_id: str
    unlock_timestamp: int
    created_at_timestamp: int
    unlocked: bool = False

    @classmethod
    def from_record(cls, capsule_id: int, record: Mapping[str, Any] | Sequence[Any]) -> "Capsule":
        """Build a capsule from a named mapping or the raw contract tuple.

        The contract returns ``(creator, contentId, unlockTime, createdAt,
        passwordHash, unlocked)``; only the password hash is ignored.
        """

        if isinstance(record, Mapping):
            creator = record.get("creator_address") or record.get("creator") or ""
            content_id = record.get("content_id") or record.get("contentId") or ""
            unlock_ts = record.get("unlock_timestamp", record.get("unlockTime", 0))
            created_ts = record.get("created_at_timestamp", record.get("createdAt", 0))
            unlocked = record.get("unlocked", False)
        else:
            creator, content_id, unlock_ts, created_ts = record[0], record[1], record[2], record[3]
            unlocked = record[5] if len(record) > 5 else record[-1]
        return cls(
            capsule_id=int(capsule_id),
            creator_address=str(creator),
            content_id=str(content_id),
            unlock_timestamp=int(unlock_ts or 0),
            created_at_timestamp=int(created_ts or 0),
            unlocked=bool(unlocked),
        )

    def asdict(self) -> dict[str, Any]:
        return {
            "id": self.capsule_id,
            "creator_address": self.creator_address,
            "content_id": self.content_id,
            "unlock_timestamp": self.unlock_timestamp,
            "created_at_timestamp": self.created_at_timestamp,
            "unlocked": self.unlocked,
        }


@dataclass(frozen=True)
class CapsuleView:
    """A looked-up capsule plus the display strings derived from it."""

    capsule: Capsule
    short_creator: str
    created_at_label: str
    unlock_at_label: str

    @property
    def capsule_id(self) -> int:
        return self.capsule.capsule_id


@dataclass
class ConversationState:
    """Mode and active capsule of one guardian session.

    ``active_capsule_id`` is set exactly when the mode is
    ``AWAITING_PASSWORD``; use :meth:`await_password` and :meth:`await_id`
    rather than assigning the fields directly.
    """

    mode: GuardianMode = GuardianMode.GREETING
    active_capsule_id: int | None = None

    def await_id(self) -> None:
        self.mode = GuardianMode.AWAITING_ID
        self.active_capsule_id = None

    def await_password(self, capsule_id: int) -> None:
        self.mode = GuardianMode.AWAITING_PASSWORD
        self.active_capsule_id = int(capsule_id)

    def reset(self) -> None:
        self.mode = GuardianMode.GREETING
        self.active_capsule_id = None

    def asdict(self) -> dict[str, Any]:
        return {"mode": self.mode.value, "active_capsule_id": self.active_capsule_id}


@dataclass(frozen=True)
class Message:
    """A single transcript entry."""

    role: MessageRole
    text: str
    timestamp: float = field(default_factory=time.time)

    def asdict(self) -> dict[str, Any]:
        return {"role": self.role.value, "text": self.text, "timestamp": self.timestamp}


@dataclass(frozen=True)
class DecryptionResult:
    """Plaintext recovered from a sealed payload; may be empty on a bad key."""

    plaintext: bytes

    @property
    def ok(self) -> bool:
        return bool(self.plaintext)

    def text(self) -> str | None:
        """Return the plaintext as UTF-8, or ``None`` when it is not decodable."""

        if not self.plaintext:
            return None
        try:
            return self.plaintext.decode("utf-8")
        except UnicodeDecodeError:
            return None


@dataclass(frozen=True)
class Artifact:
    """A decrypted payload ready to be offered as a download."""

    filename: str
    data: bytes
    mime_type: str
    path: str | None = None


__all__ = [
    "Artifact",
    "Capsule",
    "CapsuleView",
    "ConversationState",
    "DecryptionResult",
    "GuardianMode",
    "Message",
    "MessageRole",
    "RevertKind",
]
