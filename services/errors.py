"""Failure classes raised by the capsule protocol components."""

from __future__ import annotations

from models import Capsule, RevertKind


class GuardianError(Exception):
    """Base class for every classified failure of a guardian turn."""


class WalletNotConnected(GuardianError):
    def __init__(self, message: str = "No ledger connection is configured.") -> None:
        super().__init__(message)


class InvalidInput(GuardianError):
    def __init__(self, text: str) -> None:
        super().__init__("No capsule id could be read from the input.")
        self.text = text


class CapsuleNotFound(GuardianError):
    def __init__(self, capsule_id: int, total: int) -> None:
        super().__init__(f"Capsule {capsule_id} does not exist ({total} capsules recorded).")
        self.capsule_id = capsule_id
        self.total = total

    @property
    def max_id(self) -> int | None:
        return self.total - 1 if self.total > 0 else None


class AlreadyUnlocked(GuardianError):
    def __init__(self, capsule: Capsule) -> None:
        super().__init__(f"Capsule {capsule.capsule_id} has already been unlocked.")
        self.capsule = capsule


class TimeLocked(GuardianError):
    def __init__(self, capsule: Capsule, remaining: int, remaining_label: str) -> None:
        super().__init__(f"Capsule {capsule.capsule_id} is time-locked for {remaining_label}.")
        self.capsule = capsule
        self.remaining = remaining
        self.remaining_label = remaining_label


class ContractRevert(GuardianError):
    """The unlock transaction was rejected by the contract."""

    def __init__(self, kind: RevertKind, reason: str) -> None:
        super().__init__(reason or kind.value)
        self.kind = kind
        self.reason = reason


class StorageFetchFailure(GuardianError):
    def __init__(self, content_id: str, status: int | None = None, detail: str | None = None) -> None:
        message = "Failed to retrieve payload from the decentralized archive."
        if status is not None:
            message = f"{message} (HTTP {status})"
        elif detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.content_id = content_id
        self.status = status


class DecryptionFailure(GuardianError):
    """Decryption produced no usable output after a successful on-chain unlock."""

    def __init__(self, capsule_id: int | None = None) -> None:
        super().__init__("Decryption produced no output. The password may be subtly wrong.")
        self.capsule_id = capsule_id


class UnknownError(GuardianError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail or "Unknown error")
        self.detail = detail


class TurnInProgress(GuardianError):
    def __init__(self) -> None:
        super().__init__("A turn is already being processed.")


__all__ = [
    "AlreadyUnlocked",
    "CapsuleNotFound",
    "ContractRevert",
    "DecryptionFailure",
    "GuardianError",
    "InvalidInput",
    "StorageFetchFailure",
    "TimeLocked",
    "TurnInProgress",
    "UnknownError",
    "WalletNotConnected",
]
