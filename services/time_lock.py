"""Time-lock evaluation against the ledger clock."""

from __future__ import annotations

from dataclasses import dataclass

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'}"


def split_remaining(seconds: int) -> tuple[int, int, int]:
    """Return ``(days, hours, minutes)`` for a positive wait in seconds."""

    seconds = max(0, int(seconds))
    days = seconds // SECONDS_PER_DAY
    hours = (seconds % SECONDS_PER_DAY) // SECONDS_PER_HOUR
    minutes = (seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE
    return days, hours, minutes


def format_remaining(seconds: int) -> str:
    """Render a wait as ``"1 day, 1 hour"`` style text.

    Minutes are only shown when the wait is shorter than a day; a wait with
    no whole minutes left renders as ``"moments"``.
    """

    days, hours, minutes = split_remaining(seconds)
    parts: list[str] = []
    if days > 0:
        parts.append(_plural(days, "day"))
    if hours > 0:
        parts.append(_plural(hours, "hour"))
    if minutes > 0 and days == 0:
        parts.append(_plural(minutes, "minute"))
    return ", ".join(parts) if parts else "moments"


@dataclass(frozen=True)
class TimeLockStatus:
    unlock_timestamp: int
    chain_time: int

    @property
    def remaining(self) -> int:
        return self.unlock_timestamp - self.chain_time

    @property
    def dissolved(self) -> bool:
        return self.remaining <= 0

    @property
    def label(self) -> str:
        return format_remaining(self.remaining)


def evaluate_time_lock(unlock_timestamp: int, chain_time: int) -> TimeLockStatus:
    """Compare a capsule's unlock time with the latest block timestamp.

    ``chain_time`` must come from the ledger; the local clock can be moved by
    the claimant.
    """

    return TimeLockStatus(unlock_timestamp=int(unlock_timestamp), chain_time=int(chain_time))


__all__ = [
    "TimeLockStatus",
    "evaluate_time_lock",
    "format_remaining",
    "split_remaining",
]
