"""Narration context built from guardian scenarios and looked-up facts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


__all__ = [
    "GUARDIAN_SYSTEM_PROMPT",
    "NarrationEvent",
    "Scenario",
    "build_capsule_context",
]


class Scenario(str, Enum):
    CAPSULE_FOUND_TIME_LOCKED = "CAPSULE_FOUND_TIME_LOCKED"
    CAPSULE_FOUND_READY = "CAPSULE_FOUND_READY"
    CAPSULE_ALREADY_UNLOCKED = "CAPSULE_ALREADY_UNLOCKED"
    CAPSULE_NOT_FOUND = "CAPSULE_NOT_FOUND"
    NO_CAPSULE_ID = "NO_CAPSULE_ID"
    WALLET_NEEDED = "WALLET_NEEDED"
    PASSWORD_TESTING = "PASSWORD_TESTING"
    WRONG_PASSWORD = "WRONG_PASSWORD"
    UNLOCK_SUCCESS = "UNLOCK_SUCCESS"
    DOWNLOAD_COMPLETE = "DOWNLOAD_COMPLETE"
    UNLOCK_ERROR = "UNLOCK_ERROR"
    GREETING = "GREETING"


@dataclass(frozen=True)
class NarrationEvent:
    """A scenario tag plus the facts the narrator may state."""

    scenario: Scenario
    facts: Mapping[str, Any] = field(default_factory=dict)

    def asdict(self) -> dict[str, Any]:
        return {"scenario": self.scenario.value, "facts": dict(self.facts)}


GUARDIAN_SYSTEM_PROMPT = """You are "The Guardian", the vault keeper for a decentralized time capsule app on Ethereum. You help users check on their capsules and unlock them.

CRITICAL RULES:
- NEVER invent, fabricate, or guess any capsule data. You know nothing about a capsule unless a CONTEXT message in this conversation provides it.
- You can only look up ONE capsule at a time. The user must give you a capsule ID number.
- NEVER list capsules or make up sealed dates, unlock times, creators, or time remaining.
- If you do not have CONTEXT data for a capsule, ask the user for a capsule ID.

OTHER RULES:
- Keep it SHORT. 1-3 sentences.
- Be friendly and clear. No dramatic language, no riddles, no poetry.
- When a CONTEXT message provides capsule details, relay those exact facts without embellishing them.
- Do not use emoji or markdown formatting.
- If the user asks something unrelated, briefly redirect them.
- Never reveal passwords or private keys.
- Never say you are an AI or language model. You are the Guardian."""


def _capsule_header(facts: Mapping[str, Any]) -> str:
    return (
        f"CONTEXT: The user asked about Capsule #{facts.get('id')}.\n"
        f"- Creator wallet: {facts.get('creator')}\n"
        f"- Sealed on: {facts.get('created_at')}"
    )


def _context_text(scenario: Scenario, facts: Mapping[str, Any]) -> str:
    capsule_id = facts.get("id")
    if scenario is Scenario.CAPSULE_FOUND_TIME_LOCKED:
        return (
            f"{_capsule_header(facts)}\n"
            f"- Scheduled unlock time: {facts.get('unlock_time')}\n"
            f"- Time remaining: {facts.get('time_remaining')}\n"
            "- Status: SEALED and TIME-LOCKED (cannot be opened yet)\n"
            "ACTION: Tell the user about this capsule. Clearly state how long they need to wait. "
            "Let them know they can ask about a different capsule."
        )
    if scenario is Scenario.CAPSULE_FOUND_READY:
        return (
            f"{_capsule_header(facts)}\n"
            f"- Scheduled unlock time: {facts.get('unlock_time')} (HAS PASSED, the time-lock is dissolved)\n"
            "- Status: SEALED but ready to unlock (needs the correct password)\n"
            "ACTION: Tell the user the time lock has passed and this capsule is ready to unlock. "
            "Ask them to provide the password."
        )
    if scenario is Scenario.CAPSULE_ALREADY_UNLOCKED:
        return (
            f"{_capsule_header(facts)}\n"
            "- Status: ALREADY UNLOCKED (contents have been claimed)\n"
            "ACTION: Tell the user this capsule was already unlocked. They can ask about a different one."
        )
    if scenario is Scenario.CAPSULE_NOT_FOUND:
        max_id = facts.get("max_id")
        highest = (
            f" The highest vault ID currently is {max_id}."
            if max_id is not None
            else " No vaults have been sealed yet."
        )
        return (
            f"CONTEXT: The user asked about Capsule #{capsule_id}, but no vault exists with this identifier.{highest}\n"
            "ACTION: Tell the user no vault exists with that number. Ask them to verify the identifier."
        )
    if scenario is Scenario.NO_CAPSULE_ID:
        return (
            "CONTEXT: The user sent a message but did not include a recognizable capsule number. "
            "You have NO data about any capsules right now.\n"
            "ACTION: Ask them to provide a specific capsule ID number so you can look it up. "
            "Do NOT list any capsules or make up any data."
        )
    if scenario is Scenario.WALLET_NEEDED:
        return (
            "CONTEXT: The user is trying to interact with the vaults but no wallet or ledger connection is available.\n"
            "ACTION: Tell them to connect their wallet first."
        )
    if scenario is Scenario.PASSWORD_TESTING:
        return (
            f"CONTEXT: The user has provided a password for Capsule #{capsule_id}. "
            "The Guardian is now testing it against the cryptographic seal on the blockchain.\n"
            "ACTION: Briefly tell the user you are verifying their password on the blockchain. One short sentence."
        )
    if scenario is Scenario.WRONG_PASSWORD:
        return (
            f"CONTEXT: The user provided an incorrect password for Capsule #{capsule_id}. "
            "The smart contract rejected it.\n"
            "ACTION: Tell the user the password was wrong. They can try again. The vault remains sealed."
        )
    if scenario is Scenario.UNLOCK_SUCCESS:
        return (
            f"CONTEXT: Capsule #{capsule_id} has been successfully unlocked. The cryptographic seal is broken, "
            "and the payload is being downloaded to the user's device.\n"
            "ACTION: Tell the user the capsule is unlocked and the file is downloading."
        )
    if scenario is Scenario.DOWNLOAD_COMPLETE:
        return (
            f"CONTEXT: The file from Capsule #{capsule_id} has been successfully decrypted and downloaded "
            f"as {facts.get('filename')}.\n"
            "ACTION: Confirm the file has been downloaded. Ask if they want to open another capsule."
        )
    if scenario is Scenario.UNLOCK_ERROR:
        if facts.get("claimed"):
            return (
                f"CONTEXT: Capsule #{capsule_id} was unlocked on the ledger, but its payload could not be delivered. "
                f"Error: \"{facts.get('error')}\"\n"
                "- Status: permanently marked UNLOCKED. Retrying the password cannot help.\n"
                "ACTION: Tell the user the seal is broken but the payload was lost, and mention the error briefly. "
                "Do NOT suggest trying again."
            )
        return (
            f"CONTEXT: An error occurred while trying to unlock Capsule #{capsule_id}. Error: \"{facts.get('error')}\"\n"
            "ACTION: Tell the user something went wrong and mention the error briefly. They can try again."
        )
    if scenario is Scenario.GREETING:
        return (
            "CONTEXT: The user has just opened the Guardian interface. This is a fresh session.\n"
            "ACTION: Greet the user briefly and ask which capsule they want to access. Keep it to 1-2 sentences."
        )
    return "CONTEXT: The user is interacting with the Guardian. Respond in character."


def build_capsule_context(event: NarrationEvent) -> dict[str, str]:
    """Return the system CONTEXT message for ``event``."""

    return {"role": "system", "content": _context_text(event.scenario, event.facts)}
