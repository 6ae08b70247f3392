"""Tests for narration context and the narrator wrapper."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

from services.narration_service import GuardianNarrator
from services.prompt_service import GUARDIAN_SYSTEM_PROMPT, NarrationEvent, Scenario, build_capsule_context


def test_every_scenario_builds_a_system_context() -> None:
    for scenario in Scenario:
        message = build_capsule_context(NarrationEvent(scenario, {"id": 3}))
        assert message["role"] == "system"
        assert message["content"].startswith("CONTEXT:")


def test_time_locked_context_relays_exact_facts() -> None:
    facts = {
        "id": 4,
        "creator": "0x1234…5678",
        "created_at": "Jan 01, 2024, 10:00 AM UTC",
        "unlock_time": "Jan 05, 2024, 10:00 AM UTC",
        "time_remaining": "1 day, 1 hour",
    }
    content = build_capsule_context(NarrationEvent(Scenario.CAPSULE_FOUND_TIME_LOCKED, facts))["content"]
    for value in facts.values():
        assert str(value) in content


def test_not_found_context_mentions_highest_id() -> None:
    content = build_capsule_context(NarrationEvent(Scenario.CAPSULE_NOT_FOUND, {"id": 12, "max_id": 9}))["content"]
    assert "Capsule #12" in content
    assert "highest vault ID currently is 9" in content

    empty = build_capsule_context(NarrationEvent(Scenario.CAPSULE_NOT_FOUND, {"id": 0, "max_id": None}))["content"]
    assert "No vaults have been sealed yet" in empty


class _Completions:
    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions: _Completions) -> Any:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_narrator_sends_system_prompt_history_and_context() -> None:
    completions = _Completions(reply="  Capsule 5 is ready. Please share the password.  ")
    narrator = GuardianNarrator(_client(completions), model="test-model")
    event = NarrationEvent(Scenario.CAPSULE_FOUND_READY, {"id": 5})

    text = narrator.narrate(event, [{"role": "user", "content": "capsule 5"}])

    assert text == "Capsule 5 is ready. Please share the password."
    messages = completions.calls[0]["messages"]
    assert messages[0] == {"role": "system", "content": GUARDIAN_SYSTEM_PROMPT}
    assert messages[1] == {"role": "user", "content": "capsule 5"}
    assert messages[-1]["content"].startswith("CONTEXT: The user asked about Capsule #5.")
    assert completions.calls[0]["model"] == "test-model"


def test_narrator_returns_none_on_failure() -> None:
    narrator = GuardianNarrator(_client(_Completions(error=RuntimeError("rate limited"))), model="m")
    assert narrator.narrate(NarrationEvent(Scenario.GREETING)) is None

    silent = GuardianNarrator(_client(_Completions(reply="   ")), model="m")
    assert silent.narrate(NarrationEvent(Scenario.GREETING)) is None


def test_unlock_error_after_claim_discourages_retry() -> None:
    claimed = NarrationEvent(Scenario.UNLOCK_ERROR, {"id": 5, "error": "gateway timeout", "claimed": True})
    content = build_capsule_context(claimed)["content"]
    assert "permanently marked UNLOCKED" in content
    assert "Do NOT suggest trying again" in content

    retryable = NarrationEvent(Scenario.UNLOCK_ERROR, {"id": 5, "error": "node unreachable"})
    assert "They can try again" in build_capsule_context(retryable)["content"]
