"""Optional LLM narration of guardian scenarios."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from openai import OpenAI

from app_settings import AppSettings
from services.prompt_service import GUARDIAN_SYSTEM_PROMPT, NarrationEvent, build_capsule_context


logger = logging.getLogger(__name__)

HISTORY_LIMIT = 12


class GuardianNarrator:
    """Phrase guardian replies through an OpenAI-compatible chat endpoint.

    :meth:`narrate` returns ``None`` whenever no reply can be produced, and
    the session keeps its template text in that case.
    """

    def __init__(
        self,
        client: Any,
        *,
        model: str,
        temperature: float = 0.5,
        max_tokens: int = 200,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "GuardianNarrator | None":
        if not settings.narration_api_key:
            return None
        client = OpenAI(api_key=settings.narration_api_key, base_url=settings.narration_base_url)
        return cls(client, model=settings.narration_model)

    def narrate(self, event: NarrationEvent, history: Sequence[dict[str, str]] = ()) -> str | None:
        messages = [{"role": "system", "content": GUARDIAN_SYSTEM_PROMPT}]
        messages.extend(dict(entry) for entry in list(history)[-HISTORY_LIMIT:])
        messages.append(build_capsule_context(event))
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                top_p=0.9,
            )
        except Exception as exc:
            logger.warning("Narration request failed for %s: %s", event.scenario.value, exc)
            return None
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError):
            return None
        text = (content or "").strip()
        return text or None


__all__ = ["GuardianNarrator"]
