"""Guardian chat tab renderer."""

from __future__ import annotations

from typing import Sequence

import streamlit as st

from models import Artifact, GuardianMode, Message, MessageRole

PENDING_TEXT = "…"
INPUT_PLACEHOLDERS = {
    GuardianMode.AWAITING_PASSWORD: "Enter the decryption password…",
}
DEFAULT_PLACEHOLDER = "Speak to the Guardian…"


def transcript_entries(messages: Sequence[Message] | None) -> list[tuple[str, str]]:
    """Return ``(chat role, text)`` pairs for rendering."""

    entries: list[tuple[str, str]] = []
    for message in messages or ():
        if message.role is MessageRole.USER:
            entries.append(("user", message.text))
        elif message.role is MessageRole.THINKING:
            entries.append(("assistant", PENDING_TEXT))
        else:
            entries.append(("assistant", message.text))
    return entries


def input_placeholder(mode: GuardianMode) -> str:
    return INPUT_PLACEHOLDERS.get(mode, DEFAULT_PLACEHOLDER)


def render_tab(messages: Sequence[Message] | None, artifact: Artifact | None = None, *, st_module=st) -> None:
    """Render the guardian transcript and the latest delivered artifact."""

    for role, text in transcript_entries(messages):
        with st_module.chat_message(role):
            st_module.markdown(text)
    if artifact is not None:
        st_module.download_button(
            "Download artifact",
            data=artifact.data,
            file_name=artifact.filename,
            mime=artifact.mime_type,
        )
        if artifact.path:
            st_module.caption(f"Saved to {artifact.path}")
