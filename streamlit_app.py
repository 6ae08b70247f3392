"""Streamlit entry point for the capsule guardian.

Run with ``streamlit run streamlit_app.py``. Each browser session keeps its
own :class:`guardian.GuardianSession` in ``st.session_state``.
"""

from __future__ import annotations

import logging

import streamlit as st

from app_settings import load_settings
from guardian import GuardianSession
from tabs import chat as chat_tab

_SESSION_KEY = "__guardian_session__"
_ARTIFACT_KEY = "__guardian_artifact__"


def _get_session() -> GuardianSession:
    session = st.session_state.get(_SESSION_KEY)
    if not isinstance(session, GuardianSession):
        session = GuardianSession.from_settings(load_settings())
        session.start()
        st.session_state[_SESSION_KEY] = session
    return session


def _close_session() -> None:
    session = st.session_state.get(_SESSION_KEY)
    if isinstance(session, GuardianSession):
        # The next submission greets again.
        session.reset()
        session.farewell()
    st.session_state.pop(_ARTIFACT_KEY, None)


def main() -> None:
    """Render the guardian chat."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="The Guardian", page_icon="🛡️")
    st.title("The Guardian")
    st.caption("Watching the vaults")
    if st.sidebar.button("Close the vault door"):
        _close_session()

    session = _get_session()
    text = st.chat_input(chat_tab.input_placeholder(session.mode), disabled=session.processing)
    if text:
        result = session.submit(text)
        if result is not None and result.artifact is not None:
            st.session_state[_ARTIFACT_KEY] = result.artifact

    chat_tab.render_tab(session.messages, st.session_state.get(_ARTIFACT_KEY))


if __name__ == "__main__":  # pragma: no cover
    main()
