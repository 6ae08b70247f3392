"""Application configuration helpers for the guardian surfaces."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import streamlit as st


DEFAULT_IPFS_GATEWAY = "https://gateway.pinata.cloud"
DEFAULT_NARRATION_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_NARRATION_MODEL = "llama-3.3-70b-versatile"
DEFAULT_ARTIFACT_PREFIX = "Epoch_"


@dataclass(frozen=True)
class AppSettings:
    """Immutable configuration bundle for the guardian."""

    rpc_url: str
    contract_address: str
    private_key: str | None
    ipfs_gateway: str
    request_timeout: float
    receipt_timeout: float
    download_dir: str | None
    artifact_prefix: str
    pacing_scale: float
    narration_api_key: str | None
    narration_base_url: str
    narration_model: str

    @property
    def ledger_configured(self) -> bool:
        return bool(self.rpc_url and self.contract_address)


def _safe_secret(key: str) -> Any:
    """Return a Streamlit secret when available."""

    try:
        return st.secrets.get(key)
    except Exception:
        return None


def _setting(key: str, default: Any = None) -> Any:
    value = _safe_secret(key)
    if value is None or value == "":
        value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _coerce_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def _coerce_bool(value: Any, default: bool = False) -> bool:
    """Parse truthy/falsey strings and primitives into booleans."""

    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if not text:
        return default
    if text in {"1", "true", "yes", "on", "enabled", "enable"}:
        return True
    if text in {"0", "false", "no", "off", "disabled", "disable"}:
        return False
    return default


def load_settings() -> AppSettings:
    """Collect runtime configuration from secrets and environment."""

    pacing_scale = _coerce_float(_setting("CAPSULE_PACING_SCALE", 1.0), 1.0)
    if _coerce_bool(_setting("CAPSULE_DISABLE_PACING"), default=False):
        pacing_scale = 0.0
    return AppSettings(
        rpc_url=str(_setting("CAPSULE_RPC_URL", "")).strip(),
        contract_address=str(_setting("CAPSULE_CONTRACT_ADDRESS", "")).strip(),
        private_key=_setting("CAPSULE_PRIVATE_KEY"),
        ipfs_gateway=str(_setting("CAPSULE_IPFS_GATEWAY", DEFAULT_IPFS_GATEWAY)).rstrip("/"),
        request_timeout=_coerce_float(_setting("CAPSULE_REQUEST_TIMEOUT", 30), 30.0),
        receipt_timeout=_coerce_float(_setting("CAPSULE_RECEIPT_TIMEOUT", 180), 180.0),
        download_dir=_setting("CAPSULE_DOWNLOAD_DIR"),
        artifact_prefix=str(_setting("CAPSULE_ARTIFACT_PREFIX", DEFAULT_ARTIFACT_PREFIX)),
        pacing_scale=max(0.0, pacing_scale),
        narration_api_key=_setting("GROQ_API_KEY") or _setting("OPENAI_API_KEY"),
        narration_base_url=str(_setting("NARRATION_BASE_URL", DEFAULT_NARRATION_BASE_URL)).rstrip("/"),
        narration_model=str(_setting("NARRATION_MODEL", DEFAULT_NARRATION_MODEL)),
    )


__all__ = [
    "AppSettings",
    "DEFAULT_ARTIFACT_PREFIX",
    "DEFAULT_IPFS_GATEWAY",
    "load_settings",
]
