from __future__ import annotations

import app_settings


def _no_secrets(monkeypatch) -> None:
    monkeypatch.setattr(app_settings, "_safe_secret", lambda key: None)


def test_load_settings_defaults(monkeypatch) -> None:
    _no_secrets(monkeypatch)
    for key in (
        "CAPSULE_RPC_URL",
        "CAPSULE_CONTRACT_ADDRESS",
        "CAPSULE_IPFS_GATEWAY",
        "CAPSULE_ARTIFACT_PREFIX",
        "CAPSULE_PACING_SCALE",
        "CAPSULE_DISABLE_PACING",
        "GROQ_API_KEY",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)

    settings = app_settings.load_settings()

    assert not settings.ledger_configured
    assert settings.ipfs_gateway == app_settings.DEFAULT_IPFS_GATEWAY
    assert settings.artifact_prefix == "Epoch_"
    assert settings.pacing_scale == 1.0
    assert settings.narration_api_key is None


def test_load_settings_reads_environment(monkeypatch) -> None:
    _no_secrets(monkeypatch)
    monkeypatch.setenv("CAPSULE_RPC_URL", "http://127.0.0.1:8545")
    monkeypatch.setenv("CAPSULE_CONTRACT_ADDRESS", "0x5FbDB2315678afecb367f032d93F642f64180aa3")
    monkeypatch.setenv("CAPSULE_IPFS_GATEWAY", "https://ipfs.io/")
    monkeypatch.setenv("CAPSULE_REQUEST_TIMEOUT", "not-a-number")
    monkeypatch.setenv("CAPSULE_DISABLE_PACING", "yes")
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")

    settings = app_settings.load_settings()

    assert settings.ledger_configured
    assert settings.ipfs_gateway == "https://ipfs.io"
    assert settings.request_timeout == 30.0
    assert settings.pacing_scale == 0.0
    assert settings.narration_api_key == "gsk-test"


def test_secrets_take_precedence(monkeypatch) -> None:
    monkeypatch.setattr(
        app_settings,
        "_safe_secret",
        lambda key: {"CAPSULE_ARTIFACT_PREFIX": "Vault_"}.get(key),
    )
    monkeypatch.setenv("CAPSULE_ARTIFACT_PREFIX", "Env_")

    assert app_settings.load_settings().artifact_prefix == "Vault_"
