"""Fetch sealed payloads, open them, and hand them over as downloads."""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
from pathlib import Path
from typing import Any
from urllib.parse import unquote_to_bytes

from app_settings import DEFAULT_ARTIFACT_PREFIX
from capsule_seal import decrypt_payload
from models import Artifact, Capsule, DecryptionResult
from services.errors import DecryptionFailure


logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "text/plain"


def retrieve_payload(content_id: str, storage: Any) -> bytes:
    """Fetch the ciphertext stored under ``content_id``."""

    payload = storage.fetch(content_id)
    logger.debug("Fetched %d bytes for %s", len(payload), content_id)
    return payload


def open_payload(ciphertext: bytes | str, password: str, *, capsule_id: int | None = None) -> str:
    """Decrypt ``ciphertext`` and return the plaintext as text.

    Empty or undecodable output means the password opened the ledger check
    but not this payload.
    """

    result = DecryptionResult(decrypt_payload(ciphertext, password))
    text = result.text()
    if not text or not text.strip():
        logger.warning("Decryption of capsule %s produced no usable output", capsule_id)
        raise DecryptionFailure(capsule_id)
    return text


def artifact_name(capsule_id: int, *, prefix: str = DEFAULT_ARTIFACT_PREFIX) -> str:
    return f"{prefix}{capsule_id}_unlocked"


def _parse_data_url(text: str) -> tuple[bytes, str] | None:
    if not text.startswith("data:") or "," not in text:
        return None
    header, body = text[len("data:"):].split(",", 1)
    params = [part.strip() for part in header.split(";")]
    mime_type = params[0] or DEFAULT_MIME_TYPE
    if "base64" in params[1:]:
        data = base64.b64decode("".join(body.split()), validate=True)
    else:
        data = unquote_to_bytes(body)
    return data, mime_type


def build_artifact(plaintext: str, capsule_id: int, *, prefix: str = DEFAULT_ARTIFACT_PREFIX) -> Artifact:
    """Turn decrypted text into a named download.

    Data URLs are decoded to their bytes and named with the extension of
    their MIME type; other text is delivered as UTF-8.
    """

    name = artifact_name(capsule_id, prefix=prefix)
    try:
        parsed = _parse_data_url(plaintext.strip())
    except (binascii.Error, ValueError) as exc:
        logger.warning("Capsule %s payload is a malformed data URL: %s", capsule_id, exc)
        raise DecryptionFailure(capsule_id) from exc
    if parsed is None:
        return Artifact(filename=name, data=plaintext.encode("utf-8"), mime_type=DEFAULT_MIME_TYPE)
    data, mime_type = parsed
    extension = mimetypes.guess_extension(mime_type) or ""
    return Artifact(filename=f"{name}{extension}", data=data, mime_type=mime_type)


def deliver_artifact(artifact: Artifact, directory: str | Path | None) -> Artifact:
    """Write ``artifact`` into ``directory`` when one is configured."""

    if not directory:
        return artifact
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / artifact.filename
    target.write_bytes(artifact.data)
    logger.info("Artifact written to %s", target)
    return Artifact(
        filename=artifact.filename,
        data=artifact.data,
        mime_type=artifact.mime_type,
        path=str(target),
    )


def recover_payload(
    capsule: Capsule,
    password: str,
    storage: Any,
    *,
    prefix: str = DEFAULT_ARTIFACT_PREFIX,
    download_dir: str | Path | None = None,
) -> Artifact:
    """Fetch, decrypt, and deliver the payload of an unlocked capsule."""

    ciphertext = retrieve_payload(capsule.content_id, storage)
    plaintext = open_payload(ciphertext, password, capsule_id=capsule.capsule_id)
    artifact = build_artifact(plaintext, capsule.capsule_id, prefix=prefix)
    return deliver_artifact(artifact, download_dir)


__all__ = [
    "artifact_name",
    "build_artifact",
    "deliver_artifact",
    "open_payload",
    "recover_payload",
    "retrieve_payload",
]
