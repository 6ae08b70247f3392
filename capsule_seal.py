"""Password sealing for capsule payloads.

Payloads use the OpenSSL "Salted__" passphrase format (AES-256-CBC, PKCS7
padding, key and IV derived with EVP_BytesToKey over MD5), base64 encoded.
This is the format browser sealing tools produce for passphrase AES.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes


SALT_HEADER = b"Salted__"
SALT_SIZE = 8
KEY_SIZE = 32
IV_SIZE = 16


def _evp_bytes_to_key(password: bytes, salt: bytes, *, key_size: int = KEY_SIZE, iv_size: int = IV_SIZE) -> tuple[bytes, bytes]:
    derived = b""
    block = b""
    while len(derived) < key_size + iv_size:
        block = hashlib.md5(block + password + salt).digest()
        derived += block
    return derived[:key_size], derived[key_size:key_size + iv_size]


def encrypt_payload(plaintext: bytes | str, password: str, *, salt: bytes | None = None) -> str:
    """Seal ``plaintext`` with ``password`` and return the base64 envelope."""

    data = plaintext.encode("utf-8") if isinstance(plaintext, str) else plaintext
    salt = salt if salt is not None else os.urandom(SALT_SIZE)
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes")
    key, iv = _evp_bytes_to_key(password.encode("utf-8"), salt)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(data) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(SALT_HEADER + salt + ciphertext).decode("ascii")


def decrypt_payload(envelope: bytes | str, password: str) -> bytes:
    """Open a sealed envelope; returns ``b""`` when the key does not fit.

    A wrong password almost always breaks the padding and yields empty
    output. Rarely it yields garbage, so callers still validate the result.
    """

    raw_text = envelope.decode("ascii", errors="ignore") if isinstance(envelope, bytes) else envelope
    try:
        raw = base64.b64decode("".join(raw_text.split()), validate=True)
    except (binascii.Error, ValueError):
        return b""
    if not raw.startswith(SALT_HEADER) or len(raw) <= len(SALT_HEADER) + SALT_SIZE:
        return b""
    salt = raw[len(SALT_HEADER):len(SALT_HEADER) + SALT_SIZE]
    ciphertext = raw[len(SALT_HEADER) + SALT_SIZE:]
    if len(ciphertext) % (algorithms.AES.block_size // 8):
        return b""
    key, iv = _evp_bytes_to_key(password.encode("utf-8"), salt)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        return b""


__all__ = ["decrypt_payload", "encrypt_payload"]
