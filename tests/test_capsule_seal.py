import base64

from capsule_seal import SALT_HEADER, decrypt_payload, encrypt_payload


def test_sealed_payload_opens_with_the_same_password() -> None:
    envelope = encrypt_payload("data:text/plain;base64,aGVsbG8=", "correct horse")
    assert base64.b64decode(envelope).startswith(SALT_HEADER)
    assert decrypt_payload(envelope, "correct horse") == b"data:text/plain;base64,aGVsbG8="
    assert decrypt_payload(envelope.encode("ascii"), "correct horse") == b"data:text/plain;base64,aGVsbG8="


def test_wrong_password_does_not_reproduce_plaintext() -> None:
    plaintext = b"the sealed letter"
    envelope = encrypt_payload(plaintext, "right")
    assert decrypt_payload(envelope, "wrong") != plaintext


def test_fixed_salt_is_deterministic() -> None:
    salt = b"12345678"
    assert encrypt_payload(b"abc", "pw", salt=salt) == encrypt_payload(b"abc", "pw", salt=salt)


def test_malformed_envelopes_open_to_nothing() -> None:
    assert decrypt_payload("not base64 at all!", "pw") == b""
    assert decrypt_payload(base64.b64encode(b"no header here").decode(), "pw") == b""
    assert decrypt_payload(base64.b64encode(SALT_HEADER + b"12345678" + b"short").decode(), "pw") == b""
