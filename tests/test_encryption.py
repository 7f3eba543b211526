"""Tests for credential encryption."""

import pytest

from skillhub.errors import DecryptionFailedError
from skillhub.services.encryption import CredentialCipher


def test_round_trip(cipher):
    credentials = {"url": "https://acme.atlassian.net", "api_token": "abc123"}

    token = cipher.encrypt_credentials(credentials)

    assert "abc123" not in token
    assert cipher.decrypt_credentials(token) == credentials


def test_tokens_are_randomised(cipher):
    assert cipher.encrypt("secret") != cipher.encrypt("secret")


def test_tampered_token_is_rejected(cipher):
    token = cipher.encrypt_credentials({"token": "abc123"})
    tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")

    with pytest.raises(DecryptionFailedError) as exc_info:
        cipher.decrypt_credentials(tampered)

    assert exc_info.value.error_code == "DECRYPTION_FAILED"
    assert tampered not in exc_info.value.message


def test_other_key_cannot_decrypt(cipher):
    token = cipher.encrypt("secret")

    with pytest.raises(DecryptionFailedError):
        CredentialCipher("another-key").decrypt(token)


def test_garbage_is_rejected(cipher):
    with pytest.raises(DecryptionFailedError):
        cipher.decrypt("not a fernet token")


def test_non_object_payload_is_rejected(cipher):
    with pytest.raises(DecryptionFailedError):
        cipher.decrypt_credentials(cipher.encrypt("[1, 2, 3]"))
    with pytest.raises(DecryptionFailedError):
        cipher.decrypt_credentials(cipher.encrypt("plain text"))


def test_from_settings_matches_explicit_key(settings, cipher):
    token = CredentialCipher.from_settings(settings).encrypt("secret")

    assert cipher.decrypt(token) == "secret"
