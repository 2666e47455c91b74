import pytest

from backend.app.core.encryption import decrypt, encrypt
from backend.app.core.exceptions import EncryptionError


def test_encrypt_decrypt_roundtrip():
    secret = "twenty-api-key-123"
    token = encrypt(secret)
    assert token != secret
    assert decrypt(token) == secret


def test_encrypt_is_not_deterministic():
    assert encrypt("same") != encrypt("same")


def test_missing_key_raises(monkeypatch):
    monkeypatch.delenv("ENCRYPTION_KEY", raising=False)
    with pytest.raises(EncryptionError):
        encrypt("value")


def test_key_is_read_at_call_time(monkeypatch):
    token = encrypt("value")
    monkeypatch.setenv("ENCRYPTION_KEY", "a-different-secret")
    with pytest.raises(EncryptionError):
        decrypt(token)


def test_garbage_ciphertext_raises():
    with pytest.raises(EncryptionError, match="Failed to decrypt data"):
        decrypt("not-a-fernet-token")


def test_empty_plaintext_is_rejected_on_decrypt():
    token = encrypt("")
    with pytest.raises(EncryptionError):
        decrypt(token)
