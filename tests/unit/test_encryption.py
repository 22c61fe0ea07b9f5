"""Unit tests for message encryption and referee tokens."""

import base64
import re

import pytest

from app.core.config import MIN_KDF_ITERATIONS
from app.core.encryption import (
    HEADER_LENGTH,
    IV_LENGTH,
    SALT_LENGTH,
    TAG_LENGTH,
    DecryptionError,
    EncryptionConfigurationError,
    MessageEncryptor,
    generate_secure_token,
    hash_token,
)


def _flip_byte(blob: str, index: int) -> str:
    raw = bytearray(base64.b64decode(blob))
    raw[index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


class TestMessageEncryptor:
    """Test cases for MessageEncryptor."""

    @pytest.mark.parametrize(
        "plaintext",
        [
            "Available Tuesday 3pm",
            "Zoë worked with us in Zürich, 5★ référence, 日本語も話せます 👍",
            "",
            "x" * 5000,
        ],
    )
    def test_round_trip(self, encryptor, plaintext):
        assert encryptor.decrypt(encryptor.encrypt(plaintext)) == plaintext

    def test_blob_layout(self, encryptor):
        blob = encryptor.encrypt("hello")
        raw = base64.b64decode(blob)

        assert HEADER_LENGTH == SALT_LENGTH + IV_LENGTH + TAG_LENGTH == 96
        assert len(raw) == HEADER_LENGTH + len("hello".encode("utf-8"))

    def test_same_plaintext_encrypts_differently(self, encryptor):
        first = encryptor.encrypt("same words")
        second = encryptor.encrypt("same words")

        assert first != second
        assert encryptor.decrypt(first) == encryptor.decrypt(second) == "same words"

    @pytest.mark.parametrize(
        "index",
        [
            0,  # salt
            SALT_LENGTH,  # iv
            SALT_LENGTH + IV_LENGTH,  # tag
            HEADER_LENGTH,  # ciphertext
        ],
        ids=["salt", "iv", "tag", "ciphertext"],
    )
    def test_tampering_is_detected(self, encryptor, index):
        blob = encryptor.encrypt("Great, confirmed")

        with pytest.raises(DecryptionError, match="tampered"):
            encryptor.decrypt(_flip_byte(blob, index))

    def test_other_key_cannot_decrypt(self, encryptor):
        blob = encryptor.encrypt("for the right key only")
        other = MessageEncryptor("a-different-master-secret")

        with pytest.raises(DecryptionError):
            other.decrypt(blob)

    def test_truncated_blob_rejected(self, encryptor):
        short = base64.b64encode(b"\x00" * (HEADER_LENGTH - 1)).decode("ascii")

        with pytest.raises(DecryptionError, match="truncated"):
            encryptor.decrypt(short)

    def test_invalid_base64_rejected(self, encryptor):
        with pytest.raises(DecryptionError, match="base64"):
            encryptor.decrypt("not base64 at all!!")

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_missing_master_key(self, key):
        with pytest.raises(EncryptionConfigurationError):
            MessageEncryptor(key)

    def test_too_few_iterations(self):
        with pytest.raises(EncryptionConfigurationError):
            MessageEncryptor("secret", iterations=MIN_KDF_ITERATIONS - 1)


class TestTokens:
    """Test cases for referee access tokens."""

    def test_token_is_256_bit_hex(self):
        token = generate_secure_token()

        assert re.fullmatch(r"[0-9a-f]{64}", token)

    def test_tokens_are_unique(self):
        assert len({generate_secure_token() for _ in range(50)}) == 50

    def test_hash_is_deterministic_sha256(self):
        token = generate_secure_token()

        assert hash_token(token) == hash_token(token)
        assert re.fullmatch(r"[0-9a-f]{64}", hash_token(token))
        assert hash_token(token) != token

    def test_known_digest(self):
        assert hash_token("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )
