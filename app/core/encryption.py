"""Message encryption and referee access tokens.

Chat messages are stored as a single base64 blob::

    salt (64 bytes) | iv (16 bytes) | GCM tag (16 bytes) | ciphertext

Every message gets a fresh salt and IV, so the AES-256 key is re-derived per
message from the master secret with PBKDF2-HMAC-SHA512. Identical plaintexts
therefore never produce identical blobs.

Referee tokens are the opposite case: ``hash_token`` is deterministic so a
presented token can be looked up by its digest. The token itself is the
secret; the digest is only an index.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import secrets
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from app.core.config import MIN_KDF_ITERATIONS, settings

SALT_LENGTH = 64
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
TOKEN_BYTES = 32
HEADER_LENGTH = SALT_LENGTH + IV_LENGTH + TAG_LENGTH


class EncryptionConfigurationError(RuntimeError):
    """Raised when the master encryption secret is not configured."""


class DecryptionError(Exception):
    """Stored ciphertext is malformed, tampered with, or was sealed under another key."""


class MessageEncryptor:
    """AES-256-GCM encryption of chat message bodies."""

    def __init__(self, master_key: str | None, iterations: int = MIN_KDF_ITERATIONS):
        if not master_key or not master_key.strip():
            raise EncryptionConfigurationError("ENCRYPTION_KEY environment variable is not set")
        if iterations < MIN_KDF_ITERATIONS:
            raise EncryptionConfigurationError(
                f"Key derivation needs at least {MIN_KDF_ITERATIONS} iterations"
            )
        self._master_key = master_key.encode("utf-8")
        self.iterations = iterations

    def _derive_key(self, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA512(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=self.iterations,
        )
        return kdf.derive(self._master_key)

    def encrypt(self, text: str) -> str:
        """Encrypt ``text`` and return the base64 blob."""
        salt = secrets.token_bytes(SALT_LENGTH)
        iv = secrets.token_bytes(IV_LENGTH)
        key = self._derive_key(salt)

        # AESGCM appends the tag; the stored layout keeps it ahead of the ciphertext
        sealed = AESGCM(key).encrypt(iv, text.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

        return base64.b64encode(salt + iv + tag + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> str:
        """Verify and decrypt a blob produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If the blob is not valid base64, is too short, fails
                authentication, or does not decode to UTF-8 text.
        """
        try:
            combined = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise DecryptionError("Ciphertext is not valid base64") from e

        if len(combined) < HEADER_LENGTH:
            raise DecryptionError("Ciphertext is truncated")

        salt = combined[:SALT_LENGTH]
        iv = combined[SALT_LENGTH : SALT_LENGTH + IV_LENGTH]
        tag = combined[SALT_LENGTH + IV_LENGTH : HEADER_LENGTH]
        ciphertext = combined[HEADER_LENGTH:]

        key = self._derive_key(salt)
        try:
            plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise DecryptionError("Ciphertext tampered or key mismatch") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted payload is not valid UTF-8") from e


def generate_secure_token() -> str:
    """Generate a 256-bit random referee access token, hex encoded."""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Deterministic SHA-256 digest of a referee token, used as a lookup key."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@lru_cache(maxsize=1)
def get_message_encryptor() -> MessageEncryptor:
    """Process-wide encryptor built from settings."""
    return MessageEncryptor(settings.encryption_key, settings.encryption_kdf_iterations)


__all__ = [
    "DecryptionError",
    "EncryptionConfigurationError",
    "MessageEncryptor",
    "generate_secure_token",
    "get_message_encryptor",
    "hash_token",
]
