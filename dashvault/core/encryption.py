"""
Authenticated encryption for connection credentials stored at rest.

Uses AES-256-GCM with a 32-byte key supplied as 64 hex characters via
ENCRYPTION_KEY. Each value is stored as an envelope of three base64 segments:

    <nonce>:<auth tag>:<ciphertext>

IMPORTANT: The same key must be used to encrypt and decrypt. If the key is
rotated or lost, every stored connection must be re-entered; decryption with
a different key fails authentication instead of returning garbage.
"""

import base64
import binascii
import json
import os
from functools import lru_cache
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError

from dashvault.config import settings
from dashvault.core.logging import get_logger
from dashvault.models.schemas import ConnectionCredentials

logger = get_logger(__name__)

KEY_HEX_LENGTH = 64
NONCE_LENGTH = 12
TAG_LENGTH = 16
ENVELOPE_SEPARATOR = ":"


class EncryptionConfigError(RuntimeError):
    """ENCRYPTION_KEY is missing or is not a 64-character hex string."""


class DecryptionError(ValueError):
    """The envelope could not be authenticated (tampered or wrong key)."""


class EnvelopeFormatError(DecryptionError):
    """The stored value is not a nonce:tag:ciphertext envelope."""


class CredentialParseError(ValueError):
    """Decrypted plaintext is not valid JSON or not valid credentials."""


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(segment: str, name: str) -> bytes:
    try:
        return base64.b64decode(segment, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EnvelopeFormatError(f"Envelope {name} segment is not valid base64") from e


class CredentialEnvelope:
    """
    AES-256-GCM envelope bound to a single key.

    Construct one per key and pass it to the components that need it; the
    module-level helpers below build one from settings on demand.
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_HEX_LENGTH // 2:
            raise EncryptionConfigError(
                f"Encryption key must be {KEY_HEX_LENGTH // 2} bytes, got {len(key)}"
            )
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_hex(cls, key_hex: str | None) -> "CredentialEnvelope":
        """
        Build an envelope from a hex-encoded key.

        Raises:
            EncryptionConfigError: If the key is absent or not 64 hex chars.
        """
        if not key_hex or len(key_hex) != KEY_HEX_LENGTH:
            raise EncryptionConfigError(
                "ENCRYPTION_KEY must be a 64-character hex string (32 bytes)"
            )
        try:
            key = bytes.fromhex(key_hex)
        except ValueError as e:
            raise EncryptionConfigError(
                "ENCRYPTION_KEY must be a 64-character hex string (32 bytes)"
            ) from e
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a plaintext string.

        Args:
            plaintext: The secret to encrypt (may be empty)

        Returns:
            Envelope string "nonce:tag:ciphertext", each segment base64
        """
        nonce = os.urandom(NONCE_LENGTH)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        # cryptography appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return ENVELOPE_SEPARATOR.join([_b64(nonce), _b64(tag), _b64(ciphertext)])

    def decrypt(self, envelope: str) -> str:
        """
        Decrypt an envelope produced by encrypt().

        Raises:
            EnvelopeFormatError: If the envelope is structurally malformed.
            DecryptionError: If authentication fails (tampered data or wrong key).
        """
        parts = envelope.split(ENVELOPE_SEPARATOR) if envelope else []
        if len(parts) != 3:
            raise EnvelopeFormatError(
                f"Expected 3 envelope segments, got {len(parts)}"
            )

        nonce = _unb64(parts[0], "nonce")
        tag = _unb64(parts[1], "tag")
        ciphertext = _unb64(parts[2], "ciphertext")

        if len(nonce) != NONCE_LENGTH:
            raise EnvelopeFormatError(f"Nonce must be {NONCE_LENGTH} bytes")
        if len(tag) != TAG_LENGTH:
            raise EnvelopeFormatError(f"Auth tag must be {TAG_LENGTH} bytes")

        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            logger.error("Failed to decrypt secret: authentication failed (key may have changed)")
            raise DecryptionError("Decryption failed") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted value is not valid UTF-8") from e

    def encrypt_json(self, data: Any) -> str:
        """Encrypt a JSON-serializable value."""
        return self.encrypt(json.dumps(data, separators=(",", ":"), ensure_ascii=False))

    def decrypt_json(self, envelope: str) -> Any:
        """
        Decrypt and parse a JSON value.

        Raises:
            DecryptionError: If authentication fails.
            CredentialParseError: If the plaintext is not valid JSON.
        """
        plaintext = self.decrypt(envelope)
        try:
            return json.loads(plaintext)
        except json.JSONDecodeError as e:
            logger.warning("Decrypted secret is not valid JSON")
            raise CredentialParseError("Decrypted value is not valid JSON") from e

    def encrypt_credentials(self, credentials: ConnectionCredentials) -> str:
        """Encrypt connection credentials as a JSON envelope."""
        return self.encrypt_json(credentials.model_dump(exclude_none=True))

    def decrypt_credentials(self, envelope: str) -> ConnectionCredentials:
        """
        Decrypt a credential envelope into ConnectionCredentials.

        Raises:
            DecryptionError: If authentication fails.
            CredentialParseError: If the JSON does not describe credentials.
        """
        data = self.decrypt_json(envelope)
        try:
            return ConnectionCredentials.model_validate(data)
        except ValidationError as e:
            raise CredentialParseError(
                f"Decrypted value is not a credential object ({e.error_count()} errors)"
            ) from e


@lru_cache(maxsize=4)
def _envelope_for_key(key_hex: str) -> CredentialEnvelope:
    return CredentialEnvelope.from_hex(key_hex)


def get_envelope() -> CredentialEnvelope:
    """
    Get the envelope for the currently configured ENCRYPTION_KEY.

    The key is read on every call so configuration changes take effect
    without a restart; envelopes are cached per key.
    """
    key_hex = settings.encryption_key
    if not key_hex:
        raise EncryptionConfigError("ENCRYPTION_KEY is not set")
    return _envelope_for_key(key_hex)


def encrypt(plaintext: str) -> str:
    return get_envelope().encrypt(plaintext)


def decrypt(envelope: str) -> str:
    return get_envelope().decrypt(envelope)


def encrypt_json(data: Any) -> str:
    return get_envelope().encrypt_json(data)


def decrypt_json(envelope: str) -> Any:
    return get_envelope().decrypt_json(envelope)


def encrypt_credentials(credentials: ConnectionCredentials) -> str:
    return get_envelope().encrypt_credentials(credentials)


def decrypt_credentials(envelope: str) -> ConnectionCredentials:
    return get_envelope().decrypt_credentials(envelope)
