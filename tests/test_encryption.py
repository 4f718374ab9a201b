"""Tests for the AES-256-GCM credential envelope."""

import base64

import pytest

from dashvault.config import settings
from dashvault.core import encryption
from dashvault.core.encryption import (
    CredentialEnvelope,
    CredentialParseError,
    DecryptionError,
    EncryptionConfigError,
    EnvelopeFormatError,
)
from dashvault.models.schemas import ConnectionCredentials

TEST_KEY_HEX = "00112233445566778899aabbccddeeff" * 2
OTHER_KEY_HEX = "ffeeddccbbaa99887766554433221100" * 2


def _flip_bit(envelope: str, segment: int, byte_index: int = 0, bit: int = 0) -> str:
    parts = envelope.split(":")
    raw = bytearray(base64.b64decode(parts[segment]))
    raw[byte_index] ^= 1 << bit
    parts[segment] = base64.b64encode(bytes(raw)).decode("ascii")
    return ":".join(parts)


class TestKeyConfiguration:
    def test_missing_key(self, monkeypatch):
        monkeypatch.setattr(settings, "encryption_key", "")
        with pytest.raises(EncryptionConfigError):
            encryption.encrypt("secret")

    @pytest.mark.parametrize(
        "key_hex",
        [
            "abc123",
            TEST_KEY_HEX + "00",
            "zz" * 32,
        ],
    )
    def test_malformed_key(self, key_hex):
        with pytest.raises(EncryptionConfigError):
            CredentialEnvelope.from_hex(key_hex)

    def test_raw_key_length_checked(self):
        with pytest.raises(EncryptionConfigError):
            CredentialEnvelope(b"short")

    def test_key_read_at_call_time(self, monkeypatch):
        monkeypatch.setattr(settings, "encryption_key", TEST_KEY_HEX)
        sealed = encryption.encrypt("hello")
        monkeypatch.setattr(settings, "encryption_key", OTHER_KEY_HEX)
        with pytest.raises(DecryptionError):
            encryption.decrypt(sealed)


class TestEnvelope:
    @pytest.mark.parametrize(
        "plaintext",
        ["", "password", "p@ss:word;with=chars", "ünïcødé ✓", "x" * 10_000],
    )
    def test_round_trip(self, envelope, plaintext):
        assert envelope.decrypt(envelope.encrypt(plaintext)) == plaintext

    def test_envelope_format(self, envelope):
        sealed = envelope.encrypt("password")
        nonce, tag, ciphertext = sealed.split(":")
        assert len(base64.b64decode(nonce)) == 12
        assert len(base64.b64decode(tag)) == 16
        assert len(base64.b64decode(ciphertext)) == len("password")

    def test_fresh_nonce_per_call(self, envelope):
        first = envelope.encrypt("same")
        second = envelope.encrypt("same")
        assert first != second
        assert first.split(":")[0] != second.split(":")[0]

    @pytest.mark.parametrize("segment", [1, 2])
    @pytest.mark.parametrize("bit", [0, 7])
    def test_tamper_detected(self, envelope, segment, bit):
        sealed = envelope.encrypt("password")
        with pytest.raises(DecryptionError):
            envelope.decrypt(_flip_bit(sealed, segment, bit=bit))

    def test_tampered_nonce_detected(self, envelope):
        sealed = envelope.encrypt("password")
        with pytest.raises(DecryptionError):
            envelope.decrypt(_flip_bit(sealed, 0, byte_index=5))

    def test_wrong_key(self, envelope):
        sealed = envelope.encrypt("password")
        other = CredentialEnvelope.from_hex(OTHER_KEY_HEX)
        with pytest.raises(DecryptionError):
            other.decrypt(sealed)

    @pytest.mark.parametrize(
        "bad",
        ["", "plaintext", "a:b", "a:b:c:d", "!!!:AAAA:AAAA"],
    )
    def test_malformed_envelope(self, envelope, bad):
        with pytest.raises(EnvelopeFormatError):
            envelope.decrypt(bad)

    def test_wrong_nonce_length(self, envelope):
        nonce, tag, ciphertext = envelope.encrypt("password").split(":")
        short_nonce = base64.b64encode(b"\x00" * 8).decode("ascii")
        with pytest.raises(EnvelopeFormatError):
            envelope.decrypt(":".join([short_nonce, tag, ciphertext]))

    def test_format_error_is_decryption_error(self):
        assert issubclass(EnvelopeFormatError, DecryptionError)
        assert not issubclass(CredentialParseError, DecryptionError)


class TestJson:
    def test_json_round_trip(self, envelope):
        data = {"uri": "bolt://localhost", "nested": [1, 2, {"a": None}]}
        assert envelope.decrypt_json(envelope.encrypt_json(data)) == data

    def test_json_is_compact(self, envelope):
        sealed = envelope.encrypt_json({"a": 1, "b": [1, 2]})
        assert envelope.decrypt(sealed) == '{"a":1,"b":[1,2]}'

    def test_invalid_json(self, envelope):
        sealed = envelope.encrypt("not json {")
        with pytest.raises(CredentialParseError):
            envelope.decrypt_json(sealed)

    def test_credentials_round_trip(self, envelope, credentials):
        sealed = envelope.encrypt_credentials(credentials)
        assert envelope.decrypt_credentials(sealed) == credentials

    def test_credentials_without_database(self, envelope):
        creds = ConnectionCredentials(uri="postgresql://db:5432", username="u", password="p")
        sealed = envelope.encrypt_credentials(creds)
        assert "database" not in envelope.decrypt_json(sealed)
        assert envelope.decrypt_credentials(sealed).database is None

    def test_credentials_schema_mismatch(self, envelope):
        sealed = envelope.encrypt_json({"uri": "bolt://x"})
        with pytest.raises(CredentialParseError):
            envelope.decrypt_credentials(sealed)

    def test_password_not_in_repr(self, credentials):
        assert "s3cret" not in repr(credentials)
        assert "s3cret" not in str(credentials)


class TestModuleHelpers:
    def test_round_trip_with_settings_key(self, encryption_key):
        assert encryption.decrypt(encryption.encrypt("hunter2")) == "hunter2"

    def test_helpers_interoperate_with_envelope(self, encryption_key, envelope, credentials):
        sealed = encryption.encrypt_credentials(credentials)
        assert envelope.decrypt_credentials(sealed) == credentials
        assert encryption.decrypt_json(envelope.encrypt_json([1, 2])) == [1, 2]
