"""Encryption of credential fields in action metadata."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import quote, unquote

from cryptography.fernet import Fernet, InvalidToken

from agentsync.agents.types import SECRET_AUTH_FIELDS, AuthType
from agentsync.config import Settings
from agentsync.errors import ConfigError, EncryptionFailure


class Encryptor(Protocol):
    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...


class FernetEncryptor:
    def __init__(self, key: str | bytes) -> None:
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as exc:
            raise ConfigError(f"invalid CREDS_KEY: {exc}") from exc

    @classmethod
    def from_settings(cls, settings: Settings) -> FernetEncryptor:
        if not settings.creds_key.strip():
            raise ConfigError("CREDS_KEY is required to encrypt action credentials")
        return cls(settings.creds_key.strip())

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionFailure("credential ciphertext is invalid") from exc


def _auth_type(metadata: Mapping[str, Any]) -> AuthType:
    auth = metadata.get("auth")
    if isinstance(auth, Mapping) and auth.get("type") in {item.value for item in AuthType}:
        return AuthType(auth["type"])
    return AuthType.NONE


def encrypt_sensitive_value(encryptor: Encryptor, value: str) -> str:
    # Quoted first so separators such as ":" survive the round trip.
    try:
        return encryptor.encrypt(quote(value, safe=""))
    except EncryptionFailure:
        raise
    except Exception as exc:
        raise EncryptionFailure(f"failed to encrypt credential: {exc}") from exc


def decrypt_sensitive_value(encryptor: Encryptor, value: str) -> str:
    try:
        return unquote(encryptor.decrypt(value))
    except EncryptionFailure:
        raise
    except Exception as exc:
        raise EncryptionFailure(f"failed to decrypt credential: {exc}") from exc


def encrypt_metadata(encryptor: Encryptor, metadata: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy with every credential field present for the auth type encrypted."""
    encrypted = dict(metadata)
    for name in SECRET_AUTH_FIELDS[_auth_type(metadata)]:
        value = metadata.get(name)
        if value:
            encrypted[name] = encrypt_sensitive_value(encryptor, str(value))
    return encrypted


def decrypt_metadata(encryptor: Encryptor, metadata: Mapping[str, Any]) -> dict[str, Any]:
    decrypted = dict(metadata)
    for name in SECRET_AUTH_FIELDS[_auth_type(metadata)]:
        value = metadata.get(name)
        if value:
            decrypted[name] = decrypt_sensitive_value(encryptor, str(value))
    return decrypted
