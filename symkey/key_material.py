"""
Maps human-entered keys and nonce choices onto fixed-width AEAD inputs.

Keys and user-chosen nonces are zero-padded on the right, not hashed. This is a
direct, reversible padding and NOT a key derivation function: a short passphrase
gives a weak key. It is kept because the padded bytes are the documented contract
that existing ciphertexts depend on.
"""

import base64
import binascii
import enum
import os
import re
from dataclasses import dataclass

from symkey.constants import KEY_SIZE, NONCE_SIZE
from symkey.errors import (
    KeyTooLong,
    MalformedNonce,
    NonceChoiceUndetermined,
    NonceTooLong,
)


class NonceSource(enum.Enum):
    ALL_ZERO = "all-zero"
    FROM_STRING = "string"
    GENERATE = "generate"
    ENCODED = "encoded"  # replay of a token returned by GENERATE


@dataclass(frozen=True)
class NonceSelection:
    """Which nonce a single encrypt/decrypt call should use."""

    source: NonceSource
    value: str | None = None

    @classmethod
    def all_zero(cls) -> "NonceSelection":
        """24 zero bytes. Insecure: every message under one key shares the nonce."""
        return cls(NonceSource.ALL_ZERO)

    @classmethod
    def from_string(cls, nonce: str) -> "NonceSelection":
        return cls(NonceSource.FROM_STRING, nonce)

    @classmethod
    def generate(cls) -> "NonceSelection":
        return cls(NonceSource.GENERATE)

    @classmethod
    def from_encoded(cls, token: str) -> "NonceSelection":
        return cls(NonceSource.ENCODED, token)

    @classmethod
    def from_options(cls, zero: bool = False, nonce: str | None = None,
                     generate: bool = False, encoded: str | None = None) -> "NonceSelection":
        """
        Builds a selection from loose caller options (e.g. CLI flags).
        Exactly one option must be set, otherwise NonceChoiceUndetermined.
        """
        chosen = []
        if zero:
            chosen.append(cls.all_zero())
        if nonce is not None:
            chosen.append(cls.from_string(nonce))
        if generate:
            chosen.append(cls.generate())
        if encoded is not None:
            chosen.append(cls.from_encoded(encoded))

        if len(chosen) != 1:
            raise NonceChoiceUndetermined()
        return chosen[0]


_TOKEN_PATTERN = re.compile(r'[A-Za-z0-9_-]{32}')


def _pad(data: bytes, size: int) -> bytes:
    return data + b"\x00" * (size - len(data))


def derive_key(passphrase: bytes | str) -> bytes:
    """Right-pads the passphrase bytes with zeros to KEY_SIZE. Raises KeyTooLong."""
    if isinstance(passphrase, str):
        passphrase = passphrase.encode('utf-8')
    if len(passphrase) > KEY_SIZE:
        raise KeyTooLong(len(passphrase))
    return _pad(passphrase, KEY_SIZE)


def generate_nonce() -> bytes:
    return os.urandom(NONCE_SIZE)


def encode_nonce(nonce: bytes) -> str:
    """Fixed-width text form of a nonce: 32 URL-safe base64 characters."""
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"Nonce must be exactly {NONCE_SIZE} bytes.")
    return base64.urlsafe_b64encode(nonce).decode('ascii')


def decode_nonce(token: str) -> bytes:
    """Inverse of encode_nonce. Raises MalformedNonce for anything it did not produce."""
    token = token.strip()
    if not _TOKEN_PATTERN.fullmatch(token):
        raise MalformedNonce()
    try:
        nonce = base64.urlsafe_b64decode(token)
    except (binascii.Error, ValueError):
        raise MalformedNonce() from None
    if len(nonce) != NONCE_SIZE:
        raise MalformedNonce()
    return nonce


def derive_nonce(selection: NonceSelection | None) -> bytes:
    """
    Resolves a nonce selection to exactly NONCE_SIZE bytes.

    - ALL_ZERO: 24 zero bytes.
    - FROM_STRING: UTF-8 bytes of the string, zero-padded. Raises NonceTooLong.
    - GENERATE: fresh bytes from the OS random source.
    - ENCODED: bytes decoded from a generated-nonce token. Raises MalformedNonce.
    - None: raises NonceChoiceUndetermined.
    """
    if selection is None:
        raise NonceChoiceUndetermined()

    if selection.source is NonceSource.ALL_ZERO:
        return bytes(NONCE_SIZE)

    if selection.source is NonceSource.FROM_STRING:
        raw = selection.value.encode('utf-8')
        if len(raw) > NONCE_SIZE:
            raise NonceTooLong(len(raw))
        return _pad(raw, NONCE_SIZE)

    if selection.source is NonceSource.GENERATE:
        return generate_nonce()

    if selection.source is NonceSource.ENCODED:
        return decode_nonce(selection.value)

    raise NonceChoiceUndetermined()
