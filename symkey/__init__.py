"""Passphrase-based XChaCha20-Poly1305 encryption of text messages."""

from symkey.cipher_engine import EncryptionResult, decrypt, encrypt, seal, unseal
from symkey.errors import (
    AuthenticationFailed,
    InvalidEncoding,
    KeyTooLong,
    MalformedNonce,
    NonceChoiceUndetermined,
    NonceGenerateNotSupported,
    NonceTooLong,
    SymkeyError,
)
from symkey.key_material import NonceSelection, NonceSource, derive_key, derive_nonce

__version__ = "0.1.0"

__all__ = [
    'encrypt',
    'decrypt',
    'seal',
    'unseal',
    'EncryptionResult',
    'derive_key',
    'derive_nonce',
    'NonceSelection',
    'NonceSource',
    'SymkeyError',
    'KeyTooLong',
    'NonceTooLong',
    'MalformedNonce',
    'NonceChoiceUndetermined',
    'NonceGenerateNotSupported',
    'AuthenticationFailed',
    'InvalidEncoding',
]
