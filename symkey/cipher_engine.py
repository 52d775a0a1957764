"""
Authenticated encryption of text messages with XChaCha20-Poly1305.

The ciphertext is the raw AEAD output (encrypted message followed by the 16-byte
Poly1305 tag). Nothing else is stored: no header, no nonce, no key hint. The caller
keeps track of which nonce was used.
"""

from typing import NamedTuple

from nacl.bindings import (
    crypto_aead_xchacha20poly1305_ietf_decrypt,
    crypto_aead_xchacha20poly1305_ietf_encrypt,
)
from nacl.exceptions import CryptoError

from symkey.constants import KEY_SIZE, NONCE_SIZE, TAG_SIZE
from symkey.errors import (
    AuthenticationFailed,
    InvalidEncoding,
    NonceGenerateNotSupported,
)
from symkey.key_material import (
    NonceSelection,
    NonceSource,
    derive_key,
    derive_nonce,
    encode_nonce,
)


class EncryptionResult(NamedTuple):
    ciphertext: bytes
    nonce: str | None  # set only when the nonce was generated


def _check_widths(key: bytes, nonce: bytes):
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be exactly {KEY_SIZE} bytes, got {len(key)}.")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"Nonce must be exactly {NONCE_SIZE} bytes, got {len(nonce)}.")


def seal(key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    """Encrypts and authenticates plaintext. Deterministic for a given key and nonce."""
    _check_widths(key, nonce)
    return crypto_aead_xchacha20poly1305_ietf_encrypt(plaintext, None, nonce, key)


def unseal(key: bytes, nonce: bytes, ciphertext: bytes) -> str:
    """
    Verifies and decrypts a sealed message.

    Raises AuthenticationFailed for any integrity failure (wrong key, wrong nonce,
    truncated or modified ciphertext) without saying which. Only after the tag has
    been verified is the plaintext checked for UTF-8, raising InvalidEncoding.
    """
    _check_widths(key, nonce)
    if len(ciphertext) < TAG_SIZE:
        raise AuthenticationFailed()
    try:
        plaintext = crypto_aead_xchacha20poly1305_ietf_decrypt(ciphertext, None, nonce, key)
    except CryptoError:
        raise AuthenticationFailed() from None

    try:
        return plaintext.decode('utf-8')
    except UnicodeDecodeError:
        raise InvalidEncoding() from None


def encrypt(passphrase: bytes | str, message: str,
            selection: NonceSelection | None) -> EncryptionResult:
    """
    Derives key and nonce, then seals the UTF-8 encoded message.

    When the selection is GENERATE, the returned result carries the nonce as a
    text token; pass it back with NonceSelection.from_encoded() to decrypt.
    """
    key = derive_key(passphrase)
    nonce = derive_nonce(selection)
    ciphertext = seal(key, nonce, message.encode('utf-8'))

    token = None
    if selection.source is NonceSource.GENERATE:
        token = encode_nonce(nonce)
    return EncryptionResult(ciphertext, token)


def decrypt(passphrase: bytes | str, ciphertext: bytes,
            selection: NonceSelection | None) -> str:
    """Derives key and nonce, then opens the ciphertext. GENERATE is rejected up front."""
    if selection is not None and selection.source is NonceSource.GENERATE:
        raise NonceGenerateNotSupported()
    key = derive_key(passphrase)
    nonce = derive_nonce(selection)
    return unseal(key, nonce, ciphertext)
