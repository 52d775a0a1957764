"""
Error types raised by the key deriver and the cipher engine.

Authentication failures are deliberately undifferentiated: a wrong key, a wrong
nonce, a truncated file and a tampered byte all surface as the same
AuthenticationFailed with no message and no chained cause.
"""

from symkey.constants import KEY_SIZE, NONCE_SIZE


class SymkeyError(Exception):
    """Base exception for symkey operations."""
    pass


class KeyTooLong(SymkeyError):
    """Raised when a passphrase does not fit in the key width."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Key is {length} bytes long; the maximum is {KEY_SIZE} bytes.")


class NonceTooLong(SymkeyError):
    """Raised when a user-supplied nonce string does not fit in the nonce width."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Nonce is {length} bytes long; the maximum is {NONCE_SIZE} bytes.")


class MalformedNonce(SymkeyError):
    """Raised when a generated-nonce token cannot be decoded back to nonce bytes."""

    def __init__(self):
        super().__init__("Nonce token is not a valid generated nonce.")


class NonceChoiceUndetermined(SymkeyError):
    """Raised when no single nonce source was selected."""

    def __init__(self):
        super().__init__(
            "Could not determine which nonce to use. Choose exactly one nonce source."
        )


class NonceGenerateNotSupported(SymkeyError):
    """Raised when a generated nonce is requested for decryption."""

    def __init__(self):
        super().__init__(
            "A nonce cannot be generated for decryption. Supply the nonce used to encrypt."
        )


class AuthenticationFailed(SymkeyError):
    """Raised when a ciphertext fails its integrity check. Carries no detail."""

    def __init__(self):
        super().__init__("Decryption failed.")


class InvalidEncoding(SymkeyError):
    """Raised when an authenticated plaintext is not valid UTF-8."""

    def __init__(self):
        super().__init__("Decrypted message is not valid UTF-8.")
