"""Shared sizes and names used by the deriver, the cipher engine and the CLI."""

# --- Key Material ---
KEY_SIZE = 32    # 256-bit key
NONCE_SIZE = 24  # 192-bit extended nonce
TAG_SIZE = 16    # Poly1305 tag appended to every ciphertext

CIPHER_NAME = "XChaCha20-Poly1305"

# --- File Handling ---
DEFAULT_CIPHERTEXT_FILE = "message.enc"
REPORT_FILE_SUFFIX = ".report.json"
CHECKSUM_ALGORITHM = "SHA-256"
CHUNK_SIZE = 65536  # 64 KB read buffer for checksums
