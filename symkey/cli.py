import argparse
import hashlib
import json
import os
import sys
import tempfile
from datetime import datetime, timezone
from getpass import getpass
from pathlib import Path

from symkey.cipher_engine import decrypt, encrypt
from symkey.constants import (
    CHECKSUM_ALGORITHM,
    CHUNK_SIZE,
    CIPHER_NAME,
    DEFAULT_CIPHERTEXT_FILE,
    KEY_SIZE,
    REPORT_FILE_SUFFIX,
)
from symkey.errors import SymkeyError
from symkey.key_material import NonceSelection, NonceSource

# --- Helper Functions ---

def validate_and_resolve_path(user_path_str: str | None, operation_name: str, check_exists: bool = False) -> Path | None:
    """
    Resolves a user-provided path, ensuring it is at or under the CWD.
    Absolute paths and '..' components are refused before the path is used.
    Raises SystemExit on failure.
    """
    if not user_path_str:
        return None

    if Path(user_path_str).is_absolute():
        print(f"Error: Absolute paths are not allowed for {operation_name}.", file=sys.stderr)
        print(f"Path Provided: {user_path_str}", file=sys.stderr)
        sys.exit(1)

    if ".." in Path(user_path_str).parts:
        print(f"Error: Path traversal components ('..') are not allowed for {operation_name}.", file=sys.stderr)
        print(f"Path Provided: {user_path_str}", file=sys.stderr)
        sys.exit(1)

    cwd = Path.cwd().resolve()
    try:
        resolved_path = cwd.joinpath(user_path_str).resolve()
    except (OSError, ValueError) as e:
        # ValueError: embedded null bytes
        print(f"Error: Could not resolve path for {operation_name}: {e}", file=sys.stderr)
        sys.exit(1)

    # Symlinks can still point outside the CWD after resolution.
    try:
        resolved_path.relative_to(cwd)
    except ValueError:
        print(f"Error: Path for {operation_name} is outside the current directory.", file=sys.stderr)
        print(f"Resolved Path: {resolved_path}", file=sys.stderr)
        sys.exit(1)

    if check_exists and not resolved_path.exists():
        print(f"Error: Input file for {operation_name} not found.", file=sys.stderr)
        print(f"Path: {resolved_path}", file=sys.stderr)
        sys.exit(1)

    return resolved_path


def calculate_file_checksum(file_path: Path, chunk_size: int) -> str:
    """SHA-256 of a file, read in chunks."""
    hasher = hashlib.sha256()
    with open(file_path, 'rb') as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def key_fits(key: str) -> bool:
    return 0 < len(key.encode('utf-8')) <= KEY_SIZE


def get_verified_key() -> str:
    """Prompts for the key twice, enforces the size limits, and verifies both entries match."""
    while True:
        key = getpass(f"Enter key (max {KEY_SIZE} bytes): ")
        if not key:
            print("Error: Key cannot be empty.", file=sys.stderr)
            continue

        if not key_fits(key):
            print(f"Error: Key must be at most {KEY_SIZE} bytes long.", file=sys.stderr)
            continue

        key_confirm = getpass("Confirm key: ")

        if key == key_confirm:
            return key
        print("Error: Keys do not match. Please try again.", file=sys.stderr)


def read_key_stdin() -> str:
    print("Reading key from stdin...", file=sys.stderr)
    key = sys.stdin.readline().rstrip('\r\n')
    if not key:
        print("Error: Key from stdin cannot be empty.", file=sys.stderr)
        sys.exit(1)
    return key


def generate_report(cipher_file: Path, report_data: dict, generated_nonce: str | None = None) -> Path | None:
    """Writes a JSON report next to the ciphertext file."""
    report_path = cipher_file.with_suffix(REPORT_FILE_SUFFIX)

    report_data['encrypted_file'] = cipher_file.name
    report_data['timestamp'] = datetime.now(timezone.utc).isoformat()

    if generated_nonce:
        report_data['generated_nonce'] = generated_nonce

    try:
        with open(report_path, 'w') as f:
            json.dump(report_data, f, indent=4)
    except OSError as e:
        print(f"Warning: Could not write encryption report: {e}", file=sys.stderr)
        return None

    print(f"Report generated successfully: {report_path}")
    return report_path


def encrypt_file(output_file: Path, message: str, key: str, selection: NonceSelection | None,
                 force: bool = False, write_report: bool = False) -> bool:
    """
    Encrypts the message and writes the raw ciphertext to output_file.
    The file is written to a temporary name first and renamed into place.
    Returns True on success.
    """
    if output_file.exists() and not force:
        answer = input(f"Warning: Output file '{output_file.name}' already exists. Overwrite? (y/N) ")
        if answer.lower() != 'y':
            print("Encryption aborted by user.", file=sys.stderr)
            return False

    try:
        result = encrypt(key, message, selection)
    except SymkeyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return False

    temp_file_path = None
    try:
        with tempfile.NamedTemporaryFile(dir=output_file.parent, delete=False) as f_out:
            temp_file_path = f_out.name
            f_out.write(result.ciphertext)
        os.replace(temp_file_path, output_file)
        temp_file_path = None
    except OSError as e:
        print(f"Error writing ciphertext: {e}", file=sys.stderr)
        return False
    finally:
        if temp_file_path and Path(temp_file_path).exists():
            os.remove(temp_file_path)

    print(f"Encryption successful. Output: {output_file}")

    if result.nonce is not None:
        print(f"The nonce for this message was generated and it is: {result.nonce}")
    elif selection.source is NonceSource.ALL_ZERO:
        print("Warning: The all-zero nonce is insecure. Never reuse this key for another message.",
              file=sys.stderr)

    if write_report:
        report_data = {
            'algorithm': CIPHER_NAME,
            'nonce_mode': selection.source.value,
            'ciphertext_checksum': {
                'algorithm': CHECKSUM_ALGORITHM,
                'hash': calculate_file_checksum(output_file, CHUNK_SIZE),
            },
        }
        report_path = generate_report(output_file, report_data, generated_nonce=result.nonce)

        if result.nonce is not None and report_path:
            print("\n" + "=" * 80)
            print("NONCE SAVED IN REPORT")
            print(f"The generated nonce has been saved in the JSON report: {report_path}")
            print("Without it the ciphertext cannot be decrypted. Keep the report with the file.")
            print("=" * 80 + "\n")

    return True


def decrypt_file(input_file: Path, key: str, selection: NonceSelection | None) -> str | None:
    """Reads the raw ciphertext from input_file and returns the plaintext, or None on failure."""
    try:
        with open(input_file, 'rb') as f_in:
            ciphertext = f_in.read()
    except OSError as e:
        print(f"Error reading ciphertext: {e}", file=sys.stderr)
        return None

    try:
        return decrypt(key, ciphertext, selection)
    except SymkeyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None

# ----------------------------------------------------------------

# --- Main CLI Logic ---

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="symkey",
        description="Encrypt a short text message to a file with a passphrase (XChaCha20-Poly1305).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  # 1. Encrypt with a generated nonce (the nonce token is printed; keep it)
  symkey -e "foobar" -k baz -g -f note.enc

  # 2. Decrypt it again using the printed token
  symkey -d -k baz --nonce-token <TOKEN> -f note.enc

  # 3. Encrypt with your own nonce string (max 24 bytes)
  symkey -e "foobar" -k baz -n aaaaaaaaaaaaaaaaaaaaaaaa

  # 4. Read the key from a script instead of prompting
  echo "baz" | symkey -d --key-stdin -n aaaaaaaaaaaaaaaaaaaaaaaa

Note: keys and nonce strings are zero-padded, not hashed. This is not a
password-hardening scheme; use a long random key.
"""
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        '-e', '--encrypt',
        metavar='MESSAGE',
        type=str,
        help='Encrypt MESSAGE and write the ciphertext to the file.'
    )
    group.add_argument(
        '-d', '--decrypt',
        action='store_true',
        help='Decrypt the file and print the message.'
    )

    parser.add_argument(
        '-f', '--file',
        type=str,
        default=DEFAULT_CIPHERTEXT_FILE,
        help=f'Ciphertext file to write (encrypt) or read (decrypt). Default: {DEFAULT_CIPHERTEXT_FILE}'
    )

    key_group = parser.add_mutually_exclusive_group()
    key_group.add_argument(
        '-k', '--key',
        type=str,
        help=f'The shared key (max {KEY_SIZE} bytes). Prompted for if omitted.'
    )
    key_group.add_argument(
        '--key-stdin',
        action='store_true',
        help='(Advanced) Read the key from stdin instead of prompting.'
    )

    nonce_group = parser.add_mutually_exclusive_group()
    nonce_group.add_argument(
        '--insecure-zero-nonce',
        action='store_true',
        help='WARNING: Use an all-zero nonce. Reusing the key with this nonce breaks confidentiality.'
    )
    nonce_group.add_argument(
        '-n', '--nonce',
        type=str,
        help='Use this string as the nonce (max 24 bytes, zero-padded).'
    )
    nonce_group.add_argument(
        '-g', '--generate-nonce',
        action='store_true',
        help='(Encrypt Only) Generate a random nonce and print it as a token.'
    )
    nonce_group.add_argument(
        '--nonce-token',
        type=str,
        metavar='TOKEN',
        help='Use a nonce token printed by --generate-nonce.'
    )

    parser.add_argument(
        '--force',
        action='store_true',
        help='(Encrypt Only) Overwrite the output file without asking.'
    )
    parser.add_argument(
        '--report',
        action='store_true',
        help=f'(Encrypt Only) Write a {REPORT_FILE_SUFFIX} file describing the ciphertext.'
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.key is not None:
        key = args.key
    elif args.key_stdin:
        key = read_key_stdin()
    elif args.encrypt is not None:
        key = get_verified_key()
    else:
        key = getpass("Enter key: ")

    if not key_fits(key):
        print(f"Error: Key must be between 1 and {KEY_SIZE} bytes long.", file=sys.stderr)
        sys.exit(1)

    try:
        selection = NonceSelection.from_options(
            zero=args.insecure_zero_nonce,
            nonce=args.nonce,
            generate=args.generate_nonce,
            encoded=args.nonce_token,
        )
    except SymkeyError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.file:
        print("Error: A ciphertext file path is required.", file=sys.stderr)
        sys.exit(1)

    if args.encrypt is not None:
        output_path = validate_and_resolve_path(args.file, "output", check_exists=False)
        if not encrypt_file(output_path, args.encrypt, key, selection,
                            force=args.force, write_report=args.report):
            sys.exit(1)
    else:
        input_path = validate_and_resolve_path(args.file, "decrypt input", check_exists=True)
        plaintext = decrypt_file(input_path, key, selection)
        if plaintext is None:
            sys.exit(1)
        print(plaintext)


def run():
    try:
        main()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    run()
