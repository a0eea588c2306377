"""
This module manages the key used to encrypt the PillTracker data file.

It uses the `cryptography` library (Fernet symmetric encryption) so the
medications, logs and accounts kept in the data file are unreadable at rest.
On first use a key is generated and written next to the data file.

Security Note: The key file is critical. Losing it makes the data file
unreadable, and it must never be committed to version control.
"""
# pilltracker/modules/encryption.py

import logging

from cryptography.fernet import Fernet

logger = logging.getLogger(__name__)


def write_key(key_path: str) -> bytes:
    """Generates a new Fernet key and saves it to `key_path`."""
    key = Fernet.generate_key()
    with open(key_path, "wb") as key_file:
        key_file.write(key)
    return key


def load_key(key_path: str) -> bytes:
    """Loads the Fernet key from `key_path`.

    Raises:
        FileNotFoundError: If the key file does not exist yet.
    """
    with open(key_path, "rb") as key_file:
        return key_file.read()


def load_or_create_key(key_path: str) -> bytes:
    """Loads the key, generating and saving a new one on first run."""
    try:
        return load_key(key_path)
    except FileNotFoundError:
        logger.warning("Encryption key %s not found. Generating a new one.", key_path)
        return write_key(key_path)


def get_encryptor(key_path: str) -> Fernet:
    """Returns a Fernet instance for the key stored at `key_path`."""
    return Fernet(load_or_create_key(key_path))
