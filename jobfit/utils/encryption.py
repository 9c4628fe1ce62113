"""Encrypted key-value storage for credentials kept on the local machine."""

import base64
import hashlib
import json
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

SECURE_PREFIX = "jobfit_secure_"


def generate_encryption_key() -> str:
    """
    Generate a new Fernet encryption key.
    Use this to generate a value for CREDENTIAL_ENCRYPTION_KEY.

    Returns:
        A valid Fernet key as a string
    """
    return Fernet.generate_key().decode('utf-8')


def derive_key_from_secret(secret: str) -> str:
    """
    Derive a Fernet-compatible key from an arbitrary secret string.

    Args:
        secret: Any string to derive the key from

    Returns:
        A valid Fernet key as a string
    """
    # Hash the secret to get 32 bytes
    key_bytes = hashlib.sha256(secret.encode()).digest()
    # Base64 encode for Fernet compatibility
    return base64.urlsafe_b64encode(key_bytes).decode('utf-8')


class SecureStorage:
    """
    JSON file of string values, some of them Fernet-encrypted.

    Encrypted entries live under ``jobfit_secure_<key>``; plain entries use their
    bare key. Plain entries only exist for legacy data that predates encryption
    and are expected to be migrated with ``migrate_to_secure``.
    """

    def __init__(self, path: str, encryption_key: str):
        """
        Args:
            path: Location of the JSON file (``~`` is expanded)
            encryption_key: Fernet key, or any secret to derive one from
        """
        self.path = Path(os.path.expanduser(path))
        self._encryption_key = encryption_key
        self._fernet: Optional[Fernet] = None
        self._lock = Lock()

    @property
    def fernet(self) -> Fernet:
        """Lazy initialization of Fernet instance."""
        if self._fernet is None:
            if not self._encryption_key:
                raise ValueError(
                    "CREDENTIAL_ENCRYPTION_KEY is required. "
                    "Generate one with: python -c \"from cryptography.fernet import Fernet; "
                    "print(Fernet.generate_key().decode())\""
                )
            try:
                self._fernet = Fernet(self._encryption_key.encode())
            except ValueError:
                # Not a Fernet key; treat it as a passphrase
                self._fernet = Fernet(derive_key_from_secret(self._encryption_key).encode())
        return self._fernet

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Credential store at {self.path} is unreadable: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        """Read a plain (unencrypted) entry."""
        with self._lock:
            return self._read().get(key)

    def remove_item(self, key: str) -> None:
        """Remove a plain entry."""
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def set_secure_item(self, key: str, value: str) -> None:
        """Encrypt and store a value."""
        encrypted = self.fernet.encrypt(value.encode('utf-8')).decode('utf-8')
        with self._lock:
            data = self._read()
            data[SECURE_PREFIX + key] = encrypted
            self._write(data)

    def get_secure_item(self, key: str) -> Optional[str]:
        """
        Read and decrypt a value.

        Entries that fail to decrypt (key rotated, file tampered with) are
        removed and reported as missing.
        """
        with self._lock:
            data = self._read()
            encrypted = data.get(SECURE_PREFIX + key)
            if not encrypted:
                return None
            try:
                return self.fernet.decrypt(encrypted.encode('utf-8')).decode('utf-8')
            except InvalidToken:
                logger.error(f"Failed to decrypt stored value for '{key}', removing it")
                del data[SECURE_PREFIX + key]
                self._write(data)
                return None

    def remove_secure_item(self, key: str) -> None:
        """Remove an encrypted entry."""
        self.remove_item(SECURE_PREFIX + key)

    def migrate_to_secure(self, old_key: str, new_key: str) -> bool:
        """
        Move a legacy plain entry into encrypted storage.

        Returns:
            True if a legacy value was found and migrated
        """
        value = self.get_item(old_key)
        if not value:
            return False
        self.set_secure_item(new_key, value)
        self.remove_item(old_key)
        logger.info(f"Migrated legacy credential '{old_key}' to secure storage")
        return True
