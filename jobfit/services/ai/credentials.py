"""
Gemini API key storage.

Keys are kept Fernet-encrypted on disk. Older installs stored the key in plain
text under ``gemini_api_key``; that value is moved into secure storage the
first time any client is built in a process.
"""
import logging
from typing import Optional

from config.settings import settings
from jobfit.utils.encryption import SecureStorage
from jobfit.utils.run_once import RunOnce

logger = logging.getLogger(__name__)

LEGACY_API_KEY_ENTRY = "gemini_api_key"
API_KEY_ENTRY = "api_key"

# Process-wide: the legacy migration runs once no matter how many callers race
credential_migration = RunOnce("credential_migration")


class CredentialStore:
    """Read/write access to the user's own Gemini API key."""

    def __init__(self, storage: SecureStorage, fallback_api_key: Optional[str] = None):
        """
        Args:
            storage: Encrypted storage backend
            fallback_api_key: Key from deployment config, used when nothing is stored
        """
        self.storage = storage
        self.fallback_api_key = fallback_api_key or None

    def migrate_legacy_key(self) -> bool:
        """Move a plaintext legacy key into encrypted storage."""
        return self.storage.migrate_to_secure(LEGACY_API_KEY_ENTRY, API_KEY_ENTRY)

    def get_api_key(self) -> Optional[str]:
        return self.storage.get_secure_item(API_KEY_ENTRY) or self.fallback_api_key

    def save_api_key(self, key: str) -> None:
        self.storage.set_secure_item(API_KEY_ENTRY, key.strip())

    def clear_api_key(self) -> None:
        self.storage.remove_secure_item(API_KEY_ENTRY)


def ensure_legacy_migration(store: CredentialStore, guard: Optional[RunOnce] = None) -> None:
    """
    Run the legacy key migration once per process.

    A failed migration is logged and left pending so a later call can retry;
    it never blocks the caller from using whatever key is available.
    """
    guard = guard or credential_migration
    try:
        guard.run(store.migrate_legacy_key)
    except (OSError, ValueError) as e:
        logger.warning(f"Legacy API key migration failed, will retry on next call: {e}")


_credential_store: Optional[CredentialStore] = None


def _credential_encryption_key() -> str:
    """
    Key material for the credential store.

    Raises:
        ValueError: In production when CREDENTIAL_ENCRYPTION_KEY is not set
    """
    if settings.credential_encryption_key:
        return settings.credential_encryption_key
    if settings.is_production:
        raise ValueError("CREDENTIAL_ENCRYPTION_KEY must be set in production")
    logger.warning("CREDENTIAL_ENCRYPTION_KEY is not set, deriving the credential key from SECRET_KEY")
    return settings.secret_key


def get_credential_store() -> CredentialStore:
    """Get or create the process credential store from settings."""
    global _credential_store
    if _credential_store is None:
        storage = SecureStorage(
            path=settings.credential_store_path,
            encryption_key=_credential_encryption_key(),
        )
        _credential_store = CredentialStore(storage, fallback_api_key=settings.gemini_api_key)
    return _credential_store
