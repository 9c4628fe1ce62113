"""Run-exactly-once guard for lazy, process-wide initialization."""

import logging
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)


class RunOnce:
    """
    Executes a callable at most once per instance, even with concurrent callers.

    The first caller runs the function while holding the lock; everyone else
    either waits for it to finish or sees it already done. If the function
    raises, the guard stays open so a later caller can try again.

    Usage:
        migration = RunOnce("credential_migration")
        migration.run(store.migrate_legacy_key)
    """

    def __init__(self, name: str):
        self.name = name
        self._done = False
        self._lock = Lock()

    @property
    def done(self) -> bool:
        return self._done

    def run(self, func: Callable[[], object]) -> bool:
        """
        Run func if it has not completed yet.

        Returns:
            True if this call executed func, False if it had already run
        """
        if self._done:
            return False

        with self._lock:
            if self._done:
                return False
            func()
            self._done = True
            logger.debug(f"[RunOnce:{self.name}] completed")
            return True
