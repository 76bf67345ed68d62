"""
Round-robin rotation over the configured upstream API keys.
"""

import threading
from typing import Iterable, Tuple

from shared.errors import ConfigurationError
from shared.logging import get_logger


class CredentialRotator:
    """Hands out one credential per call, cycling through the pool in order."""

    def __init__(self, credentials: Iterable[str]):
        self._pool: Tuple[str, ...] = tuple(credentials)
        if not self._pool:
            raise ConfigurationError("Credential pool is empty", details={"setting": "SCRAPER_API_KEYS"})
        self._cursor = 0
        self._lock = threading.Lock()
        self.logger = get_logger("scraper.credentials")
        self.logger.info("Credential pool loaded", pool_size=len(self._pool))

    @property
    def size(self) -> int:
        return len(self._pool)

    def next(self) -> str:
        """Return the credential under the cursor and advance it."""
        with self._lock:
            credential = self._pool[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._pool)
        return credential
