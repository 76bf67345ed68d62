"""
Unit tests for credential rotation.
"""

import threading
from collections import Counter

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_scraper.app.credentials.rotator import CredentialRotator
from shared.config import ServiceConfig
from shared.errors import ConfigurationError


class TestCredentialRotator:
    """Test cases for CredentialRotator."""

    def test_round_robin_order(self):
        """Credentials are handed out in pool order and wrap around."""
        rotator = CredentialRotator(["k1", "k2", "k3"])
        assert [rotator.next() for _ in range(7)] == ["k1", "k2", "k3", "k1", "k2", "k3", "k1"]

    def test_single_credential(self):
        """A single-key pool always returns that key."""
        rotator = CredentialRotator(["only"])
        assert {rotator.next() for _ in range(5)} == {"only"}

    def test_empty_pool_rejected(self):
        """An empty pool is a configuration error at construction time."""
        with pytest.raises(ConfigurationError) as exc_info:
            CredentialRotator([])
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    @pytest.mark.parametrize("calls", [4, 10, 31])
    def test_fairness(self, calls):
        """Every credential is visited at least floor(M / pool size) times."""
        pool = ["a", "b", "c"]
        rotator = CredentialRotator(pool)
        counts = Counter(rotator.next() for _ in range(calls))
        for credential in pool:
            assert counts[credential] >= calls // len(pool)

    def test_concurrent_allocation_is_fair(self):
        """Concurrent callers never skip or repeat beyond the round-robin share."""
        pool = ["a", "b", "c", "d"]
        rotator = CredentialRotator(pool)
        results = []
        lock = threading.Lock()

        def worker():
            local = [rotator.next() for _ in range(250)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        counts = Counter(results)
        assert sum(counts.values()) == 2000
        assert all(counts[credential] == 500 for credential in pool)

    def test_pool_parsed_from_config(self):
        """Comma-separated keys are trimmed and blanks dropped."""
        config = ServiceConfig(scraper_api_keys=" k1, k2 ,,k3 ,")
        assert config.credential_pool() == ("k1", "k2", "k3")
        assert CredentialRotator(config.credential_pool()).size == 3
