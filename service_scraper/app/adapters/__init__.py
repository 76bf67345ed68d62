"""
External adapters for the scraper service.
"""

from .upstream_client import ScraperApiClient, classify_attempt, is_transient_status

__all__ = ["ScraperApiClient", "classify_attempt", "is_transient_status"]
