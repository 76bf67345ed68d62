"""
Domain services for the scraper service.
"""

from .orchestrator import FetchOrchestrator

__all__ = ["FetchOrchestrator"]
