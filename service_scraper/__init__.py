"""
Scraper Access Service.
"""
