"""
Scraper Service - career page crawling.
"""

from typing import Protocol

from shared.models import JobPosting

from .apify_client import ApifyPageResult, ApifyScraper


class Scraper(Protocol):
    """Fetches job postings from a career page URL."""

    async def fetch(self, url: str, limit: int) -> list[JobPosting]: ...


__all__ = ["ApifyPageResult", "ApifyScraper", "Scraper"]
