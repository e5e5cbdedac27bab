"""
Apify API client for career page scraping.
Uses a website crawler actor (default: apify/website-content-crawler).
"""

import re
from typing import Optional
from urllib.parse import urlparse

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.config import Settings, get_settings
from shared.errors import ServiceError
from shared.keywords import find_stated_years, find_technologies
from shared.models import JobPosting

SERVICE_NAME = "scraping"

# Path fragments that mark a crawled page as a job detail page
JOB_URL_HINTS = ("/job", "/career", "/position", "/opening")

LOCATION_PATTERN = re.compile(r"^\s*location\s*[:\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE)


class PageMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None


class ApifyPageResult(BaseModel):
    """One crawled page from the Apify website crawler dataset."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: Optional[str] = None
    text: Optional[str] = None
    metadata: PageMetadata = Field(default_factory=PageMetadata)

    @property
    def title(self) -> str:
        if self.metadata.title:
            return self.metadata.title.strip()
        for line in (self.text or "").splitlines():
            if line.strip():
                return line.strip()[:120]
        return ""

    def to_posting(self) -> JobPosting:
        """Convert crawled page to JobPosting model."""
        text = self.text or ""
        location_match = LOCATION_PATTERN.search(text)

        return JobPosting(
            title=self.title,
            location=location_match.group(1).strip()[:120] if location_match else "",
            required_experience=find_stated_years(text),
            required_skills=find_technologies(text),
            description=text.strip(),
            apply_url=self.url or "",
        )


def _same_page(a: str, b: str) -> bool:
    pa, pb = urlparse(a), urlparse(b)
    return pa.netloc.lower() == pb.netloc.lower() and pa.path.rstrip("/") == pb.path.rstrip("/")


class ApifyScraper:
    """Scraper backed by an Apify crawler actor."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.apify_base_url
        self.actor_id = self.settings.apify_actor_id
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> dict[str, str]:
        """Get request headers with auth token."""
        return {
            "Authorization": f"Bearer {self.settings.apify_api_token.get_secret_value()}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.settings.scraper_timeout_secs + 30)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def fetch(self, url: str, limit: int) -> list[JobPosting]:
        """
        Crawl a career page and return up to `limit` job postings.

        Raises:
            ServiceError: NO_JOBS_FOUND / BLOCKED (not retryable),
                CONNECTION_FAILED / TIMEOUT / EXTRACTION_FAILED / SCRAPING_FAILED
                (retryable)
        """
        logger.info(f"Starting scrape of {url} for up to {limit} jobs")
        items = await self.run_actor_sync(url, limit)

        if not items:
            raise ServiceError(
                "No job listings found on the career page",
                SERVICE_NAME,
                "NO_JOBS_FOUND",
                retryable=False,
            )

        postings = self._parse_results(items, url)[:limit]
        if not postings:
            raise ServiceError(
                "Failed to extract details from any job listings",
                SERVICE_NAME,
                "EXTRACTION_FAILED",
                retryable=True,
            )

        logger.info(f"Scraping complete. Successfully scraped {len(postings)} jobs")
        return postings

    async def run_actor_sync(self, url: str, limit: int) -> list[dict]:
        """
        Run the crawler actor synchronously and return dataset items directly.
        Uses the run-sync-get-dataset-items endpoint for simpler operation.
        """
        client = await self._get_client()

        # One extra page for the career page itself
        actor_input = {
            "startUrls": [{"url": url}],
            "maxCrawlDepth": 1,
            "maxCrawlPages": limit + 1,
            "maxResults": limit + 1,
        }

        sync_url = f"{self.base_url}/acts/{self.actor_id}/run-sync-get-dataset-items"
        logger.debug(f"Actor input: {actor_input}")

        try:
            response = await client.post(
                sync_url,
                headers=self.headers,
                json=actor_input,
                params={"timeout": self.settings.scraper_timeout_secs},
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            raise ServiceError(
                "Career page took too long to load. Please try again.",
                SERVICE_NAME,
                "TIMEOUT",
                retryable=True,
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Apify returned HTTP {status} for {url}")
            if status in (401, 403):
                raise ServiceError(
                    "Career page blocked the scraper. Try a different page.",
                    SERVICE_NAME,
                    "BLOCKED",
                    retryable=False,
                )
            raise ServiceError(
                "Failed to scrape career page",
                SERVICE_NAME,
                "SCRAPING_FAILED",
                retryable=True,
            )
        except httpx.TransportError as e:
            logger.error(f"Could not reach scraping service: {e}")
            raise ServiceError(
                "Unable to reach the career page. Please check the URL.",
                SERVICE_NAME,
                "CONNECTION_FAILED",
                retryable=True,
            )

        items = response.json()
        if not isinstance(items, list):
            logger.warning(f"Unexpected dataset payload type: {type(items).__name__}")
            return []

        logger.info(f"Fetched {len(items)} pages from {url}")
        return items

    def _parse_results(self, items: list[dict], start_url: str) -> list[JobPosting]:
        """Parse raw items into JobPosting objects, skipping non-job pages."""
        postings = []
        seen_urls: set[str] = set()

        for item in items:
            try:
                page = ApifyPageResult.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Failed to parse crawled page: {e}")
                continue

            if not page.url or not page.text or not page.text.strip():
                continue
            if _same_page(page.url, start_url) or page.url in seen_urls:
                continue
            if not any(hint in urlparse(page.url).path.lower() for hint in JOB_URL_HINTS):
                continue
            if not page.title:
                continue

            seen_urls.add(page.url)
            postings.append(page.to_posting())

        return postings
