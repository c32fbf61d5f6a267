"""Per-URL scan orchestration.

Drives a single URL through the tiers:

    validate -> skip check -> HTTP tier -> browser tier -> result

Each step either produces the final ScanResult or hands over to the next
one. Tiers report failure through FetchOutcome, so no exception ever flows
between them, and each tier runs at most once per URL.
"""

import logging
import urllib.parse

from kwscan.classifier import should_skip
from kwscan.types import Fetcher, ScanResult

logger = logging.getLogger(__name__)

INVALID_URL = "Invalid URL"
INVALID_URL_DETAIL = "Invalid URL format"
SKIPPED_DOWNLOAD = "Skipped (PDF/Download)"
UNKNOWN_ERROR = "Unknown error"

ALLOWED_SCHEMES = frozenset({"http", "https"})


def is_valid_url(url: str) -> bool:
    """Basic syntactic check: absolute http(s) URL with a host.

    Examples:
        >>> is_valid_url("https://example.com/page")
        True
        >>> is_valid_url("not-a-url")
        False
    """
    try:
        parsed = urllib.parse.urlsplit(url)
        hostname = parsed.hostname
        _ = parsed.port  # Raises ValueError on a malformed port
    except ValueError:
        return False
    return parsed.scheme.lower() in ALLOWED_SCHEMES and bool(hostname)


class Scanner:
    """Scan one URL with HTTP first and the browser as fallback.

    Example:
        >>> scanner = Scanner(HttpFetcher(client), BrowserFetcher(manager))
        >>> result = await scanner.scan_url("https://example.com/", "widget")
        >>> result.status, result.method
        ('found', 'http')
    """

    def __init__(self, http_fetcher: Fetcher, browser_fetcher: Fetcher) -> None:
        """Initialize scanner.

        Args:
            http_fetcher: First tier (plain HTTP)
            browser_fetcher: Fallback tier (headless browser)
        """
        self.http_fetcher = http_fetcher
        self.browser_fetcher = browser_fetcher

    async def scan_url(self, url: str, keyword: str) -> ScanResult:
        """Scan ``url`` for ``keyword`` and return its terminal result."""
        if not is_valid_url(url):
            logger.debug(f"Invalid URL: {url!r}")
            return ScanResult(
                url=url, status="error", result=INVALID_URL, error=INVALID_URL_DETAIL
            )

        if should_skip(url):
            logger.debug(f"Skipping download URL: {url}")
            return ScanResult.skipped(url, SKIPPED_DOWNLOAD)

        http_outcome = await self.http_fetcher.fetch(url, keyword)
        if http_outcome.success:
            return ScanResult.resolved(url, bool(http_outcome.found), "http")

        logger.debug(f"HTTP tier failed for {url} ({http_outcome.error}), trying browser")

        browser_outcome = await self.browser_fetcher.fetch(url, keyword)
        if browser_outcome.success:
            return ScanResult.resolved(url, bool(browser_outcome.found), "browser")

        message = browser_outcome.error or UNKNOWN_ERROR
        logger.debug(f"Both tiers failed for {url}: {message}")
        return ScanResult.failed(url, message, http_error=http_outcome.error)
