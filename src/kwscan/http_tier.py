"""HTTP fetch tier.

First and cheapest way to test a URL: one GET with browser-like headers,
then a keyword search in the stripped body. Responses that look blocked or
script-rendered are reported as failures so the scanner can escalate to the
browser tier. This tier never raises.
"""

import logging

import httpx

from kwscan.classifier import is_blocked, needs_rendering
from kwscan.config import HttpTierConfig
from kwscan.content import contains_keyword, visible_text
from kwscan.types import FetchOutcome

logger = logging.getLogger(__name__)

BLOCKED = "blocked"
NEEDS_JS = "needs_js"


class HttpFetcher:
    """Keyword check over plain HTTP.

    Example:
        >>> async with create_http_client(config) as client:
        ...     fetcher = HttpFetcher(client, config.http)
        ...     outcome = await fetcher.fetch("https://example.com/", "widget")
    """

    def __init__(self, client: httpx.AsyncClient, config: HttpTierConfig | None = None) -> None:
        """Initialize HTTP fetcher.

        Args:
            client: Shared HTTP client (connection pool, headers, redirects)
            config: HTTP tier settings; only the timeout is applied per request
        """
        self.client = client
        self.config = config or HttpTierConfig()

    async def fetch(self, url: str, keyword: str) -> FetchOutcome:
        """Fetch ``url`` and test its visible text for ``keyword``.

        Args:
            url: Absolute http(s) URL
            keyword: Keyword to look for (case-insensitive)

        Returns:
            FetchOutcome.hit on a usable page, FetchOutcome.failure otherwise
            ("blocked", "needs_js", "HTTP <status>" or the transport error)
        """
        try:
            response = await self.client.get(url, timeout=self._timeout())
        except httpx.TooManyRedirects:
            logger.debug(f"Redirect limit exceeded for {url}")
            return FetchOutcome.failure(
                f"Exceeded maximum of {self.config.max_redirects} redirects"
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            message = str(e) or type(e).__name__
            logger.debug(f"HTTP error fetching {url}: {type(e).__name__}: {message}")
            return FetchOutcome.failure(message)
        except Exception as e:
            logger.warning(f"Unexpected error fetching {url}: {type(e).__name__}: {e}")
            return FetchOutcome.failure(str(e) or type(e).__name__)

        if response.status_code >= 500:
            logger.debug(f"Server error {response.status_code} for {url}")
            return FetchOutcome.failure(f"HTTP {response.status_code}")

        body = response.text

        if is_blocked(response.status_code, body):
            logger.debug(f"Blocked response ({response.status_code}) for {url}")
            return FetchOutcome.failure(BLOCKED)

        if needs_rendering(body):
            logger.debug(f"Client-rendered shell detected for {url}")
            return FetchOutcome.failure(NEEDS_JS)

        found = contains_keyword(visible_text(body), keyword)
        return FetchOutcome.hit(found, raw_body=body)

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self.config.timeout_seconds, connect=self.config.connect_timeout_seconds
        )
