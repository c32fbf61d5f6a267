"""Headless browser tier.

One Chromium process is launched lazily on first use and shared by every
concurrent scan of a batch. Each fetch gets its own browser context, so
cookies, cache and storage never leak between pages, and the context is
closed again whatever happens during navigation.

Heavy resource types (images, media, fonts, stylesheets) are aborted at the
network layer; only documents, scripts and XHR are loaded.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from types import TracebackType

from playwright.async_api import Browser, Page, Playwright, Route, async_playwright

from kwscan.config import BrowserConfig
from kwscan.content import contains_keyword
from kwscan.exceptions import BrowserLaunchError
from kwscan.types import FetchOutcome

logger = logging.getLogger(__name__)

# Drops non-content nodes from the live DOM and returns the rendered body text
EXTRACT_TEXT_SCRIPT = """
() => {
    document.querySelectorAll('script, style, noscript, iframe').forEach(el => el.remove());
    return document.body ? document.body.innerText : '';
}
"""


def _first_line(error: BaseException) -> str:
    """Playwright errors carry a multi-line call log; keep the headline."""
    message = str(error).strip()
    if not message:
        return type(error).__name__
    return message.splitlines()[0]


class BrowserManager:
    """Owner of the shared Chromium process.

    acquire() launches the browser once, however many scans ask for it at
    the same time; release() shuts it down and may be called any number of
    times. A failed launch is remembered until release() so that a broken
    installation fails every browser fetch fast instead of relaunching.

    Example:
        >>> async with BrowserManager(config.browser) as manager:
        ...     async with manager.isolated_page() as page:
        ...         await page.goto("https://example.com/")
    """

    def __init__(self, config: BrowserConfig | None = None) -> None:
        """Initialize browser manager.

        Args:
            config: Browser settings (launch flags, context options)
        """
        self.config = config or BrowserConfig()
        self.launch_count = 0
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._launch_error: BrowserLaunchError | None = None
        self._lock = asyncio.Lock()  # Serializes launch and shutdown
        self._blocked_types = frozenset(self.config.blocked_resource_types)

    @property
    def is_running(self) -> bool:
        """True while a launched browser is held."""
        return self._browser is not None

    async def __aenter__(self) -> "BrowserManager":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.release()

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it on first use.

        Raises:
            BrowserLaunchError: If Playwright or Chromium cannot be started
        """
        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            if self._launch_error is not None:
                raise self._launch_error

            if self._browser is not None:
                logger.warning("Shared browser disconnected, relaunching")
                await self._shutdown()

            logger.info("Launching headless Chromium...")
            try:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.config.headless,
                    args=self.config.launch_args,
                )
            except Exception as e:
                await self._shutdown()
                self._launch_error = BrowserLaunchError(
                    f"Failed to launch browser: {_first_line(e)}. "
                    "Install it with: playwright install chromium"
                )
                logger.error(str(self._launch_error))
                raise self._launch_error from e

            self.launch_count += 1
            logger.info("Headless Chromium ready")
            return self._browser

    async def release(self) -> None:
        """Close the shared browser and stop Playwright. Safe to call repeatedly."""
        async with self._lock:
            if self._browser is not None:
                logger.info("Closing headless Chromium...")
            await self._shutdown()
            self._launch_error = None

    async def _shutdown(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None

        if browser is not None:
            with contextlib.suppress(Exception):
                await browser.close()

        if playwright is not None:
            with contextlib.suppress(Exception):
                await playwright.stop()

    @contextlib.asynccontextmanager
    async def isolated_page(self) -> AsyncIterator[Page]:
        """Open a page in a fresh browser context, closing both on exit.

        Close errors are suppressed so they never mask the outcome of the
        code running inside the block.
        """
        browser = await self.acquire()
        context = await browser.new_context(
            user_agent=self.config.user_agent,
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            ignore_https_errors=self.config.ignore_https_errors,
        )
        page: Page | None = None

        try:
            await context.route("**/*", self._filter_request)
            page = await context.new_page()
            page.set_default_timeout(self.config.navigation_timeout_ms)
            yield page
        finally:
            if page is not None:
                with contextlib.suppress(Exception):
                    await page.close()
            with contextlib.suppress(Exception):
                await context.close()

    async def _filter_request(self, route: Route) -> None:
        """Abort heavyweight resources, let everything else through."""
        if route.request.resource_type in self._blocked_types:
            await route.abort()
        else:
            await route.continue_()


class BrowserFetcher:
    """Keyword check on the rendered DOM of a page.

    Used as the fallback tier when plain HTTP was blocked or returned a
    client-rendered shell. Never raises: launch, navigation, timeout and
    evaluation failures all come back as FetchOutcome.failure.
    """

    def __init__(self, manager: BrowserManager, config: BrowserConfig | None = None) -> None:
        """Initialize browser fetcher.

        Args:
            manager: Shared browser owner
            config: Navigation settings (defaults to the manager's config)
        """
        self.manager = manager
        self.config = config or manager.config

    async def fetch(self, url: str, keyword: str) -> FetchOutcome:
        """Render ``url`` and test its visible text for ``keyword``."""
        try:
            async with self.manager.isolated_page() as page:
                await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=self.config.navigation_timeout_ms,
                )
                if self.config.settle_ms:
                    await asyncio.sleep(self.config.settle_ms / 1000)
                text = await page.evaluate(EXTRACT_TEXT_SCRIPT)

        except BrowserLaunchError as e:
            return FetchOutcome.failure(str(e))

        except Exception as e:
            message = _first_line(e)
            logger.warning(f"Browser fetch failed for {url}: {type(e).__name__}: {message}")
            return FetchOutcome.failure(message)

        return FetchOutcome.hit(contains_keyword(text or "", keyword))
