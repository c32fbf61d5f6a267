"""Pytest fixtures for kwscan tests."""

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass, field
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kwscan.config import BatchConfig, BrowserConfig, KwscanConfig
from kwscan.types import FetchOutcome

FILLER = "Lorem ipsum dolor sit amet, consectetur adipiscing elit. " * 12


@pytest.fixture
def config() -> KwscanConfig:
    """Default configuration with the browser settle pause disabled."""
    return KwscanConfig(
        browser=BrowserConfig(settle_ms=0),
        batch=BatchConfig(default_concurrency=5),
    )


@pytest.fixture
def article_html() -> str:
    """Server-rendered page with plenty of visible text and a hidden keyword in a script."""
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Widget Catalog</title>
    <style>.gadget {{ color: red; }}</style>
</head>
<body>
    <h1>Our Widget Range</h1>
    <p>{FILLER}</p>
    <script>var secret = "gizmo";</script>
    <noscript>Enable JavaScript to see the gizmo</noscript>
</body>
</html>"""


@pytest.fixture
def spa_shell_html() -> str:
    """Client-rendered shell: empty mount point, almost no text."""
    return """<!DOCTYPE html>
<html>
<head><title>App</title></head>
<body>
    <div id="root"></div>
    <script src="/static/js/main.js"></script>
</body>
</html>"""


@pytest.fixture
def captcha_html() -> str:
    return """<html><body>
<h1>Please verify you are a human</h1>
<div class="g-recaptcha">captcha</div>
</body></html>"""


@dataclass
class InFlightTracker:
    """Counts fetches running at the same moment across fetchers."""

    in_flight: int = 0
    max_in_flight: int = 0

    def enter(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)

    def exit(self) -> None:
        self.in_flight -= 1


@dataclass
class FakeFetcher:
    """Scripted fetch tier.

    Returns ``outcomes[url]`` (or ``default``) after sleeping ``delays[url]``
    seconds, and records every URL it was asked for.
    """

    outcomes: dict[str, FetchOutcome] = field(default_factory=dict)
    default: FetchOutcome = field(default_factory=lambda: FetchOutcome.hit(False))
    delays: dict[str, float] = field(default_factory=dict)
    tracker: InFlightTracker | None = None
    calls: list[str] = field(default_factory=list)

    async def fetch(self, url: str, keyword: str) -> FetchOutcome:
        self.calls.append(url)
        if self.tracker is not None:
            self.tracker.enter()
        try:
            await asyncio.sleep(self.delays.get(url, 0))
        finally:
            if self.tracker is not None:
                self.tracker.exit()
        return self.outcomes.get(url, self.default)


@dataclass
class PlaywrightMocks:
    """Handles to the mocked Playwright object graph."""

    factory: MagicMock
    playwright: MagicMock
    browser: MagicMock
    context: MagicMock
    page: MagicMock


@pytest.fixture
def mock_playwright() -> Iterator[PlaywrightMocks]:
    """Patch kwscan.browser.async_playwright with a fully mocked Chromium.

    page.evaluate returns "" by default; tests override it as needed.
    """
    page = MagicMock()
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(return_value="")
    page.close = AsyncMock()
    page.set_default_timeout = MagicMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.route = AsyncMock()
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.is_connected = MagicMock(return_value=True)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    factory = MagicMock()
    factory.return_value.start = AsyncMock(return_value=playwright)

    with patch("kwscan.browser.async_playwright", factory):
        yield PlaywrightMocks(
            factory=factory,
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
        )
