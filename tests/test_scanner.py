"""Tests for per-URL tier orchestration."""

import pytest

from kwscan.scanner import (
    INVALID_URL,
    INVALID_URL_DETAIL,
    SKIPPED_DOWNLOAD,
    UNKNOWN_ERROR,
    Scanner,
    is_valid_url,
)
from kwscan.types import FetchOutcome
from tests.conftest import FakeFetcher

URL = "https://shop.example/widgets"


@pytest.mark.parametrize(
    ("url", "valid"),
    [
        ("https://example.com/", True),
        ("http://example.com:8080/path?q=1", True),
        ("HTTPS://EXAMPLE.COM", True),
        ("not-a-url", False),
        ("example.com/page", False),
        ("ftp://example.com/file", False),
        ("mailto:someone@example.com", False),
        ("https://", False),
        ("http://example.com:notaport/", False),
        ("", False),
    ],
)
def test_is_valid_url(url: str, valid: bool) -> None:
    assert is_valid_url(url) is valid


class TestScanUrl:
    @pytest.mark.asyncio
    async def test_invalid_url_never_fetched(self) -> None:
        http, browser = FakeFetcher(), FakeFetcher()

        result = await Scanner(http, browser).scan_url("not-a-url", "widget")

        assert result.status == "error"
        assert result.result == INVALID_URL
        assert result.error == INVALID_URL_DETAIL
        assert result.method is None
        assert http.calls == []
        assert browser.calls == []

    @pytest.mark.asyncio
    async def test_download_skipped_without_fetch(self) -> None:
        http, browser = FakeFetcher(), FakeFetcher()

        result = await Scanner(http, browser).scan_url("https://shop.example/x.pdf", "widget")

        assert result.status == "skipped"
        assert result.result == SKIPPED_DOWNLOAD
        assert result.method is None
        assert result.error is None
        assert http.calls == []
        assert browser.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("found", "status", "value"), [(True, "found", 1), (False, "not_found", 0)]
    )
    async def test_http_hit_skips_browser(self, found: bool, status: str, value: int) -> None:
        http = FakeFetcher(default=FetchOutcome.hit(found))
        browser = FakeFetcher()

        result = await Scanner(http, browser).scan_url(URL, "widget")

        assert result.status == status
        assert result.result == value
        assert result.method == "http"
        assert result.error is None
        assert http.calls == [URL]
        assert browser.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", ["blocked", "needs_js", "HTTP 502", "Connection refused"])
    async def test_http_failure_falls_back_to_browser_once(self, reason: str) -> None:
        http = FakeFetcher(default=FetchOutcome.failure(reason))
        browser = FakeFetcher(default=FetchOutcome.hit(True))

        result = await Scanner(http, browser).scan_url(URL, "widget")

        assert result.status == "found"
        assert result.result == 1
        assert result.method == "browser"
        assert result.http_error is None
        assert http.calls == [URL]
        assert browser.calls == [URL]

    @pytest.mark.asyncio
    async def test_both_tiers_fail(self) -> None:
        http = FakeFetcher(default=FetchOutcome.failure("blocked"))
        browser = FakeFetcher(default=FetchOutcome.failure("Timeout 60000ms exceeded."))

        result = await Scanner(http, browser).scan_url(URL, "widget")

        assert result.status == "error"
        assert result.result == "Timeout 60000ms exceeded."
        assert result.error == "Timeout 60000ms exceeded."
        assert result.http_error == "blocked"
        assert result.method is None
        assert browser.calls == [URL]

    @pytest.mark.asyncio
    async def test_browser_failure_without_message(self) -> None:
        http = FakeFetcher(default=FetchOutcome.failure("needs_js"))
        browser = FakeFetcher(default=FetchOutcome(success=False))

        result = await Scanner(http, browser).scan_url(URL, "widget")

        assert result.error == UNKNOWN_ERROR
