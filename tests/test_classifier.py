"""Tests for URL and response classification heuristics."""

import pytest

from kwscan.classifier import (
    MIN_RENDERED_TEXT_LENGTH,
    is_blocked,
    needs_rendering,
    should_skip,
)


class TestShouldSkip:
    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/report.pdf",
            "https://example.com/REPORT.PDF",
            "https://example.com/setup.exe",
            "https://example.com/archive.zip",
            "https://example.com/app.dmg",
            "https://example.com/report.pdf?version=2",
            "https://example.com/pdf/annual",
            "https://example.com/download/latest",
            "https://example.com/assets/file-pdf-1234",
        ],
    )
    def test_downloads_are_skipped(self, url: str) -> None:
        assert should_skip(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/",
            "https://example.com/products/widget",
            "https://example.com/pdfs-explained",
            "https://example.com/zip-codes",
        ],
    )
    def test_pages_are_not_skipped(self, url: str) -> None:
        assert not should_skip(url)


class TestIsBlocked:
    @pytest.mark.parametrize("status", [403, 429, 503])
    def test_blocked_status(self, status: int) -> None:
        assert is_blocked(status, "<html><body>fine</body></html>")

    def test_marker_in_body(self, captcha_html: str) -> None:
        assert is_blocked(200, captcha_html)

    @pytest.mark.parametrize(
        "body",
        ["Checking your browser - Cloudflare", "ACCESS DENIED", "Rate limit exceeded"],
    )
    def test_markers_case_insensitive(self, body: str) -> None:
        assert is_blocked(200, body)

    def test_normal_page(self, article_html: str) -> None:
        assert not is_blocked(200, article_html)

    def test_not_found_is_not_blocked(self) -> None:
        assert not is_blocked(404, "<html><body>Not Found</body></html>")


class TestNeedsRendering:
    def test_spa_shell(self, spa_shell_html: str) -> None:
        assert needs_rendering(spa_shell_html)

    @pytest.mark.parametrize("mount", ['id="root"', 'id="__next"', 'id="app"'])
    def test_known_mount_points(self, mount: str) -> None:
        assert needs_rendering(f"<html><body><div {mount}>Loading</div></body></html>")

    def test_short_page_without_mount_point(self) -> None:
        assert not needs_rendering("<html><body><p>Tiny page</p></body></html>")

    def test_mount_point_with_enough_text(self) -> None:
        text = "x" * MIN_RENDERED_TEXT_LENGTH
        assert not needs_rendering(f'<html><body><div id="root"><p>{text}</p></div></body></html>')

    def test_script_text_does_not_count(self) -> None:
        script = "var bundle = '" + "y" * 2000 + "';"
        markup = f'<html><body><div id="app"></div><script>{script}</script></body></html>'
        assert needs_rendering(markup)

    def test_server_rendered_article(self, article_html: str) -> None:
        assert not needs_rendering(article_html)

    def test_empty_body(self) -> None:
        assert not needs_rendering("")
