"""Tests for result and summary types."""

from kwscan.types import ScanResult, ScanSummary


def test_resolved_result() -> None:
    result = ScanResult.resolved("https://a.example/", True, "http")

    assert result.status == "found"
    assert result.result == 1
    assert result.to_dict() == {
        "url": "https://a.example/",
        "status": "found",
        "result": 1,
        "method": "http",
    }


def test_failed_result_keeps_both_reasons() -> None:
    result = ScanResult.failed("https://a.example/", "net::ERR_NAME_NOT_RESOLVED", "blocked")

    assert result.to_dict() == {
        "url": "https://a.example/",
        "status": "error",
        "result": "net::ERR_NAME_NOT_RESOLVED",
        "error": "net::ERR_NAME_NOT_RESOLVED",
        "http_error": "blocked",
    }


def test_summary_counts() -> None:
    results = [
        ScanResult.resolved("https://a.example/", True, "http"),
        ScanResult.resolved("https://b.example/", True, "browser"),
        ScanResult.resolved("https://c.example/", False, "http"),
        ScanResult.failed("https://d.example/", "boom"),
        ScanResult.skipped("https://e.example/x.pdf", "Skipped (PDF/Download)"),
    ]

    summary = ScanSummary.from_results(results)

    assert summary == ScanSummary(total=5, found=2, not_found=1, errors=1, skipped=1)
    assert summary.to_dict() == {
        "total": 5,
        "found": 2,
        "notFound": 1,
        "errors": 1,
        "skipped": 1,
    }


def test_empty_summary() -> None:
    assert ScanSummary.from_results([]).total == 0
