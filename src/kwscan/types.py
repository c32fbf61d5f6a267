"""Type definitions shared across kwscan.

ScanResult is the one-per-URL outcome handed to callers, FetchOutcome is the
tagged value a fetch tier returns to the scanner, and ScanSummary is the
per-status tally of a finished batch.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

ScanStatus = Literal["found", "not_found", "error", "skipped"]
FetchMethod = Literal["http", "browser"]


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome of scanning a single URL.

    ``result`` is 1/0 for found/not_found and a human-readable string
    otherwise. ``method`` is only set when a tier actually resolved the URL,
    ``error`` only when status is "error". ``http_error`` keeps the HTTP
    tier's reason when both tiers failed.
    """

    url: str
    status: ScanStatus
    result: int | str
    method: FetchMethod | None = None
    error: str | None = None
    http_error: str | None = None

    @classmethod
    def resolved(cls, url: str, found: bool, method: FetchMethod) -> "ScanResult":
        return cls(
            url=url,
            status="found" if found else "not_found",
            result=1 if found else 0,
            method=method,
        )

    @classmethod
    def skipped(cls, url: str, reason: str) -> "ScanResult":
        return cls(url=url, status="skipped", result=reason)

    @classmethod
    def failed(cls, url: str, message: str, http_error: str | None = None) -> "ScanResult":
        return cls(url=url, status="error", result=message, error=message, http_error=http_error)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict, omitting absent optional fields."""
        data: dict[str, Any] = {"url": self.url, "status": self.status, "result": self.result}
        if self.method is not None:
            data["method"] = self.method
        if self.error is not None:
            data["error"] = self.error
        if self.http_error is not None:
            data["http_error"] = self.http_error
        return data


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Tagged result of one fetch tier.

    A failed outcome carries ``error`` and makes the scanner move on to the
    next tier; it is never raised.
    """

    success: bool
    found: bool | None = None
    raw_body: str | None = None
    error: str | None = None

    @classmethod
    def hit(cls, found: bool, raw_body: str | None = None) -> "FetchOutcome":
        return cls(success=True, found=found, raw_body=raw_body)

    @classmethod
    def failure(cls, error: str) -> "FetchOutcome":
        return cls(success=False, error=error)


@dataclass(frozen=True, slots=True)
class ScanSummary:
    """Per-status counts for a finished batch."""

    total: int
    found: int
    not_found: int
    errors: int
    skipped: int

    @classmethod
    def from_results(cls, results: Iterable[ScanResult]) -> "ScanSummary":
        counts = {"found": 0, "not_found": 0, "error": 0, "skipped": 0}
        total = 0
        for result in results:
            counts[result.status] += 1
            total += 1
        return cls(
            total=total,
            found=counts["found"],
            not_found=counts["not_found"],
            errors=counts["error"],
            skipped=counts["skipped"],
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "found": self.found,
            "notFound": self.not_found,
            "errors": self.errors,
            "skipped": self.skipped,
        }


class Fetcher(Protocol):
    """Anything that can test one URL for a keyword (a fetch tier)."""

    async def fetch(self, url: str, keyword: str) -> FetchOutcome:
        """Fetch ``url`` and report whether ``keyword`` appears in its text."""
        ...
