"""Batch submission and progress event stream.

stream_scan() is the boundary between the scan engine and whatever presents
it (CLI progress bar, web endpoint, ...). It validates the request, runs the
batch in a background task and yields events through a queue:

    start -> progress (one per URL, completion order) -> complete | error

The shared browser is released exactly once when the batch ends, whether it
completed, failed or the consumer stopped listening.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from kwscan.browser import BrowserFetcher, BrowserManager
from kwscan.config import KwscanConfig
from kwscan.exceptions import InputError
from kwscan.http_client import create_http_client
from kwscan.http_tier import HttpFetcher
from kwscan.runner import BatchRunner, ProgressCallback, ScanBatch
from kwscan.scanner import Scanner
from kwscan.types import ScanResult, ScanSummary

logger = logging.getLogger(__name__)

# Batches abandoned by their consumer keep running until in-flight scans finish
_background_batches: set[asyncio.Task[None]] = set()


class BatchRequest(BaseModel):
    """Caller-submitted batch parameters.

    URLs are trimmed and blank entries dropped; the keyword is trimmed.
    """

    urls: list[str] = Field(..., description="URLs to scan, in order")
    keyword: str = Field(..., description="Keyword to look for (case-insensitive)")
    concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Requested concurrent scans (None = configured default)",
    )

    @field_validator("urls")
    @classmethod
    def clean_urls(cls, v: list[str]) -> list[str]:
        cleaned = [url.strip() for url in v if url.strip()]
        if not cleaned:
            raise ValueError("No valid URLs provided")
        return cleaned

    @field_validator("keyword")
    @classmethod
    def clean_keyword(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Keyword is required")
        return v.strip()

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "BatchRequest":
        """Validate raw request data.

        Raises:
            InputError: With the first validation problem
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            field_name = ".".join(str(part) for part in first["loc"]) or "request"
            message = first["msg"].removeprefix("Value error, ")
            raise InputError(f"{field_name}: {message}") from e

    def to_batch(self, config: KwscanConfig) -> ScanBatch:
        """Build the ScanBatch, applying the configured default and ceiling."""
        requested = self.concurrency or config.batch.default_concurrency
        return ScanBatch(
            urls=list(self.urls),
            keyword=self.keyword,
            concurrency=min(requested, config.batch.max_concurrency),
        )


@dataclass(frozen=True)
class StartEvent:
    type: ClassVar[str] = "start"

    total: int
    keyword: str
    concurrency: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "total": self.total,
            "keyword": self.keyword,
            "concurrency": self.concurrency,
        }


@dataclass(frozen=True)
class ProgressEvent:
    """One URL finished. ``index`` is the completion count, not the input position."""

    type: ClassVar[str] = "progress"

    index: int
    total: int
    result: ScanResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "index": self.index,
            "total": self.total,
            "result": self.result.to_dict(),
        }


@dataclass(frozen=True)
class CompleteEvent:
    type: ClassVar[str] = "complete"

    summary: ScanSummary
    results: list[ScanResult]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "summary": self.summary.to_dict(),
            "results": [result.to_dict() for result in self.results],
        }


@dataclass(frozen=True)
class ErrorEvent:
    """Batch-level failure; progress already streamed stays valid."""

    type: ClassVar[str] = "error"

    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message}


ScanEvent = StartEvent | ProgressEvent | CompleteEvent | ErrorEvent


def build_scanner(
    config: KwscanConfig, client: httpx.AsyncClient, browser: BrowserManager
) -> Scanner:
    """Wire both fetch tiers into a Scanner."""
    return Scanner(
        http_fetcher=HttpFetcher(client, config.http),
        browser_fetcher=BrowserFetcher(browser, config.browser),
    )


def stream_scan(
    request: BatchRequest | Mapping[str, Any],
    config: KwscanConfig | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    browser: BrowserManager | None = None,
    scanner: Scanner | None = None,
    cancel_event: asyncio.Event | None = None,
) -> AsyncGenerator[ScanEvent, None]:
    """Validate a batch request and return its event stream.

    Input errors are raised here, before any scan starts.

    Args:
        request: BatchRequest or raw mapping with urls/keyword/concurrency
        config: Configuration (defaults apply when None)
        client: HTTP client to reuse; created and closed per batch when None
        browser: Browser manager; released when the batch ends
        scanner: Pre-built scanner (overrides client-based wiring)
        cancel_event: Set to stop dispatching new URLs

    Raises:
        InputError: If the request is invalid
    """
    config = config or KwscanConfig()
    if not isinstance(request, BatchRequest):
        request = BatchRequest.parse(request)
    batch = request.to_batch(config)

    return _event_stream(
        batch,
        config,
        client=client,
        browser=browser or BrowserManager(config.browser),
        scanner=scanner,
        cancel_event=cancel_event or asyncio.Event(),
    )


async def _event_stream(
    batch: ScanBatch,
    config: KwscanConfig,
    *,
    client: httpx.AsyncClient | None,
    browser: BrowserManager,
    scanner: Scanner | None,
    cancel_event: asyncio.Event,
) -> AsyncGenerator[ScanEvent, None]:
    queue: asyncio.Queue[ScanEvent | None] = asyncio.Queue()

    def on_progress(result: ScanResult, completed: int, total: int) -> None:
        queue.put_nowait(ProgressEvent(index=completed, total=total, result=result))

    async def produce() -> None:
        owned_client: httpx.AsyncClient | None = None
        try:
            batch_scanner = scanner
            if batch_scanner is None:
                http_client = client
                if http_client is None:
                    owned_client = http_client = create_http_client(config)
                batch_scanner = build_scanner(config, http_client, browser)

            runner = BatchRunner(batch_scanner, config.batch.max_concurrency)
            results = await runner.run(batch, on_progress=on_progress, cancel_event=cancel_event)
            queue.put_nowait(CompleteEvent(ScanSummary.from_results(results), results))

        except Exception as e:
            logger.exception("Batch failed")
            queue.put_nowait(ErrorEvent(str(e) or type(e).__name__))

        finally:
            await browser.release()
            if owned_client is not None:
                await owned_client.aclose()
            queue.put_nowait(None)

    yield StartEvent(total=len(batch), keyword=batch.keyword, concurrency=batch.concurrency)

    task = asyncio.create_task(produce(), name="scan-batch")
    try:
        while (event := await queue.get()) is not None:
            yield event
    finally:
        if not task.done():
            logger.info("Event consumer went away, cancelling remaining URLs")
            cancel_event.set()
            _background_batches.add(task)
            task.add_done_callback(_background_batches.discard)


async def scan_urls(
    urls: list[str],
    keyword: str,
    concurrency: int | None = None,
    config: KwscanConfig | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> list[ScanResult]:
    """Scan a batch and return its results (no event stream).

    Owns the HTTP client and the shared browser for the duration of the call.

    Raises:
        InputError: If the parameters are invalid
    """
    config = config or KwscanConfig()
    request = BatchRequest.parse({"urls": urls, "keyword": keyword, "concurrency": concurrency})
    batch = request.to_batch(config)

    async with (
        create_http_client(config) as client,
        BrowserManager(config.browser) as browser,
    ):
        runner = BatchRunner(build_scanner(config, client, browser), config.batch.max_concurrency)
        return await runner.run(batch, on_progress=on_progress, cancel_event=cancel_event)
