"""Concurrent batch runner.

N worker tasks share one cursor over the URL list. Each worker claims the
next unclaimed index, scans it, stores the result in that index's slot and
reports progress, until the cursor is exhausted. Progress therefore arrives
in completion order while the returned list stays aligned with the input.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from kwscan.config import CONCURRENCY_CEILING
from kwscan.exceptions import InputError
from kwscan.scanner import Scanner
from kwscan.types import ScanResult

logger = logging.getLogger(__name__)

CANCELLED = "Cancelled"

# on_progress(result, completed_count, total); may be sync or async
ProgressCallback = Callable[[ScanResult, int, int], Awaitable[None] | None]


@dataclass(frozen=True)
class ScanBatch:
    """One caller-submitted set of URLs scanned under one keyword and bound.

    Raises:
        InputError: On an empty URL list, blank keyword or concurrency below 1
    """

    urls: list[str]
    keyword: str
    concurrency: int = 20

    def __post_init__(self) -> None:
        if not self.urls:
            raise InputError("At least one URL is required")
        if not self.keyword or not self.keyword.strip():
            raise InputError("Keyword is required")
        if self.concurrency < 1:
            raise InputError(f"Concurrency must be at least 1, got {self.concurrency}")
        object.__setattr__(self, "keyword", self.keyword.strip())

    def __len__(self) -> int:
        return len(self.urls)


class IndexCursor:
    """Monotonic, lock-guarded index dispenser shared by all workers."""

    def __init__(self, size: int) -> None:
        self._size = size
        self._next = 0
        self._lock = asyncio.Lock()

    @property
    def claimed(self) -> int:
        """Number of indexes handed out so far."""
        return self._next

    async def claim(self) -> int | None:
        """Return the next unclaimed index, or None once all are taken."""
        async with self._lock:
            if self._next >= self._size:
                return None
            index = self._next
            self._next += 1
            return index


@dataclass
class RunnerStats:
    """Statistics collected during a batch run."""

    started: int = 0
    completed: int = 0
    cancelled: int = 0
    start_time: float = field(default_factory=time.monotonic)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time


class BatchRunner:
    """Run a ScanBatch with bounded concurrency.

    Example:
        >>> runner = BatchRunner(scanner)
        >>> results = await runner.run(ScanBatch(urls, "widget", concurrency=10))
    """

    def __init__(self, scanner: Scanner, max_concurrency: int = CONCURRENCY_CEILING) -> None:
        """Initialize batch runner.

        Args:
            scanner: Per-URL orchestrator shared by all workers
            max_concurrency: Hard ceiling applied to any requested concurrency
        """
        self.scanner = scanner
        self.max_concurrency = min(max_concurrency, CONCURRENCY_CEILING)
        self.stats = RunnerStats()

    def worker_count(self, batch: ScanBatch) -> int:
        """Effective concurrency: requested value, capped by the ceiling and batch size."""
        return min(batch.concurrency, self.max_concurrency, len(batch.urls))

    async def run(
        self,
        batch: ScanBatch,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[ScanResult]:
        """Scan every URL of ``batch`` and return results in input order.

        Args:
            batch: URLs, keyword and requested concurrency
            on_progress: Called after each URL resolves with
                (result, completed_count, total)
            cancel_event: When set, workers stop claiming new URLs; scans
                already running finish normally and unclaimed slots are
                filled with a "Cancelled" skipped result

        Returns:
            One ScanResult per input URL, ``results[i]`` for ``batch.urls[i]``
        """
        total = len(batch.urls)
        results: list[ScanResult | None] = [None] * total
        cursor = IndexCursor(total)
        self.stats = RunnerStats()
        workers = self.worker_count(batch)

        logger.info(
            f"Scanning {total} URL(s) for {batch.keyword!r} with {workers} concurrent worker(s)"
        )

        async def worker() -> None:
            while cancel_event is None or not cancel_event.is_set():
                index = await cursor.claim()
                if index is None:
                    return

                self.stats.started += 1
                result = await self.scanner.scan_url(batch.urls[index], batch.keyword)
                results[index] = result
                self.stats.completed += 1

                if on_progress is not None:
                    callback_result = on_progress(result, self.stats.completed, total)
                    if inspect.isawaitable(callback_result):
                        await callback_result

        tasks = [
            asyncio.create_task(worker(), name=f"scan-worker-{worker_id}")
            for worker_id in range(workers)
        ]

        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        final: list[ScanResult] = []
        for url, result in zip(batch.urls, results, strict=True):
            if result is None:
                self.stats.cancelled += 1
                result = ScanResult.skipped(url, CANCELLED)
            final.append(result)

        if self.stats.cancelled:
            logger.info(f"Batch cancelled: {self.stats.cancelled} URL(s) not scanned")
        logger.info(
            f"Batch finished: {self.stats.completed}/{total} scanned "
            f"({self.stats.started} started) in {self.stats.elapsed:.1f}s"
        )

        return final
