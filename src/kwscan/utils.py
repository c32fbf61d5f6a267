"""Utility functions."""

import logging

from rich.logging import RichHandler

# Third-party loggers that flood the progress display during a batch
NOISY_LOGGERS = ("httpx", "httpcore", "playwright", "asyncio")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging with RichHandler for console output.

    Args:
        verbose: If True, sets logging to DEBUG level and shows file paths.
                If False, sets logging to INFO level and limits NOISY_LOGGERS
                to warnings so the progress bar stays readable.
    """
    level = logging.DEBUG if verbose else logging.INFO

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,  # URLs and page errors may contain [brackets]
        show_time=True,
        show_path=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if verbose else logging.WARNING)
