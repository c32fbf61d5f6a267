"""Command line interface.

CLI module using Typer with Rich-formatted output for the scan, validate and
init commands. The scan command renders the batch event stream as a
progress bar and a summary table, and optionally exports the results.
"""

# ruff: noqa: B008

import asyncio
from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from kwscan import __version__
from kwscan.config import CONCURRENCY_CEILING, KwscanConfig, load_config
from kwscan.events import (
    BatchRequest,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    StartEvent,
    stream_scan,
)
from kwscan.exceptions import ConfigError, InputError, KwscanError
from kwscan.export import ExportFormat, resolve_format, write_results
from kwscan.types import ScanResult, ScanSummary

console = Console()

app = typer.Typer(
    name="kwscan",
    help="kwscan - check a batch of URLs for a keyword",
    add_completion=False,
)

STATUS_STYLES = {
    "found": "green",
    "not_found": "yellow",
    "error": "red",
    "skipped": "dim",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"kwscan version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """kwscan - check a batch of URLs for a keyword."""
    pass


def read_url_file(path: Path) -> list[str]:
    """Read URLs from a text file: one per line, blank lines and # comments ignored."""
    urls = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            urls.append(line)
    return urls


async def run_scan(
    request: BatchRequest,
    config: KwscanConfig,
    show_results: bool = True,
) -> tuple[list[ScanResult], ScanSummary]:
    """Drive the event stream with a Rich progress bar.

    Raises:
        KwscanError: If the batch failed as a whole
    """
    events = stream_scan(request, config)
    outcome: tuple[list[ScanResult], ScanSummary] | None = None

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        console=console,
        expand=True,
    ) as progress:
        task_id = progress.add_task("[cyan]Scanning", total=None)

        async for event in events:
            if isinstance(event, StartEvent):
                progress.update(task_id, total=event.total)
                keyword = escape(repr(event.keyword))
                progress.console.print(
                    f"[cyan]Scanning {event.total} URL(s) for[/cyan] {keyword} "
                    f"[dim](concurrency {event.concurrency})[/dim]"
                )

            elif isinstance(event, ProgressEvent):
                progress.update(task_id, completed=event.index)
                if show_results:
                    result = event.result
                    style = STATUS_STYLES[result.status]
                    method = f" via {result.method}" if result.method else ""
                    progress.console.print(
                        f"[{style}]{result.status:<9}[/{style}] {escape(result.url)}{method}",
                        markup=True,
                        highlight=False,
                    )

            elif isinstance(event, CompleteEvent):
                outcome = (event.results, event.summary)

            elif isinstance(event, ErrorEvent):
                raise KwscanError(f"Batch failed: {event.message}")

    if outcome is None:
        raise KwscanError("Event stream ended without a result")
    return outcome


def print_summary(summary: ScanSummary, keyword: str) -> None:
    table = Table(title=f"Scan Summary: {escape(repr(keyword))}")
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("[green]Found[/green]", str(summary.found))
    table.add_row("[yellow]Not found[/yellow]", str(summary.not_found))
    table.add_row("[red]Errors[/red]", str(summary.errors))
    table.add_row("[dim]Skipped[/dim]", str(summary.skipped))
    table.add_row("Total", str(summary.total))

    console.print(table)


@app.command()
def scan(
    keyword: str = typer.Argument(..., help="Keyword to look for (case-insensitive)"),
    urls: list[str] | None = typer.Argument(None, help="URLs to scan"),
    url_file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Text file with one URL per line",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        "-n",
        help=f"Concurrent scans (default 20, capped at {CONCURRENCY_CEILING})",
        min=1,
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML config file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write results to this file",
    ),
    fmt: str | None = typer.Option(
        None,
        "--format",
        help="Export format: csv, json or xlsx (default: output file suffix)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only show the progress bar and summary",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose logging",
    ),
) -> None:
    """Scan URLs for KEYWORD.

    URLs come from the command line and/or --file. Each page is fetched over
    plain HTTP first and retried once in a headless browser when it looks
    blocked or script-rendered.
    """
    from kwscan.utils import setup_logging

    setup_logging(verbose=verbose)

    try:
        kw_config = load_config(config) if config else KwscanConfig()

        all_urls = list(urls or [])
        if url_file:
            all_urls.extend(read_url_file(url_file))

        # Fail on a bad --format or -o suffix before any URL is fetched
        export_format: ExportFormat | None = None
        if output is not None or fmt is not None:
            try:
                export_format = resolve_format(output or Path(), fmt)
            except ValueError as e:
                raise InputError(str(e)) from e

        request = BatchRequest.parse(
            {"urls": all_urls, "keyword": keyword, "concurrency": concurrency}
        )

        results, summary = asyncio.run(run_scan(request, kw_config, show_results=not quiet))

        print_summary(summary, request.keyword)

        if output:
            written = asyncio.run(write_results(results, request.keyword, output, export_format))
            console.print(f"[green]Results written to:[/green] {written}")

    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1) from None

    except InputError as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        raise typer.Exit(code=1) from None

    except KwscanError as e:
        console.print(f"[red]Scan failed:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(code=1) from None

    except ValueError as e:
        console.print(f"[red]Export failed:[/red] {e}")
        raise typer.Exit(code=1) from None

    except KeyboardInterrupt:
        console.print("\n[yellow]Scan interrupted by user[/yellow]")
        raise typer.Exit(code=130) from None


@app.command()
def validate(
    config_path: Path = typer.Argument(
        ...,
        help="Path to YAML config file to validate",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
) -> None:
    """Validate a kwscan configuration file."""
    try:
        console.print(f"[cyan]Validating configuration:[/cyan] {config_path}")

        kw_config = load_config(config_path)

        console.print("[green][OK] Configuration is valid![/green]\n")

        table = Table(title="Configuration Summary")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("HTTP Timeout", f"{kw_config.http.timeout_seconds:g}s")
        table.add_row("Max Redirects", str(kw_config.http.max_redirects))
        table.add_row("Browser Timeout", f"{kw_config.browser.navigation_timeout_ms}ms")
        table.add_row("Render Settle", f"{kw_config.browser.settle_ms}ms")
        table.add_row("Default Concurrency", str(kw_config.batch.default_concurrency))
        table.add_row("Max Concurrency", str(kw_config.batch.max_concurrency))

        console.print(table)

    except ConfigError as e:
        console.print("[red][FAIL] Configuration validation failed:[/red]\n")
        console.print(str(e), markup=False)
        raise typer.Exit(code=1) from None


@app.command()
def init(
    output_path: Path | None = typer.Argument(
        None,
        help="Output path for generated config file (default: kwscan.yaml)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing file",
    ),
) -> None:
    """Write a configuration file with all default values."""
    if output_path is None:
        output_path = Path("kwscan.yaml")

    if output_path.exists() and not force:
        console.print(f"[red]Error:[/red] File already exists: {output_path}")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(code=1)

    config_template = KwscanConfig().model_dump()

    with output_path.open("w", encoding="utf-8") as f:
        f.write("# kwscan configuration\n\n")
        yaml.dump(config_template, f, default_flow_style=False, sort_keys=False)

    console.print(f"[green][OK] Configuration created:[/green] {output_path}")
    console.print("\n[dim]Next steps:[/dim]")
    console.print(f"  1. Edit {output_path} to customize settings")
    console.print(f"  2. Run: kwscan validate {output_path}")
    console.print(f"  3. Run: kwscan scan <keyword> --file urls.txt --config {output_path}")


if __name__ == "__main__":
    app()
