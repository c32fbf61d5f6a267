"""Result export.

Writes a finished batch as CSV, JSON or an Excel workbook. Every format has
the same four columns: URL, the keyword verdict (1/0 or the skip/error
text), the tier that resolved the URL and the error message.
"""

import csv
import io
import json
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Literal, cast

import aiofiles
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from kwscan.types import ScanResult, ScanSummary

ExportFormat = Literal["csv", "json", "xlsx"]

EXPORT_FORMATS: tuple[ExportFormat, ...] = ("csv", "json", "xlsx")
COLUMN_WIDTHS = (60, 20, 10, 40)
SHEET_TITLE = "Scan Results"


def export_headers(keyword: str) -> list[str]:
    return ["URL", f'Contains "{keyword}"', "Method", "Error"]


def export_rows(results: Sequence[ScanResult]) -> list[list[str | int]]:
    """One row per result, absent method/error as empty strings."""
    return [
        [result.url, result.result, result.method or "", result.error or ""]
        for result in results
    ]


def export_filename(fmt: ExportFormat, today: date | None = None) -> str:
    """Default file name, e.g. ``scan-results-2024-05-01.csv``."""
    stamp = (today or date.today()).isoformat()
    return f"scan-results-{stamp}.{fmt}"


def generate_csv(results: Sequence[ScanResult], keyword: str) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(export_headers(keyword))
    writer.writerows(export_rows(results))
    return buffer.getvalue()


def generate_json(results: Sequence[ScanResult], keyword: str) -> str:
    payload = {
        "keyword": keyword,
        "summary": ScanSummary.from_results(results).to_dict(),
        "results": [result.to_dict() for result in results],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def build_workbook(results: Sequence[ScanResult], keyword: str) -> Workbook:
    """Single-sheet workbook with a bold header row and fixed column widths."""
    workbook = Workbook()
    sheet = workbook.active
    assert sheet is not None  # A new workbook always has one sheet
    sheet.title = SHEET_TITLE

    sheet.append(export_headers(keyword))
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for row in export_rows(results):
        sheet.append(row)

    for column, width in enumerate(COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(column)].width = width

    return workbook


def resolve_format(path: Path, fmt: str | None = None) -> ExportFormat:
    """Export format from ``fmt`` or, when absent, from the suffix of ``path``.

    Raises:
        ValueError: If the format is not csv, json or xlsx
    """
    resolved = (fmt or path.suffix.lstrip(".")).lower()
    if resolved not in EXPORT_FORMATS:
        raise ValueError(
            f"Unsupported export format: {resolved!r} (expected one of {', '.join(EXPORT_FORMATS)})"
        )
    return cast("ExportFormat", resolved)


async def write_results(
    results: Sequence[ScanResult],
    keyword: str,
    path: Path,
    fmt: ExportFormat | None = None,
) -> Path:
    """Write results to ``path`` in the given format.

    The format defaults to the file suffix.

    Raises:
        ValueError: If the format is not csv, json or xlsx
    """
    resolved = resolve_format(path, fmt)

    path.parent.mkdir(parents=True, exist_ok=True)

    if resolved == "xlsx":
        build_workbook(results, keyword).save(path)
        return path

    if resolved == "csv":
        content = generate_csv(results, keyword)
    else:
        content = generate_json(results, keyword)
    async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
        await f.write(content)
    return path
