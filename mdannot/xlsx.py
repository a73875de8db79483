"""Export annotation lists to Excel workbooks."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from openpyxl import Workbook  # type: ignore[import-untyped]
from openpyxl.styles import Alignment  # type: ignore[import-untyped]
from openpyxl.utils import get_column_letter  # type: ignore[import-untyped]
from openpyxl.worksheet.table import (  # type: ignore[import-untyped]
    Table,
    TableStyleInfo,
)

from mdannot.anchoring import line_number, line_starts, reconcile
from mdannot.anchoring.types import AnnotationList

Rows = List[Dict[str, Any]]

HEADERS = [
    "number",
    "id",
    "selected_text",
    "comment",
    "created",
    "range_start",
    "range_end",
    "anchor_start",
    "anchor_end",
    "line",
    "status",
]


def _created(timestamp: int) -> str | None:
    """Return the creation time as an ISO string, if known."""

    if not timestamp:
        return None
    moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return moment.replace(tzinfo=None).isoformat(timespec="seconds")


def annotation_rows(annotations: AnnotationList, text: str) -> Rows:
    """Flatten annotations into rows, one per annotation.

    Args:
        annotations: Annotations in insertion order.
        text: Flattened document text used to resolve anchors.

    Returns:
        Row mappings keyed by ``HEADERS``.
    """

    anchors = {item.id: item for item in reconcile(annotations, text)}
    starts = line_starts(text)

    rows: Rows = []
    for number, annotation in enumerate(annotations, start=1):
        anchor = anchors.get(annotation.id)
        stored = annotation.range
        rows.append(
            {
                "number": number,
                "id": annotation.id,
                "selected_text": annotation.selected_text,
                "comment": annotation.comment,
                "created": _created(annotation.timestamp),
                "range_start": stored.start if stored else None,
                "range_end": stored.end if stored else None,
                "anchor_start": anchor.start if anchor else None,
                "anchor_end": anchor.end if anchor else None,
                "line": line_number(starts, anchor.start) if anchor else None,
                "status": "anchored" if anchor else "orphaned",
            }
        )
    return rows


def write_workbook(annotations: AnnotationList, text: str, path: Path) -> None:
    """Write the annotation list into an Excel workbook.

    Args:
        annotations: Annotations in insertion order.
        text: Flattened document text.
        path: Destination file path for the workbook.
    """

    rows = annotation_rows(annotations, text)

    # Replace the default sheet created by openpyxl with our own.
    workbook = Workbook()
    default_sheet = workbook.active
    if default_sheet is not None:
        workbook.remove(default_sheet)
    ws = workbook.create_sheet(title="Annotations")

    ws.append(HEADERS)

    # Track columns holding long text for wrapping and wider columns.
    long_text_columns: set[int] = set()
    for row in rows:
        values = [row.get(header) for header in HEADERS]
        for idx, value in enumerate(values):
            if isinstance(value, str) and len(value) > 50:
                long_text_columns.add(idx)
        ws.append(values)

    for col_idx in long_text_columns:
        for col_cells in ws.iter_cols(
            min_col=col_idx + 1,
            max_col=col_idx + 1,
            min_row=1,
            max_row=ws.max_row,
        ):
            for cell in col_cells:
                cell.alignment = Alignment(wrapText=True)

    for idx, header in enumerate(HEADERS):
        col_letter = get_column_letter(idx + 1)
        if idx in long_text_columns:
            ws.column_dimensions[col_letter].width = 100
        elif header in ("selected_text", "comment", "id", "created"):
            ws.column_dimensions[col_letter].width = 36
        else:
            ws.column_dimensions[col_letter].width = 12

    # A table needs at least one data row.
    if rows:
        end_column = get_column_letter(len(HEADERS))
        table = Table(
            displayName="AnnotationTable",
            ref=f"A1:{end_column}{len(rows) + 1}",
        )
        table.tableStyleInfo = TableStyleInfo(
            name="TableStyleMedium9", showRowStripes=True
        )
        ws.add_table(table)

    workbook.save(path)
