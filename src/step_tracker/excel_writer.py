"""Formatted Excel report of chart series."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

logger = logging.getLogger(__name__)

STEPS_FORMAT = "#,##0"
WEIGHT_FORMAT = "0.0"

_HEADER_MAP: dict[str, str] = {
    "date": "Date",
    "weekday_title": "Weekday",
    "value": "Value",
}


@dataclass(frozen=True)
class ChartSheet:
    """One worksheet: a chart frame and the number format of its values."""

    name: str
    frame: pd.DataFrame
    value_format: str = STEPS_FORMAT


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the report."""

    date_format: str = "dd/mm/yyyy"
    date_width: int = 14
    weekday_width: int = 12
    value_width: int = 12


def _prepare_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Drop the weekday number, strip timezones and rename headers."""
    export_df = frame.copy()
    if "weekday" in export_df.columns:
        export_df = export_df.drop(columns=["weekday"])
    if "date" in export_df.columns and not export_df.empty:
        export_df["date"] = pd.to_datetime(
            export_df["date"].map(lambda d: d.replace(tzinfo=None))
        )
    return export_df.rename(columns=_HEADER_MAP)


def write_chart_xlsx(
    sheets: Sequence[ChartSheet], out_path: Path, layout: ExcelLayout
) -> None:
    """Write a formatted Excel file with one worksheet per chart series.

    Args:
        sheets: Chart series to export, in worksheet order.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for sheet in sheets:
            export_df = _prepare_frame(sheet.frame)
            export_df.to_excel(writer, index=False, sheet_name=sheet.name)
            _format_sheet(writer.book[sheet.name], sheet.value_format, layout)
    logger.info("Wrote %d sheet(s) to %s", len(sheets), out_path)


def _style_header_row(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center")
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Map header name -> 1-based column index."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(
    ws: Any, col_index: dict[str, int], layout: ExcelLayout
) -> None:
    widths = [
        ("Date", layout.date_width),
        ("Weekday", layout.weekday_width),
        ("Value", layout.value_width),
    ]
    for header, width in widths:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(
    ws: Any, col_index: dict[str, int], value_format: str, layout: ExcelLayout
) -> None:
    fmt_map = {"Date": layout.date_format, "Value": value_format}
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any, value_format: str, layout: ExcelLayout) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
        value_format: Number format for the value column.
        layout: Excel layout parameters.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index, layout)
    _apply_number_formats(ws, col_index, value_format, layout)
