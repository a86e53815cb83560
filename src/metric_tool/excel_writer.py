"""Generacion de Excel formateado con mediciones, resumen diario y GKI."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from metric_tool.model import local_time

_WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Day",
    "datetime": "Date / Time",
    "date": "Date",
    "type": "Measurement Type",
    "value": "Value",
    "unit": "Unit",
    "notes": "Notes",
    "count": "Count",
    "min": "Min",
    "max": "Max",
    "avg": "Average",
    "gki": "GKI",
    "band": "Band",
}

_COLUMN_WIDTHS: tuple[tuple[str, int], ...] = (
    ("Day", 6),
    ("Date / Time", 18),
    ("Date", 12),
    ("Measurement Type", 18),
    ("Value", 10),
    ("Unit", 10),
    ("Notes", 30),
    ("GKI", 8),
    ("Band", 12),
)

_NUMBER_FORMATS: dict[str, str] = {
    "Date / Time": "yyyy-mm-dd hh:mm:ss",
    "Date": "yyyy-mm-dd",
    "Value": "0.00",
    "Average": "0.00",
    "GKI": "0.00",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Sheet names of the workbook."""

    measurements_sheet: str = "Measurements"
    summary_sheet: str = "Daily summary"
    gki_sheet: str = "GKI"


def _weekday_label(value: object) -> str:
    """Convierte una fecha a etiqueta de 3 letras (vacio si no hay fecha)."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    try:
        return _WEEKDAYS[pd.Timestamp(value).weekday()]
    except (ValueError, TypeError):
        return ""


def _naive_local(value: object) -> object:
    if isinstance(value, datetime):
        return local_time(value).replace(tzinfo=None)
    return value


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    """Add weekday, drop timezone and rename headers for display."""
    out = df.copy()
    if "date" in out.columns and not out.empty:
        out.insert(0, "weekday", out["date"].map(_weekday_label))
    if "datetime" in out.columns:
        out["datetime"] = out["datetime"].map(_naive_local)
        if "date" in out.columns:
            out = out.drop(columns=["date"])
    return out.rename(columns=_HEADER_MAP)


def write_measurements_xlsx(
    measurements: pd.DataFrame,
    summary: pd.DataFrame,
    gki: pd.DataFrame,
    out_path: Path,
    layout: ExcelLayout,
) -> None:
    """Write a formatted workbook with one sheet per table.

    Args:
        measurements: Output of ``measurements_to_frame``.
        summary: Output of ``daily_summary``.
        gki: Output of ``gki_to_frame``.
        out_path: Output path for the XLSX file.
        layout: Sheet names.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    sheets = (
        (layout.measurements_sheet, measurements),
        (layout.summary_sheet, summary),
        (layout.gki_sheet, gki),
    )
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for name, df in sheets:
            _prepare(df).to_excel(writer, index=False, sheet_name=name)
            _format_sheet(writer.book[name])


def _style_header_row(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
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
    """Devuelve mapa nombre de cabecera -> indice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    for header, width in _COLUMN_WIDTHS:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    for row in ws.iter_rows(min_row=2):
        for header, fmt in _NUMBER_FORMATS.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
