"""Exportacion e importacion CSV de mediciones (respaldo y restauracion)."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from metric_tool.model import Measurement, MeasurementType, local_now, local_time
from metric_tool.storage import RecordStore, StoreError

logger = logging.getLogger(__name__)

CSV_HEADER = "Date,Time,Measurement Type,Value,Unit,Notes"

_DATE_FMT = "%Y-%m-%d"
_TIME_FMT = "%H:%M:%S"
_DATETIME_FMT = f"{_DATE_FMT} {_TIME_FMT}"
_MIN_FIELDS = 5
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class CodecError(Exception):
    """The CSV payload could not be written."""


@dataclass(frozen=True)
class ImportResult:
    """Aggregated outcome of one import call."""

    success: int
    errors: int
    messages: list[str] = field(default_factory=list)


def _escape(text: str) -> str:
    # No quoting: commas are replaced, the change is not reversible.
    return text.replace(",", ";")


def _format_row(measurement: Measurement, measurement_type: MeasurementType) -> str:
    ts = local_time(measurement.timestamp)
    fields = (
        ts.strftime(_DATE_FMT),
        ts.strftime(_TIME_FMT),
        _escape(measurement_type.name),
        repr(float(measurement.value)),
        _escape(measurement_type.unit),
        _escape(measurement.notes or ""),
    )
    return ",".join(fields)


def export_csv(
    measurements: Sequence[Measurement],
    measurement_types: Sequence[MeasurementType] = (),
) -> str:
    """Render measurements as CSV text, oldest first.

    Measurements without a type are skipped. ``measurement_types`` is not
    used for lookup; each measurement carries its own type.

    Returns:
        Header plus one newline-terminated row per exported measurement.
    """
    lines = [CSV_HEADER]
    for measurement in sorted(measurements, key=lambda m: m.timestamp):
        measurement_type = measurement.measurement_type
        if measurement_type is None:
            continue
        lines.append(_format_row(measurement, measurement_type))
    logger.debug("Exported %d measurement rows", len(lines) - 1)
    return "\n".join(lines) + "\n"


def write_export(
    measurements: Sequence[Measurement],
    measurement_types: Sequence[MeasurementType],
    out_dir: Path,
    *,
    today: date | None = None,
) -> Path:
    """Write the CSV export to ``out_dir`` and return its path.

    Raises:
        CodecError: If the file cannot be written.
    """
    day = today or local_now().date()
    out_path = out_dir / f"metric_tool_export_{day.strftime(_DATE_FMT)}.csv"
    text = export_csv(measurements, measurement_types)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        logger.error("Error writing CSV %s: %s", out_path, exc)
        raise CodecError(f"Error writing CSV: {exc}") from exc
    return out_path


def _parse_value(raw: str) -> float | None:
    """Parse a finite ASCII decimal value; ``None`` otherwise."""
    if raw != raw.strip() or "_" in raw or not raw.isascii():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    # nan/inf cannot be stored as a REAL NOT NULL reading.
    return value if math.isfinite(value) else None


def _parse_timestamp(date_str: str, time_str: str) -> datetime | None:
    try:
        parsed = datetime.strptime(f"{date_str} {time_str}", _DATETIME_FMT)
    except ValueError:
        return None
    return local_time(parsed)


def _find_type(
    measurement_types: Sequence[MeasurementType], name: str
) -> MeasurementType | None:
    return next((t for t in measurement_types if t.name == name), None)


def import_csv(
    text: str,
    measurement_types: Sequence[MeasurementType],
    store: RecordStore,
) -> ImportResult:
    """Parse CSV text and save the valid rows.

    Bad rows are skipped and reported; they never abort the batch. Valid
    rows are saved in a single store call once every line has been read.

    Args:
        text: CSV payload; the first line is a header and is not checked.
        measurement_types: Lookup table, matched by exact ``name``.
        store: Destination for the parsed measurements.

    Returns:
        Success count, error count and one message per error, in line order.
    """
    lines = _LINE_BREAK.split(text)
    if len(lines) < 2:
        return ImportResult(success=0, errors=1, messages=["CSV file is empty"])

    staged: list[Measurement] = []
    messages: list[str] = []

    for index, line in enumerate(lines):
        if index == 0 or not line.strip():
            continue

        error = _stage_row(index, line, measurement_types, staged)
        if error is not None:
            logger.debug("Skipping CSV line: %s", error)
            messages.append(error)

    errors = len(messages)
    try:
        store.save_measurements(staged)
    except StoreError as exc:
        logger.error("CSV import not saved: %s", exc)
        messages.append(f"Error saving measurements: {exc}")
        return ImportResult(success=0, errors=errors + 1, messages=messages)

    logger.info("Imported %d measurements (%d errors)", len(staged), errors)
    return ImportResult(success=len(staged), errors=errors, messages=messages)


def _stage_row(
    index: int,
    line: str,
    measurement_types: Sequence[MeasurementType],
    staged: list[Measurement],
) -> str | None:
    """Validate one data line; append it to ``staged`` or return the error."""
    columns = line.split(",")
    if len(columns) < _MIN_FIELDS:
        return f"Row {index}: Invalid format"

    date_str, time_str, type_name, value_str = columns[:4]
    # columns[4] is the unit; the resolved type's unit wins.
    notes = columns[5] if len(columns) > 5 else ""

    measurement_type = _find_type(measurement_types, type_name)
    if measurement_type is None:
        return f"Row {index}: Unknown measurement type '{type_name}'"

    timestamp = _parse_timestamp(date_str, time_str)
    if timestamp is None:
        return f"Row {index}: Invalid date/time format"

    value = _parse_value(value_str)
    if value is None:
        return f"Row {index}: Invalid value '{value_str}'"

    staged.append(
        Measurement(
            value=value,
            timestamp=timestamp,
            notes=notes or None,
            measurement_type=measurement_type,
        )
    )
    return None


def import_csv_file(
    path: Path,
    measurement_types: Sequence[MeasurementType],
    store: RecordStore,
) -> ImportResult:
    """Read a UTF-8 CSV file and import it.

    A file that cannot be read or decoded yields a single error and nothing
    is imported.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Error reading CSV %s: %s", path, exc)
        return ImportResult(
            success=0, errors=1, messages=[f"Error reading CSV: {exc}"]
        )
    return import_csv(text, measurement_types, store)
