"""Vistas tabulares (pandas) de las mediciones."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from metric_tool.model import Measurement

MEASUREMENT_COLUMNS = ["datetime", "date", "type", "value", "unit", "notes"]
SUMMARY_COLUMNS = ["date", "type", "count", "min", "max", "avg"]


def measurements_to_frame(measurements: Sequence[Measurement]) -> pd.DataFrame:
    """Convert measurements to DataFrame, one row per reading.

    Readings without a type are left out, as in the CSV export.
    """
    rows = [
        {
            "datetime": m.timestamp,
            "date": m.day,
            "type": m.measurement_type.name,
            "value": m.value,
            "unit": m.measurement_type.unit,
            "notes": m.notes,
        }
        for m in measurements
        if m.measurement_type is not None
    ]
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=MEASUREMENT_COLUMNS)
    return df.sort_values("datetime", kind="stable").reset_index(drop=True)


def daily_summary(events: pd.DataFrame) -> pd.DataFrame:
    """Aggregate readings by day and type (count/min/max/avg)."""
    if events.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)
    g = events.groupby(["date", "type"], as_index=False).agg(
        count=("value", "count"),
        min=("value", "min"),
        max=("value", "max"),
        avg=("value", "mean"),
    )
    g["avg"] = g["avg"].round(2)
    return g.sort_values(["date", "type"]).reset_index(drop=True)
