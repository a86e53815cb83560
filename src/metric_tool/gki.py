"""Indice glucosa-cetonas (GKI) a partir de lecturas del mismo dia."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

import numpy as np
import pandas as pd

from metric_tool.date_range import DateWindow, filter_measurements
from metric_tool.model import GKIPoint, Measurement, MeasurementType

GLUCOSE_TYPE_NAME = "Glucose"
KETONES_TYPE_NAME = "Ketones"

# mg/dL -> mmol/L para glucosa.
KETONE_FACTOR = 18.0
GKI_MAX = 9.0


@dataclass(frozen=True)
class GKIRoles:
    """Names of the types that play the glucose and ketones roles."""

    glucose: str = GLUCOSE_TYPE_NAME
    ketones: str = KETONES_TYPE_NAME


class GKIBand(str, Enum):
    """Display band of a GKI value."""

    THERAPEUTIC = "therapeutic"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    OTHER = "other"


_BANDS: tuple[tuple[float, float, GKIBand], ...] = (
    (0.5, 1.0, GKIBand.THERAPEUTIC),
    (1.0, 3.0, GKIBand.HIGH),
    (3.0, 6.0, GKIBand.MODERATE),
    (6.0, GKI_MAX, GKIBand.LOW),
)


def calculate_gki(glucose: float, ketones: float) -> float:
    """``glucose / (ketones * 18)`` with IEEE semantics (zero ketones -> inf)."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(glucose) / (np.float64(ketones) * KETONE_FACTOR))


def classify_gki(value: float) -> GKIBand:
    """Band used for coloring; the first band is closed on both ends."""
    lower, upper, band = _BANDS[0]
    if lower <= value <= upper:
        return band
    for lower, upper, band in _BANDS[1:]:
        if lower < value <= upper:
            return band
    return GKIBand.OTHER


def _find_type(
    measurement_types: Sequence[MeasurementType], name: str
) -> MeasurementType | None:
    return next((t for t in measurement_types if t.name == name), None)


def _of_type(
    measurements: Sequence[Measurement], measurement_type: MeasurementType
) -> list[Measurement]:
    return [
        m
        for m in measurements
        if m.measurement_type is not None
        and m.measurement_type.id == measurement_type.id
    ]


def gki_series(
    measurements: Sequence[Measurement],
    measurement_types: Sequence[MeasurementType],
    window: DateWindow | None = None,
    roles: GKIRoles = GKIRoles(),
) -> list[GKIPoint]:
    """Pair glucose and ketone readings by calendar day and compute GKI.

    Each glucose reading is paired with the first ketone reading (in the
    order given) taken on the same local day. Points above ``GKI_MAX`` are
    dropped.

    Args:
        measurements: Readings of any type.
        measurement_types: Used to find the glucose and ketones types by name.
        window: Date window; ``None`` keeps everything.
        roles: Type names for the two roles.

    Returns:
        Points ordered by the glucose reading timestamp. Empty when either
        type is missing.
    """
    glucose_type = _find_type(measurement_types, roles.glucose)
    ketones_type = _find_type(measurement_types, roles.ketones)
    if glucose_type is None or ketones_type is None:
        return []

    in_window = (
        list(measurements)
        if window is None
        else filter_measurements(measurements, window)
    )
    glucose_readings = _of_type(in_window, glucose_type)
    ketone_readings = _of_type(in_window, ketones_type)

    first_ketone_by_day: dict[date, Measurement] = {}
    for reading in ketone_readings:
        first_ketone_by_day.setdefault(reading.day, reading)

    points: list[GKIPoint] = []
    for glucose in glucose_readings:
        ketone = first_ketone_by_day.get(glucose.day)
        if ketone is None:
            continue
        value = calculate_gki(glucose.value, ketone.value)
        if value <= GKI_MAX:
            points.append(GKIPoint(timestamp=glucose.timestamp, gki=value))

    points.sort(key=lambda p: p.timestamp)
    return points


def gki_to_frame(points: Sequence[GKIPoint]) -> pd.DataFrame:
    """Convert GKI points to DataFrame with datetime/date/gki/band."""
    rows = [
        {
            "datetime": p.timestamp,
            "date": p.day,
            "gki": round(p.gki, 2),
            "band": classify_gki(p.gki).value,
        }
        for p in points
    ]
    if not rows:
        return pd.DataFrame(columns=["datetime", "date", "gki", "band"])
    return pd.DataFrame(rows)
