"""Modelos tipados para tipos de medicion, mediciones y puntos GKI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4

from dateutil import tz

_LOCAL_TZ = tz.tzlocal()


def local_time(value: datetime) -> datetime:
    """Return ``value`` as an aware datetime in the local zone.

    Naive datetimes are taken as already being local wall-clock time.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=_LOCAL_TZ)
    return value.astimezone(_LOCAL_TZ)


def local_now() -> datetime:
    """Current wall-clock time in the local zone."""
    return datetime.now(tz=_LOCAL_TZ)


@dataclass(frozen=True)
class MeasurementType:
    """User-defined category of tracked numeric quantity."""

    name: str
    unit: str
    color_hex: str = "#007AFF"
    emoji: str | None = None
    is_system_type: bool = False
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=local_now)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("MeasurementType.name must not be empty")
        object.__setattr__(self, "created_at", local_time(self.created_at))


@dataclass(frozen=True)
class Measurement:
    """One timestamped reading belonging to a measurement type."""

    value: float
    timestamp: datetime
    notes: str | None = None
    measurement_type: MeasurementType | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", local_time(self.timestamp))

    @property
    def day(self) -> date:
        """Calendar day (local time) of the reading."""
        return self.timestamp.date()


@dataclass(frozen=True)
class GKIPoint:
    """Derived Glucose-Ketone Index value (not persisted)."""

    timestamp: datetime
    gki: float

    @property
    def day(self) -> date:
        return local_time(self.timestamp).date()


# Tipos creados en el primer arranque (no se pueden borrar desde la UI).
DEFAULT_TYPES: tuple[tuple[str, str, str, str], ...] = (
    ("Glucose", "mg/dL", "FF6B6B", "\U0001FA78"),
    ("Ketones", "mmol/L", "4ECDC4", "\U0001F525"),
    ("Weight", "Lbs", "95E1D3", "⚖️"),
)


def default_measurement_types() -> list[MeasurementType]:
    """Build fresh instances of the built-in system types."""
    return [
        MeasurementType(
            name=name,
            unit=unit,
            color_hex=color_hex,
            emoji=emoji,
            is_system_type=True,
        )
        for name, unit, color_hex, emoji in DEFAULT_TYPES
    ]
