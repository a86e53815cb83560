"""Persistencia SQLite para tipos, mediciones, personalizaciones y configuracion."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol
from uuid import UUID

from metric_tool.customization import CustomizationRecord
from metric_tool.model import Measurement, MeasurementType, default_measurement_types

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS measurement_types (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    unit TEXT NOT NULL,
    color_hex TEXT NOT NULL,
    emoji TEXT,
    is_system_type INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS measurements (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    value REAL NOT NULL,
    timestamp TEXT NOT NULL,
    notes TEXT,
    measurement_type_id TEXT,
    FOREIGN KEY(measurement_type_id) REFERENCES measurement_types(id)
        ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_measurements_type
ON measurements(measurement_type_id);

CREATE TABLE IF NOT EXISTS chart_customizations (
    measurement_type_id TEXT PRIMARY KEY,
    point_size REAL NOT NULL,
    point_color_hex TEXT NOT NULL,
    show_points INTEGER NOT NULL,
    show_line INTEGER NOT NULL,
    line_color_hex TEXT NOT NULL,
    line_width REAL NOT NULL
);
"""


class StoreError(Exception):
    """The record store could not complete an operation."""


class RecordStore(Protocol):
    """Collaborator the core reads from and writes to."""

    def list_measurement_types(self) -> list[MeasurementType]: ...

    def list_measurements(self) -> list[Measurement]: ...

    def save_measurement_types(self, types: Sequence[MeasurementType]) -> None: ...

    def save_measurements(self, measurements: Sequence[Measurement]) -> None: ...

    def load_customization(
        self, measurement_type_id: UUID
    ) -> CustomizationRecord | None: ...

    def save_customization(self, record: CustomizationRecord) -> None: ...


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    export_dir: str
    default_range: str
    glucose_type_name: str
    ketones_type_name: str


_CONFIG_DEFAULTS: dict[str, str] = {
    "export_dir": "",
    "default_range": "ALL_TIME",
    "glucose_type_name": "Glucose",
    "ketones_type_name": "Ketones",
}


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    # -- measurement types -------------------------------------------------

    def list_measurement_types(self) -> list[MeasurementType]:
        """All types in insertion order."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, name, unit, color_hex, emoji, is_system_type, created_at
                FROM measurement_types
                ORDER BY seq
                """
            ).fetchall()
        return [_type_from_row(row) for row in rows]

    def save_measurement_types(self, types: Sequence[MeasurementType]) -> None:
        """Insert or update types in one transaction."""
        payload = [
            (
                str(t.id),
                t.name,
                t.unit,
                t.color_hex,
                t.emoji,
                int(t.is_system_type),
                t.created_at.isoformat(),
            )
            for t in types
        ]
        self._write(
            """
            INSERT INTO measurement_types(
                id, name, unit, color_hex, emoji, is_system_type, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                unit=excluded.unit,
                color_hex=excluded.color_hex,
                emoji=excluded.emoji,
                is_system_type=excluded.is_system_type
            """,
            payload,
        )

    def delete_measurement_type(self, measurement_type_id: UUID) -> None:
        """Delete a type; its measurements go with it."""
        self._write(
            "DELETE FROM measurement_types WHERE id = ?",
            [(str(measurement_type_id),)],
        )

    # -- measurements ------------------------------------------------------

    def list_measurements(self) -> list[Measurement]:
        """All measurements in insertion order, each with its type resolved."""
        types = {str(t.id): t for t in self.list_measurement_types()}
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, value, timestamp, notes, measurement_type_id
                FROM measurements
                ORDER BY seq
                """
            ).fetchall()
        return [
            Measurement(
                id=UUID(row["id"]),
                value=float(row["value"]),
                timestamp=datetime.fromisoformat(row["timestamp"]),
                notes=row["notes"],
                measurement_type=types.get(row["measurement_type_id"]),
            )
            for row in rows
        ]

    def save_measurements(self, measurements: Sequence[Measurement]) -> None:
        """Insert all measurements atomically.

        Raises:
            StoreError: If any row is rejected; nothing is written then.
        """
        payload = [
            (
                str(m.id),
                m.value,
                m.timestamp.isoformat(),
                m.notes,
                str(m.measurement_type.id) if m.measurement_type else None,
            )
            for m in measurements
        ]
        self._write(
            """
            INSERT INTO measurements(
                id, value, timestamp, notes, measurement_type_id
            ) VALUES (?, ?, ?, ?, ?)
            """,
            payload,
        )

    def delete_measurement(self, measurement_id: UUID) -> bool:
        """Delete one measurement; False if no row had that id."""
        conn = self._connect()
        try:
            with conn:
                cursor = conn.execute(
                    "DELETE FROM measurements WHERE id = ?", (str(measurement_id),)
                )
        except sqlite3.Error as exc:
            logger.error("SQLite delete failed on %s: %s", self._db_path, exc)
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()
        return cursor.rowcount > 0

    # -- chart customizations ----------------------------------------------

    def load_customization(
        self, measurement_type_id: UUID
    ) -> CustomizationRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT
                    point_size, point_color_hex, show_points, show_line,
                    line_color_hex, line_width
                FROM chart_customizations
                WHERE measurement_type_id = ?
                """,
                (str(measurement_type_id),),
            ).fetchone()
        if row is None:
            return None
        return CustomizationRecord(
            measurement_type_id=measurement_type_id,
            point_size=float(row["point_size"]),
            point_color_hex=row["point_color_hex"],
            show_points=bool(row["show_points"]),
            show_line=bool(row["show_line"]),
            line_color_hex=row["line_color_hex"],
            line_width=float(row["line_width"]),
        )

    def save_customization(self, record: CustomizationRecord) -> None:
        self._write(
            """
            INSERT INTO chart_customizations(
                measurement_type_id, point_size, point_color_hex, show_points,
                show_line, line_color_hex, line_width
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(measurement_type_id) DO UPDATE SET
                point_size=excluded.point_size,
                point_color_hex=excluded.point_color_hex,
                show_points=excluded.show_points,
                show_line=excluded.show_line,
                line_color_hex=excluded.line_color_hex,
                line_width=excluded.line_width
            """,
            [
                (
                    str(record.measurement_type_id),
                    record.point_size,
                    record.point_color_hex,
                    int(record.show_points),
                    int(record.show_line),
                    record.line_color_hex,
                    record.line_width,
                )
            ],
        )

    # -- config ------------------------------------------------------------

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        merged = {**_CONFIG_DEFAULTS, **values}
        return AppConfig(
            export_dir=merged["export_dir"],
            default_range=merged["default_range"],
            glucose_type_name=merged["glucose_type_name"] or "Glucose",
            ketones_type_name=merged["ketones_type_name"] or "Ketones",
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "export_dir": config.export_dir,
            "default_range": config.default_range,
            "glucose_type_name": config.glucose_type_name,
            "ketones_type_name": config.ketones_type_name,
        }
        self._write(
            """
            INSERT INTO app_config(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            list(payload.items()),
        )

    def _write(self, sql: str, rows: Sequence[tuple[object, ...]]) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.executemany(sql, rows)
        except sqlite3.Error as exc:
            logger.error("SQLite write failed on %s: %s", self._db_path, exc)
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()


def seed_default_types(store: RecordStore) -> list[MeasurementType]:
    """Insert the built-in types when the store has none yet.

    Returns:
        The inserted types (empty if the store already had types).
    """
    if store.list_measurement_types():
        return []
    types = default_measurement_types()
    store.save_measurement_types(types)
    logger.info("Seeded %d default measurement types", len(types))
    return types


def _type_from_row(row: sqlite3.Row) -> MeasurementType:
    return MeasurementType(
        id=UUID(row["id"]),
        name=row["name"],
        unit=row["unit"],
        color_hex=row["color_hex"],
        emoji=row["emoji"],
        is_system_type=bool(row["is_system_type"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )
