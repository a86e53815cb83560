"""CLI para respaldar, restaurar y analizar mediciones guardadas en SQLite."""

from __future__ import annotations

import argparse
import logging
import math
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from uuid import UUID

from dateutil import parser as date_parser

from metric_tool.csv_codec import CodecError, import_csv_file, write_export
from metric_tool.customization import ChartCustomizations, Color
from metric_tool.date_range import (
    DateRangeFilter,
    DateWindow,
    filter_measurements,
    resolve_window,
)
from metric_tool.excel_writer import ExcelLayout, write_measurements_xlsx
from metric_tool.frames import daily_summary, measurements_to_frame
from metric_tool.gki import GKIRoles, classify_gki, gki_series, gki_to_frame
from metric_tool.model import Measurement, MeasurementType, local_now
from metric_tool.storage import AppConfig, SQLiteStore, StoreError, seed_default_types

logger = logging.getLogger(__name__)


def _iso_date(raw: str) -> datetime:
    try:
        return date_parser.isoparse(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date: {raw!r}") from exc


def _color(raw: str) -> Color:
    try:
        return Color.from_hex(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _finite_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid value: {raw!r}") from exc
    if not math.isfinite(value):
        raise argparse.ArgumentTypeError(f"invalid value: {raw!r}")
    return value


def _uuid(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid id: {raw!r}") from exc


def _add_window_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--range", dest="date_range", default=None)
    parser.add_argument("--start", type=_iso_date, default=None)
    parser.add_argument("--end", type=_iso_date, default=None)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Mediciones de salud: respaldo CSV, GKI y preferencias."
    )
    parser.add_argument(
        "--db",
        default=str(Path.cwd() / "metric_tool.sqlite3"),
        help="Base SQLite (default: ./metric_tool.sqlite3).",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Crea Glucose/Ketones/Weight si no hay tipos.")

    export = sub.add_parser("export", help="Exporta todas las mediciones a CSV.")
    export.add_argument("--out-dir", default=None)
    export.add_argument(
        "--xlsx", action="store_true", help="Tambien genera un Excel formateado."
    )

    imp = sub.add_parser("import", help="Importa mediciones desde CSV.")
    imp.add_argument("file")

    gki = sub.add_parser("gki", help="Lista el GKI diario.")
    _add_window_args(gki)

    add_type = sub.add_parser("add-type", help="Crea un tipo de medicion.")
    add_type.add_argument("name")
    add_type.add_argument("unit")
    add_type.add_argument("--color", type=_color, default=None)
    add_type.add_argument("--emoji", default=None)

    add = sub.add_parser("add", help="Registra una medicion.")
    add.add_argument("type_name")
    add.add_argument("value", type=_finite_float)
    add.add_argument("--at", type=_iso_date, default=None, help="Default: ahora.")
    add.add_argument("--notes", default=None)

    listing = sub.add_parser("list", help="Lista mediciones de un tipo.")
    listing.add_argument("type_name")
    _add_window_args(listing)

    del_m = sub.add_parser("delete-measurement", help="Borra una medicion por id.")
    del_m.add_argument("measurement_id", type=_uuid)

    del_t = sub.add_parser("delete-type", help="Borra un tipo y sus mediciones.")
    del_t.add_argument("type_name")

    custom = sub.add_parser("customize", help="Preferencias de grafico por tipo.")
    custom.add_argument("type_name")
    custom.add_argument("--point-size", type=float, default=None)
    custom.add_argument("--point-color", type=_color, default=None)
    custom.add_argument("--line-color", type=_color, default=None)
    custom.add_argument("--line-width", type=float, default=None)
    custom.add_argument(
        "--show-points", action=argparse.BooleanOptionalAction, default=None
    )
    custom.add_argument(
        "--show-line", action=argparse.BooleanOptionalAction, default=None
    )

    config = sub.add_parser("config", help="Muestra o cambia la configuracion.")
    config.add_argument("--export-dir", default=None)
    config.add_argument("--default-range", default=None)
    config.add_argument("--glucose-type", default=None)
    config.add_argument("--ketones-type", default=None)

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    store = SQLiteStore(Path(ns.db).expanduser().resolve())
    handlers = {
        "seed": _cmd_seed,
        "export": _cmd_export,
        "import": _cmd_import,
        "gki": _cmd_gki,
        "add-type": _cmd_add_type,
        "add": _cmd_add,
        "list": _cmd_list,
        "delete-measurement": _cmd_delete_measurement,
        "delete-type": _cmd_delete_type,
        "customize": _cmd_customize,
        "config": _cmd_config,
    }
    return handlers[ns.command](store, ns)


def _cmd_seed(store: SQLiteStore, _: argparse.Namespace) -> int:
    created = seed_default_types(store)
    print(f"OK: {len(created)} tipos creados")
    return 0


def _cmd_export(store: SQLiteStore, ns: argparse.Namespace) -> int:
    config = store.load_config()
    out_dir = Path(ns.out_dir or config.export_dir or Path.cwd() / "exports")
    out_dir = out_dir.expanduser()
    measurements = store.list_measurements()
    types = store.list_measurement_types()
    try:
        csv_path = write_export(measurements, types, out_dir)
    except CodecError as exc:
        print(f"ERROR: {exc}")
        return 1
    print(f"OK: CSV: {csv_path}")

    if ns.xlsx:
        roles = GKIRoles(config.glucose_type_name, config.ketones_type_name)
        events = measurements_to_frame(measurements)
        ts = local_now().strftime("%Y-%m-%d_%H-%M-%S")
        xlsx_path = out_dir / f"metric_tool_{ts}.xlsx"
        write_measurements_xlsx(
            events,
            daily_summary(events),
            gki_to_frame(gki_series(measurements, types, roles=roles)),
            xlsx_path,
            ExcelLayout(),
        )
        print(f"OK: Excel: {xlsx_path}")
    return 0


def _cmd_import(store: SQLiteStore, ns: argparse.Namespace) -> int:
    result = import_csv_file(Path(ns.file), store.list_measurement_types(), store)
    print(f"OK: {result.success} importadas, {result.errors} errores")
    for message in result.messages:
        print(f"  {message}")
    return 0 if result.errors == 0 else 1


def _window(ns: argparse.Namespace, config: AppConfig) -> DateWindow:
    """Window from --range/--start/--end, else the configured default.

    Raises:
        ValueError: If the range name is unknown.
    """
    if ns.date_range:
        selection = DateRangeFilter.from_name(ns.date_range)
    elif ns.start or ns.end:
        selection = DateRangeFilter.CUSTOM
    else:
        selection = DateRangeFilter.from_name(config.default_range)
    return resolve_window(selection, custom_start=ns.start, custom_end=ns.end)


def _find_type(store: SQLiteStore, name: str) -> MeasurementType | None:
    match = next((t for t in store.list_measurement_types() if t.name == name), None)
    if match is None:
        print(f"ERROR: tipo desconocido '{name}'")
    return match


def _cmd_gki(store: SQLiteStore, ns: argparse.Namespace) -> int:
    config = store.load_config()
    try:
        window = _window(ns, config)
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1
    roles = GKIRoles(config.glucose_type_name, config.ketones_type_name)

    points = gki_series(
        store.list_measurements(), store.list_measurement_types(), window, roles
    )
    if not points:
        print("Sin datos: faltan glucosa y cetonas del mismo dia.")
        return 0
    for point in points:
        stamp = point.timestamp.strftime("%Y-%m-%d %H:%M")
        print(f"{stamp}  {point.gki:5.2f}  {classify_gki(point.gki).value}")
    return 0


def _cmd_add_type(store: SQLiteStore, ns: argparse.Namespace) -> int:
    if any(t.name == ns.name for t in store.list_measurement_types()):
        print(f"ERROR: el tipo '{ns.name}' ya existe")
        return 1
    try:
        new_type = MeasurementType(name=ns.name, unit=ns.unit, emoji=ns.emoji)
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1
    if ns.color is not None:
        new_type = replace(new_type, color_hex=f"#{ns.color.to_hex()}")
    store.save_measurement_types([new_type])
    print(f"OK: tipo {new_type.name} ({new_type.unit}) {new_type.id}")
    return 0


def _cmd_add(store: SQLiteStore, ns: argparse.Namespace) -> int:
    match = _find_type(store, ns.type_name)
    if match is None:
        return 1
    measurement = Measurement(
        value=ns.value,
        timestamp=ns.at or local_now(),
        notes=ns.notes or None,
        measurement_type=match,
    )
    try:
        store.save_measurements([measurement])
    except StoreError as exc:
        print(f"ERROR: {exc}")
        return 1
    print(f"OK: {measurement.id}")
    return 0


def _cmd_list(store: SQLiteStore, ns: argparse.Namespace) -> int:
    match = _find_type(store, ns.type_name)
    if match is None:
        return 1
    try:
        window = _window(ns, store.load_config())
    except ValueError as exc:
        print(f"ERROR: {exc}")
        return 1

    readings = [
        m
        for m in filter_measurements(store.list_measurements(), window)
        if m.measurement_type is not None and m.measurement_type.id == match.id
    ]
    readings.sort(key=lambda m: m.timestamp)
    if not readings:
        print("Sin mediciones en el rango.")
        return 0
    for m in readings:
        stamp = m.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{stamp}  {m.value:g} {match.unit}  {m.notes or ''}  {m.id}")
    return 0


def _cmd_delete_measurement(store: SQLiteStore, ns: argparse.Namespace) -> int:
    if not store.delete_measurement(ns.measurement_id):
        print(f"ERROR: medicion {ns.measurement_id} no encontrada")
        return 1
    print(f"OK: medicion {ns.measurement_id} borrada")
    return 0


def _cmd_delete_type(store: SQLiteStore, ns: argparse.Namespace) -> int:
    match = _find_type(store, ns.type_name)
    if match is None:
        return 1
    if match.is_system_type:
        print(f"ERROR: '{match.name}' es un tipo del sistema")
        return 1
    store.delete_measurement_type(match.id)
    print(f"OK: tipo {match.name} borrado")
    return 0


def _cmd_customize(store: SQLiteStore, ns: argparse.Namespace) -> int:
    match = _find_type(store, ns.type_name)
    if match is None:
        return 1

    settings = ChartCustomizations(store)
    current = settings.get(match.id)
    changes = {
        "point_size": ns.point_size,
        "point_color": ns.point_color,
        "show_points": ns.show_points,
        "show_line": ns.show_line,
        "line_color": ns.line_color,
        "line_width": ns.line_width,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if changes:
        current = replace(current, **changes)
        settings.set(match.id, current)

    print(
        f"{match.name}: point_size={current.point_size:g} "
        f"point_color={current.point_color.to_hex()} "
        f"show_points={current.show_points} show_line={current.show_line} "
        f"line_color={current.line_color.to_hex()} "
        f"line_width={current.line_width:g}"
    )
    return 0


def _cmd_config(store: SQLiteStore, ns: argparse.Namespace) -> int:
    config = store.load_config()
    if ns.default_range is not None:
        try:
            DateRangeFilter.from_name(ns.default_range)
        except ValueError as exc:
            print(f"ERROR: {exc}")
            return 1
    changes = {
        "export_dir": ns.export_dir,
        "default_range": ns.default_range,
        "glucose_type_name": ns.glucose_type,
        "ketones_type_name": ns.ketones_type,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if changes:
        config = replace(config, **changes)
        store.save_config(config)
        logger.info("Configuration updated: %s", ", ".join(sorted(changes)))

    print(f"export_dir={config.export_dir}")
    print(f"default_range={config.default_range}")
    print(f"glucose_type_name={config.glucose_type_name}")
    print(f"ketones_type_name={config.ketones_type_name}")
    return 0
