"""Tests for CLI entrypoints."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from metric_tool import cli
from metric_tool.customization import ChartCustomizations
from metric_tool.csv_codec import CSV_HEADER
from metric_tool.model import Measurement
from metric_tool.storage import SQLiteStore


def _db(tmp_path: Path) -> str:
    return str(tmp_path / "app.sqlite3")


def test_parse_args_custom_values() -> None:
    ns = cli.parse_args(["--db", "/tmp/x.sqlite3", "gki", "--range", "last7Days"])
    assert ns.db == "/tmp/x.sqlite3"
    assert ns.command == "gki"
    assert ns.date_range == "last7Days"
    assert ns.start is None


def test_parse_args_rejects_bad_color() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["customize", "Glucose", "--point-color", "zzz"])


def test_seed_then_import_and_gki(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = _db(tmp_path)
    assert cli.main(["--db", db, "seed"]) == 0

    csv_path = tmp_path / "in.csv"
    csv_path.write_text(
        "\n".join(
            [
                CSV_HEADER,
                "2025-01-01,08:00:00,Glucose,99,mg/dL,",
                "2025-01-01,09:00:00,Ketones,1.1,mmol/L,fasting",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    assert cli.main(["--db", db, "import", str(csv_path)]) == 0
    assert "OK: 2 importadas, 0 errores" in capsys.readouterr().out

    code = cli.main(
        ["--db", db, "gki", "--start", "2025-01-01", "--end", "2025-01-01"]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "2025-01-01 08:00   5.00  moderate" in out


def test_import_reports_row_errors(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    csv_path = tmp_path / "in.csv"
    csv_path.write_text(
        f"{CSV_HEADER}\n2025-01-01,08:00:00,Insulin,4,u,\n", encoding="utf-8"
    )
    assert cli.main(["--db", db, "import", str(csv_path)]) == 1
    out = capsys.readouterr().out
    assert "Row 1: Unknown measurement type 'Insulin'" in out


def test_export_writes_csv_and_xlsx(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    store = SQLiteStore(Path(db))
    glucose = store.list_measurement_types()[0]
    store.save_measurements(
        [Measurement(95.5, datetime(2025, 12, 1, 8, 0), None, glucose)]
    )

    out_dir = tmp_path / "exports"
    assert cli.main(["--db", db, "export", "--out-dir", str(out_dir), "--xlsx"]) == 0

    csv_files = list(out_dir.glob("metric_tool_export_*.csv"))
    assert len(csv_files) == 1
    lines = csv_files[0].read_text(encoding="utf-8").splitlines()
    assert lines == [CSV_HEADER, "2025-12-01,08:00:00,Glucose,95.5,mg/dL,"]
    assert len(list(out_dir.glob("metric_tool_*.xlsx"))) == 1
    assert "OK: CSV:" in capsys.readouterr().out


def test_customize_updates_only_given_fields(tmp_path: Path) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    code = cli.main(
        [
            "--db",
            db,
            "customize",
            "Ketones",
            "--point-size",
            "12",
            "--line-color",
            "#FF6B6B",
            "--no-show-line",
        ]
    )
    assert code == 0

    store = SQLiteStore(Path(db))
    ketones = next(t for t in store.list_measurement_types() if t.name == "Ketones")
    custom = ChartCustomizations(store).get(ketones.id)
    assert custom.point_size == 12.0
    assert custom.line_color.to_hex() == "FF6B6B"
    assert custom.show_line is False
    assert custom.show_points is True
    assert custom.line_width == 2.0


def test_customize_unknown_type(tmp_path: Path) -> None:
    assert cli.main(["--db", _db(tmp_path), "customize", "Nope"]) == 1


def test_config_round_trip_and_validation(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = _db(tmp_path)
    assert cli.main(["--db", db, "config", "--default-range", "bogus"]) == 1
    assert cli.main(["--db", db, "config", "--default-range", "last30Days"]) == 0
    capsys.readouterr()

    assert cli.main(["--db", db, "config"]) == 0
    assert "default_range=last30Days" in capsys.readouterr().out


def test_gki_without_pairs(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    assert cli.main(["--db", db, "gki", "--range", "allTime"]) == 0
    assert "Sin datos" in capsys.readouterr().out


def test_add_type_then_add_and_list_readings(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = _db(tmp_path)
    add_type = ["--db", db, "add-type", "Steps", "count"]
    assert cli.main([*add_type, "--color", "00FF00"]) == 0
    assert cli.main(["--db", db, "add-type", "Steps", "count"]) == 1
    capsys.readouterr()

    base = ["--db", db, "add", "Steps"]
    assert cli.main([*base, "9000", "--at", "2025-03-02T07:00:00"]) == 0
    assert cli.main([*base, "4000", "--at", "2025-03-01T20:00:00", "--notes", "x"]) == 0
    assert cli.main([*base, "100", "--at", "2025-02-01T08:00:00"]) == 0
    capsys.readouterr()

    code = cli.main(
        ["--db", db, "list", "Steps", "--start", "2025-03-01", "--end", "2025-03-02"]
    )
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("2025-03-01 20:00:00  4000 count  x  ")
    assert lines[1].startswith("2025-03-02 07:00:00  9000 count  ")

    store = SQLiteStore(Path(db))
    steps = store.list_measurement_types()[0]
    assert steps.color_hex == "#00FF00"
    assert steps.is_system_type is False


def test_add_rejects_unknown_type_and_non_finite_value(tmp_path: Path) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    assert cli.main(["--db", db, "add", "Insulin", "4"]) == 1
    with pytest.raises(SystemExit):
        cli.main(["--db", db, "add", "Glucose", "nan"])
    assert SQLiteStore(Path(db)).list_measurements() == []


def test_list_with_unknown_range_fails(tmp_path: Path) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    assert cli.main(["--db", db, "list", "Glucose", "--range", "bogus"]) == 1


def test_delete_measurement_by_id(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    cli.main(["--db", db, "add", "Glucose", "99"])
    cli.main(["--db", db, "add", "Glucose", "101"])
    store = SQLiteStore(Path(db))
    first, second = store.list_measurements()
    capsys.readouterr()

    assert cli.main(["--db", db, "delete-measurement", str(first.id)]) == 0
    assert [m.id for m in store.list_measurements()] == [second.id]
    assert cli.main(["--db", db, "delete-measurement", str(first.id)]) == 1
    assert "no encontrada" in capsys.readouterr().out


def test_delete_type_removes_its_readings_but_not_system_types(
    tmp_path: Path,
) -> None:
    db = _db(tmp_path)
    cli.main(["--db", db, "seed"])
    cli.main(["--db", db, "add-type", "Steps", "count"])
    cli.main(["--db", db, "add", "Steps", "500"])
    cli.main(["--db", db, "add", "Glucose", "99"])

    assert cli.main(["--db", db, "delete-type", "Glucose"]) == 1
    assert cli.main(["--db", db, "delete-type", "Steps"]) == 0
    assert cli.main(["--db", db, "delete-type", "Steps"]) == 1

    store = SQLiteStore(Path(db))
    names = [t.name for t in store.list_measurement_types()]
    assert names == ["Glucose", "Ketones", "Weight"]
    assert [m.value for m in store.list_measurements()] == [99.0]
