from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from uuid import uuid4

import pytest

from metric_tool.customization import (
    DEFAULT_COLOR,
    ChartCustomization,
    ChartCustomizations,
    Color,
    CustomizationRecord,
)
from metric_tool.storage import SQLiteStore


def test_color_from_six_digit_hex_is_opaque() -> None:
    color = Color.from_hex("#FF6B6B")
    assert color.red == 1.0
    assert color.green == pytest.approx(0x6B / 255)
    assert color.blue == pytest.approx(0x6B / 255)
    assert color.alpha == 1.0


def test_color_from_eight_digit_hex_reads_alpha_first() -> None:
    color = Color.from_hex("80007AFF")
    assert color.alpha == pytest.approx(0x80 / 255)
    assert color.red == 0.0
    assert color.green == pytest.approx(0x7A / 255)
    assert color.blue == 1.0


@pytest.mark.parametrize("raw", ["", "#FFF", "12345", "1234567", "GG0000", "0x1234"])
def test_color_from_hex_rejects_bad_input(raw: str) -> None:
    with pytest.raises(ValueError):
        Color.from_hex(raw)


def test_color_to_hex_is_uppercase_without_alpha() -> None:
    assert Color(1.0, 0.0, 0.25, alpha=0.2).to_hex() == "FF0040"
    assert Color.from_hex("4ecdc4").to_hex() == "4ECDC4"


def test_color_to_hex_clamps_out_of_range_channels() -> None:
    assert Color(1.5, -0.2, 0.0).to_hex() == "FF0000"


def test_record_falls_back_to_default_color() -> None:
    record = CustomizationRecord(
        measurement_type_id=uuid4(), point_color_hex="nope", line_color_hex="00FF00"
    )
    custom = record.to_customization()
    assert custom.point_color == DEFAULT_COLOR
    assert custom.line_color.to_hex() == "00FF00"


def test_get_returns_defaults_when_missing(tmp_path: Path) -> None:
    settings = ChartCustomizations(SQLiteStore(tmp_path / "app.sqlite3"))
    custom = settings.get(uuid4())
    assert custom == ChartCustomization()
    assert custom.point_size == 8
    assert custom.line_width == 2
    assert custom.show_points is True
    assert custom.show_line is True
    assert custom.point_color.to_hex() == "007AFF"
    assert custom.line_color.to_hex() == "007AFF"


def test_set_then_get_round_trips_all_fields(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    settings = ChartCustomizations(store)
    type_id = uuid4()
    custom = ChartCustomization(
        point_size=12.0,
        point_color=Color.from_hex("FF6B6B"),
        show_points=False,
        show_line=True,
        line_color=Color.from_hex("4ECDC4"),
        line_width=3.5,
    )
    settings.set(type_id, custom)

    loaded = settings.get(type_id)
    assert loaded.point_size == 12.0
    assert loaded.point_color.to_hex() == "FF6B6B"
    assert loaded.show_points is False
    assert loaded.show_line is True
    assert loaded.line_color.to_hex() == "4ECDC4"
    assert loaded.line_width == 3.5


def test_set_updates_in_place(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    settings = ChartCustomizations(store)
    type_id = uuid4()
    settings.set(type_id, ChartCustomization(line_width=4.0))
    settings.set(type_id, replace(settings.get(type_id), show_line=False))

    loaded = settings.get(type_id)
    assert loaded.line_width == 4.0
    assert loaded.show_line is False
    record = store.load_customization(type_id)
    assert record is not None
    assert record.line_width == 4.0


def test_settings_are_keyed_by_type(tmp_path: Path) -> None:
    settings = ChartCustomizations(SQLiteStore(tmp_path / "app.sqlite3"))
    first, second = uuid4(), uuid4()
    settings.set(first, ChartCustomization(point_size=20.0))
    assert settings.get(first).point_size == 20.0
    assert settings.get(second).point_size == 8.0
