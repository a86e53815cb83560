"""Preferencias de graficos por tipo de medicion (con defaults)."""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from metric_tool.storage import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_COLOR_HEX = "007AFF"
DEFAULT_POINT_SIZE = 8.0
DEFAULT_LINE_WIDTH = 2.0


@dataclass(frozen=True)
class Color:
    """RGBA color with channels in ``0.0 - 1.0``."""

    red: float
    green: float
    blue: float
    alpha: float = 1.0

    @classmethod
    def from_hex(cls, raw: str) -> Color:
        """Parse ``RRGGBB`` or ``AARRGGBB`` (a leading ``#`` is ignored).

        Raises:
            ValueError: If the string is not 6 or 8 hex digits.
        """
        digits = _strip_non_alnum(raw)
        if not digits or any(c not in string.hexdigits for c in digits):
            raise ValueError(f"Invalid hex color: {raw!r}")
        value = int(digits, 16)

        if len(digits) == 6:
            a = 255
        elif len(digits) == 8:
            a = value >> 24
        else:
            raise ValueError(f"Invalid hex color length: {raw!r}")
        r, g, b = value >> 16 & 0xFF, value >> 8 & 0xFF, value & 0xFF
        return cls(red=r / 255, green=g / 255, blue=b / 255, alpha=a / 255)

    def to_hex(self) -> str:
        """Six uppercase hex digits; alpha is not kept."""
        return "".join(
            f"{_channel_byte(c):02X}" for c in (self.red, self.green, self.blue)
        )


def _strip_non_alnum(raw: str) -> str:
    start, end = 0, len(raw)
    while start < end and not raw[start].isalnum():
        start += 1
    while end > start and not raw[end - 1].isalnum():
        end -= 1
    return raw[start:end]


def _channel_byte(channel: float) -> int:
    return min(255, max(0, round(channel * 255)))


DEFAULT_COLOR = Color.from_hex(DEFAULT_COLOR_HEX)


@dataclass(frozen=True)
class ChartCustomization:
    """Display preferences consumed by the chart renderer."""

    point_size: float = DEFAULT_POINT_SIZE
    point_color: Color = field(default=DEFAULT_COLOR)
    show_points: bool = True
    show_line: bool = True
    line_color: Color = field(default=DEFAULT_COLOR)
    line_width: float = DEFAULT_LINE_WIDTH


@dataclass(frozen=True)
class CustomizationRecord:
    """Stored form of a customization: colors kept as hex strings."""

    measurement_type_id: UUID
    point_size: float = DEFAULT_POINT_SIZE
    point_color_hex: str = DEFAULT_COLOR_HEX
    show_points: bool = True
    show_line: bool = True
    line_color_hex: str = DEFAULT_COLOR_HEX
    line_width: float = DEFAULT_LINE_WIDTH

    def to_customization(self) -> ChartCustomization:
        return ChartCustomization(
            point_size=self.point_size,
            point_color=_color_or_default(self.point_color_hex),
            show_points=self.show_points,
            show_line=self.show_line,
            line_color=_color_or_default(self.line_color_hex),
            line_width=self.line_width,
        )

    @classmethod
    def from_customization(
        cls, measurement_type_id: UUID, customization: ChartCustomization
    ) -> CustomizationRecord:
        return cls(
            measurement_type_id=measurement_type_id,
            point_size=customization.point_size,
            point_color_hex=customization.point_color.to_hex(),
            show_points=customization.show_points,
            show_line=customization.show_line,
            line_color_hex=customization.line_color.to_hex(),
            line_width=customization.line_width,
        )


def _color_or_default(raw: str) -> Color:
    try:
        return Color.from_hex(raw)
    except ValueError:
        logger.warning("Stored color %r is not valid hex, using default", raw)
        return DEFAULT_COLOR


class ChartCustomizations:
    """Per-type customization settings backed by a record store.

    A type without a stored row gets the defaults; the row is created on the
    first ``set`` and updated in place afterwards.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def get(self, measurement_type_id: UUID) -> ChartCustomization:
        record = self._store.load_customization(measurement_type_id)
        if record is None:
            return ChartCustomization()
        return record.to_customization()

    def set(
        self, measurement_type_id: UUID, customization: ChartCustomization
    ) -> None:
        """Store all six fields for the type (full replacement, not a patch)."""
        record = CustomizationRecord.from_customization(
            measurement_type_id, customization
        )
        self._store.save_customization(record)
        logger.debug("Saved chart customization for %s", measurement_type_id)
