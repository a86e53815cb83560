"""Filtros de rango de fechas compartidos por todos los graficos."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from metric_tool.model import Measurement, local_now, local_time


class DateRangeFilter(str, Enum):
    """Closed set of range policies offered to the user."""

    LAST_7_DAYS = "Last 7 Days"
    LAST_30_DAYS = "Last 30 Days"
    LAST_90_DAYS = "Last 90 Days"
    CUSTOM = "Custom Range"
    ALL_TIME = "All Time"

    @property
    def lookback_days(self) -> int | None:
        return _LOOKBACK_DAYS.get(self)

    @classmethod
    def from_name(cls, raw: str) -> DateRangeFilter:
        """Resolve a filter from its member name, camelCase key or label.

        Raises:
            ValueError: If ``raw`` matches no filter.
        """
        key = raw.strip()
        for member in cls:
            if key in (member.name, member.value, _CAMEL_NAMES[member]):
                return member
            if key.lower() == member.name.lower():
                return member
        raise ValueError(f"Unknown date range filter: {raw!r}")


_LOOKBACK_DAYS: dict[DateRangeFilter, int] = {
    DateRangeFilter.LAST_7_DAYS: 7,
    DateRangeFilter.LAST_30_DAYS: 30,
    DateRangeFilter.LAST_90_DAYS: 90,
}

_CAMEL_NAMES: dict[DateRangeFilter, str] = {
    DateRangeFilter.LAST_7_DAYS: "last7Days",
    DateRangeFilter.LAST_30_DAYS: "last30Days",
    DateRangeFilter.LAST_90_DAYS: "last90Days",
    DateRangeFilter.CUSTOM: "custom",
    DateRangeFilter.ALL_TIME: "allTime",
}


@dataclass(frozen=True)
class DateWindow:
    """Concrete ``[start, end]`` window; ``start=None`` means unbounded."""

    start: datetime | None
    end: datetime

    @property
    def is_unbounded(self) -> bool:
        return self.start is None

    def contains(self, timestamp: datetime) -> bool:
        """Inclusive on both ends; always true when the start is unbounded."""
        if self.start is None:
            return True
        ts = local_time(timestamp)
        return self.start <= ts <= self.end


def start_of_day(value: datetime) -> datetime:
    return local_time(value).replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    return local_time(value).replace(hour=23, minute=59, second=59, microsecond=0)


def resolve_window(
    selection: DateRangeFilter,
    *,
    now: datetime | None = None,
    custom_start: datetime | None = None,
    custom_end: datetime | None = None,
) -> DateWindow:
    """Compute the window for a filter selection.

    Args:
        selection: Filter chosen by the user.
        now: Evaluation instant; defaults to the wall clock at call time.
        custom_start: Start of a custom range (normalized to 00:00:00).
        custom_end: End of a custom range (normalized to 23:59:59).

    Returns:
        The resolved window. A custom range without a start is unbounded.
    """
    current = local_time(now) if now is not None else local_now()

    days = selection.lookback_days
    if days is not None:
        return DateWindow(start=current - timedelta(days=days), end=current)

    if selection is DateRangeFilter.CUSTOM:
        start = start_of_day(custom_start) if custom_start is not None else None
        end = end_of_day(custom_end) if custom_end is not None else current
        return DateWindow(start=start, end=end)

    return DateWindow(start=None, end=current)


def filter_measurements(
    measurements: Iterable[Measurement], window: DateWindow
) -> list[Measurement]:
    """Keep measurements inside ``window`` preserving their order."""
    if window.is_unbounded:
        return list(measurements)
    return [m for m in measurements if window.contains(m.timestamp)]
